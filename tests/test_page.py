"""Page model tests — containers, radio groups, rendering and events.

Tests cover:
    - Render replaces inner HTML raw by default
    - Render escapes text when the page is built with escape_html
    - Unknown ids raise ElementNotFound
    - Radio groups keep at most one input checked
    - Radio inputs in rendered markup join the page, and re-rendering replaces them
    - Dispatch runs every handler for an event and tolerates unknown events
"""

import pytest

from latency.errors import ElementNotFound
from latency.page import Page, build_harness_page


def test_render_replaces_inner_html_raw():
    page = Page()
    page.add_element("content", inner_html="old")

    page.render("content", '<span class="error">x</span>')
    assert page.get_element_by_id("content").inner_html == '<span class="error">x</span>'


def test_render_escapes_when_configured():
    page = Page(escape_html=True)
    page.add_element("content")

    page.render("content", "<b>bold</b> & more")
    assert page.get_element_by_id("content").inner_html == "&lt;b&gt;bold&lt;/b&gt; &amp; more"


def test_escaped_markup_creates_no_radio_inputs():
    page = Page(escape_html=True)
    page.add_element("testsel")

    page.render("testsel", '<input type="radio" name="selected_test" value="t1">')
    assert page.get_elements_by_name("selected_test") == []


def test_unknown_element_raises():
    page = Page()
    with pytest.raises(ElementNotFound) as exc_info:
        page.render("missing", "text")
    assert exc_info.value.element_id == "missing"
    assert "missing" in str(exc_info.value)


def test_check_unchecks_rest_of_group():
    page = Page()
    page.add_radio("selected_test", "t1", checked=True)
    page.add_radio("selected_test", "t2")
    page.add_radio("other", "x", checked=True)

    page.check("selected_test", "t2")

    checked = {radio.value: radio.checked for radio in page.get_elements_by_name("selected_test")}
    assert checked == {"t1": False, "t2": True}
    assert page.get_elements_by_name("other")[0].checked


def test_check_unknown_value_raises():
    page = Page()
    page.add_radio("selected_test", "t1")
    with pytest.raises(ElementNotFound):
        page.check("selected_test", "t9")


def test_rendered_markup_supplies_radio_inputs():
    page = Page()
    page.add_element("testsel")

    page.render(
        "testsel",
        '<form><input type="radio" name="selected_test" value="t1">'
        '<input type="radio" name="selected_test" value="t2" checked="checked">'
        '<input type="text" name="selected_test" value="ignored"></form>',
    )

    radios = page.get_elements_by_name("selected_test")
    assert [(radio.value, radio.checked) for radio in radios] == [("t1", False), ("t2", True)]


def test_rerender_replaces_radio_inputs_from_same_container():
    page = Page()
    page.add_element("testsel")
    page.add_radio("selected_test", "manual")

    page.render("testsel", '<input type="radio" name="selected_test" value="t1">')
    page.render("testsel", '<input type="radio" name="selected_test" value="t2">')

    assert [radio.value for radio in page.get_elements_by_name("selected_test")] == ["manual", "t2"]


def test_dispatch_runs_handlers_in_order():
    page = Page()
    page.on("click", lambda: "first")
    page.on("click", lambda: "second")

    assert page.dispatch("click") == ["first", "second"]
    assert page.dispatch("unbound") == []


def test_build_harness_page_uses_configured_ids():
    page = build_harness_page({"selector": "tests", "delay_input": "ms"})

    for element_id in ("tests", "content", "target", "ms"):
        assert page.get_element_by_id(element_id).inner_html == ""
    with pytest.raises(ElementNotFound):
        page.get_element_by_id("testsel")
