"""
In-process page model: the containers, inputs and radio groups the
harness bindings read from and render into, plus named event handlers.
"""

import html
import logging
from typing import Any, Callable, Dict, List, Optional

import lxml.html
from lxml.etree import ParserError

from .errors import ElementNotFound

logger = logging.getLogger(__name__)


class Element:
    def __init__(self, element_id: str, inner_html: str = '', value: str = ''):
        self.id = element_id
        self.inner_html = inner_html
        self.value = value

    def __repr__(self):
        return f"Element(id={self.id!r})"


class RadioInput:
    def __init__(self, name: str, value: str, checked: bool = False, owner: Optional[str] = None):
        self.name = name
        self.value = value
        self.checked = checked
        # id of the container whose markup created this input, if any
        self.owner = owner

    def __repr__(self):
        return f"RadioInput(name={self.name!r}, value={self.value!r}, checked={self.checked})"


class Page:
    """Named elements and event handlers for one harness page."""

    def __init__(self, escape_html: bool = False):
        self.escape_html = escape_html
        self._elements: Dict[str, Element] = {}
        self._radios: List[RadioInput] = []
        self._handlers: Dict[str, List[Callable[[], Any]]] = {}

    def add_element(self, element_id: str, inner_html: str = '', value: str = '') -> Element:
        element = Element(element_id, inner_html=inner_html, value=value)
        self._elements[element_id] = element
        return element

    def add_radio(self, name: str, value: str, checked: bool = False) -> RadioInput:
        radio = RadioInput(name, value)
        self._radios.append(radio)
        if checked:
            self.check(name, value)
        return radio

    def get_element_by_id(self, element_id: str) -> Element:
        try:
            return self._elements[element_id]
        except KeyError:
            raise ElementNotFound(element_id) from None

    def get_elements_by_name(self, name: str) -> List[RadioInput]:
        return [radio for radio in self._radios if radio.name == name]

    def check(self, name: str, value: str):
        """Check the radio input with this value; the rest of its group is unchecked."""
        group = self.get_elements_by_name(name)
        if not any(radio.value == value for radio in group):
            raise ElementNotFound(f"{name}={value}")
        for radio in group:
            radio.checked = radio.value == value

    def render(self, element_id: str, text: str):
        """Replace the element's content with text, escaping it first if the page is configured to."""
        element = self.get_element_by_id(element_id)
        if self.escape_html:
            text = html.escape(text)
        element.inner_html = text
        self._sync_radios(element_id, text)

    def _sync_radios(self, element_id: str, markup: str):
        """Replace the radio inputs owned by element_id with those found in markup."""
        self._radios = [radio for radio in self._radios if radio.owner != element_id]
        if '<input' not in markup:
            return

        try:
            root = lxml.html.fromstring(markup)
        except ParserError as e:
            logger.warning(f"Unable to parse markup rendered into {element_id}: {e}")
            return

        for node in root.iter('input'):
            if (node.get('type') or '').lower() != 'radio' or not node.get('name'):
                continue
            self._radios.append(RadioInput(
                node.get('name'),
                node.get('value', 'on'),
                checked='checked' in node.attrib,
                owner=element_id
            ))

    def on(self, event: str, handler: Callable[[], Any]):
        self._handlers.setdefault(event, []).append(handler)

    def dispatch(self, event: str) -> List[Any]:
        """Run every handler registered for event and return their results."""
        handlers = self._handlers.get(event, [])
        if not handlers:
            logger.debug(f"No handlers registered for '{event}'")
        return [handler() for handler in handlers]


def build_harness_page(elements: Dict[str, str] = None, escape_html: bool = False) -> Page:
    """Create a page with the containers and inputs the harness bindings expect.

    Args:
        elements: Mapping of role to element id, as in the 'elements' config section.
        escape_html: Escape rendered text instead of injecting it raw.
    """
    elements = elements or {}
    page = Page(escape_html=escape_html)
    for role in ('selector', 'results', 'target', 'delay_input'):
        page.add_element(elements.get(role, DEFAULT_ELEMENTS[role]))
    return page


DEFAULT_ELEMENTS = {
    'selector': 'testsel',
    'results': 'content',
    'target': 'target',
    'delay_input': 'time',
    'test_group': 'selected_test',
}
