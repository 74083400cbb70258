"""
Handlers for the harness page: load the test selector, run the selected
test, and fetch a page element with a server-side delay.
"""

import asyncio
from typing import Dict, Optional

import structlog

from .fetcher import Fetcher, error_wrap
from .page import DEFAULT_ELEMENTS, Page

logger = structlog.get_logger(__name__)

DEFAULT_ENDPOINTS = {
    'selector': 'latency.pl',
    'run': 'latency.pl',
    'delay': 'dyndelay.pl',
}

NO_SELECTION_MESSAGE = 'Select a test to run.'


class PageBindings:
    """Binds page events to requests whose results are rendered back into the page."""

    def __init__(self, page: Page, fetcher: Fetcher, endpoints: Dict[str, str] = None,
                 elements: Dict[str, str] = None):
        self.page = page
        self.fetcher = fetcher
        self.endpoints = {**DEFAULT_ENDPOINTS, **(endpoints or {})}
        self.elements = {**DEFAULT_ELEMENTS, **(elements or {})}

    def register(self):
        self.page.on('load', self.load_test_selector)
        self.page.on('run', self.run_selected_test)
        self.page.on('click', self.delayed_fetch)

    def render(self, role: str, text: str):
        self.page.render(self.elements[role], text)

    def _render_into(self, role: str):
        return lambda text: self.render(role, text)

    def load_test_selector(self) -> Optional[asyncio.Task]:
        """Fetch the list of available tests into the selector container.

        This runs first when the page loads, so an error here is all the
        user sees if the helper or the server is unreachable.
        """
        logger.info("test_selector_loading", endpoint=self.endpoints['selector'])
        return self.fetcher.fetch(self.endpoints['selector'], ['load=true'],
                                  self._render_into('selector'))

    def selected_test(self) -> Optional[str]:
        for radio in self.page.get_elements_by_name(self.elements['test_group']):
            if radio.checked:
                return radio.value
        return None

    def run_selected_test(self) -> Optional[asyncio.Task]:
        test = self.selected_test()
        if not test:
            logger.warning("no_test_selected", group=self.elements['test_group'])
            self.render('results', error_wrap(NO_SELECTION_MESSAGE))
            return None

        logger.info("test_run_started", test=test)
        self.render('results', f'<p>Running test "{test}"...</p>')
        return self.fetcher.fetch(self.endpoints['run'], [f'{test}=true'],
                                  self._render_into('results'))

    def delayed_fetch(self) -> Optional[asyncio.Task]:
        delay = self.page.get_element_by_id(self.elements['delay_input']).value
        logger.info("delayed_fetch_started", time=delay)
        return self.fetcher.fetch(self.endpoints['delay'], [f'time={delay}'],
                                  self._render_into('target'))
