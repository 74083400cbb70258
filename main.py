"""
Entrypoint: load config, build the harness page, fire its load event and
optionally run a test and a delayed fetch against the harness server
"""

import asyncio
import logging
import sys

import structlog
from dotenv import load_dotenv

from latency.bindings import PageBindings
from latency.config import Config
from latency.errors import LatencyError
from latency.fetcher import create_fetcher
from latency.page import build_harness_page


def resolve_log_level(level) -> int:
    """Accept a level name (INFO) or number (20); env overrides arrive already converted to int."""
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip().isdigit():
        return int(level)
    return getattr(logging, str(level).upper(), logging.INFO)


def setup_logging(log_config: dict):
    """Configure stdlib logging and route structlog through it."""
    logging.basicConfig(
        level=resolve_log_level(log_config.get('level', 'INFO')),
        format=log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
        stream=sys.stdout,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.KeyValueRenderer(key_order=['event']),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


async def settle(results):
    """Wait for whatever requests the dispatched handlers left in flight."""
    tasks = [task for task in results if task is not None]
    if tasks:
        await asyncio.gather(*tasks)


async def main():
    """Initialize dependencies and drive the harness page"""
    load_dotenv()

    config = Config()
    setup_logging(config.logging)
    logger = logging.getLogger(__name__)

    page = build_harness_page(config.elements, escape_html=bool(config.render.get('escape_html', False)))
    bindings = PageBindings(page, create_fetcher(config), config.endpoints, config.elements)
    bindings.register()

    logger.info(f"Loading test selector from {config.server.get('base_url')}")
    await settle(page.dispatch('load'))
    print(page.get_element_by_id(bindings.elements['selector']).inner_html)

    test = config.run.get('test')
    if test:
        page.check(bindings.elements['test_group'], str(test))
        await settle(page.dispatch('run'))
        print(page.get_element_by_id(bindings.elements['results']).inner_html)

    delay = config.run.get('delay')
    if delay not in (None, ''):
        page.get_element_by_id(bindings.elements['delay_input']).value = str(delay)
        await settle(page.dispatch('click'))
        print(page.get_element_by_id(bindings.elements['target']).inner_html)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except LatencyError as e:
        logging.getLogger(__name__).error(f"Fatal error: {e}")
        sys.exit(1)
