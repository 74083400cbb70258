"""
Asynchronous GET helper: issue one request, deliver one outcome.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

import httpx

from .errors import DeliveryError

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Unable to asynchronously load."


def error_wrap(message: str) -> str:
    """Format an error message so the page styles it as an error."""
    return '<span class="error">' + message + '</span>'


def build_uri(endpoint: str, params: Sequence[str]) -> str:
    """Append the pre-encoded key=value params to endpoint, if there are any."""
    if params:
        return endpoint + '?' + '&'.join(params)
    return endpoint


class FetchOutcome:
    def __init__(
        self,
        uri: Optional[str],
        ok: bool,
        body: str = '',
        message: str = None,
        status_code: Optional[int] = None,
        fetch_time: float = 0.0
    ):
        """Initialize an outcome. Use success() or failure() instead of calling this directly."""
        self.uri = uri
        self.ok = ok
        self.body = body
        self.message = message
        self.status_code = status_code
        self.fetch_time = fetch_time
        self.timestamp = datetime.now(timezone.utc)

    @classmethod
    def success(cls, uri: str, body: str, status_code: int = 200, fetch_time: float = 0.0) -> 'FetchOutcome':
        return cls(uri, True, body=body, status_code=status_code, fetch_time=fetch_time)

    @classmethod
    def failure(cls, uri: Optional[str], message: str, status_code: Optional[int] = None,
                fetch_time: float = 0.0) -> 'FetchOutcome':
        return cls(uri, False, message=message, status_code=status_code, fetch_time=fetch_time)

    @property
    def text(self) -> str:
        """The string shown on the page: the raw body, or the wrapped error message."""
        if self.ok:
            return self.body
        return error_wrap(self.message)

    def __repr__(self):
        kind = 'Success' if self.ok else 'Failure'
        detail = self.body if self.ok else self.message
        return f"{kind}({detail!r})"


class RequestState(Enum):
    IDLE = 'idle'
    IN_FLIGHT = 'in_flight'
    DELIVERED = 'delivered'


class PendingRequest:
    """One request and the callback waiting for its outcome."""

    def __init__(self, uri: Optional[str], on_outcome: Callable[[FetchOutcome], None]):
        self.uri = uri
        self.state = RequestState.IDLE
        self.outcome = None
        self._on_outcome = on_outcome

    def start(self):
        if self.state is not RequestState.IDLE:
            raise DeliveryError(f"Request for {self.uri} already started")
        self.state = RequestState.IN_FLIGHT

    def deliver(self, outcome: FetchOutcome):
        # IDLE -> DELIVERED is allowed: that is the no-transport path
        if self.state is RequestState.DELIVERED:
            raise DeliveryError(f"Outcome for {self.uri} already delivered")
        self.state = RequestState.DELIVERED
        self.outcome = outcome
        self._on_outcome(outcome)


def default_client_factory(base_url: str = '', transport: httpx.AsyncBaseTransport = None,
                           user_agent: str = 'LatencyHarness/1.0') -> httpx.AsyncClient:
    """Create the per-request client. No timeout: the harness measures slow responses."""
    return httpx.AsyncClient(
        base_url=base_url,
        transport=transport,
        timeout=httpx.Timeout(None),
        follow_redirects=True,
        headers={
            'User-Agent': user_agent,
            'Accept': 'text/html,text/plain;q=0.9,*/*;q=0.8',
        }
    )


class Fetcher:
    def __init__(
        self,
        base_url: str = '',
        transport: httpx.AsyncBaseTransport = None,
        client_factory: Callable[..., Optional[httpx.AsyncClient]] = None,
        user_agent: str = 'LatencyHarness/1.0'
    ):
        """Initialize the fetcher.

        Args:
            base_url: Prefix that endpoints are resolved against.
            transport: Optional httpx transport handed to every client (tests use MockTransport).
            client_factory: Builds one client per request. Returning None means the
                host has no asynchronous transport.
            user_agent: User-Agent header sent with each request.
        """
        self.base_url = base_url
        self.transport = transport
        self.client_factory = client_factory or default_client_factory
        self.user_agent = user_agent

    def request(self, endpoint: str, params: Sequence[str],
                on_outcome: Callable[[FetchOutcome], None]) -> Optional[asyncio.Task]:
        """Issue a GET for endpoint and hand its FetchOutcome to on_outcome exactly once.

        Returns the task carrying the request, or None when there is no
        transport; on_outcome has then already been called with a Failure.
        """
        client = self._open_client()
        if client is None:
            pending = PendingRequest(None, on_outcome)
            pending.deliver(FetchOutcome.failure(None, UNAVAILABLE_MESSAGE))
            return None

        # uri holds the bare endpoint until the task appends the params
        pending = PendingRequest(endpoint, on_outcome)
        pending.start()
        return asyncio.get_running_loop().create_task(self._run(client, pending, params))

    def fetch(self, endpoint: str, params: Sequence[str],
              continuation: Callable[[str], None]) -> Optional[asyncio.Task]:
        """Like request(), but the continuation receives the outcome's display text."""
        return self.request(endpoint, params, lambda outcome: continuation(outcome.text))

    def _open_client(self) -> Optional[httpx.AsyncClient]:
        """Build a client, or return None if no asynchronous transport can be had."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, cannot load asynchronously")
            return None

        try:
            client = self.client_factory(
                base_url=self.base_url,
                transport=self.transport,
                user_agent=self.user_agent
            )
        except Exception as e:
            logger.warning(f"Unable to create HTTP client: {e}")
            return None

        if client is None:
            logger.warning("No HTTP client available, cannot load asynchronously")
        return client

    async def _run(self, client: httpx.AsyncClient, pending: PendingRequest,
                   params: Sequence[str]) -> FetchOutcome:
        start_time = time.time()

        try:
            async with client:
                pending.uri = build_uri(pending.uri, params)
                response = await client.get(pending.uri)
            fetch_time = time.time() - start_time

            if response.status_code == 200:
                logger.info(f"Fetched {pending.uri} in {fetch_time:.3f}s")
                outcome = FetchOutcome.success(pending.uri, response.text, fetch_time=fetch_time)
            else:
                logger.warning(f"Request for {pending.uri} returned status {response.status_code}")
                outcome = FetchOutcome.failure(
                    pending.uri,
                    f"Error: {response.status_code}",
                    status_code=response.status_code,
                    fetch_time=fetch_time
                )

        except httpx.ConnectError as e:
            # A browser reports status 0 when the connection never completes
            logger.warning(f"Connection error: {e} for {pending.uri}")
            outcome = FetchOutcome.failure(pending.uri, "Error: 0", status_code=0,
                                           fetch_time=time.time() - start_time)

        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning(f"Request error: {e} for {pending.uri}")
            outcome = FetchOutcome.failure(pending.uri, "Error: 0", status_code=0,
                                           fetch_time=time.time() - start_time)

        except Exception as e:
            logger.error(f"Unexpected error: {e} for {pending.uri}")
            outcome = FetchOutcome.failure(pending.uri, "Error: 0", status_code=0,
                                           fetch_time=time.time() - start_time)

        pending.deliver(outcome)
        return outcome


def create_fetcher(config) -> Fetcher:
    """Create a Fetcher from the server section of a Config."""
    server = config.server
    return Fetcher(
        base_url=server.get('base_url', ''),
        user_agent=server.get('user_agent', 'LatencyHarness/1.0')
    )
