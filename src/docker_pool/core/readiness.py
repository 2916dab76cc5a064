"""
Readiness Prober

Waits for a freshly started container's published port to accept
connections and, optionally, for an HTTP path on it to answer successfully.
"""

import asyncio
import logging
from typing import Optional, Tuple, Union

import aiohttp

from .metrics import READINESS_CHECKS

logger = logging.getLogger(__name__)

HostPort = Union[str, Tuple[str, Union[str, int]]]

DEFAULT_ATTEMPTS = 30
DEFAULT_INTERVAL = 0.1  # seconds
DEFAULT_REQUEST_TIMEOUT = 1.0  # seconds

TRANSIENT_HTTP_ERRORS = (
    aiohttp.ClientConnectionError,
    asyncio.TimeoutError,
    ConnectionResetError,
)


def parse_host_port(host_port: HostPort) -> Tuple[str, int]:
    """
    Split ``host:port`` (as returned by a port mapping) or a
    ``(host, port)`` pair into host and integer port.
    """
    if isinstance(host_port, str):
        host, _, port = host_port.rpartition(":")
        if not host:
            raise ValueError(f"Expected host:port, got {host_port!r}")
    else:
        host, port = host_port

    return host, int(port)


class ReadinessProber:
    """
    Two-phase readiness check.

    The cheap TCP probe runs first; the HTTP probe only starts once the
    socket accepts connections. Each phase has its own attempt budget and
    sleeps between attempts unless the budget is exhausted.

    Example:
        prober = ReadinessProber()
        ready = await prober.await_ready("0.0.0.0", 49153, "/health")
    """

    def __init__(
        self,
        attempts: int = DEFAULT_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        """
        Initialize prober.

        Args:
            attempts: Attempts per phase
            interval: Seconds to sleep between attempts
            request_timeout: Timeout for a single TCP connect or HTTP request
        """
        if attempts < 1:
            raise ValueError("attempts must be positive")

        self.attempts = attempts
        self.interval = interval
        self.request_timeout = request_timeout

    async def await_ready(
        self,
        host: str,
        port: int,
        path: Optional[str] = None,
        attempts: Optional[int] = None,
        interval: Optional[float] = None,
    ) -> bool:
        """
        Wait until ``host:port`` is reachable.

        Args:
            host: Host to connect to
            port: Port to connect to
            path: HTTP path that must answer 2xx (TCP only if None)
            attempts: Attempts per phase (prober default if None)
            interval: Seconds between attempts (prober default if None)

        Returns:
            True if ready, False if the attempt budget ran out

        Raises:
            ValueError: If attempts is not positive
        """
        if attempts is None:
            attempts = self.attempts
        elif attempts < 1:
            raise ValueError("attempts must be positive")
        interval = self.interval if interval is None else interval

        ready = await self._socket_ready(host, port, attempts, interval)

        if ready and path:
            ready = await self._http_ready(host, port, path, attempts, interval)

        READINESS_CHECKS.labels(result="ready" if ready else "timeout").inc()

        if not ready:
            logger.debug(f"{host}:{port}{path or ''} not ready after {attempts} attempts")

        return ready

    async def is_ready(self, host_port: HostPort, path: Optional[str] = None) -> bool:
        """Like await_ready, for a ``host:port`` string or pair"""
        host, port = parse_host_port(host_port)
        return await self.await_ready(host, port, path)

    async def _socket_ready(
        self, host: str, port: int, attempts: int, interval: float
    ) -> bool:
        """Check TCP connection"""
        while True:
            try:
                await self._connect(host, port)
                return True
            except (OSError, asyncio.TimeoutError) as e:
                logger.debug(f"Connect to {host}:{port} failed: {e!r}")
                attempts -= 1
                if not await self._backoff(attempts, interval):
                    return False

    async def _http_ready(
        self, host: str, port: int, path: str, attempts: int, interval: float
    ) -> bool:
        """Check HTTP response"""
        if not path.startswith("/"):
            path = f"/{path}"

        url = f"http://{host}:{port}{path}"
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            while True:
                try:
                    status = await self._fetch_status(session, url)
                    if 200 <= status < 300:
                        return True
                    logger.debug(f"GET {url} returned {status}")
                except TRANSIENT_HTTP_ERRORS as e:
                    logger.debug(f"GET {url} failed: {e!r}")

                attempts -= 1
                if not await self._backoff(attempts, interval):
                    return False

    async def _connect(self, host: str, port: int) -> None:
        """Open and close a TCP connection"""
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), self.request_timeout
        )
        writer.close()
        await writer.wait_closed()

    async def _fetch_status(self, session: aiohttp.ClientSession, url: str) -> int:
        """Issue a GET request and return its status code"""
        async with session.get(url) as response:
            return response.status

    async def _backoff(self, attempts: int, interval: float) -> bool:
        """Sleep unless out of attempts; False means give up"""
        if attempts <= 0:
            return False

        await self._sleep(interval)
        return True

    async def _sleep(self, interval: float) -> None:
        await asyncio.sleep(interval)
