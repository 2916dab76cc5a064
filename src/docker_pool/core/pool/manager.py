"""
Container Pool

Fixed-size look-ahead buffer of containers, provisioned in background
tasks so that acquiring one is cheap most of the time.
"""

import asyncio
import inspect
import logging
import os
import time
from collections import deque
from typing import Any, Callable, Deque, Iterable, Optional, Union

from ..exceptions import (
    LifecycleError,
    PoolClosedError,
    PoolConfigurationError,
    PoolExhaustedError,
)
from ..lifecycle import ContainerLifecycle, DockerLifecycleClient, LifecycleClient
from ..metrics import POOL_ACQUISITIONS, POOL_CLEANUPS, PROVISIONING_SECONDS
from .models import PoolStatus

logger = logging.getLogger(__name__)


class ContainerPool:
    """
    Pool of pre-warmed, disposable containers.

    Every slot is an asyncio task that brings one container, named
    ``{basename}-{pid}-{index}``, to a ready state. Slots are handed out
    strictly in the order they were spawned. Must be created while an
    event loop is running.

    Calls default their ``name`` argument to the most recently acquired
    container (``last_name``), so a test can simply chain them:

        pool = ContainerPool(2, "pg", image="postgres:16", port=5432)

        name = await pool.acquire()  # first container
        name = await pool.acquire()  # recycles the first, returns the next

        await pool.release()  # cleans everything

    Lifecycle and readiness failures are logged, never raised: a container
    that failed to start shows up as a name nothing is listening behind.
    """

    DEFAULT_SIZE = 2

    DEFAULT_BASENAME = "docker_pool"

    def __init__(
        self,
        size: Optional[int] = None,
        basename: Optional[str] = None,
        client: Optional[LifecycleClient] = None,
        setup: Optional[Callable[["ContainerPool"], Any]] = None,
        *,
        image: Optional[str] = None,
        port: Optional[Union[int, str]] = None,
        path: Optional[str] = None,
    ):
        """
        Initialize pool and spawn one provisioning task per slot.

        Args:
            size: Number of slots
            basename: Prefix of the container names
            client: Lifecycle client (Docker client from the environment if not provided)
            setup: Called with the pool before the slots are spawned,
                e.g. to set image, port or path
            image: Image to start containers from (nothing is started if None)
            port: Exposed container port to wait for and build URLs with
            path: HTTP path that must answer before a container counts as ready
        """
        self.size = size or self.DEFAULT_SIZE
        if self.size < 1:
            raise PoolConfigurationError(f"Pool size must be positive, got {self.size}")

        self.basename = basename or self.DEFAULT_BASENAME
        self.client = client or DockerLifecycleClient()
        self.lifecycle = ContainerLifecycle(self.client)

        self.image = image
        self.port = port
        self.path = path

        self.last_name: Optional[str] = None
        self._closed = False

        if setup:
            setup(self)

        self._slots: Deque[asyncio.Task] = deque(
            self._spawn(self.slot_name(index)) for index in range(self.size)
        )

        logger.info(f"Spawned {self.size} slots for pool {self.basename} (image: {self.image})")

    def slot_name(self, index: int) -> str:
        """Container name of a slot"""
        return f"{self.basename}-{os.getpid()}-{index}"

    async def acquire(self, name: Optional[str] = None) -> str:
        """
        Acquire the next ready container.

        Args:
            name: Container to recycle in the background (defaults to
                last_name); its replacement joins the back of the queue

        Returns:
            Name of the acquired container

        Raises:
            PoolClosedError: If the pool has been released
            PoolExhaustedError: If nothing is pending and there is
                nothing to recycle
        """
        if self._closed:
            raise PoolClosedError(self.basename)

        if name is None:
            name = self.last_name

        self._reclaim(name)

        if not self._slots:
            raise PoolExhaustedError(self.basename)

        slot = self._slots.popleft()
        try:
            self.last_name = await asyncio.shield(slot)
        except asyncio.CancelledError:
            # the recycled name now belongs to its replacement slot
            self._slots.appendleft(slot)
            if name == self.last_name:
                self.last_name = None
            raise

        POOL_ACQUISITIONS.labels(pool=self.basename).inc()
        logger.debug(f"Acquired container {self.last_name} from pool {self.basename}")

        return self.last_name

    async def acquire_url(self, name: Optional[str] = None) -> str:
        """
        Acquire the next ready container and return its URL.

        Args:
            name: Container to recycle (defaults to last_name)

        Returns:
            "http://host:port" of the configured port, followed by path

        Raises:
            PoolConfigurationError: If no port is configured
            LifecycleError: If the port is not published
        """
        if not self.port:
            raise PoolConfigurationError("acquire_url requires a port", basename=self.basename)

        acquired = await self.acquire(name)
        url = await asyncio.to_thread(self.client.build_url, acquired, self.port)

        return url + (self.path or "")

    async def release(self, name: Optional[str] = None) -> None:
        """
        Drain the pool: clean every slot's container and name.

        Waits for each slot to finish provisioning before cleaning it, and
        returns once all cleanups are done. The pool cannot be acquired
        from afterwards.

        Args:
            name: Acquired container to clean as well (defaults to last_name)
        """
        if name is None:
            name = self.last_name

        slots, self._slots = list(self._slots), deque()
        self._closed = True

        cleanups = [self._clean_slot(slot) for slot in slots]
        if name and not self._pending(name, slots):
            cleanups.append(self._clean(name))

        if cleanups:
            results = await asyncio.gather(*cleanups, return_exceptions=True)
            failed = [r for r in results if isinstance(r, BaseException)]
            for error in failed:
                logger.error(f"Error cleaning container of pool {self.basename}: {error}")
            logger.info(
                f"Released {len(cleanups) - len(failed)}/{len(cleanups)} containers "
                f"of pool {self.basename}"
            )

        self.last_name = None

    def status(self) -> PoolStatus:
        """Get pool status"""
        ready = sum(1 for slot in self._slots if slot.done())

        return PoolStatus(
            basename=self.basename,
            size=self.size,
            image=self.image,
            port=self.port,
            path=self.path,
            pending=len(self._slots) - ready,
            ready=ready,
            last_name=self.last_name,
            closed=self._closed,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.basename}@{len(self._slots)}>"

    def _spawn(self, name: str, clean: bool = False) -> asyncio.Task:
        """Create the provisioning task for a slot"""
        return asyncio.create_task(self._provision(name, clean), name=f"provision-{name}")

    @staticmethod
    def _pending(name: str, slots: Iterable[asyncio.Task]) -> bool:
        """Whether one of the slots provisions the named container"""
        return any(slot.get_name() == f"provision-{name}" for slot in slots)

    def _reclaim(self, name: Optional[str]) -> None:
        """Recycle a used container into a fresh slot at the back of the queue"""
        if not name:
            return

        # one pending slot per container name
        if self._pending(name, self._slots):
            logger.debug(f"Container {name} is already being recycled in pool {self.basename}")
            return

        self._slots.append(self._spawn(name, clean=True))

    async def _provision(self, name: str, clean: bool) -> str:
        """Bring a container to a ready state; always resolves to its name"""
        started_at = time.monotonic()

        try:
            if clean:
                await asyncio.to_thread(self.lifecycle.clean, name)

            if self.image:
                if clean:
                    started = await asyncio.to_thread(self.client.start, name, self.image)
                else:
                    started = await asyncio.to_thread(
                        self.lifecycle.start_or_restart, name, self.image
                    )

                if not started:
                    logger.warning(f"Failed to start container {name} from {self.image}")

            if self.port:
                await self._await_ready(name)

        except Exception as e:
            logger.error(f"Error provisioning container {name}: {e}", exc_info=True)

        PROVISIONING_SECONDS.labels(pool=self.basename).observe(time.monotonic() - started_at)
        return name

    async def _await_ready(self, name: str) -> bool:
        """Wait for the configured port of a container"""
        try:
            host_port = await asyncio.to_thread(self.client.port_mapping, name, self.port)
        except LifecycleError as e:
            logger.warning(f"Cannot check readiness of {name}: {e}")
            return False

        ready = await self.client.is_ready(host_port, self.path)
        if not ready:
            logger.warning(
                f"Container {name} not ready on {host_port}{self.path or ''}; handing it out anyway"
            )
        return ready

    async def _clean_slot(self, slot: asyncio.Task) -> None:
        """Clean a slot's container once its provisioning is over"""
        await self._clean(await asyncio.shield(slot))

    async def _clean(self, name: str) -> None:
        await asyncio.to_thread(self.lifecycle.clean, name)
        POOL_CLEANUPS.labels(pool=self.basename).inc()


class SingleContainerPool(ContainerPool):
    """
    Pool with a single slot.

    ``acquire`` additionally accepts a ``use`` callback; the container is
    recycled as soon as the callback returns, so the next caller never
    waits on a container still in use.

        async def check(name):
            ...

        await pool.acquire(use=check)
    """

    async def acquire(
        self,
        name: Optional[str] = None,
        use: Optional[Callable[[str], Any]] = None,
    ) -> str:
        """
        Acquire the container, optionally using and recycling it.

        With an explicit ``name`` this is a plain acquire: that name is
        recycled and ``use`` is not called.

        Args:
            name: Container to recycle (defaults to last_name)
            use: Called (and awaited, if it returns an awaitable) with the
                acquired name; the replacement is queued afterwards

        Returns:
            Name of the acquired container
        """
        if name is not None or use is None:
            return await super().acquire(name)

        acquired = await super().acquire(name)
        try:
            result = use(acquired)
            if inspect.isawaitable(result):
                await result
        finally:
            self._reclaim(acquired)
            self.last_name = None

        return acquired


def create_pool(
    size: Optional[int] = None,
    basename: Optional[str] = None,
    client: Optional[LifecycleClient] = None,
    setup: Optional[Callable[[ContainerPool], Any]] = None,
    **config: Any,
) -> ContainerPool:
    """
    Create a container pool, single-slot if size is 1.

    Args:
        size: Number of slots
        basename: Prefix of the container names
        client: Lifecycle client
        setup: Called with the pool before its slots are spawned
        **config: image, port and path

    Returns:
        SingleContainerPool or ContainerPool
    """
    size = size or ContainerPool.DEFAULT_SIZE
    pool_class = SingleContainerPool if size == 1 else ContainerPool

    return pool_class(size, basename, client, setup, **config)
