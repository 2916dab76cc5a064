"""
Container Lifecycle

Idempotent compound operations over the lifecycle client's verbs. Each one
is safe to call whatever state the container is currently in; the client
is asked every time instead of caching a presumed state.
"""

import logging
from typing import Callable, Optional

from .client import LifecycleClient

logger = logging.getLogger(__name__)

FreshStartCallback = Callable[[str, str], None]


class ContainerLifecycle:
    """
    Sequences start/stop/restart/clean/clobber/reset for one client.

    Results of stop and remove are discarded on purpose: a container that
    was never running cannot be stopped, and an absent one cannot be
    removed, which is the expected case on repeated calls.
    """

    def __init__(self, client: LifecycleClient):
        self.client = client

    def ensure_stopped(self, name: str) -> None:
        """Stop a container if it is running"""
        self.client.stop(name)

    def restart(self, name: str) -> bool:
        """
        Stop (if running) and start an existing container.

        Returns:
            False if there is no container to start
        """
        self.ensure_stopped(name)
        return self.client.start_existing(name)

    def start_or_restart(
        self,
        name: str,
        image: str,
        on_fresh_start: Optional[FreshStartCallback] = None,
    ) -> bool:
        """
        Restart an existing container, or start a new one.

        Args:
            name: Container name
            image: Image for a fresh start
            on_fresh_start: Called with (name, image) when no existing
                container could be restarted, e.g. to seed state once

        Returns:
            Whether the final start step succeeded
        """
        if self.restart(name):
            logger.debug(f"Restarted existing container {name}")
            return True

        started = self.client.start(name, image)

        if on_fresh_start:
            on_fresh_start(name, image)

        return started

    def clean(self, name: str) -> None:
        """Stop and remove a container, including its volumes"""
        self.ensure_stopped(name)
        self.client.remove(name)

    def clobber(self, name: str, image: str) -> None:
        """Clean a container and remove its image"""
        self.clean(name)
        # image may still be used by other containers
        self.client.remove_image(image)

    def reset(self, name: str, image: str) -> bool:
        """Recreate a container from scratch"""
        self.clean(name)
        return self.client.start(name, image)
