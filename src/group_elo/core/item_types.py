"""Resolve-once cache for the item type id a deployment serves."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable

import structlog

logger = structlog.get_logger()


class ItemTypeResolver:
    """Lazily resolve an item type id exactly once and reuse it.

    The loader runs at most once per resolver, even when many threads or
    coroutines ask for the id concurrently. A loader failure leaves the
    resolver empty so the next caller retries.
    """

    def __init__(self, slug: str, loader: Callable[[], str]) -> None:
        """Initialize resolver.

        Args:
            slug: Item type slug, used for logging.
            loader: Blocking callable returning the item type id.
        """
        self.slug = slug
        self._loader = loader
        self._lock = threading.Lock()
        self._value: str | None = None

    @property
    def resolved(self) -> bool:
        return self._value is not None

    def get(self) -> str:
        """Return the item type id, loading it on first use."""
        value = self._value
        if value is not None:
            return value

        with self._lock:
            if self._value is None:
                self._value = self._loader()
                logger.debug("item_type_resolved", slug=self.slug, item_type_id=self._value)
            return self._value

    async def aget(self) -> str:
        """Async variant of get(); the loader runs on a worker thread."""
        value = self._value
        if value is not None:
            return value
        return await asyncio.to_thread(self.get)

    def reset(self) -> None:
        """Forget the cached id."""
        with self._lock:
            self._value = None
