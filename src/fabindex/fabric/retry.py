"""Bounded retry of transient content-store failures."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List

from fabindex.errors import HostCallError
from fabindex.models import ContentVersion
from fabindex.protocols.store import ContentStore

LOGGER = logging.getLogger(__name__)


class RetryingContentStore:
    """Wrap a content store, retrying transient errors with exponential backoff.

    Only ``HostCallError`` subclasses flagged ``transient`` are retried; every
    other error propagates on the first attempt.
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        max_retries: int = 3,
        base_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.max_retries = max(0, max_retries)
        self.base_delay = base_delay
        self._sleep = sleep

    def _call(self, description: str, func: Callable[[], Any]) -> Any:
        for attempt in range(self.max_retries + 1):
            try:
                return func()
            except HostCallError as exc:
                if not exc.transient:
                    raise
                LOGGER.warning(
                    "Content store %s failed (attempt %d/%d): %s",
                    description,
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )
                if attempt == self.max_retries:
                    raise

            # Exponential backoff (the final attempt raised above)
            delay = self.base_delay * (2**attempt)
            LOGGER.debug("Retrying in %.2fs...", delay)
            self._sleep(delay)

    def get_metadata(self, library_id: str, object_hash: str, subpath: str = "") -> Any:
        return self._call(
            f"get_metadata({library_id}, {object_hash}, '{subpath}')",
            lambda: self.store.get_metadata(library_id, object_hash, subpath),
        )

    def get_versions(self, content_id: str) -> List[ContentVersion]:
        return self._call(
            f"get_versions({content_id})",
            lambda: self.store.get_versions(content_id),
        )
