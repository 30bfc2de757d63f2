"""Protocol for content stores holding metadata objects."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from fabindex.models import ContentVersion


@runtime_checkable
class ContentStore(Protocol):
    """Read access to content-addressed metadata objects.

    Implementations raise ``ContentNotFound`` for unknown objects or paths and
    ``ContentStoreIOError`` for failures that may succeed on retry.
    """

    def get_metadata(self, library_id: str, object_hash: str, subpath: str = "") -> Any:
        """Return the metadata of an object, or the value at ``subpath``.

        ``subpath`` is '/'-separated; the empty string selects the whole
        metadata document.
        """
        ...

    def get_versions(self, content_id: str) -> list[ContentVersion]:
        """Return the versions of a content object, most recent first."""
        ...
