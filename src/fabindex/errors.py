"""Exceptions raised while parsing configuration and crawling metadata."""

from __future__ import annotations


class FabindexError(Exception):
    """Base class for every error surfaced by a crawl."""


class ConfigError(FabindexError):
    """A configuration key is missing or malformed."""

    def __init__(self, key: str, reason: str = "missing or malformed") -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration key '{key}': {reason}")


class UnsupportedFieldType(FabindexError):
    def __init__(self, field_name: str, field_type: str) -> None:
        self.field_name = field_name
        self.field_type = field_type
        super().__init__(f"Unsupported type '{field_type}' for field '{field_name}'")


class FieldValueError(FabindexError):
    """A metadata value cannot be rendered as text for a field."""

    def __init__(self, field_name: str, value_type: str) -> None:
        self.field_name = field_name
        self.value_type = value_type
        super().__init__(f"Cannot index {value_type} value for field '{field_name}'")


class HostCallError(FabindexError):
    """A call to the content store or the index engine failed."""

    transient = False


class ContentNotFound(HostCallError):
    pass


class ContentStoreIOError(HostCallError):
    transient = True


class IndexEngineError(HostCallError):
    pass


class MalformedMetadata(FabindexError):
    """Metadata does not have the shape the crawl requires."""


class LinkResolutionError(FabindexError):
    def __init__(self, link: str, reason: str) -> None:
        self.link = link
        super().__init__(f"Cannot resolve link '{link}': {reason}")


class MaxDepthExceeded(FabindexError):
    def __init__(self, depth: int) -> None:
        self.depth = depth
        super().__init__(f"Metadata nesting exceeds maximum crawl depth of {depth}")
