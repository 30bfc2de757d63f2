"""Link markers embedded in content metadata.

A link is a metadata value of the form ``{"/": "<link>"}``. Two link forms
are understood:

* ``./meta/<path>`` points inside the object holding the link;
* ``/qfab/<hash>/meta/<path>`` points into another object of the same library.

The ``meta`` segment is optional in both forms.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from fabindex.errors import MalformedMetadata

LINK_KEY = "/"
_FABRIC_PREFIX = "/qfab/"
_RELATIVE_PREFIX = "./"


@dataclass(frozen=True, slots=True)
class LinkRef:
    """Parsed link target. ``target_hash`` is None for same-object links."""

    raw: str
    target_hash: Optional[str]
    subpath: str

    def resolve_hash(self, origin_hash: str) -> str:
        return self.target_hash if self.target_hash is not None else origin_hash


def is_link(value: Any) -> bool:
    return isinstance(value, dict) and LINK_KEY in value


def _strip_meta(rest: str) -> str:
    parts = [part for part in rest.split("/") if part]
    if parts and parts[0] == "meta":
        parts = parts[1:]
    return "/".join(parts)


def parse_link(link: Any) -> LinkRef:
    """Parse the string held under a link marker's ``/`` key."""
    if not isinstance(link, str):
        raise MalformedMetadata(f"Link marker value must be a string, got {type(link).__name__}")

    if link.startswith(_RELATIVE_PREFIX):
        return LinkRef(raw=link, target_hash=None, subpath=_strip_meta(link[len(_RELATIVE_PREFIX):]))

    if link.startswith(_FABRIC_PREFIX):
        target_hash, _, rest = link[len(_FABRIC_PREFIX):].partition("/")
        if not target_hash:
            raise MalformedMetadata(f"Link '{link}' does not name a target object")
        return LinkRef(raw=link, target_hash=target_hash, subpath=_strip_meta(rest))

    raise MalformedMetadata(f"Unrecognised link '{link}'")
