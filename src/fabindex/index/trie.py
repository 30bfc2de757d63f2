"""Path-to-fields trie driving which metadata gets indexed where."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Tuple

from fabindex.models import FieldConfig

WILDCARD = "*"


@dataclass(frozen=True, slots=True)
class FieldRegistration:
    """A field registered at a trie node.

    ``key`` is the metadata key read at that node: the last component of the
    configured path, or the field name when the path ends in an empty
    component.
    """

    field: FieldConfig
    key: str
    path: str


class PathToFieldsNode:
    """One component of a dotted metadata path.

    Every node stores the field registrations whose parent path ends here.
    The root node has the empty path. Children are iterated in lexicographic
    key order so that crawls write fields in a reproducible order.
    """

    __slots__ = ("path", "_fields", "_children")

    def __init__(self, path: str = "") -> None:
        self.path = path
        self._fields: List[FieldRegistration] = []
        self._children: Dict[str, PathToFieldsNode] = {}

    @classmethod
    def build(cls, fields: Iterable[FieldConfig]) -> "PathToFieldsNode":
        root = cls("")
        for field_config in fields:
            for path in field_config.paths:
                root.add_field(field_config, path)
        return root

    def add_field(self, field_config: FieldConfig, path: str) -> FieldRegistration:
        """Register ``field_config`` at ``path`` (components separated by '.')."""
        node = self
        components = path.split(".")
        key = field_config.name
        for position, component in enumerate(components):
            if component == "":
                break
            if position == len(components) - 1:
                key = component
                break
            child = node._children.get(component)
            if child is None:
                prefix = f"{node.path}.{component}" if node.path else component
                child = PathToFieldsNode(prefix)
                node._children[component] = child
            node = child
        full_path = f"{node.path}.{key}" if node.path else key
        registration = FieldRegistration(field=field_config, key=key, path=full_path)
        node._fields.append(registration)
        return registration

    def fields_at(self) -> List[FieldRegistration]:
        return sorted(self._fields, key=lambda reg: (reg.field.name, reg.key))

    def children(self) -> List[Tuple[str, "PathToFieldsNode"]]:
        return sorted(self._children.items())

    def walk(self) -> Iterator["PathToFieldsNode"]:
        """Yield this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(child for _, child in reversed(node.children()))

    def registration_count(self) -> int:
        return sum(len(node._fields) for node in self.walk())

    def __repr__(self) -> str:
        return f"PathToFieldsNode(path={self.path!r}, fields={[r.field.name for r in self._fields]!r})"
