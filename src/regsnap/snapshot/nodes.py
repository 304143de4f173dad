"""
Snapshot tree nodes.

A KeyNode mirrors one registry key: its child keys and its values, each
stored under the lower-cased name. Parents are held by weak reference so
the tree is owned strictly top-down.
"""

import logging
import weakref
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType

from regsnap.core.models import RegistryValue, ValueKind
from regsnap.store.base import KEY_SEPARATOR, split_path

logger = logging.getLogger(__name__)


def normalize(name: str) -> str:
    """Return the identity form of a key or value name."""
    return name.lower()


class ValueEntry:
    """
    One named value under a KeyNode.

    Holds either the value itself (eager) or a loader that fetches it
    from the store on first use (lazy). A successful lazy load is cached.
    """

    __slots__ = ("name", "_value", "_loader")

    def __init__(
        self,
        name: str,
        value: RegistryValue | None = None,
        *,
        loader: Callable[[], RegistryValue] | None = None,
    ):
        if (value is None) == (loader is None):
            raise ValueError("ValueEntry needs exactly one of value or loader")
        self.name = name
        self._value = value
        self._loader = loader

    @property
    def is_resolved(self) -> bool:
        return self._value is not None

    def resolve(self) -> RegistryValue:
        """
        Return the value's kind and raw data.

        Raises:
            ReadError: If a lazy load fails
            OpenError: If a lazy load cannot reopen the key
        """
        if self._value is None:
            self._value = self._loader()
            self._loader = None
        return self._value

    @property
    def kind(self) -> ValueKind:
        return self.resolve().kind

    @property
    def data(self) -> bytes:
        return self.resolve().data

    def __repr__(self) -> str:
        state = self._value.kind.name if self._value is not None else "unresolved"
        return f"ValueEntry({self.name!r}, {state})"


class KeyNode:
    """
    One key of a snapshot tree.

    children and values are read-only views keyed by lower-cased name;
    use child() / value() to look up with any casing.
    """

    def __init__(self, name: str, parent: "KeyNode | None" = None):
        self.name = name
        self._parent = weakref.ref(parent) if parent is not None else None
        self._children: dict[str, KeyNode] = {}
        self._values: dict[str, ValueEntry] = {}
        self.access_denied = False

    @property
    def parent(self) -> "KeyNode | None":
        return self._parent() if self._parent is not None else None

    @property
    def children(self) -> Mapping[str, "KeyNode"]:
        return MappingProxyType(self._children)

    @property
    def values(self) -> Mapping[str, ValueEntry]:
        return MappingProxyType(self._values)

    @property
    def path(self) -> str:
        """Names from the root down to this node, joined with backslashes."""
        names = []
        node: KeyNode | None = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return KEY_SEPARATOR.join(reversed(names))

    @property
    def is_placeholder(self) -> bool:
        """True if the key is known to exist but its contents could not be read."""
        return self.access_denied and not self._children and not self._values

    def child(self, name: str) -> "KeyNode | None":
        return self._children.get(normalize(name))

    def value(self, name: str) -> ValueEntry | None:
        return self._values.get(normalize(name))

    def iter_children(self) -> Iterator["KeyNode"]:
        return iter(self._children.values())

    def iter_values(self) -> Iterator[ValueEntry]:
        return iter(self._values.values())

    def walk(self) -> Iterator["KeyNode"]:
        """Yield this node and all descendants, depth first, pre-order."""
        yield self
        for child in self._children.values():
            yield from child.walk()

    def find(self, relative_path: str) -> "KeyNode | None":
        """Follow a relative path of child names (any casing, either separator)."""
        node: KeyNode | None = self
        for segment in split_path(relative_path):
            node = node.child(segment)
            if node is None:
                return None
        return node

    def add_child(self, name: str) -> "KeyNode":
        """
        Create and register a child node.

        A name that differs from an existing sibling only by case replaces it.
        """
        key = normalize(name)
        if key in self._children:
            logger.warning(
                f"Case-only key name collision under {self.path!r}: "
                f"{self._children[key].name!r} replaced by {name!r}"
            )
        node = KeyNode(name, parent=self)
        self._children[key] = node
        return node

    def add_value(self, entry: ValueEntry) -> None:
        key = normalize(entry.name)
        if key in self._values:
            logger.warning(
                f"Case-only value name collision under {self.path!r}: "
                f"{self._values[key].name!r} replaced by {entry.name!r}"
            )
        self._values[key] = entry

    def __repr__(self) -> str:
        return (
            f"KeyNode({self.name!r}, children={len(self._children)}, "
            f"values={len(self._values)}, access_denied={self.access_denied})"
        )
