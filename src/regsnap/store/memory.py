"""
In-memory registry store.

Holds a registry tree in plain Python objects. Used to replay exported
snapshots and as a deterministic store for tests: it counts open handles
and records every call made against it.
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from regsnap.core.exceptions import (
    InvalidRootError,
    OpenError,
    PermissionDeniedError,
    ReadError,
)
from regsnap.core.models import RegistryValue, ValueKind
from regsnap.store.base import RegistryStore, join_path, split_path

if TYPE_CHECKING:
    from regsnap.snapshot.export import KeyRecord

logger = logging.getLogger(__name__)


@dataclass
class MemoryKey:
    """A key in the in-memory tree. Children and values keep insertion order."""

    name: str
    keys: list["MemoryKey"] = field(default_factory=list)
    values: list[tuple[str, RegistryValue]] = field(default_factory=list)
    denied: bool = False

    def add_key(self, name: str, *, denied: bool = False) -> "MemoryKey":
        """Append a child key and return it. Case-only duplicates are allowed."""
        child = MemoryKey(name=name, denied=denied)
        self.keys.append(child)
        return child

    def set_value(self, name: str, value: RegistryValue) -> None:
        """Add or replace a value; lookup is case-insensitive like the registry."""
        for index, (existing, _) in enumerate(self.values):
            if existing.lower() == name.lower():
                self.values[index] = (name, value)
                return
        self.values.append((name, value))

    def find_key(self, name: str) -> "MemoryKey | None":
        """Find a child by exact name, then case-insensitively."""
        for child in self.keys:
            if child.name == name:
                return child
        lowered = name.lower()
        for child in self.keys:
            if child.name.lower() == lowered:
                return child
        return None

    def find_value(self, name: str) -> RegistryValue | None:
        lowered = name.lower()
        for existing, value in self.values:
            if existing.lower() == lowered:
                return value
        return None


@dataclass(frozen=True)
class MemoryHandle:
    """Handle onto a MemoryKey. Anchor handles are never counted as open."""

    key: MemoryKey
    path: str
    handle_id: int
    anchor: bool = False


class MemoryStore(RegistryStore):
    """
    RegistryStore over MemoryKey trees.

    Tracks:
    - open_handle_count: handles opened and not yet released
    - calls: (operation, key path) tuples in call order
    """

    def __init__(self, hives: list[MemoryKey] | None = None):
        """Initialize the store with its top-level hives."""
        self._hives: list[MemoryKey] = list(hives or [])
        self._ids = itertools.count(1)
        self._open: dict[int, MemoryHandle] = {}
        self.calls: list[tuple[str, str]] = []
        self.opened_total = 0

    @property
    def open_handle_count(self) -> int:
        return len(self._open)

    @property
    def hives(self) -> list[MemoryKey]:
        return list(self._hives)

    def add_hive(self, name: str) -> MemoryKey:
        """Create a top-level hive (or return the existing one)."""
        existing = self._find_hive(name)
        if existing is not None:
            return existing
        hive = MemoryKey(name=name)
        self._hives.append(hive)
        return hive

    # -- construction helpers ------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemoryStore":
        """
        Build a store from nested dicts.

        Each hive or key is a dict with optional entries:
        - "keys": mapping of child name to key dict
        - "values": mapping of value name to a RegistryValue or a plain
          Python payload (str, int, bytes or list of str)
        - "denied": True to refuse opening the key
        """
        store = cls()
        for hive_name, layout in data.items():
            hive = store.add_hive(hive_name)
            _populate(hive, layout or {})
        return store

    @classmethod
    def from_record(cls, record: "KeyRecord") -> "MemoryStore":
        """
        Replay an exported snapshot as a store.

        The first segment of the record's name is taken as the hive (hive
        aliases such as HKLM are expanded); any further segments become
        intermediate keys above the record's content.
        """
        from regsnap.snapshot.resolver import canonical_hive

        segments = split_path(record.name)
        if not segments:
            raise InvalidRootError("Snapshot record has no root name", token=record.name)

        try:
            hive_name = canonical_hive(segments[0])
        except InvalidRootError:
            hive_name = segments[0]

        store = cls()
        target = store.add_hive(hive_name)
        for segment in segments[1:]:
            target = target.find_key(segment) or target.add_key(segment)
        _populate_from_record(target, record)
        return store

    # -- RegistryStore ----------------------------------------------------------

    def resolve_anchor(self, token: str) -> MemoryHandle:
        self.calls.append(("resolve_anchor", token))
        hive = self._find_hive(token)
        if hive is None:
            raise InvalidRootError(f"Unknown hive: {token}", token=token)
        return MemoryHandle(key=hive, path=hive.name, handle_id=0, anchor=True)

    def open(self, handle: MemoryHandle, relative_path: str) -> MemoryHandle:
        self._check_live(handle)
        key = handle.key
        path = handle.path
        for segment in split_path(relative_path):
            key, path = self._descend(key, path, segment)
        self.calls.append(("open", path))
        return self._issue(key, path)

    def open_child(self, handle: MemoryHandle, name: str) -> MemoryHandle:
        self._check_live(handle)
        key, path = self._descend(handle.key, handle.path, name)
        self.calls.append(("open_child", path))
        return self._issue(key, path)

    def list_child_names(self, handle: MemoryHandle) -> list[str]:
        self._check_live(handle)
        self.calls.append(("list_child_names", handle.path))
        return [child.name for child in handle.key.keys]

    def list_value_names(self, handle: MemoryHandle) -> list[str]:
        self._check_live(handle)
        self.calls.append(("list_value_names", handle.path))
        return [name for name, _ in handle.key.values]

    def read_value(self, handle: MemoryHandle, name: str) -> RegistryValue:
        self._check_live(handle)
        self.calls.append(("read_value", join_path(handle.path, name)))
        value = handle.key.find_value(name)
        if value is None:
            raise ReadError(f"No such value: {name}", key_path=handle.path, value_name=name)
        return value

    def release(self, handle: MemoryHandle) -> None:
        if handle.anchor:
            return
        if self._open.pop(handle.handle_id, None) is not None:
            self.calls.append(("release", handle.path))

    def name_of(self, handle: MemoryHandle) -> str:
        return handle.path

    # -- internals ---------------------------------------------------------------

    def _find_hive(self, name: str) -> MemoryKey | None:
        lowered = name.lower()
        for hive in self._hives:
            if hive.name.lower() == lowered:
                return hive
        return None

    def _descend(self, key: MemoryKey, path: str, segment: str) -> tuple[MemoryKey, str]:
        child = key.find_key(segment)
        child_path = join_path(path, segment)
        if child is None:
            raise OpenError(f"Key not found: {child_path}", key_path=child_path)
        if child.denied:
            raise PermissionDeniedError(f"Access denied: {child_path}", key_path=child_path)
        return child, join_path(path, child.name)

    def _issue(self, key: MemoryKey, path: str) -> MemoryHandle:
        handle = MemoryHandle(key=key, path=path, handle_id=next(self._ids))
        self._open[handle.handle_id] = handle
        self.opened_total += 1
        logger.debug(f"Opened {path} (handle {handle.handle_id})")
        return handle

    def _check_live(self, handle: MemoryHandle) -> None:
        if not handle.anchor and handle.handle_id not in self._open:
            raise OpenError(f"Handle already released: {handle.path}", key_path=handle.path)


def _coerce_value(payload: Any) -> RegistryValue:
    """Map plain Python payloads to registry values."""
    if isinstance(payload, RegistryValue):
        return payload
    if isinstance(payload, bool):
        return RegistryValue.from_int(int(payload))
    if isinstance(payload, int):
        kind = ValueKind.REG_DWORD if 0 <= payload <= 0xFFFFFFFF else ValueKind.REG_QWORD
        return RegistryValue.from_int(payload, kind)
    if isinstance(payload, str):
        return RegistryValue.from_string(payload)
    if isinstance(payload, (bytes, bytearray)):
        return RegistryValue.from_bytes(bytes(payload))
    if isinstance(payload, (list, tuple)):
        return RegistryValue.from_multi_string([str(item) for item in payload])
    raise TypeError(f"Unsupported value payload: {type(payload).__name__}")


def _populate(key: MemoryKey, layout: dict[str, Any]) -> None:
    key.denied = bool(layout.get("denied", False))
    for name, payload in (layout.get("values") or {}).items():
        key.set_value(name, _coerce_value(payload))
    for name, child_layout in (layout.get("keys") or {}).items():
        _populate(key.add_key(name), child_layout or {})


def _populate_from_record(key: MemoryKey, record: "KeyRecord") -> None:
    key.denied = record.access_denied
    for value in record.values:
        key.set_value(value.name, value.to_value())
    for child in record.keys:
        _populate_from_record(key.add_key(child.name), child)
