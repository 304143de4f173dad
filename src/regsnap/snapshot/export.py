"""
Snapshot export - JSON documents for KeyNode trees.

Records keep keys and values in store order so that two imports of an
unchanged registry produce equal documents.
"""

import json
from pathlib import Path

from pydantic import BaseModel, Field

from regsnap.core.models import RegistryValue, ValueKind
from regsnap.snapshot.nodes import KeyNode, ValueEntry


class ValueRecord(BaseModel):
    """A single value: stored name, kind and hex-encoded raw data."""

    name: str
    kind: ValueKind
    data: str = Field(default="", description="Raw value bytes, hex encoded")
    type_code: int | None = Field(default=None, description="Type code of a REG_UNKNOWN value")

    @classmethod
    def from_entry(cls, entry: ValueEntry) -> "ValueRecord":
        value = entry.resolve()
        return cls(
            name=entry.name,
            kind=value.kind,
            data=value.data.hex(),
            type_code=value.type_code,
        )

    def to_value(self) -> RegistryValue:
        return RegistryValue(self.kind, bytes.fromhex(self.data), self.type_code)


class KeyRecord(BaseModel):
    """A key with its values and child keys."""

    name: str
    access_denied: bool = False
    values: list[ValueRecord] = Field(default_factory=list)
    keys: list["KeyRecord"] = Field(default_factory=list)

    def count_keys(self) -> int:
        """Count this key and all descendants."""
        return 1 + sum(child.count_keys() for child in self.keys)


def to_record(node: KeyNode) -> KeyRecord:
    """Convert a KeyNode subtree into a KeyRecord. Lazy values are resolved."""
    return KeyRecord(
        name=node.name,
        access_denied=node.access_denied,
        values=[ValueRecord.from_entry(entry) for entry in node.iter_values()],
        keys=[to_record(child) for child in node.iter_children()],
    )


def dump_json(node: KeyNode, path: Path) -> Path:
    """Write a snapshot to path as indented JSON and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        to_record(node).model_dump_json(indent=2, exclude_none=True),
        encoding="utf-8",
    )
    return path


def load_record(path: Path) -> KeyRecord:
    """
    Read a snapshot document written by dump_json().

    Raises:
        ValueError: If the file is not a valid snapshot document
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    return KeyRecord.model_validate(data)
