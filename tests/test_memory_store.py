"""Tests for the in-memory registry store."""

import pytest

from regsnap.core.exceptions import (
    InvalidRootError,
    OpenError,
    PermissionDeniedError,
    ReadError,
)
from regsnap.core.models import RegistryValue, ValueKind
from regsnap.snapshot.export import KeyRecord, ValueRecord
from regsnap.store.base import scoped
from regsnap.store.memory import MemoryKey, MemoryStore


class TestMemoryKey:
    def test_set_value_replaces_case_insensitively(self) -> None:
        key = MemoryKey("k")
        key.set_value("Name", RegistryValue.from_int(1))
        key.set_value("NAME", RegistryValue.from_int(2))
        assert len(key.values) == 1
        assert key.find_value("name").decode() == 2

    def test_case_only_duplicate_keys_allowed(self) -> None:
        key = MemoryKey("k")
        key.add_key("Software")
        key.add_key("software")
        assert [child.name for child in key.keys] == ["Software", "software"]


class TestFromDict:
    """Tests for MemoryStore.from_dict payload coercion."""

    def test_payload_kinds(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        with scoped(store, store.open(anchor, "Software\\Vendor")) as vendor:
            assert store.read_value(vendor, "Version").kind is ValueKind.REG_SZ
            assert store.read_value(vendor, "InstallCount").kind is ValueKind.REG_DWORD
            assert store.read_value(vendor, "Blob").kind is ValueKind.REG_BINARY
        with scoped(store, store.open(anchor, "Software\\Vendor\\Paths")) as paths:
            assert store.read_value(paths, "Search").decode() == ["C:\\bin", "C:\\tools"]

    def test_unsupported_payload(self) -> None:
        with pytest.raises(TypeError):
            MemoryStore.from_dict({"HKEY_USERS": {"values": {"x": 1.5}}})


class TestMemoryStore:
    """Tests for the RegistryStore operations."""

    def test_unknown_hive(self, store: MemoryStore) -> None:
        with pytest.raises(InvalidRootError):
            store.resolve_anchor("HKEY_CLASSES_ROOT")

    def test_open_case_insensitive(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("hkey_local_machine")
        handle = store.open(anchor, "SOFTWARE/vendor")
        assert store.name_of(handle) == "HKEY_LOCAL_MACHINE\\Software\\Vendor"
        store.release(handle)

    def test_enumeration_order(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        with scoped(store, store.open(anchor, "Software\\Vendor")) as vendor:
            assert store.list_child_names(vendor) == ["Plugins", "Locked", "Paths"]
            assert store.list_value_names(vendor) == ["Version", "InstallCount", "Blob"]

    def test_open_child_denied(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        with scoped(store, store.open(anchor, "Software\\Vendor")) as vendor:
            with pytest.raises(PermissionDeniedError) as exc_info:
                store.open_child(vendor, "Locked")
        assert exc_info.value.key_path == "HKEY_LOCAL_MACHINE\\Software\\Vendor\\Locked"
        assert store.open_handle_count == 0

    def test_open_through_denied_key(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        with pytest.raises(PermissionDeniedError):
            store.open(anchor, "Software\\Vendor\\Locked")

    def test_open_child_missing(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        with pytest.raises(OpenError):
            store.open_child(anchor, "Nope")

    def test_read_missing_value(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        with pytest.raises(ReadError) as exc_info:
            store.read_value(anchor, "Nope")
        assert exc_info.value.value_name == "Nope"

    def test_release_is_idempotent(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        handle = store.open(anchor, "Software")
        assert store.open_handle_count == 1

        store.release(handle)
        store.release(handle)
        store.release(anchor)
        assert store.open_handle_count == 0
        assert store.calls.count(("release", "HKEY_LOCAL_MACHINE\\Software")) == 1

    def test_released_handle_is_unusable(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        handle = store.open(anchor, "Software")
        store.release(handle)
        with pytest.raises(OpenError):
            store.list_child_names(handle)

    def test_scoped_releases_on_error(self, store: MemoryStore) -> None:
        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        with pytest.raises(RuntimeError):
            with scoped(store, store.open(anchor, "Software")):
                raise RuntimeError("boom")
        assert store.open_handle_count == 0


class TestFromRecord:
    """Tests for replaying snapshot records."""

    def test_path_named_record(self) -> None:
        """A record named after a full path is placed below intermediate keys."""
        record = KeyRecord(
            name="HKEY_LOCAL_MACHINE\\Software\\Vendor",
            values=[ValueRecord(name="Version", kind=ValueKind.REG_SZ, data=RegistryValue.from_string("2").data.hex())],
            keys=[KeyRecord(name="Locked", access_denied=True)],
        )
        store = MemoryStore.from_record(record)

        anchor = store.resolve_anchor("HKEY_LOCAL_MACHINE")
        with scoped(store, store.open(anchor, "Software\\Vendor")) as vendor:
            assert store.read_value(vendor, "version").decode() == "2"
            with pytest.raises(PermissionDeniedError):
                store.open_child(vendor, "Locked")

    def test_empty_name(self) -> None:
        with pytest.raises(InvalidRootError):
            MemoryStore.from_record(KeyRecord(name=""))
