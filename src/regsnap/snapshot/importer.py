"""
Snapshot Importer - recursive registry walker.

Copies a live registry subtree into a KeyNode tree:
- Depth first, in the order the store enumerates keys and values
- Child keys that refuse access are kept as empty placeholders
- Any other store failure aborts the import
- Every handle opened is released on every exit path
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from regsnap.config import Settings, get_settings
from regsnap.core.exceptions import PermissionDeniedError
from regsnap.core.models import RegistryValue, ValueMode
from regsnap.snapshot.nodes import KeyNode, ValueEntry
from regsnap.snapshot.resolver import ResolvedRoot, prepare_anchor_chain, resolve_root
from regsnap.store.base import Handle, RegistryStore, join_path, scoped, split_path

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    """
    Counters for one completed import.

    key_count covers every key in the returned tree, placeholders and the
    keys pre-built above an anchor-mode target included.
    """

    root_path: str
    key_count: int = 0
    value_count: int = 0
    denied_paths: list[str] = field(default_factory=list)
    execution_time_ms: float = 0.0

    def to_summary(self) -> dict[str, object]:
        """Convert to a flat dict for display."""
        return {
            "root_path": self.root_path,
            "keys": self.key_count,
            "values": self.value_count,
            "denied": len(self.denied_paths),
            "duration_ms": round(self.execution_time_ms, 1),
        }


class SnapshotImporter:
    """
    Imports registry subtrees from a RegistryStore.

    Two entry points:
    - import_path(): full path string, hive resolved from its first segment
    - import_from_anchor(): hive handle already resolved by the caller
    """

    def __init__(
        self,
        store: RegistryStore,
        *,
        value_mode: ValueMode | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the importer.

        Args:
            store: Store to read from
            value_mode: Eager or lazy value reads; defaults to settings
            settings: Settings to use instead of the environment
        """
        self._store = store
        self._settings = settings or get_settings()
        self.value_mode = value_mode or self._settings.value_mode
        self.summary: ImportSummary | None = None

    def import_path(self, root_path: str) -> KeyNode:
        """
        Import everything under a full key path such as HKLM\\Software\\Vendor.

        Raises:
            InvalidRootError: If the hive is unknown
            OpenError: If the root key cannot be opened
            PermissionDeniedError: If the root key itself refuses access
            ReadError: If an eager value read fails
        """
        return self._run(root_path, lambda: resolve_root(self._store, root_path))

    def import_from_anchor(self, anchor: Handle, relative_path: str) -> KeyNode:
        """
        Import everything under relative_path below an open hive handle.

        The returned root is named after the hive and holds one key per
        path segment down to the imported key.
        """
        display = join_path(self._store.name_of(anchor), *split_path(relative_path))
        return self._run(
            display,
            lambda: prepare_anchor_chain(self._store, anchor, relative_path),
        )

    def _run(self, display_path: str, resolve: Callable[[], ResolvedRoot]) -> KeyNode:
        self.summary = None
        summary = ImportSummary(root_path=display_path)
        start = time.perf_counter()
        logger.debug(f"Importing {display_path} ({self.value_mode.value} values)")

        resolved = resolve()
        with scoped(self._store, resolved.handle) as handle:
            self._import_recursive(
                resolved.target,
                handle,
                resolved.anchor,
                resolved.relative_path,
                summary,
            )

        # The imported key plus any pre-built keys above it
        node = resolved.target
        while node is not None:
            summary.key_count += 1
            node = node.parent
        summary.execution_time_ms = (time.perf_counter() - start) * 1000
        self.summary = summary
        logger.info(
            f"Imported {display_path}: {summary.key_count} keys, "
            f"{summary.value_count} values, {len(summary.denied_paths)} denied"
        )
        return resolved.root

    def _import_recursive(
        self,
        node: KeyNode,
        handle: Handle,
        anchor: Handle,
        key_path: str,
        summary: ImportSummary,
    ) -> None:
        for name in self._store.list_child_names(handle):
            child = node.add_child(name)
            child_path = join_path(key_path, name)
            summary.key_count += 1
            try:
                opened = self._store.open_child(handle, name)
            except PermissionDeniedError:
                # Key exists but its contents are unknown
                child.access_denied = True
                summary.denied_paths.append(child.path)
                logger.warning(f"Access denied, keeping placeholder for {child.path}")
                continue

            with scoped(self._store, opened) as child_handle:
                self._import_recursive(child, child_handle, anchor, child_path, summary)

        for name in self._store.list_value_names(handle):
            node.add_value(self._make_entry(handle, anchor, key_path, name))
            summary.value_count += 1

    def _make_entry(self, handle: Handle, anchor: Handle, key_path: str, name: str) -> ValueEntry:
        if self.value_mode is ValueMode.EAGER:
            return ValueEntry(name, self._store.read_value(handle, name))

        store = self._store

        def load() -> RegistryValue:
            with scoped(store, store.open(anchor, key_path)) as reopened:
                return store.read_value(reopened, name)

        return ValueEntry(name, loader=load)


def snapshot(
    root_path: str,
    store: RegistryStore | None = None,
    *,
    value_mode: ValueMode | None = None,
) -> KeyNode:
    """Import root_path from store, or from the live Windows registry if none is given."""
    if store is None:
        from regsnap.store.winreg_store import WinregStore

        store = WinregStore()
    return SnapshotImporter(store, value_mode=value_mode).import_path(root_path)
