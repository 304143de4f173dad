"""
regsnap Snapshot Module.

Provides the snapshot tree model, root resolution, the recursive
importer and JSON export.
"""

__all__ = [
    "KeyNode",
    "ValueEntry",
    "SnapshotImporter",
    "ImportSummary",
    "snapshot",
    "split_root_path",
    "KeyRecord",
    "ValueRecord",
    "to_record",
    "dump_json",
    "load_record",
]

from regsnap.snapshot.export import KeyRecord, ValueRecord, dump_json, load_record, to_record
from regsnap.snapshot.importer import ImportSummary, SnapshotImporter, snapshot
from regsnap.snapshot.nodes import KeyNode, ValueEntry
from regsnap.snapshot.resolver import split_root_path
