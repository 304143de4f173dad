"""
regsnap Store Module.

Provides the registry store interface and its backends.
"""

__all__ = [
    "Handle",
    "RegistryStore",
    "scoped",
    "MemoryKey",
    "MemoryStore",
    "WinregStore",
]

from regsnap.store.base import Handle, RegistryStore, scoped
from regsnap.store.memory import MemoryKey, MemoryStore
from regsnap.store.winreg_store import WinregStore
