"""
Base store interface for hierarchical registries.

All store backends must inherit from RegistryStore and implement the
enumeration, open, release and read operations the importer relies on.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from regsnap.core.models import RegistryValue

# Opaque, backend-specific key handle.
Handle = Any

KEY_SEPARATOR = "\\"


def join_path(*parts: str) -> str:
    """Join key path segments with the registry separator, skipping empties."""
    return KEY_SEPARATOR.join(part for part in parts if part)


def split_path(path: str) -> list[str]:
    """Split a key path on either separator, dropping empty segments."""
    return [segment for segment in path.replace("/", KEY_SEPARATOR).split(KEY_SEPARATOR) if segment]


class RegistryStore(ABC):
    """
    Abstract hierarchical key/value store.

    Handles returned by open() and open_child() are scoped resources:
    each must be passed to release() exactly once. Handles returned by
    resolve_anchor() are owned by the store: they need no release and stay
    valid until close().
    """

    @abstractmethod
    def resolve_anchor(self, token: str) -> Handle:
        """
        Return the handle of a top-level hive.

        Raises:
            InvalidRootError: If the store has no such hive
        """

    @abstractmethod
    def open(self, handle: Handle, relative_path: str) -> Handle:
        """
        Open a key below handle by its relative path.

        Raises:
            OpenError: If the path does not exist or cannot be opened
            PermissionDeniedError: If access to a key on the path is refused
        """

    @abstractmethod
    def open_child(self, handle: Handle, name: str) -> Handle:
        """
        Open a direct child key.

        Raises:
            PermissionDeniedError: If access to the child is refused
            OpenError: For any other failure
        """

    @abstractmethod
    def list_child_names(self, handle: Handle) -> list[str]:
        """Return child key names in store order."""

    @abstractmethod
    def list_value_names(self, handle: Handle) -> list[str]:
        """Return value names in store order."""

    @abstractmethod
    def read_value(self, handle: Handle, name: str) -> RegistryValue:
        """
        Read one value under handle.

        Raises:
            ReadError: If the value cannot be read
        """

    @abstractmethod
    def release(self, handle: Handle) -> None:
        """Release an opened handle. Releasing twice is a no-op."""

    @abstractmethod
    def name_of(self, handle: Handle) -> str:
        """Return the display name of a handle (e.g. HKEY_LOCAL_MACHINE)."""

    def close(self) -> None:
        """Release resources the store holds itself, such as remote connections."""

    def __enter__(self) -> "RegistryStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@contextmanager
def scoped(store: RegistryStore, handle: Handle) -> Iterator[Handle]:
    """Yield handle and release it on every exit path."""
    try:
        yield handle
    finally:
        store.release(handle)
