"""
Windows registry store backed by the standard winreg module.

Only usable on Windows; constructing it elsewhere raises ConfigurationError.
"""

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any

from regsnap.core.exceptions import (
    ConfigurationError,
    InvalidRootError,
    OpenError,
    PermissionDeniedError,
    ReadError,
)
from regsnap.core.models import RegistryValue, ValueKind
from regsnap.store.base import RegistryStore, join_path

logger = logging.getLogger(__name__)

# Canonical hive name -> winreg constant name
HIVE_CONSTANTS = {
    "HKEY_CLASSES_ROOT": "HKEY_CLASSES_ROOT",
    "HKEY_CURRENT_USER": "HKEY_CURRENT_USER",
    "HKEY_LOCAL_MACHINE": "HKEY_LOCAL_MACHINE",
    "HKEY_USERS": "HKEY_USERS",
    "HKEY_CURRENT_CONFIG": "HKEY_CURRENT_CONFIG",
    "HKEY_PERFORMANCE_DATA": "HKEY_PERFORMANCE_DATA",
}


@dataclass
class WinregHandle:
    """An open winreg key plus the path it was opened at."""

    hkey: Any
    path: str
    # Hive handles are owned by the store, release() leaves them alone
    predefined: bool = False
    closed: bool = field(default=False, compare=False)


class WinregStore(RegistryStore):
    """
    RegistryStore over the live Windows registry.

    Maps OS errors to the regsnap taxonomy:
    - PermissionError -> PermissionDeniedError
    - FileNotFoundError and other OSError on open -> OpenError
    - OSError on read -> ReadError

    Remote hives are connected once per hive and kept until close(), so
    use the store as a context manager when computer_name is set.
    """

    def __init__(self, computer_name: str | None = None):
        """
        Initialize the store.

        Args:
            computer_name: Remote machine to connect hives on, or None for local
        """
        try:
            self._winreg = importlib.import_module("winreg")
        except ImportError as e:
            raise ConfigurationError(
                "The winreg backend is only available on Windows",
                config_key="backend",
            ) from e
        self._computer_name = computer_name
        self._connections: dict[str, WinregHandle] = {}

    def resolve_anchor(self, token: str) -> WinregHandle:
        constant_name = HIVE_CONSTANTS.get(token.upper())
        if constant_name is None or not hasattr(self._winreg, constant_name):
            raise InvalidRootError(f"Unknown hive: {token}", token=token)

        hive = getattr(self._winreg, constant_name)
        if self._computer_name:
            return self._connect(constant_name, hive)
        return WinregHandle(hkey=hive, path=constant_name, predefined=True)

    def open(self, handle: WinregHandle, relative_path: str) -> WinregHandle:
        path = join_path(handle.path, relative_path)
        return WinregHandle(hkey=self._open_key(handle.hkey, relative_path, path), path=path)

    def open_child(self, handle: WinregHandle, name: str) -> WinregHandle:
        path = join_path(handle.path, name)
        return WinregHandle(hkey=self._open_key(handle.hkey, name, path), path=path)

    def list_child_names(self, handle: WinregHandle) -> list[str]:
        count = self._query_info(handle)[0]
        try:
            return [self._winreg.EnumKey(handle.hkey, index) for index in range(count)]
        except OSError as e:
            raise OpenError(f"Cannot enumerate keys of {handle.path}: {e}", key_path=handle.path) from e

    def list_value_names(self, handle: WinregHandle) -> list[str]:
        count = self._query_info(handle)[1]
        try:
            return [self._winreg.EnumValue(handle.hkey, index)[0] for index in range(count)]
        except OSError as e:
            raise OpenError(f"Cannot enumerate values of {handle.path}: {e}", key_path=handle.path) from e

    def read_value(self, handle: WinregHandle, name: str) -> RegistryValue:
        try:
            payload, type_code = self._winreg.QueryValueEx(handle.hkey, name)
        except OSError as e:
            raise ReadError(
                f"Cannot read {name!r} under {handle.path}: {e}",
                key_path=handle.path,
                value_name=name,
            ) from e
        return _to_registry_value(payload, type_code, handle.path, name)

    def release(self, handle: WinregHandle) -> None:
        if handle.predefined or handle.closed:
            return
        handle.closed = True
        self._winreg.CloseKey(handle.hkey)

    def name_of(self, handle: WinregHandle) -> str:
        return handle.path

    def close(self) -> None:
        """Close every remote hive connection opened by resolve_anchor()."""
        connections = list(self._connections.values())
        self._connections.clear()
        for connection in connections:
            logger.debug(f"Closing connection to {connection.path} on {self._computer_name}")
            self._winreg.CloseKey(connection.hkey)

    def _connect(self, constant_name: str, hive: Any) -> WinregHandle:
        connection = self._connections.get(constant_name)
        if connection is not None:
            return connection
        try:
            remote = self._winreg.ConnectRegistry(self._computer_name, hive)
        except OSError as e:
            raise OpenError(
                f"Cannot connect to {constant_name} on {self._computer_name}: {e}",
                key_path=constant_name,
            ) from e
        connection = WinregHandle(hkey=remote, path=constant_name, predefined=True)
        self._connections[constant_name] = connection
        return connection

    def _open_key(self, hkey: Any, sub_key: str, path: str) -> Any:
        try:
            return self._winreg.OpenKey(hkey, sub_key, 0, self._winreg.KEY_READ)
        except PermissionError as e:
            raise PermissionDeniedError(f"Access denied: {path}", key_path=path) from e
        except OSError as e:
            raise OpenError(f"Cannot open {path}: {e}", key_path=path) from e

    def _query_info(self, handle: WinregHandle) -> tuple[int, int, int]:
        try:
            return self._winreg.QueryInfoKey(handle.hkey)
        except OSError as e:
            raise OpenError(f"Cannot query {handle.path}: {e}", key_path=handle.path) from e


def _to_registry_value(payload: Any, type_code: int, path: str, name: str) -> RegistryValue:
    """Re-encode the Python object winreg returns into raw registry bytes."""
    try:
        kind = ValueKind(type_code)
    except ValueError:
        logger.debug(f"Keeping {name!r} under {path} as raw bytes (type {type_code})")
        raw = bytes(payload) if isinstance(payload, (bytes, bytearray)) else b""
        return RegistryValue.from_unknown(type_code, raw)

    # winreg hands back bytes for kinds it does not convert
    if isinstance(payload, (bytes, bytearray)):
        return RegistryValue.from_bytes(bytes(payload), kind)
    return RegistryValue.from_python(kind, payload)
