"""
regsnap Core Module.

Provides foundational value types and the exception hierarchy.
"""

__all__ = [
    "RegistryValue",
    "ValueKind",
    "ValueMode",
    # Exceptions
    "RegSnapError",
    "StoreError",
    "InvalidRootError",
    "OpenError",
    "PermissionDeniedError",
    "ReadError",
    "ConfigurationError",
]

from regsnap.core.exceptions import (
    ConfigurationError,
    InvalidRootError,
    OpenError,
    PermissionDeniedError,
    ReadError,
    RegSnapError,
    StoreError,
)
from regsnap.core.models import RegistryValue, ValueKind, ValueMode
