"""
regsnap Exception Hierarchy.

Defines all custom exceptions raised while resolving, walking and
reading a hierarchical registry store.
"""

from typing import Any


class RegSnapError(Exception):
    """
    Base exception for all regsnap errors.

    Anything that stops a snapshot derives from this, so the CLI can
    report it in one place. Structured context such as key paths lives
    in details.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a RegSnapError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class StoreError(RegSnapError):
    """
    Errors reported by the underlying registry store.

    Raised when:
    - A root anchor cannot be resolved
    - A key cannot be opened
    - A value cannot be read
    """

    def __init__(
        self,
        message: str,
        *,
        key_path: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a StoreError.

        Args:
            message: Human-readable error message
            key_path: Path of the key involved
            operation: Store operation being performed
            details: Optional structured data for debugging
        """
        details = details or {}
        if key_path is not None:
            details["key_path"] = key_path
        if operation:
            details["operation"] = operation

        super().__init__(message, details=details)
        self.key_path = key_path
        self.operation = operation


class InvalidRootError(StoreError):
    """Raised when the root anchor token of a path is not a known hive."""

    def __init__(self, message: str = "Invalid root anchor", *, token: str | None = None):
        details = {"token": token} if token is not None else None
        super().__init__(message, operation="resolve_anchor", details=details)
        self.token = token


class OpenError(StoreError):
    """Raised when a key cannot be opened for a reason other than permission."""

    def __init__(self, message: str = "Key could not be opened", *, key_path: str | None = None):
        super().__init__(message, key_path=key_path, operation="open")


class PermissionDeniedError(StoreError):
    """
    Raised when the store refuses access to a key.

    The importer recovers from this only when opening a child key; the
    child is then kept as an empty placeholder.
    """

    def __init__(self, message: str = "Access denied", *, key_path: str | None = None):
        super().__init__(message, key_path=key_path, operation="open")


class ReadError(StoreError):
    """Raised when a value's data or kind cannot be read."""

    def __init__(
        self,
        message: str = "Value could not be read",
        *,
        key_path: str | None = None,
        value_name: str | None = None,
    ):
        details = {"value_name": value_name} if value_name is not None else None
        super().__init__(message, key_path=key_path, operation="read_value", details=details)
        self.value_name = value_name


class ConfigurationError(RegSnapError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - Environment variables hold unsupported values
    - A requested store backend is unavailable on this platform
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            env_var: Environment variable name if applicable
            config_key: Configuration key if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.env_var = env_var
        self.config_key = config_key
