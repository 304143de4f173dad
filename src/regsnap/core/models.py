"""
Core data models for regsnap.

Registry values are modelled as a closed set of kinds paired with their
raw payload, so consumers can match exhaustively on the kind.
"""

import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any

STRING_ENCODING = "utf-16-le"


class ValueKind(Enum):
    """Registry value types, numbered as the Windows registry numbers them."""

    REG_NONE = 0
    REG_SZ = 1
    REG_EXPAND_SZ = 2
    REG_BINARY = 3
    REG_DWORD = 4
    REG_DWORD_BIG_ENDIAN = 5
    REG_LINK = 6
    REG_MULTI_SZ = 7
    REG_RESOURCE_LIST = 8
    REG_FULL_RESOURCE_DESCRIPTOR = 9
    REG_RESOURCE_REQUIREMENTS_LIST = 10
    REG_QWORD = 11
    # Any type code outside the set above; the code is kept on the value
    REG_UNKNOWN = -1

    @classmethod
    def parse(cls, text: str) -> "ValueKind":
        """Look up a kind by name, with or without the REG_ prefix."""
        key = text.strip().upper()
        if not key.startswith("REG_"):
            key = f"REG_{key}"
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown value kind: {text}") from None

    @property
    def is_string(self) -> bool:
        return self in (ValueKind.REG_SZ, ValueKind.REG_EXPAND_SZ, ValueKind.REG_LINK)

    @property
    def is_integer(self) -> bool:
        return self in (ValueKind.REG_DWORD, ValueKind.REG_DWORD_BIG_ENDIAN, ValueKind.REG_QWORD)


class ValueMode(Enum):
    """When value payloads are read from the store."""

    EAGER = "eager"
    LAZY = "lazy"


@dataclass(frozen=True)
class RegistryValue:
    """
    Immutable raw registry value: its kind and undecoded bytes.

    REG_UNKNOWN values also carry the numeric type code the store reported.
    """

    kind: ValueKind
    data: bytes = b""
    type_code: int | None = None

    @property
    def code(self) -> int:
        """Numeric registry type of this value."""
        if self.type_code is not None:
            return self.type_code
        return self.kind.value

    def decode(self) -> Any:
        """
        Return the payload as a Python object.

        String kinds become str, integer kinds int, REG_MULTI_SZ a list
        of str. Every other kind is returned as raw bytes.
        """
        match self.kind:
            case ValueKind.REG_SZ | ValueKind.REG_EXPAND_SZ | ValueKind.REG_LINK:
                return _decode_string(self.data)
            case ValueKind.REG_MULTI_SZ:
                text = self.data.decode(STRING_ENCODING, errors="replace")
                return [item for item in text.split("\x00") if item]
            case ValueKind.REG_DWORD:
                return struct.unpack("<I", self.data[:4].ljust(4, b"\x00"))[0]
            case ValueKind.REG_DWORD_BIG_ENDIAN:
                return struct.unpack(">I", self.data[:4].rjust(4, b"\x00"))[0]
            case ValueKind.REG_QWORD:
                return struct.unpack("<Q", self.data[:8].ljust(8, b"\x00"))[0]
            case _:
                return self.data

    @staticmethod
    def from_string(text: str, kind: ValueKind = ValueKind.REG_SZ) -> "RegistryValue":
        """Encode a string value, NUL terminated."""
        return RegistryValue(kind, (text + "\x00").encode(STRING_ENCODING))

    @staticmethod
    def from_multi_string(items: list[str]) -> "RegistryValue":
        """Encode a REG_MULTI_SZ value (double NUL terminated)."""
        text = "".join(f"{item}\x00" for item in items) + "\x00"
        return RegistryValue(ValueKind.REG_MULTI_SZ, text.encode(STRING_ENCODING))

    @staticmethod
    def from_int(number: int, kind: ValueKind = ValueKind.REG_DWORD) -> "RegistryValue":
        """Encode an integer value for one of the integer kinds."""
        match kind:
            case ValueKind.REG_DWORD:
                return RegistryValue(kind, struct.pack("<I", number))
            case ValueKind.REG_DWORD_BIG_ENDIAN:
                return RegistryValue(kind, struct.pack(">I", number))
            case ValueKind.REG_QWORD:
                return RegistryValue(kind, struct.pack("<Q", number))
            case _:
                raise ValueError(f"{kind.name} is not an integer kind")

    @staticmethod
    def from_bytes(data: bytes, kind: ValueKind = ValueKind.REG_BINARY) -> "RegistryValue":
        return RegistryValue(kind, bytes(data))

    @staticmethod
    def from_unknown(type_code: int, data: bytes = b"") -> "RegistryValue":
        """Keep a value of an unrecognized type as raw bytes."""
        return RegistryValue(ValueKind.REG_UNKNOWN, bytes(data), type_code)

    @staticmethod
    def from_python(kind: ValueKind, payload: Any) -> "RegistryValue":
        """Encode a decoded payload (as returned by decode()) back into raw form."""
        if payload is None:
            return RegistryValue(kind)
        if kind.is_string:
            return RegistryValue.from_string(str(payload), kind)
        if kind.is_integer:
            return RegistryValue.from_int(int(payload), kind)
        if kind == ValueKind.REG_MULTI_SZ:
            return RegistryValue.from_multi_string([str(item) for item in payload])
        return RegistryValue.from_bytes(payload, kind)


def _decode_string(data: bytes) -> str:
    """Decode a UTF-16-LE registry string, dropping trailing NULs."""
    if len(data) % 2:
        data = data[:-1]
    return data.decode(STRING_ENCODING, errors="replace").rstrip("\x00")
