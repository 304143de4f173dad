"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest

from regsnap.config import Settings, get_settings
from regsnap.core.models import RegistryValue, ValueKind
from regsnap.store.memory import MemoryStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from REGSNAP_* variables and the cached settings."""
    for name in list(os.environ):
        if name.startswith("REGSNAP_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def eager_settings() -> Settings:
    return Settings()


@pytest.fixture
def registry_data() -> dict[str, Any]:
    """A small HKLM tree with a denied key and mixed value kinds."""
    return {
        "HKEY_LOCAL_MACHINE": {
            "keys": {
                "Software": {
                    "values": {"": "default"},
                    "keys": {
                        "Vendor": {
                            "values": {
                                "Version": "1.2",
                                "InstallCount": 3,
                                "Blob": b"\x00\x01\x02",
                            },
                            "keys": {
                                "Plugins": {
                                    "keys": {
                                        "Alpha": {"values": {"Enabled": 1}},
                                        "Beta": {},
                                    },
                                },
                                "Locked": {
                                    "denied": True,
                                    "values": {"Secret": "hidden"},
                                },
                                "Paths": {
                                    "values": {
                                        "Search": ["C:\\bin", "C:\\tools"],
                                        "Size": RegistryValue.from_int(2**40, ValueKind.REG_QWORD),
                                    },
                                },
                            },
                        },
                        "Other": {},
                    },
                },
            },
        },
        "HKEY_CURRENT_USER": {
            "keys": {"Environment": {"values": {"TEMP": "C:\\Temp"}}},
        },
    }


@pytest.fixture
def store(registry_data: dict[str, Any]) -> MemoryStore:
    """Provide a MemoryStore built from registry_data."""
    return MemoryStore.from_dict(registry_data)
