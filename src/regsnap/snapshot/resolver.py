"""
Root resolution for snapshot imports.

Turns either a full path string (HKLM\\Software\\Vendor) or an already
resolved hive handle plus a relative path into an open store handle and
the KeyNode the walker should populate.
"""

import logging
from dataclasses import dataclass

from regsnap.core.exceptions import InvalidRootError
from regsnap.snapshot.nodes import KeyNode
from regsnap.store.base import KEY_SEPARATOR, Handle, RegistryStore, split_path

logger = logging.getLogger(__name__)

# Canonical hive name -> accepted short aliases
HIVES: dict[str, tuple[str, ...]] = {
    "HKEY_CLASSES_ROOT": ("HKCR",),
    "HKEY_CURRENT_USER": ("HKCU",),
    "HKEY_LOCAL_MACHINE": ("HKLM",),
    "HKEY_USERS": ("HKU",),
    "HKEY_CURRENT_CONFIG": ("HKCC",),
    "HKEY_PERFORMANCE_DATA": (),
}

_ALIASES: dict[str, str] = {
    alias: canonical
    for canonical, aliases in HIVES.items()
    for alias in (canonical, *aliases)
}


@dataclass
class ResolvedRoot:
    """Result of root resolution."""

    root: KeyNode
    target: KeyNode
    handle: Handle
    anchor: Handle
    relative_path: str


def canonical_hive(token: str) -> str:
    """
    Map a hive name or alias to its canonical long name.

    Raises:
        InvalidRootError: If the token names no known hive
    """
    canonical = _ALIASES.get(token.strip().upper())
    if canonical is None:
        raise InvalidRootError(f"Unknown registry root: {token!r}", token=token)
    return canonical


def split_root_path(root_path: str) -> tuple[str, str]:
    """
    Split a full key path into (canonical hive, relative path).

    Forward slashes are accepted as separators; the relative path is
    returned with backslashes and without empty segments.

    Raises:
        InvalidRootError: If the path is empty or its first segment is not a hive
    """
    segments = split_path(root_path)
    if not segments:
        raise InvalidRootError("Empty registry root path", token=root_path)
    return canonical_hive(segments[0]), KEY_SEPARATOR.join(segments[1:])


def resolve_root(store: RegistryStore, root_path: str) -> ResolvedRoot:
    """
    Resolve a full path string and open its key.

    The single root KeyNode is named after the path as given. The caller
    owns the returned handle and must release it.
    """
    hive, relative_path = split_root_path(root_path)
    anchor = store.resolve_anchor(hive)
    handle = store.open(anchor, relative_path)
    root = KeyNode(root_path.rstrip("\\/"))
    logger.debug(f"Resolved {root_path!r} to {hive} + {relative_path!r}")
    return ResolvedRoot(
        root=root,
        target=root,
        handle=handle,
        anchor=anchor,
        relative_path=relative_path,
    )


def prepare_anchor_chain(store: RegistryStore, anchor: Handle, relative_path: str) -> ResolvedRoot:
    """
    Open relative_path below an already resolved anchor.

    The root KeyNode takes the anchor's name and one empty KeyNode is
    created per path segment, so the target is the deepest of them. The
    caller owns the returned handle and must release it.
    """
    segments = split_path(relative_path)
    normalized_path = KEY_SEPARATOR.join(segments)

    root = KeyNode(store.name_of(anchor))
    target = root
    for segment in segments:
        target = target.add_child(segment)

    handle = store.open(anchor, normalized_path)
    return ResolvedRoot(
        root=root,
        target=target,
        handle=handle,
        anchor=anchor,
        relative_path=normalized_path,
    )
