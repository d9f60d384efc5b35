"""Systemd path escaping for unit file names.

Mirrors `systemd-escape --path` so that a mountpoint such as
'/mnt/my-share' maps to the unit base name 'mnt-my\\x2dshare'.
"""

from __future__ import annotations

import os
import string
from dataclasses import dataclass
from pathlib import Path

# Bytes that pass through unescaped; everything else becomes \xNN
_UNIT_NAME_SAFE = frozenset((string.ascii_letters + string.digits + ":_.").encode())


@dataclass(frozen=True)
class UnitNamePair:
    """Escaped base name plus the absolute paths of both unit files."""

    base_name: str
    mount_path: Path
    automount_path: Path

    @property
    def mount_unit(self) -> str:
        return f"{self.base_name}.mount"

    @property
    def automount_unit(self) -> str:
        return f"{self.base_name}.automount"


def normalize_path(path: str) -> str:
    """Simplify an absolute path the way systemd does before escaping.

    Duplicate slashes and '.' components are dropped, as is any trailing slash.

    Raises:
        ValueError: If the path is relative or contains '..'
    """
    if not path.startswith("/"):
        raise ValueError(f"Path must be absolute: {path!r}")

    parts = [p for p in path.split("/") if p and p != "."]
    if ".." in parts:
        raise ValueError(f"Path must not contain '..': {path!r}")
    return "/" + "/".join(parts)


def escape_path(path: str) -> str:
    """Escape an absolute path into a single unit name component.

    Args:
        path: Absolute filesystem path (e.g., '/mnt/media')

    Returns:
        The escaped base name (e.g., 'mnt-media'); '/' escapes to '-'. Bytes
        are escaped as they are on disk, so names that are not valid UTF-8
        (surrogate-escaped by os.fsdecode) escape like systemd-escape does.
    """
    normalized = normalize_path(path)
    if normalized == "/":
        return "-"

    out = []
    for i, byte in enumerate(os.fsencode(normalized[1:])):
        if byte == ord("/"):
            out.append("-")
        elif byte in _UNIT_NAME_SAFE and not (i == 0 and byte == ord(".")):
            out.append(chr(byte))
        else:
            out.append(f"\\x{byte:02x}")
    return "".join(out)


def unescape_path(name: str) -> str:
    """Reverse escape_path(), returning the original absolute path.

    Raises:
        ValueError: If the name contains a malformed \\x escape
    """
    if name == "-":
        return "/"

    raw = bytearray()
    i = 0
    while i < len(name):
        ch = name[i]
        if ch == "-":
            raw.append(ord("/"))
            i += 1
        elif ch == "\\":
            if name[i + 1 : i + 2] != "x" or len(name) < i + 4:
                raise ValueError(f"Malformed escape in unit name: {name!r}")
            try:
                raw.append(int(name[i + 2 : i + 4], 16))
            except ValueError:
                raise ValueError(f"Malformed escape in unit name: {name!r}")
            i += 4
        else:
            raw.extend(os.fsencode(ch))
            i += 1
    return "/" + os.fsdecode(bytes(raw))


def derive_unit_names(mountpoint: str, unit_dir: Path) -> UnitNamePair:
    """Derive the .mount/.automount pair for a mountpoint.

    Args:
        mountpoint: Absolute local mountpoint
        unit_dir: Directory holding systemd unit files

    Returns:
        UnitNamePair whose paths live directly under unit_dir
    """
    base = escape_path(mountpoint)
    return UnitNamePair(
        base_name=base,
        mount_path=unit_dir / f"{base}.mount",
        automount_path=unit_dir / f"{base}.automount",
    )
