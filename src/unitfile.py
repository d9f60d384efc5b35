"""Structured systemd unit model and the .mount/.automount builders."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from constants import CIFS_FIXED_FLAGS, INSTALL_TARGET

if TYPE_CHECKING:
    from request import MountRequest
    from resolver import ResolvedHost


@dataclass
class UnitSection:
    """One [Section] of a unit file.

    Entries are (key, value) pairs; a key of None marks a comment line.
    """

    name: str
    entries: list[tuple[str | None, str]] = field(default_factory=list)

    def set(self, key: str, value: str) -> UnitSection:
        self.entries.append((key, value))
        return self

    def comment(self, text: str) -> UnitSection:
        self.entries.append((None, text))
        return self


@dataclass
class UnitFile:
    """Ordered sections rendered into systemd's INI-like syntax."""

    sections: list[UnitSection] = field(default_factory=list)

    def section(self, name: str) -> UnitSection:
        """Return the named section, appending it if missing."""
        for s in self.sections:
            if s.name == name:
                return s
        s = UnitSection(name)
        self.sections.append(s)
        return s

    def render(self) -> str:
        blocks = []
        for s in self.sections:
            lines = [f"[{s.name}]"]
            for key, value in s.entries:
                lines.append(f"# {value}" if key is None else f"{key}={value}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks) + "\n"


def cifs_options(cred_path: Path, uid: int, gid: int, smb_version: str) -> str:
    """Assemble the Options= string in its fixed order."""
    options = [
        f"credentials={cred_path}",
        f"uid={uid}",
        f"gid={gid}",
        "iocharset=utf8",
        f"vers={smb_version}",
        *CIFS_FIXED_FLAGS,
    ]
    return ",".join(options)


def mount_unit(
    request: "MountRequest", resolved: "ResolvedHost", cred_path: Path, uid: int, gid: int
) -> UnitFile:
    unit = UnitFile()
    unit.section("Unit").set("Description", f"Mount NAS Share {request.mountpoint}").comment(
        "Automatically manages network dependencies via Type=cifs and _netdev option"
    )

    mount = unit.section("Mount")
    mount.set("What", f"//{resolved.address}{request.share}")
    mount.set("Where", request.mountpoint)
    mount.set("Type", "cifs")
    mount.set("Options", cifs_options(cred_path, uid, gid, request.smb_version))
    mount.comment(resolved.comment)

    unit.section("Install").set("WantedBy", INSTALL_TARGET)
    return unit


def automount_unit(request: "MountRequest") -> UnitFile:
    unit = UnitFile()
    unit.section("Unit").set("Description", f"Automount NAS Share {request.mountpoint}").comment(
        "Dependencies handled by the corresponding .mount unit"
    )

    automount = unit.section("Automount")
    automount.set("Where", request.mountpoint)
    # 0 = never expire the mount once triggered
    automount.set("TimeoutIdleSec", "0")

    unit.section("Install").set("WantedBy", INSTALL_TARGET)
    return unit


def build_mount_unit(
    request: "MountRequest", resolved: "ResolvedHost", cred_path: Path, uid: int, gid: int
) -> str:
    """Render the .mount unit body.

    Args:
        request: Mount request (share, mountpoint, SMB version)
        resolved: Server address and its provenance comment
        cred_path: Credentials file referenced by credentials=
        uid: Local owner UID for files on the share
        gid: Local owner GID for files on the share
    """
    return mount_unit(request, resolved, cred_path, uid, gid).render()


def build_automount_unit(request: "MountRequest") -> str:
    """Render the .automount unit body."""
    return automount_unit(request).render()
