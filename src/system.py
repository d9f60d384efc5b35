"""Read-only system queries used to decide which steps a workflow needs.

Nothing here mutates state, so these queries run in dry-run mode too. A
probe built for a dry run also starts no processes.
"""

from __future__ import annotations

import grp
import logging
import os
import pwd
import subprocess
from dataclasses import dataclass
from pathlib import Path

from constants import SYSTEMD_UNIT_DIR
from execution import Runner
from unit_names import unescape_path

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalUser:
    name: str
    uid: int
    gid: int


@dataclass(frozen=True)
class FileMetadata:
    """Ownership and permission bits of an existing file."""

    owner: str
    group: str
    mode: str  # octal permission digits, e.g. "600"


class SystemProbe:
    """Queries privilege, users, mount state, unit state and file metadata.

    Args:
        runner: Callable compatible with subprocess.run for systemctl queries
        unit_dir: Directory whose *.wants/ links record enabled units
        use_systemctl: Ask systemctl about unit state. When False (dry runs)
            unit state is read from the filesystem and no process is started.
    """

    def __init__(
        self,
        runner: Runner | None = None,
        unit_dir: Path = SYSTEMD_UNIT_DIR,
        use_systemctl: bool = True,
    ):
        self._runner = runner or subprocess.run
        self._unit_dir = unit_dir
        self._use_systemctl = use_systemctl

    def is_root(self) -> bool:
        return os.geteuid() == 0

    def lookup_user(self, name: str) -> LocalUser | None:
        """Look up a local user's UID and primary GID, or None if absent."""
        try:
            entry = pwd.getpwnam(name)
        except KeyError:
            return None
        return LocalUser(name=name, uid=entry.pw_uid, gid=entry.pw_gid)

    def is_mountpoint(self, path: str) -> bool:
        return os.path.ismount(path)

    def _systemctl_quiet(self, verb: str, unit: str) -> bool:
        try:
            result = self._runner(
                ["systemctl", verb, "--quiet", unit],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            log.warning("systemctl %s %s could not run: %s", verb, unit, e)
            return False
        return result.returncode == 0

    def unit_is_active(self, unit: str) -> bool:
        """Whether a .mount or .automount unit is active.

        Without systemctl, an active unit is recognised by the (autofs) mount
        it keeps on its Where= path.
        """
        if self._use_systemctl:
            return self._systemctl_quiet("is-active", unit)
        base = unit.rpartition(".")[0]
        return self.is_mountpoint(unescape_path(base))

    def unit_is_enabled(self, unit: str) -> bool:
        """Whether unit is enabled, i.e. linked from some target's .wants/ directory."""
        if self._use_systemctl:
            return self._systemctl_quiet("is-enabled", unit)
        if not self._unit_dir.is_dir():
            return False
        return any((wants / unit).is_symlink() for wants in self._unit_dir.glob("*.wants"))

    def file_metadata(self, path: Path) -> FileMetadata:
        """Owner, group and permission digits of path.

        Unknown UIDs/GIDs are reported numerically.
        """
        st = path.stat()
        try:
            owner = pwd.getpwuid(st.st_uid).pw_name
        except KeyError:
            owner = str(st.st_uid)
        try:
            group = grp.getgrgid(st.st_gid).gr_name
        except KeyError:
            group = str(st.st_gid)
        return FileMetadata(owner=owner, group=group, mode=f"{st.st_mode & 0o777:o}")
