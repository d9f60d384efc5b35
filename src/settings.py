"""Runtime settings for nas-automount."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from constants import (
    CREDENTIALS_DIR,
    PRIVILEGED_GROUP,
    PRIVILEGED_USER,
    SYSTEMD_UNIT_DIR,
)


def _get_log_path() -> Path:
    """Get the log file path using XDG Base Directory spec."""
    xdg_state = os.environ.get("XDG_STATE_HOME", str(Path.home() / ".local" / "state"))
    return Path(xdg_state) / "nas-automount" / "nas-automount.log"


@dataclass(frozen=True)
class Settings:
    """Filesystem locations and ownership used by both workflows."""

    unit_dir: Path = SYSTEMD_UNIT_DIR
    credentials_dir: Path = CREDENTIALS_DIR
    owner: str = PRIVILEGED_USER
    group: str = PRIVILEGED_GROUP
    log_path: Path = field(default_factory=_get_log_path)

    @property
    def ownership(self) -> str:
        """owner:group string as accepted by chown."""
        return f"{self.owner}:{self.group}"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings, honouring NAS_AUTOMOUNT_* directory overrides."""
        return cls(
            unit_dir=Path(os.environ.get("NAS_AUTOMOUNT_UNIT_DIR", str(SYSTEMD_UNIT_DIR))),
            credentials_dir=Path(
                os.environ.get("NAS_AUTOMOUNT_CREDENTIALS_DIR", str(CREDENTIALS_DIR))
            ),
        )
