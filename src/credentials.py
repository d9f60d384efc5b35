"""Credentials file consumed by the CIFS mount through credentials=<path>."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from commandoutput import print_info, print_warning
from constants import CREDENTIALS_MODE
from execution import ExecutionEngine
from settings import Settings
from system import SystemProbe
from workflow import Step, run_steps

log = logging.getLogger(__name__)


def credentials_path(credentials_dir: Path, user: str, host: str) -> Path:
    """Path of the credentials file for user@host (host as given, not resolved)."""
    return credentials_dir / f"credentials.{user}@{host}"


def render_credentials(user: str, password: str) -> str:
    return f"username={user}\npassword={password}\n"


@dataclass
class CredentialRecord:
    """A credentials file and what ensure() did with it."""

    path: Path
    owner: str
    group: str
    mode: str = CREDENTIALS_MODE
    created: bool = False
    warnings: list[str] = field(default_factory=list)


class CredentialStore:
    """Creates credentials files once and never overwrites them."""

    def __init__(self, engine: ExecutionEngine, probe: SystemProbe, settings: Settings):
        self._engine = engine
        self._probe = probe
        self._settings = settings

    def ensure(self, user: str, host: str, password: str) -> CredentialRecord:
        """Create the credentials file for user@host if absent, else verify it.

        An existing file is left untouched; wrong ownership or mode only
        produces a warning.

        Raises:
            FatalCommandError: If writing the file or setting its permissions fails
        """
        path = credentials_path(self._settings.credentials_dir, user, host)
        record = CredentialRecord(
            path=path, owner=self._settings.owner, group=self._settings.group
        )

        if path.is_file():
            print_info(f"Credentials file '{path}' already exists. Using existing file.")
            self._check_existing(record)
            return record

        self._create(record, user, password)
        record.created = True
        return record

    def _create(self, record: CredentialRecord, user: str, password: str) -> None:
        log.info("Creating credentials file %s", record.path)
        run_steps(
            [
                Step(
                    lambda: self._engine.write_file(
                        "Create credentials file",
                        record.path,
                        render_credentials(user, password),
                        sensitive=True,
                        mode=int(record.mode, 8),
                    )
                ),
                Step(
                    lambda: self._engine.run(
                        "Set owner for credentials file",
                        ["chown", f"{record.owner}:{record.group}", str(record.path)],
                    )
                ),
                Step(
                    lambda: self._engine.run(
                        "Set permissions for credentials file",
                        ["chmod", record.mode, str(record.path)],
                    )
                ),
            ]
        )

    def _check_existing(self, record: CredentialRecord) -> None:
        meta = self._probe.file_metadata(record.path)
        if meta.mode == record.mode and (meta.owner, meta.group) == (record.owner, record.group):
            return

        msg = (
            f"Existing credentials file '{record.path}' has incorrect permissions/owner "
            f"({meta.mode}, {meta.owner}:{meta.group}). "
            f"Should be {record.mode} and {record.owner}:{record.group}."
        )
        log.warning(msg)
        print_warning(msg)
        record.warnings.append(msg)
