"""Mount workflow: validate, prepare, write units, activate.

Preconditions are all checked before the first mutation. After that every
step is fatal: a half-written unit set must never be left enabled silently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from commandoutput import print_banner, print_info, print_warning
from constants import MOUNTPOINT_MODE
from credentials import CredentialRecord, CredentialStore
from errors import PreconditionError
from execution import ExecutionEngine
from request import Action, MountRequest
from resolver import Provenance, ResolvedHost, resolve_host
from settings import Settings
from system import LocalUser, SystemProbe
from unit_names import UnitNamePair, derive_unit_names
from unitfile import build_automount_unit, build_mount_unit
from workflow import Step, run_steps

log = logging.getLogger(__name__)


class MountState(Enum):
    VALIDATED = "validated"
    DIRECTORY_READY = "directory-ready"
    CREDENTIALS_READY = "credentials-ready"
    UNITS_WRITTEN = "units-written"
    DAEMON_RELOADED = "daemon-reloaded"
    ENABLED = "enabled"
    ABORTED = "aborted"


@dataclass
class MountResult:
    names: UnitNamePair
    resolved: ResolvedHost
    credentials: CredentialRecord
    warnings: list[str] = field(default_factory=list)


class MountOrchestrator:
    """Sequences the mount workflow for one request."""

    def __init__(
        self,
        request: MountRequest,
        engine: ExecutionEngine,
        probe: SystemProbe,
        settings: Settings,
        resolver: Callable[[str], ResolvedHost] | None = None,
    ):
        if request.action is not Action.MOUNT:
            raise ValueError("MountOrchestrator needs a mount request")
        self.request = request
        self.engine = engine
        self.probe = probe
        self.settings = settings
        self._resolve = resolver or resolve_host
        self.state: MountState | None = None

    def _transition(self, state: MountState) -> None:
        log.debug("mount %s: %s -> %s", self.request.mountpoint, self.state, state)
        self.state = state

    def run(self) -> MountResult:
        """Execute the workflow.

        Raises:
            PreconditionError: Before any mutation, if the configuration can't be created
            FatalCommandError: If any write or command fails
        """
        req = self.request
        print_banner(f"Preparing to MOUNT configuration for {req.mountpoint}")

        try:
            user, resolved, names = self._validate()
        except PreconditionError:
            self._transition(MountState.ABORTED)
            raise
        self._transition(MountState.VALIDATED)

        try:
            self._prepare_directory()
            self._transition(MountState.DIRECTORY_READY)

            store = CredentialStore(self.engine, self.probe, self.settings)
            record = store.ensure(req.username, req.server, req.password)
            self._transition(MountState.CREDENTIALS_READY)

            self._write_units(names, resolved, record.path, user)
            self._transition(MountState.UNITS_WRITTEN)

            self._activate(names)
        except Exception:
            self._transition(MountState.ABORTED)
            raise

        warnings = list(record.warnings)
        if resolved.provenance is Provenance.UNRESOLVED:
            warnings.insert(0, resolved.comment)
        self._print_summary(names)
        return MountResult(names=names, resolved=resolved, credentials=record, warnings=warnings)

    def _validate(self) -> tuple[LocalUser, ResolvedHost, UnitNamePair]:
        req = self.request

        user = self.probe.lookup_user(req.username)
        if user is None:
            raise PreconditionError(
                f"Local user '{req.username}' (specified with --user) not found. "
                "Cannot determine UID/GID."
            )
        print_info(
            f"Will use UID {user.uid} and GID {user.gid} for local file ownership "
            f"(based on local user '{user.name}')."
        )

        print_info(f"Attempting to resolve IP for server '{req.server}'...")
        resolved = self._resolve(req.server)
        self._report_resolution(resolved)

        names = derive_unit_names(req.mountpoint, self.settings.unit_dir)

        if self.probe.is_mountpoint(req.mountpoint):
            raise PreconditionError(f"'{req.mountpoint}' is already a mountpoint. Aborting.")

        existing = [p for p in (names.mount_path, names.automount_path) if p.exists()]
        if existing:
            raise PreconditionError(
                f"Systemd unit files already exist: {', '.join(str(p) for p in existing)}. "
                "Use --unmount first if you want to replace the configuration."
            )

        return user, resolved, names

    @staticmethod
    def _report_resolution(resolved: ResolvedHost) -> None:
        if resolved.provenance is Provenance.RESOLVED:
            print_info(f"Resolved '{resolved.name}' to IP address '{resolved.address}'.")
        elif resolved.provenance is Provenance.ALREADY_ADDRESS:
            print_info(f"Server '{resolved.name}' appears to be an IP address already.")
        else:
            print_warning(
                f"Could not resolve IP address for '{resolved.name}'. "
                "Using it directly in mount command.",
                "Mounting might fail during boot if name resolution isn't ready.",
            )

    def _prepare_directory(self) -> None:
        mountpoint = self.request.mountpoint
        if Path(mountpoint).is_dir():
            print_info(f"Local mountpoint directory '{mountpoint}' already exists.")
            return

        run_steps(
            [
                Step(
                    lambda: self.engine.run(
                        "Create local mountpoint directory", ["mkdir", "-p", mountpoint]
                    )
                ),
                Step(
                    lambda: self.engine.run(
                        "Set permissions for mountpoint directory",
                        ["chmod", MOUNTPOINT_MODE, mountpoint],
                    )
                ),
                Step(
                    lambda: self.engine.run(
                        "Set ownership for mountpoint directory",
                        ["chown", self.settings.ownership, mountpoint],
                    )
                ),
            ]
        )

    def _write_units(
        self, names: UnitNamePair, resolved: ResolvedHost, cred_path: Path, user: LocalUser
    ) -> None:
        mount_body = build_mount_unit(self.request, resolved, cred_path, user.uid, user.gid)
        automount_body = build_automount_unit(self.request)
        run_steps(
            [
                Step(
                    lambda: self.engine.write_file(
                        "Create .mount unit file", names.mount_path, mount_body
                    )
                ),
                Step(
                    lambda: self.engine.write_file(
                        "Create .automount unit file", names.automount_path, automount_body
                    )
                ),
            ]
        )

    def _activate(self, names: UnitNamePair) -> None:
        run_steps(
            [
                Step(
                    lambda: self.engine.run(
                        "Reload systemd daemon configuration", ["systemctl", "daemon-reload"]
                    )
                )
            ]
        )
        self._transition(MountState.DAEMON_RELOADED)

        run_steps(
            [
                Step(
                    lambda: self.engine.run(
                        "Enable and start the automount unit",
                        ["systemctl", "enable", "--now", names.automount_unit],
                    )
                )
            ]
        )
        self._transition(MountState.ENABLED)

    def _print_summary(self, names: UnitNamePair) -> None:
        print_banner(f"MOUNT configuration created/enabled for {self.request.mountpoint}")
        if self.engine.dry_run:
            print_banner("REVIEW THE ABOVE STEPS CAREFULLY")
        else:
            print_banner(f"Check status with: systemctl status {names.automount_unit}")
            print_banner(f"Access the mountpoint '{self.request.mountpoint}' to trigger the mount.")


def run_mount(
    request: MountRequest, engine: ExecutionEngine, probe: SystemProbe, settings: Settings
) -> MountResult:
    """Convenience wrapper used by the CLI."""
    return MountOrchestrator(request, engine, probe, settings).run()
