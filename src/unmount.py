"""Unmount workflow: deactivate and remove the unit pair, best effort.

Every step runs regardless of earlier failures. The credentials file and the
mountpoint directory are never removed, so --mount can be re-run right away.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from commandoutput import print_banner, print_info
from execution import ExecutionEngine, Outcome
from request import Action, MountRequest
from settings import Settings
from system import SystemProbe
from unit_names import UnitNamePair, derive_unit_names
from workflow import Step, StepPolicy, run_steps

log = logging.getLogger(__name__)


@dataclass
class UnmountResult:
    names: UnitNamePair
    warnings: list[str] = field(default_factory=list)


def guarded_step(
    condition: Callable[[], bool],
    action: Callable[[], Outcome],
    skipped_msg: str,
    on_failure: str = "",
) -> Step:
    """Best-effort step whose condition is probed only when the step is reached."""

    def guarded() -> Outcome:
        if condition():
            return action()
        print_info(skipped_msg)
        return Outcome(skipped_msg, "", ok=True, executed=False)

    return Step(guarded, StepPolicy.BEST_EFFORT, on_failure)


class UnmountOrchestrator:
    """Sequences the unmount workflow for one request."""

    def __init__(
        self,
        request: MountRequest,
        engine: ExecutionEngine,
        probe: SystemProbe,
        settings: Settings,
    ):
        if request.action is not Action.UNMOUNT:
            raise ValueError("UnmountOrchestrator needs an unmount request")
        self.request = request
        self.engine = engine
        self.probe = probe
        self.settings = settings

    def run(self) -> UnmountResult:
        """Execute the workflow. Failures become warnings, never exceptions."""
        mountpoint = self.request.mountpoint
        names = derive_unit_names(mountpoint, self.settings.unit_dir)
        print_banner(f"Preparing to UNMOUNT configuration for {mountpoint}")

        warnings = run_steps(self._steps(names))
        log.info("Unmount of %s finished with %d warning(s)", mountpoint, len(warnings))

        print_banner(f"UNMOUNT configuration removed for {mountpoint}")
        print_banner("NOTE: Credentials file and mountpoint directory were NOT removed.")
        if self.engine.dry_run:
            print_banner("REVIEW THE ABOVE STEPS CAREFULLY")
        return UnmountResult(names=names, warnings=warnings)

    def _steps(self, names: UnitNamePair) -> list[Step]:
        mountpoint = self.request.mountpoint
        unit = names.automount_unit
        engine = self.engine
        probe = self.probe

        return [
            guarded_step(
                lambda: probe.unit_is_active(unit),
                lambda: engine.run("Stop the automount unit", ["systemctl", "stop", unit]),
                f"Automount unit '{unit}' was not active.",
            ),
            guarded_step(
                lambda: probe.unit_is_enabled(unit),
                lambda: engine.run("Disable the automount unit", ["systemctl", "disable", unit]),
                f"Automount unit '{unit}' was not enabled.",
            ),
            guarded_step(
                lambda: probe.is_mountpoint(mountpoint),
                lambda: engine.run(f"Unmount {mountpoint}", ["umount", mountpoint]),
                f"'{mountpoint}' was not mounted.",
                on_failure=(
                    f"Failed to unmount '{mountpoint}'. It might still be busy. "
                    "Manual intervention may be needed."
                ),
            ),
            guarded_step(
                names.automount_path.exists,
                lambda: engine.run(
                    "Remove .automount unit file", ["rm", "-f", str(names.automount_path)]
                ),
                f"Automount unit file '{names.automount_path}' not found.",
            ),
            guarded_step(
                names.mount_path.exists,
                lambda: engine.run("Remove .mount unit file", ["rm", "-f", str(names.mount_path)]),
                f"Mount unit file '{names.mount_path}' not found.",
            ),
            Step(
                lambda: engine.run(
                    "Reload systemd daemon configuration", ["systemctl", "daemon-reload"]
                ),
                StepPolicy.BEST_EFFORT,
            ),
        ]


def run_unmount(
    request: MountRequest, engine: ExecutionEngine, probe: SystemProbe, settings: Settings
) -> UnmountResult:
    """Convenience wrapper used by the CLI."""
    return UnmountOrchestrator(request, engine, probe, settings).run()
