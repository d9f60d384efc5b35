"""Exception hierarchy for nas-automount.

Every error is surfaced to the operator once, in cli.main, and mapped to exit
code 1. Soft warnings are never raised; they are printed and collected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from execution import Outcome


class AutomountError(Exception):
    """Base class for all nas-automount failures."""

    pass


class UsageError(AutomountError):
    """Malformed or missing arguments, or an invalid //server/share spec."""

    pass


class PrivilegeError(AutomountError):
    """Not running with root privileges."""

    pass


class PreconditionError(AutomountError):
    """Mount refused before any mutation: already mounted, units present, or no local user."""

    pass


class FatalCommandError(AutomountError):
    """A command or file write failed while creating or activating units."""

    def __init__(self, outcome: "Outcome"):
        self.outcome = outcome
        message = f"{outcome.description} failed"
        if outcome.detail:
            message = f"{message}: {outcome.detail}"
        super().__init__(message)
