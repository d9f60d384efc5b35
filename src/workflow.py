"""Step policy loop shared by the mount and unmount workflows.

Each step declares whether its failure is fatal or merely reported; the loop
applies that policy uniformly instead of each call site deciding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from commandoutput import print_warning
from errors import FatalCommandError
from execution import Outcome

log = logging.getLogger(__name__)


class StepPolicy(Enum):
    FATAL = "fatal"
    BEST_EFFORT = "best-effort"


@dataclass
class Step:
    """One side-effecting action and its failure policy.

    Args:
        action: Performs the step through the ExecutionEngine
        policy: FATAL aborts the workflow on failure, BEST_EFFORT warns and continues
        on_failure: Warning printed for a failed BEST_EFFORT step
    """

    action: Callable[[], Outcome]
    policy: StepPolicy = StepPolicy.FATAL
    on_failure: str = ""


def run_steps(steps: list[Step]) -> list[str]:
    """Run steps in order, applying each step's policy.

    Returns:
        Warnings produced by failed best-effort steps

    Raises:
        FatalCommandError: On the first failed FATAL step
    """
    warnings = []
    for step in steps:
        outcome = step.action()
        if outcome.ok:
            continue

        if step.policy is StepPolicy.FATAL:
            log.error("Fatal step failed: %s (%s)", outcome.description, outcome.detail)
            raise FatalCommandError(outcome)

        msg = step.on_failure or f"{outcome.description} failed: {outcome.detail}"
        log.warning(msg)
        print_warning(msg)
        warnings.append(msg)
    return warnings
