"""Single choke-point for every side effect: file writes and external commands.

In dry-run mode both primitives only report what they would do. Nothing
touches the filesystem or starts a process, and the recorded history is the
exact plan a live run would carry out.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from commandoutput import (
    print_action,
    print_action_end,
    print_content_preview,
)
from constants import MASKED_PASSWORD
from fileutils import write_file_exclusive

log = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass
class Outcome:
    """Result of one side-effecting step."""

    description: str
    target: str
    ok: bool
    executed: bool
    detail: str = ""


def mask_secrets(content: str) -> str:
    """Replace password= values so previews never show the secret."""
    lines = []
    for line in content.split("\n"):
        if line.startswith("password="):
            line = f"password={MASKED_PASSWORD}"
        lines.append(line)
    return "\n".join(lines)


@dataclass
class ExecutionEngine:
    """Runs or simulates side effects and records each one in history.

    Args:
        dry_run: Report steps instead of performing them
        runner: Callable compatible with subprocess.run, injected by tests
    """

    dry_run: bool = False
    runner: Runner = subprocess.run
    history: list[Outcome] = field(default_factory=list)

    def run(self, description: str, command: list[str]) -> Outcome:
        """Invoke an external command, or report it in dry-run mode."""
        cmdline = shlex.join(command)
        print_action(description, "COMMAND", cmdline)

        if self.dry_run:
            print("TEST MODE: Command not executed.")
            outcome = Outcome(description, cmdline, ok=True, executed=False)
        else:
            outcome = self._invoke(description, command, cmdline)

        print_action_end()
        self.history.append(outcome)
        return outcome

    def _invoke(self, description: str, command: list[str], cmdline: str) -> Outcome:
        log.debug("Running: %s", cmdline)
        try:
            result = self.runner(command, capture_output=True, text=True, check=False)
        except OSError as e:
            log.error("Could not start %s: %s", command[0], e)
            print(f"ERROR: Command failed: {cmdline} ({e})")
            return Outcome(description, cmdline, ok=False, executed=True, detail=str(e))

        if result.returncode != 0:
            detail = (result.stderr or "").strip() or f"exit status {result.returncode}"
            log.error("Command failed (%s): %s", result.returncode, cmdline)
            print(f"ERROR: Command failed: {cmdline}")
            if result.stderr:
                print(result.stderr.rstrip("\n"))
            return Outcome(description, cmdline, ok=False, executed=True, detail=detail)

        print("SUCCESS: Command executed.")
        return Outcome(description, cmdline, ok=True, executed=True)

    def write_file(
        self,
        description: str,
        path: Path,
        content: str,
        sensitive: bool = False,
        mode: int | None = None,
    ) -> Outcome:
        """Write content verbatim to path, creating parent directories as needed.

        Args:
            description: What the write is for
            path: Destination file
            content: Exact file body
            sensitive: Mask password= lines in the dry-run preview
            mode: Create a new file with exactly these permission bits instead
                of the umask default; the file must not exist yet
        """
        print_action(description, "FILE", str(path))

        if self.dry_run:
            print_content_preview(mask_secrets(content) if sensitive else content)
            outcome = Outcome(description, str(path), ok=True, executed=False)
        else:
            outcome = self._write(description, path, content, mode)

        print_action_end()
        self.history.append(outcome)
        return outcome

    def _write(self, description: str, path: Path, content: str, mode: int | None) -> Outcome:
        try:
            if not path.parent.is_dir():
                log.info("Creating directory %s", path.parent)
                path.parent.mkdir(parents=True, exist_ok=True)
            if mode is None:
                path.write_text(content)
            else:
                write_file_exclusive(path, content, mode)
        except OSError as e:
            log.error("Failed to write %s: %s", path, e)
            print(f"ERROR: Failed to write to {path}.")
            return Outcome(description, str(path), ok=False, executed=True, detail=str(e))

        log.debug("Wrote %d bytes to %s", len(content), path)
        print("SUCCESS: File written.")
        return Outcome(description, str(path), ok=True, executed=True)

    def plan(self) -> list[str]:
        """Descriptions of every step recorded so far, in order."""
        return [outcome.description for outcome in self.history]
