"""Operator-facing output formatting."""

from __future__ import annotations

import sys

RULE = "-" * 50


def print_error_box(title: str, *lines: str) -> None:
    """Print a formatted error box to stderr.

    Args:
        title: The error title (will be prefixed with "Error: ")
        *lines: Additional lines to print in the box
    """
    print("=" * 60, file=sys.stderr)
    print(f"Error: {title}", file=sys.stderr)
    if lines:
        print("", file=sys.stderr)
    for line in lines:
        print(line, file=sys.stderr)
    print("=" * 60, file=sys.stderr)


def print_banner(title: str, lines: list[str] | None = None) -> None:
    """Print a '***' banner, optionally followed by indented detail lines."""
    print(f"*** {title} ***")
    for line in lines or []:
        print(f"    {line}")


def print_info(msg: str) -> None:
    print(f"INFO: {msg}")


def print_warning(msg: str, *continuation: str) -> None:
    """Print a warning to stderr; continuation lines are indented under it."""
    print(f"WARNING: {msg}", file=sys.stderr)
    for line in continuation:
        print(f"         {line}", file=sys.stderr)


def print_action(description: str, target_label: str, target: str) -> None:
    """Print the header of a side-effecting step.

    Args:
        description: What the step does (e.g., 'Reload systemd daemon configuration')
        target_label: 'COMMAND' or 'FILE'
        target: The command line or file path
    """
    print(RULE)
    print(f"ACTION: {description}")
    print(f"{target_label}: {target}")


def print_content_preview(content: str) -> None:
    """Print file content that a dry run would have written."""
    print("TEST MODE: File not written. Content would be:")
    print("--- BEGIN CONTENT ---")
    print(content.rstrip("\n"))
    print("--- END CONTENT ---")


def print_action_end() -> None:
    print(RULE)
