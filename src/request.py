"""Immutable request object built once argument parsing completes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from constants import DEFAULT_SMB_VERSION, MASKED_PASSWORD
from errors import UsageError
from unit_names import normalize_path

_SERVER_SPEC_RE = re.compile(r"^//([^/]+)/(.+)$")


class Action(Enum):
    MOUNT = "mount"
    UNMOUNT = "unmount"


def parse_server_spec(spec: str) -> tuple[str, str]:
    """Split '//server/share/sub' into ('server', '/share/sub').

    Raises:
        UsageError: If spec does not have the //server/share form
    """
    match = _SERVER_SPEC_RE.match(spec)
    if not match:
        raise UsageError(f"Invalid server/share format: {spec!r}. Use //server/share.")
    return match.group(1), "/" + match.group(2)


def _normalize_mountpoint(mountpoint: str) -> str:
    if not mountpoint:
        raise UsageError("Missing local mountpoint")
    try:
        mountpoint.encode("utf-8")
    except UnicodeEncodeError:
        # Where= in a unit file must be valid UTF-8
        raise UsageError(f"Local mountpoint is not valid UTF-8: {mountpoint!r}")
    try:
        normalized = normalize_path(mountpoint)
    except ValueError as e:
        raise UsageError(str(e))
    if normalized == "/":
        raise UsageError("Refusing to use / as a mountpoint")
    return normalized


@dataclass(frozen=True)
class MountRequest:
    """A single --mount or --unmount invocation."""

    action: Action
    mountpoint: str
    server: str = ""
    share: str = ""
    username: str = ""
    password: str = field(default="", repr=False)
    smb_version: str = DEFAULT_SMB_VERSION
    dry_run: bool = False

    @property
    def server_spec(self) -> str:
        return f"//{self.server}{self.share}"

    @classmethod
    def for_mount(
        cls,
        server_spec: str,
        mountpoint: str,
        username: str,
        password: str,
        smb_version: str = DEFAULT_SMB_VERSION,
        dry_run: bool = False,
    ) -> MountRequest:
        """Validate mount arguments and build the request.

        Raises:
            UsageError: If any required value is empty or malformed
        """
        missing = [
            flag
            for flag, value in (
                ("//server/share", server_spec),
                ("<local_mountpoint>", mountpoint),
                ("--user", username),
                ("--password", password),
            )
            if not value
        ]
        if missing:
            raise UsageError(f"Missing required arguments for --mount: {', '.join(missing)}")
        if not smb_version:
            raise UsageError("--smb-version must not be empty")

        server, share = parse_server_spec(server_spec)
        return cls(
            action=Action.MOUNT,
            mountpoint=_normalize_mountpoint(mountpoint),
            server=server,
            share=share,
            username=username,
            password=password,
            smb_version=smb_version,
            dry_run=dry_run,
        )

    @classmethod
    def for_unmount(cls, mountpoint: str, dry_run: bool = False) -> MountRequest:
        """Build an unmount request.

        Raises:
            UsageError: If the mountpoint is missing or not absolute
        """
        return cls(
            action=Action.UNMOUNT,
            mountpoint=_normalize_mountpoint(mountpoint),
            dry_run=dry_run,
        )

    def summary_lines(self) -> list[str]:
        """Human-readable summary for the confirmation banner, password masked."""
        lines = [f"Action:      {self.action.value}"]
        if self.action is Action.MOUNT:
            lines.append(f"Share:       {self.server_spec}")
        lines.append(f"Mountpoint:  {self.mountpoint}")
        if self.action is Action.MOUNT:
            lines.append(f"NAS user:    {self.username}")
            lines.append(f"Password:    {MASKED_PASSWORD}")
            lines.append(f"SMB version: {self.smb_version}")
        lines.append(f"Mode:        {'TEST (dry run)' if self.dry_run else 'LIVE'}")
        return lines
