"""Command-line interface for nas-automount."""

from __future__ import annotations

import argparse
import logging
import sys

from commandoutput import print_banner, print_error_box
from constants import DEFAULT_SMB_VERSION, NAS_AUTOMOUNT_VERSION
from errors import (
    AutomountError,
    FatalCommandError,
    PreconditionError,
    PrivilegeError,
    UsageError,
)
from execution import ExecutionEngine
from mount import run_mount
from request import Action, MountRequest
from settings import Settings
from system import SystemProbe
from unmount import run_unmount

log = logging.getLogger(__name__)

USAGE_LINES = [
    "Usage: nas-automount --mount //<server>/<share> <local_mountpoint> --user <nas_user> --password <nas_pass> [options]",
    "       nas-automount --unmount <local_mountpoint> [--test]",
]


class AutomountHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that shows our structured help."""

    def format_help(self) -> str:
        lines = [
            "nas-automount - systemd automount units for CIFS network shares.",
            f"Version: {NAS_AUTOMOUNT_VERSION}",
            "",
            *USAGE_LINES,
            "",
            "Options for --mount:",
            "  //<server>/<share>     Network path (server can be FQDN or IP)",
            "  <local_mountpoint>     Local directory to mount onto",
            "  --user <nas_user>      Username for NAS authentication",
            "                         (the same username must exist locally for file ownership)",
            "  --password <nas_pass>  Password for NAS authentication",
            "                         WARNING: providing a password on the command line is insecure",
            f"  --smb-version <ver>    SMB version (e.g., 2.1, 3.0, 3.1.1). Default: {DEFAULT_SMB_VERSION}",
            "  --test                 Show what would be done without executing",
            "",
            "Options for --unmount:",
            "  <local_mountpoint>     Local mountpoint of the setup to remove",
            "  --test                 Show what would be done without executing",
            "",
            "Help:",
            "  --help                 Show this help message",
            "",
            "Examples:",
            "  nas-automount --mount //nas.local/media /mnt/media --user alice --password secret --test",
            "  nas-automount --unmount /mnt/media",
        ]
        return "\n".join(lines) + "\n"


class AutomountArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of exiting with status 2."""

    def error(self, message: str) -> None:
        raise UsageError(message)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the nas-automount CLI."""
    parser = AutomountArgumentParser(
        prog="nas-automount",
        formatter_class=AutomountHelpFormatter,
        add_help=True,
    )

    action = parser.add_mutually_exclusive_group()
    action.add_argument("--mount", nargs=2, metavar=("SERVER_SPEC", "MOUNTPOINT"), help=argparse.SUPPRESS)
    action.add_argument("--unmount", metavar="MOUNTPOINT", help=argparse.SUPPRESS)

    parser.add_argument("--user", default="", help=argparse.SUPPRESS)
    parser.add_argument("--password", default="", help=argparse.SUPPRESS)
    parser.add_argument("--smb-version", default=DEFAULT_SMB_VERSION, help=argparse.SUPPRESS)
    parser.add_argument("--test", action="store_true", help=argparse.SUPPRESS)

    return parser


def parse_args(argv: list[str] | None = None) -> MountRequest:
    """Parse command line arguments into an immutable request.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Raises:
        UsageError: On missing/malformed arguments or an invalid server spec
    """
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        raise UsageError("No action given")

    args = create_parser().parse_args(argv)

    if args.mount:
        server_spec, mountpoint = args.mount
        return MountRequest.for_mount(
            server_spec,
            mountpoint,
            username=args.user,
            password=args.password,
            smb_version=args.smb_version,
            dry_run=args.test,
        )
    if args.unmount:
        return MountRequest.for_unmount(args.unmount, dry_run=args.test)

    raise UsageError("Missing action (--mount or --unmount)")


def configure_logging(settings: Settings, dry_run: bool) -> None:
    """Log to a file for live runs; dry runs leave no trace on disk."""
    if dry_run:
        logging.basicConfig(
            level=logging.WARNING,
            format="%(levelname)s: %(message)s",
        )
        return

    settings.log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(settings.log_path),
        level=logging.DEBUG,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def create_probe(settings: Settings, dry_run: bool) -> SystemProbe:
    """System probe for this run; dry runs query unit state without systemctl."""
    return SystemProbe(unit_dir=settings.unit_dir, use_systemctl=not dry_run)


def check_privileges(probe: SystemProbe) -> None:
    if not probe.is_root():
        raise PrivilegeError("This command must be run as root (use sudo).")


def execute(
    request: MountRequest, settings: Settings, probe: SystemProbe, engine: ExecutionEngine
) -> None:
    """Run the workflow for request.

    Raises:
        PreconditionError: If the mount configuration can't be created
        FatalCommandError: If a mount step fails
    """
    print_banner("Request", request.summary_lines())
    if request.action is Action.MOUNT:
        run_mount(request, engine, probe, settings)
    else:
        run_unmount(request, engine, probe, settings)


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    try:
        request = parse_args(argv)
    except UsageError as e:
        print_error_box(str(e), *USAGE_LINES, "", "Run with --help for details.")
        return 1

    settings = Settings.from_env()
    probe = create_probe(settings, request.dry_run)
    engine = ExecutionEngine(dry_run=request.dry_run)

    try:
        check_privileges(probe)
        configure_logging(settings, request.dry_run)
        log.info("Starting %s for %s", request.action.value, request.mountpoint)
        execute(request, settings, probe, engine)
    except PrivilegeError as e:
        print_error_box(str(e))
        return 1
    except PreconditionError as e:
        log.error("Precondition failed: %s", e)
        print_error_box(str(e))
        return 1
    except FatalCommandError as e:
        log.error("Aborted: %s", e)
        print_error_box(
            str(e),
            "Files written so far were left in place.",
            f"Run 'nas-automount --unmount {request.mountpoint}' to clean up.",
        )
        return 1
    except AutomountError as e:
        print_error_box(str(e))
        return 1

    log.info("Finished %s for %s", request.action.value, request.mountpoint)
    return 0


if __name__ == "__main__":
    sys.exit(main())
