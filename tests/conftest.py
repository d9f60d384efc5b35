"""Shared fixtures for nas-automount tests."""

import os
import subprocess
from pathlib import Path

import pytest

from execution import ExecutionEngine
from request import MountRequest
from resolver import Provenance, ResolvedHost
from settings import Settings
from system import FileMetadata, LocalUser, SystemProbe


class FakeRunner:
    """subprocess.run stand-in that records commands.

    mkdir, chmod and rm are applied to the real (temporary) filesystem so
    that later probes see their effect; everything else just succeeds.
    Commands whose leading words match a key of `failures` return exit
    status 1 with the mapped stderr.
    """

    def __init__(self, failures=None):
        self.calls = []
        self.failures = failures or {}

    def __call__(self, command, **kwargs):
        self.calls.append(list(command))
        for prefix, stderr in self.failures.items():
            if tuple(command[: len(prefix)]) == prefix:
                return subprocess.CompletedProcess(command, 1, "", stderr)
        self._apply(command)
        return subprocess.CompletedProcess(command, 0, "", "")

    def _apply(self, command):
        if command[0] == "mkdir":
            Path(command[-1]).mkdir(parents=True, exist_ok=True)
        elif command[0] == "chmod":
            os.chmod(command[-1], int(command[1], 8))
        elif command[0] == "rm":
            Path(command[-1]).unlink(missing_ok=True)

    def commands(self, name):
        """Recorded calls whose program is name."""
        return [c for c in self.calls if c[0] == name]


class FakeProbe(SystemProbe):
    """SystemProbe answering from in-memory state instead of the host."""

    def __init__(self, root=True):
        super().__init__(runner=None)
        self.root = root
        self.users = {"alice": LocalUser("alice", 1000, 1000)}
        self.mounted = set()
        self.active = set()
        self.enabled = set()
        self.owner = ("root", "root")

    def is_root(self):
        return self.root

    def lookup_user(self, name):
        return self.users.get(name)

    def is_mountpoint(self, path):
        return path in self.mounted

    def unit_is_active(self, unit):
        return unit in self.active

    def unit_is_enabled(self, unit):
        return unit in self.enabled

    def file_metadata(self, path):
        mode = f"{path.stat().st_mode & 0o777:o}"
        return FileMetadata(owner=self.owner[0], group=self.owner[1], mode=mode)


@pytest.fixture
def snapshot(tmp_path):
    """Callable returning every path under tmp_path with its content."""

    def take():
        return {
            p: (None if p.is_dir() else p.read_text())
            for p in sorted(tmp_path.rglob("*"))
        }

    return take


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in a temporary directory."""
    return Settings(
        unit_dir=tmp_path / "systemd",
        credentials_dir=tmp_path / "samba",
        log_path=tmp_path / "state" / "nas-automount.log",
    )


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def failing_runner():
    """Factory for a FakeRunner that fails the given command prefixes."""

    def make(failures):
        return FakeRunner(failures=failures)

    return make


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def engine(runner):
    """Live engine backed by the fake runner."""
    return ExecutionEngine(dry_run=False, runner=runner)


@pytest.fixture
def mountpoint(tmp_path):
    return str(tmp_path / "mnt" / "media")


@pytest.fixture
def mount_request(mountpoint):
    return MountRequest.for_mount(
        "//nas.local/media", mountpoint, username="alice", password="s3cret"
    )


@pytest.fixture
def resolved():
    return ResolvedHost(name="nas.local", address="10.0.0.7", provenance=Provenance.RESOLVED)


@pytest.fixture
def resolver(resolved):
    """Resolver returning a fixed address without touching DNS."""
    return lambda host: resolved
