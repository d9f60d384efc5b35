"""Tests for the mount workflow."""

from pathlib import Path

import pytest

from errors import FatalCommandError, PreconditionError
from execution import ExecutionEngine
from mount import MountOrchestrator, MountState
from request import MountRequest
from resolver import Provenance, ResolvedHost
from unit_names import derive_unit_names


def _orchestrator(request, engine, probe, settings, resolver):
    return MountOrchestrator(request, engine, probe, settings, resolver=resolver)


class TestMountLive:
    """A successful live mount."""

    def test_writes_units_and_activates(
        self, mount_request, engine, runner, probe, settings, resolver, mountpoint
    ):
        orch = _orchestrator(mount_request, engine, probe, settings, resolver)
        result = orch.run()

        names = derive_unit_names(mountpoint, settings.unit_dir)
        assert result.names == names
        assert orch.state is MountState.ENABLED
        assert Path(mountpoint).is_dir()

        mount_body = names.mount_path.read_text()
        assert "What=//10.0.0.7/media\n" in mount_body
        assert f"Where={mountpoint}\n" in mount_body
        assert f"credentials={result.credentials.path},uid=1000,gid=1000," in mount_body
        assert f"Where={mountpoint}\n" in names.automount_path.read_text()
        assert result.credentials.path.read_text() == "username=alice\npassword=s3cret\n"

        assert runner.calls == [
            ["mkdir", "-p", mountpoint],
            ["chmod", "755", mountpoint],
            ["chown", "root:root", mountpoint],
            ["chown", "root:root", str(result.credentials.path)],
            ["chmod", "600", str(result.credentials.path)],
            ["systemctl", "daemon-reload"],
            ["systemctl", "enable", "--now", names.automount_unit],
        ]

    def test_existing_directory_is_not_touched(
        self, mount_request, engine, runner, probe, settings, resolver, mountpoint
    ):
        Path(mountpoint).mkdir(parents=True)
        _orchestrator(mount_request, engine, probe, settings, resolver).run()

        assert runner.commands("mkdir") == []
        assert ["chmod", "755", mountpoint] not in runner.calls

    def test_existing_credentials_are_reused(
        self, mount_request, engine, probe, settings, resolver
    ):
        cred = settings.credentials_dir / "credentials.alice@nas.local"
        cred.parent.mkdir(parents=True)
        cred.write_text("username=alice\npassword=old\n")
        cred.chmod(0o600)

        result = _orchestrator(mount_request, engine, probe, settings, resolver).run()

        assert result.credentials.created is False
        assert cred.read_text() == "username=alice\npassword=old\n"
        assert "Create credentials file" not in engine.plan()

    def test_unresolved_host_adds_warning(self, mount_request, engine, probe, settings, mountpoint):
        unresolved = ResolvedHost("nas.local", "nas.local", Provenance.UNRESOLVED)
        result = _orchestrator(
            mount_request, engine, probe, settings, lambda host: unresolved
        ).run()

        assert "What=//nas.local/media\n" in result.names.mount_path.read_text()
        assert result.warnings == [unresolved.comment]


class TestMountPreconditions:
    """Preconditions abort before any mutation."""

    def test_already_mounted(
        self, mount_request, engine, runner, probe, settings, resolver, mountpoint, snapshot
    ):
        probe.mounted.add(mountpoint)
        before = snapshot()
        orch = _orchestrator(mount_request, engine, probe, settings, resolver)

        with pytest.raises(PreconditionError, match="already a mountpoint"):
            orch.run()

        assert orch.state is MountState.ABORTED
        assert runner.calls == []
        assert engine.history == []
        assert snapshot() == before

    def test_unit_file_exists(
        self, mount_request, engine, runner, probe, settings, resolver, mountpoint, snapshot
    ):
        names = derive_unit_names(mountpoint, settings.unit_dir)
        names.automount_path.parent.mkdir(parents=True)
        names.automount_path.write_text("# hand written\n")
        before = snapshot()

        with pytest.raises(PreconditionError, match="already exist"):
            _orchestrator(mount_request, engine, probe, settings, resolver).run()

        assert runner.calls == []
        assert snapshot() == before

    def test_unknown_local_user(self, mountpoint, engine, runner, probe, settings, resolver):
        request = MountRequest.for_mount(
            "//nas.local/media", mountpoint, username="bob", password="pw"
        )

        with pytest.raises(PreconditionError, match="Local user 'bob'"):
            _orchestrator(request, engine, probe, settings, resolver).run()

        assert runner.calls == []

    def test_rejects_unmount_request(self, engine, probe, settings):
        with pytest.raises(ValueError):
            MountOrchestrator(MountRequest.for_unmount("/mnt/media"), engine, probe, settings)


class TestMountFatalFailures:
    """Any failed mutating step aborts the workflow."""

    def test_daemon_reload_failure_stops_before_enable(
        self, mount_request, failing_runner, probe, settings, resolver
    ):
        runner = failing_runner({("systemctl", "daemon-reload"): "Access denied"})
        engine = ExecutionEngine(runner=runner)
        orch = _orchestrator(mount_request, engine, probe, settings, resolver)

        with pytest.raises(FatalCommandError, match="Reload systemd daemon configuration"):
            orch.run()

        assert orch.state is MountState.ABORTED
        assert ["systemctl", "daemon-reload"] in runner.calls
        assert not any("enable" in call for call in runner.calls)

    def test_unit_write_failure(self, mount_request, engine, probe, settings, resolver, mountpoint):
        names = derive_unit_names(mountpoint, settings.unit_dir)
        settings.unit_dir.parent.mkdir(parents=True, exist_ok=True)
        # A regular file where the unit directory should be makes the write fail
        settings.unit_dir.write_text("")

        with pytest.raises(FatalCommandError, match="Create .mount unit file"):
            _orchestrator(mount_request, engine, probe, settings, resolver).run()

        assert "Create .automount unit file" not in engine.plan()
        assert not names.automount_path.exists()


class TestMountDryRun:
    """Dry run mutates nothing and plans exactly what a live run does."""

    def test_no_mutation(
        self, mount_request, runner, probe, settings, resolver, snapshot, capsys
    ):
        engine = ExecutionEngine(dry_run=True, runner=runner)
        before = snapshot()

        _orchestrator(mount_request, engine, probe, settings, resolver).run()

        assert runner.calls == []
        assert snapshot() == before
        out = capsys.readouterr().out
        assert "s3cret" not in out
        assert "REVIEW THE ABOVE STEPS CAREFULLY" in out

    def test_plan_matches_live_run(
        self, mount_request, runner, probe, settings, resolver
    ):
        dry = ExecutionEngine(dry_run=True, runner=runner)
        _orchestrator(mount_request, dry, probe, settings, resolver).run()

        live = ExecutionEngine(runner=runner)
        _orchestrator(mount_request, live, probe, settings, resolver).run()

        assert dry.plan() == live.plan() == [
            "Create local mountpoint directory",
            "Set permissions for mountpoint directory",
            "Set ownership for mountpoint directory",
            "Create credentials file",
            "Set owner for credentials file",
            "Set permissions for credentials file",
            "Create .mount unit file",
            "Create .automount unit file",
            "Reload systemd daemon configuration",
            "Enable and start the automount unit",
        ]
