"""
Tests for container handles — podman argv, local shell, mock.
"""

import os
import subprocess
from unittest.mock import patch

from develbox.adapters.base import Identity
from develbox.adapters.containers.podman import PodmanAdapter
from develbox.adapters.mock import MockContainerHandle
from develbox.adapters.shell.command import LocalShellHandle

# ── Podman ───────────────────────────────────────────────────────────


class TestPodmanAdapter:
    def test_exec_args_root(self):
        args = PodmanAdapter().exec_args("box", Identity.ROOT, "apk add git")
        assert args == [
            "podman", "exec", "-i", "--user", "0:0", "box", "sh", "-c", "apk add git",
        ]

    def test_exec_args_user_with_tty(self):
        uid = os.getuid()
        args = PodmanAdapter("/usr/bin/podman").exec_args(
            "box", Identity.USER, "pip install x", tty=True
        )
        assert args[:4] == ["/usr/bin/podman", "exec", "-i", "-t"]
        assert args[4:6] == ["--user", f"{uid}:{uid}"]
        assert args[-1] == "pip install x"

    def test_docker_detection(self):
        assert PodmanAdapter("/usr/bin/docker").is_docker()
        assert PodmanAdapter("/usr/bin/docker").name == "docker"
        assert not PodmanAdapter("podman").is_docker()

    def test_run_as_returns_exit_code(self):
        completed = subprocess.CompletedProcess(args=[], returncode=3)
        with patch("develbox.adapters.containers.podman.subprocess.run", return_value=completed) as run:
            rc = PodmanAdapter().run_as("box", Identity.ROOT, "false", stdin=0)
        assert rc == 3
        argv = run.call_args.args[0]
        assert "-t" not in argv
        assert argv[-1] == "false"

    def test_exists_podman(self):
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with patch("develbox.adapters.containers.podman.subprocess.run", return_value=completed) as run:
            assert PodmanAdapter().exists("box")
        assert run.call_args.args[0] == ["podman", "container", "exists", "box"]

    def test_exists_docker(self):
        completed = subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="")
        with patch("develbox.adapters.containers.podman.subprocess.run", return_value=completed) as run:
            assert not PodmanAdapter("docker").exists("box")
        assert run.call_args.args[0] == ["docker", "inspect", "box"]

    def test_is_running(self):
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="true\n", stderr="")
        with patch("develbox.adapters.containers.podman.subprocess.run", return_value=completed):
            assert PodmanAdapter().is_running("box")

    def test_start_failure(self):
        completed = subprocess.CompletedProcess(
            args=[], returncode=125, stdout="", stderr="no such container"
        )
        with patch("develbox.adapters.containers.podman.subprocess.run", return_value=completed):
            try:
                PodmanAdapter().start("box")
            except RuntimeError as e:
                assert "no such container" in str(e)
            else:
                raise AssertionError("start() should fail")


# ── Local shell ──────────────────────────────────────────────────────


class TestLocalShellHandle:
    def test_runs_command(self, tmp_path):
        out = tmp_path / "out"
        with open(out, "wb") as fh:
            rc = LocalShellHandle().run_as("ignored", Identity.ROOT, "echo hi", stdout=fh)
        assert rc == 0
        assert out.read_bytes() == b"hi\n"

    def test_exit_code(self):
        assert LocalShellHandle().run_as("ignored", Identity.ROOT, "exit 4") == 4

    def test_user_identity_warns(self, caplog):
        LocalShellHandle().run_as("ignored", Identity.USER, "true")
        assert "run as user" in caplog.text


# ── Mock ─────────────────────────────────────────────────────────────


class TestMockContainerHandle:
    def test_records_calls(self):
        mock = MockContainerHandle()
        assert mock.run_as("box", Identity.ROOT, "apk add git") == 0
        assert mock.call_count == 1
        assert mock.call_log[0].command == "apk add git"

    def test_configured_exit_code(self):
        mock = MockContainerHandle()
        mock.set_returncode("apk add nope", 1)
        assert mock.run_as("box", Identity.ROOT, "apk add nope") == 1
        assert mock.run_as("box", Identity.ROOT, "apk add git") == 0

    def test_reset(self):
        mock = MockContainerHandle()
        mock.run_as("box", Identity.ROOT, "x")
        mock.reset()
        assert mock.call_count == 0

    def test_availability(self):
        assert not MockContainerHandle(available=False).is_available()
        assert "mock" in repr(MockContainerHandle())
