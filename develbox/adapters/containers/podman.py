"""
Podman adapter — run commands inside a project container.

Uses the podman CLI (or docker, when ``podman.path`` points at it),
never an API socket. Package operations go through ``run_as``:

    podman exec -i [-t] --user 0:0 <container> sh -c "<command>"
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys

from develbox.adapters.base import ContainerHandle, Identity, Stream

logger = logging.getLogger(__name__)


class PodmanAdapter(ContainerHandle):
    """Podman (or Docker) CLI driver."""

    def __init__(self, path: str = "podman"):
        self.path = path

    @property
    def name(self) -> str:
        return "docker" if self.is_docker() else "podman"

    def is_available(self) -> bool:
        return shutil.which(self.path) is not None

    def is_docker(self) -> bool:
        return os.path.basename(self.path).startswith("docker")

    # ── Exec ────────────────────────────────────────────────────

    def exec_args(
        self,
        container: str,
        identity: Identity,
        command: str,
        tty: bool = False,
    ) -> list[str]:
        """Build the full ``exec`` argv for ``command``."""
        args = [self.path, "exec", "-i"]
        if tty:
            args.append("-t")
        if identity is Identity.ROOT:
            args += ["--user", "0:0"]
        else:
            uid = os.getuid()
            args += ["--user", f"{uid}:{uid}"]
        args += [container, "sh", "-c", command]
        return args

    def run_as(
        self,
        container: str,
        identity: Identity,
        command: str,
        stdin: Stream = None,
        stdout: Stream = None,
        stderr: Stream = None,
    ) -> int:
        tty = stdin is None and sys.stdin.isatty()
        args = self.exec_args(container, identity, command, tty=tty)
        logger.info("Executing command: %s", " ".join(args))
        result = subprocess.run(args, stdin=stdin, stdout=stdout, stderr=stderr)
        logger.debug("Command exited with code %d", result.returncode)
        return result.returncode

    # ── Container state ─────────────────────────────────────────

    def exists(self, container: str) -> bool:
        # Docker has no "container exists", inspect is the closest thing
        if self.is_docker():
            args = ["inspect", container]
        else:
            args = ["container", "exists", container]
        return self._run(args).returncode == 0

    def is_running(self, container: str) -> bool:
        result = self._run(["inspect", "-f", "{{.State.Running}}", container])
        return result.returncode == 0 and result.stdout.strip() == "true"

    def start(self, container: str) -> None:
        """Start the container (a no-op for a running one).

        Raises:
            RuntimeError: If the runtime refuses to start it.
        """
        result = self._run(["start", container])
        if result.returncode != 0:
            raise RuntimeError(
                result.stderr.strip() or f"{self.path} start {container} failed"
            )

    def _run(self, args: list[str], timeout: int = 60) -> subprocess.CompletedProcess[str]:
        logger.debug("Running: %s %s", self.path, " ".join(args))
        return subprocess.run(
            [self.path, *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
