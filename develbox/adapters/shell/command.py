"""
Local shell handle — run package commands without a container runtime.

Used when develbox itself is already running as root inside the
container: there is nothing to exec into, the command just runs
through ``sh -c`` in the current process tree.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from develbox.adapters.base import ContainerHandle, Identity, Stream

logger = logging.getLogger(__name__)


class LocalShellHandle(ContainerHandle):
    """Runs commands directly; the container argument is informational."""

    @property
    def name(self) -> str:
        return "local"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def run_as(
        self,
        container: str,
        identity: Identity,
        command: str,
        stdin: Stream = None,
        stdout: Stream = None,
        stderr: Stream = None,
    ) -> int:
        if identity is Identity.USER:
            logger.warning(
                "Running as root inside a container, but the operation is set "
                "to run as user. Ignoring the flag."
            )
        logger.debug("Executing locally: %s", command)
        result = subprocess.run(
            ["sh", "-c", command],
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
        )
        return result.returncode
