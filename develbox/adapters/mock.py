"""
Mock container handle — test double for package operations.

Records every command it is asked to run and returns a configurable
exit status. With ``execute=True`` it really runs the command through
``sh -c`` on the host, which is enough to exercise stream forwarding
end to end without a container runtime.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass

from develbox.adapters.base import ContainerHandle, Identity, Stream


@dataclass
class RecordedCall:
    container: str
    identity: Identity
    command: str


class MockContainerHandle(ContainerHandle):
    """Universal mock handle for testing.

    By default every command "succeeds" without running. Exit codes
    can be configured per command string.
    """

    def __init__(
        self,
        available: bool = True,
        execute: bool = False,
        default_returncode: int = 0,
    ):
        self._available = available
        self._execute = execute
        self._default_returncode = default_returncode
        self._returncodes: dict[str, int] = {}
        self._call_log: list[RecordedCall] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[RecordedCall]:
        """Every call this mock has received, oldest first."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_returncode(self, command: str, returncode: int) -> None:
        """Make a specific command exit with ``returncode``."""
        self._returncodes[command] = returncode

    def run_as(
        self,
        container: str,
        identity: Identity,
        command: str,
        stdin: Stream = None,
        stdout: Stream = None,
        stderr: Stream = None,
    ) -> int:
        self._call_log.append(RecordedCall(container, identity, command))

        if command in self._returncodes:
            return self._returncodes[command]
        if self._execute:
            result = subprocess.run(
                ["sh", "-c", command],
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
            )
            return result.returncode
        return self._default_returncode

    def reset(self) -> None:
        """Clear call log and configured exit codes."""
        self._call_log.clear()
        self._returncodes.clear()
