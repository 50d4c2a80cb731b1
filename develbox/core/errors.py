"""
Error taxonomy — every failure the package-operation pipeline can raise.

Services raise these; the CLI catches ``DevelboxError``, prints the
message and exits non-zero. The proxy server catches them per
connection, logs, and keeps serving.
"""

from __future__ import annotations


class DevelboxError(Exception):
    """Base class for all develbox errors."""


class UnsupportedOperationKind(DevelboxError):
    """The package manager template has no command for this operation kind."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(
            f"The package manager config has no command for the '{kind}' operation"
        )


class SocketNotFound(DevelboxError):
    """The proxy socket file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Socket {path} does not exist. "
            "Run 'develbox socket' on the host to start the proxy."
        )


class ConnectionRefused(DevelboxError):
    """The socket file exists but nothing is listening on it."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Nothing is listening on {path}. "
            "The socket file is stale, restart 'develbox socket' on the host."
        )


class AddressInUse(DevelboxError):
    """Another live listener already owns the socket path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Socket {path} is already served by another process")


class DecodeError(DevelboxError):
    """The operation payload on a connection was not valid."""


class ChildProcessFailure(DevelboxError):
    """The synthesized package manager command exited non-zero."""

    def __init__(self, command: str, returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(f"Command '{command}' exited with code {returncode}")


class ManifestPersistError(DevelboxError):
    """Writing the updated package lists back to the config failed."""
