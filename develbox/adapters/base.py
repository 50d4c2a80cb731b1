"""
Container handle — the contract between package operations and a runtime.

The operation pipeline never builds runtime command lines itself. It
asks a ContainerHandle to run a shell command inside a given container
as a given identity, with the caller's choice of stdin/stdout/stderr,
and gets the exit status back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import IO, Union

# Anything subprocess accepts for a standard stream: None (inherit),
# a file descriptor, or an object with fileno()
Stream = Union[None, int, IO]


class Identity(str, Enum):
    """Who the command runs as inside the container."""

    ROOT = "root"
    USER = "user"


class ContainerHandle(ABC):
    """Abstract base class for everything that can run a command in a container.

    To add a new runtime:
        1. Subclass ContainerHandle
        2. Implement name, is_available, run_as
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The handle identifier (e.g., 'podman', 'docker', 'local')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying runtime can be used. Never raises."""

    @abstractmethod
    def run_as(
        self,
        container: str,
        identity: Identity,
        command: str,
        stdin: Stream = None,
        stdout: Stream = None,
        stderr: Stream = None,
    ) -> int:
        """Run ``command`` through ``sh -c`` and wait for it.

        Returns:
            The command's exit status.

        Raises:
            OSError: If the process cannot be launched at all.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
