"""
Operation model — one package manager transaction.

An Operation is what the CLI builds from the user's arguments and what
travels over the proxy socket as JSON. It is also the owner of the
manifest bookkeeping: after a transaction succeeds,
``update_manifest`` records added packages and forgets deleted ones.

Wire format (one JSON object, keys fixed)::

    {
        "operation": "add",
        "packages": ["git", "make"],
        "flags": ["--no-cache"],
        "auto-install": false,
        "dev-install": false,
        "run-as-user": false
    }
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from develbox.core.models.config import DevelboxConfig


class OperationKind(str, Enum):
    """The closed set of package manager operations."""

    ADD = "add"
    DELETE = "del"
    UPDATE = "update"
    UPGRADE = "upgrade"
    SEARCH = "search"
    CLEAN = "clean"


class Operation(BaseModel):
    """A request for one package manager transaction."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    kind: OperationKind = Field(alias="operation")
    packages: tuple[str, ...] = ()
    flags: tuple[str, ...] = ()
    auto_install: bool = Field(default=False, alias="auto-install")
    dev_install: bool = Field(default=False, alias="dev-install")
    user_operation: bool = Field(default=False, alias="run-as-user")

    @field_validator("packages", "flags", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        # Older clients encode an empty list as null
        return () if value is None else value

    def to_wire(self) -> dict[str, Any]:
        """Alias-keyed dict, ready for ``json.dumps``."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_wire(cls, data: Any) -> Operation:
        """Validate a decoded JSON payload.

        Raises:
            pydantic.ValidationError: If the payload is not an operation.
        """
        return cls.model_validate(data)

    def describe(self) -> str:
        return (
            f"{self.kind.value} packages={self.packages} flags={self.flags} "
            f"auto={self.auto_install} dev={self.dev_install} "
            f"user={self.user_operation}"
        )


def update_manifest(op: Operation, config: DevelboxConfig) -> None:
    """Record the effect of a successful operation in the package lists.

    Add: the packages are removed from every list, then appended once
    to the destination (dev or runtime, user or project scoped).
    Delete: the packages are removed from the scoped runtime and dev
    lists. Other kinds leave the manifest alone. No I/O happens here.
    """
    if op.user_operation:
        primary = config.userpkgs.packages
        dev_primary = config.userpkgs.devpackages
    else:
        primary = config.packages
        dev_primary = config.devpackages

    if op.kind is OperationKind.ADD:
        incoming = list(dict.fromkeys(op.packages))
        for lst in config.manifest_lists():
            _remove_all(lst, incoming)
        target = dev_primary if op.dev_install else primary
        target.extend(incoming)

    elif op.kind is OperationKind.DELETE:
        _remove_all(primary, op.packages)
        _remove_all(dev_primary, op.packages)


def _remove_all(lst: list[str], names: Iterable[str]) -> None:
    """Drop every occurrence of ``names`` from ``lst`` in place."""
    drop = set(names)
    lst[:] = [item for item in lst if item not in drop]


def parse_arguments(arguments: list[str]) -> tuple[list[str], list[str]]:
    """Split raw CLI words into ``(packages, flags)``.

    Anything starting with ``-`` is a flag; the rest are packages.
    """
    packages: list[str] = []
    flags: list[str] = []
    for arg in arguments:
        if not arg:
            continue
        if arg.startswith("-"):
            flags.append(arg)
        else:
            packages.append(arg)
    return packages, flags
