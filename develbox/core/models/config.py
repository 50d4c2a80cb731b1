"""
Project config model — the contents of .develbox/config.json.

Mirrors the v2 config layout: image (with the package manager
template), podman, container, and the four package lists that make
up the manifest. Unknown keys are kept so a round-trip through
load/save never drops user data.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from develbox.core.models.operation import OperationKind


class Operations(BaseModel):
    """One command template per operation kind.

    Each template carries a single ``{args}`` placeholder. Any other
    ``{...}`` group is optional decoration kept only in auto mode,
    e.g. ``"apt install {-y} {args}"``. An empty string means the
    package manager does not support the operation.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    add: str = ""
    delete: str = Field(default="", alias="del")
    update: str = ""
    upgrade: str = ""
    search: str = ""
    clean: str = ""

    def template_for(self, kind: OperationKind) -> str | None:
        """Return the template for ``kind``, or None when there is none."""
        template = {
            OperationKind.ADD: self.add,
            OperationKind.DELETE: self.delete,
            OperationKind.UPDATE: self.update,
            OperationKind.UPGRADE: self.upgrade,
            OperationKind.SEARCH: self.search,
            OperationKind.CLEAN: self.clean,
        }[kind]
        return template or None


class PackageManagerTemplate(BaseModel):
    """Command templates plus per-kind package name modifiers.

    A modifier such as ``"nixpkgs.{package}"`` is applied to every
    package of an operation of that kind. Modifiers are keyed by the
    operation's wire value (``add``, ``del``, ...).
    """

    model_config = ConfigDict(extra="allow")

    operations: Operations = Field(default_factory=Operations)
    modifiers: dict[str, str] = Field(default_factory=dict)

    def modifier_for(self, kind: OperationKind) -> str:
        return self.modifiers.get(kind.value, "")


class Image(BaseModel):
    model_config = ConfigDict(extra="allow")

    uri: str = "alpine:latest"
    on_creation: list[str] = Field(default_factory=list)
    on_finish: list[str] = Field(default_factory=list)
    pkgmanager: PackageManagerTemplate = Field(default_factory=PackageManagerTemplate)
    variables: dict[str, str] = Field(default_factory=dict)


class Binds(BaseModel):
    model_config = ConfigDict(extra="allow")

    xorg: bool = True
    dev: bool = True
    variables: list[str] = Field(default_factory=list)


class Container(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    workdir: str = "/code"
    shell: str = "/bin/sh"
    rootuser: bool = False
    binds: Binds = Field(default_factory=Binds)
    ports: list[str] = Field(default_factory=list)
    mounts: list[str] = Field(default_factory=list)
    shared_folders: dict[str, Any] = Field(default_factory=dict)


class Podman(BaseModel):
    model_config = ConfigDict(extra="allow")

    path: str = "podman"
    args: list[str] = Field(default_factory=list)
    rootless: bool = True
    onlybuild: bool = False
    onlycommit: bool = False
    privileged: bool = True


class UserPackages(BaseModel):
    """Packages installed user-side (the image has to support it)."""

    model_config = ConfigDict(extra="allow")

    packages: list[str] = Field(default_factory=list)
    devpackages: list[str] = Field(default_factory=list)


class Experiments(BaseModel):
    model_config = ConfigDict(extra="allow")

    sockets: bool = False


class DevelboxConfig(BaseModel):
    """Root config model — serialized to .develbox/config.json.

    ``packages``/``devpackages`` and ``userpkgs`` together form the
    manifest: four lists of which at most one records any given
    package.
    """

    model_config = ConfigDict(extra="allow")

    image: Image = Field(default_factory=Image)
    podman: Podman = Field(default_factory=Podman)
    container: Container = Field(default_factory=Container)
    commands: dict[str, Any] = Field(default_factory=dict)
    packages: list[str] = Field(default_factory=list)
    devpackages: list[str] = Field(default_factory=list)
    userpkgs: UserPackages = Field(default_factory=UserPackages)
    experiments: Experiments = Field(default_factory=Experiments)

    @property
    def pkgmanager(self) -> PackageManagerTemplate:
        return self.image.pkgmanager

    def set_default_name(self, project_dir: Path) -> None:
        """Name the container after the project directory if unnamed."""
        if not self.container.name:
            self.container.name = default_container_name(project_dir)

    def manifest_lists(self) -> list[list[str]]:
        """The four package lists: runtime, dev, user runtime, user dev."""
        return [
            self.packages,
            self.devpackages,
            self.userpkgs.packages,
            self.userpkgs.devpackages,
        ]


def default_container_name(project_dir: Path) -> str:
    """``develbox-<sha256 of the directory name, 32 hex chars>``."""
    digest = hashlib.sha256(project_dir.name.encode("utf-8")).hexdigest()
    return f"develbox-{digest[:32]}"
