"""
Package operation processing — synthesize, run, record.

Shared by the CLI (running directly as root or from the host) and by
the proxy server (running on behalf of an unprivileged caller). The
manifest is recorded only after the command exits successfully; a
failed transaction leaves the config untouched.
"""

from __future__ import annotations

import logging
from typing import Callable

from develbox.adapters.base import ContainerHandle, Identity, Stream
from develbox.core.errors import ChildProcessFailure, ManifestPersistError
from develbox.core.models.config import DevelboxConfig
from develbox.core.models.operation import Operation, OperationKind, update_manifest
from develbox.core.services.pkg_command import synthesize

logger = logging.getLogger(__name__)

PersistHook = Callable[[DevelboxConfig], None]


def identity_for(op: Operation) -> Identity:
    return Identity.USER if op.user_operation else Identity.ROOT


def build_command(op: Operation, config: DevelboxConfig) -> tuple[str, Identity, str]:
    """Resolve ``(container, identity, command)`` without running anything.

    Raises:
        UnsupportedOperationKind: If the config has no template for the kind.
    """
    command = synthesize(op, config.pkgmanager)
    logger.info("Creating command to %s packages: %s", op.kind.value, command)
    return config.container.name, identity_for(op), command


def run_operation(
    op: Operation,
    config: DevelboxConfig,
    handle: ContainerHandle,
    persist: PersistHook | None = None,
    stdin: Stream = None,
    stdout: Stream = None,
    stderr: Stream = None,
) -> None:
    """Run ``op`` in the container and record it in ``config``.

    Args:
        op: The operation to perform.
        config: Project config; its package lists are updated in place.
        handle: Runtime used to execute the command.
        persist: Called with the updated config after a successful run.
        stdin, stdout, stderr: Streams for the child (None inherits ours).

    Raises:
        UnsupportedOperationKind: Before anything is spawned.
        ChildProcessFailure: If the command exits non-zero.
        ManifestPersistError: If ``persist`` fails. The in-memory
            lists stay updated.
    """
    container, identity, command = build_command(op, config)
    returncode = handle.run_as(
        container, identity, command, stdin=stdin, stdout=stdout, stderr=stderr
    )
    if returncode != 0:
        raise ChildProcessFailure(command, returncode)

    update_manifest(op, config)
    if persist is None:
        return
    try:
        persist(config)
    except OSError as e:
        raise ManifestPersistError(f"Failed to save the package lists: {e}") from e


# ── Manifest install ────────────────────────────────────────────


def manifest_operations(config: DevelboxConfig) -> list[Operation]:
    """The operations that bring a fresh container up to the manifest.

    Refresh the package databases, install the project packages as
    root, then the user-scoped ones (rootless containers only), then
    clean the cache. All of them run unattended, so ``{...}`` groups in
    the templates are kept. Kinds without a template are skipped.
    """
    templates = config.pkgmanager.operations
    ops: list[Operation] = []

    if templates.template_for(OperationKind.UPDATE) is not None:
        ops.append(Operation(kind=OperationKind.UPDATE, auto_install=True))

    root_packages = [*config.packages, *config.devpackages]
    if root_packages:
        ops.append(
            Operation(kind=OperationKind.ADD, packages=root_packages, auto_install=True)
        )

    user_packages = [*config.userpkgs.packages, *config.userpkgs.devpackages]
    if user_packages and config.podman.rootless:
        ops.append(
            Operation(
                kind=OperationKind.ADD,
                packages=user_packages,
                auto_install=True,
                user_operation=True,
            )
        )

    if ops and templates.template_for(OperationKind.CLEAN) is not None:
        ops.append(Operation(kind=OperationKind.CLEAN, auto_install=True))
    return ops


def install_manifest(
    config: DevelboxConfig,
    handle: ContainerHandle,
    stdin: Stream = None,
    stdout: Stream = None,
    stderr: Stream = None,
) -> list[str]:
    """Install every package recorded in ``config`` into the container.

    The package lists are only read: they already describe what is
    installed, so nothing is recorded or persisted.

    Returns:
        The commands that ran, in order.

    Raises:
        ChildProcessFailure: On the first command that exits non-zero.
    """
    commands: list[str] = []
    for op in manifest_operations(config):
        container, identity, command = build_command(op, config)
        returncode = handle.run_as(
            container, identity, command, stdin=stdin, stdout=stdout, stderr=stderr
        )
        if returncode != 0:
            raise ChildProcessFailure(command, returncode)
        commands.append(command)

    logger.info("Installed the manifest with %d commands", len(commands))
    return commands
