"""
CLI commands for package operations inside the dev container.

Thin wrappers over ``develbox.core.services.pkg_ops`` (direct run) and
``develbox.core.services.proxy_client`` (unprivileged, inside the
container). Option parsing is disabled: every word after the command is
either one of the few develbox switches below or handed to the package
manager untouched.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from develbox.core.errors import DevelboxError
from develbox.core.models.operation import Operation, OperationKind, parse_arguments

logger = logging.getLogger(__name__)

# Raw arguments: click must not treat -y, --no-cache... as its own options
_RAW = {"ignore_unknown_options": True, "help_option_names": []}

_DEV = ("--dev", "-D")
_USER = ("--user", "-U")
_HELP = ("--help", "-h")
_PKG_HELP = ("--pkg-help", "-p")

_SWITCHES_HELP = """
\b
Options:
  -D, --dev       Record the packages as development dependencies.
  -U, --user      Run the package manager as your user instead of root.
  -p, --pkg-help  Show the package manager's own help for this command.
  -h, --help      Show this message and exit.

Any other option is passed to the package manager as-is.
"""


def split_words(args: tuple[str, ...] | list[str]) -> tuple[list[str], list[str], dict[str, bool]]:
    """Separate develbox switches from package manager words.

    Returns:
        ``(packages, flags, switches)`` where ``switches`` has the keys
        ``dev``, ``user`` and ``help``.
    """
    switches = {"dev": False, "user": False, "help": False}
    rest: list[str] = []
    for word in args:
        if word in _DEV:
            switches["dev"] = True
        elif word in _USER:
            switches["user"] = True
        elif word in _HELP:
            switches["help"] = True
        elif word in _PKG_HELP:
            rest.append("--help")
        else:
            rest.append(word)
    packages, flags = parse_arguments(rest)
    return packages, flags, switches


# ── Dispatch ────────────────────────────────────────────────────


def _config_path(ctx: click.Context) -> Path | None:
    from develbox.core.config.loader import find_config_file

    config_path: Path | None = ctx.obj.get("config_path")
    return config_path or find_config_file()


def ensure_started(adapter, container: str) -> None:
    """Make sure the project container exists and is running."""
    if not adapter.exists(container):
        raise DevelboxError(
            f"Container '{container}' does not exist. Create it before managing packages."
        )
    if adapter.is_running(container):
        return
    logger.info("Starting container %s", container)
    try:
        adapter.start(container)
    except RuntimeError as e:
        raise DevelboxError(f"Failed to start container '{container}': {e}") from e


def dispatch(ctx: click.Context, op: Operation) -> None:
    """Run ``op`` through the proxy or directly, whichever applies here."""
    from develbox.core.services.environment import (
        client_socket_path,
        inside_container,
        should_use_proxy,
    )

    if should_use_proxy():
        from develbox.core.services.proxy_client import send_operation

        logger.debug("Not root inside the container, using the socket proxy")
        send_operation(op, client_socket_path())
        return

    from develbox.core.config.loader import load_config
    from develbox.core.persistence.config_file import persist_to
    from develbox.core.services.pkg_ops import run_operation

    path = _config_path(ctx)
    config = load_config(path)
    handle = direct_handle(config, inside_container())

    persist = persist_to(path) if path is not None else None
    run_operation(op, config, handle, persist=persist)


def direct_handle(config, in_container: bool):
    """The handle for running as root without the proxy."""
    from develbox.adapters.containers.podman import PodmanAdapter
    from develbox.adapters.shell.command import LocalShellHandle

    if in_container:
        return LocalShellHandle()
    handle = PodmanAdapter(config.podman.path)
    ensure_started(handle, config.container.name)
    return handle


def _run_kind(ctx: click.Context, kind: OperationKind, args: tuple[str, ...]) -> None:
    packages, flags, switches = split_words(args)

    if switches["help"]:
        click.echo(ctx.get_help())
        return
    if kind is OperationKind.UPDATE and not packages and not flags:
        click.echo(ctx.get_help())
        return

    op = Operation(
        kind=kind,
        packages=packages,
        flags=flags,
        dev_install=switches["dev"],
        user_operation=switches["user"],
    )

    try:
        dispatch(ctx, op)
    except (DevelboxError, OSError) as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _pkg_command(kind: OperationKind, name: str, summary: str) -> click.Command:
    @click.command(name, context_settings=_RAW, help=summary + "\n" + _SWITCHES_HELP)
    @click.argument("args", nargs=-1, type=click.UNPROCESSED)
    @click.pass_context
    def command(ctx: click.Context, args: tuple[str, ...]) -> None:
        ctx.ensure_object(dict)
        _run_kind(ctx, kind, args)

    return command


# ── Commands ────────────────────────────────────────────────────

add = _pkg_command(
    OperationKind.ADD,
    "add",
    "Install packages into the container and record them in the config.",
)
delete = _pkg_command(
    OperationKind.DELETE,
    "del",
    "Remove packages from the container and from the config.",
)
update = _pkg_command(
    OperationKind.UPDATE,
    "update",
    "Update the package databases in the container.\n\n"
    "To actually update packages use upgrade instead.",
)
upgrade = _pkg_command(
    OperationKind.UPGRADE,
    "upgrade",
    "Upgrade the packages installed in the container.",
)
search = _pkg_command(
    OperationKind.SEARCH,
    "search",
    "Search the package manager's repositories.",
)
clean = _pkg_command(
    OperationKind.CLEAN,
    "clean",
    "Clean the package manager cache in the container.",
)


@click.command("setup")
@click.pass_context
def setup(ctx: click.Context) -> None:
    """Install every package recorded in the config into the container.

    Runs update, then add for the project and user package lists, then
    clean, without prompting. Use it after (re)creating the container.
    """
    from develbox.core.config.loader import load_config
    from develbox.core.services.environment import inside_container, should_use_proxy
    from develbox.core.services.pkg_ops import install_manifest

    ctx.ensure_object(dict)
    try:
        if should_use_proxy():
            raise DevelboxError(
                "setup needs root. Run it on the host or as root in the container."
            )
        config = load_config(_config_path(ctx))
        commands = install_manifest(config, direct_handle(config, inside_container()))
    except (DevelboxError, OSError) as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if not commands:
        click.echo("Nothing to install.")
        return
    click.secho(f"✅ Installed the recorded packages ({len(commands)} commands)", fg="green")


COMMANDS = (add, delete, update, upgrade, search, clean, setup)

# alias -> canonical command name
ALIASES = {
    "install": "add",
    "remove": "del",
    "delete": "del",
    "upd": "update",
    "dup": "upgrade",
    "srch": "search",
}
