"""
Develbox — CLI entrypoint.

Usage:
    develbox --help
    develbox add git make
    develbox del --dev gdb
    develbox setup
    develbox socket
"""

from __future__ import annotations

from pathlib import Path

import click

from develbox.core.observability.logging_config import configure_logging

from develbox import __version__


@click.group()
@click.version_option(version=__version__, prog_name="develbox")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to .develbox/config.json (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Develbox - CLI tool useful for creating dev environments."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    configure_logging(debug=debug, verbose=verbose, quiet=quiet)


# ── Register sub-command groups ─────────────────────────────────

from develbox.ui.cli.pkg import ALIASES, COMMANDS  # noqa: E402
from develbox.ui.cli.socket import socket_cmd  # noqa: E402

for _command in COMMANDS:
    cli.add_command(_command)
for _alias, _target in ALIASES.items():
    cli.add_command(cli.commands[_target], name=_alias)

cli.add_command(socket_cmd)


if __name__ == "__main__":
    cli()
