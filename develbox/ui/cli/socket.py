"""
CLI command for the package proxy socket (experimental).

Runs on the host. Lets an unprivileged user inside the container
install packages: ``develbox add`` there connects to this socket and
the host runs the package manager as root on its behalf.
"""

from __future__ import annotations

import logging
import signal
import sys

import click

from develbox.core.errors import DevelboxError

logger = logging.getLogger(__name__)


@click.command("socket")
@click.pass_context
def socket_cmd(ctx: click.Context) -> None:
    """Serve package operations for the container over a Unix socket.

    Used so packages can be installed from inside the container without
    being root there. Stop with Ctrl+C.
    """
    from develbox.adapters.containers.podman import PodmanAdapter
    from develbox.core.config.loader import (
        ConfigError,
        find_config_file,
        load_config,
        project_root,
    )
    from develbox.core.persistence.config_file import persist_to
    from develbox.core.services.environment import (
        server_socket_path,
        socket_experiment_enabled,
    )
    from develbox.core.services.proxy_server import ProxyServer
    from develbox.ui.cli.pkg import ensure_started

    ctx.ensure_object(dict)

    try:
        path = ctx.obj.get("config_path") or find_config_file()
        if path is None:
            raise ConfigError("No .develbox/config.json found. Run from a project directory.")
        config = load_config(path)

        if not socket_experiment_enabled(config):
            click.secho(
                "⚠️  The socket proxy is experimental. Enable it with "
                "DEVELBOX_EXPERIMENTAL=1 or experiments.sockets in the config.",
                fg="yellow",
                err=True,
            )
            sys.exit(1)

        adapter = PodmanAdapter(config.podman.path)
        ensure_started(adapter, config.container.name)

        server = ProxyServer(
            server_socket_path(project_root(path)),
            config,
            adapter,
            persist=persist_to(path),
        )
        server.start()
    except (DevelboxError, OSError) as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    def _terminate(signum, frame):
        raise KeyboardInterrupt

    previous = signal.signal(signal.SIGTERM, _terminate)
    click.secho(f"🔌 Listening on {server.socket.path}", fg="cyan", err=True)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except OSError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    finally:
        server.stop()
        signal.signal(signal.SIGTERM, previous)
