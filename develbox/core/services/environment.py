"""
Environment detection — where are we running, and as whom.

Decides whether a package operation can run directly or has to be
proxied to the host through the socket.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from develbox.core.models.config import DevelboxConfig

logger = logging.getLogger(__name__)

CONTAINER_MARKERS = ("/run/.containerenv", "/.dockerenv")
SOCKET_NAME = ".develbox.sock"

_TRUTHY = {"1", "t", "true", "y", "yes", "on"}


def inside_container() -> bool:
    """True inside a podman or docker container (Codespaces excluded)."""
    if os.environ.get("CODESPACES") == "true":
        return False
    found = any(Path(marker).exists() for marker in CONTAINER_MARKERS)
    logger.debug("Inside container: %s", found)
    return found


def is_root() -> bool:
    return os.geteuid() == 0


def should_use_proxy() -> bool:
    """Unprivileged inside the container: only the host can run the package manager."""
    return inside_container() and not is_root()


def client_socket_path() -> Path:
    """Socket path as seen from inside the container."""
    home = os.environ.get("HOME") or str(Path.home())
    return Path(home) / SOCKET_NAME


def server_socket_path(project_root: Path) -> Path:
    """Socket path on the host; this directory is the container user's $HOME."""
    return project_root / ".develbox" / "home" / SOCKET_NAME


def socket_experiment_enabled(config: DevelboxConfig | None = None) -> bool:
    """The socket proxy is opt-in via DEVELBOX_EXPERIMENTAL or the config."""
    if os.environ.get("DEVELBOX_EXPERIMENTAL", "").strip().lower() in _TRUTHY:
        return True
    return bool(config and config.experiments.sockets)
