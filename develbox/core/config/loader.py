"""
Configuration loader — reads .develbox/config.json into the config model.

This is the primary entry point for loading project configuration.
It parses the file, migrates the old v1 layout when it finds one,
validates against the Pydantic model, and returns a DevelboxConfig.

The file is parsed with PyYAML: JSON is valid YAML, so the generated
config.json loads as-is and hand-written YAML works too.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from develbox.core.errors import DevelboxError
from develbox.core.models.config import DevelboxConfig

logger = logging.getLogger(__name__)

CONFIG_DIR = ".develbox"
CONFIG_FILE = "config.json"

# Package manager commands a v1 config fell back to when it left them out
_V1_DEFAULT_OPERATIONS = {
    "add": "apk add {args}",
    "del": "apk del {args}",
    "update": "apk update {args}",
    "upgrade": "apk upgrade {args}",
    "search": "apk search {args}",
    "clean": "rm -rf /var/cache/apk/*",
}


class ConfigError(DevelboxError):
    """Raised when the project configuration is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for .develbox/config.json from ``start_dir`` upwards.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_DIR / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def project_root(config_path: Path) -> Path:
    """The project directory that owns ``.develbox/config.json``."""
    return config_path.resolve().parent.parent


def is_v1(data: dict[str, Any]) -> bool:
    """v1 nested the container under podman and named the installer pkg-manager."""
    podman = data.get("podman")
    image = data.get("image")
    return (isinstance(podman, dict) and "container" in podman) or (
        isinstance(image, dict) and "pkg-manager" in image
    )


def convert_v1(data: dict[str, Any]) -> dict[str, Any]:
    """Translate a v1 config mapping into the current layout."""
    image = data.get("image") or {}
    podman = data.get("podman") or {}
    container = podman.get("container") or {}
    binds = container.get("binds") or {}
    installer = image.get("pkg-manager") or {}

    operations = dict(_V1_DEFAULT_OPERATIONS)
    operations.update(installer.get("operations") or {})

    converted: dict[str, Any] = {
        "image": {
            "uri": image.get("uri", "alpine:latest"),
            "on_creation": image.get("on-creation", []),
            "on_finish": image.get("on-finish", []),
            "variables": image.get("env-vars", {}),
            "pkgmanager": {
                "operations": operations,
                "modifiers": installer.get("args-modifier", {}),
            },
        },
        "podman": {
            "path": podman.get("path", "podman"),
            "args": container.get("arguments", ["--net=host"]),
            "privileged": container.get("privileged", True),
            "rootless": podman.get("rootless", True),
            "onlybuild": podman.get("create-deletion", False),
        },
        "container": {
            "name": container.get("name", ""),
            "workdir": container.get("work-dir", "/code"),
            "shell": container.get("shell", "/bin/sh"),
            "rootuser": container.get("root-user", False),
            "binds": {
                "xorg": binds.get("xorg", True),
                "dev": binds.get("/dev", True),
                "variables": binds.get("env-vars", []),
            },
            "ports": container.get("ports", []),
            "mounts": container.get("mounts", []),
            "shared_folders": container.get("shared-folders", {}),
        },
        "commands": data.get("commands", {}),
        "packages": data.get("packages", []),
        "devpackages": data.get("devpackages", []),
        "userpkgs": data.get("userpkgs", {}),
        "experiments": container.get("experiments", {}),
    }
    return converted


def parse_config(data: Any, project_dir: Path) -> tuple[DevelboxConfig, bool]:
    """Validate a parsed config mapping.

    Returns:
        ``(config, migrated)`` where ``migrated`` tells whether the
        input was a v1 config that should be written back.

    Raises:
        ConfigError: If the data does not describe a valid config.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping, got {type(data).__name__}")

    migrated = is_v1(data)
    if migrated:
        logger.info("Converting v1 config to the current format")
        data = convert_v1(copy.deepcopy(data))

    try:
        config = DevelboxConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid develbox configuration: {e}") from e

    config.set_default_name(project_dir)
    return config, migrated


def load_config(path: Path | None = None) -> DevelboxConfig:
    """Load and validate the project configuration.

    A v1 file is migrated and written back in the new format.

    Args:
        path: Explicit path to config.json. If None, searches upward.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {CONFIG_DIR}/{CONFIG_FILE} found. "
            "Run develbox from a project directory, or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config syntax in {path}: {e}") from e

    config, migrated = parse_config(data, project_root(path))

    if migrated:
        from develbox.core.persistence.config_file import save_config

        try:
            save_config(config, path)
        except OSError as e:
            raise ConfigError(f"Cannot write migrated config to {path}: {e}") from e

    logger.info(
        "Loaded config for container '%s' (%d packages, %d dev packages)",
        config.container.name,
        len(config.packages),
        len(config.devpackages),
    )
    return config
