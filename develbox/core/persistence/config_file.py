"""
Config file persistence — atomic write-back of .develbox/config.json.

This is the manifest persistence hook: after a package operation
succeeds, the updated package lists are written here. Writes are
atomic (write to temp file, then rename) so a crash mid-write never
leaves a truncated config behind.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from develbox.core.models.config import DevelboxConfig

logger = logging.getLogger(__name__)


def save_config(config: DevelboxConfig, path: Path) -> None:
    """Save the config as indented JSON (atomic write).

    Args:
        config: The config to save.
        path: Target path, normally ``<project>/.develbox/config.json``.

    Raises:
        OSError: If the directory or file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json", by_alias=True)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    _fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=".config_",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with open(_fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to save config to %s", path)
        raise
    logger.info("Writing config file to %s", path)


def persist_to(path: Path):
    """Bind ``save_config`` to a path, as a persist hook."""

    def _persist(config: DevelboxConfig) -> None:
        save_config(config, path)

    return _persist
