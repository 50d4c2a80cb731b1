"""
Shared test fixtures and configuration.
"""

import json
import logging
import shutil
import tempfile
from pathlib import Path

import pytest

from develbox.adapters.mock import MockContainerHandle
from develbox.core.models.config import DevelboxConfig

APK_OPERATIONS = {
    "add": "apk add {args} {-y}",
    "del": "apk del {args}",
    "update": "apk update {args}",
    "upgrade": "apk upgrade {args}",
    "search": "echo {args}",
    "clean": "",
}


def make_config_data(**overrides) -> dict:
    """A v2 config mapping with an apk-style package manager."""
    data = {
        "image": {
            "uri": "alpine:latest",
            "pkgmanager": {"operations": dict(APK_OPERATIONS), "modifiers": {}},
        },
        "podman": {"path": "podman"},
        "container": {"name": "develbox-test"},
        "packages": [],
        "devpackages": [],
        "userpkgs": {"packages": [], "devpackages": []},
    }
    data.update(overrides)
    return data


@pytest.fixture
def config() -> DevelboxConfig:
    """An in-memory config with empty package lists."""
    return DevelboxConfig.model_validate(make_config_data())


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project directory holding .develbox/config.json."""
    root = tmp_path / "project"
    (root / ".develbox").mkdir(parents=True)
    (root / ".develbox" / "config.json").write_text(json.dumps(make_config_data()))
    return root


@pytest.fixture
def config_file(project_dir: Path) -> Path:
    return project_dir / ".develbox" / "config.json"


@pytest.fixture
def mock_handle() -> MockContainerHandle:
    """A handle that records commands without running them."""
    return MockContainerHandle()


@pytest.fixture
def sock_path():
    """A short socket path; AF_UNIX paths are limited to ~100 bytes."""
    short_dir = Path(tempfile.mkdtemp(prefix="dbx-"))
    yield short_dir / "d.sock"
    shutil.rmtree(short_dir, ignore_errors=True)


@pytest.fixture(autouse=True)
def _restore_logging():
    """CLI tests call setup_logging(); undo it so caplog keeps working."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
