"""
Tests for environment detection — container markers, proxy decision, paths.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from develbox.core.models.config import DevelboxConfig
from develbox.core.services import environment


@pytest.fixture
def no_codespaces(monkeypatch):
    monkeypatch.delenv("CODESPACES", raising=False)


class TestInsideContainer:
    def test_marker_present(self, tmp_path, no_codespaces):
        marker = tmp_path / ".containerenv"
        marker.touch()
        with patch.object(environment, "CONTAINER_MARKERS", (str(marker),)):
            assert environment.inside_container()

    def test_no_marker(self, tmp_path, no_codespaces):
        with patch.object(environment, "CONTAINER_MARKERS", (str(tmp_path / "nope"),)):
            assert not environment.inside_container()

    def test_codespaces_excluded(self, tmp_path, monkeypatch):
        marker = tmp_path / ".dockerenv"
        marker.touch()
        monkeypatch.setenv("CODESPACES", "true")
        with patch.object(environment, "CONTAINER_MARKERS", (str(marker),)):
            assert not environment.inside_container()


class TestShouldUseProxy:
    @pytest.mark.parametrize(
        "inside, root, expected",
        [
            (True, False, True),
            (True, True, False),
            (False, False, False),
            (False, True, False),
        ],
    )
    def test_matrix(self, inside, root, expected):
        with patch.object(environment, "inside_container", return_value=inside), \
                patch.object(environment, "is_root", return_value=root):
            assert environment.should_use_proxy() is expected


class TestSocketPaths:
    def test_client_path_in_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert environment.client_socket_path() == tmp_path / ".develbox.sock"

    def test_server_path_under_project(self, tmp_path):
        assert environment.server_socket_path(tmp_path) == (
            tmp_path / ".develbox" / "home" / ".develbox.sock"
        )

    def test_same_file_seen_from_both_sides(self, monkeypatch, tmp_path):
        # .develbox/home is the container user's $HOME
        monkeypatch.setenv("HOME", str(tmp_path / ".develbox" / "home"))
        assert environment.client_socket_path() == environment.server_socket_path(tmp_path)


class TestSocketExperiment:
    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("DEVELBOX_EXPERIMENTAL", raising=False)
        assert not environment.socket_experiment_enabled(DevelboxConfig())

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes"])
    def test_env_var(self, monkeypatch, value):
        monkeypatch.setenv("DEVELBOX_EXPERIMENTAL", value)
        assert environment.socket_experiment_enabled()

    def test_env_var_false(self, monkeypatch):
        monkeypatch.setenv("DEVELBOX_EXPERIMENTAL", "0")
        assert not environment.socket_experiment_enabled()

    def test_config_flag(self, monkeypatch):
        monkeypatch.delenv("DEVELBOX_EXPERIMENTAL", raising=False)
        config = DevelboxConfig.model_validate({"experiments": {"sockets": True}})
        assert environment.socket_experiment_enabled(config)


def test_socket_name():
    assert Path(environment.client_socket_path()).name == environment.SOCKET_NAME
