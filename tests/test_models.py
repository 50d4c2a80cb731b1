"""
Tests for domain models — Operation wire format and manifest bookkeeping.
"""

import json

import pytest
from pydantic import ValidationError

from develbox.core.models.config import DevelboxConfig, default_container_name
from develbox.core.models.operation import (
    Operation,
    OperationKind,
    parse_arguments,
    update_manifest,
)


def _manifest(config: DevelboxConfig) -> list[list[str]]:
    return [list(lst) for lst in config.manifest_lists()]


class TestOperationWire:
    """Tests for the JSON handshake format."""

    def test_wire_keys(self):
        op = Operation(kind=OperationKind.ADD, packages=["git"], dev_install=True)
        assert op.to_wire() == {
            "operation": "add",
            "packages": ["git"],
            "flags": [],
            "auto-install": False,
            "dev-install": True,
            "run-as-user": False,
        }

    @pytest.mark.parametrize("kind", list(OperationKind))
    def test_round_trip_through_json(self, kind):
        op = Operation(
            kind=kind,
            packages=["a", "b"],
            flags=["-v"],
            user_operation=True,
        )
        decoded = Operation.from_wire(json.loads(json.dumps(op.to_wire())))
        assert decoded == op

    def test_null_lists_decode_as_empty(self):
        op = Operation.from_wire(
            {"operation": "update", "packages": None, "flags": None}
        )
        assert op.packages == ()
        assert op.flags == ()

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            Operation.from_wire({"operation": "explode"})

    def test_not_an_object_rejected(self):
        with pytest.raises(ValidationError):
            Operation.from_wire(["add"])

    def test_frozen(self):
        op = Operation(kind=OperationKind.ADD)
        with pytest.raises(ValidationError):
            op.packages = ["x"]

    def test_lists_are_frozen_too(self):
        op = Operation(kind=OperationKind.ADD, packages=["git"], flags=["-y"])
        assert op.packages == ("git",)
        with pytest.raises(AttributeError):
            op.packages.append("make")
        with pytest.raises(AttributeError):
            op.flags.append("--force")

    def test_describe_mentions_kind(self):
        assert Operation(kind=OperationKind.SEARCH).describe().startswith("search")


class TestUpdateManifest:
    """Tests for recording successful operations in the package lists."""

    def test_add_appends_to_packages(self, config: DevelboxConfig):
        update_manifest(Operation(kind=OperationKind.ADD, packages=["git"]), config)
        assert config.packages == ["git"]

    def test_add_dev(self, config: DevelboxConfig):
        op = Operation(kind=OperationKind.ADD, packages=["gdb"], dev_install=True)
        update_manifest(op, config)
        assert config.devpackages == ["gdb"]
        assert config.packages == []

    def test_add_user_scoped(self, config: DevelboxConfig):
        op = Operation(kind=OperationKind.ADD, packages=["rustup"], user_operation=True)
        update_manifest(op, config)
        assert config.userpkgs.packages == ["rustup"]
        assert config.packages == []

    def test_add_is_idempotent(self, config: DevelboxConfig):
        op = Operation(kind=OperationKind.ADD, packages=["git", "make"])
        update_manifest(op, config)
        once = _manifest(config)
        update_manifest(op, config)
        assert _manifest(config) == once

    def test_add_collapses_duplicates(self, config: DevelboxConfig):
        op = Operation(kind=OperationKind.ADD, packages=["git", "make", "git"])
        update_manifest(op, config)
        assert config.packages == ["git", "make"]

    def test_add_moves_between_lists(self, config: DevelboxConfig):
        update_manifest(Operation(kind=OperationKind.ADD, packages=["gdb"]), config)
        op = Operation(kind=OperationKind.ADD, packages=["gdb"], dev_install=True)
        update_manifest(op, config)
        assert config.packages == []
        assert config.devpackages == ["gdb"]

    def test_lists_stay_mutually_exclusive(self, config: DevelboxConfig):
        for dev in (False, True):
            for user in (False, True):
                op = Operation(
                    kind=OperationKind.ADD,
                    packages=["shared"],
                    dev_install=dev,
                    user_operation=user,
                )
                update_manifest(op, config)
                holders = [lst for lst in config.manifest_lists() if "shared" in lst]
                assert len(holders) == 1
                assert holders[0].count("shared") == 1

    def test_delete_removes_from_runtime_and_dev(self, config: DevelboxConfig):
        config.packages.extend(["a", "b"])
        config.devpackages.extend(["a", "c"])
        update_manifest(Operation(kind=OperationKind.DELETE, packages=["a"]), config)
        assert config.packages == ["b"]
        assert config.devpackages == ["c"]

    def test_delete_respects_scope(self, config: DevelboxConfig):
        config.packages.append("a")
        config.userpkgs.packages.append("a")
        op = Operation(kind=OperationKind.DELETE, packages=["a"], user_operation=True)
        update_manifest(op, config)
        assert config.userpkgs.packages == []
        assert config.packages == ["a"]

    def test_delete_missing_is_noop(self, config: DevelboxConfig):
        config.packages.append("a")
        update_manifest(Operation(kind=OperationKind.DELETE, packages=["zzz"]), config)
        assert config.packages == ["a"]

    @pytest.mark.parametrize(
        "kind",
        [
            OperationKind.UPDATE,
            OperationKind.UPGRADE,
            OperationKind.SEARCH,
            OperationKind.CLEAN,
        ],
    )
    def test_other_kinds_leave_manifest_alone(self, config: DevelboxConfig, kind):
        config.packages.append("a")
        update_manifest(Operation(kind=kind, packages=["b"]), config)
        assert _manifest(config) == [["a"], [], [], []]


class TestParseArguments:
    """Tests for splitting raw CLI words."""

    def test_split(self):
        packages, flags = parse_arguments(["git", "-y", "make", "--no-cache"])
        assert packages == ["git", "make"]
        assert flags == ["-y", "--no-cache"]

    def test_empty_words_skipped(self):
        assert parse_arguments(["", "git"]) == (["git"], [])

    def test_nothing(self):
        assert parse_arguments([]) == ([], [])


class TestDevelboxConfig:
    """Tests for the config model."""

    def test_defaults(self):
        config = DevelboxConfig()
        assert config.image.uri == "alpine:latest"
        assert config.podman.path == "podman"
        assert config.container.workdir == "/code"
        assert config.experiments.sockets is False

    def test_template_for_empty_is_none(self, config: DevelboxConfig):
        assert config.pkgmanager.operations.template_for(OperationKind.CLEAN) is None
        assert (
            config.pkgmanager.operations.template_for(OperationKind.DELETE)
            == "apk del {args}"
        )

    def test_del_alias_survives_dump(self, config: DevelboxConfig):
        data = config.model_dump(mode="json", by_alias=True)
        assert data["image"]["pkgmanager"]["operations"]["del"] == "apk del {args}"

    def test_unknown_keys_kept(self):
        config = DevelboxConfig.model_validate({"custom": {"x": 1}})
        assert config.model_dump()["custom"] == {"x": 1}

    def test_default_name(self, tmp_path):
        name = default_container_name(tmp_path / "myproject")
        assert name.startswith("develbox-")
        assert len(name) == len("develbox-") + 32

    def test_set_default_name_keeps_explicit(self, config: DevelboxConfig, tmp_path):
        config.set_default_name(tmp_path)
        assert config.container.name == "develbox-test"
