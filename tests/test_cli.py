from pathlib import Path
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from k8s_manifest import cli
from k8s_manifest.errors import ResourceNotFoundError


runner = CliRunner()

CONFIG_MAP = """apiVersion: v1
kind: ConfigMap
metadata:
  name: settings
data:
  mode: fast
"""


@pytest.fixture
def cluster(monkeypatch):
    fake = MagicMock()
    fake.get.side_effect = lambda obj: obj
    monkeypatch.setattr(cli, "_create_client", lambda manifest_config: fake)
    return fake


@pytest.fixture
def files(tmp_path: Path):
    manifest = tmp_path / "configmap.yaml"
    manifest.write_text(CONFIG_MAP)
    config = tmp_path / "config.yaml"
    config.write_text("settings:\n  poll_delay: 0\n  min_poll_interval: 0\n")
    return manifest, config


def test_commands_present() -> None:
    result = runner.invoke(cli.app, ["--help"])
    assert result.exit_code == 0
    for command in ("apply", "get", "update", "delete", "id"):
        assert command in result.stdout


def test_id_is_computed_offline(files) -> None:
    manifest, _ = files
    result = runner.invoke(cli.app, ["id", str(manifest), "--namespace", "team"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "team::v1::ConfigMap::settings"


def test_id_strict_namespace_fails(files) -> None:
    manifest, _ = files
    result = runner.invoke(cli.app, ["id", str(manifest), "--strict-namespace"])
    assert result.exit_code == 1


def test_apply_prints_identifier(cluster, files) -> None:
    manifest, config = files
    result = runner.invoke(cli.app, ["apply", str(manifest), "--config", str(config)])
    assert result.exit_code == 0, result.stdout
    assert "default::v1::ConfigMap::settings" in result.stdout
    created = cluster.create.call_args.args[0]
    assert created.namespace == "default"


def test_apply_reports_parse_errors(cluster, tmp_path: Path) -> None:
    manifest = tmp_path / "broken.yaml"
    manifest.write_text('{"apiVersion": "v1"')
    result = runner.invoke(cli.app, ["apply", str(manifest)])
    assert result.exit_code == 1
    assert "Failed to unmarshal manifest" in result.stdout
    cluster.create.assert_not_called()


def test_get_prints_json(cluster, files) -> None:
    _, config = files
    result = runner.invoke(
        cli.app,
        ["get", "team::v1::ConfigMap::settings", "--output", "json", "--config", str(config)],
    )
    assert result.exit_code == 0
    assert '"kind": "ConfigMap"' in result.stdout


def test_delete_waits_for_removal(cluster, files) -> None:
    _, config = files
    cluster.get.side_effect = ResourceNotFoundError("gone")
    result = runner.invoke(cli.app, ["delete", "team::v1::ConfigMap::settings", "--config", str(config)])
    assert result.exit_code == 0
    cluster.delete.assert_called_once()


def test_delete_rejects_bad_identifier(cluster) -> None:
    result = runner.invoke(cli.app, ["delete", "not-an-id"])
    assert result.exit_code == 1
    cluster.delete.assert_not_called()


def test_invalid_config_is_reported(cluster, files, tmp_path: Path) -> None:
    manifest, _ = files
    config = tmp_path / "bad-config.yaml"
    config.write_text("settings:\n  continuous_target_occurrence: 0\n")
    result = runner.invoke(cli.app, ["apply", str(manifest), "--config", str(config)])
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    cluster.create.assert_not_called()


def test_non_utf8_manifest_is_reported(cluster, tmp_path: Path) -> None:
    manifest = tmp_path / "latin1.yaml"
    manifest.write_bytes(b"apiVersion: v1\nkind: ConfigMap\nmetadata:\n  name: caf\xe9\n")
    result = runner.invoke(cli.app, ["apply", str(manifest)])
    assert result.exit_code == 1
    assert "not valid UTF-8" in result.stdout
    cluster.create.assert_not_called()
