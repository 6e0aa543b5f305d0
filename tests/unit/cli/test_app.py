"""Typer app のテスト。

resolve: JSON 出力, オーバーレイ指定, シード, 設定エラーの終了コード
options: セクション別一覧, 未知セクション
overlays: バンドルオーバーレイ一覧

NOTE: CliRunner の result.output は stdout と stderr の混合出力であるため、
JSON のパースには result.stdout を使用する。
"""

from __future__ import annotations

import json
import tempfile
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from harnessconf.cli import app
from harnessconf.config import bundled_overlay_names, walk_schema
from harnessconf.models.config import HarnessConfig
from harnessconf.models.exit_code import ExitCode

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """設定に関係する環境変数を除去し、一時ディレクトリを tmp_path 配下に作る。"""
    for _, descriptor in walk_schema(HarnessConfig):
        if descriptor.env is not None:
            monkeypatch.delenv(descriptor.env, raising=False)
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    yield


class TestAppHelp:
    """--help の動作を検証する。"""

    def test_help_exits_with_zero(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0

    def test_help_shows_subcommands(self) -> None:
        result = runner.invoke(app, ["--help"])
        for command in ("resolve", "options", "overlays"):
            assert command in result.output


class TestVersion:
    """--version はバージョン番号を出力する。"""

    def test_prints_version(self) -> None:
        with patch("importlib.metadata.version", return_value="9.9.9"):
            result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "9.9.9" in result.output


class TestResolveCommand:
    """resolve サブコマンド。"""

    def test_defaults_as_json(self) -> None:
        result = runner.invoke(app, ["resolve"])
        assert result.exit_code == ExitCode.SUCCESS
        data = json.loads(result.stdout)
        assert data["ocm"]["env"] == "prod"
        assert data["cluster"]["expiry_in_minutes"] == 210

    def test_bundled_overlays_in_order(self) -> None:
        result = runner.invoke(app, ["resolve", "-c", "prod", "--config", "stage"])
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.stdout)["ocm"]["env"] == "stage"

    def test_custom_overlay(self, tmp_path: Path) -> None:
        (tmp_path / "local.toml").write_text('[cluster]\nversion = "4.15.0"\n')
        result = runner.invoke(app, ["resolve", "--custom-config", "local.toml"])
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.stdout)["cluster"]["version"] == "4.15.0"

    def test_environment_override(self) -> None:
        result = runner.invoke(app, ["resolve"], env={"CLUSTER_VERSION": "4.16.1"})
        assert result.exit_code == ExitCode.SUCCESS
        assert json.loads(result.stdout)["cluster"]["version"] == "4.16.1"

    def test_seed_makes_random_strings_reproducible(self) -> None:
        first = json.loads(runner.invoke(app, ["resolve", "--seed", "3"]).stdout)
        second = json.loads(runner.invoke(app, ["resolve", "--seed", "3"]).stdout)
        assert first["cluster"]["name"] == second["cluster"]["name"]
        assert first["suffix"] == second["suffix"]

    def test_unknown_overlay_exits_with_config_error(self) -> None:
        result = runner.invoke(app, ["resolve", "-c", "nope"])
        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "bundled overlay not found: 'nope'" in result.output
        assert "harnessconf overlays" in result.output

    def test_missing_custom_overlay_exits_with_config_error(self) -> None:
        result = runner.invoke(app, ["resolve", "--custom-config", "missing.toml"])
        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "missing.toml" in result.output

    def test_credentials_masked(self) -> None:
        result = runner.invoke(
            app,
            ["resolve"],
            env={"OCM_TOKEN": "s3cr3t-token", "PROMETHEUS_BEARER_TOKEN": "b34r3r"},
        )
        assert result.exit_code == ExitCode.SUCCESS
        assert "s3cr3t-token" not in result.output
        assert "b34r3r" not in result.output
        data = json.loads(result.stdout)
        assert data["ocm"]["token"] == "********"
        assert data["prometheus"]["bearer_token"] == "********"

    def test_unset_credentials_stay_empty(self) -> None:
        data = json.loads(runner.invoke(app, ["resolve"]).stdout)
        assert data["ocm"]["token"] == ""
        assert data["prometheus"]["bearer_token"] == ""

    def test_invalid_environment_value(self) -> None:
        result = runner.invoke(app, ["resolve"], env={"MULTI_AZ": "sometimes"})
        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "cluster.multi_az" in result.output


class TestOptionsCommand:
    """options サブコマンド。"""

    def test_lists_all_sections(self) -> None:
        result = runner.invoke(app, ["options"])
        assert result.exit_code == ExitCode.SUCCESS
        for section in ("[Cluster]", "[Tests]", "[Addons]", "[Prometheus]"):
            assert section in result.output

    def test_single_section(self) -> None:
        result = runner.invoke(app, ["options", "--section", "Cluster"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "cluster.expiry_in_minutes" in result.output
        assert "CLUSTER_EXPIRY_IN_MINUTES" in result.output
        assert "210" in result.output
        assert "[Tests]" not in result.output

    def test_fields_without_settings_hidden(self) -> None:
        result = runner.invoke(app, ["options"])
        assert "addons.parameters" not in result.output
        assert "kubeconfig.contents" not in result.output

    def test_unknown_section(self) -> None:
        result = runner.invoke(app, ["options", "--section", "Nope"])
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "Section 'Nope' not found" in result.output


class TestOverlaysCommand:
    """overlays サブコマンド。"""

    def test_lists_bundled_overlays(self) -> None:
        result = runner.invoke(app, ["overlays"])
        assert result.exit_code == ExitCode.SUCCESS
        assert result.stdout.split() == list(bundled_overlay_names())
