"""CliApp: Typer アプリケーション定義。

サブコマンド:
    resolve: 設定を解決し JSON として stdout に出力する。
    options: 設定項目をドキュメントセクションごとに一覧表示する。
    overlays: バンドルオーバーレイ名を一覧表示する。
"""

from __future__ import annotations

import importlib.metadata
import json
import logging
import random
import sys
from itertools import groupby
from typing import Annotated

import typer

from harnessconf.config import (
    ConfigError,
    FieldDescriptor,
    bundled_overlay_names,
    resolve_config,
    walk_schema,
)
from harnessconf.models.config import HarnessConfig
from harnessconf.models.exit_code import ExitCode

_DEFAULT_SECTION = "General"
_REDACTED = "********"
_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = typer.Typer(
    name="harnessconf",
    help=(
        "Layered configuration resolver for the end-to-end test harness.\n\n"
        "Precedence (lowest to highest): defaults, bundled overlays, "
        "custom overlay, environment variables."
    ),
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    """--version 指定時にバージョン番号を出力して終了する。"""
    if value:
        print(importlib.metadata.version("harnessconf"))
        raise typer.Exit()


def main() -> None:
    """CLI エントリポイント。pyproject.toml の [project.scripts] から呼び出される。"""
    app()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log resolution steps to stderr.")
    ] = False,
) -> None:
    """Resolve and inspect harness configuration."""
    if verbose:
        logging.basicConfig(level=logging.INFO, stream=sys.stderr, format=_LOG_FORMAT)


@app.command()
def resolve(
    config: Annotated[
        list[str] | None,
        typer.Option(
            "--config",
            "-c",
            help="Bundled overlay to apply. Repeat to apply several in order.",
        ),
    ] = None,
    custom_config: Annotated[
        str | None,
        typer.Option(
            "--custom-config", help="Overlay file relative to the working directory."
        ),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Seed for generated random strings."),
    ] = None,
) -> None:
    """Resolve the configuration and print it as JSON."""
    rng = random.Random(seed) if seed is not None else None
    try:
        resolved = resolve_config(
            HarnessConfig(), config or (), custom_config, rng=rng
        )
    except ConfigError as e:
        print(
            f"Error: {e}\n"
            "Run 'harnessconf overlays' to list bundled overlays "
            "or 'harnessconf options' to list settings.",
            file=sys.stderr,
        )
        raise typer.Exit(code=ExitCode.CONFIG_ERROR) from None

    print(_redacted_json(resolved))


@app.command()
def options(
    section: Annotated[
        str | None, typer.Option("--section", help="Only show this section.")
    ] = None,
) -> None:
    """List settings grouped by documentation section."""
    rows = sorted(
        (
            (path, descriptor)
            for path, descriptor in walk_schema(HarnessConfig)
            if descriptor.env is not None or descriptor.default is not None
        ),
        key=lambda row: row[1].section or _DEFAULT_SECTION,
    )
    grouped = {
        name: list(items)
        for name, items in groupby(
            rows, key=lambda row: row[1].section or _DEFAULT_SECTION
        )
    }
    if section is not None:
        if section not in grouped:
            available = ", ".join(grouped)
            print(
                f"Error: Section '{section}' not found.\nAvailable sections: {available}",
                file=sys.stderr,
            )
            raise typer.Exit(code=ExitCode.INPUT_ERROR)
        grouped = {section: grouped[section]}

    for index, (name, items) in enumerate(grouped.items()):
        if index:
            print()
        _print_section(name, items)


@app.command()
def overlays() -> None:
    """List bundled overlay names."""
    for name in bundled_overlay_names():
        print(name)


# --- resolve サブコマンド表示ヘルパー ---


def _redacted_json(config: HarnessConfig) -> str:
    """解決済み設定を JSON 化する。secret 指定の空でない値はマスクする。"""
    data = config.model_dump(mode="json")
    for path, descriptor in walk_schema(type(config)):
        if not descriptor.secret:
            continue
        *parents, leaf = path.split(".")
        owner = data
        for part in parents:
            owner = owner[part]
        if owner[leaf]:
            owner[leaf] = _REDACTED
    return json.dumps(data, indent=2)


# --- options サブコマンド表示ヘルパー ---

_LIST_PATH_WIDTH = 34
_LIST_TYPE_WIDTH = 13
_LIST_ENV_WIDTH = 28


def _print_section(name: str, items: list[tuple[str, FieldDescriptor]]) -> None:
    """1 セクション分の設定項目をテーブル形式で stdout に表示する。"""
    print(f"[{name}]")
    header = (
        f"{'OPTION':<{_LIST_PATH_WIDTH}}"
        f"{'TYPE':<{_LIST_TYPE_WIDTH}}"
        f"{'ENV':<{_LIST_ENV_WIDTH}}"
        f"{'DEFAULT'}"
    )
    print(header)
    print("-" * len(header))
    for path, descriptor in items:
        line = (
            f"{path:<{_LIST_PATH_WIDTH}}"
            f"{descriptor.kind.value:<{_LIST_TYPE_WIDTH}}"
            f"{descriptor.env or '-':<{_LIST_ENV_WIDTH}}"
            f"{descriptor.default if descriptor.default is not None else '-'}"
        )
        print(line)
