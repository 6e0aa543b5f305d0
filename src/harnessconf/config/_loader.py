"""オーバーレイローダー。

バンドルオーバーレイ（パッケージリソース）とカスタムオーバーレイ（ファイル）を
バイト列として読み込み、TOML としてパースし、設定スキーマへ構造的にマージする。
"""

from __future__ import annotations

import os
import tomllib
from importlib.resources import files
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from harnessconf.config._errors import (
    OverlayNotFoundError,
    OverlayParseError,
    OverlayReadError,
)
from harnessconf.config._schema import ConfigSchema, describe_schema

BUILTIN_PACKAGE: Final[str] = "harnessconf.config._builtin"
"""バンドルオーバーレイを格納するパッケージ。"""

OVERLAY_SUFFIX: Final[str] = ".toml"


def bundled_overlay_names() -> tuple[str, ...]:
    """バンドルオーバーレイ名を名前順で返す。"""
    return tuple(
        sorted(
            resource.name.removesuffix(OVERLAY_SUFFIX)
            for resource in files(BUILTIN_PACKAGE).iterdir()
            if resource.name.endswith(OVERLAY_SUFFIX)
        )
    )


def load_bundled_overlay(name: str) -> bytes:
    """バンドルオーバーレイをパッケージリソースから読み込む。

    Args:
        name: 拡張子を含まないオーバーレイ名（例: "prod"）。

    Returns:
        オーバーレイ文書のバイト列。

    Raises:
        OverlayNotFoundError: 該当する名前のオーバーレイが存在しない場合。
    """
    # 名前はパッケージ内の登録済みリソースに限定する（パス区切りや絶対パスは不可）
    names = bundled_overlay_names()
    if name not in names:
        raise OverlayNotFoundError(name, names)
    return files(BUILTIN_PACKAGE).joinpath(name + OVERLAY_SUFFIX).read_bytes()


def resolve_overlay_path(name: str | os.PathLike[str], cwd: Path | None = None) -> Path:
    """カスタムオーバーレイのパスを作業ディレクトリ基準の絶対パスに解決する。

    Args:
        name: オーバーレイファイルのパス。相対パスは cwd 基準。
            絶対パスは cwd を参照せずそのまま正規化する。
        cwd: 基準ディレクトリ。None の場合はカレントディレクトリ。

    Returns:
        正規化された絶対パス。

    Raises:
        OverlayReadError: カレントディレクトリを取得できない場合。
    """
    if Path(name).is_absolute():
        return Path(os.path.normpath(name))
    if cwd is None:
        try:
            cwd = Path.cwd()
        except OSError as e:
            raise OverlayReadError(name, f"unable to determine working directory: {e}") from e
    return Path(os.path.normpath(os.path.abspath(cwd / name)))


def load_overlay_file(name: str | os.PathLike[str], cwd: Path | None = None) -> bytes:
    """カスタムオーバーレイファイルを読み込む。

    Args:
        name: オーバーレイファイルのパス。相対パスは cwd 基準。
        cwd: 基準ディレクトリ。None の場合はカレントディレクトリ。

    Returns:
        ファイル内容のバイト列。

    Raises:
        OverlayReadError: ファイルが存在しない・読み取り権限がない等の I/O エラー。
            解決済みの絶対パスを含む。
    """
    path = resolve_overlay_path(name, cwd)
    try:
        return path.read_bytes()
    except OSError as e:
        raise OverlayReadError(path, e.strerror or type(e).__name__) from e


def parse_overlay(data: bytes, source: str) -> dict[str, object]:
    """オーバーレイ文書を TOML としてパースする。

    Args:
        data: 文書のバイト列（UTF-8）。
        source: エラーメッセージに含める文書の識別名。

    Returns:
        パースされた辞書。

    Raises:
        OverlayParseError: UTF-8 デコードまたは TOML 構文エラーの場合。
    """
    try:
        return tomllib.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise OverlayParseError(source, str(e)) from e


def _merge_mapping(current: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """マップ値をキー単位でマージした新しい辞書を返す。両側が辞書のキーは再帰する。"""
    merged = dict(current)
    for key, value in incoming.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            value = _merge_mapping(existing, value)
        merged[key] = value
    return merged


def merge_overlay(
    target: ConfigSchema,
    document: dict[str, object],
    source: str,
    prefix: str = "",
) -> None:
    """オーバーレイ文書を target にインプレースでマージする。

    文書に存在するキーのみを上書きし、存在しないキーのフィールドは変更しない。
    ネストしたセクションに対応するテーブルは再帰的にマージする。
    マップ型フィールドは既存のキーを保持したままキー単位でマージし、
    リスト型フィールドは値全体を置き換える。
    オーバーレイ由来の値には値変換を適用しない。

    Args:
        target: マージ先の設定インスタンス。
        document: parse_overlay() の結果。
        source: エラーメッセージに含める文書の識別名。
        prefix: ネスト時のパス接頭辞。

    Raises:
        OverlayParseError: 未知のキー、またはフィールドの型に適合しない値の場合。
    """
    descriptors = {d.name: d for d in describe_schema(type(target))}
    for key, value in document.items():
        path = f"{prefix}{key}"
        descriptor = descriptors.get(key)
        if descriptor is None:
            raise OverlayParseError(source, f"unknown key {path!r}")
        if descriptor.nested is not None:
            if not isinstance(value, dict):
                msg = f"{path!r} must be a table, got {type(value).__name__}"
                raise OverlayParseError(source, msg)
            merge_overlay(getattr(target, key), value, source, f"{path}.")
            continue
        current = getattr(target, key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _merge_mapping(current, value)
        try:
            setattr(target, key, value)
        except ValidationError as e:
            msg = f"invalid value for {path!r}: {e.errors()[0]['msg']}"
            raise OverlayParseError(source, msg) from e
