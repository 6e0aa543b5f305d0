"""設定リゾルバー。

4つの解決パスを順に適用し、後のパスが先のパスの値を上書きする:

1. デフォルト値（Setting.default）
2. バンドルオーバーレイ（呼び出し元が指定した順）
3. カスタムオーバーレイファイル
4. 環境変数（Setting.env）
"""

from __future__ import annotations

import logging
import os
import random
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, TypeVar

from pydantic import ValidationError

from harnessconf.config._errors import (
    ConfigError,
    FieldParseError,
    ResolutionStage,
    SchemaError,
    TransformError,
)
from harnessconf.config._loader import (
    load_bundled_overlay,
    load_overlay_file,
    merge_overlay,
    parse_overlay,
    resolve_overlay_path,
)
from harnessconf.config._schema import (
    ConfigSchema,
    FieldDescriptor,
    FieldKind,
    iter_settings,
)
from harnessconf.config._transform import (
    RandomString,
    TempDir,
    apply_transform,
    parse_transform,
)

logger = logging.getLogger(__name__)

_TRUE_LITERALS: Final[frozenset[str]] = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS: Final[frozenset[str]] = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_INT_RE: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")
_LIST_SEPARATOR: Final[str] = ","

_S = TypeVar("_S", bound=ConfigSchema)


@dataclass(frozen=True)
class _AssignContext:
    """文字列代入パスで共有される状態。"""

    stage: ResolutionStage
    rng: random.Random
    temp_root: Path | None


def parse_bool(value: str) -> bool:
    """真偽値リテラルをパースする。

    Raises:
        ValueError: 既知のリテラルでない場合。
    """
    if value in _TRUE_LITERALS:
        return True
    if value in _FALSE_LITERALS:
        return False
    raise ValueError(f"invalid boolean literal {value!r}")


def parse_int(value: str) -> int:
    """10進整数リテラルをパースする。

    Raises:
        ValueError: 符号付き10進数字列でない場合。
    """
    if not _INT_RE.fullmatch(value):
        raise ValueError(f"invalid integer literal {value!r}")
    return int(value, 10)


def parse_string_list(value: str) -> list[str]:
    """カンマ区切り文字列をリストに分割する。空文字列は空リスト。"""
    if value == "":
        return []
    return value.split(_LIST_SEPARATOR)


def _transform_string(value: str, path: str, ctx: _AssignContext) -> str:
    try:
        transform = parse_transform(value)
    except ValueError as e:
        raise TransformError(path, str(e), stage=ctx.stage) from e
    try:
        result = apply_transform(value, transform, ctx.rng, ctx.temp_root)
    except OSError as e:
        reason = f"error generating temporary directory: {e}"
        raise TransformError(path, reason, stage=ctx.stage) from e
    if isinstance(transform, TempDir):
        logger.info("Generated temporary directory %s for field %s", result, path)
    elif isinstance(transform, RandomString):
        logger.debug(
            "Generated random string of length %d for field %s", transform.length, path
        )
    return result


def assign_from_string(
    owner: ConfigSchema,
    path: str,
    descriptor: FieldDescriptor,
    raw: str,
    ctx: _AssignContext,
) -> None:
    """文字列値をフィールドの型に従ってパースし、owner に代入する。

    Raises:
        FieldParseError: 値が型に適合しない、または範囲外の場合。
        TransformError: 値変換に失敗した場合。
    """
    value: object
    try:
        if descriptor.kind is FieldKind.STRING:
            value = _transform_string(raw, path, ctx)
        elif descriptor.kind is FieldKind.BOOL:
            value = parse_bool(raw)
        elif descriptor.kind is FieldKind.INT:
            value = parse_int(raw)
        elif descriptor.kind is FieldKind.STRING_LIST:
            value = parse_string_list(raw)
        else:
            msg = f"cannot assign a string to {descriptor.kind.value} field"
            raise FieldParseError(path, msg, stage=ctx.stage)
    except ValueError as e:
        raise FieldParseError(path, str(e), stage=ctx.stage) from e

    try:
        setattr(owner, descriptor.name, value)
    except ValidationError as e:
        raise FieldParseError(path, e.errors()[0]["msg"], stage=ctx.stage) from e


def apply_defaults(target: ConfigSchema, ctx: _AssignContext) -> None:
    """Setting.default を持つ全フィールドにデフォルト値を代入する。"""
    for owner, path, descriptor in iter_settings(target):
        if descriptor.default is None:
            continue
        assign_from_string(owner, path, descriptor, descriptor.default, ctx)


def apply_environment(
    target: ConfigSchema, environ: Mapping[str, str], ctx: _AssignContext
) -> None:
    """Setting.env を持つフィールドに環境変数の値を代入する。

    未設定または空文字列の環境変数は無視され、フィールドは変更されない。
    """
    for owner, path, descriptor in iter_settings(target):
        if descriptor.env is None:
            continue
        raw = environ.get(descriptor.env, "")
        if raw == "":
            continue
        assign_from_string(owner, path, descriptor, raw, ctx)


def _check_target(target: object) -> None:
    if not isinstance(target, ConfigSchema):
        msg = f"target must be a ConfigSchema instance, got {type(target).__name__}"
        raise SchemaError(msg)
    if target.model_config.get("frozen", False):
        msg = f"target {type(target).__name__} is frozen and cannot be resolved"
        raise SchemaError(msg)


def resolve_config(
    target: _S,
    bundled_overlays: Sequence[str] = (),
    custom_overlay: str | os.PathLike[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    rng: random.Random | None = None,
    cwd: Path | None = None,
    temp_root: Path | None = None,
) -> _S:
    """デフォルト値・オーバーレイ・環境変数から target を構築する。

    いずれかのパスが失敗した時点で解決を中断する。失敗時の target は
    部分的に更新されている可能性があり、呼び出し元は使用してはならない。

    Args:
        target: ゼロ値で確保された可変の設定インスタンス。インプレースで更新される。
        bundled_overlays: 適用するバンドルオーバーレイ名。指定順に適用される。
        custom_overlay: カスタムオーバーレイファイルのパス。None または空で省略。
        environ: 環境変数のマッピング。None の場合は os.environ。
        rng: ランダム文字列生成用の乱数生成器。None の場合は新規生成。
        cwd: カスタムオーバーレイの基準ディレクトリ。None の場合はカレントディレクトリ。
        temp_root: 一時ディレクトリの親ディレクトリ。None ならシステム既定。

    Returns:
        解決済みの target。

    Raises:
        SchemaError: target が可変の ConfigSchema インスタンスでない場合。
        OverlayNotFoundError: バンドルオーバーレイが存在しない場合。
        OverlayReadError: カスタムオーバーレイを読み込めない場合。
        OverlayParseError: オーバーレイの構文・キー・値が不正な場合。
        FieldParseError: デフォルト値または環境変数の値が不正な場合。
    """
    _check_target(target)
    if environ is None:
        environ = os.environ
    if rng is None:
        rng = random.Random()

    # 1. デフォルト値
    apply_defaults(target, _AssignContext(ResolutionStage.DEFAULTS, rng, temp_root))

    # 2a. バンドルオーバーレイ
    for name in bundled_overlays:
        try:
            document = parse_overlay(load_bundled_overlay(name), name)
            merge_overlay(target, document, name)
        except ConfigError as e:
            e.stage = ResolutionStage.BUNDLED_OVERLAY
            raise

    # 2b. カスタムオーバーレイ
    if custom_overlay:
        try:
            path = resolve_overlay_path(custom_overlay, cwd)
            logger.info("Custom overlay provided, loading from %s", path)
            document = parse_overlay(load_overlay_file(path), str(path))
            merge_overlay(target, document, str(path))
        except ConfigError as e:
            e.stage = ResolutionStage.CUSTOM_OVERLAY
            raise

    # 3. 環境変数（オーバーレイより優先）
    apply_environment(
        target, environ, _AssignContext(ResolutionStage.ENVIRONMENT, rng, temp_root)
    )

    return target
