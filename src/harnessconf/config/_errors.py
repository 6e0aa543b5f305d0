"""設定解決のエラー階層。

すべてのエラーは ConfigError を基底とし、解決呼び出し全体にとって致命的である。
リゾルバーは失敗したパスを ResolutionStage として各エラーに記録する。
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path


class ResolutionStage(StrEnum):
    """解決パスの種別。"""

    DEFAULTS = "defaults"
    BUNDLED_OVERLAY = "bundled overlay"
    CUSTOM_OVERLAY = "custom overlay"
    ENVIRONMENT = "environment"


class ConfigError(Exception):
    """設定解決エラーの基底クラス。

    Attributes:
        message: ステージ情報を含まないエラーメッセージ。
        stage: 失敗した解決パス。解決パス外で発生した場合は None。
    """

    def __init__(self, message: str, *, stage: ResolutionStage | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"error loading config from {self.stage.value}: {self.message}"


class SchemaError(ConfigError):
    """対象が可変な ConfigSchema インスタンスでない、またはスキーマ定義が不正。"""


class OverlayNotFoundError(ConfigError):
    """指定された名前のバンドルオーバーレイが存在しない。"""

    def __init__(self, name: str, available: tuple[str, ...] = ()) -> None:
        message = f"bundled overlay not found: {name!r}"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message)
        self.name = name


class OverlayReadError(ConfigError):
    """カスタムオーバーレイファイルの読み込み失敗。"""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"cannot read overlay file {path}: {reason}")
        self.path = path


class OverlayParseError(ConfigError):
    """オーバーレイ文書の構文エラー、または未知のキー・不正な値。"""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"invalid overlay {source}: {reason}")
        self.source = source


class FieldParseError(ConfigError):
    """文字列値がフィールドの型に適合しない。

    Attributes:
        field: ドット区切りのフィールドパス（例: "cluster.expiry_in_minutes"）。
    """

    def __init__(self, field: str, reason: str, *, stage: ResolutionStage) -> None:
        super().__init__(f"invalid value for field {field}: {reason}", stage=stage)
        self.field = field


class TransformError(FieldParseError):
    """一時ディレクトリ作成の失敗、または不正なランダム文字列指定。"""
