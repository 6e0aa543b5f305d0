"""設定スキーマとフィールド記述子テーブル。

各フィールドのメタデータ（デフォルト値リテラル・環境変数名・ドキュメントセクション）は
typing.Annotated 内の Setting で宣言する。記述子テーブルはスキーマクラスごとに
一度だけ構築され、解決パスは実行時のイントロスペクションではなくこのテーブルを走査する。
"""

from __future__ import annotations

import functools
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field

from harnessconf.config._errors import SchemaError
from harnessconf.models._base import HarnessBaseModel

Int32 = Annotated[int, Field(ge=-(2**31), le=2**31 - 1)]
"""32 ビット符号付き整数フィールド。"""

Int64 = Annotated[int, Field(ge=-(2**63), le=2**63 - 1)]
"""64 ビット符号付き整数フィールド。"""


@dataclass(frozen=True)
class Setting:
    """フィールドの宣言的メタデータ。

    Attributes:
        default: デフォルトパスで適用される文字列リテラル。None なら適用しない。
        env: 環境変数パスで参照する環境変数名。None なら参照しない。
        section: ドキュメント上のグループ名。解決の挙動には影響しない。
        secret: 資格情報を保持するフィールド。CLI 出力ではマスクされる。
    """

    default: str | None = None
    env: str | None = None
    section: str | None = None
    secret: bool = False


class FieldKind(StrEnum):
    """フィールドの意味的な型。"""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    STRING_LIST = "string list"
    NESTED = "nested"
    OTHER = "other"


class ConfigSchema(BaseModel):
    """解決対象となる可変の設定スキーマの基底クラス。

    Python レベルのフィールドデフォルトはゼロ値とし、インスタンス生成直後が
    ゼロ値で確保された状態になる。代入時バリデーションで型と範囲を検査する。
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True, strict=True)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        # スキーマ定義時に記述子テーブルを構築し、不正な宣言を即座に検出する。
        # 前方参照が未解決のクラスは初回の describe_schema() 呼び出しまで遅延する
        if cls.__pydantic_complete__:
            describe_schema(cls)


class FieldDescriptor(HarnessBaseModel):
    """単一フィールドの静的メタデータ。"""

    name: str
    kind: FieldKind
    default: str | None = None
    env: str | None = None
    section: str | None = None
    secret: bool = False
    nested: type[ConfigSchema] | None = None


def _find_setting(metadata: list[Any]) -> Setting | None:
    for item in metadata:
        if isinstance(item, Setting):
            return item
    return None


def _classify(annotation: Any) -> FieldKind:
    if isinstance(annotation, type) and issubclass(annotation, ConfigSchema):
        return FieldKind.NESTED
    if annotation is str:
        return FieldKind.STRING
    if annotation is bool:
        return FieldKind.BOOL
    if annotation is int:
        return FieldKind.INT
    if get_origin(annotation) is list and get_args(annotation) == (str,):
        return FieldKind.STRING_LIST
    return FieldKind.OTHER


@functools.cache
def describe_schema(schema: type[ConfigSchema]) -> tuple[FieldDescriptor, ...]:
    """スキーマクラスの記述子テーブルを宣言順に構築する。

    結果はクラスごとにキャッシュされる。

    Args:
        schema: ConfigSchema のサブクラス。

    Returns:
        フィールド宣言順の記述子タプル。

    Raises:
        SchemaError: ネストしたセクションや非対応型のフィールドに
            デフォルト値・環境変数が宣言されている場合。
    """
    descriptors: list[FieldDescriptor] = []
    for name, info in schema.model_fields.items():
        setting = _find_setting(info.metadata) or Setting()
        kind = _classify(info.annotation)
        binds_value = setting.default is not None or setting.env is not None
        if kind in (FieldKind.NESTED, FieldKind.OTHER) and binds_value:
            msg = (
                f"{schema.__name__}.{name}: default/env settings are only "
                f"supported on string, bool, int and list[str] fields"
            )
            raise SchemaError(msg)
        descriptors.append(
            FieldDescriptor(
                name=name,
                kind=kind,
                default=setting.default,
                env=setting.env,
                section=setting.section,
                secret=setting.secret,
                nested=info.annotation if kind is FieldKind.NESTED else None,
            )
        )
    return tuple(descriptors)


def walk_schema(
    schema: type[ConfigSchema], prefix: str = ""
) -> Iterator[tuple[str, FieldDescriptor]]:
    """スキーマクラスの葉フィールドを深さ優先でドット区切りパスと共に列挙する。"""
    for descriptor in describe_schema(schema):
        path = f"{prefix}{descriptor.name}"
        if descriptor.nested is not None:
            yield from walk_schema(descriptor.nested, f"{path}.")
        else:
            yield path, descriptor


def iter_settings(
    target: ConfigSchema, prefix: str = ""
) -> Iterator[tuple[ConfigSchema, str, FieldDescriptor]]:
    """インスタンスの葉フィールドを (所有インスタンス, パス, 記述子) として列挙する。

    ネストしたセクションは現在のインスタンスの値を辿るため、列挙中に
    親フィールドへ代入された新しいセクションにも追従する。
    """
    for descriptor in describe_schema(type(target)):
        path = f"{prefix}{descriptor.name}"
        if descriptor.nested is not None:
            yield from iter_settings(getattr(target, descriptor.name), f"{path}.")
        else:
            yield target, path, descriptor
