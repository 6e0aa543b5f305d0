"""文字列フィールドの値変換。

予約済みのセンチネル文字列を代入時に検出し、副作用を伴う値に置き換える。

- "__TMP_DIR__": 新しい一時ディレクトリを作成し、そのパスを代入する
- "__RND_<N>__": 長さ N のランダムな英数字文字列を生成して代入する
"""

from __future__ import annotations

import random
import re
import string
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final, assert_never

TEMP_DIR_SENTINEL: Final[str] = "__TMP_DIR__"

_RANDOM_STRING_RE: Final[re.Pattern[str]] = re.compile(r"__RND_(.+)__")
_DECIMAL_RE: Final[re.Pattern[str]] = re.compile(r"[0-9]+")

RANDOM_ALPHABET: Final[str] = string.ascii_lowercase + string.digits
"""ランダム文字列の文字集合。クラスタ名等に使えるよう小文字英数字に限定する。"""

TEMP_DIR_PREFIX: Final[str] = "harnessconf-"


@dataclass(frozen=True)
class NoTransform:
    """変換なし。値はそのまま代入される。"""


@dataclass(frozen=True)
class TempDir:
    """一時ディレクトリの作成要求。"""


@dataclass(frozen=True)
class RandomString:
    """ランダム文字列の生成要求。"""

    length: int


Transform = NoTransform | TempDir | RandomString


def parse_transform(value: str) -> Transform:
    """文字列値に含まれる変換要求を判定する。

    Args:
        value: 代入予定の文字列値。

    Returns:
        判定された変換種別。

    Raises:
        ValueError: "__RND_<N>__" 形式で N が非負の10進整数でない場合。
    """
    if value == TEMP_DIR_SENTINEL:
        return TempDir()
    match = _RANDOM_STRING_RE.fullmatch(value)
    if match is None:
        return NoTransform()
    length_text = match.group(1)
    if not _DECIMAL_RE.fullmatch(length_text):
        msg = f"random string length must be a non-negative integer, got {length_text!r}"
        raise ValueError(msg)
    return RandomString(length=int(length_text))


def random_string(length: int, rng: random.Random) -> str:
    """rng を用いて長さ length のランダム英数字文字列を生成する。"""
    return "".join(rng.choice(RANDOM_ALPHABET) for _ in range(length))


def apply_transform(
    value: str,
    transform: Transform,
    rng: random.Random,
    temp_root: Path | None = None,
) -> str:
    """変換を適用し、実際に代入する文字列を返す。

    Args:
        value: 元の文字列値。NoTransform の場合にそのまま返される。
        transform: parse_transform() の判定結果。
        rng: ランダム文字列生成に使う乱数生成器。
        temp_root: 一時ディレクトリを作成する親ディレクトリ。None ならシステム既定。

    Returns:
        代入する文字列。

    Raises:
        OSError: 一時ディレクトリの作成に失敗した場合。
    """
    if isinstance(transform, NoTransform):
        return value
    if isinstance(transform, TempDir):
        return tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=temp_root)
    if isinstance(transform, RandomString):
        return random_string(transform.length, rng)
    assert_never(transform)
