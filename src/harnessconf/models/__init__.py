"""harnessconf ドメインモデルパッケージ。

HarnessConfig は harnessconf.models.config から直接インポートする
（harnessconf.config との循環インポートを避けるため）。
"""

from harnessconf.models._base import HarnessBaseModel
from harnessconf.models.exit_code import ExitCode

__all__ = [
    "ExitCode",
    "HarnessBaseModel",
]
