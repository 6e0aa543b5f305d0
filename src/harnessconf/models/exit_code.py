"""ExitCode: 終了コードの定義。"""

from enum import IntEnum


class ExitCode(IntEnum):
    """プロセス終了コード。

    CONFIG_ERROR は設定解決の失敗、INPUT_ERROR は CLI 引数の誤りに対応する。
    """

    SUCCESS = 0
    CONFIG_ERROR = 1
    INPUT_ERROR = 2
