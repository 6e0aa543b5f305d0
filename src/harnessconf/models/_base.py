"""全ドメインモデルの基底クラス。"""

from pydantic import BaseModel, ConfigDict


class HarnessBaseModel(BaseModel):
    """不変レコード用の基底クラス。extra="forbid" で厳格モードを一元管理。"""

    model_config = ConfigDict(extra="forbid", frozen=True)
