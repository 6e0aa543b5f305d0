"""HarnessBaseModel のテスト。

全レコードモデルは extra="forbid" かつ frozen=True で動作する。
"""

import pytest
from pydantic import ValidationError

from harnessconf.config import FieldDescriptor, FieldKind
from harnessconf.models._base import HarnessBaseModel


class SampleModel(HarnessBaseModel):
    """テスト用のサブクラス。"""

    name: str
    value: int


class TestHarnessBaseModelExtraForbid:
    """extra="forbid" により未定義フィールドが拒否されることを検証。"""

    def test_valid_fields_accepted(self) -> None:
        """定義済みフィールドのみでインスタンス生成が成功する。"""
        model = SampleModel(name="test", value=42)
        assert model.name == "test"
        assert model.value == 42

    def test_extra_field_rejected(self) -> None:
        """未定義フィールドを渡すと ValidationError が発生する。"""
        with pytest.raises(ValidationError, match="extra_forbidden"):
            SampleModel(name="test", value=42, unknown_field="should fail")  # type: ignore[call-arg]


class TestHarnessBaseModelFrozen:
    """frozen=True により構築後のフィールド変更が禁止されることを検証。"""

    def test_field_assignment_rejected(self) -> None:
        """構築後のフィールド代入で ValidationError が発生する。"""
        model = SampleModel(name="test", value=42)
        with pytest.raises(ValidationError, match="frozen"):
            model.name = "changed"

    def test_field_descriptor_is_frozen(self) -> None:
        """FieldDescriptor も構築後に変更できない。"""
        descriptor = FieldDescriptor(name="x", kind=FieldKind.STRING)
        with pytest.raises(ValidationError, match="frozen"):
            descriptor.env = "X"
