"""設定ドキュメント型定義（pydantic BaseModel）"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field, JsonValue, TypeAdapter, ValidationError, field_validator

from .exceptions import VariantsError, VariantsErrorCodes
from .models import Flag, Variant

_JSON_VALUE: TypeAdapter[JsonValue] = TypeAdapter(JsonValue)


class FlagDef(BaseModel):
    """フラグ定義。"""

    flag: str
    desc: str = ""
    base_value: JsonValue


class ConditionDef(BaseModel):
    """条件定義。value と values は排他（検証はレジストリ側で行う）。"""

    type: str
    value: JsonValue = None
    values: list[JsonValue] | None = None


class ModDef(BaseModel):
    """Mod 定義。"""

    flag: str
    value: JsonValue


class VariantDef(BaseModel):
    """バリアント定義。"""

    id: str
    desc: str = ""
    condition_operator: Literal["AND", "OR"] | None = None
    conditions: list[ConditionDef] = Field(default_factory=list)
    mods: list[ModDef] = Field(default_factory=list)

    @field_validator("condition_operator", mode="before")
    @classmethod
    def _upper_operator(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class ConfigDocument(BaseModel):
    """設定ドキュメント全体。"""

    flag_defs: list[FlagDef] = Field(default_factory=list)
    variants: list[VariantDef] = Field(default_factory=list)


def check_json_value(value: Any, what: str) -> None:
    """値が JSON で表現できることを検証する。

    Raises:
        VariantsError: JSON 値でない場合
    """
    try:
        _JSON_VALUE.validate_python(value)
    except ValidationError as e:
        raise VariantsError(
            code=VariantsErrorCodes.INVALID_DOCUMENT,
            message=f"{what} is not a JSON value: {value!r}",
            cause=e,
        ) from e


def parse_document(raw: ConfigDocument | Mapping[str, Any] | str | bytes) -> ConfigDocument:
    """生データを ConfigDocument に変換する。

    Raises:
        VariantsError: JSON の解析または構造の検証に失敗した場合
    """
    if isinstance(raw, ConfigDocument):
        return raw
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise VariantsError(
                code=VariantsErrorCodes.PARSE_DOCUMENT,
                message=f"Failed to parse JSON document: {e}",
                cause=e,
            ) from e
    if not isinstance(raw, Mapping):
        raise VariantsError(
            code=VariantsErrorCodes.INVALID_DOCUMENT,
            message=f"Document must be an object, got {type(raw).__name__}",
        )
    try:
        return ConfigDocument.model_validate(dict(raw))
    except ValidationError as e:
        raise VariantsError(
            code=VariantsErrorCodes.INVALID_DOCUMENT,
            message=f"Document validation failed: {e}",
            cause=e,
        ) from e


def dump_document(flags: Iterable[Flag], variants: Iterable[Variant]) -> dict[str, Any]:
    """フラグとバリアントを設定ドキュメント形式の辞書に変換する。

    Raises:
        VariantsError: JSON で表現できない値が含まれる場合
    """
    try:
        doc = ConfigDocument(
            flag_defs=[
                FlagDef(flag=f.name, desc=f.description, base_value=f.base_value) for f in flags
            ],
            variants=[
                VariantDef(
                    id=v.id,
                    desc=v.description,
                    condition_operator=v.operator.value if v.operator is not None else None,
                    conditions=[
                        ConditionDef(type=c.type, value=c.value, values=c.values)
                        for c in v.conditions
                    ],
                    mods=[ModDef(flag=m.flag_name, value=m.value) for m in v.mods],
                )
                for v in variants
            ],
        )
    except ValidationError as e:
        raise VariantsError(
            code=VariantsErrorCodes.INVALID_DOCUMENT,
            message=f"Registry contents cannot be serialized: {e}",
            cause=e,
        ) from e
    data = doc.model_dump(mode="json")
    for flag_def in data["flag_defs"]:
        if not flag_def["desc"]:
            del flag_def["desc"]
    for variant_def in data["variants"]:
        if not variant_def["desc"]:
            del variant_def["desc"]
        if variant_def["condition_operator"] is None:
            del variant_def["condition_operator"]
        for condition_def in variant_def["conditions"]:
            if condition_def["value"] is None:
                del condition_def["value"]
            if condition_def["values"] is None:
                del condition_def["values"]
    return data
