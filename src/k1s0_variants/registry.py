"""フラグとバリアントのレジストリ"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .conditions import ConditionFactory, ConditionTypeRegistry
from .document import ConfigDocument, check_json_value, dump_document, parse_document
from .exceptions import VariantsError, VariantsErrorCodes
from .loader import read_document
from .models import Condition, ConditionalOperator, Flag, Mod, Variant

logger = logging.getLogger(__name__)

Document = ConfigDocument | Mapping[str, Any] | str | bytes


@dataclass(frozen=True)
class _RegistryState:
    """公開後に変更されないレジストリのスナップショット。"""

    flags: dict[str, Flag] = field(default_factory=dict)
    variants: dict[str, Variant] = field(default_factory=dict)
    # フラグ名 -> バリアント ID（宣言順）
    flag_to_variant_ids: dict[str, tuple[str, ...]] = field(default_factory=dict)


class _StateBuilder:
    """スナップショットの作業用コピー。build() で新しいスナップショットを返す。"""

    def __init__(self, base: _RegistryState) -> None:
        self.flags = dict(base.flags)
        self.variants = dict(base.variants)
        self.index = dict(base.flag_to_variant_ids)

    def add_flag(self, flag: Flag) -> None:
        if flag.name in self.flags:
            raise VariantsError(
                VariantsErrorCodes.DUPLICATE_FLAG,
                f"Flag already registered: {flag.name}",
            )
        self.flags[flag.name] = flag
        self.index[flag.name] = ()

    def add_variant(self, variant: Variant) -> None:
        if variant.id in self.variants:
            raise VariantsError(
                VariantsErrorCodes.DUPLICATE_VARIANT,
                f"Variant already registered: {variant.id}",
            )
        self._check_variant(variant)
        for name in variant.flag_names():
            self.index[name] = self.index[name] + (variant.id,)
        self.variants[variant.id] = variant

    def merge(self, other: _RegistryState) -> None:
        """other のエントリで同じキーのエントリを置き換え、インデックスを再構築する。"""
        for name, flag in other.flags.items():
            self.flags[name] = flag
        for variant_id, variant in other.variants.items():
            self.variants.pop(variant_id, None)
            self.variants[variant_id] = variant
        index: dict[str, tuple[str, ...]] = {name: () for name in self.flags}
        for variant in self.variants.values():
            self._check_variant(variant)
            for name in variant.flag_names():
                index[name] = index[name] + (variant.id,)
        self.index = index

    def build(self) -> _RegistryState:
        return _RegistryState(
            flags=self.flags,
            variants=self.variants,
            flag_to_variant_ids=self.index,
        )

    def _check_variant(self, variant: Variant) -> None:
        if not variant.mods:
            raise VariantsError(
                VariantsErrorCodes.MISSING_MODS,
                f"Variant {variant.id!r} must have at least one mod",
            )
        if len(variant.conditions) > 1 and variant.operator is None:
            raise VariantsError(
                VariantsErrorCodes.MISSING_OPERATOR,
                f"Variant {variant.id!r} has {len(variant.conditions)} conditions "
                "but no condition operator",
            )
        for mod in variant.mods:
            if mod.flag_name not in self.flags:
                raise VariantsError(
                    VariantsErrorCodes.UNKNOWN_FLAG_REFERENCE,
                    f"Variant {variant.id!r} references unregistered flag {mod.flag_name!r}",
                )


class Registry:
    """フラグ・バリアント・条件タイプを保持し、フラグ値を評価するレジストリ。

    書き込み操作はロックで排他され、作業用コピー上で検証した後に一度の代入で
    スナップショットを差し替える。読み取り操作はロックを取らず、その時点の
    スナップショットを参照する。

    condition_types を渡した場合はそのコピーを保持するため、以後の登録は
    呼び出し元の ConditionTypeRegistry に影響しない。rng は組み込みの RANDOM に
    使われるため、condition_types と同時には指定できない。
    """

    def __init__(
        self,
        condition_types: ConditionTypeRegistry | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if condition_types is not None and rng is not None:
            raise ValueError("rng cannot be combined with condition_types")
        self._lock = threading.RLock()
        self._condition_types = (
            condition_types.copy()
            if condition_types is not None
            else ConditionTypeRegistry(rng)
        )
        self._state = _RegistryState()

    # ---- 書き込み操作 ----

    def add_flag(self, flag: Flag) -> None:
        """フラグを登録する。

        Raises:
            VariantsError: 同名のフラグが登録済みの場合、またはベース値が JSON 値でない場合
        """
        check_json_value(flag.base_value, f"Base value of flag {flag.name!r}")
        with self._lock:
            builder = _StateBuilder(self._state)
            builder.add_flag(flag)
            self._state = builder.build()

    def register_flag(self, name: str, base_value: Any, description: str = "") -> Flag:
        """フラグを生成して登録する。"""
        flag = Flag(name=name, base_value=base_value, description=description)
        self.add_flag(flag)
        return flag

    def add_variant(self, variant: Variant) -> None:
        """バリアントを登録する。失敗した場合レジストリは変更されない。

        evaluator を持たない条件は登録済みの条件タイプから構築し直される。

        Raises:
            VariantsError: ID が重複している場合、Mod が無い場合、条件が複数あるのに
                演算子が無い場合、未登録のフラグを参照している場合、Mod 値が JSON 値で
                ない場合、または条件を構築できない場合
        """
        with self._lock:
            variant = self._prepare_variant(variant)
            builder = _StateBuilder(self._state)
            builder.add_variant(variant)
            self._state = builder.build()

    def register_condition_type(self, type_id: str, factory: ConditionFactory) -> None:
        """条件タイプを登録する。ID は大文字小文字を区別しない。"""
        with self._lock:
            self._condition_types.register(type_id, factory)

    def build_condition(
        self,
        type: str,
        value: Any = None,
        values: list[Any] | None = None,
    ) -> Condition:
        """登録済みの条件タイプから条件を構築する。

        Raises:
            VariantsError: 条件タイプが未登録の場合、value と values の両方が指定された
                場合、またはパラメータが不正な場合
        """
        with self._lock:
            return self._condition_types.build(type, value=value, values=values)

    def load(self, document: Document) -> None:
        """設定ドキュメントを読み込み、フラグとバリアントを登録する。

        ドキュメント全体が検証されてから一度に反映される。途中で失敗した場合は
        何も反映されない。
        """
        doc = parse_document(document)
        with self._lock:
            builder = _StateBuilder(self._state)
            self._apply(builder, doc)
            self._state = builder.build()
        logger.info(
            "Loaded variants document",
            extra={"flags": len(doc.flag_defs), "variants": len(doc.variants)},
        )

    def load_json(self, data: str | bytes) -> None:
        self.load(data)

    def load_file(self, path: Path | str) -> None:
        """設定ファイル（JSON / YAML）を読み込む。"""
        self.load(read_document(path))

    def reload(self, document: Document) -> None:
        """設定ドキュメントを新しいレジストリに読み込み、受け手にマージする。

        ドキュメントに含まれるフラグとバリアントは置き換えられ、含まれないものは
        そのまま残る。
        """
        with self._lock:
            fresh = Registry(condition_types=self._condition_types)
        fresh.load(document)
        with self._lock:
            builder = _StateBuilder(self._state)
            builder.merge(fresh._state)
            self._state = builder.build()
        logger.info(
            "Reloaded variants document",
            extra={
                "flags": len(fresh._state.flags),
                "variants": len(fresh._state.variants),
            },
        )

    def reload_json(self, data: str | bytes) -> None:
        self.reload(data)

    def reload_file(self, path: Path | str) -> None:
        """設定ファイル（JSON / YAML）を再読み込みする。"""
        self.reload(read_document(path))

    def reset(self) -> None:
        """登録済みのフラグとバリアントをすべて破棄する。条件タイプは残る。"""
        with self._lock:
            self._state = _RegistryState()

    # ---- 読み取り操作 ----

    def flag_value(
        self,
        name: str,
        context: Any = None,
        forced: Mapping[str, bool] | None = None,
    ) -> Any:
        """コンテキストに基づいてフラグ値を評価する。

        ベース値から開始し、フラグを対象とするバリアントを宣言順に評価して、
        アクティブなバリアントの Mod 値で上書きする（最後にアクティブになったものが優先）。

        Args:
            name: フラグ名
            context: 条件評価に使うコンテキスト
            forced: バリアント ID -> True/False。True は強制的にアクティブ、
                False は強制的に非アクティブにする。

        Raises:
            VariantsError: フラグが未登録の場合
        """
        state = self._state
        flag = state.flags.get(name)
        if flag is None:
            raise VariantsError(
                VariantsErrorCodes.UNKNOWN_FLAG,
                f"Flag not registered: {name}",
            )
        forced = forced or {}
        value = flag.base_value
        for variant_id in state.flag_to_variant_ids.get(name, ()):
            variant = state.variants[variant_id]
            override = forced.get(variant_id)
            if override is False:
                continue
            if override is True or variant.evaluate(context):
                value = variant.flag_value(name)
        return value

    def flags(self) -> list[Flag]:
        return list(self._state.flags.values())

    def flag_names(self) -> list[str]:
        return list(self._state.flags)

    def variants(self) -> list[Variant]:
        return list(self._state.variants.values())

    def get_flag(self, name: str) -> Flag | None:
        return self._state.flags.get(name)

    def get_variant(self, variant_id: str) -> Variant | None:
        return self._state.variants.get(variant_id)

    def has_flag(self, name: str) -> bool:
        return name in self._state.flags

    def variants_for_flag(self, name: str) -> list[Variant]:
        """フラグを対象とするバリアントを評価順に返す。"""
        state = self._state
        return [state.variants[i] for i in state.flag_to_variant_ids.get(name, ())]

    def condition_type_ids(self) -> list[str]:
        return self._condition_types.type_ids()

    def to_document(self) -> dict[str, Any]:
        """現在の登録内容を設定ドキュメント形式で返す。"""
        state = self._state
        return dump_document(state.flags.values(), state.variants.values())

    def _prepare_variant(self, variant: Variant) -> Variant:
        for mod in variant.mods:
            check_json_value(
                mod.value, f"Value of mod {mod.flag_name!r} in variant {variant.id!r}"
            )
        conditions = []
        for condition in variant.conditions:
            check_json_value(
                condition.params, f"Parameters of condition {condition.type} in {variant.id!r}"
            )
            if condition.evaluator is None or (
                condition.value is not None and condition.values is not None
            ):
                condition = self._condition_types.build(
                    condition.type, value=condition.value, values=condition.values
                )
            conditions.append(condition)
        return replace(variant, conditions=tuple(conditions))

    def _apply(self, builder: _StateBuilder, doc: ConfigDocument) -> None:
        for flag_def in doc.flag_defs:
            builder.add_flag(
                Flag(
                    name=flag_def.flag,
                    base_value=flag_def.base_value,
                    description=flag_def.desc,
                )
            )
        for variant_def in doc.variants:
            conditions = [
                self._condition_types.build(c.type, value=c.value, values=c.values)
                for c in variant_def.conditions
            ]
            operator = (
                ConditionalOperator(variant_def.condition_operator)
                if variant_def.condition_operator is not None
                else None
            )
            builder.add_variant(
                Variant(
                    id=variant_def.id,
                    mods=tuple(Mod(flag_name=m.flag, value=m.value) for m in variant_def.mods),
                    conditions=tuple(conditions),
                    operator=operator,
                    description=variant_def.desc,
                )
            )
