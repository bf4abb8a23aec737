"""条件タイプレジストリと組み込み条件タイプ"""

from __future__ import annotations

import random
from collections.abc import Mapping
from numbers import Real
from typing import Any, Callable

from .exceptions import VariantsError, VariantsErrorCodes
from .models import Condition, Evaluator

ConditionFactory = Callable[[Any], Evaluator]

CONDITION_TYPE_RANDOM = "RANDOM"
CONDITION_TYPE_MOD_RANGE = "MOD_RANGE"


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise TypeError(f"Expected {name} to be an integer, got {value!r}")


def random_condition(
    rng: random.Random | None = None,
) -> ConditionFactory:
    """RANDOM 条件のファクトリを返す。

    パラメータは [0, 1] の確率 p。評価時はコンテキストを無視し、p の確率で True を返す。
    p == 0 は常に False となる。
    """
    source = rng if rng is not None else random

    def factory(params: Any) -> Evaluator:
        if not _is_number(params):
            raise TypeError(f"Expected a number between 0 and 1, got {params!r}")
        probability = float(params)
        if probability < 0 or probability > 1:
            raise ValueError(f"Probability must be between 0 and 1, got {probability}")

        def evaluate(_context: Any) -> bool:
            if probability == 0:
                return False
            return source.random() <= probability

        return evaluate

    return factory


def mod_range_condition(params: Any) -> Evaluator:
    """MOD_RANGE 条件のファクトリ。

    パラメータは [key, range_begin, range_end]。評価時は context[key] % 100 が
    [range_begin, range_end] に含まれるかを返す。剰余は床除算のため常に 0〜99。
    """
    if not isinstance(params, list) or len(params) != 3:
        raise ValueError(
            f"Expected [key, range_begin, range_end] in values, got {params!r}"
        )
    key, begin, end = params
    if not isinstance(key, str):
        raise TypeError(f"Expected values[0] to be a string, got {key!r}")
    range_begin = _as_int(begin, "range_begin")
    range_end = _as_int(end, "range_end")
    if range_begin > range_end:
        raise ValueError(
            f"range_begin ({range_begin}) must be <= range_end ({range_end})"
        )

    def evaluate(context: Any) -> bool:
        if not isinstance(context, Mapping):
            return False
        try:
            value = _as_int(context.get(key), key)
        except TypeError:
            return False
        mod = value % 100
        return range_begin <= mod <= range_end

    return evaluate


class ConditionTypeRegistry:
    """条件タイプ ID からファクトリへの対応表。ID は大文字に正規化される。"""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._specs: dict[str, ConditionFactory] = {}
        self.register(CONDITION_TYPE_RANDOM, random_condition(rng))
        self.register(CONDITION_TYPE_MOD_RANGE, mod_range_condition)

    def register(self, type_id: str, factory: ConditionFactory) -> None:
        """条件タイプを登録する。

        Raises:
            VariantsError: 同じ ID が登録済みの場合
        """
        type_id = type_id.upper()
        if type_id in self._specs:
            raise VariantsError(
                VariantsErrorCodes.DUPLICATE_CONDITION_TYPE,
                f"Condition type already registered: {type_id}",
            )
        self._specs[type_id] = factory

    def get(self, type_id: str) -> ConditionFactory | None:
        return self._specs.get(type_id.upper())

    def __contains__(self, type_id: object) -> bool:
        return isinstance(type_id, str) and type_id.upper() in self._specs

    def type_ids(self) -> list[str]:
        return list(self._specs)

    def copy(self) -> ConditionTypeRegistry:
        clone = ConditionTypeRegistry.__new__(ConditionTypeRegistry)
        clone._specs = dict(self._specs)
        return clone

    def build(
        self,
        type: str,
        value: Any = None,
        values: list[Any] | None = None,
    ) -> Condition:
        """条件を生成し、ファクトリから evaluator を一度だけ構築する。

        Raises:
            VariantsError: value と values の両方が指定された場合、未登録の条件タイプの場合、
                またはファクトリがパラメータを拒否した場合
        """
        type_id = type.upper()
        if value is not None and values is not None:
            raise VariantsError(
                VariantsErrorCodes.CONFLICTING_CONDITION_VALUES,
                f"Cannot specify both value and values for condition {type_id}",
            )
        factory = self._specs.get(type_id)
        if factory is None:
            raise VariantsError(
                VariantsErrorCodes.UNKNOWN_CONDITION_TYPE,
                f"Unknown condition type: {type_id}",
            )
        params = values if values is not None else value
        try:
            evaluator = factory(params)
        except (TypeError, ValueError) as e:
            raise VariantsError(
                VariantsErrorCodes.INVALID_CONDITION_PARAMS,
                f"Invalid parameters for condition {type_id}: {e}",
                cause=e,
            ) from e
        if not callable(evaluator):
            raise VariantsError(
                VariantsErrorCodes.INVALID_CONDITION_PARAMS,
                f"Factory for condition {type_id} did not return an evaluator",
            )
        return Condition(type=type_id, value=value, values=values, evaluator=evaluator)
