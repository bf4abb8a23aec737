"""variants データモデル"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from .exceptions import VariantsError, VariantsErrorCodes

logger = logging.getLogger(__name__)

Evaluator = Callable[[Any], bool]


class ConditionalOperator(str, Enum):
    """条件の結合演算子。"""

    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class Flag:
    """フラグ。ベース値はアクティブなバリアントの Mod によってのみ上書きされる。"""

    name: str
    base_value: Any = None
    description: str = ""


@dataclass(frozen=True)
class Mod:
    """バリアントがアクティブな時に適用されるフラグ値の上書き。"""

    flag_name: str
    value: Any = None


@dataclass(frozen=True)
class Condition:
    """型付きの条件。evaluator はロード時に一度だけ生成される。"""

    type: str
    value: Any = None
    values: list[Any] | None = None
    evaluator: Evaluator | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", self.type.upper())

    @property
    def params(self) -> Any:
        """ファクトリに渡される生パラメータ。"""
        return self.values if self.values is not None else self.value

    def evaluate(self, context: Any = None) -> bool:
        """コンテキストに対して条件を評価する。

        evaluator が無い場合や、不正なコンテキストで evaluator が例外を送出した場合は
        False を返す。評価時に例外は伝播しない。
        """
        if self.evaluator is None:
            return False
        try:
            return bool(self.evaluator(context))
        except Exception:
            logger.debug(
                "Condition evaluation failed",
                extra={"condition_type": self.type},
                exc_info=True,
            )
            return False


@dataclass(frozen=True)
class Variant:
    """条件と Mod の組。条件が成立した時に Mod が有効になる。"""

    id: str
    mods: tuple[Mod, ...] = ()
    conditions: tuple[Condition, ...] = ()
    operator: ConditionalOperator | None = None
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "mods", tuple(self.mods))
        object.__setattr__(self, "conditions", tuple(self.conditions))
        if self.operator is not None and not isinstance(self.operator, ConditionalOperator):
            try:
                operator = ConditionalOperator(str(self.operator).upper())
            except ValueError as e:
                raise VariantsError(
                    VariantsErrorCodes.INVALID_OPERATOR,
                    f"Variant {self.id!r} has unsupported condition operator "
                    f"{self.operator!r}",
                    cause=e,
                ) from e
            object.__setattr__(self, "operator", operator)

    def evaluate(self, context: Any = None) -> bool:
        """コンテキストに対してバリアントがアクティブかどうかを返す。"""
        if not self.conditions:
            return True
        if len(self.conditions) == 1:
            return self.conditions[0].evaluate(context)
        if self.operator is ConditionalOperator.AND:
            return all(c.evaluate(context) for c in self.conditions)
        if self.operator is ConditionalOperator.OR:
            return any(c.evaluate(context) for c in self.conditions)
        return False

    def flag_value(self, flag_name: str) -> Any:
        """指定フラグに対するこのバリアントの上書き値を返す。

        Raises:
            VariantsError: このバリアントが指定フラグの Mod を持たない場合
        """
        for mod in self.mods:
            if mod.flag_name == flag_name:
                return mod.value
        raise VariantsError(
            VariantsErrorCodes.FLAG_NOT_FOUND_IN_VARIANT,
            f"Variant {self.id!r} has no mod for flag {flag_name!r}",
        )

    def flag_names(self) -> list[str]:
        """Mod が対象とするフラグ名を重複なしで返す。"""
        return list(dict.fromkeys(mod.flag_name for mod in self.mods))
