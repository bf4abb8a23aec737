"""データモデルのユニットテスト"""

import pytest
from k1s0_variants import (
    Condition,
    ConditionalOperator,
    Mod,
    Variant,
    VariantsError,
    VariantsErrorCodes,
)


def always(result: bool) -> Condition:
    return Condition(type="test", evaluator=lambda _ctx: result)


def test_condition_type_is_upper_cased() -> None:
    """条件タイプが大文字に正規化されること。"""
    assert Condition(type="mod_range").type == "MOD_RANGE"


def test_condition_without_evaluator_is_false() -> None:
    """evaluator が無い条件は False。"""
    assert Condition(type="RANDOM", value=1.0).evaluate({}) is False


def test_condition_swallows_evaluator_errors() -> None:
    """evaluator の例外は伝播せず False になること。"""
    cond = Condition(type="CUSTOM", evaluator=lambda ctx: ctx["missing"] == 1)
    assert cond.evaluate({}) is False
    assert cond.evaluate(None) is False


def test_condition_params_prefers_values() -> None:
    """values があれば params は values。"""
    assert Condition(type="X", values=["a", 1, 2]).params == ["a", 1, 2]
    assert Condition(type="X", value=0.5).params == 0.5
    assert Condition(type="X").params is None


def test_variant_without_conditions_is_active() -> None:
    """条件なしのバリアントは常にアクティブ。"""
    assert Variant(id="v", mods=(Mod("f", True),)).evaluate() is True


def test_variant_single_condition_ignores_operator() -> None:
    """条件が1つの場合は演算子に関係なくその結果。"""
    v = Variant(id="v", mods=(Mod("f", 1),), conditions=(always(True),),
                operator=ConditionalOperator.OR)
    assert v.evaluate() is True
    v = Variant(id="v", mods=(Mod("f", 1),), conditions=(always(False),))
    assert v.evaluate() is False


def test_variant_or_operator() -> None:
    """OR: 1つでも True なら True、すべて False なら False。"""
    v = Variant(id="v", mods=(Mod("f", 1),), conditions=(always(True), always(False)),
                operator=ConditionalOperator.OR)
    assert v.evaluate() is True
    v = Variant(id="v", mods=(Mod("f", 1),), conditions=(always(False), always(False)),
                operator=ConditionalOperator.OR)
    assert v.evaluate() is False


def test_variant_and_operator() -> None:
    """AND: 1つでも False なら False。"""
    v = Variant(id="v", mods=(Mod("f", 1),), conditions=(always(True), always(False)),
                operator=ConditionalOperator.AND)
    assert v.evaluate() is False
    v = Variant(id="v", mods=(Mod("f", 1),), conditions=(always(True), always(True)),
                operator=ConditionalOperator.AND)
    assert v.evaluate() is True


def test_variant_and_short_circuits() -> None:
    """AND は最初の False で評価を打ち切ること。"""
    calls: list[str] = []

    def tracked(name: str, result: bool) -> Condition:
        def evaluate(_ctx: object) -> bool:
            calls.append(name)
            return result

        return Condition(type="TRACKED", evaluator=evaluate)

    v = Variant(id="v", mods=(Mod("f", 1),),
                conditions=(tracked("a", False), tracked("b", True)),
                operator=ConditionalOperator.AND)
    assert v.evaluate() is False
    assert calls == ["a"]


def test_variant_operator_from_string() -> None:
    """文字列の演算子が列挙型に変換されること。"""
    v = Variant(id="v", mods=[Mod("f", 1)], operator="or")  # type: ignore[arg-type]
    assert v.operator is ConditionalOperator.OR
    assert isinstance(v.mods, tuple)


def test_variant_invalid_operator() -> None:
    """未対応の演算子は INVALID_OPERATOR。"""
    with pytest.raises(VariantsError) as exc_info:
        Variant(id="v", mods=(Mod("f", 1),), operator="xor")  # type: ignore[arg-type]
    assert exc_info.value.code == VariantsErrorCodes.INVALID_OPERATOR


def test_variant_flag_value() -> None:
    """Mod の値が返ること。"""
    v = Variant(id="v", mods=(Mod("a", 1), Mod("b", "two")))
    assert v.flag_value("a") == 1
    assert v.flag_value("b") == "two"
    assert v.flag_names() == ["a", "b"]


def test_variant_flag_value_missing_mod() -> None:
    """Mod が無いフラグは FLAG_NOT_FOUND_IN_VARIANT。"""
    v = Variant(id="v", mods=(Mod("a", 1),))
    with pytest.raises(VariantsError) as exc_info:
        v.flag_value("b")
    assert exc_info.value.code == VariantsErrorCodes.FLAG_NOT_FOUND_IN_VARIANT
