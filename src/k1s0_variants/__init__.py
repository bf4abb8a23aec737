"""k1s0 variants library."""

from .conditions import (
    CONDITION_TYPE_MOD_RANGE,
    CONDITION_TYPE_RANDOM,
    ConditionFactory,
    ConditionTypeRegistry,
    mod_range_condition,
    random_condition,
)
from .document import ConfigDocument, dump_document, parse_document
from .exceptions import VariantsError, VariantsErrorCodes
from .loader import read_document
from .models import Condition, ConditionalOperator, Flag, Mod, Variant
from .registry import Registry

__all__ = [
    "CONDITION_TYPE_MOD_RANGE",
    "CONDITION_TYPE_RANDOM",
    "Condition",
    "ConditionFactory",
    "ConditionTypeRegistry",
    "ConditionalOperator",
    "ConfigDocument",
    "Flag",
    "Mod",
    "Registry",
    "Variant",
    "VariantsError",
    "VariantsErrorCodes",
    "dump_document",
    "mod_range_condition",
    "parse_document",
    "random_condition",
    "read_document",
]
