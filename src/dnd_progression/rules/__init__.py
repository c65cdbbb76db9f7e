"""Rules vocabulary, the immutable rules snapshot, and formula evaluation."""

from __future__ import annotations

from dnd_progression.rules.formula import (
    evaluate_formula,
    is_deterministic,
    is_valid_formula,
    replace_formula_data,
    simplify_bonus,
)
from dnd_progression.rules.registry import (
    AbilityConfig,
    RulesConfig,
    SkillConfig,
    build_rules_config,
    clear_rules_cache,
    get_rules_config,
)


__all__ = [
    # Registry
    "AbilityConfig",
    "SkillConfig",
    "RulesConfig",
    "build_rules_config",
    "get_rules_config",
    "clear_rules_cache",
    # Formulas
    "evaluate_formula",
    "is_deterministic",
    "is_valid_formula",
    "replace_formula_data",
    "simplify_bonus",
]
