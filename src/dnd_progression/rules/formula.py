"""Formula evaluation over actor roll data.

Formulas are arithmetic strings with ``@path`` references into an actor's
roll data (for example ``"10 + @abilities.dex.mod + @abilities.wis.mod"``).
References are replaced with their values, missing data counts as zero,
and the remaining expression is parsed and evaluated with the d20 library.

Armor class, hit point bonuses, and spell DC bonuses must be deterministic:
a formula containing dice raises ``FormulaError``. Bonuses that may roll
(initiative, ability checks) only contribute their deterministic part to
derived values.

Example:
    >>> evaluate_formula("13 + @abilities.dex.mod", {"abilities": {"dex": {"mod": 3}}})
    16
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from dnd_progression.core.exceptions import FormulaError
from dnd_progression.core.logging import get_logger
from dnd_progression.core.paths import get_path


logger = get_logger(__name__)

REFERENCE_PATTERN = re.compile(r"@([A-Za-z_][\w\-]*(?:\.[\w\-]+)*)")


def replace_formula_data(formula: str, data: Mapping[str, Any] | None = None) -> str:
    """Replace ``@path`` references with values from roll data.

    Args:
        formula: Formula containing ``@path`` references.
        data: Nested roll data.

    Returns:
        The formula with every reference substituted. Missing or
        non-scalar values become ``0``.
    """
    data = data or {}

    def substitute(match: re.Match[str]) -> str:
        value = get_path(data, match.group(1))
        if isinstance(value, bool):
            return str(int(value))
        if isinstance(value, int | float):
            return f"({value})" if value < 0 else str(value)
        if isinstance(value, str) and value.strip():
            return f"({value})"
        return "0"

    return REFERENCE_PATTERN.sub(substitute, formula)


def _roll(expression: str, formula: str) -> Any:
    """Parse and roll an expression with d20.

    Raises:
        FormulaError: If the expression is not valid arithmetic.
    """
    import d20

    try:
        return d20.roll(expression)
    except (d20.RollError, ZeroDivisionError) as exc:
        raise FormulaError(
            f"Formula is not arithmetically valid: {exc}",
            formula=formula,
        ) from exc


def _contains_dice(expr: Any) -> bool:
    """Check a rolled d20 expression tree for dice nodes."""
    import d20

    if isinstance(expr, d20.Dice):
        return True
    return any(_contains_dice(child) for child in getattr(expr, "children", []))


def evaluate_formula(
    formula: str | int | float | None,
    data: Mapping[str, Any] | None = None,
    *,
    deterministic: bool = True,
) -> int:
    """Evaluate a formula against roll data.

    Args:
        formula: Formula string; numbers pass through and blanks are zero.
        data: Roll data used to resolve ``@path`` references.
        deterministic: Reject formulas that contain dice.

    Returns:
        The integer result.

    Raises:
        FormulaError: If the formula is invalid, or contains dice while
            ``deterministic`` is set.
    """
    if formula is None:
        return 0
    if isinstance(formula, int | float):
        return int(formula)
    if not formula.strip():
        return 0

    expression = replace_formula_data(formula, data)
    result = _roll(expression, formula)
    if deterministic and _contains_dice(result.expr):
        raise FormulaError("Formula must not contain dice", formula=formula)
    return int(result.total)


def is_deterministic(formula: str | None, data: Mapping[str, Any] | None = None) -> bool:
    """Whether a formula is valid and free of dice.

    Invalid formulas are not deterministic.
    """
    if not formula or not formula.strip():
        return True
    try:
        evaluate_formula(formula, data, deterministic=True)
    except FormulaError:
        return False
    return True


def simplify_bonus(formula: str | None, data: Mapping[str, Any] | None = None) -> int:
    """Deterministic contribution of a bonus formula.

    Bonuses containing dice, or that fail to parse, contribute nothing to
    derived totals; the failure is logged rather than raised.
    """
    if not formula or not formula.strip():
        return 0
    try:
        return evaluate_formula(formula, data, deterministic=True)
    except FormulaError as exc:
        logger.debug("Bonus formula skipped", formula=formula, reason=exc.message)
        return 0


def is_valid_formula(formula: str | None) -> bool:
    """Whether a formula parses once references are zeroed.

    Used by migrations to drop corrupt stored formulas.
    """
    if not formula or not formula.strip():
        return True
    try:
        _roll(replace_formula_data(formula), formula)
    except FormulaError:
        return False
    return True


__all__ = [
    "REFERENCE_PATTERN",
    "replace_formula_data",
    "evaluate_formula",
    "is_deterministic",
    "simplify_bonus",
    "is_valid_formula",
]
