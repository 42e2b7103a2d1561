"""Scorecard — Formula Evaluator.

Formulas are token lists built in the scorecard UI: operands and operators
alternate and are applied strictly left to right with no precedence, so
``3 + 2 * 4`` is ``(3 + 2) * 4``. Bad input never raises; it evaluates to 0.
"""

import math
from typing import Dict, Iterable, List, Literal, Mapping

from pydantic import BaseModel

from scorecard.engine.field_resolution import safe_float

OPERATORS = ("+", "-", "*", "/")


class FormulaToken(BaseModel):
    """One token of a scorecard formula."""

    type: Literal["metric", "number", "operator"]
    value: str


def formula_metric_keys(tokens: Iterable[FormulaToken]) -> List[str]:
    """Distinct metric keys referenced by a formula, in order of appearance."""
    keys: List[str] = []
    for token in tokens:
        if token.type == "metric" and token.value and token.value not in keys:
            keys.append(token.value)
    return keys


def _resolve(token: FormulaToken, data: Mapping[str, float]) -> float:
    if token.type == "metric":
        return safe_float(data.get(token.value))
    return safe_float(token.value)


def _is_well_formed(tokens: List[FormulaToken]) -> bool:
    if not tokens or len(tokens) % 2 == 0:
        return False
    for i, token in enumerate(tokens):
        if i % 2 == 0:
            if token.type == "operator":
                return False
        elif token.type != "operator" or token.value not in OPERATORS:
            return False
    return True


def evaluate_formula(
    tokens: Iterable[FormulaToken], data: Mapping[str, float] | Dict[str, float]
) -> float:
    """Evaluate a formula against a flat metric → value mapping."""
    tokens = list(tokens)
    if not _is_well_formed(tokens):
        return 0.0

    result = _resolve(tokens[0], data)
    for i in range(1, len(tokens), 2):
        operator = tokens[i].value
        operand = _resolve(tokens[i + 1], data)
        if operator == "+":
            result += operand
        elif operator == "-":
            result -= operand
        elif operator == "*":
            result *= operand
        else:
            result = result / operand if operand != 0 else 0.0

    return result if math.isfinite(result) else 0.0
