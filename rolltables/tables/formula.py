"""
Dice formula parsing for roll tables.

Table formulas are free-form strings such as "1d20" or "2d6 (reaction)".
Only the first two integers matter: die count, then side count.
"""

import re

from rolltables.tables.errors import MalformedFormulaError


_INTEGER_TOKEN = re.compile(r"\d+")


def parse_formula(formula: str) -> tuple[int, int]:
    """
    Extract the die count and side count from a formula.

    Args:
        formula: Formula text, e.g. "1d20"

    Returns:
        Tuple of (count, sides)

    Raises:
        MalformedFormulaError: If fewer than two integers are present,
            or either integer is below 1
    """
    if not isinstance(formula, str):
        raise MalformedFormulaError(str(formula), "formula must be a string")

    tokens = _INTEGER_TOKEN.findall(formula)
    if len(tokens) < 2:
        raise MalformedFormulaError(formula)

    count, sides = int(tokens[0]), int(tokens[1])
    if sides < 1:
        raise MalformedFormulaError(formula, "side count must be a positive integer")
    if count < 1:
        raise MalformedFormulaError(formula, "die count must be a positive integer")

    return count, sides
