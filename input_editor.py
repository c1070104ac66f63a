"""Editing rules for the expression buffer.

Operators may be chained freely ("12+*3" is accepted); checking the
expression is left to the generation service. The only local rule is one
decimal point per numeric segment.
"""

from __future__ import annotations

DIGITS = "0123456789"
OPERATORS = "+-*/"
DECIMAL = "."


def current_segment(expression: str) -> str:
    """Return the trailing numeric segment (text after the last operator)."""
    cut = max(expression.rfind(op) for op in OPERATORS)
    return expression[cut + 1 :]


def append_digit(expression: str, digit: str) -> str:
    if digit not in DIGITS or len(digit) != 1:
        raise ValueError(f"not a digit: {digit!r}")
    return expression + digit


def append_operator(expression: str, operator: str) -> str:
    if operator not in OPERATORS or len(operator) != 1:
        raise ValueError(f"not an operator: {operator!r}")
    return expression + operator


def append_decimal(expression: str) -> str:
    """Append "." unless the current segment already has one (then no-op)."""
    if DECIMAL in current_segment(expression):
        return expression
    return expression + DECIMAL


def backspace(expression: str) -> str:
    return expression[:-1]


def is_input_key(ch: str) -> bool:
    return len(ch) == 1 and (ch in DIGITS or ch in OPERATORS or ch == DECIMAL)
