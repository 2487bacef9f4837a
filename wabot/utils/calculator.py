"""
WaBot - Restricted Calculator
=============================

Arithmetic evaluator for the calculate command.

DESIGN:
    The expression is parsed with ast.parse(mode="eval") and walked by
    hand. Only numeric literals, the binary operators + - * / // % ** and
    unary +/- are accepted; names, calls, attributes, subscripts and
    every other node raise CalculationError. Exponents and intermediate
    magnitudes are bounded so "9**9**9" fails fast instead of hanging.
"""

import ast
import math
import operator
from typing import Callable, Dict, Type, Union

from wabot.core.errors import CalculationError


# =============================================================================
# Limits
# =============================================================================

MAX_EXPRESSION_LENGTH = 200
MAX_EXPONENT = 1000
MAX_MAGNITUDE = 1e100

Number = Union[int, float]

_BINARY_OPS: Dict[Type[ast.operator], Callable[[Number, Number], Number]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: Dict[Type[ast.unaryop], Callable[[Number], Number]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


# =============================================================================
# Evaluation
# =============================================================================

def _check_magnitude(value: Number) -> Number:
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        raise CalculationError("Result is not a finite number")
    if abs(value) > MAX_MAGNITUDE:
        raise CalculationError("Result is too large")
    return value


def _eval_node(node: ast.AST) -> Number:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)

    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise CalculationError("Only numbers are allowed")
        return node.value

    if isinstance(node, ast.UnaryOp):
        op = _UNARY_OPS.get(type(node.op))
        if op is None:
            raise CalculationError("Unsupported operator")
        return op(_eval_node(node.operand))

    if isinstance(node, ast.BinOp):
        op = _BINARY_OPS.get(type(node.op))
        if op is None:
            raise CalculationError("Unsupported operator")

        left = _eval_node(node.left)
        right = _eval_node(node.right)

        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise CalculationError("Exponent is too large")
        if isinstance(node.op, ast.Pow) and abs(left) > 1 and right > 0 and right * math.log10(abs(left)) > 100:
            raise CalculationError("Result is too large")

        try:
            result = op(left, right)
        except ZeroDivisionError as e:
            raise CalculationError("Division by zero") from e
        except OverflowError as e:
            raise CalculationError("Result is too large") from e
        except TypeError as e:
            raise CalculationError("Invalid expression") from e
        # (-1) ** 0.5
        if isinstance(result, complex):
            raise CalculationError("Result is not a real number")
        return _check_magnitude(result)

    raise CalculationError(f"Unsupported syntax: {type(node).__name__}")


def evaluate(expression: str) -> Number:
    """
    Evaluate an arithmetic expression.

    Args:
        expression: Text like "2 + 3 * (4 - 1) ** 2".

    Returns:
        The numeric result.

    Raises:
        CalculationError: On anything outside the arithmetic grammar.
    """
    expression = expression.strip()
    if not expression:
        raise CalculationError("Empty expression")
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise CalculationError("Expression is too long")

    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError as e:
        raise CalculationError("Invalid expression") from e

    return _eval_node(tree)


def format_result(value: Number) -> str:
    """Render whole floats without a trailing ".0"; round others to 10 places."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return f"{round(value, 10)}"
    return str(value)


__all__ = ["evaluate", "format_result"]
