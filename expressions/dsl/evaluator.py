import math
import operator

from ..exceptions import ParseError
from .ast_nodes import (
    NumberNode, BooleanNode, VarNode, ListNode, UnaryOpNode, BinaryOpNode, FunctionCallNode,
)
from .functions import ALLOWED_FUNCTIONS


def _divide(left, right):
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left)
    return left / right


def _modulo(left, right):
    if right == 0:
        return math.nan
    return math.fmod(left, right)


def _power(left, right):
    try:
        return math.pow(left, right)
    except OverflowError:
        return math.inf
    except (ValueError, ZeroDivisionError):
        return math.nan


BINARY_OPERATORS = {
    "PLUS": operator.add,
    "MINUS": operator.sub,
    "MUL": operator.mul,
    "DIV": _divide,
    "MOD": _modulo,
    "POW": _power,
    "GT": operator.gt,
    "LT": operator.lt,
    "GTE": operator.ge,
    "LTE": operator.le,
    "EQ": operator.eq,
    "NE": operator.ne,
}


class Evaluator:
    """
    Evaluates a parsed expression with floating point semantics: division
    by zero gives infinity (or NaN for 0/0) and math domain errors give NaN
    instead of raising.
    """

    def __init__(self, context=None, functions=None, text=""):
        self.context = context or {}
        self.functions = ALLOWED_FUNCTIONS if functions is None else functions
        self.text = text

    def error(self, reason, node=None):
        return ParseError(reason, self.text, getattr(node, "pos", None))

    def eval(self, node):
        if isinstance(node, (NumberNode, BooleanNode)):
            return node.value

        if isinstance(node, VarNode):
            if node.name not in self.context:
                raise self.error(f"Unknown variable '{node.name}'", node)
            return self.context[node.name]

        if isinstance(node, ListNode):
            return [self.eval(item) for item in node.items]

        if isinstance(node, FunctionCallNode):
            if node.name not in self.functions:
                raise self.error(f"Unknown function '{node.name}'", node)
            func = self.functions[node.name]
            args = [self.eval(a) for a in node.args]
            try:
                return func(*args)
            except TypeError:
                raise self.error(f"Invalid arguments for function '{node.name}'", node)
            except (ValueError, ArithmeticError):
                return math.nan

        if isinstance(node, UnaryOpNode):
            operand = self.eval(node.operand)
            op = node.op.type
            if op.name == "NOT": return not operand
            if isinstance(operand, list):
                raise self.error("List used as a number", node)
            if op.name == "MINUS": return -operand
            if op.name == "PLUS": return +operand

            raise self.error(f"Unsupported operator {node.op}", node)

        if isinstance(node, BinaryOpNode):
            left = self.eval(node.left)
            right = self.eval(node.right)

            op = node.op.type
            if op.name == "AND": return bool(left) and bool(right)
            if op.name == "OR": return bool(left) or bool(right)
            if isinstance(left, list) or isinstance(right, list):
                raise self.error("List used as a number", node.op)
            if op.name in BINARY_OPERATORS:
                return BINARY_OPERATORS[op.name](left, right)

            raise self.error(f"Unsupported operator {node.op}", node.op)

        raise self.error("Invalid AST node")
