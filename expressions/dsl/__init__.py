"""
Domain Specific Language for evaluating substituted expressions.

Once every reference in a formula has been replaced by a number, the
remaining text is plain arithmetic over literals, operators and a fixed
function vocabulary. It is evaluated here without using eval().
"""

from .tokenizer import Tokenizer
from .parser import Parser
from .evaluator import Evaluator
from .functions import ALLOWED_FUNCTIONS, AGGREGATE_FUNCTIONS, SCALAR_FUNCTIONS

__all__ = [
    'Tokenizer', 'Parser', 'Evaluator',
    'ALLOWED_FUNCTIONS', 'AGGREGATE_FUNCTIONS', 'SCALAR_FUNCTIONS',
]
