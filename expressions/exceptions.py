"""
Exceptions raised by the expression engine.
"""
from typing import Optional


class ExpressionError(Exception):
    """Base class for expression engine errors."""


class MalformedReferenceError(ExpressionError):
    """An opening delimiter without a matching close."""

    def __init__(self, expression: str, offset: int):
        self.expression = expression
        self.offset = offset
        super().__init__(f"Bad expression starting at {offset} in {expression}")


class InvalidIdentifierReferenceError(ExpressionError):
    """A reference which does not point to an existing object."""

    def __init__(self, reference_type, identifier: str, message: Optional[str] = None):
        self.reference_type = reference_type
        self.identifier = identifier
        super().__init__(message or f"Identifier does not reference {reference_type.label}: {identifier}")


class ParseError(ExpressionError):
    """The expression is not well-formed arithmetic."""

    def __init__(self, reason: str, expression: str = "", position: Optional[int] = None):
        self.reason = reason
        self.expression = expression
        self.position = position
        super().__init__(str(self))

    def __str__(self):
        location = f" at position {self.position}" if self.position is not None else ""
        return f"{self.reason}{location} parsing expression '{self.expression}'"
