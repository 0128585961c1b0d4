# Error types shared by the lexer, parser and calculator.
#
# The default policy is permissive: problems are recorded as Diagnostic
# records and processing continues with a fallback. The exception classes are
# only raised in strict mode.

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


class CalcError(Exception):
    """Base class for calculator errors."""
    pass

class LexError(CalcError):
    """Raised in strict mode for malformed input found while tokenizing."""
    pass

class ParseError(CalcError):
    """Raised in strict mode when input is left over or nested too deeply."""
    pass


MALFORMED_NUMBER = 'malformed-number'
UNTERMINATED_STRING = 'unterminated-string'
UNTERMINATED_COMMENT = 'unterminated-comment'
UNKNOWN_CHARACTER = 'unknown-character'
TRAILING_INPUT = 'trailing-input'
NESTING_TOO_DEEP = 'nesting-too-deep'


@dataclass(frozen=True)
class Diagnostic:
    """A recovered problem with its source location."""
    kind: str
    message: str
    span: Tuple[int, int]
    line_column: Tuple[int, int]

    def __str__(self) -> str:
        line, col = self.line_column
        return f"{self.kind} at line {line}, column {col}: {self.message}"
