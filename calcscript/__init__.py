"""calcscript: a small expression language for calculator sessions.

Pipeline: ``tokenize`` -> ``Parser`` -> ``Evaluator`` against a ``Runtime``.
``Calculator`` keeps one Runtime per session so assignments persist.
"""

from .calculator import Calculator
from .errors import CalcError, Diagnostic, LexError, ParseError
from .evaluator import Evaluator, evaluate, evaluate_text
from .lexer import Lexer, Token, TokenKind, tokenize, tokenize_and_render
from .parser import Parser, parse, parse_and_render
from .runtime import Runtime, System
from .values import NONE, Complex, Function, Real, Vars, format_value, reduce

__all__ = [
    'Calculator',
    'CalcError',
    'Complex',
    'Diagnostic',
    'Evaluator',
    'Function',
    'LexError',
    'Lexer',
    'NONE',
    'ParseError',
    'Parser',
    'Real',
    'Runtime',
    'System',
    'Token',
    'TokenKind',
    'Vars',
    'evaluate',
    'evaluate_text',
    'format_value',
    'parse',
    'parse_and_render',
    'reduce',
    'tokenize',
    'tokenize_and_render',
]
