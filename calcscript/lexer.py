# Tokenizer for the calcscript language.
#
# The lexer never aborts: malformed numbers fall back to 0, unterminated
# strings and comments are cut at the input boundary and unknown characters
# become UNKNOWN tokens. Each of these is recorded as a Diagnostic. Whitespace
# (space, tab, carriage return) is skipped, but newlines are real tokens since
# the parser uses them to stop implicit multiplication.

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from .errors import (
    Diagnostic,
    LexError,
    MALFORMED_NUMBER,
    UNKNOWN_CHARACTER,
    UNTERMINATED_COMMENT,
    UNTERMINATED_STRING,
)
from .values import format_number

logger = logging.getLogger(__name__)

# --------------------------
# Token kinds
# --------------------------

class TokenKind(Enum):
    """Closed set of token kinds. Values are the display names used in dumps."""
    # single-character tokens
    LEFT_PAREN = 'LeftParen'
    RIGHT_PAREN = 'RightParen'
    LEFT_BRACE = 'LeftBrace'
    RIGHT_BRACE = 'RightBrace'
    LEFT_SQUARE = 'LeftSquare'
    RIGHT_SQUARE = 'RightSquare'
    COMMA = 'Comma'
    DOT = 'Dot'
    COLON = 'Colon'
    CARET = 'Caret'
    SEMICOLON = 'Semicolon'
    SLASH = 'Slash'
    PERCENT = 'Percent'
    STAR = 'Star'
    AND = 'And'
    OR = 'Or'
    # one or two character tokens
    BANG = 'Bang'
    BANG_EQUAL = 'BangEqual'
    EQUAL = 'Equal'
    EQUAL_EQUAL = 'EqualEqual'
    GREATER = 'Greater'
    GREATER_EQUAL = 'GreaterEqual'
    LESS = 'Less'
    LESS_EQUAL = 'LessEqual'
    MINUS = 'Minus'
    MINUS_MINUS = 'MinusMinus'
    PLUS = 'Plus'
    PLUS_PLUS = 'PlusPlus'
    # literals
    IDENTIFIER = 'Identifier'
    CHAR = 'Char'
    STRING = 'String'
    NUMBER = 'Number'
    BOOL = 'Bool'
    # skipped by the parser
    WHITESPACE = 'Whitespace'
    NEWLINE = 'NewLine'
    MULTI_LINE_COMMENT = 'MultiLineComment'
    SINGLE_LINE_COMMENT = 'SingleLineComment'
    # unrecognized input, absorbed
    UNKNOWN = 'Unknown'
    EOF = 'EOF'

    def __repr__(self) -> str:
        return self.value


_SINGLE_CHAR: dict = {
    '(': TokenKind.LEFT_PAREN,
    ')': TokenKind.RIGHT_PAREN,
    '{': TokenKind.LEFT_BRACE,
    '}': TokenKind.RIGHT_BRACE,
    '[': TokenKind.LEFT_SQUARE,
    ']': TokenKind.RIGHT_SQUARE,
    ',': TokenKind.COMMA,
    '.': TokenKind.DOT,
    ':': TokenKind.COLON,
    '^': TokenKind.CARET,
    ';': TokenKind.SEMICOLON,
    '/': TokenKind.SLASH,
    '%': TokenKind.PERCENT,
    '*': TokenKind.STAR,
    '&': TokenKind.AND,
    '|': TokenKind.OR,
    '!': TokenKind.BANG,
    '=': TokenKind.EQUAL,
    '>': TokenKind.GREATER,
    '<': TokenKind.LESS,
    '-': TokenKind.MINUS,
    '+': TokenKind.PLUS,
}

# Two-character operators, recognized with one character of lookahead.
_DOUBLE_CHAR: dict = {
    '++': TokenKind.PLUS_PLUS,
    '--': TokenKind.MINUS_MINUS,
    '!=': TokenKind.BANG_EQUAL,
    '==': TokenKind.EQUAL_EQUAL,
    '>=': TokenKind.GREATER_EQUAL,
    '<=': TokenKind.LESS_EQUAL,
}

SYMBOLS: dict = {kind: ch for ch, kind in _SINGLE_CHAR.items()}
SYMBOLS.update({kind: chars for chars, kind in _DOUBLE_CHAR.items()})

_SKIPPED = {
    TokenKind.WHITESPACE,
    TokenKind.NEWLINE,
    TokenKind.MULTI_LINE_COMMENT,
    TokenKind.SINGLE_LINE_COMMENT,
}
_LITERALS = {TokenKind.CHAR, TokenKind.STRING, TokenKind.NUMBER, TokenKind.BOOL}

# Binary operators an Expression chain accepts, with their precedence.
PRECEDENCE: dict = {
    TokenKind.PLUS: 1,
    TokenKind.MINUS: 1,
    TokenKind.STAR: 2,
    TokenKind.SLASH: 2,
    TokenKind.PERCENT: 2,
    TokenKind.CARET: 3,
}
RIGHT_ASSOCIATIVE = {TokenKind.CARET}

_ESCAPES = {'\\': '\\', "'": "'", '"': '"', 'n': '\n', 'r': '\r', 't': '\t'}


def unescape(c: str) -> str:
    """Character denoted by a backslash escape; unknown escapes pass through."""
    return _ESCAPES.get(c, c)


def markup(css_class: str, text: str) -> str:
    return f"<span class='{css_class}'>{html.escape(text, quote=False)}</span>"


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)

# --------------------------
# Literals
# --------------------------

@dataclass(frozen=True)
class Identifier:
    name: str

    def plain(self) -> str:
        return self.name

    def decorated(self) -> str:
        return f"<{self.name}>"

    def tagged(self) -> str:
        return markup('syntax_identifier', self.name)

    def describe(self) -> str:
        return f"Identifier({_quote(self.name)})"


@dataclass(frozen=True)
class CharLit:
    value: str

    def plain(self) -> str:
        return self.value

    def decorated(self) -> str:
        return f"'{self.value}'"

    def tagged(self) -> str:
        return markup('syntax_char', self.decorated())

    def describe(self) -> str:
        return f"Char({self.decorated()})"


@dataclass(frozen=True)
class StringLit:
    value: str

    def plain(self) -> str:
        return self.value

    def decorated(self) -> str:
        return f'"{self.value}"'

    def tagged(self) -> str:
        return markup('syntax_string', self.decorated())

    def describe(self) -> str:
        return f"String({_quote(self.value)})"


@dataclass(frozen=True)
class NumberLit:
    value: float

    def plain(self) -> str:
        return format_number(self.value)

    def decorated(self) -> str:
        return self.plain()

    def tagged(self) -> str:
        return markup('syntax_number', self.plain())

    def describe(self) -> str:
        return f"Number({self.value!r})"


@dataclass(frozen=True)
class BoolLit:
    value: bool

    def plain(self) -> str:
        return 'true' if self.value else 'false'

    def decorated(self) -> str:
        return self.plain()

    def tagged(self) -> str:
        return markup('syntax_bool', self.plain())

    def describe(self) -> str:
        return f"Bool({self.plain()})"


Literal = Union[Identifier, CharLit, StringLit, NumberLit, BoolLit]

# --------------------------
# Numeric literals
# --------------------------

_RADIX_PREFIXES = {'0x': 16, '0b': 2, '0o': 8}
_INT_SUFFIXES = ('i16', 'i32', 'i64', 'u16', 'u32', 'u64', 'i8', 'u8')
_FLOAT_SUFFIXES = ('f32', 'f64')
_U64_LIMIT = 1 << 64


def parse_number(lexeme: str) -> Tuple[float, Optional[str]]:
    """Resolve a numeric lexeme to a float.

    Returns ``(value, error)``. On any error the value is 0.0 and ``error``
    describes the first problem found; integers are returned as floats.
    """
    n = lexeme.replace('_', '').lower()
    radix = 10
    integer = False
    error: Optional[str] = None

    if len(n) > 2 and n[:2] in _RADIX_PREFIXES:
        radix = _RADIX_PREFIXES[n[:2]]
        n = n[2:]
        integer = True

    for suffix in _INT_SUFFIXES + _FLOAT_SUFFIXES:
        if len(n) > len(suffix) and n.endswith(suffix):
            n = n[:-len(suffix)]
            if suffix in _FLOAT_SUFFIXES:
                if integer:
                    error = f"float suffix '{suffix}' on an integer literal"
            else:
                integer = True
            break

    if integer and '.' in n and error is None:
        error = "fractional part on an integer literal"

    exponent = 0
    if 'e' in n:
        if integer:
            if radix != 16 and error is None:
                error = "exponent on an integer literal"
        else:
            idx = n.index('e')
            n, tail = n[:idx], n[idx + 1:]
            try:
                exponent = int(tail)
            except ValueError:
                if error is None:
                    error = f"bad exponent '{tail}'"

    value = 0.0
    if integer:
        try:
            parsed = int(n, radix)
            if parsed < 0 or parsed >= _U64_LIMIT:
                raise ValueError(n)
            value = float(parsed)
        except ValueError:
            if error is None:
                error = f"invalid base-{radix} digits '{n}'"
    else:
        try:
            value = float(f"{n}e{exponent}") if exponent else float(n)
        except ValueError:
            if error is None:
                error = f"invalid digits '{n}'"

    if error is not None:
        return 0.0, error
    return value, None

# --------------------------
# Tokens
# --------------------------

@dataclass(frozen=True)
class Token:
    """A token with its lexeme, optional literal and source location.

    ``line_column`` is zero based; ``span`` is the ``[start, end)`` character
    range in the source text.
    """
    kind: TokenKind
    lexeme: str
    literal: Optional[Literal]
    line_column: Tuple[int, int]
    span: Tuple[int, int]

    def is_skipped(self) -> bool:
        return self.kind in _SKIPPED

    def is_newline(self) -> bool:
        return self.kind is TokenKind.NEWLINE

    def is_literal(self) -> bool:
        return self.kind in _LITERALS

    def is_identifier(self) -> bool:
        return self.kind is TokenKind.IDENTIFIER

    def is_sign(self) -> bool:
        return self.kind in (TokenKind.PLUS, TokenKind.MINUS)

    def is_calc_op(self) -> bool:
        return self.kind in PRECEDENCE

    def describe_literal(self) -> str:
        return 'None' if self.literal is None else self.literal.describe()

    def render(self, verbosity: int) -> str:
        """Render the token at a dump verbosity level (0..5)."""
        kind = self.kind.value
        if verbosity == 5:
            return self.dump()
        if verbosity == 4:
            return (f"Token {{ kind: {kind}, lexeme: {_quote(self.lexeme)}, "
                    f"literal: {self.describe_literal()}, "
                    f"line_column: {list(self.line_column)}, span: {list(self.span)} }}\n")
        if verbosity == 3:
            return (f"Type:{kind:<20}\t<Line, Column>{list(self.line_column)} "
                    f"\t<Start, End>{list(self.span)} "
                    f"\tContent({_quote(self.lexeme)}) \tLiteral({self.describe_literal()})\n")
        if verbosity == 2:
            return f"{kind}{list(self.line_column)}({_quote(self.lexeme)})\n"
        if verbosity == 1:
            return f"{kind}({_quote(self.lexeme)}) "
        return f"{kind} "

    def dump(self) -> str:
        line, col = self.line_column
        start, end = self.span
        return (
            "Token {\n"
            f"    kind: {self.kind.value},\n"
            f"    lexeme: {_quote(self.lexeme)},\n"
            f"    literal: {self.describe_literal()},\n"
            f"    line_column: [\n        {line},\n        {col},\n    ],\n"
            f"    span: [\n        {start},\n        {end},\n    ],\n"
            "}\n"
        )

# --------------------------
# Lexer
# --------------------------

def _is_ascii_alnum(c: str) -> bool:
    return c.isascii() and c.isalnum()


def _is_word(c: str) -> bool:
    return c == '_' or _is_ascii_alnum(c)


def _is_digit(c: str) -> bool:
    return c != '' and c in '0123456789'


class Lexer:
    """Converts source text into a list of tokens.

    The end of input is implicit: no EOF token is appended to the result.
    Recovered problems are collected in ``diagnostics``; with ``strict=True``
    the first one is raised as a LexError instead.
    """

    def __init__(self, text: str, strict: bool = False):
        self.text = text
        self.pos = 0
        self.len = len(text)
        self.line = 0
        self.col = 0
        self.strict = strict
        self.diagnostics: List[Diagnostic] = []

    def _peek(self, n: int = 0) -> str:
        i = self.pos + n
        return self.text[i] if i < self.len else ''

    def _skip_whitespace(self) -> None:
        while self._peek() in (' ', '\t', '\r'):
            self.pos += 1
            self.col += 1

    def _make(self, kind: TokenKind, end: int, literal: Optional[Literal] = None) -> Token:
        return Token(kind, self.text[self.pos:end], literal, (self.line, self.col), (self.pos, end))

    def _diagnose(self, kind: str, message: str, end: int) -> None:
        diag = Diagnostic(kind, message, (self.pos, end), (self.line, self.col))
        if self.strict:
            raise LexError(str(diag))
        logger.debug(f"Lexer recovered from {diag}")
        self.diagnostics.append(diag)

    def _advance_past(self, tok: Token) -> None:
        self.pos = tok.span[1]
        if tok.is_newline():
            self.line += 1
            self.col = 0
            return
        breaks = tok.lexeme.count('\n')
        if breaks:
            self.line += breaks
            self.col = len(tok.lexeme) - tok.lexeme.rfind('\n') - 1
        else:
            self.col += len(tok.lexeme)

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            self._skip_whitespace()
            if self.pos >= self.len:
                break
            tok = self._next_token()
            tokens.append(tok)
            self._advance_past(tok)
        return tokens

    def _next_token(self) -> Token:
        ch = self._peek()
        if ch == '\n':
            return self._make(TokenKind.NEWLINE, self.pos + 1)
        if ch == '/' and self._peek(1) == '/':
            end = self.text.find('\n', self.pos)
            return self._make(TokenKind.SINGLE_LINE_COMMENT, self.len if end < 0 else end)
        if ch == '/' and self._peek(1) == '*':
            return self._read_block_comment()
        for word, value in (('true', True), ('false', False)):
            if self.text.startswith(word, self.pos) and not _is_ascii_alnum(self._peek(len(word))):
                return self._make(TokenKind.BOOL, self.pos + len(word), BoolLit(value))
        if ch == "'":
            tok = self._read_char()
            if tok is not None:
                return tok
        if ch == '"':
            return self._read_string()
        if ch == '_' or (ch.isascii() and ch.isalpha()):
            return self._read_identifier()
        if _is_digit(ch):
            return self._read_number()
        two = self.text[self.pos:self.pos + 2]
        if two in _DOUBLE_CHAR:
            return self._make(_DOUBLE_CHAR[two], self.pos + 2)
        if ch in _SINGLE_CHAR:
            return self._make(_SINGLE_CHAR[ch], self.pos + 1)
        self._diagnose(UNKNOWN_CHARACTER, f"unexpected character {ch!r}", self.pos + 1)
        return self._make(TokenKind.UNKNOWN, self.pos + 1)

    def _read_block_comment(self) -> Token:
        close = self.text.find('*/', self.pos + 2)
        if close < 0:
            self._diagnose(UNTERMINATED_COMMENT, "comment is not closed before end of input", self.len)
            return self._make(TokenKind.MULTI_LINE_COMMENT, self.len)
        return self._make(TokenKind.MULTI_LINE_COMMENT, close + 2)

    def _read_char(self) -> Optional[Token]:
        if self._peek(1) != '\\' and self._peek(1) != '' and self._peek(2) == "'":
            return self._make(TokenKind.CHAR, self.pos + 3, CharLit(self._peek(1)))
        if self._peek(1) == '\\' and self._peek(2) != '' and self._peek(3) == "'":
            return self._make(TokenKind.CHAR, self.pos + 4, CharLit(unescape(self._peek(2))))
        return None

    def _read_string(self) -> Token:
        end = self.pos + 1
        chars: List[str] = []
        escaped = False
        while end < self.len and (escaped or self.text[end] != '"') and self.text[end] != '\n':
            c = self.text[end]
            if escaped:
                chars.append(unescape(c))
                escaped = False
            elif c == '\\':
                escaped = True
            else:
                chars.append(c)
            end += 1
        if end < self.len and self.text[end] == '"':
            end += 1
        else:
            self._diagnose(UNTERMINATED_STRING, "string is not closed before end of line", end)
        return self._make(TokenKind.STRING, end, StringLit(''.join(chars)))

    def _read_identifier(self) -> Token:
        end = self.pos + 1
        while end < self.len and _is_word(self.text[end]):
            end += 1
        return self._make(TokenKind.IDENTIFIER, end, Identifier(self.text[self.pos:end]))

    def _read_number(self) -> Token:
        text = self.text
        end = self.pos + 1
        while end < self.len and _is_word(text[end]):
            end += 1
        if end + 1 < self.len and text[end] == '.' and _is_digit(text[end + 1]):
            end += 1
            while end < self.len and _is_word(text[end]):
                end += 1
        if end < self.len and text[end - 1] in 'eE' and text[end] in '+-':
            end += 1
            while end < self.len and _is_word(text[end]):
                end += 1
        lexeme = text[self.pos:end]
        value, error = parse_number(lexeme)
        if error is not None:
            self._diagnose(MALFORMED_NUMBER, f"{lexeme!r}: {error}", end)
        return self._make(TokenKind.NUMBER, end, NumberLit(value))


def tokenize(text: str, strict: bool = False) -> List[Token]:
    """Tokenize text, discarding diagnostics (use Lexer to keep them)."""
    return Lexer(text, strict=strict).tokenize()


def tokenize_and_render(text: str, verbosity: int = 0) -> str:
    """Human-readable dump of the token stream.

    0 = kinds, 1 = kinds with lexemes, 2 = kinds, positions and lexemes,
    3 = aligned table, 4/5 = full structural dumps. Other levels fall back
    to 0.
    """
    return ''.join(tok.render(verbosity) for tok in tokenize(text))
