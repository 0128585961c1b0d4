# Recursive-descent parser building the syntax tree from tokens.
#
# Each production is a small state machine over the token list. A production
# that cannot match returns None ("no match") rather than raising, so callers
# can fall back to an alternative. Whitespace, newline and comment tokens are
# skipped everywhere except where noted:
#   - a newline after a complete unit stops implicit multiplication, only an
#     explicit operator may continue the expression on the next line;
#   - a call's argument list must follow the function name directly.
#
# Article parsing stops at the first position where no Sentence matches; the
# rest of the input is dropped and reported as a trailing-input diagnostic.

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .errors import Diagnostic, NESTING_TOO_DEEP, ParseError, TRAILING_INPUT
from .lexer import Lexer, Token, TokenKind
from .syntax import (
    Article,
    AssignmentExp,
    Block,
    Call,
    CalcUnit,
    Expression,
    ExprTuple,
    IdentifierRef,
    LiteralUnit,
    NegatedCall,
    NegatedIdentifier,
    NegatedLiteral,
    NegatedTuple,
    ParenthesizedTuple,
    Sentence,
    Separator,
)

logger = logging.getLogger(__name__)

_Match = Optional[Tuple[object, int]]

# Combined depth of open '(' and '{'. Deeper input does not match, which keeps
# the recursive productions well inside the interpreter's recursion limit.
MAX_NESTING = 64


class Parser:
    """Builds an Article from a token list (as produced by Lexer.tokenize)."""

    def __init__(self, tokens: List[Token], strict: bool = False):
        self.tokens = tokens
        self.len = len(tokens)
        self.strict = strict
        self.diagnostics: List[Diagnostic] = []
        # results of the position-only productions, keyed by start position
        self._expressions: Dict[int, _Match] = {}
        self._tuples: Dict[int, _Match] = {}
        self._depth = 0
        self._too_deep = False

    def parse(self) -> Article:
        sentences: List[Sentence] = []
        pos = 0
        while True:
            found = self._sentence(pos)
            if found is None:
                break
            sentence, pos = found
            sentences.append(sentence)
        self._check_trailing(pos)
        return Article(tuple(sentences))

    def _check_trailing(self, pos: int) -> None:
        rest = [t for t in self.tokens[pos:] if not t.is_skipped()]
        if not rest:
            return
        first = rest[0]
        diag = Diagnostic(
            TRAILING_INPUT,
            f"unparsed input starting at {first.lexeme!r} was dropped",
            (first.span[0], rest[-1].span[1]),
            first.line_column,
        )
        if self.strict:
            raise ParseError(str(diag))
        logger.debug(f"Parser stopped early: {diag}")
        self.diagnostics.append(diag)

    def _nesting_exceeded(self, tok: Token, depth: int) -> bool:
        """True if tok would open level depth beyond the limit; reported once."""
        if depth <= MAX_NESTING:
            return False
        if not self._too_deep:
            diag = Diagnostic(
                NESTING_TOO_DEEP,
                f"more than {MAX_NESTING} nested groups or blocks",
                tok.span,
                tok.line_column,
            )
            if self.strict:
                raise ParseError(str(diag))
            logger.debug(f"Parser gave up on nesting: {diag}")
            self.diagnostics.append(diag)
            self._too_deep = True
        return True

    # --------------------------
    # Sentence
    # --------------------------

    def _sentence(self, pos: int) -> _Match:
        # 0 -> done : ';'            => Separator
        # 0 -> 1    : '{'
        # 1 -> 2    : Sentence*
        # 2 -> done : '}'            => Block
        # 0 -> done : AssignmentExp | Expression
        state = 0
        block: List[Sentence] = []
        while pos < self.len:
            tok = self.tokens[pos]
            if tok.is_skipped():
                pos += 1
                continue
            if state == 0:
                if tok.kind is TokenKind.SEMICOLON:
                    return Separator(), pos + 1
                if tok.kind is TokenKind.LEFT_BRACE:
                    if self._nesting_exceeded(tok, self._depth + 1):
                        return None
                    pos += 1
                    state = 1
                    continue
                return self._assignment(pos) or self._expression(pos)
            if state == 1:
                self._depth += 1
                try:
                    while True:
                        found = self._sentence(pos)
                        if found is None:
                            break
                        block.append(found[0])
                        pos = found[1]
                finally:
                    self._depth -= 1
                state = 2
                continue
            if tok.kind is TokenKind.RIGHT_BRACE:
                return Block(tuple(block)), pos + 1
            return None
        return None

    def _assignment(self, pos: int) -> _Match:
        # 0 -> 1    : Identifier
        # 1 -> 2    : '='
        # 2 -> done : Expression
        state = 0
        name = ''
        while pos < self.len:
            tok = self.tokens[pos]
            if tok.is_skipped():
                pos += 1
                continue
            if state == 0 and tok.is_identifier():
                name = tok.literal.name
                pos += 1
                state = 1
                continue
            if state == 1 and tok.kind is TokenKind.EQUAL:
                pos += 1
                state = 2
                continue
            if state == 2:
                found = self._expression(pos)
                if found is not None:
                    return AssignmentExp(name, found[0]), found[1]
            return None
        return None

    # --------------------------
    # Expression
    # --------------------------

    def _expression(self, pos: int) -> _Match:
        if pos not in self._expressions:
            self._expressions[pos] = self._parse_expression(pos)
        return self._expressions[pos]

    def _parse_expression(self, pos: int) -> _Match:
        # 0    -> 1    : CalcUnit
        # 1, 3 -> 2    : operator
        # 1    -> 3    : newline
        # 1    -> 1    : CalcUnit (implicit multiplication)
        # 2    -> 1    : CalcUnit
        # 1, 3 -> done : anything else
        state = 0
        head: Optional[CalcUnit] = None
        rest: List[Tuple[TokenKind, CalcUnit]] = []
        op = TokenKind.STAR
        while pos < self.len:
            tok = self.tokens[pos]
            if tok.is_skipped():
                if state == 1 and tok.is_newline():
                    state = 3
                pos += 1
                continue
            if state in (1, 3) and tok.is_calc_op():
                op = tok.kind
                pos += 1
                state = 2
                continue
            if state == 3:
                return Expression(head, tuple(rest)), pos
            found = self._calc_unit(pos)
            if found is not None:
                if state == 0:
                    head = found[0]
                else:
                    rest.append((op, found[0]))
                    op = TokenKind.STAR
                pos = found[1]
                state = 1
                continue
            if state == 1:
                return Expression(head, tuple(rest)), pos
            return None
        # a dangling operator at end of input is dropped
        if head is None:
            return None
        return Expression(head, tuple(rest)), pos

    def _calc_unit(self, pos: int) -> _Match:
        # 0 -> done : Literal             => LiteralUnit
        # 0 -> 1    : '+' | '-'
        # 0 -> 2    : Identifier
        # 0 -> done : Tuple               => ParenthesizedTuple
        # 1 -> done : Literal             => NegatedLiteral
        # 1 -> 3    : Identifier
        # 1 -> done : Tuple               => NegatedTuple
        # 2, 3      : directly followed by Tuple => Call, else a name reference
        state = 0
        name = ''
        negative = False
        while pos < self.len:
            tok = self.tokens[pos]
            if tok.is_skipped():
                if state in (2, 3):
                    return self._name_unit(name, negative), pos
                pos += 1
                continue
            if state == 0:
                if tok.is_literal():
                    return LiteralUnit(tok.literal), pos + 1
                if tok.is_identifier():
                    name = tok.literal.name
                    pos += 1
                    state = 2
                    continue
                if tok.is_sign():
                    negative = tok.kind is TokenKind.MINUS
                    pos += 1
                    state = 1
                    continue
                found = self._tuple(pos)
                if found is not None:
                    return ParenthesizedTuple(found[0]), found[1]
                return None
            if state == 1:
                if tok.is_literal():
                    unit = NegatedLiteral if negative else LiteralUnit
                    return unit(tok.literal), pos + 1
                if tok.is_identifier():
                    name = tok.literal.name
                    pos += 1
                    state = 3
                    continue
                found = self._tuple(pos)
                if found is not None:
                    unit = NegatedTuple if negative else ParenthesizedTuple
                    return unit(found[0]), found[1]
                return None
            found = self._tuple(pos)
            if found is not None:
                unit = NegatedCall if negative else Call
                return unit(name, found[0]), found[1]
            return self._name_unit(name, negative), pos
        if state in (2, 3):
            return self._name_unit(name, negative), pos
        return None

    @staticmethod
    def _name_unit(name: str, negative: bool) -> CalcUnit:
        return NegatedIdentifier(name) if negative else IdentifierRef(name)

    def _tuple(self, pos: int) -> _Match:
        if pos not in self._tuples:
            self._depth += 1
            try:
                self._tuples[pos] = self._parse_tuple(pos)
            finally:
                self._depth -= 1
        return self._tuples[pos]

    def _parse_tuple(self, pos: int) -> _Match:
        # 0    -> 1    : '('
        # 1, 3 -> 2    : Expression
        # 2    -> 3    : ','
        # 1, 2 -> done : ')'
        state = 0
        items: List[Expression] = []
        while pos < self.len:
            tok = self.tokens[pos]
            if tok.is_skipped():
                pos += 1
                continue
            if state == 0 and tok.kind is TokenKind.LEFT_PAREN:
                if self._nesting_exceeded(tok, self._depth):
                    return None
                pos += 1
                state = 1
                continue
            if state in (1, 2) and tok.kind is TokenKind.RIGHT_PAREN:
                return ExprTuple(tuple(items)), pos + 1
            if state == 2 and tok.kind is TokenKind.COMMA:
                pos += 1
                state = 3
                continue
            if state in (1, 3):
                found = self._expression(pos)
                if found is not None:
                    items.append(found[0])
                    pos = found[1]
                    state = 2
                    continue
            return None
        return None


def parse(text: str, strict: bool = False) -> Article:
    """Tokenize and parse text in one step."""
    return Parser(Lexer(text, strict=strict).tokenize(), strict=strict).parse()


def parse_and_render(text: str) -> Tuple[str, str]:
    """Render the parsed statements followed by their tree dump.

    Returns ``(plain, tagged)``: the same content once as plain text and
    once with <span class='...'> markup for syntax highlighting.
    """
    article = parse(text)
    plain = article.render() + '\n' + article.tree()
    tagged = (article.render(tagged=True)
              + "\n<span class='tree_syntax'>" + article.tree(0, tagged=True) + '</span>')
    return plain, tagged
