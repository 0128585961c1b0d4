# Syntax tree produced by the parser.
#
# An Article is a list of Sentences. An Expression is a flat chain
# ``unit (op unit)*``; precedence is resolved by the evaluator. A leading
# minus is folded into the unit variant (NegatedLiteral, NegatedCall, ...),
# so only a single sign in front of a unit can be represented.
#
# Every node renders back to source-like text (``render``) and to an indented
# tree dump (``tree``). With ``tagged=True`` both carry <span class='...'>
# markup per token class for syntax highlighting.

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Tuple, Union

from .lexer import Literal, SYMBOLS, TokenKind, markup

INDENT = '|   '


def _wrap(css_class: str, inner: str) -> str:
    """Wrap already rendered markup; inner is not escaped."""
    return f"<span class='{css_class}'>{inner}</span>"


def _node(tagged: bool, name: str) -> str:
    return markup('tree_syntax_node', name) if tagged else name


def _ident(tagged: bool, name: str) -> str:
    return markup('syntax_identifier', name) if tagged else name


def _literal(tagged: bool, lit: Literal) -> str:
    return lit.tagged() if tagged else lit.plain()

# --------------------------
# Tuples and calculation units
# --------------------------

@dataclass(frozen=True)
class ExprTuple:
    """Parenthesized, comma separated expressions: a call's arguments or a group."""
    items: Tuple['Expression', ...]

    def render(self, tagged: bool = False) -> str:
        inner = '(' + ', '.join(e.render(tagged) for e in self.items) + ')'
        return _wrap('syntax_tuple', inner) if tagged else inner

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        res = f"+Tuple: {len(self.items)}"
        for e in self.items:
            res += '\n' + INDENT * level + '+---' + e.tree(level + 1, tagged)
        return res


@dataclass(frozen=True)
class LiteralUnit:
    literal: Literal

    def render(self, tagged: bool = False) -> str:
        return _literal(tagged, self.literal)

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        return ' Literal ' + _node(tagged, self.literal.decorated())


@dataclass(frozen=True)
class NegatedLiteral:
    literal: Literal

    def render(self, tagged: bool = False) -> str:
        if tagged:
            return _wrap('syntax_neg', '-' + self.literal.tagged())
        return '-' + self.literal.plain()

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        return ' Literal Minus ' + _node(tagged, self.literal.decorated())


@dataclass(frozen=True)
class IdentifierRef:
    name: str

    def render(self, tagged: bool = False) -> str:
        return _ident(tagged, self.name)

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        return ' Identifier ' + _node(tagged, self.name)


@dataclass(frozen=True)
class NegatedIdentifier:
    name: str

    def render(self, tagged: bool = False) -> str:
        if tagged:
            return _wrap('syntax_neg', '-' + _ident(True, self.name))
        return '-' + self.name

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        return ' Identifier Minus ' + _node(tagged, self.name)


@dataclass(frozen=True)
class Call:
    name: str
    args: ExprTuple

    def render(self, tagged: bool = False) -> str:
        if tagged:
            return _wrap('syntax_fun', html.escape(self.name) + self.args.render(True))
        return self.name + self.args.render()

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        res = '+Function ' + _node(tagged, self.name) + '\n'
        return res + INDENT * level + '+---' + self.args.tree(level + 1, tagged)


@dataclass(frozen=True)
class NegatedCall:
    name: str
    args: ExprTuple

    def render(self, tagged: bool = False) -> str:
        if tagged:
            return _wrap('syntax_neg', '-' + Call(self.name, self.args).render(True))
        return '-' + self.name + self.args.render()

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        res = '+Function Minus ' + _node(tagged, self.name) + '\n'
        return res + INDENT * level + '+---' + self.args.tree(level + 1, tagged)


@dataclass(frozen=True)
class ParenthesizedTuple:
    group: ExprTuple

    def render(self, tagged: bool = False) -> str:
        return self.group.render(tagged)

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        return self.group.tree(level, tagged)


@dataclass(frozen=True)
class NegatedTuple:
    group: ExprTuple

    def render(self, tagged: bool = False) -> str:
        if tagged:
            return _wrap('syntax_neg', '-' + self.group.render(True))
        return '-' + self.group.render()

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        return '+Group Minus\n' + INDENT * level + '+---' + self.group.tree(level + 1, tagged)


CalcUnit = Union[
    LiteralUnit, NegatedLiteral, IdentifierRef, NegatedIdentifier,
    Call, NegatedCall, ParenthesizedTuple, NegatedTuple,
]

# --------------------------
# Expressions and sentences
# --------------------------

@dataclass(frozen=True)
class Expression:
    head: CalcUnit
    rest: Tuple[Tuple[TokenKind, CalcUnit], ...] = ()

    def render(self, tagged: bool = False) -> str:
        res = self.head.render(tagged)
        for op, unit in self.rest:
            sym = SYMBOLS[op]
            if tagged:
                sym = _wrap('syntax_operator', html.escape(sym))
            res += f" {sym} {unit.render(tagged)}"
        return _wrap('syntax_expression', res) if tagged else res

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        res = f"+Expression: {len(self.rest)}\n"
        res += INDENT * level + '+---' + self.head.tree(level + 1, tagged)
        for op, unit in self.rest:
            res += '\n' + INDENT * level + '| Operator ' + _node(tagged, SYMBOLS[op])
            res += '\n' + INDENT * level + '+---' + unit.tree(level + 1, tagged)
        return res


@dataclass(frozen=True)
class AssignmentExp:
    name: str
    value: Expression

    def render(self, tagged: bool = False) -> str:
        if tagged:
            inner = f"{_ident(True, self.name)} = {self.value.render(True)}"
            return _wrap('syntax_assign', inner) + '\n'
        return f"{self.name} = {self.value.render()}\n"

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        return f"+Assign {_node(tagged, self.name)} {self.value.tree(level + 1, tagged)}"


@dataclass(frozen=True)
class Separator:
    """A bare ';'."""

    def render(self, tagged: bool = False) -> str:
        if tagged:
            return _wrap('syntax_separator', ';') + '\n'
        return ';\n'

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        return _node(tagged, ' ;')


@dataclass(frozen=True)
class Block:
    """Sentences between braces. Evaluated in the enclosing scope."""
    sentences: Tuple['Sentence', ...]

    def render(self, tagged: bool = False) -> str:
        res = '{\n' + ''.join(_sentence_text(s, tagged) for s in self.sentences) + '}\n'
        return _wrap('syntax_codeblock', res) + '\n' if tagged else res

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        res = '+CodeBlock'
        for s in self.sentences:
            res += '\n' + INDENT * level + '|---' + s.tree(level + 1, tagged)
        return res


Sentence = Union[AssignmentExp, Expression, Separator, Block]


def _sentence_text(s: Sentence, tagged: bool) -> str:
    # a bare expression sentence is the only one that does not end its own line
    if isinstance(s, Expression):
        return s.render(tagged) + '\n'
    return s.render(tagged)


@dataclass(frozen=True)
class Article:
    sentences: Tuple[Sentence, ...] = ()

    def render(self, tagged: bool = False) -> str:
        res = ''.join(_sentence_text(s, tagged) for s in self.sentences)
        return _wrap('syntax_article_sentences', res) if tagged else res

    def tree(self, level: int = 0, tagged: bool = False) -> str:
        res = f"+Article Sentences {len(self.sentences)}"
        for s in self.sentences:
            res += '\n' + INDENT * level + '+---' + s.tree(level + 1, tagged)
        return res
