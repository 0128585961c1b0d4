# Tree-walking evaluator.
#
# Expressions are flat operator chains; precedence is applied here with a
# value stack and an operator stack. Every sub-result is reduced before it is
# used, so "(x)" behaves like "x" while "(1, 2)" stays a tuple.

from __future__ import annotations

import logging
from typing import List, Optional

from .lexer import (
    BoolLit,
    Literal,
    NumberLit,
    PRECEDENCE,
    RIGHT_ASSOCIATIVE,
    SYMBOLS,
    TokenKind,
)
from .parser import parse
from .runtime import Runtime
from .syntax import (
    Article,
    AssignmentExp,
    Block,
    Call,
    Expression,
    ExprTuple,
    IdentifierRef,
    LiteralUnit,
    NegatedCall,
    NegatedIdentifier,
    NegatedLiteral,
    NegatedTuple,
    ParenthesizedTuple,
    Separator,
)
from .values import NONE, Real, Val, Vars, calc, neg, reduce

logger = logging.getLogger(__name__)


def _binds_first(top: TokenKind, incoming: TokenKind) -> bool:
    """True if the stacked operator must be applied before pushing incoming."""
    if incoming in RIGHT_ASSOCIATIVE and top == incoming:
        return False
    return PRECEDENCE[top] >= PRECEDENCE[incoming]


class Evaluator:
    """Evaluates syntax tree nodes against a Runtime.

    Blocks are evaluated in the enclosing scope: no scope is pushed for
    ``{ ... }``, so assignments inside a block are visible after it.
    """

    def __init__(self, runtime: Optional[Runtime] = None):
        self.runtime = runtime if runtime is not None else Runtime()

    def eval(self, node) -> Val:
        if isinstance(node, Article):
            return Vars(tuple(self.eval(s) for s in node.sentences))
        if isinstance(node, AssignmentExp):
            val = self.eval(node.value)
            logger.debug(f"Assigning {node.name} = {val!r}")
            self.runtime.set(node.name, val)
            return NONE
        if isinstance(node, Separator):
            return NONE
        if isinstance(node, Block):
            return Vars(tuple(self.eval(s) for s in node.sentences))
        if isinstance(node, Expression):
            return self._eval_chain(node)
        if isinstance(node, ExprTuple):
            return Vars(tuple(reduce(self.eval(e)) for e in node.items))
        if isinstance(node, LiteralUnit):
            return self._literal(node.literal)
        if isinstance(node, NegatedLiteral):
            return neg(self._literal(node.literal))
        if isinstance(node, IdentifierRef):
            return reduce(self.runtime.get(node.name))
        if isinstance(node, NegatedIdentifier):
            return neg(reduce(self.runtime.get(node.name)))
        if isinstance(node, Call):
            return self._call(node.name, node.args)
        if isinstance(node, NegatedCall):
            return neg(self._call(node.name, node.args))
        if isinstance(node, ParenthesizedTuple):
            return reduce(self.eval(node.group))
        if isinstance(node, NegatedTuple):
            return neg(reduce(self.eval(node.group)))
        raise TypeError(f"Unsupported syntax node: {type(node).__name__}")

    def _literal(self, literal: Literal) -> Val:
        if isinstance(literal, NumberLit):
            return Real(literal.value)
        if isinstance(literal, BoolLit):
            return Real(1.0 if literal.value else 0.0)
        # chars and strings have no numeric value
        return NONE

    def _call(self, name: str, args: ExprTuple) -> Val:
        callee = self.runtime.get(name)
        result = self.runtime.call_value(callee, reduce(self.eval(args)))
        return reduce(result)

    def _eval_chain(self, node: Expression) -> Val:
        values: List[Val] = [reduce(self.eval(node.head))]
        operators: List[TokenKind] = []

        def apply() -> None:
            b = values.pop()
            a = values.pop()
            values.append(calc(a, b, SYMBOLS[operators.pop()]))

        for op, unit in node.rest:
            while operators and _binds_first(operators[-1], op):
                apply()
            values.append(reduce(self.eval(unit)))
            operators.append(op)
        while operators:
            apply()
        return reduce(values.pop())


def evaluate(article: Article, runtime: Optional[Runtime] = None) -> Val:
    """Evaluate a parsed article; returns a Vars with one result per sentence."""
    return Evaluator(runtime).eval(article)


def evaluate_text(text: str, runtime: Optional[Runtime] = None) -> Val:
    return evaluate(parse(text), runtime)
