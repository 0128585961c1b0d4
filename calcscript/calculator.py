# Stateful calculator session: one Runtime reused across evaluations so that
# assignments made by one input are visible to the next.

from __future__ import annotations

import logging
from typing import List, Optional

from .errors import Diagnostic
from .lexer import Lexer
from .mathlib import DEFAULT_EPSILON
from .parser import Parser
from .runtime import Runtime
from .evaluator import Evaluator
from .syntax import Article
from .values import NONE, Val, Vars, format_value

logger = logging.getLogger(__name__)


class Calculator:
    """Parse, evaluate and render input against a persistent Runtime.

    Construction parses and evaluates ``text`` immediately. ``reparse``
    replaces the pending syntax tree without evaluating it; ``reevaluate``
    runs the current tree again against the same Runtime.
    """

    def __init__(self, text: str = '', runtime: Optional[Runtime] = None,
                 strict: bool = False, epsilon: float = DEFAULT_EPSILON):
        self.runtime = runtime if runtime is not None else Runtime(epsilon)
        self.strict = strict
        self.text = ''
        self.article = Article()
        self.diagnostics: List[Diagnostic] = []
        self.result: Val = NONE
        self.reparse(text)
        self.reevaluate()

    def reparse(self, text: str) -> Article:
        lexer = Lexer(text, strict=self.strict)
        parser = Parser(lexer.tokenize(), strict=self.strict)
        self.article = parser.parse()
        self.diagnostics = lexer.diagnostics + parser.diagnostics
        self.text = text
        return self.article

    def reevaluate(self) -> Val:
        self.result = Evaluator(self.runtime).eval(self.article)
        logger.debug(f"Evaluated {len(self.article.sentences)} sentence(s)")
        return self.result

    def evaluate(self, text: str) -> Val:
        self.reparse(text)
        return self.reevaluate()

    def restart(self) -> None:
        """Forget every variable and the last result."""
        self.runtime.restart()
        self.result = NONE

    def render_result(self) -> str:
        """One ``[out N] value`` line per top-level result, N counting from 1."""
        items = self.result.items if isinstance(self.result, Vars) else (self.result,)
        return '\n'.join(f"[out {i}] {format_value(v)}" for i, v in enumerate(items, 1))
