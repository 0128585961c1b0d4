# Command line shell: one-shot evaluation, token / tree dumps and an
# interactive REPL on prompt_toolkit with history and completion.
#
# The shell adds no language semantics; everything goes through Calculator,
# tokenize_and_render and parse_and_render.

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory
from pydantic import ValidationError

from .calculator import Calculator
from .config import Settings, load_settings
from .errors import CalcError
from .lexer import tokenize_and_render
from .mathlib import builtin_names
from .parser import parse_and_render
from .runtime import Runtime
from .values import format_value

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_COMMANDS = [':help', ':vars', ':tokens', ':tree', ':reset', ':exit', ':quit']

_HELP_TOPICS: Dict[str, str] = {
    'general': (
        "calcscript help:\n"
        "Enter expressions, assignments and blocks. Results print as [out N] lines.\n"
        "Examples:\n"
        "  x = 3; 2x + 1      -> implicit multiplication\n"
        "  sin(pi / 2)\n"
        "  (1, 2)             -> a tuple\n"
        "  { a = 1; a + 1 }   -> a block (shares the outer scope)\n"
        "Commands:\n"
        "  :help [topic]      show help (topics: operators, functions)\n"
        "  :vars              list variables\n"
        "  :tokens <text>     dump the tokens of text\n"
        "  :tree <text>       dump the syntax tree of text\n"
        "  :reset             forget all variables\n"
        "  :exit              exit\n"
    ),
    'operators': (
        "Operators (high -> low):\n"
        "  ^ (power, right-assoc)\n"
        "  * / %    and implicit multiplication of adjacent units\n"
        "  + -\n"
        "A newline ends implicit multiplication; an explicit operator at the\n"
        "start of the next line continues the expression.\n"
    ),
    'functions': (
        "Built-in functions:\n"
        + ", ".join(builtin_names()) +
        "\nOne argument: sin(x); two arguments: pow(x, y), log(base, x).\n"
    ),
}


def show_help(topic: Optional[str] = None) -> str:
    """Return help text for topic or general if None."""
    if not topic:
        return _HELP_TOPICS['general']
    return _HELP_TOPICS.get(topic.lower(), f"No help available for topic '{topic}'")


class REPL:
    """Read-Eval-Print Loop over a single calculator session."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings if settings is not None else Settings()
        self.calculator = Calculator(runtime=Runtime(self.settings.epsilon),
                                     strict=self.settings.strict)
        self.session: Optional[PromptSession] = None

    def _process_command(self, line: str) -> Optional[str]:
        """Run a ':' command. Returns its output, or None if line is not a command."""
        s = line.strip()
        if not s.startswith(':'):
            return None
        parts = s[1:].split(None, 1)
        if not parts:
            return "No command specified. Use :help for available commands."
        cmd = parts[0].lower()
        rest = parts[1] if len(parts) > 1 else ''
        return self._run_command(cmd, rest)

    def _run_command(self, cmd: str, rest: str) -> str:
        """Execute a command. Raises EOFError for exit/quit."""
        if cmd in {'exit', 'quit'}:
            raise EOFError()
        if cmd == 'help':
            return show_help(rest.strip() or None)
        if cmd == 'vars':
            items = sorted(self.calculator.runtime.snapshot().items())
            if not items:
                return "(no variables)"
            return "\n".join(f"{k} = {format_value(v)}" for k, v in items)
        if cmd == 'tokens':
            return tokenize_and_render(rest, self.settings.verbosity).rstrip('\n')
        if cmd == 'tree':
            plain, _ = parse_and_render(rest)
            return plain
        if cmd == 'reset':
            self.calculator.restart()
            return "Session reset."
        return f"Unknown command: {cmd}"

    def evaluate_line(self, line: str) -> Tuple[bool, str]:
        """Evaluate a command or input line. Returns (ok, output)."""
        cmd_out = self._process_command(line)
        if cmd_out is not None:
            return True, cmd_out
        try:
            self.calculator.evaluate(line)
        except CalcError as e:
            return False, f"Error: {e}"
        lines = [self.calculator.render_result()]
        lines.extend(f"warning: {d}" for d in self.calculator.diagnostics)
        return True, "\n".join(lines)

    def _completer(self) -> WordCompleter:
        words = _COMMANDS + builtin_names() + sorted(self.calculator.runtime.snapshot())
        return WordCompleter(words)

    def repl_loop(self) -> None:
        print("calcscript REPL. Type :help for help. Ctrl-D or :exit to quit.")
        if self.session is None:
            self.session = PromptSession(history=FileHistory(self.settings.history_file))
        while True:
            try:
                line = self.session.prompt('> ', completer=self._completer())
            except KeyboardInterrupt:
                print("^C")
                continue
            except EOFError:
                print("Exiting.")
                break
            if not line.strip():
                continue
            try:
                _, out = self.evaluate_line(line)
            except EOFError:
                print("Exiting.")
                break
            print(out)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='calcscript', description="Evaluate calcscript expressions.")
    parser.add_argument('expression', nargs='?', help="Text to evaluate. Starts the REPL when omitted.")
    parser.add_argument('--tokens', action='store_true', help="Dump the tokens instead of evaluating.")
    parser.add_argument('--verbosity', type=int, choices=range(6), help="Token dump level (0-5).")
    parser.add_argument('--tree', action='store_true', help="Dump the syntax tree instead of evaluating.")
    parser.add_argument('--tagged', action='store_true', help="Add syntax markup to the tree dump.")
    parser.add_argument('--strict', action='store_true', default=None,
                        help="Fail on malformed input instead of recovering.")
    parser.add_argument('--log-level', type=str, help="Logging level (default: WARNING).")
    parser.add_argument('--env-file', type=str, help="Path of a .env file to load.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        settings = load_settings(args.env_file, log_level=args.log_level,
                                 verbosity=args.verbosity, strict=args.strict)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    logging.basicConfig(level=settings.logging_level, format=LOG_FORMAT)

    if args.expression is None:
        REPL(settings).repl_loop()
        return 0

    text = args.expression
    if args.tokens or args.tree:
        if args.tokens:
            print(tokenize_and_render(text, settings.verbosity).rstrip('\n'))
        if args.tree:
            plain, tagged = parse_and_render(text)
            print(tagged if args.tagged else plain)
        return 0

    try:
        calc = Calculator(text, strict=settings.strict, epsilon=settings.epsilon)
    except CalcError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(calc.render_result())
    for diag in calc.diagnostics:
        print(f"warning: {diag}", file=sys.stderr)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
