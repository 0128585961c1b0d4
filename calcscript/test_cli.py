import pytest

from calcscript.cli import REPL, build_arg_parser, main, show_help
from calcscript.config import Settings


@pytest.fixture
def repl(tmp_path):
    return REPL(Settings(history_file=str(tmp_path / 'history')))


@pytest.fixture
def env_file(monkeypatch, tmp_path):
    for name in Settings.model_fields:
        monkeypatch.delenv('CALCSCRIPT_' + name.upper(), raising=False)
    return str(tmp_path / 'missing.env')


def test_show_help_topics():
    assert "calcscript help" in show_help()
    assert "right-assoc" in show_help("operators")
    assert "arcsin" in show_help("FUNCTIONS")
    assert show_help("nonexistent") == "No help available for topic 'nonexistent'"


def test_evaluate_line(repl):
    assert repl.evaluate_line("1+2") == (True, "[out 1] 3")
    assert repl.evaluate_line("x = 4; x x") == (True, "[out 1] ()\n[out 2] ()\n[out 3] 16")


def test_evaluate_line_reports_warnings(repl):
    ok, out = repl.evaluate_line("1 @")
    assert ok
    assert out.splitlines()[0] == "[out 1] 1"
    assert "warning: unknown-character at line 0, column 2" in out


def test_evaluate_line_strict_errors(tmp_path):
    repl = REPL(Settings(strict=True, history_file=str(tmp_path / 'history')))
    ok, out = repl.evaluate_line("1.5i32")
    assert not ok
    assert out.startswith("Error: malformed-number")


def test_vars_and_reset(repl):
    assert repl.evaluate_line(":vars") == (True, "(no variables)")
    repl.evaluate_line("b = 2; a = sin")
    assert repl.evaluate_line(":vars") == (True, "a = @fun: sin\nb = 2")
    assert repl.evaluate_line(":reset") == (True, "Session reset.")
    assert repl.evaluate_line(":vars") == (True, "(no variables)")


def test_tokens_and_tree_commands(repl):
    ok, out = repl.evaluate_line(":tokens 1+2")
    assert ok
    assert out.startswith("Type:Number")
    assert out.count("\n") == 2
    ok, out = repl.evaluate_line(":tree 1")
    assert ok
    assert out.startswith("1\n")
    assert "+Article Sentences 1" in out


def test_help_and_unknown_commands(repl):
    assert "calcscript help" in repl.evaluate_line(":help")[1]
    assert "arcsin" in repl.evaluate_line(":help functions")[1]
    assert repl.evaluate_line(":frobnicate") == (True, "Unknown command: frobnicate")
    assert repl.evaluate_line(":") == (True, "No command specified. Use :help for available commands.")


@pytest.mark.parametrize("line", [":exit", ":quit", "  :EXIT  "])
def test_exit_commands(repl, line):
    with pytest.raises(EOFError):
        repl.evaluate_line(line)


def test_completer_knows_builtins_and_variables(repl):
    repl.evaluate_line("myvar = 1")
    words = repl._completer().words
    assert ':help' in words
    assert 'sqrt' in words
    assert 'myvar' in words


def test_arg_parser_defaults():
    args = build_arg_parser().parse_args([])
    assert args.expression is None
    assert args.strict is None
    assert args.verbosity is None


def test_main_evaluates(capsys, env_file):
    assert main(["--env-file", env_file, "1+2"]) == 0
    assert capsys.readouterr().out == "[out 1] 3\n"


def test_main_prints_warnings_to_stderr(capsys, env_file):
    assert main(["--env-file", env_file, "2 @"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "[out 1] 2\n"
    assert "warning: unknown-character" in captured.err


def test_main_token_dump(capsys, env_file):
    assert main(["--env-file", env_file, "--tokens", "--verbosity", "0", "2\n2"]) == 0
    assert capsys.readouterr().out.strip() == "Number NewLine Number"


def test_main_tree_dump(capsys, env_file):
    assert main(["--env-file", env_file, "--tree", "x"]) == 0
    assert "+--- Identifier x" in capsys.readouterr().out
    assert main(["--env-file", env_file, "--tree", "--tagged", "x"]) == 0
    assert "<span class='tree_syntax'>" in capsys.readouterr().out


def test_main_strict_failure(capsys, env_file):
    assert main(["--env-file", env_file, "--strict", "1.5i32"]) == 1
    assert capsys.readouterr().err.startswith("Error: malformed-number")


def test_main_invalid_configuration(capsys, monkeypatch, env_file):
    monkeypatch.setenv('CALCSCRIPT_EPSILON', '-1')
    assert main(["--env-file", env_file, "1"]) == 2
    assert "Invalid configuration" in capsys.readouterr().err


def test_main_rejects_bad_verbosity(env_file):
    with pytest.raises(SystemExit):
        main(["--env-file", env_file, "--verbosity", "9", "1"])


class ScriptedSession:
    """Stands in for PromptSession: replays lines, then ends input."""

    def __init__(self, lines):
        self.lines = list(lines)

    def prompt(self, message, completer=None):
        if not self.lines:
            raise EOFError()
        return self.lines.pop(0)


def test_repl_loop_prints_results_and_errors(tmp_path, capsys):
    repl = REPL(Settings(strict=True, history_file=str(tmp_path / 'history')))
    repl.session = ScriptedSession(["1+1", "", "1.5i32", ":nope"])
    repl.repl_loop()
    out = capsys.readouterr().out
    assert "[out 1] 2" in out
    assert "Error: malformed-number" in out
    assert "Unknown command: nope" in out
    assert out.rstrip().endswith("Exiting.")


def test_repl_loop_stops_on_exit_command(repl, capsys):
    repl.session = ScriptedSession([":exit", "1+1"])
    repl.repl_loop()
    out = capsys.readouterr().out
    assert "[out 1]" not in out
    assert out.rstrip().endswith("Exiting.")
