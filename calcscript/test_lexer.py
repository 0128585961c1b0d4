import logging
import math

import pytest

from calcscript.errors import (
    LexError,
    MALFORMED_NUMBER,
    UNKNOWN_CHARACTER,
    UNTERMINATED_COMMENT,
    UNTERMINATED_STRING,
)
from calcscript.lexer import (
    BoolLit,
    CharLit,
    Identifier,
    Lexer,
    NumberLit,
    StringLit,
    TokenKind,
    parse_number,
    tokenize,
    tokenize_and_render,
)

K = TokenKind


def kinds(text):
    return [t.kind for t in tokenize(text)]


def lex(text):
    lexer = Lexer(text)
    return lexer.tokenize(), lexer.diagnostics


def test_newline_is_a_token():
    assert kinds("2\n2") == [K.NUMBER, K.NEWLINE, K.NUMBER]


def test_spans_cover_the_text_except_whitespace():
    text = "x = 12 + sin(y)\t// note\r\n  /* a\nb */ 3_000 'c' \"s\" @"
    pos = 0
    for tok in tokenize(text):
        start, end = tok.span
        assert set(text[pos:start]) <= {' ', '\t', '\r'}
        assert text[start:end] == tok.lexeme
        pos = end
    assert set(text[pos:]) <= {' ', '\t', '\r'}


def test_empty_and_blank_input():
    assert tokenize("") == []
    assert tokenize(" \t\r ") == []


@pytest.mark.parametrize("lexeme, expected", [
    ("0x1A", 26),
    ("0b101", 5),
    ("0o17", 15),
    ("1_000", 1000),
    ("1.5e2", 150),
    ("1e+3", 1000),
    ("25e-1", 2.5),
    ("42u32", 42),
    ("7i8", 7),
    ("2.5f32", 2.5),
    ("0.125", 0.125),
    ("0xffi64", 255),
])
def test_number_literals(lexeme, expected):
    toks, diags = lex(lexeme)
    assert len(toks) == 1
    assert toks[0].kind is K.NUMBER
    assert toks[0].lexeme == lexeme
    assert math.isclose(toks[0].literal.value, expected)
    assert diags == []


@pytest.mark.parametrize("lexeme", ["1.5i32", "0x1f32", "12abc", "0b102", "1e5u8", "1ex"])
def test_malformed_numbers_become_zero(lexeme):
    toks, diags = lex(lexeme)
    assert len(toks) == 1
    assert toks[0].literal == NumberLit(0.0)
    assert [d.kind for d in diags] == [MALFORMED_NUMBER]
    assert diags[0].span == (0, len(lexeme))


def test_parse_number_reports_error():
    value, error = parse_number("1.5i32")
    assert value == 0.0
    assert "fractional" in error
    assert parse_number("0x10") == (16.0, None)


def test_strict_mode_raises_on_malformed_number():
    with pytest.raises(LexError) as exc:
        tokenize("1 + 1.5i32", strict=True)
    assert MALFORMED_NUMBER in str(exc.value)


def test_dot_without_digit_is_not_part_of_number():
    assert kinds("1.x") == [K.NUMBER, K.DOT, K.IDENTIFIER]


def test_line_and_column_tracking():
    toks = tokenize("a\n  b")
    assert [t.line_column for t in toks] == [(0, 0), (0, 1), (1, 2)]
    assert [t.span for t in toks] == [(0, 1), (1, 2), (4, 5)]


def test_comments():
    assert kinds("1 // c\n2") == [K.NUMBER, K.SINGLE_LINE_COMMENT, K.NEWLINE, K.NUMBER]
    toks = tokenize("/* a\nb */ x")
    assert [t.kind for t in toks] == [K.MULTI_LINE_COMMENT, K.IDENTIFIER]
    assert toks[1].line_column == (1, 5)


def test_unterminated_comment_runs_to_end():
    toks, diags = lex("1 /* open")
    assert toks[-1].kind is K.MULTI_LINE_COMMENT
    assert toks[-1].lexeme == "/* open"
    assert [d.kind for d in diags] == [UNTERMINATED_COMMENT]


def test_bool_literals_need_a_word_boundary():
    toks = tokenize("true false trueish")
    assert [t.kind for t in toks] == [K.BOOL, K.BOOL, K.IDENTIFIER]
    assert toks[0].literal == BoolLit(True)
    assert toks[1].literal == BoolLit(False)
    assert toks[2].literal == Identifier("trueish")


def test_char_and_string_literals():
    toks = tokenize("'a' '\\n' \"a\\tb\\q\"")
    assert [t.kind for t in toks] == [K.CHAR, K.CHAR, K.STRING]
    assert toks[0].literal == CharLit('a')
    assert toks[1].literal == CharLit('\n')
    assert toks[2].literal == StringLit('a\tbq')


def test_unterminated_string_stops_at_newline():
    toks, diags = lex('"abc\n1')
    assert [t.kind for t in toks] == [K.STRING, K.NEWLINE, K.NUMBER]
    assert toks[0].lexeme == '"abc'
    assert toks[0].literal == StringLit('abc')
    assert [d.kind for d in diags] == [UNTERMINATED_STRING]


def test_operators_prefer_two_characters():
    assert kinds("++ -- != == >= <= + - = ! ^ %") == [
        K.PLUS_PLUS, K.MINUS_MINUS, K.BANG_EQUAL, K.EQUAL_EQUAL,
        K.GREATER_EQUAL, K.LESS_EQUAL, K.PLUS, K.MINUS, K.EQUAL, K.BANG,
        K.CARET, K.PERCENT,
    ]


def test_unknown_character_is_absorbed():
    toks, diags = lex("1 @ 2")
    assert [t.kind for t in toks] == [K.NUMBER, K.UNKNOWN, K.NUMBER]
    assert toks[1].lexeme == '@'
    assert [d.kind for d in diags] == [UNKNOWN_CHARACTER]
    assert diags[0].line_column == (0, 2)


def test_identifiers_are_ascii_words():
    toks = tokenize("_tmp x1 sin")
    assert [t.literal for t in toks] == [Identifier('_tmp'), Identifier('x1'), Identifier('sin')]


def test_token_predicates():
    toks = tokenize("x -\n3")
    assert toks[0].is_identifier()
    assert toks[1].is_sign() and toks[1].is_calc_op()
    assert toks[2].is_newline() and toks[2].is_skipped()
    assert toks[3].is_literal()


@pytest.mark.parametrize("verbosity, expected", [
    (0, "Number Plus Identifier "),
    (1, 'Number("2") Plus("+") Identifier("x") '),
    (2, 'Number[0, 0]("2")\nPlus[0, 1]("+")\nIdentifier[0, 2]("x")\n'),
])
def test_render_levels(verbosity, expected):
    assert tokenize_and_render("2+x", verbosity) == expected


def test_render_table_and_dumps():
    table = tokenize_and_render("2", 3)
    assert table.startswith("Type:Number")
    assert "<Line, Column>[0, 0]" in table
    assert "<Start, End>[0, 1]" in table
    assert 'Content("2")' in table
    assert "Literal(Number(2.0))" in table

    line = tokenize_and_render("x", 4)
    assert line == ('Token { kind: Identifier, lexeme: "x", literal: Identifier("x"), '
                    'line_column: [0, 0], span: [0, 1] }\n')

    dump = tokenize_and_render("x", 5)
    assert dump.startswith("Token {\n    kind: Identifier,\n")
    assert dump.endswith("}\n")


def test_render_unknown_level_falls_back_to_kinds():
    assert tokenize_and_render("1", 9) == "Number "


def test_newline_token_keeps_the_line_it_ends():
    toks = tokenize("1\r\n\n2")
    newlines = [t for t in toks if t.is_newline()]
    assert [t.line_column for t in newlines] == [(0, 2), (1, 0)]
    assert [t.span for t in newlines] == [(2, 3), (3, 4)]
    assert toks[-1].line_column == (2, 0)


def test_recovered_problems_are_logged_at_debug(caplog):
    caplog.set_level(logging.DEBUG, logger='calcscript.lexer')
    lexer = Lexer("1 @ 1.5i32")
    lexer.tokenize()
    assert len(lexer.diagnostics) == 2
    records = [r for r in caplog.records if r.name == 'calcscript.lexer']
    assert len(records) == 2
    assert all(r.levelno == logging.DEBUG for r in records)
