import pytest

from mold.errors import LexError
from mold.lexer import Lexer


def _types(source: str):
    return [tok.type for tok in Lexer(source).tokenize()]


def test_lexer_tokens_and_comments():
    lexer = Lexer('recipe build { # trailing\n  run "make" // also a comment\n}')
    tokens = lexer.tokenize()
    assert [(t.type, t.value) for t in tokens] == [
        ("KEYWORD", "recipe"),
        ("IDENT", "build"),
        ("LBRACE", "{"),
        ("KEYWORD", "run"),
        ("STRING", "make"),
        ("RBRACE", "}"),
        ("EOF", None),
    ]
    assert [(c.value, c.line, c.column) for c in lexer.comments] == [
        ("# trailing", 1, 16),
        ("// also a comment", 2, 14),
    ]


def test_lexer_positions():
    tokens = Lexer('var x = "1"\n  help "h"').tokenize()
    help_tok = tokens[4]
    assert help_tok.value == "help"
    assert (help_tok.line, help_tok.column) == (2, 3)


def test_lexer_names_allow_path_punctuation():
    tokens = Lexer("tools:build-all/x_1").tokenize()
    assert tokens[0].type == "IDENT"
    assert tokens[0].value == "tools:build-all/x_1"


def test_lexer_default_assignment_splits_name():
    assert _types("var x:= \"v\"") == ["KEYWORD", "IDENT", "DEFAULT", "STRING", "EOF"]
    assert _types("var x = \"v\"") == ["KEYWORD", "IDENT", "EQUALS", "STRING", "EOF"]


def test_lexer_guard_operators():
    assert _types("~a + (b | *)") == ["NOT", "IDENT", "AND", "LPAREN", "IDENT", "OR", "STAR", "RPAREN", "EOF"]


def test_lexer_string_escapes():
    tokens = Lexer(r'"a\"b\\c\/d\n\tA\u{1F600}"').tokenize()
    assert tokens[0].value == 'a"b\\c/d\n\tA\U0001F600'


def test_lexer_rejects_invalid_escape():
    with pytest.raises(LexError) as excinfo:
        Lexer(r'run "bad \q"').tokenize()
    assert excinfo.value.line == 1
    assert excinfo.value.column == 10


def test_lexer_rejects_bad_unicode_escape():
    with pytest.raises(LexError):
        Lexer(r'"\u12G4"').tokenize()
    with pytest.raises(LexError):
        Lexer(r'"\u{}"').tokenize()


def test_lexer_unterminated_string():
    with pytest.raises(LexError) as excinfo:
        Lexer('help "never closed').tokenize()
    assert "Unterminated" in excinfo.value.message


def test_lexer_unexpected_character():
    with pytest.raises(LexError):
        Lexer("recipe a { ; }").tokenize()
