import pytest
from monkey.monkey_lexer import Lexer, Token, TokenKind, tokenize
from monkey.monkey_errors import IllegalCharacter, UnterminatedString


def kinds(source):
    return [t.kind for t in tokenize(source)]


def test_empty_source_has_no_tokens():
    assert list(tokenize("")) == []
    assert list(tokenize("  \n\t ")) == []


def test_let_statement_tokens():
    assert list(tokenize("let answer = 42;")) == [
        Token(TokenKind.LET, "let"),
        Token(TokenKind.IDENTIFIER, "answer"),
        Token(TokenKind.ASSIGN, "="),
        Token(TokenKind.INTEGER, "42"),
        Token(TokenKind.SEMICOLON, ";"),
    ]


def test_keywords_are_recognized():
    assert kinds("let if else fn return true false") == [
        TokenKind.LET, TokenKind.IF, TokenKind.ELSE, TokenKind.FUNCTION,
        TokenKind.RETURN, TokenKind.TRUE, TokenKind.FALSE,
    ]


def test_keyword_prefix_is_an_identifier():
    assert list(tokenize("letter")) == [Token(TokenKind.IDENTIFIER, "letter")]


def test_two_character_operators_win_over_single():
    assert kinds("== != <= >= = ! < >") == [
        TokenKind.EQUAL, TokenKind.NOT_EQUAL, TokenKind.LESS_THAN_EQUAL,
        TokenKind.GREATER_THAN_EQUAL, TokenKind.ASSIGN, TokenKind.BANG,
        TokenKind.LESS_THAN, TokenKind.GREATER_THAN,
    ]


def test_operators_without_whitespace():
    assert kinds("a+b*-c/d") == [
        TokenKind.IDENTIFIER, TokenKind.PLUS, TokenKind.IDENTIFIER,
        TokenKind.ASTERISK, TokenKind.MINUS, TokenKind.IDENTIFIER,
        TokenKind.SLASH, TokenKind.IDENTIFIER,
    ]


def test_delimiters():
    assert kinds("(){}[],;:") == [
        TokenKind.OPEN_PARENTHESIS, TokenKind.CLOSE_PARENTHESIS,
        TokenKind.OPEN_BRACE, TokenKind.CLOSE_BRACE,
        TokenKind.OPEN_SQUARE, TokenKind.CLOSE_SQUARE,
        TokenKind.COMMA, TokenKind.SEMICOLON, TokenKind.COLON,
    ]


def test_string_literal_is_taken_verbatim():
    tokens = list(tokenize('"hello world" "a\\nb"'))
    assert tokens == [
        Token(TokenKind.STRING, "hello world"),
        Token(TokenKind.STRING, "a\\nb"),
    ]


def test_identifiers_with_digits_and_underscores():
    assert list(tokenize("_tmp x1 snake_case")) == [
        Token(TokenKind.IDENTIFIER, "_tmp"),
        Token(TokenKind.IDENTIFIER, "x1"),
        Token(TokenKind.IDENTIFIER, "snake_case"),
    ]


def test_token_positions_are_one_based():
    tokens = list(tokenize("let x = 1;\n  x + 2"))
    plus = tokens[6]
    assert plus.kind == TokenKind.PLUS
    assert (plus.line, plus.col) == (2, 5)
    assert (tokens[0].line, tokens[0].col) == (1, 1)


def test_token_equality_ignores_position():
    assert Token(TokenKind.INTEGER, "1", 1, 1) == Token(TokenKind.INTEGER, "1", 9, 9)
    assert Token(TokenKind.INTEGER, "1") != Token(TokenKind.INTEGER, "2")


def test_illegal_character_raises():
    with pytest.raises(IllegalCharacter) as exc:
        list(tokenize("let x = 5 @ 3;"))
    assert exc.value.char == "@"
    assert (exc.value.line, exc.value.col) == (1, 11)


def test_unterminated_string_raises():
    with pytest.raises(UnterminatedString):
        list(tokenize('let s = "oops'))


def test_lexer_is_lazy():
    lexer = Lexer("1 @")
    assert next(lexer) == Token(TokenKind.INTEGER, "1")
    with pytest.raises(IllegalCharacter):
        next(lexer)
