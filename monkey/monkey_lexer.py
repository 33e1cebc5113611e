"""
Scans Monkey source text into a stream of Tokens.

The lexer is a lazy iterator: the parser pulls one token at a time and the
scan stops at the first illegal character.
"""
from enum import Enum
from typing import Iterator, NamedTuple, Optional

from monkey.monkey_errors import IllegalCharacter, UnterminatedString


class TokenKind(Enum):
    # Literals and names
    IDENTIFIER = "IDENTIFIER"
    INTEGER = "INTEGER"
    STRING = "STRING"

    # Keywords
    LET = "let"
    IF = "if"
    ELSE = "else"
    FUNCTION = "fn"
    RETURN = "return"
    TRUE = "true"
    FALSE = "false"

    # Two-character operators (matched before single-character ones)
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS_THAN_EQUAL = "<="
    GREATER_THAN_EQUAL = ">="

    # Single-character operators
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    ASTERISK = "*"
    SLASH = "/"
    BANG = "!"
    LESS_THAN = "<"
    GREATER_THAN = ">"

    # Delimiters
    OPEN_PARENTHESIS = "("
    CLOSE_PARENTHESIS = ")"
    OPEN_BRACE = "{"
    CLOSE_BRACE = "}"
    OPEN_SQUARE = "["
    CLOSE_SQUARE = "]"
    COMMA = ","
    SEMICOLON = ";"
    COLON = ":"


KEYWORDS = {
    "let": TokenKind.LET,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "fn": TokenKind.FUNCTION,
    "return": TokenKind.RETURN,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
}

TWO_CHAR_OPERATORS = {
    "==": TokenKind.EQUAL,
    "!=": TokenKind.NOT_EQUAL,
    "<=": TokenKind.LESS_THAN_EQUAL,
    ">=": TokenKind.GREATER_THAN_EQUAL,
}

SINGLE_CHAR_TOKENS = {
    "=": TokenKind.ASSIGN,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.ASTERISK,
    "/": TokenKind.SLASH,
    "!": TokenKind.BANG,
    "<": TokenKind.LESS_THAN,
    ">": TokenKind.GREATER_THAN,
    "(": TokenKind.OPEN_PARENTHESIS,
    ")": TokenKind.CLOSE_PARENTHESIS,
    "{": TokenKind.OPEN_BRACE,
    "}": TokenKind.CLOSE_BRACE,
    "[": TokenKind.OPEN_SQUARE,
    "]": TokenKind.CLOSE_SQUARE,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMICOLON,
    ":": TokenKind.COLON,
}


class Token(NamedTuple):
    kind: TokenKind
    text: str
    line: int = 0
    col: int = 0

    def __eq__(self, other):
        # Positions are bookkeeping; two tokens match when kind and text do.
        if not isinstance(other, Token):
            return NotImplemented
        return self.kind == other.kind and self.text == other.text

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.kind, self.text))

    def __repr__(self):
        return f"Token({self.kind.name}, {self.text!r})"


def _is_identifier_start(c: str) -> bool:
    return c.isascii() and (c.isalpha() or c == "_")


def _is_identifier_part(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == "_")


class Lexer:
    """Iterates over the Tokens of a source string."""

    def __init__(self, source: str):
        self.source = source
        self.position = 0
        self.line = 1
        self.col = 1

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        token = self.next_token()
        if token is None:
            raise StopIteration
        return token

    def _peek(self, offset: int = 0) -> Optional[str]:
        pos = self.position + offset
        if pos >= len(self.source):
            return None
        return self.source[pos]

    def _advance(self) -> str:
        c = self.source[self.position]
        self.position += 1
        if c == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return c

    def _skip_whitespace(self):
        while (c := self._peek()) is not None and c.isspace():
            self._advance()

    def _read_while(self, predicate) -> str:
        start = self.position
        while (c := self._peek()) is not None and predicate(c):
            self._advance()
        return self.source[start:self.position]

    def _read_string(self, line: int, col: int) -> str:
        self._advance()  # opening quote
        start = self.position
        while True:
            c = self._peek()
            if c is None:
                raise UnterminatedString(line, col)
            if c == '"':
                text = self.source[start:self.position]
                self._advance()
                return text
            self._advance()

    def next_token(self) -> Optional[Token]:
        """Scans and returns the next Token, or None once the source is exhausted."""
        self._skip_whitespace()
        c = self._peek()
        if c is None:
            return None
        line, col = self.line, self.col

        pair = c + (self._peek(1) or "")
        if pair in TWO_CHAR_OPERATORS:
            self._advance()
            self._advance()
            return Token(TWO_CHAR_OPERATORS[pair], pair, line, col)
        if c in SINGLE_CHAR_TOKENS:
            self._advance()
            return Token(SINGLE_CHAR_TOKENS[c], c, line, col)
        if c == '"':
            return Token(TokenKind.STRING, self._read_string(line, col), line, col)
        if c.isascii() and c.isdigit():
            text = self._read_while(lambda ch: ch.isascii() and ch.isdigit())
            return Token(TokenKind.INTEGER, text, line, col)
        if _is_identifier_start(c):
            word = self._read_while(_is_identifier_part)
            return Token(KEYWORDS.get(word, TokenKind.IDENTIFIER), word, line, col)

        raise IllegalCharacter(c, line, col)


def tokenize(source: str) -> Iterator[Token]:
    """Returns a lazy Token stream over source."""
    return Lexer(source)
