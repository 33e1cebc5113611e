"""
The Monkey error taxonomy.

Parsing and evaluation never recover locally: the first error raised aborts
the current program and is surfaced to the caller (see ScriptRunner).
"""
from typing import Any, List, Optional


class MonkeyError(Exception):
    """Base class for every error a Monkey program can produce."""
    token: Optional[Any] = None


# =================================================================
# Parse errors
# =================================================================

class ParseError(MonkeyError):
    pass


class UnexpectedEnd(ParseError):
    def __init__(self):
        super().__init__("unexpected end of input")


class UnexpectedToken(ParseError):
    def __init__(self, token, expecting: str):
        super().__init__(f"unexpected token {token.text!r}, expecting {expecting}")
        self.token = token
        self.expecting = expecting


class FailedParsingInteger(ParseError):
    def __init__(self, text: str, token=None):
        super().__init__(f"integer literal {text} does not fit in 64 bits")
        self.text = text
        self.token = token


class MissingSemicolon(ParseError):
    def __init__(self, token=None):
        super().__init__("missing semicolon after statement")
        self.token = token


class NonIdentifierExpression(ParseError):
    def __init__(self, expression=None):
        super().__init__("function parameters must be identifiers")
        self.expression = expression


class IllegalCharacter(ParseError):
    def __init__(self, char: str, line: int, col: int):
        super().__init__(f"illegal character {char!r}")
        self.char = char
        self.line = line
        self.col = col
        self.token = {'line': line, 'col': col}


class UnterminatedString(ParseError):
    def __init__(self, line: int, col: int):
        super().__init__("unterminated string literal")
        self.line = line
        self.col = col
        self.token = {'line': line, 'col': col}


# =================================================================
# Evaluation errors
# =================================================================

def _show(value) -> str:
    from monkey.monkey_printer import Printer
    return Printer().inspect(value)


class EvaluationError(MonkeyError):
    pass


class InfixOperationNotImplemented(EvaluationError):
    def __init__(self, operation, left, right):
        super().__init__(
            f"operation {operation.value} not implemented for {_show(left)} and {_show(right)}"
        )
        self.operation = operation
        self.left = left
        self.right = right


class PrefixOperationNotImplemented(EvaluationError):
    def __init__(self, operation, value):
        super().__init__(f"operation {operation.value} not implemented for {_show(value)}")
        self.operation = operation
        self.value = value


class InvalidArguments(EvaluationError):
    def __init__(self, values: List[Any], expected: str):
        shown = ", ".join(_show(v) for v in values)
        super().__init__(f"invalid arguments ({shown}), expected {expected}")
        self.values = values
        self.expected = expected


class UnexpectedType(EvaluationError):
    def __init__(self, value, expected: str):
        super().__init__(f"unexpected value {_show(value)}, expected {expected}")
        self.value = value
        self.expected = expected


class IndexOutOfBounds(EvaluationError):
    def __init__(self, value, index: int):
        super().__init__(f"index {index} out of bounds for {_show(value)}")
        self.value = value
        self.index = index


class NotHashable(EvaluationError):
    def __init__(self, value):
        super().__init__(f"{_show(value)} cannot be used as a hash key")
        self.value = value


class NotCallable(EvaluationError):
    def __init__(self, value):
        super().__init__(f"{_show(value)} is not callable")
        self.value = value


class NotIndexable(EvaluationError):
    def __init__(self, value, index):
        super().__init__(f"{_show(value)} cannot be indexed by {_show(index)}")
        self.value = value
        self.index = index


class DivisionByZero(EvaluationError):
    def __init__(self, left):
        super().__init__(f"division of {_show(left)} by zero")
        self.left = left


class UnresolvedIdentifier(EvaluationError):
    def __init__(self, name: str):
        super().__init__(f"identifier not found: {name}")
        self.name = name
