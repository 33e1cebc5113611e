"""
Defines the Monkey abstract syntax tree.

Nodes are frozen dataclasses holding tuples, so a parsed Program is immutable
and can be shared freely between closures created from it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class InfixOperation(Enum):
    SUM = "+"
    SUBTRACTION = "-"
    PRODUCT = "*"
    DIVISION = "/"
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    GREATER_THAN = ">"
    LESS_THAN_EQUAL = "<="
    GREATER_THAN_EQUAL = ">="


class PrefixOperation(Enum):
    NEGATIVE = "-"
    NEGATE = "!"


# =================================================================
# Expressions
# =================================================================

@dataclass(frozen=True)
class IntegerLiteral:
    value: int


@dataclass(frozen=True)
class StringLiteral:
    value: str


@dataclass(frozen=True)
class BooleanLiteral:
    value: bool


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class PrefixExpression:
    operation: PrefixOperation
    operand: 'Expression'


@dataclass(frozen=True)
class InfixExpression:
    operation: InfixOperation
    left: 'Expression'
    right: 'Expression'


@dataclass(frozen=True)
class IfExpression:
    condition: 'Expression'
    consequence: 'Block'
    alternative: Optional['Block'] = None


@dataclass(frozen=True)
class FunctionLiteral:
    """A function definition; it only becomes a closure when evaluated."""
    parameters: Tuple[str, ...]
    body: 'Block'


@dataclass(frozen=True)
class CallExpression:
    callee: 'Expression'
    arguments: Tuple['Expression', ...]


@dataclass(frozen=True)
class ArrayLiteral:
    elements: Tuple['Expression', ...]


@dataclass(frozen=True)
class IndexExpression:
    target: 'Expression'
    index: 'Expression'


@dataclass(frozen=True)
class HashLiteral:
    pairs: Tuple[Tuple['Expression', 'Expression'], ...]


Expression = Union[
    IntegerLiteral, StringLiteral, BooleanLiteral, Identifier,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral,
    CallExpression, ArrayLiteral, IndexExpression, HashLiteral,
]


# =================================================================
# Statements
# =================================================================

@dataclass(frozen=True)
class LetStatement:
    name: str
    expression: Expression


@dataclass(frozen=True)
class ReturnStatement:
    expression: Expression


@dataclass(frozen=True)
class ExpressionStatement:
    expression: Expression


Statement = Union[LetStatement, ReturnStatement, ExpressionStatement]

# A block (and a whole program) is an ordered tuple of statements.
Block = Tuple[Statement, ...]
Program = Block
