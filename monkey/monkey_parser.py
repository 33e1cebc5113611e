"""
Parses a Monkey token stream into an AST.

Expressions use precedence climbing: a prefix term is parsed first and then
extended with infix and postfix (call, index) operators for as long as they
bind tighter than the current minimum precedence.
"""
from enum import IntEnum
from typing import Iterable, Iterator, List, Optional, Tuple

from monkey.monkey_ast import (
    InfixOperation, PrefixOperation,
    IntegerLiteral, StringLiteral, BooleanLiteral, Identifier,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral,
    CallExpression, ArrayLiteral, IndexExpression, HashLiteral,
    LetStatement, ReturnStatement, ExpressionStatement,
    Expression, Statement, Block, Program,
)
from monkey.monkey_errors import (
    UnexpectedEnd, UnexpectedToken, FailedParsingInteger,
    MissingSemicolon, NonIdentifierExpression,
)
from monkey.monkey_lexer import Token, TokenKind, tokenize

INT64_MAX = 2 ** 63 - 1


class Precedence(IntEnum):
    LOWEST = 0
    EQUALS = 1
    LESS_GREATER = 2
    SUM = 3
    PRODUCT = 4
    PREFIX = 5
    CALL = 6


INFIX_OPERATIONS = {
    TokenKind.PLUS: InfixOperation.SUM,
    TokenKind.MINUS: InfixOperation.SUBTRACTION,
    TokenKind.ASTERISK: InfixOperation.PRODUCT,
    TokenKind.SLASH: InfixOperation.DIVISION,
    TokenKind.EQUAL: InfixOperation.EQUAL,
    TokenKind.NOT_EQUAL: InfixOperation.NOT_EQUAL,
    TokenKind.LESS_THAN: InfixOperation.LESS_THAN,
    TokenKind.GREATER_THAN: InfixOperation.GREATER_THAN,
    TokenKind.LESS_THAN_EQUAL: InfixOperation.LESS_THAN_EQUAL,
    TokenKind.GREATER_THAN_EQUAL: InfixOperation.GREATER_THAN_EQUAL,
}

PRECEDENCES = {
    TokenKind.EQUAL: Precedence.EQUALS,
    TokenKind.NOT_EQUAL: Precedence.EQUALS,
    TokenKind.LESS_THAN: Precedence.LESS_GREATER,
    TokenKind.GREATER_THAN: Precedence.LESS_GREATER,
    TokenKind.LESS_THAN_EQUAL: Precedence.LESS_GREATER,
    TokenKind.GREATER_THAN_EQUAL: Precedence.LESS_GREATER,
    TokenKind.PLUS: Precedence.SUM,
    TokenKind.MINUS: Precedence.SUM,
    TokenKind.ASTERISK: Precedence.PRODUCT,
    TokenKind.SLASH: Precedence.PRODUCT,
    # Postfix productions
    TokenKind.OPEN_PARENTHESIS: Precedence.CALL,
    TokenKind.OPEN_SQUARE: Precedence.CALL,
}


class Parser:
    """Builds a Program from any iterable of Tokens, pulling one token at a time."""

    def __init__(self, tokens: Iterable[Token]):
        self._tokens: Iterator[Token] = iter(tokens)
        self._buffer: List[Token] = []

    # --- Token source ---

    def _next_token(self) -> Optional[Token]:
        if self._buffer:
            return self._buffer.pop()
        return next(self._tokens, None)

    def _save_token(self, token: Token):
        self._buffer.append(token)

    def _peek_token(self) -> Optional[Token]:
        if not self._buffer:
            token = next(self._tokens, None)
            if token is None:
                return None
            self._buffer.append(token)
        return self._buffer[-1]

    def _peek_kind(self) -> Optional[TokenKind]:
        token = self._peek_token()
        return token.kind if token is not None else None

    def _expect(self, kind: TokenKind, expecting: Optional[str] = None) -> Token:
        token = self._next_token()
        if token is None:
            raise UnexpectedEnd()
        if token.kind != kind:
            raise UnexpectedToken(token, expecting or repr(kind.value))
        return token

    # --- Statements ---

    def parse_program(self) -> Program:
        """Parses the whole token stream as a top-level block."""
        program = self.parse_statement_list()
        leftover = self._peek_token()
        if leftover is not None:
            raise UnexpectedToken(leftover, "end of input")
        return program

    def parse_statement_list(self) -> Block:
        """
        Parses statements up to end of input or a closing brace.

        Every statement but the last needs a trailing semicolon. A final bare
        expression without one becomes the block's Return statement.
        """
        block: List[Statement] = []
        while True:
            if self._peek_kind() in (None, TokenKind.CLOSE_BRACE):
                break

            statement = self.parse_statement()
            token = self._peek_token()
            if token is not None and token.kind == TokenKind.SEMICOLON:
                self._next_token()
                block.append(statement)
                continue

            at_block_end = token is None or token.kind == TokenKind.CLOSE_BRACE
            if at_block_end and isinstance(statement, ExpressionStatement):
                block.append(ReturnStatement(statement.expression))
                break
            raise MissingSemicolon(token)

        return tuple(block)

    def parse_statement(self) -> Statement:
        token = self._next_token()
        if token is None:
            raise UnexpectedEnd()
        match token.kind:
            case TokenKind.LET:
                return self._parse_let_statement()
            case TokenKind.RETURN:
                return ReturnStatement(self.parse_expression(Precedence.LOWEST))
            case _:
                self._save_token(token)
                return ExpressionStatement(self.parse_expression(Precedence.LOWEST))

    def _parse_let_statement(self) -> LetStatement:
        name = self._expect(TokenKind.IDENTIFIER, "identifier").text
        self._expect(TokenKind.ASSIGN)
        return LetStatement(name, self.parse_expression(Precedence.LOWEST))

    def _parse_block(self) -> Block:
        self._expect(TokenKind.OPEN_BRACE)
        block = self.parse_statement_list()
        self._expect(TokenKind.CLOSE_BRACE)
        return block

    # --- Expressions ---

    def parse_expression(self, precedence: Precedence) -> Expression:
        left = self._parse_prefix()

        while True:
            token = self._peek_token()
            if token is None:
                break
            token_precedence = PRECEDENCES.get(token.kind)
            if token_precedence is None or token_precedence <= precedence:
                break
            self._next_token()

            match token.kind:
                case TokenKind.OPEN_PARENTHESIS:
                    arguments = self._parse_expression_list(TokenKind.CLOSE_PARENTHESIS)
                    left = CallExpression(left, arguments)
                case TokenKind.OPEN_SQUARE:
                    index = self.parse_expression(Precedence.LOWEST)
                    self._expect(TokenKind.CLOSE_SQUARE)
                    left = IndexExpression(left, index)
                case _:
                    right = self.parse_expression(token_precedence)
                    left = InfixExpression(INFIX_OPERATIONS[token.kind], left, right)

        return left

    def _parse_prefix(self) -> Expression:
        token = self._next_token()
        if token is None:
            raise UnexpectedEnd()

        match token.kind:
            case TokenKind.INTEGER:
                return self._parse_integer_literal(token)
            case TokenKind.STRING:
                return StringLiteral(token.text)
            case TokenKind.IDENTIFIER:
                return Identifier(token.text)
            case TokenKind.TRUE:
                return BooleanLiteral(True)
            case TokenKind.FALSE:
                return BooleanLiteral(False)
            case TokenKind.BANG:
                return PrefixExpression(PrefixOperation.NEGATE, self.parse_expression(Precedence.PREFIX))
            case TokenKind.MINUS:
                return PrefixExpression(PrefixOperation.NEGATIVE, self.parse_expression(Precedence.PREFIX))
            case TokenKind.OPEN_PARENTHESIS:
                expression = self.parse_expression(Precedence.LOWEST)
                self._expect(TokenKind.CLOSE_PARENTHESIS)
                return expression
            case TokenKind.IF:
                return self._parse_if_expression()
            case TokenKind.FUNCTION:
                return self._parse_function_literal()
            case TokenKind.OPEN_SQUARE:
                return ArrayLiteral(self._parse_expression_list(TokenKind.CLOSE_SQUARE))
            case TokenKind.OPEN_BRACE:
                return self._parse_hash_literal()
            case _:
                raise UnexpectedToken(token, "prefix operator, literal or identifier")

    def _parse_integer_literal(self, token: Token) -> IntegerLiteral:
        value = int(token.text)
        if value > INT64_MAX:
            raise FailedParsingInteger(token.text, token)
        return IntegerLiteral(value)

    def _parse_expression_list(self, closing: TokenKind) -> Tuple[Expression, ...]:
        """Parses comma-separated expressions; the opening delimiter is already consumed."""
        items: List[Expression] = []
        if self._peek_kind() == closing:
            self._next_token()
            return ()

        while True:
            items.append(self.parse_expression(Precedence.LOWEST))
            token = self._next_token()
            if token is None:
                raise UnexpectedEnd()
            if token.kind == TokenKind.COMMA:
                continue
            if token.kind == closing:
                break
            raise UnexpectedToken(token, f"',' or {closing.value!r}")

        return tuple(items)

    def _parse_if_expression(self) -> IfExpression:
        self._expect(TokenKind.OPEN_PARENTHESIS)
        condition = self.parse_expression(Precedence.LOWEST)
        self._expect(TokenKind.CLOSE_PARENTHESIS)
        consequence = self._parse_block()

        alternative = None
        if self._peek_kind() == TokenKind.ELSE:
            self._next_token()
            alternative = self._parse_block()
        return IfExpression(condition, consequence, alternative)

    def _parse_function_literal(self) -> FunctionLiteral:
        self._expect(TokenKind.OPEN_PARENTHESIS)
        parameters = self._parse_expression_list(TokenKind.CLOSE_PARENTHESIS)
        for parameter in parameters:
            if not isinstance(parameter, Identifier):
                raise NonIdentifierExpression(parameter)
        body = self._parse_block()
        return FunctionLiteral(tuple(p.name for p in parameters), body)

    def _parse_hash_literal(self) -> HashLiteral:
        pairs: List[Tuple[Expression, Expression]] = []
        if self._peek_kind() == TokenKind.CLOSE_BRACE:
            self._next_token()
            return HashLiteral(())

        while True:
            key = self.parse_expression(Precedence.LOWEST)
            self._expect(TokenKind.COLON)
            pairs.append((key, self.parse_expression(Precedence.LOWEST)))
            token = self._next_token()
            if token is None:
                raise UnexpectedEnd()
            if token.kind == TokenKind.COMMA:
                continue
            if token.kind == TokenKind.CLOSE_BRACE:
                break
            raise UnexpectedToken(token, "',' or '}'")

        return HashLiteral(tuple(pairs))


def parse(tokens: Iterable[Token]) -> Program:
    """Parses a token stream into a Program, raising ParseError on the first problem."""
    return Parser(tokens).parse_program()


def parse_source(source: str) -> Program:
    """Lexes and parses Monkey source text."""
    return parse(tokenize(source))
