from monkey.monkey_lexer import Lexer, Token, TokenKind, tokenize
from monkey.monkey_parser import Parser, parse, parse_source
from monkey.monkey_datatypes import Environment
from monkey.monkey_interpreter import Evaluator
from monkey.monkey_runtime import (
    ExecutionResult, ScriptRunner, evaluate, new_environment, run,
)
from monkey.monkey_errors import MonkeyError, ParseError, EvaluationError

__all__ = [
    "Lexer", "Token", "TokenKind", "tokenize",
    "Parser", "parse", "parse_source",
    "Environment", "Evaluator",
    "ExecutionResult", "ScriptRunner", "evaluate", "new_environment", "run",
    "MonkeyError", "ParseError", "EvaluationError",
]
