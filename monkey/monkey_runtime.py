# monkey_runtime.py

import inspect
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from monkey.monkey_datatypes import (
    MonkeyObject, NULL, Integer, String, Array, Environment, BuiltIn,
)
from monkey.monkey_errors import (
    MonkeyError, ParseError, EvaluationError, InvalidArguments, IndexOutOfBounds,
)
from monkey.monkey_interpreter import Evaluator
from monkey.monkey_lexer import Token
from monkey.monkey_parser import parse_source
from monkey.monkey_printer import Printer

# ===================================================================
# 1. Built-in functions
# ===================================================================


class Builtins:
    """Contains Python implementations for all Monkey built-ins.

    Every method named `_<name>` is exposed to programs as `<name>`. Each takes
    the list of already-evaluated arguments and checks its own signature.
    """
    def __init__(self, evaluator: Evaluator):
        self.evaluator = evaluator
        self.printer = Printer()
        for name in BUILTIN_NAMES:
            evaluator.builtins[name] = getattr(self, f"_{name}")

    def _len(self, args: List[MonkeyObject]) -> MonkeyObject:
        match args:
            case [String(value=value)]:
                return Integer(len(value))
            case [Array() as array]:
                return Integer(len(array))
        raise InvalidArguments(args, "string or array")

    def _first(self, args: List[MonkeyObject]) -> MonkeyObject:
        match args:
            case [Array() as array]:
                if not array:
                    raise IndexOutOfBounds(array, 0)
                return array[0]
        raise InvalidArguments(args, "array")

    def _last(self, args: List[MonkeyObject]) -> MonkeyObject:
        match args:
            case [Array() as array]:
                if not array:
                    raise IndexOutOfBounds(array, 0)
                return array[-1]
        raise InvalidArguments(args, "array")

    def _rest(self, args: List[MonkeyObject]) -> MonkeyObject:
        match args:
            case [Array() as array]:
                if not array:
                    raise IndexOutOfBounds(array, 0)
                return Array(array.elements[1:])
        raise InvalidArguments(args, "array")

    def _push(self, args: List[MonkeyObject]) -> MonkeyObject:
        match args:
            case [Array() as array, value]:
                # A new array; the argument keeps its elements.
                return Array(array.elements + (value,))
        raise InvalidArguments(args, "(array, object)")

    def _puts(self, args: List[MonkeyObject]) -> MonkeyObject:
        line = " ".join(self.printer.pformat(a) for a in args)
        self.evaluator.side_effects.append({'topics': ['stdout'], 'message': line})
        if self.evaluator.echo_stdout:
            sys.stdout.write(line + "\n")
        return NULL


BUILTIN_NAMES = tuple(
    name[1:] for name, _ in inspect.getmembers(Builtins, inspect.isfunction)
    if name.startswith('_') and not name.startswith('__')
)


# ===================================================================
# 2. Environments and one-shot execution
# ===================================================================

def new_environment() -> Environment:
    """Creates a root Environment seeded with every built-in."""
    env = Environment()
    for name in BUILTIN_NAMES:
        env[name] = BuiltIn(name)
    return env


def evaluate(env: Environment, program, evaluator: Optional[Evaluator] = None) -> MonkeyObject:
    """Evaluates program against env, raising EvaluationError on failure."""
    return (evaluator or Evaluator()).eval(program, env)


def run(program) -> MonkeyObject:
    """Evaluates program once in a fresh, built-in-seeded Environment."""
    return evaluate(new_environment(), program)


# ===================================================================
# 3. Script Execution
# ===================================================================

Location = Dict[str, Any]

# Frames shown at each end of a long Monkey stacktrace.
STACKTRACE_EDGE_FRAMES = 5


@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_token: Optional[Location] = None
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """Prefixes the message with the error's line and column when it has them."""
        if self.status != 'error':
            return ""
        msg = self.error_message or "Unknown error"
        if self.error_token:
            return f"Error on line {self.error_token['line']}, col {self.error_token['col']}: {msg}"
        return msg


class ScriptRunner:
    """Lexes, parses, and executes Monkey code against a persistent root Environment.

    Bindings made by one call to handle_script stay visible to the next, which
    is what the REPL relies on. A runner is not safe to share between threads.
    """

    def __init__(self, strict_names: Optional[bool] = None):
        self.evaluator = Evaluator(strict_names=strict_names, echo_stdout=False)
        self.root_env = new_environment()
        self.printer = Printer()

    def _error_location(self, e: MonkeyError) -> Optional[Location]:
        token = getattr(e, 'token', None)
        if isinstance(token, Token):
            return {'line': token.line, 'col': token.col, 'text': token.text}
        if isinstance(token, dict):
            return token
        return None

    def _format_parse_error(self, e: ParseError, source: str) -> str:
        msg = f"ParseError: {type(e).__name__}: {e}"
        loc = self._error_location(e)
        if loc:
            line, col = loc['line'], loc['col']
            context = self._source_context(source, line, col)
            if context:
                msg = f"{msg} (line {line}, col {col})\n{context}"
        return msg

    def _format_runtime_error(self, e: Exception) -> str:
        match e:
            case EvaluationError():
                msg = f"EvaluationError: {type(e).__name__}: {e}"
            case RecursionError():
                msg = "InternalError: maximum recursion depth exceeded"
            case _:
                msg = f"InternalError: {e}"

        st = self._format_stacktrace()
        if st:
            msg += "\n" + st
        return msg

    def _source_context(self, source: str, line: int, col: int) -> str:
        """The failing line and the one before it, with a caret under col."""
        lines = source.splitlines()
        if not 1 <= line <= len(lines):
            return ""
        width = len(str(line))
        out = [
            f"{'>' if n == line else ' '} {str(n).rjust(width)} | {lines[n - 1]}"
            for n in range(max(1, line - 1), line + 1)
        ]
        out.append(f"  {' ' * width} | {' ' * (col - 1)}^")
        return "\n".join(out)

    def _format_frame(self, frame: Dict[str, Any]) -> str:
        args_s = " ".join(self.printer.inspect(a) for a in frame['args'])
        return f"({frame['name']} {args_s})" if args_s else f"({frame['name']})"

    def _format_stacktrace(self) -> str:
        """Outermost call first; deep stacks keep only their ends."""
        stack = self.evaluator.call_stack
        if not stack:
            return ""
        keep = STACKTRACE_EDGE_FRAMES
        if len(stack) <= 2 * keep:
            frames = [self._format_frame(f) for f in stack]
        else:
            frames = [self._format_frame(f) for f in stack[:keep]]
            frames.append(f"... {len(stack) - 2 * keep} more frames ...")
            frames.extend(self._format_frame(f) for f in stack[-keep:])
        return "Monkey stacktrace: " + " ".join(frames)

    def _error_result(self, msg: str, token: Optional[Location] = None) -> ExecutionResult:
        self.evaluator.side_effects.append({'topics': ['stderr'], 'message': msg})
        return ExecutionResult(
            status='error',
            error_message=msg,
            error_token=token,
            side_effects=self.evaluator.side_effects,
        )

    def handle_script(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a script. Never raises."""
        # Clear per-run state
        self.evaluator.side_effects = []
        self.evaluator.call_stack.clear()

        # 1. Parse
        try:
            program = parse_source(source_code)
        except ParseError as e:
            return self._error_result(self._format_parse_error(e, source_code), self._error_location(e))

        # 2. Evaluate
        try:
            result = self.evaluator.eval(program, self.root_env)
        except Exception as e:
            self.evaluator._dbg("ERROR", type(e).__name__, e)
            return self._error_result(self._format_runtime_error(e))

        return ExecutionResult(
            status='success',
            value=result,
            side_effects=self.evaluator.side_effects,
        )
