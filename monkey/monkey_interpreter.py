"""
The core Monkey interpreter: a recursive tree-walking Evaluator.
"""
import os
import sys
from typing import Any, Callable, Dict, List, Optional

from monkey.monkey_ast import (
    InfixOperation, PrefixOperation,
    IntegerLiteral, StringLiteral, BooleanLiteral, Identifier,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral,
    CallExpression, ArrayLiteral, IndexExpression, HashLiteral,
    LetStatement, ReturnStatement, ExpressionStatement,
)
from monkey.monkey_datatypes import (
    MonkeyObject, NULL, Integer, Boolean, String, Array, HashMap,
    Environment, MonkeyCallable, MonkeyFunction, BuiltIn,
    native_bool, check_hashable,
)
from monkey.monkey_errors import (
    InfixOperationNotImplemented, PrefixOperationNotImplemented,
    UnexpectedType, IndexOutOfBounds, NotCallable, NotIndexable,
    DivisionByZero, UnresolvedIdentifier,
)

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


def wrap_int64(value: int) -> int:
    """Wraps an arbitrary Python int into the signed 64-bit range."""
    return ((value - INT64_MIN) % 2 ** 64) + INT64_MIN


class ReturnValue:
    """Signals that a Return statement ended the current block."""
    __slots__ = ("value",)

    def __init__(self, value: MonkeyObject):
        self.value = value


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "") not in ("", "0")


# Each Monkey call costs about a dozen Python frames.
DEFAULT_RECURSION_LIMIT = 10000


def apply_recursion_limit():
    """Sets Python's recursion limit from MONKEY_RECURSION_LIMIT, or raises it to the default."""
    configured = os.environ.get("MONKEY_RECURSION_LIMIT")
    if configured:
        sys.setrecursionlimit(int(configured))
    elif sys.getrecursionlimit() < DEFAULT_RECURSION_LIMIT:
        sys.setrecursionlimit(DEFAULT_RECURSION_LIMIT)


# =================================================================
# Operator tables
# =================================================================

def _integer_operation(operation: InfixOperation, fn: Callable[[int, int], MonkeyObject]):
    def apply(left, right):
        if isinstance(left, Integer) and isinstance(right, Integer):
            return fn(left.value, right.value)
        raise InfixOperationNotImplemented(operation, left, right)
    return apply


def _equality_operation(operation: InfixOperation, negate: bool):
    def apply(left, right):
        same_kind = (
            (isinstance(left, Integer) and isinstance(right, Integer))
            or (isinstance(left, Boolean) and isinstance(right, Boolean))
        )
        if not same_kind:
            raise InfixOperationNotImplemented(operation, left, right)
        return native_bool((left.value == right.value) != negate)
    return apply


def _divide(left, right):
    if not (isinstance(left, Integer) and isinstance(right, Integer)):
        raise InfixOperationNotImplemented(InfixOperation.DIVISION, left, right)
    if right.value == 0:
        raise DivisionByZero(left)
    # Truncate toward zero, unlike Python's floor division.
    quotient = abs(left.value) // abs(right.value)
    if (left.value < 0) != (right.value < 0):
        quotient = -quotient
    return Integer(wrap_int64(quotient))


INFIX_OPERATIONS: Dict[InfixOperation, Callable[[MonkeyObject, MonkeyObject], MonkeyObject]] = {
    InfixOperation.SUM: _integer_operation(InfixOperation.SUM, lambda a, b: Integer(wrap_int64(a + b))),
    InfixOperation.SUBTRACTION: _integer_operation(InfixOperation.SUBTRACTION, lambda a, b: Integer(wrap_int64(a - b))),
    InfixOperation.PRODUCT: _integer_operation(InfixOperation.PRODUCT, lambda a, b: Integer(wrap_int64(a * b))),
    InfixOperation.DIVISION: _divide,
    InfixOperation.LESS_THAN: _integer_operation(InfixOperation.LESS_THAN, lambda a, b: native_bool(a < b)),
    InfixOperation.GREATER_THAN: _integer_operation(InfixOperation.GREATER_THAN, lambda a, b: native_bool(a > b)),
    InfixOperation.LESS_THAN_EQUAL: _integer_operation(InfixOperation.LESS_THAN_EQUAL, lambda a, b: native_bool(a <= b)),
    InfixOperation.GREATER_THAN_EQUAL: _integer_operation(InfixOperation.GREATER_THAN_EQUAL, lambda a, b: native_bool(a >= b)),
    InfixOperation.EQUAL: _equality_operation(InfixOperation.EQUAL, negate=False),
    InfixOperation.NOT_EQUAL: _equality_operation(InfixOperation.NOT_EQUAL, negate=True),
}


def _negative(value):
    if isinstance(value, Integer):
        return Integer(wrap_int64(-value.value))
    raise PrefixOperationNotImplemented(PrefixOperation.NEGATIVE, value)


def _negate(value):
    if isinstance(value, Boolean):
        return native_bool(not value.value)
    raise PrefixOperationNotImplemented(PrefixOperation.NEGATE, value)


PREFIX_OPERATIONS: Dict[PrefixOperation, Callable[[MonkeyObject], MonkeyObject]] = {
    PrefixOperation.NEGATIVE: _negative,
    PrefixOperation.NEGATE: _negate,
}


# =================================================================
# Evaluator
# =================================================================

class Evaluator:
    """The Monkey execution engine."""

    def __init__(self, strict_names: Optional[bool] = None, echo_stdout: bool = True):
        # Unresolved identifiers evaluate to null unless strict mode is on.
        self.strict_names = _env_flag("MONKEY_STRICT_NAMES") if strict_names is None else strict_names
        # When False, `puts` output is only recorded in side_effects (the runner prints it).
        self.echo_stdout = echo_stdout
        self.side_effects: List[Dict[str, Any]] = []
        self.call_stack: List[Dict[str, Any]] = []
        self.current_node = None
        self.builtins: Dict[str, Callable[[List[MonkeyObject]], MonkeyObject]] = {}

        from monkey.monkey_runtime import Builtins
        Builtins(self)
        apply_recursion_limit()

    def _push_frame(self, name, func, args, call_site_node):
        self.call_stack.append({
            'name': name,
            'func': func,
            'args': args,
            'call_site': call_site_node,
        })

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def _dbg(self, *parts):
        if os.environ.get("MONKEY_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def eval(self, program, env: Environment) -> MonkeyObject:
        """Public entry point: evaluates a Program as a block in env."""
        self.current_node = program
        return self._eval_block(program, env)

    def _eval_block(self, block, env: Environment) -> MonkeyObject:
        """Runs statements in order; the first Return ends the block with its value."""
        for statement in block:
            result = self._eval_statement(statement, env)
            if isinstance(result, ReturnValue):
                return result.value
        return NULL

    def _eval_statement(self, statement, env: Environment):
        self.current_node = statement
        match statement:
            case LetStatement(name=name, expression=expression):
                env[name] = self._eval(expression, env)
                self._dbg("LET", name, "=", env.bindings[name])
                return None
            case ReturnStatement(expression=expression):
                return ReturnValue(self._eval(expression, env))
            case ExpressionStatement(expression=expression):
                self._eval(expression, env)
                return None
            case _:
                raise TypeError(f"Unknown statement node: {statement!r}")

    def _eval(self, node, env: Environment) -> MonkeyObject:
        """Recursive dispatcher for evaluating any expression node."""
        self.current_node = node
        match node:
            case IntegerLiteral(value=value):
                return Integer(value)
            case StringLiteral(value=value):
                return String(value)
            case BooleanLiteral(value=value):
                return native_bool(value)
            case Identifier(name=name):
                return self._lookup(name, env)
            case PrefixExpression(operation=operation, operand=operand):
                return PREFIX_OPERATIONS[operation](self._eval(operand, env))
            case InfixExpression(operation=operation, left=left, right=right):
                left_value = self._eval(left, env)
                right_value = self._eval(right, env)
                return INFIX_OPERATIONS[operation](left_value, right_value)
            case IfExpression():
                return self._eval_if(node, env)
            case FunctionLiteral(parameters=parameters, body=body):
                # The closure shares env; no bindings are copied.
                return MonkeyFunction(parameters, body, env)
            case CallExpression():
                return self._eval_call(node, env)
            case ArrayLiteral(elements=elements):
                return Array([self._eval(e, env) for e in elements])
            case IndexExpression(target=target, index=index):
                return self._eval_index(self._eval(target, env), self._eval(index, env))
            case HashLiteral(pairs=pairs):
                return self._eval_hash_literal(pairs, env)
            case _:
                raise TypeError(f"Unknown expression node: {node!r}")

    def _lookup(self, name: str, env: Environment) -> MonkeyObject:
        owner = env.find_owner(name)
        if owner is not None:
            return owner.bindings[name]
        if self.strict_names:
            raise UnresolvedIdentifier(name)
        return NULL

    def _eval_if(self, node: IfExpression, env: Environment) -> MonkeyObject:
        condition = self._eval(node.condition, env)
        if not isinstance(condition, Boolean):
            raise UnexpectedType(condition, "bool")
        if condition.value:
            return self._eval_block(node.consequence, env)
        if node.alternative is not None:
            return self._eval_block(node.alternative, env)
        return NULL

    def _eval_index(self, target: MonkeyObject, index: MonkeyObject) -> MonkeyObject:
        match target:
            case Array():
                if not isinstance(index, Integer):
                    raise NotIndexable(target, index)
                if not 0 <= index.value < len(target):
                    raise IndexOutOfBounds(target, index.value)
                return target[index.value]
            case HashMap():
                # A missing key is null, not an error.
                return target.get(index, NULL)
            case _:
                raise NotIndexable(target, index)

    def _eval_hash_literal(self, pairs, env: Environment) -> HashMap:
        result = HashMap()
        for key_node, value_node in pairs:
            key = self._eval(key_node, env)
            value = self._eval(value_node, env)
            result.pairs[check_hashable(key)] = value
        return result

    def _eval_call(self, node: CallExpression, env: Environment) -> MonkeyObject:
        func = self._eval(node.callee, env)
        if not isinstance(func, MonkeyCallable):
            raise NotCallable(func)
        # Arguments are evaluated in the caller's environment, left to right.
        args = [self._eval(a, env) for a in node.arguments]
        name = node.callee.name if isinstance(node.callee, Identifier) else None
        return self.call(func, args, name=name, call_site=node)

    def call(self, func: MonkeyCallable, args: List[MonkeyObject], name: Optional[str] = None, call_site=None) -> MonkeyObject:
        """Applies a Function or BuiltIn to already-evaluated arguments."""
        if isinstance(func, BuiltIn):
            name = func.name
        self._push_frame(name or "<fn>", func, args, call_site)

        match func:
            case BuiltIn(name=builtin_name):
                result = self._call_builtin(builtin_name, args)
            case MonkeyFunction():
                # The call frame's parent is the captured scope, not the caller's.
                frame = Environment(parent=func.closure)
                # Extra arguments are ignored and missing ones stay unbound.
                for parameter, value in zip(func.parameters, args):
                    frame[parameter] = value
                result = self._eval_block(func.body, frame)
            case _:
                raise NotCallable(func)

        # Frames are left on the stack when an error escapes, for the stacktrace.
        self._pop_frame()
        return result

    def _call_builtin(self, name: str, args: List[MonkeyObject]) -> MonkeyObject:
        impl = self.builtins.get(name)
        if impl is None:
            raise RuntimeError(f"Unknown builtin function {name}")
        return impl(args)
