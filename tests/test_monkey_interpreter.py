import sys

import pytest

from monkey.monkey_ast import InfixOperation, PrefixOperation
from monkey.monkey_datatypes import (
    NULL, TRUE, FALSE, Integer, String, Array, HashMap, MonkeyFunction, BuiltIn,
)
from monkey.monkey_errors import (
    InfixOperationNotImplemented, PrefixOperationNotImplemented,
    UnexpectedType, IndexOutOfBounds, NotHashable, NotCallable, NotIndexable,
    DivisionByZero, UnresolvedIdentifier,
)
from monkey.monkey_interpreter import DEFAULT_RECURSION_LIMIT, Evaluator, wrap_int64
from monkey.monkey_parser import parse_source
from monkey.monkey_runtime import evaluate, new_environment, run


def run_code(source):
    return run(parse_source(source))


# --- Literals and arithmetic ---

def test_integer_literal():
    assert run_code("12") == Integer(12)


def test_empty_program_is_null():
    assert run_code("") is NULL


@pytest.mark.parametrize("source, expected", [
    ("2 + 1", 3),
    ("5 * 6", 30),
    ("66 - 11", 55),
    ("100 / 4", 25),
    ("5 + 5 * 2", 15),
    ("(5 + 10 * 2 + 15 / 3) * 2 + -10", 50),
    ("-7 / 2", -3),
    ("7 / -2", -3),
    ("-7 / -2", 3),
    ("--5", 5),
])
def test_integer_arithmetic(source, expected):
    assert run_code(source) == Integer(expected)


def test_integer_overflow_wraps():
    assert run_code("9223372036854775807 + 1") == Integer(-2 ** 63)
    assert run_code("-9223372036854775807 - 2") == Integer(2 ** 63 - 1)
    assert wrap_int64(2 ** 64 + 5) == 5


def test_division_by_zero():
    with pytest.raises(DivisionByZero) as exc:
        run_code("10 / 0")
    assert exc.value.left == Integer(10)


@pytest.mark.parametrize("source, expected", [
    ("1 < 2", TRUE),
    ("1 > 2", FALSE),
    ("2 <= 2", TRUE),
    ("3 >= 4", FALSE),
    ("1 == 1", TRUE),
    ("1 != 1", FALSE),
    ("true == true", TRUE),
    ("true != false", TRUE),
    ("(1 < 2) == true", TRUE),
    ("!true", FALSE),
    ("!!false", FALSE),
])
def test_comparisons_and_booleans(source, expected):
    assert run_code(source) is expected


def test_mixed_equality_is_not_implemented():
    with pytest.raises(InfixOperationNotImplemented) as exc:
        run_code("1 == true")
    assert exc.value.operation == InfixOperation.EQUAL
    assert exc.value.left == Integer(1)
    assert exc.value.right == TRUE


@pytest.mark.parametrize("source", [
    '"a" + "b"',
    "true + 1",
    '"a" == "a"',
    "[1] < [2]",
])
def test_unsupported_infix_operands(source):
    with pytest.raises(InfixOperationNotImplemented):
        run_code(source)


def test_prefix_type_errors():
    with pytest.raises(PrefixOperationNotImplemented) as exc:
        run_code("-true")
    assert exc.value.operation == PrefixOperation.NEGATIVE
    with pytest.raises(PrefixOperationNotImplemented):
        run_code("!5")


# --- Statements, blocks and return ---

def test_let_binds_and_overwrites():
    assert run_code("let a = 5; let a = a * 2; a") == Integer(10)


def test_return_ends_program():
    assert run_code("return 1; 2") == Integer(1)


def test_statements_without_return_give_null():
    assert run_code("let x = 1;") is NULL
    assert run_code("1; 2;") is NULL


def test_return_inside_if_ends_only_that_block():
    source = """
let f = fn(x) {
  if (x > 0) { return 1; 99 };
  2
};
f(5)
"""
    assert run_code(source) == Integer(2)


def test_if_expression_value():
    assert run_code("if (1 < 2) { 10 } else { 20 }") == Integer(10)
    assert run_code("if (1 > 2) { 10 } else { 20 }") == Integer(20)
    assert run_code("if (false) { 10 }") is NULL


def test_if_condition_must_be_bool():
    with pytest.raises(UnexpectedType) as exc:
        run_code("if (1) { 2 }")
    assert exc.value.value == Integer(1)
    assert exc.value.expected == "bool"


def test_if_branch_runs_in_current_environment():
    assert run_code("let x = 1; if (true) { let x = 2; }; x") == Integer(2)


# --- Identifiers ---

def test_unresolved_identifier_is_null():
    assert run_code("missing") is NULL


def test_strict_names_raise():
    evaluator = Evaluator(strict_names=True)
    with pytest.raises(UnresolvedIdentifier) as exc:
        evaluate(new_environment(), parse_source("missing"), evaluator)
    assert exc.value.name == "missing"


def test_strict_names_from_environment(monkeypatch):
    monkeypatch.setenv("MONKEY_STRICT_NAMES", "1")
    assert Evaluator().strict_names is True
    monkeypatch.setenv("MONKEY_STRICT_NAMES", "0")
    assert Evaluator().strict_names is False


def test_debug_trace_goes_to_stderr(monkeypatch, capsys):
    monkeypatch.setenv("MONKEY_DEBUG", "1")
    run_code("let x = 5;")
    assert "[DBG] LET x = Integer(5)" in capsys.readouterr().err


# --- Functions and closures ---

def test_function_literal_evaluates_to_function():
    value = run_code("fn(x) { x + 1 }")
    assert isinstance(value, MonkeyFunction)
    assert value.parameters == ("x",)


def test_function_call():
    assert run_code("let add = fn(a, b) { a + b }; add(2, 3)") == Integer(5)
    assert run_code("fn(x) { x * 2 }(4)") == Integer(8)


def test_closure_sees_later_bindings():
    assert run_code("let f = fn() { c }; let c = 3; f()") == Integer(3)


def test_closure_captures_defining_scope():
    source = """
let adder = fn(x) { fn(y) { x + y } };
let add_two = adder(2);
add_two(3)
"""
    assert run_code(source) == Integer(5)


def test_parameters_shadow_outer_bindings():
    assert run_code("let x = 1; let f = fn(x) { x }; f(9) + x") == Integer(10)


def test_call_frame_does_not_leak_into_caller():
    assert run_code("let f = fn() { let inner = 1; inner }; f(); inner") is NULL


def test_recursive_factorial():
    source = """
let factorial = fn(n) { if (n == 0) { 1 } else { n * factorial(n - 1) } };
factorial(8)
"""
    assert run_code(source) == Integer(40320)


def test_deep_recursion(monkeypatch):
    monkeypatch.delenv("MONKEY_RECURSION_LIMIT", raising=False)
    source = "let sum = fn(n) { if (n == 0) { 0 } else { n + sum(n - 1) } }; sum(500)"
    assert run_code(source) == Integer(125250)


def test_recursive_walk_over_a_long_array(monkeypatch):
    monkeypatch.delenv("MONKEY_RECURSION_LIMIT", raising=False)
    source = """
let build = fn(n, acc) { if (n == 0) { acc } else { build(n - 1, push(acc, n)) } };
let total = fn(arr) { if (len(arr) == 0) { 0 } else { first(arr) + total(rest(arr)) } };
total(build(200, []))
"""
    assert run_code(source) == Integer(20100)


def test_evaluator_raises_a_low_recursion_limit(monkeypatch):
    monkeypatch.delenv("MONKEY_RECURSION_LIMIT", raising=False)
    monkeypatch.setattr(sys, "getrecursionlimit", lambda: 1000)
    seen = []
    monkeypatch.setattr(sys, "setrecursionlimit", seen.append)
    Evaluator()
    assert seen == [DEFAULT_RECURSION_LIMIT]


def test_evaluator_never_lowers_the_recursion_limit(monkeypatch):
    monkeypatch.delenv("MONKEY_RECURSION_LIMIT", raising=False)
    monkeypatch.setattr(sys, "getrecursionlimit", lambda: DEFAULT_RECURSION_LIMIT * 2)
    seen = []
    monkeypatch.setattr(sys, "setrecursionlimit", seen.append)
    Evaluator()
    assert seen == []


def test_higher_order_functions():
    source = """
let map = fn(arr, f) {
  let iter = fn(arr, acc) {
    if (len(arr) == 0) { acc } else { iter(rest(arr), push(acc, f(first(arr)))) }
  };
  iter(arr, [])
};
map([1, 2, 3], fn(x) { x * x })
"""
    assert run_code(source) == Array([Integer(1), Integer(4), Integer(9)])


def test_arity_mismatch_is_tolerated():
    assert run_code("let f = fn(a) { a }; f(1, 2)") == Integer(1)
    assert run_code("let f = fn(a, b) { b }; f(1)") is NULL


def test_calling_a_non_function():
    with pytest.raises(NotCallable) as exc:
        run_code("let x = 5; x(1)")
    assert exc.value.value == Integer(5)


def test_argument_errors_abort_the_call():
    with pytest.raises(DivisionByZero):
        run_code("let f = fn(a, b) { a }; f(1, 1 / 0)")


def test_function_equality_is_identity():
    assert run_code("let f = fn() { 1 }; f") != run_code("let f = fn() { 1 }; f")


def test_builtins_are_values():
    assert run_code("len") == BuiltIn("len")
    assert run_code("let l = len; l([1, 2])") == Integer(2)


def test_builtins_can_be_shadowed():
    assert run_code("let len = fn(x) { 42 }; len([])") == Integer(42)


# --- Arrays and hashes ---

def test_array_literal_and_index():
    assert run_code("[1, 2 * 2, 3 + 3]") == Array([Integer(1), Integer(4), Integer(6)])
    assert run_code("let a = [1, 2]; a[1]") == Integer(2)


@pytest.mark.parametrize("source, index", [
    ("let a = [1, 2]; a[2]", 2),
    ("[1, 2][-1]", -1),
    ("[][0]", 0),
])
def test_array_index_out_of_bounds(source, index):
    with pytest.raises(IndexOutOfBounds) as exc:
        run_code(source)
    assert exc.value.index == index


def test_index_out_of_bounds_carries_array():
    with pytest.raises(IndexOutOfBounds) as exc:
        run_code("let a = [1, 2]; a[2]")
    assert exc.value.value == Array([Integer(1), Integer(2)])


def test_push_leaves_argument_unchanged():
    assert run_code("let a = [2, 6, 9]; let b = push(a, 5); a") == Array(
        [Integer(2), Integer(6), Integer(9)]
    )


def test_hash_literal_and_lookup():
    assert run_code('let h = {"a": 2, 3: 5}; h["a"] + h[3]') == Integer(7)


def test_hash_keys_of_every_scalar_kind():
    source = '{"one": 1, 2: 2, true: 3, false: 4}'
    value = run_code(source)
    assert isinstance(value, HashMap)
    assert value.get(String("one")) == Integer(1)
    assert value.get(Integer(2)) == Integer(2)
    assert value.get(TRUE) == Integer(3)
    assert value.get(FALSE) == Integer(4)


def test_integer_and_boolean_keys_stay_distinct():
    assert run_code("let h = {1: 10, true: 20}; h[1]") == Integer(10)


def test_missing_hash_key_is_null():
    assert run_code('{"a": 1}["b"]') is NULL


def test_hash_equality_ignores_key_order():
    assert run_code('{"a": 1, "b": 2}') == run_code('{"b": 2, "a": 1}')
    assert run_code('{"a": 1, "b": 2}') != run_code('{"a": 1, "b": 3}')


def test_duplicate_hash_keys_last_write_wins():
    value = run_code('{"a": 1, "a": 2}')
    assert len(value) == 1
    assert value.get(String("a")) == Integer(2)


def test_unhashable_key_in_literal():
    with pytest.raises(NotHashable) as exc:
        run_code("{[1, 2]: 3}")
    assert exc.value.value == Array([Integer(1), Integer(2)])


def test_unhashable_index_into_hash():
    with pytest.raises(NotHashable):
        run_code('{"a": 1}[fn() { 1 }]')


@pytest.mark.parametrize("source", [
    "1[0]",
    '"abc"[0]',
    '[1, 2]["a"]',
    "fn() { 1 }[0]",
])
def test_not_indexable(source):
    with pytest.raises(NotIndexable):
        run_code(source)


# --- Environments and evaluators ---

def test_evaluate_in_a_persistent_environment():
    env = new_environment()
    evaluate(env, parse_source("let x = 41;"))
    assert evaluate(env, parse_source("x + 1")) == Integer(42)


def test_call_stack_is_empty_after_success():
    evaluator = Evaluator()
    evaluate(new_environment(), parse_source("let f = fn(x) { x }; f(1)"), evaluator)
    assert evaluator.call_stack == []


def test_call_stack_keeps_frames_on_error():
    evaluator = Evaluator()
    source = "let boom = fn(x) { x / 0 }; let outer = fn(y) { boom(y) }; outer(5)"
    with pytest.raises(DivisionByZero):
        evaluate(new_environment(), parse_source(source), evaluator)
    assert [frame['name'] for frame in evaluator.call_stack] == ["outer", "boom"]
    assert evaluator.call_stack[-1]['args'] == [Integer(5)]


def test_unregistered_builtin_is_internal_error():
    evaluator = Evaluator()
    with pytest.raises(RuntimeError):
        evaluator.call(BuiltIn("nope"), [])
