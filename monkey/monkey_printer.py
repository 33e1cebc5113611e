"""
A printer for Monkey values and AST nodes.
"""
from monkey.monkey_ast import (
    IntegerLiteral, StringLiteral, BooleanLiteral, Identifier,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral,
    CallExpression, ArrayLiteral, IndexExpression, HashLiteral,
    LetStatement, ReturnStatement, ExpressionStatement,
)
from monkey.monkey_datatypes import (
    _Null, Integer, Boolean, String, Array, HashMap, MonkeyFunction, BuiltIn,
)


class Printer:
    """Formats Monkey objects for display and AST nodes as Monkey source."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj, quote_strings: bool = False) -> str:
        """Public entry point to format an object.

        Strings print verbatim at the top level (the form `puts` writes) and
        quoted inside containers. Pass quote_strings=True to quote them
        everywhere, as diagnostics do.
        """
        if isinstance(obj, String) and not quote_strings:
            return obj.value
        return self._get_handler(obj)(obj)

    def inspect(self, obj) -> str:
        return self.pformat(obj, quote_strings=True)

    def pformat_program(self, program) -> str:
        """Formats a whole Program, one statement per line."""
        return "\n".join(self._format(s) for s in program)

    def _format(self, obj) -> str:
        return self._get_handler(obj)(obj)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        handler = self._handlers.get(type(obj))
        if handler is not None:
            return handler
        if isinstance(obj, tuple):
            return self._pformat_block
        # Default to Python's repr for unknown types
        return repr

    def _create_handlers(self):
        return {
            # Runtime values
            _Null: lambda o: "null",
            Integer: lambda o: str(o.value),
            Boolean: lambda o: "true" if o.value else "false",
            String: self._pformat_string,
            Array: self._pformat_array,
            HashMap: self._pformat_hash_map,
            MonkeyFunction: self._pformat_function,
            BuiltIn: lambda o: f"builtin {o.name}",
            # AST nodes
            IntegerLiteral: lambda n: str(n.value),
            StringLiteral: lambda n: f'"{n.value}"',
            BooleanLiteral: lambda n: "true" if n.value else "false",
            Identifier: lambda n: n.name,
            PrefixExpression: lambda n: f"({n.operation.value}{self._format(n.operand)})",
            InfixExpression: self._pformat_infix,
            IfExpression: self._pformat_if,
            FunctionLiteral: lambda n: self._pformat_fn(n.parameters, n.body),
            CallExpression: self._pformat_call,
            ArrayLiteral: lambda n: f"[{self._join(n.elements)}]",
            IndexExpression: lambda n: f"({self._format(n.target)}[{self._format(n.index)}])",
            HashLiteral: self._pformat_hash_literal,
            LetStatement: lambda s: f"let {s.name} = {self._format(s.expression)};",
            ReturnStatement: lambda s: f"return {self._format(s.expression)};",
            ExpressionStatement: lambda s: f"{self._format(s.expression)};",
        }

    def _join(self, items) -> str:
        return ", ".join(self._format(i) for i in items)

    # --- Values ---

    def _pformat_string(self, obj) -> str:
        # Strings carry no escape sequences, so the quotes are added verbatim.
        return f'"{obj.value}"'

    def _pformat_array(self, obj) -> str:
        return f"[{self._join(obj.elements)}]"

    def _pformat_hash_map(self, obj) -> str:
        pairs = ", ".join(f"{self._format(k)}: {self._format(v)}" for k, v in obj.items())
        return f"{{{pairs}}}"

    def _pformat_function(self, obj) -> str:
        return self._pformat_fn(obj.parameters, obj.body)

    # --- AST ---

    def _pformat_block(self, block) -> str:
        if not block:
            return "{}"
        return "{ " + " ".join(self._format(s) for s in block) + " }"

    def _pformat_fn(self, parameters, body) -> str:
        return f"fn({', '.join(parameters)}) {self._pformat_block(body)}"

    def _pformat_infix(self, node) -> str:
        return f"({self._format(node.left)} {node.operation.value} {self._format(node.right)})"

    def _pformat_if(self, node) -> str:
        condition = self._format(node.condition)
        if not condition.startswith("("):
            condition = f"({condition})"
        out = f"if {condition} {self._pformat_block(node.consequence)}"
        if node.alternative is not None:
            out += f" else {self._pformat_block(node.alternative)}"
        return out

    def _pformat_call(self, node) -> str:
        return f"{self._format(node.callee)}({self._join(node.arguments)})"

    def _pformat_hash_literal(self, node) -> str:
        pairs = ", ".join(f"{self._format(k)}: {self._format(v)}" for k, v in node.pairs)
        return f"{{{pairs}}}"
