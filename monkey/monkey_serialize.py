from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any

import yaml

from monkey.monkey_ast import FunctionLiteral, IfExpression, HashLiteral


# --------------------------
# Helpers
# --------------------------

def _tag(node: Any) -> str:
    """CamelCase class name to a kebab-case tag, e.g. InfixExpression -> infix-expression."""
    name = type(node).__name__
    out = []
    for i, c in enumerate(name):
        if c.isupper() and i > 0:
            out.append('-')
        out.append(c.lower())
    return ''.join(out)


def _block_to_data(block) -> list:
    return [ast_to_data(s) for s in block]


# --------------------------
# Public API
# --------------------------

def ast_to_data(node: Any) -> Any:
    """
    Convert an AST node into plain tagged data (dicts, lists and scalars).
    Every node becomes {'tag': ..., <field>: ...}; blocks become lists.
    """
    if isinstance(node, tuple):
        return _block_to_data(node)
    if isinstance(node, Enum):
        return node.value
    if not is_dataclass(node):
        return node

    out: dict = {'tag': _tag(node)}
    match node:
        case FunctionLiteral():
            out['parameters'] = list(node.parameters)
            out['body'] = _block_to_data(node.body)
        case IfExpression():
            out['condition'] = ast_to_data(node.condition)
            out['consequence'] = _block_to_data(node.consequence)
            if node.alternative is not None:
                out['alternative'] = _block_to_data(node.alternative)
        case HashLiteral():
            out['pairs'] = [{'key': ast_to_data(k), 'value': ast_to_data(v)} for k, v in node.pairs]
        case _:
            for f in fields(node):
                out[f.name] = ast_to_data(getattr(node, f.name))
    return out


def dump_ast(program, *, fmt: str = 'yaml', pretty: bool = True) -> str:
    """
    Render a parsed Program as text.
    - fmt: 'yaml' | 'json'
    """
    f = (fmt or '').lower()
    data = ast_to_data(tuple(program))
    if f == 'json':
        return json.dumps(data, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(data, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "ast_to_data",
    "dump_ast",
]
