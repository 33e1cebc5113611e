"""
Defines the runtime data types for the Monkey language.

Every value a program can produce is a MonkeyObject. Scalars (Null, Integer,
Boolean, String) are hashable and may key a HashMap; containers and callables
are not.
"""
from abc import ABC
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from monkey.monkey_errors import NotHashable


class MonkeyObject(ABC):
    """Abstract base class for all runtime values."""
    type_name = "object"


# =================================================================
# Scalars
# =================================================================

class _Null(MonkeyObject):
    type_name = "null"

    def __repr__(self) -> str:
        return "NULL"

    def __eq__(self, other):
        return isinstance(other, _Null)

    def __hash__(self):
        return hash(_Null)


NULL = _Null()


class Integer(MonkeyObject):
    """A signed 64-bit integer."""
    type_name = "integer"

    def __init__(self, value: int):
        self.value = value

    def __repr__(self) -> str:
        return f"Integer({self.value})"

    def __eq__(self, other):
        return isinstance(other, Integer) and self.value == other.value

    def __hash__(self):
        return hash((Integer, self.value))


class Boolean(MonkeyObject):
    type_name = "bool"

    def __init__(self, value: bool):
        self.value = value

    def __repr__(self) -> str:
        return f"Boolean({self.value})"

    def __eq__(self, other):
        return isinstance(other, Boolean) and self.value == other.value

    def __hash__(self):
        return hash((Boolean, self.value))


TRUE = Boolean(True)
FALSE = Boolean(False)


def native_bool(value: bool) -> Boolean:
    return TRUE if value else FALSE


class String(MonkeyObject):
    type_name = "string"

    def __init__(self, value: str):
        self.value = value

    def __repr__(self) -> str:
        return f"String({self.value!r})"

    def __eq__(self, other):
        return isinstance(other, String) and self.value == other.value

    def __hash__(self):
        return hash((String, self.value))


HASHABLE_TYPES = (_Null, Integer, Boolean, String)


def check_hashable(key: MonkeyObject) -> MonkeyObject:
    """Returns key unchanged, or raises NotHashable for containers and callables."""
    if not isinstance(key, HASHABLE_TYPES):
        raise NotHashable(key)
    return key


# =================================================================
# Containers
# =================================================================

class Array(MonkeyObject):
    """An ordered sequence of values with value semantics: it is never mutated in place."""
    type_name = "array"

    def __init__(self, elements: Iterable[MonkeyObject] = ()):
        self.elements: Tuple[MonkeyObject, ...] = tuple(elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[MonkeyObject]:
        return iter(self.elements)

    def __getitem__(self, index):
        return self.elements[index]

    def __repr__(self) -> str:
        return f"Array({list(self.elements)!r})"

    def __eq__(self, other):
        return isinstance(other, Array) and self.elements == other.elements

    __hash__ = None


class HashMap(MonkeyObject):
    """A mapping from hashable MonkeyObjects to values, kept in insertion order."""
    type_name = "hash"

    def __init__(self, pairs: Iterable[Tuple[MonkeyObject, MonkeyObject]] = ()):
        self.pairs: Dict[MonkeyObject, MonkeyObject] = {}
        for key, value in pairs:
            self.pairs[check_hashable(key)] = value

    def get(self, key: MonkeyObject, default: Optional[MonkeyObject] = None) -> Optional[MonkeyObject]:
        return self.pairs.get(check_hashable(key), default)

    def __len__(self) -> int:
        return len(self.pairs)

    def items(self):
        return self.pairs.items()

    def __repr__(self) -> str:
        return f"HashMap({self.pairs!r})"

    def __eq__(self, other):
        # dict equality ignores insertion order.
        return isinstance(other, HashMap) and self.pairs == other.pairs

    __hash__ = None


# =================================================================
# Environment
# =================================================================

class Environment:
    """A lexical scope: name bindings plus an optional parent scope.

    Environments are shared by reference. Every closure defined in a scope
    holds the same Environment object, so a binding added after the closure
    was created is still visible when the closure runs.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.bindings: Dict[str, MonkeyObject] = {}
        self.parent = parent

    def __setitem__(self, name: str, value: MonkeyObject):
        if not isinstance(name, str):
            raise TypeError(f"Environment key must be a str, not {type(name)}")
        self.bindings[name] = value

    def __getitem__(self, name: str) -> MonkeyObject:
        owner = self.find_owner(name)
        if owner is None:
            raise KeyError(name)
        return owner.bindings[name]

    def __contains__(self, name: Any) -> bool:
        return isinstance(name, str) and self.find_owner(name) is not None

    def find_owner(self, name: str) -> Optional['Environment']:
        """Finds the Environment in the parent chain that binds name."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.bindings:
                return env
            env = env.parent
        return None

    def get(self, name: str, default: Any = None) -> Any:
        owner = self.find_owner(name)
        if owner is None:
            return default
        return owner.bindings[name]

    def keys(self):
        """Returns the names bound in this scope only."""
        return self.bindings.keys()

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        parent_id = f", parent=#{id(self.parent)}" if self.parent else ""
        return f"<Environment bindings=[{keys}]{parent_id}>"


# =================================================================
# Callables
# =================================================================

class MonkeyCallable(MonkeyObject):
    """Abstract base class for values that can appear in call position."""
    pass


class MonkeyFunction(MonkeyCallable):
    """A closure: parameters and body from a function literal plus its defining Environment.

    Equality is identity; two evaluations of the same literal give distinct functions.
    """
    type_name = "function"

    def __init__(self, parameters: Tuple[str, ...], body, closure: Environment):
        self.parameters = parameters
        self.body = body
        self.closure = closure

    def __repr__(self) -> str:
        from monkey.monkey_printer import Printer
        return Printer().pformat(self)

    __hash__ = None


class BuiltIn(MonkeyCallable):
    """A host function exposed to programs by name."""
    type_name = "builtin"

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"BuiltIn({self.name!r})"

    def __eq__(self, other):
        return isinstance(other, BuiltIn) and self.name == other.name

    __hash__ = None

