"""Runtime values of the Monkey language."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from monkeylang.ast_nodes import BlockStatement, Identifier, Node

if TYPE_CHECKING:
    from monkeylang.environment import Environment

_UINT64_MASK = 0xFFFF_FFFF_FFFF_FFFF
_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3


class ObjectType(str, Enum):
    """Kinds of runtime value."""

    NULL = "NULL"
    ERROR = "ERROR"
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    STRING = "STRING"
    RETURN_VALUE = "RETURN_VALUE"
    FUNCTION = "FUNCTION"
    BUILTIN = "BUILTIN"
    QUOTE = "QUOTE"
    MACRO = "MACRO"
    ARRAY = "ARRAY"
    HASH = "HASH"
    COMPILED_FUNCTION = "COMPILED_FUNCTION_OBJ"
    CLOSURE = "CLOSURE"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class HashKey:
    """Key under which a hashable value is stored in a Hash."""

    type: ObjectType
    value: int


def _fnv1a_64(data: bytes) -> int:
    h = _FNV64_OFFSET
    for byte in data:
        h ^= byte
        h = (h * _FNV64_PRIME) & _UINT64_MASK
    return h


def _join_params(params: list[Identifier]) -> str:
    return ", ".join(str(p) for p in params)


class MonkeyObject:
    """Base of every runtime value."""

    type: ClassVar[ObjectType]

    def inspect(self) -> str:
        """Return the text shown for this value."""
        raise NotImplementedError


@dataclass
class Integer(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.INTEGER
    value: int

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(self.type, self.value & _UINT64_MASK)


@dataclass
class Boolean(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.BOOLEAN
    value: bool

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def hash_key(self) -> HashKey:
        return HashKey(self.type, 1 if self.value else 0)


@dataclass
class Null(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.NULL

    def inspect(self) -> str:
        return "null"


@dataclass
class ReturnValue(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.RETURN_VALUE
    value: MonkeyObject

    def inspect(self) -> str:
        return self.value.inspect()


@dataclass
class Error(MonkeyObject):
    """An error value produced while running a program."""

    type: ClassVar[ObjectType] = ObjectType.ERROR
    message: str

    def inspect(self) -> str:
        return "ERROR: " + self.message


@dataclass
class String(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.STRING
    value: str

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(self.type, _fnv1a_64(self.value.encode("utf-8")))


@dataclass
class Builtin(MonkeyObject):
    """A function provided by the runtime itself."""

    type: ClassVar[ObjectType] = ObjectType.BUILTIN
    fn: Callable[..., MonkeyObject | None]

    def inspect(self) -> str:
        return "builtin function"

    def __call__(self, *args: MonkeyObject) -> MonkeyObject | None:
        return self.fn(*args)


@dataclass
class Array(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.ARRAY
    elements: list[MonkeyObject] = field(default_factory=list)

    def inspect(self) -> str:
        return "[" + ", ".join(e.inspect() for e in self.elements) + "]"


@dataclass
class HashPair:
    """The original key object and its value."""

    key: MonkeyObject
    value: MonkeyObject


@dataclass
class Hash(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.HASH
    pairs: dict[HashKey, HashPair] = field(default_factory=dict)

    def inspect(self) -> str:
        items = ", ".join(
            f"{pair.key.inspect()}: {pair.value.inspect()}" for pair in self.pairs.values()
        )
        return "{" + items + "}"


@dataclass
class Quote(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.QUOTE
    node: Node

    def inspect(self) -> str:
        return f"QUOTE({self.node})"


@dataclass
class Function(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.FUNCTION
    parameters: list[Identifier]
    body: BlockStatement | None
    env: Environment | None = None

    def inspect(self) -> str:
        body = "" if self.body is None else str(self.body)
        return f"fn({_join_params(self.parameters)}) {{\n{body}\n}}"


@dataclass
class Macro(MonkeyObject):
    type: ClassVar[ObjectType] = ObjectType.MACRO
    parameters: list[Identifier]
    body: BlockStatement | None
    env: Environment | None = None

    def inspect(self) -> str:
        body = "" if self.body is None else str(self.body)
        return f"macro({_join_params(self.parameters)}) {{\n{body}\n}}"


@dataclass(eq=False)
class CompiledFunction(MonkeyObject):
    """Bytecode of one function together with its frame requirements."""

    type: ClassVar[ObjectType] = ObjectType.COMPILED_FUNCTION
    instructions: bytes = b""
    num_locals: int = 0
    num_parameters: int = 0

    def inspect(self) -> str:
        return f"CompiledFunction[{id(self):#x}]"


@dataclass(eq=False)
class Closure(MonkeyObject):
    """A compiled function with the free variables it captured."""

    type: ClassVar[ObjectType] = ObjectType.CLOSURE
    fn: CompiledFunction
    free: list[MonkeyObject] = field(default_factory=list)

    def inspect(self) -> str:
        return f"Closure[{id(self):#x}]"


def is_hashable(obj: Any) -> bool:
    """Return True if ``obj`` can be used as a hash key."""
    return isinstance(obj, (Integer, Boolean, String))