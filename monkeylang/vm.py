"""Stack-based virtual machine that executes compiled Monkey bytecode."""

from __future__ import annotations

from dataclasses import dataclass, field

from monkeylang.builtin_functions import BUILTINS
from monkeylang.frame import Frame
from monkeylang.objects import (
    Array,
    Boolean,
    Builtin,
    Closure,
    CompiledFunction,
    Hash,
    HashPair,
    Integer,
    MonkeyObject,
    Null,
    String,
    is_hashable,
)
from monkeylang.opcodes import Opcode, read_uint8, read_uint16

STACK_SIZE = 2048
GLOBALS_SIZE = 65536
MAX_FRAMES = 1024

TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()

_UINT64 = 1 << 64
_INT64_SIGN = 1 << 63


class VMError(Exception):
    """Raised when executing bytecode fails."""


@dataclass
class Bytecode:
    """Instructions of the main program and the constant pool."""

    instructions: bytes = b""
    constants: list[MonkeyObject] = field(default_factory=list)


def _wrap_int64(value: int) -> int:
    value %= _UINT64
    return value - _UINT64 if value >= _INT64_SIGN else value


def _truncating_div(left: int, right: int) -> int:
    if right == 0:
        raise VMError("division by zero")
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def _to_boolean(value: bool) -> Boolean:
    return TRUE if value else FALSE


def is_truthy(obj: MonkeyObject) -> bool:
    """False only for false booleans and null; everything else is truthy."""
    if isinstance(obj, Boolean):
        return obj.value
    if isinstance(obj, Null):
        return False
    return True


class VM:
    """Executes one Bytecode, optionally sharing a globals store between runs."""

    def __init__(
        self, bytecode: Bytecode, globals_store: list[MonkeyObject | None] | None = None
    ) -> None:
        self.constants = bytecode.constants
        self._stack: list[MonkeyObject | None] = [None] * STACK_SIZE
        self._sp = 0
        self.globals = globals_store if globals_store is not None else [None] * GLOBALS_SIZE
        main = Closure(CompiledFunction(bytecode.instructions))
        self._frames: list[Frame] = [Frame(main, 0)]

    def last_popped_stack_elem(self) -> MonkeyObject | None:
        """The value most recently popped off the stack."""
        return self._stack[self._sp]

    def run(self) -> None:
        """Execute until the main program's instructions are exhausted."""
        while True:
            frame = self._frames[-1]
            ins = frame.instructions
            if frame.ip >= len(ins) - 1:
                return
            frame.ip += 1
            ip = frame.ip
            op = ins[ip]

            match op:
                case Opcode.CONSTANT:
                    index = read_uint16(ins, ip + 1)
                    frame.ip += 2
                    self._push(self.constants[index])
                case Opcode.POP:
                    self._pop()
                case Opcode.ADD | Opcode.SUB | Opcode.MUL | Opcode.DIV:
                    self._binary_operation(op)
                case Opcode.TRUE:
                    self._push(TRUE)
                case Opcode.FALSE:
                    self._push(FALSE)
                case Opcode.EQUAL | Opcode.NOT_EQUAL | Opcode.GREATER_THAN:
                    self._comparison(op)
                case Opcode.BANG:
                    self._bang()
                case Opcode.MINUS:
                    self._minus()
                case Opcode.JUMP:
                    frame.ip = read_uint16(ins, ip + 1) - 1
                case Opcode.JUMP_NOT_TRUTHY:
                    target = read_uint16(ins, ip + 1)
                    frame.ip += 2
                    if not is_truthy(self._pop()):
                        frame.ip = target - 1
                case Opcode.NULL:
                    self._push(NULL)
                case Opcode.SET_GLOBAL:
                    index = read_uint16(ins, ip + 1)
                    frame.ip += 2
                    self.globals[index] = self._pop()
                case Opcode.GET_GLOBAL:
                    index = read_uint16(ins, ip + 1)
                    frame.ip += 2
                    self._push(self.globals[index])
                case Opcode.GET_BUILTIN:
                    index = read_uint8(ins, ip + 1)
                    frame.ip += 1
                    self._push(BUILTINS[index][1])
                case Opcode.ARRAY:
                    count = read_uint16(ins, ip + 1)
                    frame.ip += 2
                    array = Array(list(self._stack[self._sp - count:self._sp]))
                    self._sp -= count
                    self._push(array)
                case Opcode.HASH:
                    count = read_uint16(ins, ip + 1)
                    frame.ip += 2
                    hash_obj = self._build_hash(self._sp - count, self._sp)
                    self._sp -= count
                    self._push(hash_obj)
                case Opcode.INDEX:
                    index_obj = self._pop()
                    left = self._pop()
                    self._index(left, index_obj)
                case Opcode.CALL:
                    num_args = read_uint8(ins, ip + 1)
                    frame.ip += 1
                    self._call(num_args)
                case Opcode.RETURN_VALUE:
                    value = self._pop()
                    returned = self._frames.pop()
                    self._sp = returned.base_pointer - 1
                    self._push(value)
                case Opcode.RETURN:
                    returned = self._frames.pop()
                    self._sp = returned.base_pointer - 1
                    self._push(NULL)
                case Opcode.SET_LOCAL:
                    index = read_uint8(ins, ip + 1)
                    frame.ip += 1
                    self._stack[frame.base_pointer + index] = self._pop()
                case Opcode.GET_LOCAL:
                    index = read_uint8(ins, ip + 1)
                    frame.ip += 1
                    self._push(self._stack[frame.base_pointer + index])
                case Opcode.CLOSURE:
                    const_index = read_uint16(ins, ip + 1)
                    num_free = read_uint8(ins, ip + 3)
                    frame.ip += 3
                    self._push_closure(const_index, num_free)
                case Opcode.GET_FREE:
                    index = read_uint8(ins, ip + 1)
                    frame.ip += 1
                    self._push(frame.closure.free[index])
                case Opcode.CURRENT_CLOSURE:
                    self._push(frame.closure)

    # stack

    def _push(self, obj: MonkeyObject | None) -> None:
        if self._sp >= STACK_SIZE:
            raise VMError("stack overflow")
        self._stack[self._sp] = obj
        self._sp += 1

    def _pop(self) -> MonkeyObject:
        self._sp -= 1
        return self._stack[self._sp]

    # operators

    def _binary_operation(self, op: int) -> None:
        right = self._pop()
        left = self._pop()
        if isinstance(left, Integer) and isinstance(right, Integer):
            self._binary_integer_operation(op, left.value, right.value)
        elif isinstance(left, String) and isinstance(right, String):
            if op != Opcode.ADD:
                raise VMError(f"unknown string operator: {int(op)}")
            self._push(String(left.value + right.value))
        else:
            raise VMError(
                f"unsupported types for binary operation: {left.type} {right.type}"
            )

    def _binary_integer_operation(self, op: int, left: int, right: int) -> None:
        if op == Opcode.ADD:
            result = left + right
        elif op == Opcode.SUB:
            result = left - right
        elif op == Opcode.MUL:
            result = left * right
        elif op == Opcode.DIV:
            result = _truncating_div(left, right)
        else:
            raise VMError(f"unknown integer operator: {int(op)}")
        self._push(Integer(_wrap_int64(result)))

    def _comparison(self, op: int) -> None:
        right = self._pop()
        left = self._pop()
        if isinstance(left, Integer) and isinstance(right, Integer):
            if op == Opcode.EQUAL:
                self._push(_to_boolean(left.value == right.value))
            elif op == Opcode.NOT_EQUAL:
                self._push(_to_boolean(left.value != right.value))
            elif op == Opcode.GREATER_THAN:
                self._push(_to_boolean(left.value > right.value))
            else:
                raise VMError(f"unknown operator: {int(op)}")
            return
        if op == Opcode.EQUAL:
            self._push(_to_boolean(right is left))
        elif op == Opcode.NOT_EQUAL:
            self._push(_to_boolean(right is not left))
        else:
            raise VMError(f"unknown operator: {int(op)} ({left.type} {right.type})")

    def _bang(self) -> None:
        operand = self._pop()
        if operand is FALSE or operand is NULL:
            self._push(TRUE)
        else:
            self._push(FALSE)

    def _minus(self) -> None:
        operand = self._pop()
        if not isinstance(operand, Integer):
            raise VMError(f"unsupported type for negation: {operand.type}")
        self._push(Integer(_wrap_int64(-operand.value)))

    # collections

    def _build_hash(self, start: int, end: int) -> Hash:
        pairs: dict = {}
        items = self._stack[start:end]
        for key, value in zip(items[0::2], items[1::2]):
            if not is_hashable(key):
                raise VMError(f"unusable as hash key: {key.type}")
            pairs[key.hash_key()] = HashPair(key, value)
        return Hash(pairs)

    def _index(self, left: MonkeyObject, index: MonkeyObject) -> None:
        if isinstance(left, Array) and isinstance(index, Integer):
            i = index.value
            if 0 <= i < len(left.elements):
                self._push(left.elements[i])
            else:
                self._push(NULL)
        elif isinstance(left, Hash):
            if not is_hashable(index):
                raise VMError(f"unusable as hash key: {index.type}")
            pair = left.pairs.get(index.hash_key())
            self._push(NULL if pair is None else pair.value)
        else:
            raise VMError(f"index operator not supported: {left.type}")

    # calls

    def _call(self, num_args: int) -> None:
        callee = self._stack[self._sp - 1 - num_args]
        if isinstance(callee, Closure):
            self._call_closure(callee, num_args)
        elif isinstance(callee, Builtin):
            self._call_builtin(callee, num_args)
        else:
            raise VMError("calling non-function and non-built-in")

    def _call_closure(self, closure: Closure, num_args: int) -> None:
        fn = closure.fn
        if num_args != fn.num_parameters:
            raise VMError(
                f"wrong number of arguments: want={fn.num_parameters}, got={num_args}"
            )
        if len(self._frames) >= MAX_FRAMES:
            raise VMError("frame overflow")
        frame = Frame(closure, self._sp - num_args)
        self._frames.append(frame)
        self._sp = frame.base_pointer + fn.num_locals

    def _call_builtin(self, builtin: Builtin, num_args: int) -> None:
        args = self._stack[self._sp - num_args:self._sp]
        result = builtin(*args)
        self._sp -= num_args + 1
        self._push(result if result is not None else NULL)

    def _push_closure(self, const_index: int, num_free: int) -> None:
        constant = self.constants[const_index]
        if not isinstance(constant, CompiledFunction):
            raise VMError(f"not a function: {constant!r}")
        free = list(self._stack[self._sp - num_free:self._sp])
        self._sp -= num_free
        self._push(Closure(constant, free))