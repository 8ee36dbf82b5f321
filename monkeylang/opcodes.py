"""Bytecode opcodes and helpers to encode and decode instructions."""

from __future__ import annotations

from enum import IntEnum


class Opcode(IntEnum):
    """One-byte operation codes understood by the virtual machine."""

    CONSTANT = 0
    ADD = 1
    POP = 2
    SUB = 3
    MUL = 4
    DIV = 5
    TRUE = 6
    FALSE = 7
    EQUAL = 8
    NOT_EQUAL = 9
    GREATER_THAN = 10
    MINUS = 11
    BANG = 12
    JUMP_NOT_TRUTHY = 13
    JUMP = 14
    NULL = 15
    GET_GLOBAL = 16
    SET_GLOBAL = 17
    ARRAY = 18
    HASH = 19
    INDEX = 20
    CALL = 21
    RETURN_VALUE = 22
    RETURN = 23
    GET_LOCAL = 24
    SET_LOCAL = 25
    GET_BUILTIN = 26
    CLOSURE = 27
    GET_FREE = 28
    CURRENT_CLOSURE = 29


_OPERAND_WIDTHS: dict[Opcode, tuple[int, ...]] = {
    Opcode.CONSTANT: (2,),
    Opcode.ADD: (),
    Opcode.POP: (),
    Opcode.SUB: (),
    Opcode.MUL: (),
    Opcode.DIV: (),
    Opcode.TRUE: (),
    Opcode.FALSE: (),
    Opcode.EQUAL: (),
    Opcode.NOT_EQUAL: (),
    Opcode.GREATER_THAN: (),
    Opcode.MINUS: (),
    Opcode.BANG: (),
    Opcode.JUMP_NOT_TRUTHY: (2,),
    Opcode.JUMP: (2,),
    Opcode.NULL: (),
    Opcode.GET_GLOBAL: (2,),
    Opcode.SET_GLOBAL: (2,),
    Opcode.ARRAY: (2,),
    Opcode.HASH: (2,),
    Opcode.INDEX: (),
    Opcode.CALL: (1,),
    Opcode.RETURN_VALUE: (),
    Opcode.RETURN: (),
    Opcode.GET_LOCAL: (1,),
    Opcode.SET_LOCAL: (1,),
    Opcode.GET_BUILTIN: (1,),
    Opcode.CLOSURE: (2, 1),
    Opcode.GET_FREE: (1,),
    Opcode.CURRENT_CLOSURE: (),
}


def operand_widths(op: int) -> tuple[int, ...]:
    """Return the byte width of each operand of ``op``; ValueError if unknown."""
    return _OPERAND_WIDTHS[Opcode(op)]


def make_instruction(op: int, *args: int) -> bytes:
    """Encode one instruction with big-endian operands."""
    widths = operand_widths(op)
    if len(args) != len(widths):
        raise ValueError(
            f"opcode {Opcode(op).name} takes {len(widths)} operands, got {len(args)}"
        )
    out = bytearray([int(op)])
    for width, arg in zip(widths, args):
        if not 0 <= arg < 256**width:
            raise ValueError(f"operand {arg} does not fit in {width} byte(s)")
        out += arg.to_bytes(width, "big")
    return bytes(out)


def read_uint16(instructions: bytes, offset: int) -> int:
    """Read a big-endian unsigned 16-bit operand at ``offset``."""
    return int.from_bytes(instructions[offset:offset + 2], "big")


def read_uint8(instructions: bytes, offset: int) -> int:
    """Read an unsigned 8-bit operand at ``offset``."""
    return instructions[offset]