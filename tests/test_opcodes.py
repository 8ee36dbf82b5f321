import pytest

from monkeylang.opcodes import (
    Opcode,
    make_instruction,
    operand_widths,
    read_uint8,
    read_uint16,
)


def test_make_constant_is_big_endian():
    assert make_instruction(Opcode.CONSTANT, 65534) == bytes([Opcode.CONSTANT, 255, 254])


def test_make_without_operands():
    assert make_instruction(Opcode.ADD) == bytes([Opcode.ADD])


def test_make_closure_has_two_operands():
    assert make_instruction(Opcode.CLOSURE, 65534, 255) == bytes(
        [Opcode.CLOSURE, 255, 254, 255]
    )


def test_operand_widths():
    assert operand_widths(Opcode.CLOSURE) == (2, 1)
    assert operand_widths(Opcode.CALL) == (1,)
    assert operand_widths(Opcode.POP) == ()


def test_instruction_length_matches_widths():
    for op in Opcode:
        args = [0] * len(operand_widths(op))
        assert len(make_instruction(op, *args)) == 1 + sum(operand_widths(op))


@pytest.mark.parametrize("value", [0, 1, 255, 256, 65535])
def test_read_uint16_round_trip(value):
    ins = make_instruction(Opcode.GET_GLOBAL, value)
    assert read_uint16(ins, 1) == value


@pytest.mark.parametrize("value", [0, 7, 255])
def test_read_uint8_round_trip(value):
    ins = make_instruction(Opcode.GET_LOCAL, value)
    assert read_uint8(ins, 1) == value


def test_wrong_operand_count_raises():
    with pytest.raises(ValueError):
        make_instruction(Opcode.CONSTANT)


def test_operand_out_of_range_raises():
    with pytest.raises(ValueError):
        make_instruction(Opcode.CALL, 256)


def test_unknown_opcode_raises():
    with pytest.raises(ValueError):
        operand_widths(250)