import pytest

from monkeylang.builtin_functions import BUILTINS
from monkeylang.objects import Array, CompiledFunction, Error, Integer, String
from monkeylang.opcodes import Opcode, make_instruction
from monkeylang.vm import (
    FALSE,
    GLOBALS_SIZE,
    NULL,
    STACK_SIZE,
    TRUE,
    VM,
    Bytecode,
    VMError,
    is_truthy,
)

M = make_instruction
O = Opcode


def run(constants, *instructions, globals_store=None):
    vm = VM(Bytecode(b"".join(instructions), list(constants)), globals_store)
    vm.run()
    return vm.last_popped_stack_elem()


def fn(*instructions, num_locals=0, num_parameters=0):
    return CompiledFunction(b"".join(instructions), num_locals, num_parameters)


def builtin_index(name):
    return [n for n, _ in BUILTINS].index(name)


def binary(a, b, op):
    return run(
        [Integer(a), Integer(b)],
        M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(op), M(O.POP),
    )


@pytest.mark.parametrize(
    "a,b,op,expected",
    [
        (1, 2, O.ADD, 3),
        (1, 2, O.SUB, -1),
        (1, 2, O.MUL, 2),
        (4, 2, O.DIV, 2),
    ],
)
def test_integer_arithmetic(a, b, op, expected):
    assert binary(a, b, op) == Integer(expected)


def test_compound_arithmetic():
    # 50 / 2 * 2 + 10 - 5
    consts = [Integer(50), Integer(2), Integer(10), Integer(5)]
    result = run(
        consts,
        M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.DIV),
        M(O.CONSTANT, 1), M(O.MUL),
        M(O.CONSTANT, 2), M(O.ADD),
        M(O.CONSTANT, 3), M(O.SUB),
        M(O.POP),
    )
    assert result == Integer(55)


def test_negation():
    assert run([Integer(5)], M(O.CONSTANT, 0), M(O.MINUS), M(O.POP)) == Integer(-5)


def test_division_truncates_toward_zero():
    assert binary(-7, 2, O.DIV) == Integer(-3)


def test_division_by_zero_raises():
    with pytest.raises(VMError):
        binary(1, 0, O.DIV)


def test_negation_of_non_integer_raises():
    with pytest.raises(VMError, match="unsupported type for negation: BOOLEAN"):
        run([], M(O.TRUE), M(O.MINUS), M(O.POP))


@pytest.mark.parametrize(
    "a,b,op,expected",
    [
        (2, 1, O.GREATER_THAN, TRUE),   # 1 < 2
        (1, 2, O.GREATER_THAN, FALSE),  # 1 > 2
        (1, 1, O.GREATER_THAN, FALSE),
        (1, 1, O.EQUAL, TRUE),
        (1, 1, O.NOT_EQUAL, FALSE),
        (1, 2, O.EQUAL, FALSE),
        (1, 2, O.NOT_EQUAL, TRUE),
    ],
)
def test_integer_comparison(a, b, op, expected):
    assert binary(a, b, op) is expected


@pytest.mark.parametrize(
    "left,right,op,expected",
    [
        (O.TRUE, O.TRUE, O.EQUAL, TRUE),
        (O.FALSE, O.FALSE, O.EQUAL, TRUE),
        (O.TRUE, O.FALSE, O.EQUAL, FALSE),
        (O.TRUE, O.FALSE, O.NOT_EQUAL, TRUE),
        (O.FALSE, O.TRUE, O.NOT_EQUAL, TRUE),
    ],
)
def test_boolean_comparison(left, right, op, expected):
    assert run([], M(left), M(right), M(op), M(O.POP)) is expected


def test_greater_than_on_booleans_raises():
    with pytest.raises(VMError, match="unknown operator"):
        run([], M(O.TRUE), M(O.FALSE), M(O.GREATER_THAN), M(O.POP))


@pytest.mark.parametrize(
    "instructions,expected",
    [
        ([M(O.TRUE), M(O.BANG)], FALSE),
        ([M(O.FALSE), M(O.BANG)], TRUE),
        ([M(O.CONSTANT, 0), M(O.BANG)], FALSE),
        ([M(O.CONSTANT, 0), M(O.BANG), M(O.BANG)], TRUE),
        ([M(O.TRUE), M(O.BANG), M(O.BANG)], TRUE),
        ([M(O.NULL), M(O.BANG)], TRUE),
    ],
)
def test_bang(instructions, expected):
    assert run([Integer(5)], *instructions, M(O.POP)) is expected


def if_else(condition):
    # if (<condition>) { 10 } else { 20 }
    consequence = M(O.CONSTANT, 0)
    alternative = M(O.CONSTANT, 1)
    start = len(condition) + 3
    else_at = start + len(consequence) + 3
    end = else_at + len(alternative)
    return [
        condition,
        M(O.JUMP_NOT_TRUTHY, else_at),
        consequence,
        M(O.JUMP, end),
        alternative,
        M(O.POP),
    ]


@pytest.mark.parametrize(
    "condition,expected",
    [
        (M(O.TRUE), 10),
        (M(O.FALSE), 20),
        (M(O.CONSTANT, 2), 10),  # if (1)
        (M(O.NULL), 20),
    ],
)
def test_conditionals(condition, expected):
    consts = [Integer(10), Integer(20), Integer(1)]
    assert run(consts, *if_else(condition)) == Integer(expected)


def test_conditional_without_else_yields_null():
    # if (false) { 10 }
    ins = [M(O.FALSE), M(O.JUMP_NOT_TRUTHY, 10), M(O.CONSTANT, 0), M(O.JUMP, 11), M(O.NULL), M(O.POP)]
    assert run([Integer(10)], *ins) is NULL


def test_global_let_statements():
    # let one = 1; let two = 2; one + two
    result = run(
        [Integer(1), Integer(2)],
        M(O.CONSTANT, 0), M(O.SET_GLOBAL, 0),
        M(O.CONSTANT, 1), M(O.SET_GLOBAL, 1),
        M(O.GET_GLOBAL, 0), M(O.GET_GLOBAL, 1), M(O.ADD), M(O.POP),
    )
    assert result == Integer(3)


def test_globals_store_is_shared_between_runs():
    store = [None] * GLOBALS_SIZE
    run([Integer(7)], M(O.CONSTANT, 0), M(O.SET_GLOBAL, 0), globals_store=store)
    assert store[0] == Integer(7)
    assert run([], M(O.GET_GLOBAL, 0), M(O.POP), globals_store=store) == Integer(7)


def test_string_concatenation():
    consts = [String("mon"), String("key"), String("banana")]
    result = run(
        consts,
        M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.ADD),
        M(O.CONSTANT, 2), M(O.ADD), M(O.POP),
    )
    assert result == String("monkeybanana")


def test_string_subtraction_raises():
    with pytest.raises(VMError, match=f"unknown string operator: {int(O.SUB)}"):
        run([String("a"), String("b")], M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.SUB))


def test_mixed_types_raise():
    with pytest.raises(VMError, match="unsupported types for binary operation: INTEGER STRING"):
        run([Integer(1), String("a")], M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.ADD))


def test_empty_array():
    assert run([], M(O.ARRAY, 0), M(O.POP)) == Array([])


def test_array_literal():
    # [1 + 2, 3 * 4, 5 + 6]
    consts = [Integer(n) for n in (1, 2, 3, 4, 5, 6)]
    result = run(
        consts,
        M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.ADD),
        M(O.CONSTANT, 2), M(O.CONSTANT, 3), M(O.MUL),
        M(O.CONSTANT, 4), M(O.CONSTANT, 5), M(O.ADD),
        M(O.ARRAY, 3), M(O.POP),
    )
    assert result.elements == [Integer(3), Integer(12), Integer(11)]


def test_hash_literal():
    # {1: 2, 2: 3}
    consts = [Integer(1), Integer(2), Integer(3)]
    result = run(
        consts,
        M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.CONSTANT, 1), M(O.CONSTANT, 2),
        M(O.HASH, 4), M(O.POP),
    )
    assert len(result.pairs) == 2
    assert result.pairs[Integer(1).hash_key()].value == Integer(2)
    assert result.pairs[Integer(2).hash_key()].value == Integer(3)


def test_hash_with_unhashable_key_raises():
    with pytest.raises(VMError, match="unusable as hash key: ARRAY"):
        run([Integer(1)], M(O.ARRAY, 0), M(O.CONSTANT, 0), M(O.HASH, 2))


def array_index(index_const):
    consts = [Integer(1), Integer(2), Integer(3), Integer(index_const)]
    return run(
        consts,
        M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.CONSTANT, 2), M(O.ARRAY, 3),
        M(O.CONSTANT, 3), M(O.INDEX), M(O.POP),
    )


def test_array_index():
    assert array_index(1) == Integer(2)


@pytest.mark.parametrize("index", [99, -1])
def test_array_index_out_of_range_is_null(index):
    assert array_index(index) is NULL


def test_hash_index():
    # {1: 1, 2: 2}[2] and {1: 1}[0]
    consts = [Integer(1), Integer(2), Integer(0)]
    build = [M(O.CONSTANT, 0), M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.CONSTANT, 1), M(O.HASH, 4)]
    assert run(consts, *build, M(O.CONSTANT, 1), M(O.INDEX), M(O.POP)) == Integer(2)
    assert run(consts, *build, M(O.CONSTANT, 2), M(O.INDEX), M(O.POP)) is NULL


def test_index_on_integer_raises():
    with pytest.raises(VMError, match="index operator not supported: INTEGER"):
        run([Integer(1)], M(O.CONSTANT, 0), M(O.CONSTANT, 0), M(O.INDEX))


def test_call_without_arguments():
    # let fivePlusTen = fn() { 5 + 10; }; fivePlusTen();
    body = fn(M(O.CONSTANT, 0), M(O.CONSTANT, 1), M(O.ADD), M(O.RETURN_VALUE))
    result = run(
        [Integer(5), Integer(10), body],
        M(O.CLOSURE, 2, 0), M(O.SET_GLOBAL, 0),
        M(O.GET_GLOBAL, 0), M(O.CALL, 0), M(O.POP),
    )
    assert result == Integer(15)


def test_function_without_return_value():
    body = fn(M(O.RETURN))
    assert run([body], M(O.CLOSURE, 0, 0), M(O.CALL, 0), M(O.POP)) is NULL


def test_call_with_arguments():
    # let sum = fn(a, b) { a + b; }; sum(1, 2);
    body = fn(
        M(O.GET_LOCAL, 0), M(O.GET_LOCAL, 1), M(O.ADD), M(O.RETURN_VALUE),
        num_locals=2, num_parameters=2,
    )
    result = run(
        [body, Integer(1), Integer(2)],
        M(O.CLOSURE, 0, 0), M(O.SET_GLOBAL, 0),
        M(O.GET_GLOBAL, 0), M(O.CONSTANT, 1), M(O.CONSTANT, 2), M(O.CALL, 2), M(O.POP),
    )
    assert result == Integer(3)


def test_local_bindings():
    # let one = fn() { let one = 1; one }; one();
    body = fn(
        M(O.CONSTANT, 0), M(O.SET_LOCAL, 0), M(O.GET_LOCAL, 0), M(O.RETURN_VALUE),
        num_locals=1,
    )
    assert run([Integer(1), body], M(O.CLOSURE, 1, 0), M(O.CALL, 0), M(O.POP)) == Integer(1)


@pytest.mark.parametrize(
    "params,args,message",
    [
        (0, 1, "wrong number of arguments: want=0, got=1"),
        (1, 0, "wrong number of arguments: want=1, got=0"),
        (2, 1, "wrong number of arguments: want=2, got=1"),
    ],
)
def test_wrong_number_of_arguments(params, args, message):
    body = fn(M(O.CONSTANT, 0), M(O.RETURN_VALUE), num_locals=params, num_parameters=params)
    pushes = [M(O.CONSTANT, 0)] * args
    with pytest.raises(VMError) as excinfo:
        run([Integer(1), body], M(O.CLOSURE, 1, 0), *pushes, M(O.CALL, args), M(O.POP))
    assert str(excinfo.value) == message


def test_calling_non_function_raises():
    with pytest.raises(VMError, match="calling non-function and non-built-in"):
        run([Integer(1)], M(O.CONSTANT, 0), M(O.CALL, 0))


def test_closure_on_non_function_raises():
    with pytest.raises(VMError, match="not a function"):
        run([Integer(1)], M(O.CLOSURE, 0, 0))


def call_builtin(name, *consts):
    pushes = [M(O.CONSTANT, i) for i in range(len(consts))]
    return run(
        consts,
        M(O.GET_BUILTIN, builtin_index(name)), *pushes, M(O.CALL, len(consts)), M(O.POP),
    )


def test_builtin_len():
    assert call_builtin("len", String("four")) == Integer(4)
    assert call_builtin("len", String("")) == Integer(0)


def test_builtin_errors_are_values():
    assert call_builtin("len", Integer(1)) == Error("argument to `len` not supported, got INTEGER")
    assert call_builtin("len", String("one"), String("two")) == Error(
        "wrong number of arguments. got=2, want=1"
    )
    assert call_builtin("push", Integer(1), Integer(2)) == Error(
        "argument to `push` must be ARRAY, got INTEGER"
    )


def test_builtin_returning_nothing_yields_null(capsys):
    assert call_builtin("puts", String("hello"), String("world!")) is NULL
    assert capsys.readouterr().out == "hello\nworld!\n"


def test_builtin_first_of_empty_array_is_null():
    result = run(
        [], M(O.GET_BUILTIN, builtin_index("first")), M(O.ARRAY, 0), M(O.CALL, 1), M(O.POP)
    )
    assert result is NULL


def test_builtin_push():
    result = run(
        [Integer(1)],
        M(O.GET_BUILTIN, builtin_index("push")), M(O.ARRAY, 0), M(O.CONSTANT, 0),
        M(O.CALL, 2), M(O.POP),
    )
    assert result == Array([Integer(1)])


def test_closure_captures_free_variable():
    # let newClosure = fn(a) { fn() { a; } }; let closure = newClosure(99); closure();
    inner = fn(M(O.GET_FREE, 0), M(O.RETURN_VALUE))
    outer = fn(
        M(O.GET_LOCAL, 0), M(O.CLOSURE, 0, 1), M(O.RETURN_VALUE),
        num_locals=1, num_parameters=1,
    )
    result = run(
        [inner, outer, Integer(99)],
        M(O.CLOSURE, 1, 0), M(O.SET_GLOBAL, 0),
        M(O.GET_GLOBAL, 0), M(O.CONSTANT, 2), M(O.CALL, 1), M(O.SET_GLOBAL, 1),
        M(O.GET_GLOBAL, 1), M(O.CALL, 0), M(O.POP),
    )
    assert result == Integer(99)


def test_recursive_fibonacci():
    # fib(x) = if (x < 2) { return x } else { fib(x - 1) + fib(x - 2) }
    consts_two, consts_one, consts_fn, consts_arg = 0, 1, 2, 3
    condition = M(O.CONSTANT, consts_two) + M(O.GET_LOCAL, 0) + M(O.GREATER_THAN)
    then = M(O.GET_LOCAL, 0) + M(O.RETURN_VALUE)
    jump = M(O.JUMP_NOT_TRUTHY, len(condition) + 3 + len(then))
    recurse = (
        M(O.CURRENT_CLOSURE) + M(O.GET_LOCAL, 0) + M(O.CONSTANT, consts_one) + M(O.SUB) + M(O.CALL, 1)
        + M(O.CURRENT_CLOSURE) + M(O.GET_LOCAL, 0) + M(O.CONSTANT, consts_two) + M(O.SUB) + M(O.CALL, 1)
        + M(O.ADD) + M(O.RETURN_VALUE)
    )
    fib = fn(condition, jump, then, recurse, num_locals=1, num_parameters=1)
    consts = [Integer(2), Integer(1), fib, Integer(15)]
    result = run(
        consts,
        M(O.CLOSURE, consts_fn, 0), M(O.CONSTANT, consts_arg), M(O.CALL, 1), M(O.POP),
    )
    assert result == Integer(610)


def test_stack_overflow_raises():
    body = fn(M(O.CONSTANT, 0), M(O.RETURN_VALUE), num_locals=STACK_SIZE)
    with pytest.raises(VMError, match="stack overflow"):
        run([Integer(1), body], M(O.CLOSURE, 1, 0), M(O.CALL, 0))


def test_unbounded_recursion_raises():
    body = fn(M(O.CURRENT_CLOSURE), M(O.CALL, 0), M(O.RETURN_VALUE))
    with pytest.raises(VMError, match="overflow"):
        run([body], M(O.CLOSURE, 0, 0), M(O.CALL, 0))


@pytest.mark.parametrize(
    "obj,expected",
    [(TRUE, True), (FALSE, False), (NULL, False), (Integer(0), True), (String(""), True)],
)
def test_is_truthy(obj, expected):
    assert is_truthy(obj) is expected