"""Functions available to every Monkey program."""

from __future__ import annotations

from monkeylang.objects import Array, Builtin, Error, MonkeyObject, String, Integer


def _wrong_count(got: int, want: int) -> Error:
    return Error(f"wrong number of arguments. got={got}, want={want}")


def _array_argument(name: str, args: tuple[MonkeyObject, ...]) -> Array | Error:
    if len(args) != 1:
        return _wrong_count(len(args), 1)
    if not isinstance(args[0], Array):
        return Error(f"argument to `{name}` must be ARRAY, got {args[0].type}")
    return args[0]


def builtin_len(*args: MonkeyObject) -> MonkeyObject:
    """Length of an array, or of a string in bytes."""
    if len(args) != 1:
        return _wrong_count(len(args), 1)
    arg = args[0]
    if isinstance(arg, Array):
        return Integer(len(arg.elements))
    if isinstance(arg, String):
        return Integer(len(arg.value.encode("utf-8")))
    return Error(f"argument to `len` not supported, got {arg.type}")


def builtin_puts(*args: MonkeyObject) -> None:
    """Print each argument on its own line."""
    for arg in args:
        print(arg.inspect())
    return None


def builtin_first(*args: MonkeyObject) -> MonkeyObject | None:
    """First element of an array, or None when empty."""
    arr = _array_argument("first", args)
    if isinstance(arr, Error):
        return arr
    return arr.elements[0] if arr.elements else None


def builtin_last(*args: MonkeyObject) -> MonkeyObject | None:
    """Last element of an array, or None when empty."""
    arr = _array_argument("last", args)
    if isinstance(arr, Error):
        return arr
    return arr.elements[-1] if arr.elements else None


def builtin_rest(*args: MonkeyObject) -> MonkeyObject | None:
    """A new array of all but the first element, or None when empty."""
    arr = _array_argument("rest", args)
    if isinstance(arr, Error):
        return arr
    if arr.elements:
        return Array(list(arr.elements[1:]))
    return None


def builtin_push(*args: MonkeyObject) -> MonkeyObject:
    """A new array with the second argument appended to the first."""
    if len(args) != 2:
        return _wrong_count(len(args), 2)
    arr = args[0]
    if not isinstance(arr, Array):
        return Error(f"argument to `push` must be ARRAY, got {arr.type}")
    return Array([*arr.elements, args[1]])


BUILTINS: tuple[tuple[str, Builtin], ...] = (
    ("len", Builtin(builtin_len)),
    ("puts", Builtin(builtin_puts)),
    ("first", Builtin(builtin_first)),
    ("last", Builtin(builtin_last)),
    ("rest", Builtin(builtin_rest)),
    ("push", Builtin(builtin_push)),
)


def get_builtin_by_name(name: str) -> Builtin | None:
    """Return the builtin called ``name``, or None if there is none."""
    for builtin_name, builtin in BUILTINS:
        if builtin_name == name:
            return builtin
    return None