# monkeylang

Building blocks for the Monkey programming language: a lexer, a Pratt parser
that builds a syntax tree, the runtime object model, the built-in functions,
and a stack-based bytecode virtual machine.

Monkey is a small language with integers, booleans, strings, arrays, hashes,
first-class functions and closures:

```
let add = fn(a, b) { a + b };
let twice = fn(f, x) { f(f(x)) };
twice(fn(n) { add(n, 1) }, 40);
```

The package has no dependencies beyond the standard library and needs
Python 3.10 or later.

## Tokenizing

```python
from monkeylang.lexer import Lexer, tokenize

for token in tokenize("let five = 5;"):
    print(token.type, token.literal)

lexer = Lexer("10 != 9")
first = lexer.next_token()   # Token(type=TokenType.INT, literal='10')
```

`tokenize` returns a list ending with the `EOF` token. A `Lexer` is iterable
and its iteration stops after `EOF`; calling `next_token()` after the end
keeps returning `EOF`. Characters the language does not know become
`ILLEGAL` tokens. Keywords (`fn`, `let`, `true`, `false`, `if`, `else`,
`return`) are recognised with `monkeylang.token.lookup_ident`.

## Parsing

```python
from monkeylang.parser import parse

program = parse("a + b * c + d / e - f")
print(program)   # (((a + (b * c)) + (d / e)) - f)
```

`parse` raises `monkeylang.parser.ParseError` when the source is not valid
Monkey. Its `errors` attribute lists every message the parser collected, for
example `expected next token to be =, got INT instead` or
`no prefix parse function for ; found`. To work with the parser directly,
build a `Parser` from a `Lexer` and call `parse_program()`.

The nodes are dataclasses in `monkeylang.ast_nodes` (`Program`,
`LetStatement`, `InfixExpression`, `FunctionLiteral`, `HashLiteral` and the
rest). `str()` of a node gives its source form with every operator
expression parenthesised, and `token_literal()` gives the literal of the
token that started it. A `FunctionLiteral` bound by `let` records the
binding's name in its `name` field. A `HashLiteral` keeps its key/value
pairs in source order.

`monkeylang.tracing.Tracer` writes indented `BEGIN`/`END` lines for nested
steps; `trace(message)` is a context manager:

```python
from monkeylang.tracing import Tracer

tracer = Tracer()
with tracer.trace("parseExpression"):
    with tracer.trace("parseInfix"):
        pass
```

## Objects and built-ins

Runtime values live in `monkeylang.objects`: `Integer`, `Boolean`, `String`,
`Array`, `Hash`, `Null`, `Error`, `ReturnValue`, `Builtin`,
`CompiledFunction`, `Closure`, and also `Function`, `Macro` and `Quote`.
Each has an `inspect()` method that gives its printed form. Integers,
booleans and strings provide `hash_key()` and may be used as hash keys;
`is_hashable()` tells whether a value qualifies.

The built-in functions are `len`, `puts`, `first`, `last`, `rest` and `push`:

```python
from monkeylang.builtin_functions import get_builtin_by_name
from monkeylang.objects import Array, Integer

push = get_builtin_by_name("push")
result = push(Array([Integer(1)]), Integer(2))
print(result.inspect())   # [1, 2]
```

Given the wrong arguments, a built-in returns an `Error` object rather than
raising, for example `wrong number of arguments. got=2, want=1`. `first`,
`last` and `rest` return `None` for an empty array, and `puts` prints each
argument on its own line and returns `None`.

`monkeylang.environment.Environment` is a chain of name bindings: `get` and
`[]` fall through to the enclosing environment, `set` binds in the current
one, `in` tests a name, and `enclosed()` opens a new inner scope.

## The virtual machine

`monkeylang.vm.VM` executes a `Bytecode` — main program instructions plus a
constant pool — made of the opcodes in `monkeylang.opcodes`.
`make_instruction` encodes an opcode and its big-endian operands:

```python
from monkeylang.objects import Integer
from monkeylang.opcodes import Opcode, make_instruction
from monkeylang.vm import VM, Bytecode

instructions = b"".join([
    make_instruction(Opcode.CONSTANT, 0),
    make_instruction(Opcode.CONSTANT, 1),
    make_instruction(Opcode.ADD),
    make_instruction(Opcode.POP),
])
machine = VM(Bytecode(instructions, [Integer(1), Integer(2)]))
machine.run()
print(machine.last_popped_stack_elem().inspect())   # 3
```

After `run()`, `last_popped_stack_elem()` gives the value of the last
expression statement. Integer arithmetic wraps at 64 bits and division
truncates towards zero. Runtime faults raise `VMError`, for instance
`wrong number of arguments: want=1, got=0`, `stack overflow`,
`division by zero` or `unsupported types for binary operation: INTEGER STRING`.

A `VM` may be given a globals store (a list) shared with other machines, so
that successive programs see each other's global bindings.

## What the package does not do

There is no compiler from a parsed `Program` to `Bytecode`, and no
tree-walking evaluator: source text can be tokenized and parsed, and bytecode
can be executed, but turning one into the other is left to the caller, who
must assemble instructions with `make_instruction`. Nothing runs `Function`,
`Macro` or `Quote` objects. There is no interactive prompt and no command to
run Monkey programs.