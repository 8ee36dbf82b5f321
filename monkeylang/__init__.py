"""The Monkey programming language: lexer, parser, runtime objects, built-ins and bytecode VM."""

__version__ = "0.1.0"

__all__ = [
    "token",
    "lexer",
    "ast_nodes",
    "tracing",
    "parser",
    "objects",
    "environment",
    "builtin_functions",
    "opcodes",
    "frame",
    "vm",
]