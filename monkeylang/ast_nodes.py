"""Syntax tree nodes produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass, field

from monkeylang.token import Token


class Node:
    """Base of every syntax tree node."""

    token: Token

    def token_literal(self) -> str:
        """Return the literal text of the token that starts this node."""
        return self.token.literal


@dataclass
class Program(Node):
    """The root node: a sequence of statements."""

    statements: list[Node] = field(default_factory=list)

    def token_literal(self) -> str:
        if self.statements:
            return self.statements[0].token_literal()
        return ""

    def __str__(self) -> str:
        return "".join(str(stmt) for stmt in self.statements)


@dataclass
class LetStatement(Node):
    token: Token
    name: Identifier | None = None
    value: Node | None = None

    def __str__(self) -> str:
        value = "" if self.value is None else str(self.value)
        return f"{self.token_literal()} {self.name} = {value};"


@dataclass
class ReturnStatement(Node):
    token: Token
    return_value: Node | None = None

    def __str__(self) -> str:
        value = "" if self.return_value is None else str(self.return_value)
        return f"{self.token_literal()} {value};"


@dataclass
class ExpressionStatement(Node):
    token: Token
    expression: Node | None = None

    def __str__(self) -> str:
        return "" if self.expression is None else str(self.expression)


@dataclass
class BlockStatement(Node):
    token: Token
    statements: list[Node] = field(default_factory=list)

    def __str__(self) -> str:
        return "".join(str(stmt) for stmt in self.statements)


@dataclass
class Identifier(Node):
    token: Token
    value: str = ""

    def __str__(self) -> str:
        return self.value


@dataclass
class IntegerLiteral(Node):
    token: Token
    value: int = 0

    def __str__(self) -> str:
        return self.token.literal


@dataclass
class StringLiteral(Node):
    token: Token
    value: str = ""

    def __str__(self) -> str:
        return self.token.literal


@dataclass
class BooleanLiteral(Node):
    token: Token
    value: bool = False

    def __str__(self) -> str:
        return self.token.literal


@dataclass
class PrefixExpression(Node):
    token: Token
    operator: str = ""
    right: Node | None = None

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


@dataclass
class InfixExpression(Node):
    token: Token
    left: Node | None = None
    operator: str = ""
    right: Node | None = None

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass
class IfExpression(Node):
    token: Token
    condition: Node | None = None
    consequence: BlockStatement | None = None
    alternative: BlockStatement | None = None

    def __str__(self) -> str:
        text = f"if{self.condition} {self.consequence}"
        if self.alternative is not None:
            text += f"else {self.alternative}"
        return text


@dataclass
class FunctionLiteral(Node):
    token: Token
    parameters: list[Identifier] = field(default_factory=list)
    body: BlockStatement | None = None
    name: str = ""

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        label = f"<{self.name}>" if self.name else ""
        return f"{self.token_literal()}{label}({params}) {self.body}"


@dataclass
class CallExpression(Node):
    token: Token
    function: Node | None = None
    arguments: list[Node] = field(default_factory=list)

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.function}({args})"


@dataclass
class ArrayLiteral(Node):
    token: Token
    elements: list[Node] = field(default_factory=list)

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass
class IndexExpression(Node):
    token: Token
    left: Node | None = None
    index: Node | None = None

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


@dataclass
class HashLiteral(Node):
    """A hash literal; ``pairs`` keeps key/value expressions in source order."""

    token: Token
    pairs: list[tuple[Node, Node]] = field(default_factory=list)

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}:{v}" for k, v in self.pairs) + "}"