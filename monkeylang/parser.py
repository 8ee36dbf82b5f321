"""Pratt parser that builds a syntax tree from Monkey tokens."""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum

from monkeylang.ast_nodes import (
    ArrayLiteral,
    BlockStatement,
    BooleanLiteral,
    CallExpression,
    ExpressionStatement,
    FunctionLiteral,
    HashLiteral,
    Identifier,
    IfExpression,
    IndexExpression,
    InfixExpression,
    IntegerLiteral,
    LetStatement,
    Node,
    PrefixExpression,
    Program,
    ReturnStatement,
    StringLiteral,
)
from monkeylang.lexer import Lexer
from monkeylang.token import Token, TokenType

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class Precedence(IntEnum):
    """Binding strength of operators, weakest first."""

    LOWEST = 1
    EQUALS = 2
    LESSGREATER = 3
    SUM = 4
    PRODUCT = 5
    PREFIX = 6
    CALL = 7
    INDEX = 8


_PRECEDENCES: dict[TokenType, Precedence] = {
    TokenType.EQ: Precedence.EQUALS,
    TokenType.NOT_EQ: Precedence.EQUALS,
    TokenType.LT: Precedence.LESSGREATER,
    TokenType.GT: Precedence.LESSGREATER,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.SLASH: Precedence.PRODUCT,
    TokenType.ASTERISK: Precedence.PRODUCT,
    TokenType.LPAREN: Precedence.CALL,
    TokenType.LBRACKET: Precedence.INDEX,
}


class ParseError(Exception):
    """Raised when a program has syntax errors; ``errors`` lists every message."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


def _parse_int(literal: str) -> int | None:
    """Parse a decimal literal, or an octal one when it has a leading zero."""
    try:
        if len(literal) > 1 and literal.startswith("0"):
            value = int(literal[1:], 8)
        else:
            value = int(literal, 10)
    except ValueError:
        return None
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


class Parser:
    """Parses the tokens of one lexer into a Program."""

    def __init__(self, lexer: Lexer) -> None:
        self._lexer = lexer
        self.errors: list[str] = []

        self._prefix_fns: dict[TokenType, Callable[[], Node | None]] = {
            TokenType.IDENT: self._parse_identifier,
            TokenType.INT: self._parse_integer_literal,
            TokenType.STRING: self._parse_string_literal,
            TokenType.BANG: self._parse_prefix_expression,
            TokenType.MINUS: self._parse_prefix_expression,
            TokenType.TRUE: self._parse_boolean,
            TokenType.FALSE: self._parse_boolean,
            TokenType.LPAREN: self._parse_grouped_expression,
            TokenType.IF: self._parse_if_expression,
            TokenType.FUNCTION: self._parse_function_literal,
            TokenType.LBRACKET: self._parse_array_literal,
            TokenType.LBRACE: self._parse_hash_literal,
        }
        infix_ops = (
            TokenType.PLUS,
            TokenType.MINUS,
            TokenType.SLASH,
            TokenType.ASTERISK,
            TokenType.EQ,
            TokenType.NOT_EQ,
            TokenType.LT,
            TokenType.GT,
        )
        self._infix_fns: dict[TokenType, Callable[[Node | None], Node | None]] = {
            op: self._parse_infix_expression for op in infix_ops
        }
        self._infix_fns[TokenType.LPAREN] = self._parse_call_expression
        self._infix_fns[TokenType.LBRACKET] = self._parse_index_expression

        self._cur: Token = lexer.next_token()
        self._peek: Token = lexer.next_token()

    def parse_program(self) -> Program:
        """Parse the whole input; raise ParseError if anything went wrong."""
        program = Program()
        while not self._cur_is(TokenType.EOF):
            stmt = self._parse_statement()
            if stmt is not None:
                program.statements.append(stmt)
            self._next_token()
        if self.errors:
            raise ParseError(self.errors)
        return program

    # token handling

    def _next_token(self) -> None:
        self._cur = self._peek
        self._peek = self._lexer.next_token()

    def _cur_is(self, t: TokenType) -> bool:
        return self._cur.type is t

    def _peek_is(self, t: TokenType) -> bool:
        return self._peek.type is t

    def _expect_peek(self, t: TokenType) -> bool:
        if self._peek_is(t):
            self._next_token()
            return True
        self.errors.append(
            f"expected next token to be {t}, got {self._peek.type} instead"
        )
        return False

    def _peek_precedence(self) -> Precedence:
        return _PRECEDENCES.get(self._peek.type, Precedence.LOWEST)

    def _cur_precedence(self) -> Precedence:
        return _PRECEDENCES.get(self._cur.type, Precedence.LOWEST)

    # statements

    def _parse_statement(self) -> Node | None:
        if self._cur_is(TokenType.LET):
            return self._parse_let_statement()
        if self._cur_is(TokenType.RETURN):
            return self._parse_return_statement()
        return self._parse_expression_statement()

    def _parse_let_statement(self) -> LetStatement | None:
        stmt = LetStatement(self._cur)
        if not self._expect_peek(TokenType.IDENT):
            return None
        stmt.name = Identifier(self._cur, self._cur.literal)
        if not self._expect_peek(TokenType.ASSIGN):
            return None
        self._next_token()
        stmt.value = self._parse_expression(Precedence.LOWEST)
        if isinstance(stmt.value, FunctionLiteral):
            stmt.value.name = stmt.name.value
        if self._peek_is(TokenType.SEMICOLON):
            self._next_token()
        return stmt

    def _parse_return_statement(self) -> ReturnStatement:
        stmt = ReturnStatement(self._cur)
        self._next_token()
        stmt.return_value = self._parse_expression(Precedence.LOWEST)
        if self._peek_is(TokenType.SEMICOLON):
            self._next_token()
        return stmt

    def _parse_expression_statement(self) -> ExpressionStatement:
        stmt = ExpressionStatement(self._cur)
        stmt.expression = self._parse_expression(Precedence.LOWEST)
        if self._peek_is(TokenType.SEMICOLON):
            self._next_token()
        return stmt

    def _parse_block_statement(self) -> BlockStatement:
        block = BlockStatement(self._cur)
        self._next_token()
        while not self._cur_is(TokenType.RBRACE) and not self._cur_is(TokenType.EOF):
            stmt = self._parse_statement()
            if stmt is not None:
                block.statements.append(stmt)
            self._next_token()
        return block

    # expressions

    def _parse_expression(self, precedence: Precedence) -> Node | None:
        prefix = self._prefix_fns.get(self._cur.type)
        if prefix is None:
            self.errors.append(f"no prefix parse function for {self._cur.type} found")
            return None
        left = prefix()
        while not self._peek_is(TokenType.SEMICOLON) and precedence < self._peek_precedence():
            infix = self._infix_fns.get(self._peek.type)
            if infix is None:
                return left
            self._next_token()
            left = infix(left)
        return left

    def _parse_identifier(self) -> Identifier:
        return Identifier(self._cur, self._cur.literal)

    def _parse_integer_literal(self) -> IntegerLiteral | None:
        value = _parse_int(self._cur.literal)
        if value is None:
            self.errors.append(f'could not parse "{self._cur.literal}" as integer')
            return None
        return IntegerLiteral(self._cur, value)

    def _parse_string_literal(self) -> StringLiteral:
        return StringLiteral(self._cur, self._cur.literal)

    def _parse_boolean(self) -> BooleanLiteral:
        return BooleanLiteral(self._cur, self._cur_is(TokenType.TRUE))

    def _parse_prefix_expression(self) -> PrefixExpression:
        expression = PrefixExpression(self._cur, operator=self._cur.literal)
        self._next_token()
        expression.right = self._parse_expression(Precedence.PREFIX)
        return expression

    def _parse_infix_expression(self, left: Node | None) -> InfixExpression:
        expression = InfixExpression(self._cur, left=left, operator=self._cur.literal)
        precedence = self._cur_precedence()
        self._next_token()
        expression.right = self._parse_expression(precedence)
        return expression

    def _parse_grouped_expression(self) -> Node | None:
        self._next_token()
        exp = self._parse_expression(Precedence.LOWEST)
        if not self._expect_peek(TokenType.RPAREN):
            return None
        return exp

    def _parse_if_expression(self) -> IfExpression | None:
        expression = IfExpression(self._cur)
        if not self._expect_peek(TokenType.LPAREN):
            return None
        self._next_token()
        expression.condition = self._parse_expression(Precedence.LOWEST)
        if not self._expect_peek(TokenType.RPAREN):
            return None
        if not self._expect_peek(TokenType.LBRACE):
            return None
        expression.consequence = self._parse_block_statement()
        if self._peek_is(TokenType.ELSE):
            self._next_token()
            if not self._expect_peek(TokenType.LBRACE):
                return None
            expression.alternative = self._parse_block_statement()
        return expression

    def _parse_function_literal(self) -> FunctionLiteral | None:
        lit = FunctionLiteral(self._cur)
        if not self._expect_peek(TokenType.LPAREN):
            return None
        params = self._parse_function_parameters()
        lit.parameters = params if params is not None else []
        if not self._expect_peek(TokenType.LBRACE):
            return None
        lit.body = self._parse_block_statement()
        return lit

    def _parse_function_parameters(self) -> list[Identifier] | None:
        identifiers: list[Identifier] = []
        if self._peek_is(TokenType.RPAREN):
            self._next_token()
            return identifiers
        self._next_token()
        identifiers.append(Identifier(self._cur, self._cur.literal))
        while self._peek_is(TokenType.COMMA):
            self._next_token()
            self._next_token()
            identifiers.append(Identifier(self._cur, self._cur.literal))
        if not self._expect_peek(TokenType.RPAREN):
            return None
        return identifiers

    def _parse_call_expression(self, function: Node | None) -> CallExpression:
        exp = CallExpression(self._cur, function=function)
        args = self._parse_expression_list(TokenType.RPAREN)
        exp.arguments = args if args is not None else []
        return exp

    def _parse_expression_list(self, end: TokenType) -> list[Node | None] | None:
        items: list[Node | None] = []
        if self._peek_is(end):
            self._next_token()
            return items
        self._next_token()
        items.append(self._parse_expression(Precedence.LOWEST))
        while self._peek_is(TokenType.COMMA):
            self._next_token()
            self._next_token()
            items.append(self._parse_expression(Precedence.LOWEST))
        if not self._expect_peek(end):
            return None
        return items

    def _parse_array_literal(self) -> ArrayLiteral:
        array = ArrayLiteral(self._cur)
        elements = self._parse_expression_list(TokenType.RBRACKET)
        array.elements = elements if elements is not None else []
        return array

    def _parse_index_expression(self, left: Node | None) -> IndexExpression | None:
        exp = IndexExpression(self._cur, left=left)
        self._next_token()
        exp.index = self._parse_expression(Precedence.LOWEST)
        if not self._expect_peek(TokenType.RBRACKET):
            return None
        return exp

    def _parse_hash_literal(self) -> HashLiteral | None:
        hash_lit = HashLiteral(self._cur)
        while not self._peek_is(TokenType.RBRACE):
            self._next_token()
            key = self._parse_expression(Precedence.LOWEST)
            if not self._expect_peek(TokenType.COLON):
                return None
            self._next_token()
            value = self._parse_expression(Precedence.LOWEST)
            hash_lit.pairs.append((key, value))
            if not self._peek_is(TokenType.RBRACE) and not self._expect_peek(TokenType.COMMA):
                return None
        if not self._expect_peek(TokenType.RBRACE):
            return None
        return hash_lit


def parse(source: str) -> Program:
    """Parse Monkey source text into a Program, raising ParseError on bad input."""
    return Parser(Lexer(source)).parse_program()