from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Union

MAX_NESTING_DEPTH = 100


class ExpressionSyntaxError(ValueError):
    """Raised when text cannot be tokenized or parsed as arithmetic."""


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


@dataclass(frozen=True)
class Number:
    text: str

    @property
    def is_decimal(self) -> bool:
        return "." in self.text


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Number, UnaryOp, BinaryOp]

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<number>[0-9]+\.?[0-9]*|\.[0-9]+)
  | (?P<power>\*\*|\^)
  | (?P<op>[+\-*/%])
  | (?P<lparen>\()
  | (?P<rparen>\))
    """,
    re.VERBOSE,
)


def tokenize(text: str) -> List[Token]:
    tokens: list[Token] = []
    position = 0
    while position < len(text):
        match = _TOKEN_PATTERN.match(text, position)
        if match is None:
            raise ExpressionSyntaxError(f"Unexpected character {text[position]!r} at position {position}.")
        kind = match.lastgroup
        if kind != "space":
            lexeme = match.group()
            tokens.append(Token(kind=kind, text=lexeme, position=position))
        position = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: List[Token]) -> None:
        self._tokens = tokens
        self._index = 0
        self._depth = 0

    def parse(self) -> Node:
        if not self._tokens:
            raise ExpressionSyntaxError("Expression is empty.")
        node = self._expression()
        if self._index < len(self._tokens):
            token = self._tokens[self._index]
            raise ExpressionSyntaxError(f"Unexpected {token.text!r} at position {token.position}.")
        return node

    def _peek(self) -> Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _accept(self, *texts: str) -> Token | None:
        token = self._peek()
        if token is not None and token.kind in {"op", "power"} and token.text in texts:
            self._index += 1
            return token
        return None

    def _expression(self) -> Node:
        node = self._term()
        while (token := self._accept("+", "-")) is not None:
            node = BinaryOp(token.text, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while (token := self._accept("*", "/", "%")) is not None:
            node = BinaryOp(token.text, node, self._unary())
        return node

    def _unary(self) -> Node:
        token = self._accept("+", "-")
        if token is not None:
            with self._nested():
                return UnaryOp(token.text, self._unary())
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        token = self._accept("^", "**")
        if token is not None:
            with self._nested():
                return BinaryOp(token.text, base, self._unary())
        return base

    def _primary(self) -> Node:
        token = self._peek()
        if token is None:
            raise ExpressionSyntaxError("Unexpected end of expression.")
        self._index += 1
        if token.kind == "number":
            return Number(token.text)
        if token.kind == "lparen":
            with self._nested():
                node = self._expression()
            closing = self._peek()
            if closing is None or closing.kind != "rparen":
                raise ExpressionSyntaxError(f"Unbalanced parenthesis at position {token.position}.")
            self._index += 1
            return node
        raise ExpressionSyntaxError(f"Unexpected {token.text!r} at position {token.position}.")

    @contextmanager
    def _nested(self) -> Iterator[None]:
        if self._depth >= MAX_NESTING_DEPTH:
            raise ExpressionSyntaxError(f"Expression nests deeper than {MAX_NESTING_DEPTH} levels.")
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1


def parse_expression(text: str) -> Node:
    """
    Parse arithmetic text into an immutable tree.

    Supports numeric literals, binary ``+ - * / % ^`` (``**`` is also read as power and
    keeps its own operator text), unary signs and parentheses. Power binds tightest and is
    right associative; unary signs bind looser than power, so ``-2^2 == -4``.
    """
    return _Parser(tokenize(text)).parse()


def iter_nodes(node: Node) -> Iterator[Node]:
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        if isinstance(current, UnaryOp):
            stack.append(current.operand)
        elif isinstance(current, BinaryOp):
            stack.append(current.right)
            stack.append(current.left)
