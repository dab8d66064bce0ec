"""Recursive-descent parser for the expression language.

Precedence, loosest first::

    ternary  ?:
    or       ||
    and      &&
    equality == != === !==
    compare  < <= > >=
    additive + -
    term     * / %
    unary    ! -
    postfix  .name [expr] (args)
"""

from ..core.errors import ExpressionError
from .lexer import Token, TokenType, tokenize
from .nodes import Binary, Call, Conditional, Literal, Logical, Member, Name, Node, Unary

KEYWORDS = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}


class Parser:
    """Parses one expression string into an AST."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = tokenize(source)
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def _match(self, *ops: str) -> Token | None:
        token = self.current
        if token.type == TokenType.OP and token.value in ops:
            return self._advance()
        return None

    def _expect(self, op: str) -> Token:
        token = self._match(op)
        if token is None:
            raise self._error(f"Expected '{op}'")
        return token

    def _error(self, message: str) -> ExpressionError:
        token = self.current
        found = token.value or "end of expression"
        return ExpressionError(f"{message} at position {token.pos} (found {found!r})", self.source)

    def parse(self) -> Node:
        if self.current.type == TokenType.EOF:
            raise ExpressionError("Empty expression", self.source)
        node = self._ternary()
        if self.current.type != TokenType.EOF:
            raise self._error("Unexpected token")
        return node

    def _ternary(self) -> Node:
        test = self._or()
        if self._match("?"):
            then = self._ternary()
            self._expect(":")
            otherwise = self._ternary()
            return Conditional(test, then, otherwise)
        return test

    def _or(self) -> Node:
        node = self._and()
        while self._match("||"):
            node = Logical("||", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._equality()
        while self._match("&&"):
            node = Logical("&&", node, self._equality())
        return node

    def _equality(self) -> Node:
        node = self._compare()
        while (token := self._match("==", "!=", "===", "!==")) is not None:
            node = Binary(token.value, node, self._compare())
        return node

    def _compare(self) -> Node:
        node = self._additive()
        while (token := self._match("<", "<=", ">", ">=")) is not None:
            node = Binary(token.value, node, self._additive())
        return node

    def _additive(self) -> Node:
        node = self._term()
        while (token := self._match("+", "-")) is not None:
            node = Binary(token.value, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while (token := self._match("*", "/", "%")) is not None:
            node = Binary(token.value, node, self._unary())
        return node

    def _unary(self) -> Node:
        if (token := self._match("!", "-")) is not None:
            return Unary(token.value, self._unary())
        return self._postfix()

    def _postfix(self) -> Node:
        node = self._primary()
        while True:
            if self._match("."):
                token = self._advance()
                if token.type != TokenType.IDENT:
                    raise self._error("Expected property name")
                node = Member(node, Literal(token.value))
            elif self._match("["):
                prop = self._ternary()
                self._expect("]")
                node = Member(node, prop)
            elif self._match("("):
                args: list[Node] = []
                if not self._match(")"):
                    args.append(self._ternary())
                    while self._match(","):
                        args.append(self._ternary())
                    self._expect(")")
                node = Call(node, tuple(args))
            else:
                return node

    def _primary(self) -> Node:
        token = self.current

        if token.type == TokenType.NUMBER:
            self._advance()
            return Literal(float(token.value) if "." in token.value else int(token.value))

        if token.type == TokenType.STRING:
            self._advance()
            return Literal(token.value)

        if token.type == TokenType.IDENT:
            self._advance()
            if token.value in KEYWORDS:
                return Literal(KEYWORDS[token.value])
            return Name(token.value)

        if self._match("("):
            node = self._ternary()
            self._expect(")")
            return node

        raise self._error("Unexpected token")


def unwrap(source: str) -> str:
    """Strip a surrounding ``${...}`` wrapper, if the whole expression has one."""
    text = source.strip()
    if text.startswith("${") and text.endswith("}") and text.count("${") == 1:
        return text[2:-1].strip()
    return text


def parse(source: str) -> Node:
    """
    Parse an expression (optionally wrapped in ``${...}``).

    Raises:
        ExpressionError: On any syntax error
    """
    return Parser(unwrap(source)).parse()
