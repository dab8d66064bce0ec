"""Tokenizer for the expression language."""

from dataclasses import dataclass
from enum import Enum

from ..core.errors import ExpressionError


class TokenType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    IDENT = "ident"
    OP = "op"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    pos: int


# Longest first so "===" wins over "==" over "="
OPERATORS = (
    "===", "!==",
    "==", "!=", "<=", ">=", "&&", "||",
    "<", ">", "!", "+", "-", "*", "/", "%",
    "?", ":", ".", ",", "(", ")", "[", "]",
)

DIGITS = "0123456789"

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch in "_$"


def _is_ident_part(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def tokenize(source: str) -> list[Token]:
    """
    Split an expression into tokens.

    Raises:
        ExpressionError: On an unterminated string or unexpected character
    """
    tokens: list[Token] = []
    i = 0
    n = len(source)

    while i < n:
        ch = source[i]

        if ch.isspace():
            i += 1
            continue

        if ch in DIGITS or (ch == "." and i + 1 < n and source[i + 1] in DIGITS):
            start = i
            seen_dot = False
            while i < n and (source[i] in DIGITS or (source[i] == "." and not seen_dot)):
                if source[i] == ".":
                    # "1.foo" is member access, not a float
                    if i + 1 >= n or source[i + 1] not in DIGITS:
                        break
                    seen_dot = True
                i += 1
            tokens.append(Token(TokenType.NUMBER, source[start:i], start))
            continue

        if ch in "'\"":
            quote = ch
            start = i
            i += 1
            chars: list[str] = []
            while i < n and source[i] != quote:
                if source[i] == "\\" and i + 1 < n:
                    chars.append(_ESCAPES.get(source[i + 1], source[i + 1]))
                    i += 2
                    continue
                chars.append(source[i])
                i += 1
            if i >= n:
                raise ExpressionError(f"Unterminated string at position {start}", source)
            i += 1  # closing quote
            tokens.append(Token(TokenType.STRING, "".join(chars), start))
            continue

        if _is_ident_start(ch):
            start = i
            while i < n and _is_ident_part(source[i]):
                i += 1
            tokens.append(Token(TokenType.IDENT, source[start:i], start))
            continue

        for op in OPERATORS:
            if source.startswith(op, i):
                tokens.append(Token(TokenType.OP, op, i))
                i += len(op)
                break
        else:
            raise ExpressionError(f"Unexpected character {ch!r} at position {i}", source)

    tokens.append(Token(TokenType.EOF, "", n))
    return tokens
