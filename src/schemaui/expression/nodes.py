"""Expression AST nodes."""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Name:
    name: str


@dataclass(frozen=True)
class Member:
    obj: "Node"
    prop: "Node"  # Literal for dotted access, any node for obj[expr]


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Logical:
    op: str  # "&&" or "||"
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Conditional:
    test: "Node"
    then: "Node"
    otherwise: "Node"


@dataclass(frozen=True)
class Call:
    callee: "Node"  # Name (formula function) or Member (whitelisted method)
    args: tuple["Node", ...]


Node = Union[Literal, Name, Member, Unary, Binary, Logical, Conditional, Call]
