"""
Schema Node Model
Declarative UI documents and their parser
"""

from .node import (
    SchemaNode,
    ChildContent,
    Empty,
    Leaf,
    Nodes,
    EMPTY,
    CONDITIONAL_ATTRIBUTES,
)
from .parser import SchemaParser, parse_schema

__all__ = [
    "SchemaNode",
    "ChildContent",
    "Empty",
    "Leaf",
    "Nodes",
    "EMPTY",
    "CONDITIONAL_ATTRIBUTES",
    "SchemaParser",
    "parse_schema",
]
