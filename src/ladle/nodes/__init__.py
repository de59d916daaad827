"""Ladle node tree: expressions, output, block structure and tags.

A parsed template is a Document (a BlockBody) whose ``nodelist`` holds
literal text, Output nodes and Tag instances. Nodes are not mutated after
parsing.
"""

from ladle.nodes.base import Tag, parse_with_selected_parser
from ladle.nodes.block import Block, BlockBody, Document
from ladle.nodes.condition import Condition, ElseCondition
from ladle.nodes.control_flow import (
    Break,
    Case,
    Continue,
    For,
    If,
    Ifchanged,
    TableRow,
    Unless,
)
from ladle.nodes.expressions import (
    BLANK,
    EMPTY,
    MethodLiteral,
    RangeLookup,
    VariableLookup,
    parse_expression,
)
from ladle.nodes.output import FilterCall, Output
from ladle.nodes.structure import Comment, Raw
from ladle.nodes.variables import Assign, Capture, Cycle

__all__ = [
    "BLANK",
    "EMPTY",
    "Assign",
    "Block",
    "BlockBody",
    "Break",
    "Capture",
    "Case",
    "Comment",
    "Condition",
    "Continue",
    "Cycle",
    "Document",
    "ElseCondition",
    "FilterCall",
    "For",
    "If",
    "Ifchanged",
    "MethodLiteral",
    "Output",
    "RangeLookup",
    "Raw",
    "TableRow",
    "Tag",
    "Unless",
    "VariableLookup",
    "parse_expression",
    "parse_with_selected_parser",
]
