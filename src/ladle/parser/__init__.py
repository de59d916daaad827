"""Parse-time support: parse context, error modes and the strict markup parser.

The recursive block parser itself lives on the nodes (``BlockBody.parse``,
``Block.parse_body``, ``Document.from_tokens``) because each tag drives the
parse of its own body.
"""

from ladle.parser.context import DEFAULT_MAX_DEPTH, ErrorMode, ParseContext
from ladle.parser.markup import MarkupParser

__all__ = ["DEFAULT_MAX_DEPTH", "ErrorMode", "MarkupParser", "ParseContext"]
