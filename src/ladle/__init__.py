"""Ladle: a sandboxed Liquid-style template engine.

Templates are parsed once into an immutable node tree and rendered many
times against plain Python data. Template source can never call arbitrary
host code: it reaches host objects only through mappings, sequences and
Drops, and every render is bounded by resource limits.

Quickstart:
    >>> from ladle import Environment
    >>> env = Environment()
    >>> template = env.from_string("Hello, {{ name }}!")
    >>> template.render(name="World")
    'Hello, World!'

Architecture:
Template Source → Tokenizer → BlockBody parser → node tree → render

Pipeline stages:
1. **Tokenizer**: Splits source into text, ``{% tag %}`` and ``{{ output }}``
2. **Parser**: Tags parse their own markup and nested bodies recursively
3. **Template**: Wraps the Document with the ``render()`` interface
4. **Render**: Walks the tree with a fresh RenderContext per call

Error Modes:
``lax`` (default) tolerates junk in tag markup, ``strict`` raises
TemplateSyntaxError, ``warn`` parses strictly but falls back to lax and
records the failure in ``Template.warnings``.

Errors during rendering are rendered inline (``Ladle error (line N): ...``) and kept
in ``Template.errors``; ``render_strict()`` raises them instead:

    >>> env.from_string("{{ 1 | divided_by: 0 }}").render()
    'Ladle error (line 1): divided by 0'

"""

from ladle._types import LexToken, LexTokenType, Token, TokenType
from ladle.environment import (
    Environment,
    ErrorCode,
    InternalError,
    SourceSnippet,
    StackLevelError,
    TemplateArgumentError,
    TemplateError,
    TemplateMemoryError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    UndefinedDropMethodError,
    UndefinedError,
    UndefinedFilterError,
    build_source_snippet,
)
from ladle.lexer import Lexer, Tokenizer, tokenize
from ladle.parser import ErrorMode, ParseContext
from ladle.render_context import (
    Interrupt,
    RenderContext,
    ResourceLimits,
    get_render_context,
    get_render_context_required,
    render_context,
)
from ladle.template import Drop, ForloopDrop, TablerowloopDrop, Template

__version__ = "0.1.0"

__all__ = [
    "Drop",
    "Environment",
    "ErrorCode",
    "ErrorMode",
    "ForloopDrop",
    "Interrupt",
    "InternalError",
    "LexToken",
    "LexTokenType",
    "Lexer",
    "ParseContext",
    "RenderContext",
    "ResourceLimits",
    "SourceSnippet",
    "StackLevelError",
    "TablerowloopDrop",
    "Template",
    "TemplateArgumentError",
    "TemplateError",
    "TemplateMemoryError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "Token",
    "TokenType",
    "Tokenizer",
    "UndefinedDropMethodError",
    "UndefinedError",
    "UndefinedFilterError",
    "__version__",
    "build_source_snippet",
    "get_render_context",
    "get_render_context_required",
    "render_context",
    "tokenize",
]
