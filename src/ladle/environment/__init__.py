"""Ladle environment: configuration, registries, filters and errors.

Exceptions are imported first; every other module depends on them.

"""

from ladle.environment.exceptions import (
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
from ladle.environment.core import Environment
from ladle.environment.filters import DEFAULT_FILTERS
from ladle.environment.registry import FilterRegistry, TagRegistry, default_tags

__all__ = [
    "DEFAULT_FILTERS",
    "Environment",
    "ErrorCode",
    "FilterRegistry",
    "InternalError",
    "SourceSnippet",
    "StackLevelError",
    "TagRegistry",
    "TemplateArgumentError",
    "TemplateError",
    "TemplateMemoryError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "UndefinedDropMethodError",
    "UndefinedError",
    "UndefinedFilterError",
    "build_source_snippet",
    "default_tags",
]
