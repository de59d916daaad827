"""Shared grammar patterns for Ladle.

Lax-mode parsing matches markup against these fragment-level patterns
instead of tokenizing it. Every compound pattern is wrapped in a
non-capturing group so it can be embedded and quantified safely.
"""

from __future__ import annotations

import re

FILTER_SEPARATOR = r"\|"
ARGUMENT_SEPARATOR = ","
FILTER_ARGUMENT_SEPARATOR = ":"
VARIABLE_ATTRIBUTE_SEPARATOR = "."
WHITESPACE_CONTROL = "-"

TAG_START = r"\{%"
TAG_END = r"%\}"
VARIABLE_START = r"\{\{"
VARIABLE_END = r"\}\}"

QUOTED_STRING = r"""(?:"[^"]*"|'[^']*')"""
QUOTED_FRAGMENT = rf"""(?:{QUOTED_STRING}|(?:[^\s,|'"]|{QUOTED_STRING})+)"""
VARIABLE_SEGMENT = r"[\w\-]"
VARIABLE_SIGNATURE = r"(?:\(?[\w\-\.\[\]]\)?)"

# key: value pairs inside tag markup (for/tablerow attributes)
TAG_ATTRIBUTES = re.compile(rf"(\w[\w-]*)\s*:\s*({QUOTED_FRAGMENT})")

# Splits a variable path into its root and lookup steps
VARIABLE_PARSER = re.compile(r"\[(?:[^\]\[]|\[[^\]]*\])*\]|[\w\-]+\??")

# Tag name and markup of a full ``{% ... %}`` segment
FULL_TOKEN = re.compile(r"\A\{%-?\s*(\w+)\s*(.*?)-?%\}\Z", re.DOTALL)

# Inner markup of a full ``{{ ... }}`` segment
CONTENT_OF_VARIABLE = re.compile(r"\A\{\{-?(.*?)-?\}\}\Z", re.DOTALL)

# Condition fragments for lax ``if``/``unless``: "a op b" groups and and/or words
EXPRESSIONS_AND_OPERATORS = re.compile(
    rf"(?:\b(?:\s?and\s?|\s?or\s?)\b|(?:\s*(?!\b(?:\s?and\s?|\s?or\s?)\b)(?:{QUOTED_FRAGMENT}|\S+)\s*)+)"
)
CONDITION_SYNTAX = re.compile(
    rf"({QUOTED_FRAGMENT})\s*([=!<>a-z_]+)?\s*({QUOTED_FRAGMENT})?"
)

WHITESPACE_OR_NOTHING = re.compile(r"\A\s*\Z")
