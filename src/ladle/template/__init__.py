"""Ladle Template package: parsed templates, drops and runtime helpers.

Re-exports the public symbols so that ``from ladle.template import Template``
works without knowing the module layout.

"""

from ladle.template.core import Template
from ladle.template.drop import Drop
from ladle.template.loop_context import ForloopDrop, TablerowloopDrop

__all__ = [
    "Drop",
    "ForloopDrop",
    "TablerowloopDrop",
    "Template",
]
