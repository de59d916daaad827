"""Static analysis over parsed Ladle templates."""

from ladle.analysis.visitor import ParseTreeVisitor, child_nodes, referenced_variables, walk

__all__ = ["ParseTreeVisitor", "child_nodes", "referenced_variables", "walk"]
