"""Locate and classify the statement responsible for an implicit conversion."""

from typing import Optional

import libcst as cst

from conversion_fixer.domain.protocols import SyntaxTreeProtocol
from conversion_fixer.domain.statements import (
    AssignmentStatement,
    ConvertibleStatement,
    LocalDeclarationStatement,
    ReturnStatement,
    YieldStatement,
)


def is_convertible_shape(node: cst.CSTNode) -> bool:
    """Whether ``node`` is one of the four recognized statement shapes."""
    if isinstance(node, (cst.Assign, cst.Return, cst.AnnAssign)):
        return True
    return isinstance(node, cst.Expr) and isinstance(node.value, cst.Yield)


def classify_statement(node: cst.CSTNode) -> Optional[ConvertibleStatement]:
    """
    Build the shape variant for a located statement.

    Returns None for nodes outside the recognized set and for shapes that
    cannot carry a conversion: bare ``return``, a declaration without an
    initializer, ``yield from`` and chained assignment ``a = b = value``.
    """
    if isinstance(node, cst.Assign):
        if len(node.targets) != 1:
            return None
        return AssignmentStatement(node=node, left=node.targets[0].target, right=node.value)
    if isinstance(node, cst.Return):
        if node.value is None:
            return None
        return ReturnStatement(node=node, expression=node.value)
    if isinstance(node, cst.Expr) and isinstance(node.value, cst.Yield):
        value = node.value.value
        if value is None or isinstance(value, cst.From):
            return None
        return YieldStatement(node=node, expression=value)
    if isinstance(node, cst.AnnAssign):
        if node.value is None:
            return None
        return LocalDeclarationStatement(
            node=node,
            target=node.target,
            annotation=node.annotation,
            initializer=node.value,
        )
    return None


class StatementLocator:
    """Walks parent links upward to the smallest enclosing convertible statement."""

    def __init__(self, tree: SyntaxTreeProtocol) -> None:
        self._tree = tree

    def locate(self, node: Optional[cst.CSTNode]) -> Optional[cst.CSTNode]:
        current = node
        while current is not None:
            if is_convertible_shape(current):
                return current
            current = self._tree.parent(current)
        return None

    def locate_at(self, offset: int) -> Optional[cst.CSTNode]:
        return self.locate(self._tree.find_node_at(offset))
