"""
Closed set of statement shapes that can carry an invalid implicit conversion.

Each variant keeps the libcst node that will be replaced plus the
shape-specific sub-expressions the type extractor needs. Consumers branch
with ``isinstance`` over ``ConvertibleStatement`` and close the chain with
``assert_never`` so a new variant fails type checking until handled.
"""

from dataclasses import dataclass
from typing import Union

import libcst as cst


@dataclass(frozen=True)
class AssignmentStatement:
    """``left = right`` with a single target."""
    node: cst.Assign
    left: cst.BaseAssignTargetExpression
    right: cst.BaseExpression


@dataclass(frozen=True)
class ReturnStatement:
    """``return expression``."""
    node: cst.Return
    expression: cst.BaseExpression


@dataclass(frozen=True)
class YieldStatement:
    """Expression statement ``yield expression`` inside a generator."""
    node: cst.Expr
    expression: cst.BaseExpression


@dataclass(frozen=True)
class LocalDeclarationStatement:
    """``target: annotation = initializer``."""
    node: cst.AnnAssign
    target: cst.BaseAssignTargetExpression
    annotation: cst.Annotation
    initializer: cst.BaseExpression


ConvertibleStatement = Union[
    AssignmentStatement,
    ReturnStatement,
    YieldStatement,
    LocalDeclarationStatement,
]
