"""LibCST based statement rewriter."""

import logging
from typing import Sequence, Union

import libcst as cst

from conversion_fixer.domain.entities import Document
from conversion_fixer.domain.protocols import RewriterGatewayProtocol, SyntaxTreeProtocol

logger = logging.getLogger(__name__)


def statement_elements(replacement: Sequence[cst.CSTNode]) -> list[cst.BaseStatement]:
    """
    Keep the statement-typed elements of a replacement sequence, in order.

    Small statements (``x = 1``, ``return x``) are wrapped in their own line;
    bare expressions and any other node kinds are dropped.
    """
    statements: list[cst.BaseStatement] = []
    for node in replacement:
        if isinstance(node, cst.BaseStatement):
            statements.append(node)
        elif isinstance(node, cst.BaseSmallStatement):
            statements.append(cst.SimpleStatementLine(body=[_without_semicolon(node)]))
        else:
            logger.debug("Dropping non-statement replacement node %s", type(node).__name__)
    return statements


def _without_semicolon(node: cst.BaseSmallStatement) -> cst.BaseSmallStatement:
    return node.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)


def _line_of(small_statements: Sequence[cst.BaseSmallStatement]) -> cst.SimpleStatementLine:
    body = list(small_statements)
    body[-1] = _without_semicolon(body[-1])
    return cst.SimpleStatementLine(body=body)


def _pass_line() -> cst.SimpleStatementLine:
    return cst.SimpleStatementLine(body=[cst.Pass()])


def _index_of(target: cst.CSTNode, body: Sequence[cst.CSTNode]) -> int:
    for i, node in enumerate(body):
        if node is target:
            return i
    return -1


def _expand(
    target: cst.CSTNode,
    original_body: Sequence[cst.BaseSmallStatement],
    updated_body: Sequence[cst.BaseSmallStatement],
    statements: list[cst.BaseStatement],
) -> list[cst.BaseStatement]:
    """Lines for siblings before the target, the replacement, then siblings after it."""
    idx = _index_of(target, original_body)
    before = updated_body[:idx]
    after = updated_body[idx + 1:]
    lines: list[cst.BaseStatement] = []
    if before:
        lines.append(_line_of(before))
    lines.extend(statements)
    if after:
        lines.append(_line_of(after))
    return lines


class _SpliceIntoBlock(cst.CSTTransformer):
    """Replace a statement that already lives in a block with its replacement lines."""

    def __init__(self, target: cst.CSTNode, statements: list[cst.BaseStatement]) -> None:
        self.target = target
        self.statements = statements

    def leave_SimpleStatementLine(
        self, original_node: cst.SimpleStatementLine, updated_node: cst.SimpleStatementLine
    ) -> Union[cst.BaseStatement, cst.FlattenSentinel, cst.RemovalSentinel]:
        if _index_of(self.target, original_node.body) < 0:
            return updated_node
        lines = _expand(self.target, original_node.body, updated_node.body, self.statements)
        if not lines:
            return cst.RemovalSentinel.REMOVE
        lines[0] = lines[0].with_changes(leading_lines=updated_node.leading_lines)
        last = lines[-1]
        if isinstance(last, cst.SimpleStatementLine) and last.trailing_whitespace.comment is None:
            lines[-1] = last.with_changes(trailing_whitespace=updated_node.trailing_whitespace)
        return cst.FlattenSentinel(lines)

    def leave_IndentedBlock(
        self, original_node: cst.IndentedBlock, updated_node: cst.IndentedBlock
    ) -> cst.IndentedBlock:
        # a block emptied by an empty replacement must still parse
        if not updated_node.body:
            return updated_node.with_changes(body=[_pass_line()])
        return updated_node


class _WrapInNewBlock(cst.CSTTransformer):
    """Replace the single-line body of a control construct with a new indented block."""

    def __init__(self, target: cst.CSTNode, statements: list[cst.BaseStatement]) -> None:
        self.target = target
        self.statements = statements

    def leave_SimpleStatementSuite(
        self, original_node: cst.SimpleStatementSuite, updated_node: cst.SimpleStatementSuite
    ) -> cst.BaseSuite:
        if _index_of(self.target, original_node.body) < 0:
            return updated_node
        lines = _expand(self.target, original_node.body, updated_node.body, self.statements)
        return cst.IndentedBlock(
            body=lines or [_pass_line()],
            header=updated_node.trailing_whitespace,
        )


class LibCSTRewriterGateway(RewriterGatewayProtocol):
    """Gateway for replacing one statement with a sequence of statements using LibCST."""

    @staticmethod
    def is_block_child(tree: SyntaxTreeProtocol, statement: cst.CSTNode) -> bool:
        """
        Whether the statement sits in a block-shaped container.

        Small statements live either on a line of an indented block or module
        (block-shaped) or in the one-line suite after a colon (not a block).
        """
        return isinstance(tree.parent(statement), cst.SimpleStatementLine)

    def replace(
        self,
        tree: SyntaxTreeProtocol,
        original_statement: cst.CSTNode,
        replacement: Sequence[cst.CSTNode],
    ) -> Document:
        """
        Return a new document with ``original_statement`` replaced.

        The input tree and document are left untouched.
        """
        statements = statement_elements(replacement)
        container = tree.parent(original_statement)
        transformer: cst.CSTTransformer
        if self.is_block_child(tree, original_statement):
            transformer = _SpliceIntoBlock(original_statement, statements)
        elif isinstance(container, cst.SimpleStatementSuite):
            transformer = _WrapInNewBlock(original_statement, statements)
        else:
            raise ValueError(
                f"Unsupported statement container: {type(container).__name__}"
            )
        new_root = tree.root.visit(transformer)
        return tree.document.with_syntax_root(new_root)
