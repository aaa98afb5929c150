"""LibCST syntax tree with position and parent lookups."""

from typing import Optional

import libcst as cst
from libcst.metadata import CodeRange, MetadataWrapper, ParentNodeProvider, PositionProvider

from conversion_fixer.domain.entities import Document
from conversion_fixer.domain.protocols import SyntaxTreeFactoryProtocol, SyntaxTreeProtocol

_SCOPE_NODES = (cst.FunctionDef, cst.ClassDef, cst.Module)


class _NameCollector(cst.CSTVisitor):
    def __init__(self) -> None:
        self.names: set[str] = set()

    def visit_Name(self, node: cst.Name) -> None:
        self.names.add(node.value)


class CstSyntaxTree(SyntaxTreeProtocol):
    """
    A parsed document.

    ``root`` is the module owned by the metadata wrapper: node identity in
    position and parent lookups refers to nodes reachable from it, so callers
    must locate and replace nodes through this tree, not a fresh parse.
    """

    def __init__(self, document: Document) -> None:
        self._document = document
        self._wrapper = MetadataWrapper(cst.parse_module(document.source))
        self._positions = self._wrapper.resolve(PositionProvider)
        self._parents = self._wrapper.resolve(ParentNodeProvider)

    @property
    def root(self) -> cst.Module:
        return self._wrapper.module

    @property
    def document(self) -> Document:
        return self._document

    def code_range(self, node: cst.CSTNode) -> Optional[CodeRange]:
        return self._positions.get(node)

    def parent(self, node: cst.CSTNode) -> Optional[cst.CSTNode]:
        return self._parents.get(node)

    def span_of(self, node: cst.CSTNode) -> Optional[tuple[int, int]]:
        code_range = self.code_range(node)
        if code_range is None:
            return None
        start, end = code_range.start, code_range.end
        return (
            self._document.offset_of(start.line, start.column + 1),
            self._document.offset_of(end.line, end.column + 1),
        )

    def names_in_scope(self, node: cst.CSTNode) -> frozenset[str]:
        scope: cst.CSTNode = node
        while not isinstance(scope, _SCOPE_NODES):
            parent = self.parent(scope)
            if parent is None:
                break
            scope = parent
        collector = _NameCollector()
        scope.visit(collector)
        return frozenset(collector.names)

    def depth(self, node: cst.CSTNode) -> int:
        depth = 0
        current = self.parent(node)
        while current is not None:
            depth += 1
            current = self.parent(current)
        return depth

    def find_node_at(self, offset: int) -> Optional[cst.CSTNode]:
        """Deepest node whose range contains ``offset`` (start inclusive, end exclusive)."""
        if offset < 0 or offset > len(self._document.source):
            return None
        point = self._document.position_of(offset)
        best: Optional[cst.CSTNode] = None
        best_depth = -1
        for node, code_range in self._positions.items():
            if isinstance(node, cst.Module):
                continue
            start = (code_range.start.line, code_range.start.column)
            end = (code_range.end.line, code_range.end.column)
            if not start <= point < end:
                continue
            depth = self.depth(node)
            if depth > best_depth:
                best, best_depth = node, depth
        return best


class CstSyntaxTreeFactory(SyntaxTreeFactoryProtocol):
    """Parses documents with libcst."""

    def parse(self, document: Document) -> CstSyntaxTree:
        return CstSyntaxTree(document)
