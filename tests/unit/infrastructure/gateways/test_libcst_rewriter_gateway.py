"""Unit tests for LibCSTRewriterGateway."""

import libcst as cst
import pytest

from conversion_fixer.infrastructure.gateways.cst_statements import StatementLocator
from conversion_fixer.infrastructure.gateways.libcst_rewriter_gateway import (
    LibCSTRewriterGateway,
    statement_elements,
)


def _locate(tree, source: str, needle: str) -> cst.CSTNode:
    statement = StatementLocator(tree).locate_at(source.index(needle))
    assert statement is not None
    return statement


def _lines(*codes: str) -> list[cst.CSTNode]:
    return [cst.parse_statement(code + "\n") for code in codes]


class TestStatementElements:
    """Test filtering of replacement sequences."""

    def test_keeps_statements_and_wraps_small_statements(self) -> None:
        if_stmt = cst.parse_statement("if a:\n    pass\n")
        result = statement_elements([cst.Return(value=cst.Name("w")), cst.Name("x"), if_stmt])
        assert len(result) == 2
        assert isinstance(result[0], cst.SimpleStatementLine)
        assert isinstance(result[0].body[0], cst.Return)
        assert result[1] is if_stmt

    def test_empty_sequence(self) -> None:
        assert statement_elements([]) == []


class TestLibCSTRewriterGatewayBlock:
    """Statements whose parent is block-shaped are spliced in place."""

    def test_splices_multiple_statements_keeping_siblings(self, make_tree) -> None:
        source = "def f(x):\n    a = 1\n    y = x\n    b = 2\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "y = x")

        result = LibCSTRewriterGateway().replace(
            tree, statement, _lines("tmp = x", "y = int(tmp)")
        )

        assert result.source == (
            "def f(x):\n    a = 1\n    tmp = x\n    y = int(tmp)\n    b = 2\n"
        )
        assert result.path == tree.document.path

    def test_replaced_statement_is_gone(self, make_tree) -> None:
        source = "y = x\nz = y\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "y = x")

        result = LibCSTRewriterGateway().replace(tree, statement, _lines("y = int(x)"))

        assert result.source == "y = int(x)\nz = y\n"
        assert "y = x\n" not in result.source

    def test_input_document_is_not_mutated(self, make_tree) -> None:
        source = "y = x\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "y = x")

        LibCSTRewriterGateway().replace(tree, statement, _lines("y = int(x)"))

        assert tree.document.source == source
        assert tree.root.code == source

    def test_leading_comment_and_trailing_comment_are_kept(self, make_tree) -> None:
        source = "def f(x):\n    # convert\n    y = x  # note\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "y = x")

        result = LibCSTRewriterGateway().replace(
            tree, statement, _lines("tmp = x", "y = int(tmp)")
        )

        assert result.source == (
            "def f(x):\n    # convert\n    tmp = x\n    y = int(tmp)  # note\n"
        )

    def test_semicolon_siblings_stay_on_their_own_lines(self, make_tree) -> None:
        source = "a = 1; y = x; b = 2\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "y = x")

        result = LibCSTRewriterGateway().replace(tree, statement, _lines("y = int(x)"))

        assert result.source == "a = 1\ny = int(x)\nb = 2\n"

    def test_empty_replacement_leaves_pass(self, make_tree) -> None:
        source = "def f(x):\n    y = x\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "y = x")

        result = LibCSTRewriterGateway().replace(tree, statement, [])

        assert result.source == "def f(x):\n    pass\n"

    def test_is_block_child(self, make_tree) -> None:
        source = "y = x\nif c: return v\n"
        tree = make_tree(source)
        gateway = LibCSTRewriterGateway()
        assert gateway.is_block_child(tree, _locate(tree, source, "y = x")) is True
        assert gateway.is_block_child(tree, _locate(tree, source, "return v")) is False


class TestLibCSTRewriterGatewaySuite:
    """A statement in a one-line suite is replaced by a new indented block."""

    def test_suite_becomes_indented_block(self, make_tree) -> None:
        source = "def f(c, v):\n    if c: return v\n    return 0\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "return v")

        result = LibCSTRewriterGateway().replace(
            tree, statement, [*_lines("tmp = v"), cst.Return(value=cst.parse_expression("int(tmp)"))]
        )

        assert result.source == (
            "def f(c, v):\n    if c:\n        tmp = v\n        return int(tmp)\n    return 0\n"
        )

    def test_new_block_holds_exactly_the_replacement_in_order(self, make_tree) -> None:
        source = "if ready: return value\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "return value")

        result = LibCSTRewriterGateway().replace(
            tree, statement, _lines("first = value", "return Dest(first)")
        )

        module = cst.parse_module(result.source)
        if_node = module.body[0]
        assert isinstance(if_node, cst.If)
        assert isinstance(if_node.test, cst.Name) and if_node.test.value == "ready"
        assert isinstance(if_node.body, cst.IndentedBlock)
        assert [module.code_for_node(s).strip() for s in if_node.body.body] == [
            "first = value",
            "return Dest(first)",
        ]

    def test_suite_siblings_move_into_block(self, make_tree) -> None:
        source = "if c: a = 1; return v\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "return v")

        result = LibCSTRewriterGateway().replace(tree, statement, _lines("return int(v)"))

        assert result.source == "if c:\n    a = 1\n    return int(v)\n"

    def test_empty_replacement_in_suite_leaves_pass(self, make_tree) -> None:
        source = "if c: return v\n"
        tree = make_tree(source)
        statement = _locate(tree, source, "return v")

        result = LibCSTRewriterGateway().replace(tree, statement, [])

        assert result.source == "if c:\n    pass\n"

    def test_unsupported_container_raises(self, make_tree) -> None:
        tree = make_tree("x = 1\n")
        with pytest.raises(ValueError, match="Unsupported statement container"):
            LibCSTRewriterGateway().replace(tree, tree.root, _lines("x = 2"))
