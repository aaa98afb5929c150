"""Unit tests for the astroid backed semantic model."""

import libcst as cst
import pytest

from conversion_fixer.domain.entities import SymbolKind
from conversion_fixer.domain.exceptions import SemanticLookupError
from conversion_fixer.infrastructure.gateways.astroid_gateway import AstroidSemanticModelFactory
from conversion_fixer.infrastructure.gateways.cst_statements import (
    StatementLocator,
    classify_statement,
)


def _statement(tree, source: str, needle: str):
    node = StatementLocator(tree).locate_at(source.rindex(needle))
    statement = classify_statement(node)
    assert statement is not None
    return statement


class TestTypeOf:
    """Analyzed and context-expected types per statement shape."""

    def test_return_uses_function_annotation(self, make_tree) -> None:
        source = "def f(v: str) -> int:\n    return v\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "v")
        info = AstroidSemanticModelFactory().create(tree).type_of(statement.expression)
        assert info.type is not None and info.type.qname == "builtins.str"
        assert info.converted_type is not None and info.converted_type.qname == "builtins.int"

    def test_return_optional_annotation_unwraps(self, make_tree) -> None:
        source = "def f(v: str) -> int | None:\n    return v\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "v")
        info = AstroidSemanticModelFactory().create(tree).type_of(statement.expression)
        assert info.converted_type is not None and info.converted_type.qname == "builtins.int"

    def test_yield_uses_iterator_element_type(self, make_tree) -> None:
        source = (
            "from typing import Iterator\n"
            "\n"
            "def gen(value: str) -> Iterator[int]:\n"
            "    yield value\n"
        )
        tree = make_tree(source)
        statement = _statement(tree, source, "value")
        info = AstroidSemanticModelFactory().create(tree).type_of(statement.expression)
        assert info.type is not None and info.type.qname == "builtins.str"
        assert info.converted_type is not None and info.converted_type.qname == "builtins.int"

    def test_declaration_uses_annotation(self, make_tree) -> None:
        source = "def f(some_long_value: str):\n    x: int = some_long_value\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "some_long_value")
        info = AstroidSemanticModelFactory().create(tree).type_of(statement.initializer)
        assert info.type is not None and info.type.qname == "builtins.str"
        assert info.converted_type is not None and info.converted_type.qname == "builtins.int"

    def test_assignment_left_side_has_declared_type(self, make_tree) -> None:
        source = "def f(v: str):\n    x: int = 0\n    x = v\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "x = v")
        model = AstroidSemanticModelFactory().create(tree)
        left = model.type_of(statement.left)
        right = model.type_of(statement.right)
        assert left.type is not None and left.type.qname == "builtins.int"
        assert right.type is not None and right.type.qname == "builtins.str"
        assert right.converted_type is not None and right.converted_type.qname == "builtins.int"

    def test_call_uses_return_annotation_and_class_fields(self, make_tree) -> None:
        source = (
            "class User:\n"
            "    name: str\n"
            "    age: int\n"
            "\n"
            "def make() -> User:\n"
            "    return User()\n"
            "\n"
            "u: int = make()\n"
        )
        tree = make_tree(source)
        statement = _statement(tree, source, "make()")
        info = AstroidSemanticModelFactory().create(tree).type_of(statement.initializer)
        assert info.type is not None
        assert info.type.short_name == "User"
        assert info.type.fields == ("name", "age")

    def test_constant_is_inferred(self, make_tree) -> None:
        source = "x: str = 5\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "5")
        info = AstroidSemanticModelFactory().create(tree).type_of(statement.initializer)
        assert info.type is not None and info.type.qname == "builtins.int"
        assert info.converted_type is not None and info.converted_type.qname == "builtins.str"

    def test_parenthesized_expression_is_matched(self, make_tree) -> None:
        source = "def f(v: str) -> int:\n    return (v)\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "(v)")
        info = AstroidSemanticModelFactory().create(tree).type_of(statement.expression)
        assert info.type is not None and info.type.qname == "builtins.str"

    def test_detached_node_raises(self, make_tree) -> None:
        tree = make_tree("x = 1\n")
        model = AstroidSemanticModelFactory().create(tree)
        with pytest.raises(SemanticLookupError):
            model.type_of(cst.Name("missing"))


class TestSymbolOf:
    """Symbol kinds used by the target-exists heuristic."""

    def test_module_variable(self, make_tree) -> None:
        source = "x = 1\nx = 2\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "x = 2")
        symbol = AstroidSemanticModelFactory().create(tree).symbol_of(statement.left)
        assert symbol is not None
        assert symbol.name == "x"
        assert symbol.kind == SymbolKind.VARIABLE

    def test_parameter(self, make_tree) -> None:
        source = "def f(a):\n    a = 1\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "a = 1")
        symbol = AstroidSemanticModelFactory().create(tree).symbol_of(statement.left)
        assert symbol is not None and symbol.kind == SymbolKind.PARAMETER

    def test_property_attribute(self, make_tree) -> None:
        source = (
            "class Box:\n"
            "    @property\n"
            "    def size(self) -> int:\n"
            "        return 1\n"
            "\n"
            "box = Box()\n"
            "box.size = 2\n"
        )
        tree = make_tree(source)
        statement = _statement(tree, source, "box.size = 2")
        symbol = AstroidSemanticModelFactory().create(tree).symbol_of(statement.left)
        assert symbol is not None and symbol.kind == SymbolKind.PROPERTY

    def test_field_attribute(self, make_tree) -> None:
        source = (
            "class Point:\n"
            "    x: int = 0\n"
            "\n"
            "p = Point()\n"
            "p.x = 3\n"
        )
        tree = make_tree(source)
        statement = _statement(tree, source, "p.x = 3")
        symbol = AstroidSemanticModelFactory().create(tree).symbol_of(statement.left)
        assert symbol is not None and symbol.kind == SymbolKind.FIELD

    def test_non_name_expression_has_no_symbol(self, make_tree) -> None:
        source = "x = f(1)\n"
        tree = make_tree(source)
        statement = _statement(tree, source, "f(1)")
        assert AstroidSemanticModelFactory().create(tree).symbol_of(statement.right) is None
