"""End-to-end fixes through libcst, astroid and the constructor mapping engine."""

from unittest.mock import MagicMock

import pytest

from conversion_fixer.domain.cancellation import CancellationToken
from conversion_fixer.domain.entities import DiagnosticOccurrence, Document, FixStatus
from conversion_fixer.infrastructure.gateways.astroid_gateway import AstroidSemanticModelFactory
from conversion_fixer.infrastructure.gateways.cst_syntax_tree import CstSyntaxTreeFactory
from conversion_fixer.infrastructure.gateways.emitters import StatementEmitterFactory
from conversion_fixer.infrastructure.gateways.libcst_rewriter_gateway import LibCSTRewriterGateway
from conversion_fixer.infrastructure.services.constructor_mapping_engine import (
    ConstructorMappingEngine,
)
from conversion_fixer.use_cases.apply_fixes import ApplyFixesUseCase
from conversion_fixer.use_cases.generate_explicit_conversion import (
    GenerateExplicitConversionUseCase,
)
from conversion_fixer.use_cases.register_code_fixes import RegisterCodeFixesUseCase


@pytest.fixture
def register_use_case() -> RegisterCodeFixesUseCase:
    generate = GenerateExplicitConversionUseCase(
        semantic_model_factory=AstroidSemanticModelFactory(),
        mapping_engine=ConstructorMappingEngine(),
        rewriter=LibCSTRewriterGateway(),
        emitters=StatementEmitterFactory(),
    )
    return RegisterCodeFixesUseCase(tree_factory=CstSyntaxTreeFactory(), generate_use_case=generate)


def _fix_at(register_use_case: RegisterCodeFixesUseCase, source: str, needle: str) -> str:
    document = Document("module.py", source)
    diagnostic = DiagnosticOccurrence(
        id="incompatible-types", path="module.py", span_start=source.rindex(needle)
    )
    [fix] = register_use_case.execute(document, diagnostic)
    changed = fix.create_changed_document(CancellationToken.none())
    assert changed is not None
    return changed.source


class TestConversionPipeline:
    """Each statement shape fixed against real type information."""

    def test_return_in_single_line_suite(self, register_use_case) -> None:
        source = "def f(v: str) -> int:\n    if v: return v\n    return 0\n"
        assert _fix_at(register_use_case, source, "v\n") == (
            "def f(v: str) -> int:\n    if v:\n        return int(v)\n    return 0\n"
        )

    def test_declaration(self, register_use_case) -> None:
        source = "def load() -> str:\n    return '1'\n\nx: int = load()\n"
        assert _fix_at(register_use_case, source, "load()") == (
            "def load() -> str:\n    return '1'\n\nx: int = int(load())\n"
        )

    def test_yield(self, register_use_case) -> None:
        source = (
            "from typing import Iterator\n"
            "\n"
            "def gen(value: str) -> Iterator[int]:\n"
            "    yield value\n"
        )
        assert _fix_at(register_use_case, source, "value") == (
            "from typing import Iterator\n"
            "\n"
            "def gen(value: str) -> Iterator[int]:\n"
            "    yield int(value)\n"
        )

    def test_assignment_with_shared_fields(self, register_use_case) -> None:
        source = (
            "class Person:\n"
            "    name: str\n"
            "    email: str\n"
            "\n"
            "class User:\n"
            "    name: str\n"
            "\n"
            "def convert(p: Person) -> None:\n"
            "    u: User = User()\n"
            "    u = p\n"
        )
        assert _fix_at(register_use_case, source, "u = p").endswith("    u.name = p.name\n")

    def test_temporary_does_not_reuse_a_parameter_name(self, register_use_case) -> None:
        source = (
            "class Person:\n"
            "    name: str\n"
            "    age: int\n"
            "    email: str\n"
            "\n"
            "class User:\n"
            "    name: str\n"
            "    age: int\n"
            "\n"
            "def make(p: Person) -> Person:\n"
            "    return p\n"
            "\n"
            "def f(source: Person) -> User:\n"
            "    r: User = make(source)\n"
            "    return r\n"
        )
        fixed = _fix_at(register_use_case, source, "make(source)")

        assert "    source_1 = make(source)\n" in fixed
        assert "    r: User = User(name=source_1.name, age=source_1.age)\n" in fixed
        assert "    source = " not in fixed

    def test_fix_all_in_one_document(self, register_use_case) -> None:
        source = (
            "def f(a: str, b: str) -> int:\n"
            "    x: int = a\n"
            "    y: int = b\n"
            "    return x + y\n"
        )
        document = Document("module.py", source)
        diagnostics = [
            DiagnosticOccurrence(id="incompatible-types", path="module.py", span_start=source.index("a\n")),
            DiagnosticOccurrence(id="incompatible-types", path="module.py", span_start=source.index("b\n")),
        ]
        use_case = ApplyFixesUseCase(
            diagnostic_source=MagicMock(),
            filesystem=MagicMock(),
            register_use_case=register_use_case,
            telemetry=MagicMock(),
        )

        result = use_case.fix_document(document, diagnostics, CancellationToken.none())

        assert [o.status for o in result.outcomes] == [FixStatus.APPLIED, FixStatus.APPLIED]
        assert result.fixed.source == (
            "def f(a: str, b: str) -> int:\n"
            "    x: int = int(a)\n"
            "    y: int = int(b)\n"
            "    return x + y\n"
        )

    def test_fix_all_in_one_line_body(self, register_use_case) -> None:
        source = (
            "def f(c: bool, s: str, t: str) -> None:\n"
            "    x: int = 0\n"
            "    y: int = 0\n"
            "    if c: x = s; y = t\n"
        )
        document = Document("module.py", source)
        diagnostics = [
            DiagnosticOccurrence(id="incompatible-types", path="module.py", span_start=source.index("s;")),
            DiagnosticOccurrence(id="incompatible-types", path="module.py", span_start=source.rindex("t\n")),
        ]
        use_case = ApplyFixesUseCase(
            diagnostic_source=MagicMock(),
            filesystem=MagicMock(),
            register_use_case=register_use_case,
            telemetry=MagicMock(),
        )

        result = use_case.fix_document(document, diagnostics, CancellationToken.none())

        assert [o.status for o in result.outcomes] == [FixStatus.APPLIED, FixStatus.APPLIED]
        assert [o.diagnostic.span_start for o in result.outcomes] == [d.span_start for d in diagnostics]
        assert result.fixed.source.endswith(
            "    if c:\n        x = int(s)\n        y = int(t)\n"
        )
