from typing import TYPE_CHECKING, Optional, Protocol, Sequence

if TYPE_CHECKING:
    import libcst as cst

    from conversion_fixer.domain.entities import (
        DiagnosticOccurrence,
        Document,
        SymbolInfo,
        TypeInfo,
        TypeRef,
    )


class SyntaxTreeProtocol(Protocol):
    """Parsed document with position and parent lookups."""

    @property
    def root(self) -> "cst.Module": ...

    @property
    def document(self) -> "Document": ...

    def find_node_at(self, offset: int) -> Optional["cst.CSTNode"]:
        """Deepest node whose range contains ``offset``."""
        ...

    def parent(self, node: "cst.CSTNode") -> Optional["cst.CSTNode"]: ...

    def span_of(self, node: "cst.CSTNode") -> Optional[tuple[int, int]]:
        """(start, end) character offsets of ``node`` in the document."""
        ...

    def names_in_scope(self, node: "cst.CSTNode") -> frozenset[str]:
        """Every identifier used in the function, class or module enclosing ``node``."""
        ...


class SyntaxTreeFactoryProtocol(Protocol):
    def parse(self, document: "Document") -> SyntaxTreeProtocol: ...


class SemanticModelProtocol(Protocol):
    """Read-only type and symbol queries over one document."""

    def type_of(self, expression: "cst.BaseExpression") -> "TypeInfo":
        """Analyzed type and context-expected (converted) type of an expression."""
        ...

    def symbol_of(self, expression: "cst.BaseExpression") -> Optional["SymbolInfo"]:
        """Symbol the expression resolves to, or None when unresolved."""
        ...


class SemanticModelFactoryProtocol(Protocol):
    def create(self, tree: SyntaxTreeProtocol) -> SemanticModelProtocol: ...


class StatementEmitterProtocol(Protocol):
    """Builds statements in the form of the statement being replaced."""

    @property
    def generator_context(self) -> bool: ...

    def emit(self, value: "cst.BaseExpression") -> list["cst.BaseStatement"]:
        """Wrap the converted value in the original statement's form."""
        ...

    def assign(
        self, target: "cst.BaseAssignTargetExpression", value: "cst.BaseExpression"
    ) -> "cst.SimpleStatementLine": ...

    def type_name(self, type_ref: "TypeRef") -> "cst.BaseExpression": ...

    def call(
        self,
        func: "cst.BaseExpression",
        args: Sequence["cst.BaseExpression"] = (),
        keywords: Optional[dict[str, "cst.BaseExpression"]] = None,
    ) -> "cst.Call": ...

    def member(self, value: "cst.BaseExpression", name: str) -> "cst.Attribute": ...

    def temporary(self, name: str) -> "cst.Name": ...


class StatementEmitterFactoryProtocol(Protocol):
    """One emitter per convertible statement shape."""

    def for_assignment(
        self, left: "cst.BaseAssignTargetExpression", taken_names: frozenset[str] = ...
    ) -> StatementEmitterProtocol: ...

    def for_return(self, taken_names: frozenset[str] = ...) -> StatementEmitterProtocol: ...
    def for_yield(self, taken_names: frozenset[str] = ...) -> StatementEmitterProtocol: ...

    def for_declaration(
        self,
        target: "cst.BaseAssignTargetExpression",
        annotation: "cst.Annotation",
        taken_names: frozenset[str] = ...,
    ) -> StatementEmitterProtocol: ...


class MappingEngineProtocol(Protocol):
    """Structural conversion code generator."""

    def map_types(
        self,
        source_type: "TypeRef",
        destination_type: "TypeRef",
        emitter: StatementEmitterProtocol,
        source_expression: "cst.BaseExpression",
        destination_expression: Optional["cst.BaseExpression"] = None,
        target_exists: bool = False,
        generator_context: bool = False,
    ) -> list["cst.CSTNode"]:
        """Ordered replacement statements; empty means no conversion is possible."""
        ...


class RewriterGatewayProtocol(Protocol):
    """Replaces one statement node with a sequence of statements."""

    def replace(
        self,
        tree: SyntaxTreeProtocol,
        original_statement: "cst.CSTNode",
        replacement: Sequence["cst.CSTNode"],
    ) -> "Document": ...


class DiagnosticSourceProtocol(Protocol):
    """Produces incompatible-conversion diagnostics for a path."""

    def gather_diagnostics(self, target_path: str) -> list["DiagnosticOccurrence"]: ...


class FileSystemProtocol(Protocol):
    def read_document(self, path: str) -> "Document": ...
    def write_document(self, document: "Document") -> None: ...


class TelemetryPort(Protocol):
    """Protocol for user-facing progress output."""

    def step(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
