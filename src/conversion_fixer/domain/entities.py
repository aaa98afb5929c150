from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    import libcst as cst

    from conversion_fixer.domain.cancellation import CancellationToken
    from conversion_fixer.domain.protocols import StatementEmitterProtocol

_LAYOUT_CHARS: frozenset[str] = frozenset(" \t\r\n;")


class SymbolKind(Enum):
    """What a name or attribute resolves to."""
    VARIABLE = "variable"
    FIELD = "field"
    PROPERTY = "property"
    PARAMETER = "parameter"
    FUNCTION = "function"
    CLASS = "class"
    MODULE = "module"


class FixStatus(Enum):
    """Outcome of applying a fix for one diagnostic."""
    APPLIED = "applied"
    AVAILABLE = "available"
    NO_FIX = "no_fix"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DiagnosticOccurrence:
    """
    One reported invalid implicit conversion.

    ``span_start`` is a 0-based character offset into the document source;
    ``line`` and ``column`` are the 1-based coordinates it was computed from.
    """
    id: str
    path: str
    span_start: int
    line: int = 0
    column: int = 0
    message: str = ""
    source_code: str = ""

    @property
    def location(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Document:
    """Immutable snapshot of a source file."""
    path: str
    source: str

    def with_syntax_root(self, root: "cst.Module") -> "Document":
        """Return a new document whose text is the code of ``root``."""
        return self.with_source(root.code)

    def with_source(self, source: str) -> "Document":
        return Document(path=self.path, source=source)

    def map_offset(self, offset: int, changed: "Document") -> int:
        """
        Offset in ``changed`` of the character at ``offset`` in this document.

        Valid while the edits made before ``offset`` only touch layout
        (whitespace and ``;`` separators), which holds for every position
        ahead of a rewritten statement.
        """
        old, new = self.source, changed.source
        prefix = 0
        limit = min(len(old), len(new), offset)
        while prefix < limit and old[prefix] == new[prefix]:
            prefix += 1
        if prefix == offset:
            return offset

        remaining = sum(1 for ch in old[prefix:offset] if ch not in _LAYOUT_CHARS)
        position = prefix
        while position < len(new):
            if new[position] not in _LAYOUT_CHARS:
                if remaining == 0:
                    break
                remaining -= 1
            position += 1
        return position

    def offset_of(self, line: int, column: int) -> int:
        """Convert 1-based line/column to a 0-based character offset."""
        if line < 1:
            return 0
        # libcst and mypy only break lines on "\n"
        lines = self.source.split("\n")
        offset = sum(len(text) + 1 for text in lines[: line - 1])
        return offset + max(column - 1, 0)

    def position_of(self, offset: int) -> tuple[int, int]:
        """Convert a 0-based offset to (1-based line, 0-based column)."""
        before = self.source[:offset]
        line = before.count("\n") + 1
        column = offset - (before.rfind("\n") + 1)
        return line, column


@dataclass(frozen=True)
class TypeRef:
    """
    A resolved type.

    ``qname`` is the fully qualified name (``builtins.int``, ``app.models.User``),
    ``display`` is text that names the type in the document being edited,
    ``fields`` are attribute names the type is known to carry.
    """
    qname: str
    display: str
    fields: tuple[str, ...] = ()

    @property
    def short_name(self) -> str:
        return self.qname.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class TypeInfo:
    """Analyzed type of an expression and the type its context expects."""
    type: Optional[TypeRef]
    converted_type: Optional[TypeRef]


@dataclass(frozen=True)
class SymbolInfo:
    """Symbol an expression resolves to."""
    name: str
    kind: SymbolKind


@dataclass(frozen=True)
class ConversionRequest:
    """Everything the mapping engine needs for one statement."""
    source_type: TypeRef
    destination_type: TypeRef
    source_expression: "cst.BaseExpression"
    emitter: "StatementEmitterProtocol"
    destination_expression: Optional["cst.BaseExpression"] = None
    target_exists: bool = False
    generator_context: bool = False


@dataclass(frozen=True)
class CodeFix:
    """
    A registered fix for one diagnostic.

    The changed document is only computed when ``create_changed_document``
    is called, so listing fixes stays cheap.

    ``statement_span`` is the (start, end) offset range of the statement the
    fix rewrites.
    """
    title: str
    equivalence_key: str
    diagnostic: DiagnosticOccurrence
    create_changed_document: Callable[["CancellationToken"], Optional[Document]] = field(
        compare=False, repr=False
    )
    statement_span: tuple[int, int] = (0, 0)

    def covers(self, offset: int) -> bool:
        start, end = self.statement_span
        return start <= offset < end


@dataclass(frozen=True)
class FixOutcome:
    """Result of one diagnostic in a fix run."""
    diagnostic: DiagnosticOccurrence
    status: FixStatus
    reason: str = ""


@dataclass(frozen=True)
class FileFixResult:
    """Fixed document and per-diagnostic outcomes for one file."""
    original: Document
    fixed: Document
    outcomes: list[FixOutcome] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.original.source != self.fixed.source

    @property
    def applied_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == FixStatus.APPLIED)
