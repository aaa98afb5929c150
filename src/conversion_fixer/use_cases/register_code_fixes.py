"""Use Case: Register the explicit-conversion fix for one diagnostic."""

import logging
from typing import Callable, Optional

from conversion_fixer.domain.cancellation import CancellationToken
from conversion_fixer.domain.constants import DIAGNOSTIC_ID, FIX_TITLE
from conversion_fixer.domain.entities import CodeFix, DiagnosticOccurrence, Document
from conversion_fixer.domain.protocols import SyntaxTreeFactoryProtocol, SyntaxTreeProtocol
from conversion_fixer.domain.statements import ConvertibleStatement
from conversion_fixer.infrastructure.gateways.cst_statements import (
    StatementLocator,
    classify_statement,
)
from conversion_fixer.use_cases.generate_explicit_conversion import (
    GenerateExplicitConversionUseCase,
)

logger = logging.getLogger(__name__)


class RegisterCodeFixesUseCase:
    """
    Entry point for one diagnostic occurrence.

    Parses the document, walks from the flagged position to the enclosing
    convertible statement and registers at most one ``CodeFix``. The edit
    itself is deferred until the fix's ``create_changed_document`` runs.
    """

    FIXABLE_DIAGNOSTIC_IDS: tuple[str, ...] = (DIAGNOSTIC_ID,)

    def __init__(
        self,
        tree_factory: SyntaxTreeFactoryProtocol,
        generate_use_case: GenerateExplicitConversionUseCase,
    ) -> None:
        self.tree_factory = tree_factory
        self.generate_use_case = generate_use_case

    def execute(
        self,
        document: Document,
        diagnostic: DiagnosticOccurrence,
        token: Optional[CancellationToken] = None,
    ) -> list[CodeFix]:
        token = token or CancellationToken.none()
        if diagnostic.id not in self.FIXABLE_DIAGNOSTIC_IDS:
            return []

        token.throw_if_cancellation_requested()
        tree = self.tree_factory.parse(document)
        node = StatementLocator(tree).locate_at(diagnostic.span_start)
        if node is None:
            logger.debug("No convertible statement at %s", diagnostic.location)
            return []

        statement = classify_statement(node)
        if statement is None:
            logger.debug(
                "Statement at %s cannot carry a conversion (%s)",
                diagnostic.location,
                type(node).__name__,
            )
            return []

        return [
            CodeFix(
                title=FIX_TITLE,
                equivalence_key=FIX_TITLE,
                diagnostic=diagnostic,
                create_changed_document=self._deferred(tree, statement),
                statement_span=tree.span_of(statement.node) or (0, 0),
            )
        ]

    def _deferred(
        self, tree: SyntaxTreeProtocol, statement: ConvertibleStatement
    ) -> Callable[[CancellationToken], Optional[Document]]:
        def create_changed_document(token: CancellationToken) -> Optional[Document]:
            return self.generate_use_case.execute(tree, statement, token)

        return create_changed_document

