"""Use Case: Generate an explicit conversion for one located statement."""

import logging
from typing import Optional

import libcst as cst
from typing_extensions import assert_never

from conversion_fixer.domain.cancellation import CancellationToken
from conversion_fixer.domain.entities import ConversionRequest, Document, TypeRef
from conversion_fixer.domain.exceptions import SemanticLookupError
from conversion_fixer.domain.policies import assignment_target_exists
from conversion_fixer.domain.protocols import (
    MappingEngineProtocol,
    RewriterGatewayProtocol,
    SemanticModelFactoryProtocol,
    SemanticModelProtocol,
    StatementEmitterFactoryProtocol,
    SyntaxTreeProtocol,
)
from conversion_fixer.domain.statements import (
    AssignmentStatement,
    ConvertibleStatement,
    LocalDeclarationStatement,
    ReturnStatement,
    YieldStatement,
)

logger = logging.getLogger(__name__)


def _require(type_ref: Optional[TypeRef], expression: cst.CSTNode, role: str) -> TypeRef:
    if type_ref is None:
        code = cst.Module(body=[]).code_for_node(expression)
        raise SemanticLookupError(code, f"{role} type is unknown")
    return type_ref


def extract_conversion_request(
    statement: ConvertibleStatement,
    semantic_model: SemanticModelProtocol,
    emitters: StatementEmitterFactoryProtocol,
    taken_names: frozenset[str] = frozenset(),
) -> ConversionRequest:
    """
    Source/destination types and mapping options for one statement shape.

    Return, yield and declaration use the context-expected (converted) type
    of the value as destination. Assignment uses the declared type of the
    left side and is the only shape that hands the engine a destination
    expression. Temporaries the emitter creates avoid ``taken_names``.
    """
    if isinstance(statement, AssignmentStatement):
        left = statement.left
        source_type = semantic_model.type_of(statement.right).type
        destination_type = semantic_model.type_of(left).type
        target_exists = assignment_target_exists(
            isinstance(left, cst.Name), semantic_model.symbol_of(left)
        )
        return ConversionRequest(
            source_type=_require(source_type, statement.right, "source"),
            destination_type=_require(destination_type, left, "destination"),
            source_expression=statement.right,
            emitter=emitters.for_assignment(left, taken_names),
            destination_expression=left,
            target_exists=target_exists,
        )
    if isinstance(statement, ReturnStatement):
        info = semantic_model.type_of(statement.expression)
        return ConversionRequest(
            source_type=_require(info.type, statement.expression, "source"),
            destination_type=_require(info.converted_type, statement.expression, "return"),
            source_expression=statement.expression,
            emitter=emitters.for_return(taken_names),
        )
    if isinstance(statement, YieldStatement):
        info = semantic_model.type_of(statement.expression)
        return ConversionRequest(
            source_type=_require(info.type, statement.expression, "source"),
            destination_type=_require(info.converted_type, statement.expression, "yield"),
            source_expression=statement.expression,
            emitter=emitters.for_yield(taken_names),
            generator_context=True,
        )
    if isinstance(statement, LocalDeclarationStatement):
        info = semantic_model.type_of(statement.initializer)
        return ConversionRequest(
            source_type=_require(info.type, statement.initializer, "source"),
            destination_type=_require(info.converted_type, statement.initializer, "declared"),
            source_expression=statement.initializer,
            emitter=emitters.for_declaration(statement.target, statement.annotation, taken_names),
            target_exists=True,
        )
    assert_never(statement)


class GenerateExplicitConversionUseCase:
    """Extract types, ask the mapping engine for replacement code, rewrite the tree."""

    def __init__(
        self,
        semantic_model_factory: SemanticModelFactoryProtocol,
        mapping_engine: MappingEngineProtocol,
        rewriter: RewriterGatewayProtocol,
        emitters: StatementEmitterFactoryProtocol,
    ) -> None:
        self.semantic_model_factory = semantic_model_factory
        self.emitters = emitters
        self.mapping_engine = mapping_engine
        self.rewriter = rewriter

    def execute(
        self,
        tree: SyntaxTreeProtocol,
        statement: ConvertibleStatement,
        token: CancellationToken,
    ) -> Optional[Document]:
        """
        New document with the statement converted explicitly.

        Returns None when the mapping engine produces no statements: the
        edit is suppressed rather than deleting the user's statement.
        """
        token.throw_if_cancellation_requested()
        semantic_model = self.semantic_model_factory.create(tree)

        token.throw_if_cancellation_requested()
        request = extract_conversion_request(
            statement, semantic_model, self.emitters, tree.names_in_scope(statement.node)
        )
        logger.debug(
            "Mapping %s -> %s (target_exists=%s, generator=%s)",
            request.source_type.qname,
            request.destination_type.qname,
            request.target_exists,
            request.generator_context,
        )

        token.throw_if_cancellation_requested()
        replacement = self.mapping_engine.map_types(
            request.source_type,
            request.destination_type,
            request.emitter,
            request.source_expression,
            destination_expression=request.destination_expression,
            target_exists=request.target_exists,
            generator_context=request.generator_context,
        )
        if not replacement:
            logger.info(
                "No conversion from %s to %s; leaving statement unchanged",
                request.source_type.qname,
                request.destination_type.qname,
            )
            return None

        token.throw_if_cancellation_requested()
        return self.rewriter.replace(tree, statement.node, replacement)
