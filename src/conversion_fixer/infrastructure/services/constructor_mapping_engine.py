"""Default mapping engine: explicit conversions built from constructor calls."""

import logging
from typing import Optional

import libcst as cst

from conversion_fixer.domain.constants import BUILTIN_COLLECTIONS, BUILTIN_SCALARS, SOURCE_TEMP_NAME
from conversion_fixer.domain.entities import TypeRef
from conversion_fixer.domain.protocols import MappingEngineProtocol, StatementEmitterProtocol

logger = logging.getLogger(__name__)


class ConstructorMappingEngine(MappingEngineProtocol):
    """
    Converts by calling the destination type.

    Strategies, first match wins:

    1. target exists, a destination expression is given and both types share
       fields: member-by-member writes ``dest.f = src.f``
    2. destination shares fields with the source: ``Dest(f=src.f, ...)``
    3. builtin scalar or collection destination: ``int(src)``, ``list(src)``
    4. anything else: ``Dest(src)``

    A source expression that is read more than once and is not a plain name
    or attribute chain is bound to a temporary first. Inside a generator the
    engine keeps to a single statement and skips that temporary.
    """

    def map_types(
        self,
        source_type: TypeRef,
        destination_type: TypeRef,
        emitter: StatementEmitterProtocol,
        source_expression: cst.BaseExpression,
        destination_expression: Optional[cst.BaseExpression] = None,
        target_exists: bool = False,
        generator_context: bool = False,
    ) -> list[cst.CSTNode]:
        if destination_type.qname == source_type.qname:
            logger.debug("Source and destination are both %s; nothing to map", source_type.qname)
            return []

        shared = [f for f in destination_type.fields if f in source_type.fields]
        if shared and not self._is_simple(source_expression) and len(shared) > 1 and generator_context:
            return list(emitter.emit(self._construct(emitter, destination_type, source_expression)))

        prologue: list[cst.CSTNode] = []
        source = source_expression
        if shared and len(shared) > 1 and not self._is_simple(source_expression):
            temp = emitter.temporary(SOURCE_TEMP_NAME)
            prologue.append(emitter.assign(temp, source_expression))
            source = temp

        if (
            shared
            and target_exists
            and isinstance(destination_expression, (cst.Name, cst.Attribute))
        ):
            writes: list[cst.CSTNode] = [
                emitter.assign(emitter.member(destination_expression, f), emitter.member(source, f))
                for f in shared
            ]
            return prologue + writes

        if shared:
            value = emitter.call(
                emitter.type_name(destination_type),
                keywords={f: emitter.member(source, f) for f in shared},
            )
            return prologue + list(emitter.emit(value))

        return list(emitter.emit(self._construct(emitter, destination_type, source_expression)))

    @staticmethod
    def _construct(
        emitter: StatementEmitterProtocol,
        destination_type: TypeRef,
        source_expression: cst.BaseExpression,
    ) -> cst.BaseExpression:
        if destination_type.qname in BUILTIN_SCALARS or destination_type.qname in BUILTIN_COLLECTIONS:
            func: cst.BaseExpression = cst.Name(destination_type.short_name)
        else:
            func = emitter.type_name(destination_type)
        return emitter.call(func, [source_expression])

    @staticmethod
    def _is_simple(expression: cst.BaseExpression) -> bool:
        """Plain names and attribute chains can be re-read without side effects."""
        while isinstance(expression, cst.Attribute):
            expression = expression.value
        return isinstance(expression, cst.Name)
