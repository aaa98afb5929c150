"""Statement emitters: build replacement code in the form of the replaced statement."""

from typing import Callable, Optional, Sequence

import libcst as cst

from conversion_fixer.domain.entities import TypeRef
from conversion_fixer.domain.protocols import StatementEmitterProtocol

_COMPACT_EQ = cst.AssignEqual(
    whitespace_before=cst.SimpleWhitespace(""),
    whitespace_after=cst.SimpleWhitespace(""),
)


class StatementEmitter(StatementEmitterProtocol):
    """
    Node factory handed to the mapping engine.

    ``sink`` turns the final converted value into the statement that takes
    the original statement's place (``x = value``, ``return value``, ...).
    ``taken_names`` are identifiers already used around that statement;
    temporaries never reuse them.
    """

    def __init__(
        self,
        sink: Callable[[cst.BaseExpression], cst.BaseSmallStatement],
        generator_context: bool = False,
        taken_names: frozenset[str] = frozenset(),
    ) -> None:
        self._sink = sink
        self._generator_context = generator_context
        self._taken_names = taken_names

    @property
    def generator_context(self) -> bool:
        return self._generator_context

    def emit(self, value: cst.BaseExpression) -> list[cst.BaseStatement]:
        return [cst.SimpleStatementLine(body=[self._sink(value)])]

    def assign(
        self, target: cst.BaseAssignTargetExpression, value: cst.BaseExpression
    ) -> cst.SimpleStatementLine:
        return cst.SimpleStatementLine(
            body=[cst.Assign(targets=[cst.AssignTarget(target=target)], value=value)]
        )

    def type_name(self, type_ref: TypeRef) -> cst.BaseExpression:
        return cst.parse_expression(type_ref.display)

    def call(
        self,
        func: cst.BaseExpression,
        args: Sequence[cst.BaseExpression] = (),
        keywords: Optional[dict[str, cst.BaseExpression]] = None,
    ) -> cst.Call:
        call_args = [cst.Arg(value=a) for a in args]
        for name, value in (keywords or {}).items():
            call_args.append(cst.Arg(keyword=cst.Name(name), value=value, equal=_COMPACT_EQ))
        return cst.Call(func=func, args=call_args)

    def member(self, value: cst.BaseExpression, name: str) -> cst.Attribute:
        return cst.Attribute(value=value, attr=cst.Name(name))

    def temporary(self, name: str) -> cst.Name:
        """``name``, or ``name_1``, ``name_2``, ... when it is already taken."""
        candidate = name
        suffix = 0
        while candidate in self._taken_names:
            suffix += 1
            candidate = f"{name}_{suffix}"
        return cst.Name(candidate)


class StatementEmitterFactory:
    """One emitter per convertible statement shape."""

    @staticmethod
    def for_assignment(
        left: cst.BaseAssignTargetExpression, taken_names: frozenset[str] = frozenset()
    ) -> StatementEmitter:
        return StatementEmitter(
            lambda value: cst.Assign(targets=[cst.AssignTarget(target=left)], value=value),
            taken_names=taken_names,
        )

    @staticmethod
    def for_return(taken_names: frozenset[str] = frozenset()) -> StatementEmitter:
        return StatementEmitter(lambda value: cst.Return(value=value), taken_names=taken_names)

    @staticmethod
    def for_yield(taken_names: frozenset[str] = frozenset()) -> StatementEmitter:
        return StatementEmitter(
            lambda value: cst.Expr(value=cst.Yield(value=value)),
            generator_context=True,
            taken_names=taken_names,
        )

    @staticmethod
    def for_declaration(
        target: cst.BaseAssignTargetExpression,
        annotation: cst.Annotation,
        taken_names: frozenset[str] = frozenset(),
    ) -> StatementEmitter:
        return StatementEmitter(
            lambda value: cst.AnnAssign(target=target, annotation=annotation, value=value),
            taken_names=taken_names,
        )
