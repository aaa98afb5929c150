"""Astroid backed semantic model: expression types, expected types and symbols."""

import logging
from pathlib import Path
from typing import Optional

import astroid  # type: ignore[import-untyped]
import libcst as cst

from conversion_fixer.domain.constants import GENERATOR_ANNOTATIONS, TYPING_COLLECTION_MAP
from conversion_fixer.domain.entities import SymbolInfo, SymbolKind, TypeInfo, TypeRef
from conversion_fixer.domain.exceptions import SemanticLookupError
from conversion_fixer.domain.protocols import SemanticModelFactoryProtocol, SemanticModelProtocol
from conversion_fixer.infrastructure.gateways.cst_syntax_tree import CstSyntaxTree

logger = logging.getLogger(__name__)

_PROPERTY_DECORATORS: frozenset[str] = frozenset(
    {"property", "cached_property", "builtins.property", "functools.cached_property"}
)
_OPTIONAL_WRAPPERS: frozenset[str] = frozenset({"typing.Optional", "typing.Union", "Union", "Optional"})


class AstroidSemanticModel(SemanticModelProtocol):
    """
    Semantic queries for one document.

    libcst nodes are matched to astroid nodes by source range: the first
    astroid expression (preorder) whose span lies inside the libcst node's
    range is its counterpart. Parentheses belong to the libcst range but
    not to the astroid span, which containment tolerates.
    """

    def __init__(self, tree: CstSyntaxTree) -> None:
        self._tree = tree
        document = tree.document
        self._lines = document.source.split("\n")
        self._module: astroid.nodes.Module = astroid.parse(
            document.source,
            module_name=Path(document.path).stem if document.path else "",
            path=document.path or None,
        )

    # -- node mapping -----------------------------------------------------

    def _byte_column(self, line: int, column: int) -> int:
        text = self._lines[line - 1] if 0 < line <= len(self._lines) else ""
        return len(text[:column].encode("utf-8"))

    def _to_astroid(self, expression: cst.CSTNode) -> astroid.nodes.NodeNG:
        code_range = self._tree.code_range(expression)
        code = self._code_of(expression)
        if code_range is None:
            raise SemanticLookupError(code, "node is not part of the analyzed tree")
        start = (code_range.start.line, self._byte_column(code_range.start.line, code_range.start.column))
        end = (code_range.end.line, self._byte_column(code_range.end.line, code_range.end.column))
        for node in self._module.nodes_of_class(astroid.nodes.NodeNG):
            if node.is_statement or None in (node.lineno, node.col_offset, node.end_lineno, node.end_col_offset):
                continue
            if start <= (node.lineno, node.col_offset) and (node.end_lineno, node.end_col_offset) <= end:
                return node
        raise SemanticLookupError(code, "no matching astroid node")

    @staticmethod
    def _code_of(node: cst.CSTNode) -> str:
        return cst.Module(body=[]).code_for_node(node)

    # -- public queries ---------------------------------------------------

    def type_of(self, expression: cst.BaseExpression) -> TypeInfo:
        """Analyzed type and the type the surrounding context expects."""
        node = self._to_astroid(expression)
        own = self._expression_type(node)
        expected = self._expected_type(node)
        return TypeInfo(type=own, converted_type=expected or own)

    def symbol_of(self, expression: cst.BaseExpression) -> Optional[SymbolInfo]:
        node = self._to_astroid(expression)
        if isinstance(node, (astroid.nodes.Name, astroid.nodes.AssignName)):
            return self._symbol_for_name(node)
        if isinstance(node, (astroid.nodes.Attribute, astroid.nodes.AssignAttr)):
            return self._symbol_for_attribute(node)
        return None

    # -- symbols ----------------------------------------------------------

    @staticmethod
    def _bindings(node: "astroid.nodes.Name | astroid.nodes.AssignName") -> list[astroid.nodes.NodeNG]:
        """
        Every binding of the name in its own scope, in source order.

        ``lookup`` filters to the bindings that reach the node, which drops an
        earlier ``x: T = ...`` once ``x`` is reassigned; declared types need
        them all. Names bound elsewhere (globals, closures) fall back to lookup.
        """
        local = node.scope().locals.get(node.name, [])
        if local:
            return list(local)
        return list(node.lookup(node.name)[1])

    def _symbol_for_name(
        self, node: "astroid.nodes.Name | astroid.nodes.AssignName"
    ) -> Optional[SymbolInfo]:
        definitions = self._bindings(node)
        if not definitions:
            return None
        definition = definitions[0]
        kind = SymbolKind.VARIABLE
        if isinstance(definition, astroid.nodes.AssignName):
            if isinstance(definition.parent, astroid.nodes.Arguments):
                kind = SymbolKind.PARAMETER
            elif isinstance(definition.scope(), astroid.nodes.ClassDef):
                kind = SymbolKind.FIELD
        elif isinstance(definition, astroid.nodes.FunctionDef):
            kind = SymbolKind.PROPERTY if self._is_property(definition) else SymbolKind.FUNCTION
        elif isinstance(definition, astroid.nodes.ClassDef):
            kind = SymbolKind.CLASS
        elif isinstance(definition, (astroid.nodes.Import, astroid.nodes.ImportFrom)):
            kind = SymbolKind.MODULE
        return SymbolInfo(name=node.name, kind=kind)

    def _symbol_for_attribute(
        self, node: "astroid.nodes.Attribute | astroid.nodes.AssignAttr"
    ) -> Optional[SymbolInfo]:
        class_node = self._receiver_class(node.expr)
        if class_node is None:
            return None
        for member in class_node.locals.get(node.attrname, []):
            if isinstance(member, astroid.nodes.FunctionDef) and self._is_property(member):
                return SymbolInfo(name=node.attrname, kind=SymbolKind.PROPERTY)
        for ancestor in self._safe_ancestors(class_node):
            for member in ancestor.locals.get(node.attrname, []):
                if isinstance(member, astroid.nodes.FunctionDef) and self._is_property(member):
                    return SymbolInfo(name=node.attrname, kind=SymbolKind.PROPERTY)
        return SymbolInfo(name=node.attrname, kind=SymbolKind.FIELD)

    @staticmethod
    def _is_property(node: astroid.nodes.FunctionDef) -> bool:
        decorators = getattr(getattr(node, "decorators", None), "nodes", None) or []
        for decorator in decorators:
            if isinstance(decorator, astroid.nodes.Name) and decorator.name in _PROPERTY_DECORATORS:
                return True
            if isinstance(decorator, astroid.nodes.Attribute) and decorator.attrname in _PROPERTY_DECORATORS:
                return True
            # @x.setter on a property
            if isinstance(decorator, astroid.nodes.Attribute) and decorator.attrname in ("setter", "deleter"):
                return True
        return False

    @staticmethod
    def _safe_ancestors(class_node: astroid.nodes.ClassDef) -> list[astroid.nodes.ClassDef]:
        try:
            return list(class_node.ancestors())
        except astroid.InferenceError:
            return []

    # -- types ------------------------------------------------------------

    def _expression_type(self, node: astroid.nodes.NodeNG) -> Optional[TypeRef]:
        if isinstance(node, astroid.nodes.AssignName):
            return self._declared_name_type(node)
        if isinstance(node, astroid.nodes.AssignAttr):
            return self._declared_attribute_type(node)
        if isinstance(node, astroid.nodes.Name):
            declared = self._declared_name_type(node)
            if declared:
                return declared
        if isinstance(node, astroid.nodes.Call):
            declared = self._declared_call_type(node)
            if declared:
                return declared
        return self._inferred_type(node)

    def _inferred_type(self, node: astroid.nodes.NodeNG) -> Optional[TypeRef]:
        try:
            for inferred in node.infer():
                if inferred is astroid.Uninferable:
                    continue
                if isinstance(inferred, astroid.Instance):
                    return self._type_ref_for_class(inferred._proxied, inferred._proxied.name)
                if isinstance(inferred, astroid.nodes.ClassDef):
                    return TypeRef(qname="builtins.type", display="type")
                pytype = getattr(inferred, "pytype", None)
                if callable(pytype):
                    qname = str(pytype())
                    return TypeRef(qname=qname, display=qname.rsplit(".", 1)[-1])
        except (astroid.InferenceError, AttributeError):
            pass
        return None

    def _declared_call_type(self, node: astroid.nodes.Call) -> Optional[TypeRef]:
        try:
            for inferred in node.func.infer():
                if isinstance(inferred, astroid.nodes.ClassDef):
                    return self._type_ref_for_class(inferred, inferred.name)
                if isinstance(inferred, astroid.nodes.FunctionDef) and inferred.returns:
                    return self._resolve_annotation(inferred.returns)
        except (astroid.InferenceError, StopIteration):
            pass
        return None

    def _declared_name_type(
        self, node: "astroid.nodes.Name | astroid.nodes.AssignName"
    ) -> Optional[TypeRef]:
        """Declared type of a name from annotations, else from another binding's value."""
        definitions = self._bindings(node)
        for definition in definitions:
            parent = definition.parent
            if isinstance(parent, astroid.nodes.AnnAssign) and parent.annotation:
                return self._resolve_annotation(parent.annotation)
            if isinstance(parent, astroid.nodes.Arguments):
                annotation = self._argument_annotation(definition, parent)
                if annotation is not None:
                    return self._resolve_annotation(annotation)
        for definition in definitions:
            if definition is node:
                continue
            parent = definition.parent
            if isinstance(parent, astroid.nodes.Assign) and parent.value is not None:
                return self._inferred_type(parent.value)
        return None

    @staticmethod
    def _argument_annotation(
        definition: astroid.nodes.NodeNG, args: astroid.nodes.Arguments
    ) -> Optional[astroid.nodes.NodeNG]:
        all_args = (getattr(args, "posonlyargs", None) or []) + (args.args or []) + (
            getattr(args, "kwonlyargs", None) or []
        )
        all_annotations = (
            (getattr(args, "posonlyargs_annotations", None) or [])
            + (args.annotations or [])
            + (getattr(args, "kwonlyargs_annotations", None) or [])
        )
        try:
            idx = all_args.index(definition)
        except ValueError:
            return None
        if idx < len(all_annotations):
            return all_annotations[idx]
        return None

    def _declared_attribute_type(self, node: astroid.nodes.AssignAttr) -> Optional[TypeRef]:
        class_node = self._receiver_class(node.expr)
        if class_node is None:
            return None
        annotation = self._attribute_annotation(class_node, node.attrname)
        if annotation is not None:
            return self._resolve_annotation(annotation)
        for assigned in class_node.instance_attrs.get(node.attrname, []):
            if assigned is node:
                continue
            parent = assigned.parent
            if isinstance(parent, astroid.nodes.Assign) and parent.value is not None:
                return self._inferred_type(parent.value)
        return None

    def _attribute_annotation(
        self, class_node: astroid.nodes.ClassDef, attr_name: str
    ) -> Optional[astroid.nodes.NodeNG]:
        """Class body AnnAssign, property return, or ``self.attr: T`` in a method."""
        for candidate in [class_node, *self._safe_ancestors(class_node)]:
            for n in candidate.body:
                if isinstance(n, astroid.nodes.AnnAssign) and getattr(n.target, "name", None) == attr_name:
                    return n.annotation
                if isinstance(n, astroid.nodes.FunctionDef) and n.name == attr_name and self._is_property(n):
                    if n.returns is not None:
                        return n.returns
            for assigned in candidate.instance_attrs.get(attr_name, []):
                if isinstance(assigned.parent, astroid.nodes.AnnAssign):
                    return assigned.parent.annotation
        return None

    def _receiver_class(self, expr: astroid.nodes.NodeNG) -> Optional[astroid.nodes.ClassDef]:
        try:
            for inferred in expr.infer():
                if isinstance(inferred, astroid.Instance):
                    return inferred._proxied
        except (astroid.InferenceError, AttributeError):
            pass
        return None

    def _expected_type(self, node: astroid.nodes.NodeNG) -> Optional[TypeRef]:
        """Type the context converts ``node`` to, if any."""
        parent = node.parent
        if isinstance(parent, astroid.nodes.Return) and parent.value is node:
            returns = getattr(node.frame(), "returns", None)
            return self._resolve_annotation(returns) if returns is not None else None
        if isinstance(parent, astroid.nodes.Yield) and parent.value is node:
            returns = getattr(node.frame(), "returns", None)
            return self._yielded_type(returns) if returns is not None else None
        if isinstance(parent, astroid.nodes.AnnAssign) and parent.value is node:
            return self._resolve_annotation(parent.annotation)
        if isinstance(parent, astroid.nodes.Assign) and parent.value is node and len(parent.targets) == 1:
            return self._expression_type(parent.targets[0])
        return None

    def _yielded_type(self, returns: astroid.nodes.NodeNG) -> Optional[TypeRef]:
        """Element type of ``Iterator[T]`` / ``Generator[T, ...]`` style annotations."""
        if not isinstance(returns, astroid.nodes.Subscript):
            return None
        if self._qname_of(returns.value).rsplit(".", 1)[-1] not in GENERATOR_ANNOTATIONS:
            return None
        slice_node = returns.slice
        if isinstance(slice_node, astroid.nodes.Tuple) and slice_node.elts:
            return self._resolve_annotation(slice_node.elts[0])
        return self._resolve_annotation(slice_node)

    # -- annotations --------------------------------------------------------

    def _resolve_annotation(self, anno: Optional[astroid.nodes.NodeNG]) -> Optional[TypeRef]:
        """Resolve a type annotation node to a TypeRef usable in generated code."""
        if anno is None:
            return None
        if isinstance(anno, astroid.nodes.Subscript):
            return self._resolve_subscript_annotation(anno)
        if isinstance(anno, astroid.nodes.BinOp) and anno.op == "|":
            return self._first_non_none(anno.left, anno.right)
        if isinstance(anno, astroid.nodes.Const):
            if anno.value is None:
                return None
            if isinstance(anno.value, str):
                return self._resolve_forward_reference(anno)
        return self._resolve_simple_annotation(anno)

    def _resolve_subscript_annotation(self, anno: astroid.nodes.Subscript) -> Optional[TypeRef]:
        """Optional[X] and Union[X, ...] unwrap to X; List[X] to list."""
        qname = self._qname_of(anno.value)
        if qname in _OPTIONAL_WRAPPERS or anno.value.as_string() in _OPTIONAL_WRAPPERS:
            slice_node = anno.slice
            if isinstance(slice_node, astroid.nodes.Tuple):
                return self._first_non_none(*slice_node.elts)
            return self._resolve_annotation(slice_node)
        if qname in TYPING_COLLECTION_MAP:
            builtin = TYPING_COLLECTION_MAP[qname]
            return TypeRef(qname=builtin, display=builtin.rsplit(".", 1)[-1])
        return self._resolve_annotation(anno.value)

    def _first_non_none(self, *candidates: astroid.nodes.NodeNG) -> Optional[TypeRef]:
        for candidate in candidates:
            if isinstance(candidate, astroid.nodes.BinOp) and candidate.op == "|":
                res = self._first_non_none(candidate.left, candidate.right)
            else:
                res = self._resolve_annotation(candidate)
            if res is not None and res.qname != "builtins.NoneType":
                return res
        return None

    def _resolve_forward_reference(self, anno: astroid.nodes.Const) -> Optional[TypeRef]:
        name = str(anno.value)
        _, definitions = anno.scope().lookup(name.split(".")[0])
        for definition in definitions:
            if isinstance(definition, astroid.nodes.ClassDef) and "." not in name:
                return self._type_ref_for_class(definition, name)
        return TypeRef(qname=name, display=name)

    def _resolve_simple_annotation(self, anno: astroid.nodes.NodeNG) -> Optional[TypeRef]:
        try:
            for inferred in anno.infer():
                if inferred is astroid.Uninferable:
                    continue
                if isinstance(inferred, astroid.nodes.ClassDef):
                    return self._type_ref_for_class(inferred, anno.as_string())
                if isinstance(inferred, astroid.nodes.Const) and inferred.value is None:
                    return TypeRef(qname="builtins.NoneType", display="None")
        except (astroid.InferenceError, AttributeError):
            pass
        display = anno.as_string()
        return TypeRef(qname=display, display=display)

    def _qname_of(self, node: astroid.nodes.NodeNG) -> str:
        try:
            for inferred in node.infer():
                if inferred is not astroid.Uninferable and hasattr(inferred, "qname"):
                    return str(inferred.qname())
        except (astroid.InferenceError, AttributeError):
            pass
        return node.as_string()

    def _type_ref_for_class(self, class_node: astroid.nodes.ClassDef, display: str) -> TypeRef:
        return TypeRef(
            qname=str(class_node.qname()),
            display=display,
            fields=self._fields_of(class_node),
        )

    @staticmethod
    def _fields_of(class_node: astroid.nodes.ClassDef) -> tuple[str, ...]:
        """Annotated class-body attributes, else ``__init__`` parameters."""
        if class_node.root().name == "builtins":
            return ()
        names: list[str] = []
        for n in class_node.body:
            if isinstance(n, astroid.nodes.AnnAssign) and isinstance(n.target, astroid.nodes.AssignName):
                if n.target.name not in names:
                    names.append(n.target.name)
        if names:
            return tuple(names)
        init = class_node.locals.get("__init__", [])
        if init and isinstance(init[0], astroid.nodes.FunctionDef):
            params = [a.name for a in init[0].args.args or []][1:]
            params.extend(a.name for a in getattr(init[0].args, "kwonlyargs", None) or [])
            return tuple(params)
        return ()


class AstroidSemanticModelFactory(SemanticModelFactoryProtocol):
    """Builds a semantic model per parsed document."""

    def create(self, tree: CstSyntaxTree) -> AstroidSemanticModel:  # type: ignore[override]
        logger.debug("Building semantic model for %s", tree.document.path or "<memory>")
        return AstroidSemanticModel(tree)
