"""Type analyzer for lua_commenter

Walks the code tree with a stack of lexical scopes and fills in the
types the author never declared:
- Parameters start from their ``---@param`` annotation when one is
  attached, otherwise Unknown
- ``local x = expr`` binds ``x`` to the expression's type
- Return types are inferred from the return statements of the body
- Module exports are forwarded to the project catalog

Inference is shallow by design of the output format: a literal is
always a string, any call is a function, and multi-value returns
collapse to Unknown.
"""

from typing import List, Optional, Sequence, Set

from lua_commenter.core.annotation_nodes import Param
from lua_commenter.core.ast_nodes import (
    Assignment, CodeNode, Expression, FunctionCall, FunctionDef, Identifier,
    Literal, ModuleDeclaration, ReturnStatement, TableExpression,
    VariableDeclaration, child_blocks,
)
from lua_commenter.core.ast_visitor import ASTVisitor
from lua_commenter.core.diagnostics import DiagnosticKind, DiagnosticLogger
from lua_commenter.core.project_catalog import ProjectCatalog
from lua_commenter.core.scope import ScopeManager
from lua_commenter.core.type_system import (
    FUNCTION, STRING, TABLE, UNKNOWN, ExportItem, TypeInfo,
)


class TypeAnalyzer(ASTVisitor):
    """Infers parameter, variable and return types over a code tree"""

    def __init__(self, catalog: Optional[ProjectCatalog] = None,
                 diagnostics: Optional[DiagnosticLogger] = None) -> None:
        """Initialize analyzer

        Args:
            catalog: Project catalog receiving exports (a new one if omitted)
            diagnostics: Sink for analysis diagnostics
        """
        super().__init__()
        self.catalog = catalog if catalog is not None else ProjectCatalog()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLogger()
        self.scopes = ScopeManager()
        self.module_names: Set[str] = set()

    def analyze(self, nodes: Sequence[CodeNode]) -> Sequence[CodeNode]:
        """Analyze a top-level node sequence in place

        Args:
            nodes: Code tree

        Returns:
            The same nodes, with parameter and return types filled in
        """
        self.visit_block(nodes)
        return nodes

    # --- statements ---

    def visit_FunctionDef(self, node: FunctionDef) -> None:
        self._seed_parameters(node)
        self._forward_module_function(node)
        if "." not in node.name and ":" not in node.name:
            # Bound before the body so recursive calls resolve.
            self.scopes.define(node.name, FUNCTION)

        self.scopes.push_scope({param.name: param.type_info for param in node.params})
        try:
            super().visit_FunctionDef(node)
            node.return_types = self.infer_return_types(node.body)
        finally:
            self.scopes.pop_scope()

    def visit_ModuleDeclaration(self, node: ModuleDeclaration) -> None:
        self.module_names.add(node.name)
        self.scopes.define(node.name, TABLE)
        for export in node.exports:
            self.catalog.add_export(node.name, export)

    def visit_VariableDeclaration(self, node: VariableDeclaration) -> None:
        self.scopes.define(node.name, self.infer_expression_type(node.value))

    def visit_Assignment(self, node: Assignment) -> None:
        for target, value in zip(node.targets, node.values):
            module_name, _, field_name = target.rpartition(".")
            if module_name in self.module_names:
                self.catalog.add_export(module_name,
                                        ExportItem(field_name, self.infer_expression_type(value)))

    def _seed_parameters(self, node: FunctionDef) -> None:
        """Give parameters the types of their attached ``---@param`` annotations"""
        param_names = {param.name for param in node.params}
        declared = {}
        for annotation in node.annotations:
            if not isinstance(annotation, Param):
                continue
            name = annotation.name.rstrip("?")
            if name not in param_names:
                self.diagnostics.report(
                    node.span, f"@param '{annotation.name}' does not match a parameter of '{node.name}'",
                    DiagnosticKind.ANALYSIS)
                continue
            resolved = self.catalog.resolve_type(annotation.type_field)
            if resolved is None:
                self.diagnostics.report(
                    node.span, f"unknown type '{annotation.type_field}' for parameter '{name}'",
                    DiagnosticKind.ANALYSIS)
                continue
            declared[name] = resolved
        for param in node.params:
            if param.type_info.is_unknown() and param.name in declared:
                param.type_info = declared[param.name]

    def _forward_module_function(self, node: FunctionDef) -> None:
        """Export ``function M.name`` / ``function M:name`` of a declared module"""
        for separator in (":", "."):
            module_name, found, field_name = node.name.rpartition(separator)
            if found and module_name in self.module_names:
                self.catalog.add_export(module_name, ExportItem(field_name, FUNCTION))
                return

    # --- inference ---

    def infer_return_types(self, body: Sequence[CodeNode]) -> List[TypeInfo]:
        """Infer the return types of a function body

        Every return statement contributes one type: Unknown for a bare
        ``return`` or several values, else its single value's type.
        Nested function bodies are searched as well and their returns
        land in the same list.

        Args:
            body: Function body

        Returns:
            Deduplicated types in a stable structural order
        """
        collected: List[TypeInfo] = []
        self._collect_returns(body, collected)
        return sorted(set(collected), key=lambda t: t.sort_key())

    def _collect_returns(self, body: Sequence[CodeNode], collected: List[TypeInfo]) -> None:
        for node in body:
            if isinstance(node, ReturnStatement):
                if len(node.values) == 1:
                    collected.append(self.infer_expression_type(node.values[0]))
                else:
                    collected.append(UNKNOWN)
            for block in child_blocks(node):
                self._collect_returns(block, collected)

    def infer_expression_type(self, expr: Optional[Expression]) -> TypeInfo:
        """Infer the type of an expression

        Args:
            expr: Expression node (None for a missing value)

        Returns:
            Inferred type; Unknown when nothing is known
        """
        if isinstance(expr, Identifier):
            return self.scopes.lookup(expr.name)
        if isinstance(expr, Literal):
            return STRING
        if isinstance(expr, FunctionCall):
            return FUNCTION
        if isinstance(expr, TableExpression):
            return TABLE
        return UNKNOWN


def analyze(nodes: Sequence[CodeNode], catalog: Optional[ProjectCatalog] = None,
            diagnostics: Optional[DiagnosticLogger] = None) -> Sequence[CodeNode]:
    """Run type analysis over a code tree"""
    return TypeAnalyzer(catalog, diagnostics).analyze(nodes)
