"""AST visitor base class for lua_commenter

Provides a visitor pattern for traversing code syntax tree nodes.
"""

from abc import ABC
from typing import Any, List, Sequence

from lua_commenter.core.ast_nodes import (
    CodeNode, FunctionDef, IfStatement, ModuleDeclaration, child_blocks,
)


class ASTVisitor(ABC):
    """Base visitor for code tree traversal

    Override visit_* methods to handle specific node types.
    Call self.generic_visit() to continue into nested blocks.
    """

    def __init__(self) -> None:
        """Initialize visitor"""
        self._function_depth = 0

    def visit(self, node: CodeNode) -> Any:
        """Visit a node using double-dispatch pattern

        Args:
            node: Code tree node

        Returns:
            Result from visit method (often None)
        """
        method_name = f"visit_{node.__class__.__name__}"
        method = getattr(self, method_name, self.generic_visit)
        return method(node)

    def visit_block(self, nodes: Sequence[CodeNode]) -> List[Any]:
        """Visit every node of a block in order

        Args:
            nodes: Statement sequence

        Returns:
            Results of the visit methods
        """
        return [self.visit(node) for node in nodes]

    def generic_visit(self, node: CodeNode) -> None:
        """Default visitor - visit all nested blocks

        Args:
            node: Code tree node
        """
        for block in child_blocks(node):
            self.visit_block(block)

    def visit_FunctionDef(self, node: FunctionDef) -> None:
        """Visit function definition node

        Args:
            node: FunctionDef node
        """
        self._function_depth += 1
        try:
            self.generic_visit(node)
        finally:
            self._function_depth -= 1

    def visit_IfStatement(self, node: IfStatement) -> None:
        self.generic_visit(node)

    def visit_ModuleDeclaration(self, node: ModuleDeclaration) -> None:
        self.generic_visit(node)

    @property
    def in_function(self) -> bool:
        """Check if currently inside a function

        Returns:
            True if inside a function
        """
        return self._function_depth > 0
