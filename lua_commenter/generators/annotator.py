"""Annotation generator for lua_commenter

Renders code tree nodes, their inferred types and any existing doc
text as EmmyLua/LuaDoc annotation lines.
"""

from typing import List, Optional, Sequence, Set

from lua_commenter.core.ast_nodes import CodeNode, Comment, FunctionDef, ModuleDeclaration
from lua_commenter.core.type_system import TypeInfo

TODO_SUFFIX = " @TODO: Specify type"


class Annotator:
    """Generates annotation text for code tree nodes

    Attributes:
        preserve_existing: Re-emit existing doc strings above the
            generated function annotations
    """

    def __init__(self, preserve_existing: bool = True) -> None:
        """Initialize annotator

        Args:
            preserve_existing: Keep existing doc strings in the output
        """
        self.preserve_existing = preserve_existing

    def generate_docs(self, nodes: Sequence[CodeNode]) -> str:
        """Render annotation text for a top-level node sequence

        Args:
            nodes: Code tree

        Returns:
            Rendered blocks separated by a blank line
        """
        emitted_docs: Set[str] = set()
        blocks = []
        for node in nodes:
            block = self.render_node(node, emitted_docs)
            if block:
                blocks.append(block)
        if not blocks:
            return ""
        return "\n\n".join(blocks) + "\n"

    def render_node(self, node: CodeNode, emitted_docs: Optional[Set[str]] = None) -> str:
        """Render the annotation block of one node

        Args:
            node: Code tree node
            emitted_docs: Doc strings already emitted by the current call

        Returns:
            Block text without trailing newline; empty for nodes that
            carry no documentation
        """
        if emitted_docs is None:
            emitted_docs = set()
        if isinstance(node, Comment):
            return self.format_comment(node.text)
        if isinstance(node, ModuleDeclaration):
            return self.format_module(node)
        if isinstance(node, FunctionDef):
            return self.format_function(node, emitted_docs)
        return ""

    def format_comment(self, text: str) -> str:
        """Render a comment, switching to block form for multi-line text"""
        if "\n" in text:
            return f"--[[\n{text}\n--]]"
        return f"-- {text}"

    def format_module(self, node: ModuleDeclaration) -> str:
        """Render module header with one ``---@field`` line per export

        Args:
            node: Module declaration

        Returns:
            Module block text
        """
        lines: List[str] = []
        _emit(lines, f"---@module {node.name}")
        if node.exports:
            _emit(lines, "---Exports:")
            for export in node.exports:
                lines.append(f"---@field {export.name} {export.type_info.lua_type()}")
        return "\n".join(lines)

    def format_function(self, node: FunctionDef, emitted_docs: Set[str]) -> str:
        """Render function annotations

        Emits, in order: preserved doc text, the ``---@function`` marker,
        one ``---@param`` line per parameter and a single ``---@return``
        line when return types are known.

        Args:
            node: Function definition (after type analysis)
            emitted_docs: Doc strings already emitted by the current call

        Returns:
            Function block text
        """
        lines: List[str] = []
        if self.preserve_existing and node.doc and node.doc not in emitted_docs:
            emitted_docs.add(node.doc)
            lines.append(self.format_comment(node.doc))

        _emit(lines, f"---@function {node.name}")

        for param in node.params:
            lines.append(self.format_param(param.name, param.type_info))

        if node.return_types:
            returns = ", ".join(type_info.lua_type() for type_info in node.return_types)
            _emit(lines, f"---@return {returns}")

        return "\n".join(lines)

    def format_param(self, name: str, type_info: TypeInfo) -> str:
        suffix = TODO_SUFFIX if type_info.needs_specification() else ""
        return f"---@param {name} {type_info.lua_type()}{suffix}"


def _emit(lines: List[str], line: str) -> None:
    """Append a line unless the block built so far already contains it"""
    if line not in "\n".join(lines):
        lines.append(line)
