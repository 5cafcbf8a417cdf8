"""Debug printers for lua_commenter

Indented text renderings of the token stream and of both syntax
trees, used by ``--dump-ast``.
"""

from dataclasses import fields
from typing import List, Optional, Sequence

from lua_commenter.core.annotation_nodes import AnnotationNode
from lua_commenter.core.ast_nodes import (
    CodeNode, Expression, ForNumeric, FunctionCall, FunctionDef, Identifier,
    IfStatement, Literal, ModuleDeclaration, TableExpression,
)
from lua_commenter.core.tokens import Token, TokenKind

INDENT = "  "

# Attribute holding the node's display label, per node class
_LABEL_FIELDS = {
    "ModuleDeclaration": "name",
    "FunctionDef": "name",
    "VariableDeclaration": "name",
    "ForNumeric": "var",
    "Comment": "text",
}

# Printed separately or not at all
_SKIPPED_FIELDS = frozenset(["span", "doc", "annotations", "body", "then_block", "else_block",
                             "params", "return_types", "exports"])


def format_expression(expr: Optional[Expression]) -> str:
    """Render an expression in Lua-like syntax"""
    if expr is None:
        return "nil"
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, Literal):
        return f'"{expr.value}"'
    if isinstance(expr, FunctionCall):
        return f"{expr.callee}({', '.join(format_expression(arg) for arg in expr.args)})"
    if isinstance(expr, TableExpression):
        inner = ", ".join(f"{key} = {format_expression(value)}" for key, value in expr.fields)
        return "{" + inner + "}"
    return repr(expr)


def _format_value(value) -> str:
    if isinstance(value, Expression):
        return format_expression(value)
    if isinstance(value, list):
        return "[" + ", ".join(_format_value(item) for item in value) + "]"
    if isinstance(value, tuple):
        return "(" + ", ".join(_format_value(item) for item in value) + ")"
    return repr(value)


def pretty_print_annotation_node(node: AnnotationNode, indent: int = 0) -> str:
    """Render one annotation node as ``Keyword: field=value, ...``"""
    parts = [f"{f.name}={_format_value(getattr(node, f.name))}" for f in fields(node)]
    line = f"{INDENT * indent}{type(node).__name__}"
    if parts:
        line += ": " + ", ".join(parts)
    return line + "\n"


def pretty_print_annotation_ast(nodes: Sequence[AnnotationNode], indent: int = 0) -> str:
    """Render the annotation tree"""
    output = f"{INDENT * indent}--- Annotation AST ---\n"
    for node in nodes:
        output += pretty_print_annotation_node(node, indent + 1)
    return output


def pretty_print_code_node(node: CodeNode, indent: int = 0) -> str:
    """Render one code node and its nested blocks

    Args:
        node: Code tree node
        indent: Nesting level

    Returns:
        Indented multi-line text
    """
    pad = INDENT * indent
    name = type(node).__name__
    label_field = _LABEL_FIELDS.get(name)
    header = f"{pad}{name}"
    if label_field:
        header += f": {getattr(node, label_field)}"
    lines: List[str] = [header]

    doc = getattr(node, "doc", None)
    if doc:
        lines.append(f"{pad}{INDENT}Doc: {doc}")
    annotations = getattr(node, "annotations", None)
    if annotations:
        lines.append(f"{pad}{INDENT}Annotations:")
        for annotation in annotations:
            lines.append(pretty_print_annotation_node(annotation, indent + 2).rstrip("\n"))

    if isinstance(node, FunctionDef):
        if node.is_local:
            lines.append(f"{pad}{INDENT}Local: true")
        params = ", ".join(f"{p.name}: {p.type_info.lua_type()}" for p in node.params)
        lines.append(f"{pad}{INDENT}Params: ({params})")
        if node.return_types:
            returns = ", ".join(t.lua_type() for t in node.return_types)
            lines.append(f"{pad}{INDENT}Returns: {returns}")
    if isinstance(node, ModuleDeclaration) and node.exports:
        lines.append(f"{pad}{INDENT}Exports:")
        for export in node.exports:
            lines.append(f"{pad}{INDENT * 2}{export.name} : {export.type_info.lua_type()}")

    for f in fields(node):
        if f.name in _SKIPPED_FIELDS or f.name == label_field or f.name == "is_local":
            continue
        value = getattr(node, f.name)
        if value is None and isinstance(node, ForNumeric):
            continue
        lines.append(f"{pad}{INDENT}{f.name.capitalize()}: {_format_value(value)}")

    output = "\n".join(lines) + "\n"
    for label, block in _labelled_blocks(node):
        output += f"{pad}{INDENT}{label}:\n"
        for child in block:
            output += pretty_print_code_node(child, indent + 2)
    return output


def _labelled_blocks(node: CodeNode):
    if isinstance(node, IfStatement):
        yield "Then", node.then_block
        if node.else_block is not None:
            yield "Else", node.else_block
    elif hasattr(node, "body"):
        yield "Body", node.body


def pretty_print_code_ast(nodes: Sequence[CodeNode], indent: int = 0) -> str:
    """Render the code tree"""
    output = f"{INDENT * indent}--- Code AST ---\n"
    for node in nodes:
        output += pretty_print_code_node(node, indent + 1)
    return output


def pretty_print_merged(code_nodes: Sequence[CodeNode],
                        annotation_nodes: Sequence[AnnotationNode]) -> str:
    """Render both trees one after the other"""
    output = "=== Merged AST ===\n\n"
    output += "---- Code AST ----\n"
    output += pretty_print_code_ast(code_nodes)
    output += "\n---- Annotation AST ----\n"
    output += pretty_print_annotation_ast(annotation_nodes)
    return output


def pretty_print_tokens(tokens: Sequence[Token]) -> str:
    """Render a token stream, one token per line with its position"""
    lines = []
    for token in tokens:
        where = f"{token.span.line}:{token.span.column}"
        text = token.name if token.kind == TokenKind.IDENTIFIER else token.text
        line = f"{where:>8} {token.kind.name:<20} {text!r}"
        if token.subtokens:
            subs = " ".join(f"{sub.kind.name}({sub.value!r})" for sub in token.subtokens)
            line += f"  [{subs}]"
        lines.append(line)
    return "\n".join(lines) + ("\n" if lines else "")
