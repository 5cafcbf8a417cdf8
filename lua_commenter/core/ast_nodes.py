"""Code syntax tree for lua_commenter

Statement nodes produced by the code parser. Nodes that can carry
documentation keep the preceding plain comment in ``doc`` and an
initially empty list of attached annotation nodes; the list is filled
by a caller that associates the two trees, never by the parsers.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from lua_commenter.core.annotation_nodes import AnnotationNode
from lua_commenter.core.tokens import Span
from lua_commenter.core.type_system import ExportItem, TypeInfo, UNKNOWN


class Expression:
    """Base class of expression nodes"""


@dataclass
class Identifier(Expression):
    name: str


@dataclass
class Literal(Expression):
    value: str


@dataclass
class FunctionCall(Expression):
    callee: str
    args: List[Expression] = field(default_factory=list)


@dataclass
class TableExpression(Expression):
    """Table constructor in expression position; values may be None when not modeled"""
    fields: List[Tuple[str, Optional[Expression]]] = field(default_factory=list)


class CodeNode:
    """Base class of statement nodes"""

    span: Optional[Span]


@dataclass
class Parameter:
    name: str
    type_info: TypeInfo = UNKNOWN


@dataclass
class ModuleDeclaration(CodeNode):
    """``local M = { ... }``; exports are the table's field names"""
    name: str
    exports: List[ExportItem] = field(default_factory=list)
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class FunctionDef(CodeNode):
    name: str
    params: List[Parameter] = field(default_factory=list)
    return_types: List[TypeInfo] = field(default_factory=list)
    body: List[CodeNode] = field(default_factory=list)
    is_local: bool = False
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class VariableDeclaration(CodeNode):
    name: str
    value: Optional[Expression] = None
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class ReturnStatement(CodeNode):
    values: List[Expression] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class Comment(CodeNode):
    text: str
    span: Optional[Span] = None


@dataclass
class TableConstructor(CodeNode):
    fields: List[Tuple[str, Expression]] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class Assignment(CodeNode):
    targets: List[str]
    values: List[Expression] = field(default_factory=list)
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class IfStatement(CodeNode):
    """``elseif`` chains are nested IfStatements inside ``else_block``"""
    condition: Expression
    then_block: List[CodeNode] = field(default_factory=list)
    else_block: Optional[List[CodeNode]] = None
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class WhileLoop(CodeNode):
    condition: Expression
    body: List[CodeNode] = field(default_factory=list)
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class ForNumeric(CodeNode):
    var: str
    start: Expression
    end: Expression
    step: Optional[Expression] = None
    body: List[CodeNode] = field(default_factory=list)
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class DoBlock(CodeNode):
    body: List[CodeNode] = field(default_factory=list)
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class RepeatUntil(CodeNode):
    body: List[CodeNode] = field(default_factory=list)
    condition: Optional[Expression] = None
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


@dataclass
class FunctionCallStmt(CodeNode):
    call: FunctionCall
    doc: Optional[str] = None
    annotations: List[AnnotationNode] = field(default_factory=list)
    span: Optional[Span] = None


def child_blocks(node: CodeNode) -> List[List[CodeNode]]:
    """Get the nested statement blocks a node owns

    Args:
        node: Statement node

    Returns:
        List of child blocks, in source order
    """
    if isinstance(node, IfStatement):
        blocks = [node.then_block]
        if node.else_block is not None:
            blocks.append(node.else_block)
        return blocks
    if isinstance(node, (FunctionDef, WhileLoop, ForNumeric, DoBlock, RepeatUntil)):
        return [node.body]
    return []
