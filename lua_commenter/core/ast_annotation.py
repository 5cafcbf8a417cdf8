"""AST annotation layer for lua_commenter

Associates the two syntax trees: each code node that can carry
documentation receives the annotation lines written directly above it.
Neither parser does this on its own.
"""

from typing import Dict, List, Optional, Sequence

from lua_commenter.core.ast_nodes import CodeNode, child_blocks
from lua_commenter.core.diagnostics import DiagnosticLogger
from lua_commenter.core.tokens import Token, TokenKind
from lua_commenter.parser.annotation_parser import AnnotationParser

# Tokens that may sit in the comment block directly above a node
_LEADING_KINDS = (TokenKind.ANNOTATION, TokenKind.COMMENT)


def leading_comment_tokens(tokens: Sequence[Token], index: int) -> List[Token]:
    """Get the contiguous comment and annotation lines right above a token

    Args:
        tokens: Unified token stream
        index: Index of the node's first code token

    Returns:
        Comment/annotation tokens in source order; stops at the first
        code token or blank line
    """
    collected: List[Token] = []
    expected_line = tokens[index].span.line - 1
    pos = index - 1
    while pos >= 0:
        token = tokens[pos]
        if token.kind not in _LEADING_KINDS or token.span.line != expected_line:
            break
        collected.append(token)
        expected_line -= 1
        pos -= 1
    collected.reverse()
    return collected


def attach_annotations(nodes: Sequence[CodeNode], tokens: Sequence[Token],
                       diagnostics: Optional[DiagnosticLogger] = None) -> None:
    """Fill ``annotations`` of every documentable node from the lines above it

    Nested blocks are handled too, so a function inside a module body
    gets its own annotations.

    Args:
        nodes: Code tree
        tokens: Token stream the tree was parsed from
        diagnostics: Sink for annotation lines that fail to parse
    """
    index_by_start: Dict[int, int] = {
        token.span.start: idx for idx, token in enumerate(tokens)
        if token.kind not in _LEADING_KINDS
    }
    _attach_block(nodes, tokens, index_by_start, diagnostics)


def _attach_block(nodes: Sequence[CodeNode], tokens: Sequence[Token],
                  index_by_start: Dict[int, int],
                  diagnostics: Optional[DiagnosticLogger]) -> None:
    for node in nodes:
        span = getattr(node, "span", None)
        if hasattr(node, "annotations") and span is not None and span.start in index_by_start:
            leading = leading_comment_tokens(tokens, index_by_start[span.start])
            if any(token.kind == TokenKind.ANNOTATION for token in leading):
                node.annotations = AnnotationParser(leading, diagnostics).parse()
        for block in child_blocks(node):
            _attach_block(block, tokens, index_by_start, diagnostics)
