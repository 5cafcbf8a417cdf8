"""Annotation sub-tokenizer

Re-scans the text of one ``---@...`` or ``---|...`` line into
structured sub-tokens. It knows nothing about the surrounding code.
"""

from typing import Dict, List

from lua_commenter.core.lexer import Lexer
from lua_commenter.core.tokens import AnnotationSubToken, SubTokenKind

ANNOTATION_PREFIXES = ("---@", "---|")

PUNCTUATION: Dict[str, SubTokenKind] = {
    ":": SubTokenKind.COLON,
    ",": SubTokenKind.COMMA,
    "<": SubTokenKind.LESS_THAN,
    ">": SubTokenKind.GREATER_THAN,
    "(": SubTokenKind.OPEN_PAREN,
    ")": SubTokenKind.CLOSE_PAREN,
    "|": SubTokenKind.OPERATOR,
    "#": SubTokenKind.OPERATOR,
}


def is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _read_dotted_identifier(lexer: Lexer) -> List[str]:
    """Read an identifier whose dots only separate segments"""
    parts: List[str] = []
    current = ""
    while not lexer.at_end():
        ch = lexer.peek()
        if ch.isalnum() or ch == "_":
            current += ch
            lexer.advance()
        elif ch == ".":
            if current:
                parts.append(current)
                current = ""
            lexer.advance()
        else:
            break
    if current:
        parts.append(current)
    return parts


def tokenize_annotation(text: str) -> List[AnnotationSubToken]:
    """Split one annotation line into sub-tokens

    Args:
        text: Annotation line, starting with its ``---@``/``---|`` marker

    Returns:
        Sub-tokens in source order, the marker first
    """
    tokens: List[AnnotationSubToken] = []
    lexer = Lexer(text)
    lexer.consume_whitespace()

    for prefix in ANNOTATION_PREFIXES:
        if text.startswith(prefix, lexer.pos):
            tokens.append(AnnotationSubToken(SubTokenKind.PREFIX, text=prefix, offset=lexer.pos))
            lexer.advance_by(len(prefix))
            break

    while not lexer.at_end():
        ch = lexer.peek()
        offset = lexer.pos
        if ch.isspace():
            lexer.advance()
            continue
        if ch in PUNCTUATION:
            tokens.append(AnnotationSubToken(PUNCTUATION[ch], text=ch, offset=offset))
            lexer.advance()
            continue
        if is_identifier_start(ch):
            parts = _read_dotted_identifier(lexer)
            tokens.append(AnnotationSubToken(SubTokenKind.IDENTIFIER, parts=parts, offset=offset))
            continue
        run = lexer.collect_while(lambda c: not c.isspace() and c not in PUNCTUATION)
        tokens.append(AnnotationSubToken(SubTokenKind.TEXT, text=run, offset=offset))
    return tokens
