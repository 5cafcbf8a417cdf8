"""Token model for lua_commenter

Defines source spans, the unified code token stream and the
sub-tokens produced from a single annotation line.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Span:
    """Source position of a token

    Attributes:
        start: Character offset of the first character
        end: Exclusive end offset
        line: 1-based line of the first character
        column: 1-based column of the first character
    """
    start: int
    end: int
    line: int
    column: int


class TokenKind(Enum):
    """Token categories in the unified stream"""
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    ASSIGNMENT = "assignment"
    ANNOTATION = "annotation"
    BLOCK_COMMENT = "block_comment"
    COMMENT = "comment"
    STRING = "string"
    NUMBER = "number"
    VARARG = "vararg"
    PAREN_OPEN = "paren_open"
    PAREN_CLOSE = "paren_close"
    BRACE_OPEN = "brace_open"
    BRACE_CLOSE = "brace_close"
    BRACKET_OPEN = "bracket_open"
    BRACKET_CLOSE = "bracket_close"


class SubTokenKind(Enum):
    """Sub-token categories inside one annotation line"""
    PREFIX = "prefix"
    IDENTIFIER = "identifier"
    COLON = "colon"
    COMMA = "comma"
    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"
    OPEN_PAREN = "open_paren"
    CLOSE_PAREN = "close_paren"
    OPERATOR = "operator"
    TEXT = "text"


@dataclass
class AnnotationSubToken:
    """A structural unit of an annotation line

    Identifiers keep their dotted segments in ``parts``; every other
    kind keeps its source characters in ``text``. ``offset`` is the
    position of the sub-token inside the annotation line.
    """
    kind: SubTokenKind
    text: str = ""
    parts: List[str] = field(default_factory=list)
    offset: int = 0

    @property
    def value(self) -> str:
        """Source text of the sub-token (dotted for identifiers)"""
        if self.kind == SubTokenKind.IDENTIFIER:
            return ".".join(self.parts)
        return self.text

    def is_operator(self, symbol: str) -> bool:
        return self.kind == SubTokenKind.OPERATOR and self.text == symbol


@dataclass
class Token:
    """A token of the unified code stream

    Attributes:
        kind: Token category
        span: Source position
        text: Token text (keyword, operator symbol, literal body, comment text)
        parts: Dotted name segments for identifiers
        subtokens: Parsed sub-tokens for annotation tokens
    """
    kind: TokenKind
    span: Span
    text: str = ""
    parts: List[str] = field(default_factory=list)
    subtokens: List[AnnotationSubToken] = field(default_factory=list)

    @property
    def name(self) -> str:
        """Dotted identifier name, or the token text for other kinds"""
        if self.kind == TokenKind.IDENTIFIER:
            return ".".join(self.parts)
        return self.text

    def is_keyword(self, word: str) -> bool:
        return self.kind == TokenKind.KEYWORD and self.text == word

    def is_operator(self, symbol: str) -> bool:
        return self.kind == TokenKind.OPERATOR and self.text == symbol

    @property
    def prefix(self) -> Optional[str]:
        """Annotation marker (``---@`` or ``---|``) if present"""
        if self.subtokens and self.subtokens[0].kind == SubTokenKind.PREFIX:
            return self.subtokens[0].text
        return None
