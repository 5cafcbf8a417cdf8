"""Code tokenizer for lua_commenter

Scans Lua source into the unified token stream: code tokens, plain
comments, block comments and annotation lines (the latter carrying
their sub-tokens).
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from lua_commenter.core.lexer import Lexer
from lua_commenter.core.tokens import Span, Token, TokenKind
from lua_commenter.tokenizer.annotation_tokenizer import tokenize_annotation

KEYWORDS: FrozenSet[str] = frozenset([
    "and", "break", "do", "else", "elseif", "end", "false", "for",
    "function", "if", "in", "local", "nil", "not", "or", "repeat",
    "return", "then", "true", "until", "while", "require",
])

BRACKETS: Dict[str, TokenKind] = {
    "(": TokenKind.PAREN_OPEN,
    ")": TokenKind.PAREN_CLOSE,
    "{": TokenKind.BRACE_OPEN,
    "}": TokenKind.BRACE_CLOSE,
    "[": TokenKind.BRACKET_OPEN,
    "]": TokenKind.BRACKET_CLOSE,
}

# Checked longest first; "=" alone is an assignment.
MULTI_CHAR_OPERATORS: Tuple[str, ...] = ("==", "~=", "<=", ">=", "..", "//", "::", "<<", ">>")

BLOCK_COMMENT_OPEN = "--[["
BLOCK_COMMENT_CLOSE = "--]]"


class CommentKind(Enum):
    """What a run starting with ``--`` turns out to be"""
    LINE = "line"
    BLOCK = "block"
    ANNOTATION = "annotation"


# Decision table for a run starting with "--": the characters right
# after the two dashes select the comment kind. First match wins.
COMMENT_DECISIONS: Tuple[Tuple[str, CommentKind], ...] = (
    ("[[", CommentKind.BLOCK),
    ("-@", CommentKind.ANNOTATION),
    ("-|", CommentKind.ANNOTATION),
)


def classify_comment(lexer: Lexer) -> CommentKind:
    """Classify the comment starting at the lexer cursor

    The cursor must be on the first of two dashes; it is not moved.
    """
    for lookahead, kind in COMMENT_DECISIONS:
        if all(lexer.peek_n(2 + i) == ch for i, ch in enumerate(lookahead)):
            return kind
    return CommentKind.LINE


class CodeTokenizer:
    """Turns Lua source text into a token stream"""

    def __init__(self, source: str) -> None:
        self.lexer = Lexer(source)
        self.tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        """Scan the whole input

        Returns:
            Tokens in source order
        """
        lexer = self.lexer
        while not lexer.at_end():
            ch = lexer.peek()
            if ch.isspace():
                lexer.consume_whitespace()
            elif ch == "-" and lexer.peek_n(1) == "-":
                self._read_comment()
            elif ch.isalpha() or ch == "_":
                self._read_word()
            elif ch.isdigit():
                self._read_number()
            elif ch in ("'", '"'):
                self._read_string(ch)
            elif ch == "[" and lexer.peek_n(1) in ("[", "="):
                self._read_long_string()
            else:
                self._read_symbol()
        return self.tokens

    def _emit(self, kind: TokenKind, start: Tuple[int, int, int], **kwargs) -> Token:
        pos, line, column = start
        token = Token(kind, Span(pos, self.lexer.pos, line, column), **kwargs)
        self.tokens.append(token)
        return token

    def _mark(self) -> Tuple[int, int, int]:
        return self.lexer.pos, self.lexer.line, self.lexer.column

    def _read_comment(self) -> None:
        lexer = self.lexer
        start = self._mark()
        kind = classify_comment(lexer)
        if kind == CommentKind.BLOCK:
            lexer.advance_by(len(BLOCK_COMMENT_OPEN))
            body = lexer.collect_until_str(BLOCK_COMMENT_CLOSE)
            lexer.advance_by(len(BLOCK_COMMENT_CLOSE))
            self._emit(TokenKind.BLOCK_COMMENT, start, text=body)
        elif kind == CommentKind.ANNOTATION:
            line_text = lexer.collect_until("\n").rstrip("\r")
            self._emit(
                TokenKind.ANNOTATION, start,
                text=line_text, subtokens=tokenize_annotation(line_text),
            )
        else:
            lexer.advance_by(2)
            text = lexer.collect_until("\n").rstrip("\r")
            self._emit(TokenKind.COMMENT, start, text=text)

    def _read_word(self) -> None:
        start = self._mark()
        word = self.lexer.collect_while(lambda c: c.isalnum() or c == "_")
        if word in KEYWORDS:
            self._emit(TokenKind.KEYWORD, start, text=word)
        else:
            self._emit(TokenKind.IDENTIFIER, start, text=word, parts=[word])

    def _read_number(self) -> None:
        lexer = self.lexer
        start = self._mark()
        number = lexer.collect_while(str.isdigit)
        if lexer.peek() == "." and lexer.peek_n(1).isdigit():
            lexer.advance()
            number += "." + lexer.collect_while(str.isdigit)
        self._emit(TokenKind.NUMBER, start, text=number)

    def _read_string(self, quote: str) -> None:
        """Read a quoted string verbatim; escapes are kept, not decoded"""
        lexer = self.lexer
        start = self._mark()
        lexer.advance()
        chars = []
        while not lexer.at_end() and lexer.peek() != quote:
            ch = lexer.advance()
            chars.append(ch)
            if ch == "\\" and not lexer.at_end():
                chars.append(lexer.advance())
        lexer.advance()
        self._emit(TokenKind.STRING, start, text="".join(chars))

    def _read_long_string(self) -> None:
        lexer = self.lexer
        start = self._mark()
        level = 0
        while lexer.peek_n(1 + level) == "=":
            level += 1
        if lexer.peek_n(1 + level) != "[":
            self._read_symbol()
            return
        lexer.advance_by(2 + level)
        body = lexer.collect_until_str("]" + "=" * level + "]")
        lexer.advance_by(2 + level)
        self._emit(TokenKind.STRING, start, text=body)

    def _read_symbol(self) -> None:
        lexer = self.lexer
        start = self._mark()
        ch = lexer.peek()
        if ch in BRACKETS:
            lexer.advance()
            self._emit(BRACKETS[ch], start, text=ch)
            return
        if ch == "." and lexer.peek_n(1) == "." and lexer.peek_n(2) == ".":
            lexer.advance_by(3)
            self._emit(TokenKind.VARARG, start, text="...")
            return
        pair = ch + lexer.peek_n(1)
        if pair in MULTI_CHAR_OPERATORS:
            lexer.advance_by(2)
            self._emit(TokenKind.OPERATOR, start, text=pair)
            return
        lexer.advance()
        if ch == "=":
            self._emit(TokenKind.ASSIGNMENT, start, text=ch)
        else:
            self._emit(TokenKind.OPERATOR, start, text=ch)


def tokenize(source: str) -> List[Token]:
    """Tokenize Lua source text"""
    return CodeTokenizer(source).tokenize()
