"""Character cursor for lua_commenter

The lexer holds the whole input and a cursor with line/column
tracking. Every scanning stage (code tokenizer, annotation
sub-tokenizer) reads characters through it.

All collect operations stop at end of input when their terminator
never appears and return what was accumulated; an unterminated
construct is never an error.
"""

from typing import Callable


class Lexer:
    """Cursor over the characters of a source string"""

    __slots__ = ("source", "pos", "line", "column")

    def __init__(self, source: str) -> None:
        """Initialize lexer

        Args:
            source: Text to scan
        """
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self) -> str:
        """Return the current character without consuming it ('' at end)"""
        return self.peek_n(0)

    def peek_n(self, n: int) -> str:
        """Return the character n positions ahead ('' past the end)"""
        idx = self.pos + n
        if idx >= len(self.source):
            return ""
        return self.source[idx]

    def advance(self) -> str:
        """Consume and return the current character

        A newline moves to the next line and resets the column to 1.

        Returns:
            Consumed character, or '' at end of input
        """
        if self.pos >= len(self.source):
            return ""
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def advance_by(self, n: int) -> None:
        for _ in range(n):
            self.advance()

    def consume_whitespace(self) -> None:
        while not self.at_end() and self.peek().isspace():
            self.advance()

    def collect_while(self, predicate: Callable[[str], bool]) -> str:
        """Consume characters while predicate holds

        Args:
            predicate: Test applied to each character

        Returns:
            Collected characters
        """
        start = self.pos
        while not self.at_end() and predicate(self.peek()):
            self.advance()
        return self.source[start:self.pos]

    def collect_until(self, delimiter: str) -> str:
        """Consume characters up to (not including) a delimiter character"""
        return self.collect_while(lambda ch: ch != delimiter)

    def collect_until_str(self, delimiter: str) -> str:
        """Consume characters up to (not including) a delimiter string

        Args:
            delimiter: Terminating string

        Returns:
            Collected characters; the rest of the input if the
            delimiter never appears
        """
        start = self.pos
        end = self.source.find(delimiter, self.pos)
        if end == -1:
            end = len(self.source)
        self.advance_by(end - start)
        return self.source[start:end]
