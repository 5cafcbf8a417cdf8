"""Tests for the Lua code tokenizer"""

import pytest

from lua_commenter.core.lexer import Lexer
from lua_commenter.core.tokens import TokenKind
from lua_commenter.tokenizer.code_tokenizer import CommentKind, classify_comment, tokenize


def kinds(source):
    return [token.kind for token in tokenize(source)]


class TestCodeTokens:
    """Test suite for code token scanning"""

    def test_empty_source(self):
        """Test empty and whitespace-only input yield no tokens"""
        assert tokenize("") == []
        assert tokenize("  \n\t \n") == []

    def test_keywords_and_identifiers(self):
        """Test reserved words become keywords, other words identifiers"""
        tokens = tokenize("local function foo_1 end")
        assert [t.kind for t in tokens] == [
            TokenKind.KEYWORD, TokenKind.KEYWORD, TokenKind.IDENTIFIER, TokenKind.KEYWORD,
        ]
        assert tokens[2].name == "foo_1"
        assert tokens[2].parts == ["foo_1"]
        assert tokens[0].is_keyword("local")

    def test_require_is_keyword(self):
        """Test require is scanned as a keyword"""
        assert tokenize("require")[0].is_keyword("require")

    def test_assignment_vs_equality(self):
        """Test single = is assignment and == an operator"""
        tokens = tokenize("a = b == c")
        assert tokens[1].kind == TokenKind.ASSIGNMENT
        assert tokens[3].is_operator("==")

    @pytest.mark.parametrize("symbol", ["~=", "<=", ">=", "..", "//", "::"])
    def test_two_character_operators(self, symbol):
        """Test two-character operators are single tokens"""
        tokens = tokenize(f"a {symbol} b")
        assert len(tokens) == 3
        assert tokens[1].is_operator(symbol)

    def test_dotted_access_is_split(self):
        """Test member access yields identifier, dot, identifier"""
        tokens = tokenize("M.get")
        assert [t.kind for t in tokens] == [
            TokenKind.IDENTIFIER, TokenKind.OPERATOR, TokenKind.IDENTIFIER,
        ]
        assert tokens[1].is_operator(".")

    def test_vararg(self):
        """Test three dots form a vararg token"""
        tokens = tokenize("function f(...) end")
        assert TokenKind.VARARG in [t.kind for t in tokens]

    def test_brackets(self):
        """Test each bracket has its own kind"""
        assert kinds("( ) { } [ ]") == [
            TokenKind.PAREN_OPEN, TokenKind.PAREN_CLOSE,
            TokenKind.BRACE_OPEN, TokenKind.BRACE_CLOSE,
            TokenKind.BRACKET_OPEN, TokenKind.BRACKET_CLOSE,
        ]

    def test_numbers(self):
        """Test integer and fractional numbers"""
        tokens = tokenize("42 3.14")
        assert [t.text for t in tokens] == ["42", "3.14"]
        assert all(t.kind == TokenKind.NUMBER for t in tokens)

    def test_number_before_concat(self):
        """Test a dot not followed by a digit ends the number"""
        tokens = tokenize("1..x")
        assert tokens[0].text == "1"
        assert tokens[1].is_operator("..")

    def test_strings_keep_escapes(self):
        """Test quoted strings keep their escapes verbatim"""
        tokens = tokenize(r'"a\"b" ' + "'c'")
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].text == r'a\"b'
        assert tokens[1].text == "c"

    def test_long_string(self):
        """Test long bracket strings become string tokens"""
        tokens = tokenize("x = [[multi\nline]] y = [==[a]]b]==]")
        strings = [t for t in tokens if t.kind == TokenKind.STRING]
        assert [t.text for t in strings] == ["multi\nline", "a]]b"]

    def test_unterminated_string(self):
        """Test unterminated string runs to end of input"""
        tokens = tokenize('"open')
        assert len(tokens) == 1
        assert tokens[0].text == "open"


class TestComments:
    """Test suite for comment scanning"""

    def test_line_comment(self):
        """Test line comment text excludes the dashes"""
        tokens = tokenize("-- hello\nx")
        assert tokens[0].kind == TokenKind.COMMENT
        assert tokens[0].text == " hello"
        assert tokens[1].kind == TokenKind.IDENTIFIER

    def test_block_comment(self):
        """Test block comment body between markers"""
        tokens = tokenize("--[[ body\nmore --]] x")
        assert tokens[0].kind == TokenKind.BLOCK_COMMENT
        assert tokens[0].text == " body\nmore "
        assert tokens[1].name == "x"

    def test_block_comment_is_single_token(self):
        """Test markers are not emitted as tokens of their own"""
        tokens = tokenize("--[[ note --]]")
        assert [t.kind for t in tokens] == [TokenKind.BLOCK_COMMENT]
        assert tokens[0].span.start == 0

    def test_unterminated_block_comment(self):
        """Test unterminated block comment consumes the rest"""
        tokens = tokenize("--[[ foo")
        assert len(tokens) == 1
        assert tokens[0].kind == TokenKind.BLOCK_COMMENT
        assert tokens[0].text == " foo"

    def test_annotation_line(self):
        """Test annotation keeps full text and sub-tokens"""
        tokens = tokenize("---@param x number\nlocal y")
        assert tokens[0].kind == TokenKind.ANNOTATION
        assert tokens[0].text == "---@param x number"
        assert tokens[0].prefix == "---@"
        assert tokens[1].is_keyword("local")

    def test_variant_line(self):
        """Test ---| lines are annotations"""
        token = tokenize('---| "left"')[0]
        assert token.kind == TokenKind.ANNOTATION
        assert token.prefix == "---|"

    def test_triple_dash_without_marker_is_comment(self):
        """Test plain --- text is a line comment"""
        token = tokenize("--- just text")[0]
        assert token.kind == TokenKind.COMMENT
        assert token.text == "- just text"

    def test_carriage_return_stripped(self):
        """Test CRLF line endings do not leak into comment text"""
        tokens = tokenize("-- note\r\n---@type string\r\n")
        assert tokens[0].text == " note"
        assert tokens[1].text == "---@type string"

    @pytest.mark.parametrize("source,expected", [
        ("--[[x", CommentKind.BLOCK),
        ("---@x", CommentKind.ANNOTATION),
        ("---|x", CommentKind.ANNOTATION),
        ("-- x", CommentKind.LINE),
        ("---", CommentKind.LINE),
        ("--[x", CommentKind.LINE),
    ])
    def test_classify_comment(self, source, expected):
        """Test the comment decision table"""
        lexer = Lexer(source)
        assert classify_comment(lexer) == expected
        assert lexer.pos == 0


class TestSpans:
    """Test suite for token positions"""

    def test_line_and_column(self):
        """Test tokens report 1-based line and column"""
        tokens = tokenize("local x\n  return x")
        ret = tokens[2]
        assert (ret.span.line, ret.span.column) == (2, 3)
        assert ret.span.start == 10
        assert ret.span.end == 16

    def test_spans_are_monotonic(self):
        """Test spans never overlap and appear in source order"""
        source = (
            "---@param a number\n"
            "local function add(a, b) -- sum\n"
            "  return a + b .. 'x'\n"
            "end\n"
            "--[[ block --]]\n"
        )
        tokens = tokenize(source)
        for previous, current in zip(tokens, tokens[1:]):
            assert previous.span.end <= current.span.start
        for token in tokens:
            assert token.span.start < token.span.end
