"""Tests for the annotation parser"""

import pytest

from lua_commenter.core.annotation_nodes import (
    Alias, As, Async, Cast, Class, Deprecated, Diagnostic, Enum, Field,
    Generic, Meta, Module, Nodiscard, Operator, Overload, Package, Param,
    Private, Protected, Return, See, Source, Type, Vararg, Version,
)
from lua_commenter.core.diagnostics import DiagnosticKind, DiagnosticLogger
from lua_commenter.parser.annotation_parser import (
    AnnotationParser, parse_annotation_line, parse_annotations,
)
from lua_commenter.tokenizer.annotation_tokenizer import tokenize_annotation
from lua_commenter.tokenizer.code_tokenizer import tokenize


def parse_line(line):
    return parse_annotation_line(line, tokenize_annotation(line))


def parse_source(source):
    diagnostics = DiagnosticLogger()
    nodes = AnnotationParser(tokenize(source), diagnostics).parse()
    return nodes, diagnostics


class TestLineGrammars:
    """Test suite for per-keyword sub-parsers"""

    @pytest.mark.parametrize("line,expected", [
        ("---@param x number", Param("x", "number")),
        ("---@param name string|nil The user name",
         Param("name", "string|nil", "The user name")),
        ("---@param cb fun(a: number): string # Callback",
         Param("cb", "fun(a: number): string", "Callback")),
        ("---@param list string[]", Param("list", "string[]")),
        ("---@param opt? table<string, number>", Param("opt?", "table<string, number>")),
        ("---@param ... any", Param("...", "any")),
        ("---@return number", Return("number")),
        ("---@return string, number ok Success flag",
         Return("string, number", "ok", "Success flag")),
        ("---@type string|number", Type("string|number")),
        ("---@vararg string", Vararg("string")),
        ("---@overload fun(a: string): number", Overload("fun(a: string): number")),
        ("---@as integer", As("integer")),
        ("---@see other.func", See("other.func")),
        ("---@source file.lua:10", Source("file.lua:10")),
        ("---@module 'socket'", Module("socket")),
        ("---@meta", Meta(None)),
        ("---@meta builtin", Meta("builtin")),
        ("---@operator add(Vec): Vec", Operator("add", "(Vec): Vec")),
        ("---@async", Async()),
        ("---@deprecated", Deprecated()),
        ("---@nodiscard", Nodiscard()),
        ("---@package", Package()),
        ("---@private", Private()),
        ("---@protected", Protected()),
    ])
    def test_simple_lines(self, line, expected):
        """Test each keyword grammar on a typical line"""
        assert parse_line(line) == expected

    def test_class_with_parents(self):
        """Test class name, exact modifier and parent list"""
        node = parse_line("---@class (exact) Point : Shape, Base")
        assert node == Class("Point", parents=["Shape", "Base"], exact=True)

    def test_class_exact_after_name(self):
        """Test exact modifier may follow the name"""
        assert parse_line("---@class Point (exact)").exact is True

    def test_class_dotted_name(self):
        """Test dotted class names are kept whole"""
        assert parse_line("---@class my.pkg.Thing").name == "my.pkg.Thing"

    def test_field_with_scope(self):
        """Test scope word is taken only when a name and type follow"""
        node = parse_line("---@field private count integer Number of items")
        assert node == Field("count", "integer", "private", "Number of items")

    def test_field_named_like_scope(self):
        """Test a field called 'private' is not a scope"""
        assert parse_line("---@field private integer") == Field("private", "integer")

    def test_field_without_type(self):
        """Test missing field type defaults to any"""
        assert parse_line("---@field name") == Field("name")

    def test_cast(self):
        """Test added and removed cast types"""
        node = parse_line("---@cast x +string, -nil")
        assert node == Cast("x", [("string", True), ("nil", False)])

    def test_cast_plain_type(self):
        """Test a cast without sign adds the type"""
        assert parse_line("---@cast x string").casts == [("string", True)]

    def test_diagnostic(self):
        """Test hyphenated actions and diagnostic names"""
        node = parse_line("---@diagnostic disable-next-line: undefined-global")
        assert node == Diagnostic("disable-next-line", "undefined-global")

    def test_diagnostic_without_name(self):
        """Test diagnostic action alone"""
        assert parse_line("---@diagnostic disable") == Diagnostic("disable")

    @pytest.mark.parametrize("line,expected", [
        ("---@version 5.1", Version("5.1")),
        ("---@version >5.2", Version("5.2", ">")),
        ("---@version >=5.2", Version("5.2", ">=")),
        ("---@version <JIT", Version("JIT", "<")),
    ])
    def test_version(self, line, expected):
        """Test version with optional comparison"""
        assert parse_line(line) == expected

    def test_enum_key_modifier(self):
        """Test enum with key modifier"""
        assert parse_line("---@enum (key) Color") == Enum("Color", key=True)

    def test_inline_alias(self):
        """Test top-level union members become variants"""
        node = parse_line('---@alias Mode "r"|"w" # Access modes')
        assert node == Alias("Mode", [('"r"', None), ('"w"', "Access modes")])

    def test_inline_alias_keeps_nested_pipes(self):
        """Test pipes inside parentheses do not split variants"""
        node = parse_line("---@alias Handler fun(x: string|nil): boolean")
        assert node.variants == [("fun(x: string|nil): boolean", None)]

    def test_one_line_alias_variants(self):
        """Test every pipe after the name opens a new variant"""
        node = parse_line('---@alias Mode | "a" | "b" # second')
        assert node == Alias("Mode", [('"a"', None), ('"b"', "second")])

    def test_one_line_alias_descriptions_stay_with_variant(self):
        """Test a description ends at the next variant"""
        node = parse_line("---@alias Side | left # Left side | right # Right side")
        assert node.variants == [("left", "Left side"), ("right", "Right side")]

    def test_one_line_enum_members(self):
        """Test several enum members on the keyword line"""
        assert parse_line("---@enum Color | red | green") == \
            Enum("Color", members=[("red", None), ("green", None)])

    def test_one_line_enum_with_key(self):
        """Test key modifier followed by inline members"""
        node = parse_line("---@enum (key) Color | red # Stop | green")
        assert node == Enum("Color", key=True, members=[("red", "Stop"), ("green", None)])

    def test_unknown_keyword_is_generic(self):
        """Test unrecognized keywords fall back to Generic"""
        assert parse_line("---@custom stuff here") == Generic("custom", "stuff here")

    def test_generic_keyword(self):
        """Test @generic keeps its content text"""
        assert parse_line("---@generic T : table") == Generic("generic", "T : table")

    def test_missing_keyword(self):
        """Test a line without keyword identifier"""
        assert parse_line("---@ 123") == Generic("", "123")

    def test_keyword_case_insensitive(self):
        """Test keywords match regardless of case"""
        assert parse_line("---@Param x number") == Param("x", "number")

    @pytest.mark.parametrize("line", [
        "---@param",
        "---@param x",
        "---@return",
        "---@class",
        "---@type",
        "---@see",
    ])
    def test_grammar_not_met(self, line):
        """Test incomplete lines give no node"""
        assert parse_line(line) is None


class TestAnnotationParser:
    """Test suite for AnnotationParser over token streams"""

    def test_alias_with_variant_lines(self):
        """Test variant lines extend the preceding alias"""
        source = (
            "---@alias DeviceSide\n"
            "---| '\"left\"' # The left side of the device\n"
            "---| '\"right\"' # The right side of the device\n"
        )
        nodes, diagnostics = parse_source(source)
        assert nodes == [Alias("DeviceSide", [
            ("'\"left\"'", "The left side of the device"),
            ("'\"right\"'", "The right side of the device"),
        ])]
        assert diagnostics.records == []

    def test_enum_members(self):
        """Test variant lines extend the preceding enum"""
        nodes, _ = parse_source("---@enum Color\n---| red\n---| green # Go\n")
        assert nodes[0].members == [("red", None), ("green", "Go")]

    def test_variant_line_with_several_values(self):
        """Test one variant line may list several pipe-separated values"""
        nodes, diagnostics = parse_source("---@alias Mode\n---| 'r' | 'w' # Write\n")
        assert nodes == [Alias("Mode", [("'r'", None), ("'w'", "Write")])]
        assert diagnostics.records == []

    def test_variant_without_owner(self):
        """Test stray variant line is reported"""
        nodes, diagnostics = parse_source("---| 'x'\n")
        assert nodes == []
        assert len(diagnostics.records) == 1
        assert diagnostics.records[0].kind == DiagnosticKind.ANNOTATION

    def test_code_closes_open_alias(self):
        """Test a code token between alias and variant ends the alias"""
        nodes, diagnostics = parse_source("---@alias A\nlocal x = 1\n---| 'v'\n")
        assert nodes == [Alias("A")]
        assert len(diagnostics.records) == 1

    def test_empty_variant_line(self):
        """Test variant line with no value is reported"""
        nodes, diagnostics = parse_source("---@alias A\n---|\n")
        assert nodes == [Alias("A")]
        assert diagnostics.records[0].reason == "empty variant line"

    def test_malformed_line_reported(self):
        """Test lines failing their grammar are dropped and reported"""
        nodes, diagnostics = parse_source("---@param\n---@type string\n")
        assert nodes == [Type("string")]
        assert diagnostics.records[0].reason == "malformed annotation '---@param'"
        assert diagnostics.records[0].span.line == 1

    def test_code_tokens_ignored(self):
        """Test nodes come only from annotation lines, in order"""
        source = (
            "-- plain\n"
            "---@param a number\n"
            "local function f(a)\n"
            "  ---@type string\n"
            "  local s = 'x'\n"
            "end\n"
        )
        nodes = parse_annotations(tokenize(source))
        assert nodes == [Param("a", "number"), Type("string")]
