"""Tests for type representation and rendering"""

import pytest

from lua_commenter.core.type_system import (
    BOOLEAN, FUNCTION, NUMBER, STRING, TABLE, UNKNOWN,
    TypeInfo, TypeKind, function_of, optional, table_of, union,
)


class TestTypeRendering:
    """Test suite for TypeInfo.lua_type"""

    @pytest.mark.parametrize("type_info,expected", [
        (STRING, "string"),
        (NUMBER, "number"),
        (BOOLEAN, "boolean"),
        (TABLE, "table"),
        (FUNCTION, "function"),
        (UNKNOWN, "any"),
    ])
    def test_simple_types(self, type_info, expected):
        """Test plain kinds render as their EmmyLua names"""
        assert type_info.lua_type() == expected

    def test_union(self):
        """Test union members are pipe-joined in order"""
        assert union(STRING, NUMBER).lua_type() == "string|number"

    def test_optional(self):
        """Test optional renders with a trailing question mark"""
        assert optional(STRING).lua_type() == "string?"

    def test_table_with_fields(self):
        """Test parameterized table renders its fields"""
        table = table_of({"name": STRING, "age": NUMBER})
        assert table.lua_type() == "table<name: string, age: number>"

    def test_function_signature(self):
        """Test function signature renders params and returns"""
        func = function_of({"a": NUMBER, "b": UNKNOWN}, (STRING,))
        assert func.lua_type() == "fun(a: number, b: any) -> string"

    def test_function_signature_without_returns(self):
        """Test signature without returns omits the arrow"""
        assert function_of({"a": NUMBER}).lua_type() == "fun(a: number)"

    def test_every_kind_has_renderer(self):
        """Test each TypeKind renders without error"""
        for kind in TypeKind:
            assert isinstance(TypeInfo(kind).lua_type(), str)


class TestTypeQueries:
    """Test suite for TypeInfo helpers"""

    def test_needs_specification(self):
        """Test unknown and optional unknown need specification"""
        assert UNKNOWN.needs_specification()
        assert optional(UNKNOWN).needs_specification()
        assert not STRING.needs_specification()
        assert not optional(NUMBER).needs_specification()

    def test_unwrap_optional_one_level_only(self):
        """Test only a single Optional layer is removed"""
        nested = optional(optional(UNKNOWN))
        assert nested.unwrap_optional() == optional(UNKNOWN)
        assert not nested.needs_specification()

    def test_types_are_hashable_and_comparable(self):
        """Test structural equality and hashing"""
        assert union(STRING, NUMBER) == union(STRING, NUMBER)
        assert len({optional(STRING), optional(STRING), STRING}) == 2

    def test_sort_key_is_stable(self):
        """Test sorting by structural key is deterministic"""
        types = [optional(STRING), NUMBER, STRING]
        first = sorted(types, key=lambda t: t.sort_key())
        second = sorted(reversed(types), key=lambda t: t.sort_key())
        assert first == second
