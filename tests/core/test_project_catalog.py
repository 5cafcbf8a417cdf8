"""Tests for the project type catalog"""

import pytest

from lua_commenter.core.annotation_nodes import Alias, Class, Enum, Param
from lua_commenter.core.project_catalog import ProjectCatalog
from lua_commenter.core.type_system import (
    BOOLEAN, FUNCTION, NUMBER, STRING, TABLE, UNKNOWN,
    ExportItem, optional, union,
)


class TestExports:
    """Test suite for export registration"""

    def test_unknown_module_has_no_exports(self):
        """Test lookup of a module never seen"""
        assert ProjectCatalog().get_exports("missing") == []

    def test_exports_in_first_seen_order(self):
        """Test exports keep insertion order"""
        catalog = ProjectCatalog()
        catalog.add_export("M", ExportItem("b"))
        catalog.add_export("M", ExportItem("a", FUNCTION))
        assert [e.name for e in catalog.get_exports("M")] == ["b", "a"]

    def test_duplicate_export_replaces_in_place(self):
        """Test re-export updates the type but keeps position"""
        catalog = ProjectCatalog()
        catalog.add_export("M", ExportItem("first"))
        catalog.add_export("M", ExportItem("second"))
        catalog.add_export("M", ExportItem("first", FUNCTION))
        exports = catalog.get_exports("M")
        assert [e.name for e in exports] == ["first", "second"]
        assert exports[0].type_info == FUNCTION

    def test_merge(self):
        """Test folding a worker catalog into the main one"""
        main = ProjectCatalog()
        main.add_export("A", ExportItem("x"))
        worker = ProjectCatalog()
        worker.add_export("A", ExportItem("y"))
        worker.add_export("B", ExportItem("z"))
        worker.register_type("Point")
        main.merge(worker)
        assert [e.name for e in main.get_exports("A")] == ["x", "y"]
        assert main.resolve_type("Point") == TABLE
        assert main.get_summary() == {
            "total_modules": 2,
            "total_exports": 3,
            "custom_types": 1,
        }


class TestResolveType:
    """Test suite for resolve_type"""

    @pytest.mark.parametrize("text,expected", [
        ("string", STRING),
        ("integer", NUMBER),
        ("boolean", BOOLEAN),
        ("any", UNKNOWN),
        ("string?", optional(STRING)),
        ("string|number", union(STRING, NUMBER)),
        ("string|nil", optional(STRING)),
        ("nil", UNKNOWN),
        ("number[]", TABLE),
        ("table<string, number>", TABLE),
        ("{ x: number }", TABLE),
        ("fun(a: string): number", FUNCTION),
        ('"left"', STRING),
        ("'right'", STRING),
        ("42", NUMBER),
        ("true", BOOLEAN),
        ("(string)", STRING),
        ("  number  ", NUMBER),
    ])
    def test_known_types(self, text, expected):
        """Test resolution of standard and structural type text"""
        assert ProjectCatalog().resolve_type(text) == expected

    @pytest.mark.parametrize("text", ["", "Widget", "string|Widget", "Widget?"])
    def test_unknown_types(self, text):
        """Test unresolvable names give None"""
        assert ProjectCatalog().resolve_type(text) is None

    def test_union_inside_generic_is_not_split(self):
        """Test pipes nested in angle brackets stay in the member"""
        assert ProjectCatalog().resolve_type("table<string, number|nil>|nil") == optional(TABLE)

    def test_duplicate_union_members_collapse(self):
        """Test repeated members are dropped"""
        assert ProjectCatalog().resolve_type("string|string") == STRING

    def test_custom_type_wins_over_standard(self):
        """Test registered names are checked first"""
        catalog = ProjectCatalog()
        catalog.register_type("Handle", NUMBER)
        assert catalog.resolve_type("Handle") == NUMBER
        assert catalog.resolve_type("Handle?") == optional(NUMBER)


class TestRegisterAnnotations:
    """Test suite for register_annotations"""

    def test_class_and_enum_are_tables(self):
        """Test class and enum declarations register table types"""
        catalog = ProjectCatalog()
        catalog.register_annotations([Class("Point"), Enum("Color")])
        assert catalog.resolve_type("Point") == TABLE
        assert catalog.resolve_type("Color") == TABLE

    def test_alias_resolves_variants(self):
        """Test alias stands for the union of its variants"""
        catalog = ProjectCatalog()
        catalog.register_annotations([
            Alias("DeviceSide", [('"left"', None), ('"right"', "Right side")]),
        ])
        assert catalog.resolve_type("DeviceSide") == STRING

    def test_alias_with_unknown_variant(self):
        """Test alias over unresolvable names is Unknown"""
        catalog = ProjectCatalog()
        catalog.register_annotations([Alias("Thing", [("Widget", None)])])
        assert catalog.resolve_type("Thing") == UNKNOWN

    def test_other_nodes_ignored(self):
        """Test non-declaring annotations register nothing"""
        catalog = ProjectCatalog()
        catalog.register_annotations([Param("x", "number"), Alias("Empty")])
        assert catalog.custom_types == {}
