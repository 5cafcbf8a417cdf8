"""Project type catalog for lua_commenter

Cross-file registry of module exports and named types. The type
analyzer writes exports into it and resolves annotated type names
through it.

A catalog has a single writer. To process files in parallel give each
worker its own catalog and fold them together with ``merge``.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from lua_commenter.core.annotation_nodes import Alias, AnnotationNode, Class, Enum
from lua_commenter.core.type_system import (
    BOOLEAN, FUNCTION, NUMBER, STRING, TABLE, UNKNOWN,
    ExportItem, TypeInfo, TypeKind, optional, union,
)


@dataclass
class ModuleInfo:
    """Exports collected for one module, in first-seen order"""
    name: str
    exports: Dict[str, ExportItem] = field(default_factory=dict)


class ProjectCatalog:
    """Registry of module exports and type names"""

    # Built-in type names and their type information
    STANDARD_TYPES: Dict[str, TypeInfo] = {
        "string": STRING,
        "number": NUMBER,
        "integer": NUMBER,
        "boolean": BOOLEAN,
        "table": TABLE,
        "function": FUNCTION,
        "nil": UNKNOWN,
        "any": UNKNOWN,
    }

    def __init__(self) -> None:
        """Initialize empty catalog"""
        self.modules: Dict[str, ModuleInfo] = {}
        self.custom_types: Dict[str, TypeInfo] = {}

    def add_export(self, module_name: str, export: ExportItem) -> None:
        """Record an export of a module

        A later export with the same name replaces the earlier one but
        keeps its position.

        Args:
            module_name: Module table name
            export: Exported name and type
        """
        module = self.modules.setdefault(module_name, ModuleInfo(module_name))
        module.exports[export.name] = export

    def get_exports(self, module_name: str) -> List[ExportItem]:
        """Get exports of a module in first-seen order

        Args:
            module_name: Module table name

        Returns:
            Export list (empty if the module is unknown)
        """
        module = self.modules.get(module_name)
        if module is None:
            return []
        return list(module.exports.values())

    def register_type(self, name: str, type_info: TypeInfo = TABLE) -> None:
        """Register a user-defined type name

        Args:
            name: Type name as written in annotations
            type_info: Type it stands for (classes are tables)
        """
        self.custom_types[name] = type_info

    def register_annotations(self, nodes: Sequence[AnnotationNode]) -> None:
        """Register the types declared by class, enum and alias annotations

        Args:
            nodes: Parsed annotation nodes
        """
        for node in nodes:
            if isinstance(node, (Class, Enum)):
                self.register_type(node.name, TABLE)
            elif isinstance(node, Alias) and node.variants:
                resolved = self.resolve_type("|".join(value for value, _ in node.variants))
                self.register_type(node.name, resolved if resolved is not None else UNKNOWN)

    def resolve_type(self, name: str) -> Optional[TypeInfo]:
        """Resolve an annotation type expression to type information

        Supports standard and registered names, literal types, ``T?``,
        unions (``A|B``, with ``nil`` members making the result
        optional), arrays (``T[]``), ``table<K, V>`` and ``fun(...)``.

        Args:
            name: Type expression text

        Returns:
            Type information, or None if the name is not known
        """
        text = name.strip()
        if not text:
            return None
        members = _split_union(text)
        if len(members) > 1:
            return self._resolve_union(members)
        if text.endswith("?"):
            inner = self.resolve_type(text[:-1])
            return optional(inner) if inner is not None else None
        if text.startswith("(") and text.endswith(")"):
            return self.resolve_type(text[1:-1])
        if text.endswith("[]") or text.startswith("table<") or text.startswith("{"):
            return TABLE
        if text.startswith("fun(") or text == "fun":
            return FUNCTION
        literal = _literal_type(text)
        if literal is not None:
            return literal
        if text in self.custom_types:
            return self.custom_types[text]
        return self.STANDARD_TYPES.get(text)

    def _resolve_union(self, members: List[str]) -> Optional[TypeInfo]:
        nullable = False
        resolved: List[TypeInfo] = []
        for member in members:
            if member == "nil":
                nullable = True
                continue
            type_info = self.resolve_type(member)
            if type_info is None:
                return None
            if type_info not in resolved:
                resolved.append(type_info)
        if not resolved:
            return UNKNOWN
        result = resolved[0] if len(resolved) == 1 else union(*resolved)
        if nullable and result.kind != TypeKind.OPTIONAL:
            result = optional(result)
        return result

    def merge(self, other: 'ProjectCatalog') -> None:
        """Fold another catalog into this one

        Exports of the other catalog are added module by module in its
        order; registered types of the other catalog win on conflict.

        Args:
            other: Catalog filled by another worker
        """
        for module in other.modules.values():
            for export in module.exports.values():
                self.add_export(module.name, export)
        self.custom_types.update(other.custom_types)

    def get_summary(self) -> Dict:
        """Get summary statistics

        Returns:
            Dictionary with module, export and type counts
        """
        return {
            "total_modules": len(self.modules),
            "total_exports": sum(len(m.exports) for m in self.modules.values()),
            "custom_types": len(self.custom_types),
        }


def _split_union(text: str) -> List[str]:
    """Split on top-level ``|`` only (not inside parens, angles or braces)"""
    members: List[str] = []
    depth = 0
    current = ""
    for ch in text:
        if ch in "(<{":
            depth += 1
        elif ch in ")>}":
            depth -= 1
        if ch == "|" and depth == 0:
            members.append(current.strip())
            current = ""
        else:
            current += ch
    members.append(current.strip())
    return [member for member in members if member]


def _literal_type(text: str) -> Optional[TypeInfo]:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return STRING
    if text in ("true", "false"):
        return BOOLEAN
    try:
        float(text)
    except ValueError:
        return None
    return NUMBER
