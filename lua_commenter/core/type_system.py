"""Type system for lua_commenter

Defines type representations used by inference and rendering.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple


class TypeKind(Enum):
    """Type categories for Lua values"""
    UNKNOWN = 0      # Cannot be determined
    STRING = 1
    NUMBER = 2
    BOOLEAN = 3
    TABLE = 4        # plain table, or table with known fields
    FUNCTION = 5     # plain function marker, or function with signature
    UNION = 6        # one of subtypes
    OPTIONAL = 7     # subtypes[0] or nil


@dataclass(frozen=True)
class TypeInfo:
    """Type information for symbols and expressions

    Attributes:
        kind: Type category
        subtypes: Members of a UNION, or the wrapped type of an OPTIONAL
        fields: Known fields of a TABLE (None for a plain table)
        params: Parameters of a FUNCTION signature (None for the plain marker)
        returns: Return types of a FUNCTION signature
    """
    kind: TypeKind
    subtypes: Tuple['TypeInfo', ...] = ()
    fields: Optional[Tuple[Tuple[str, 'TypeInfo'], ...]] = None
    params: Optional[Tuple[Tuple[str, 'TypeInfo'], ...]] = None
    returns: Tuple['TypeInfo', ...] = ()

    def is_unknown(self) -> bool:
        return self.kind == TypeKind.UNKNOWN

    def unwrap_optional(self) -> 'TypeInfo':
        """Strip exactly one level of OPTIONAL"""
        if self.kind == TypeKind.OPTIONAL and self.subtypes:
            return self.subtypes[0]
        return self

    def needs_specification(self) -> bool:
        """True for Unknown, or Optional wrapping Unknown"""
        return self.unwrap_optional().is_unknown()

    def lua_type(self) -> str:
        """Get the EmmyLua spelling of this type"""
        return _RENDERERS[self.kind](self)

    def sort_key(self) -> str:
        """Stable structural key, used only to make output deterministic"""
        return repr(self)


UNKNOWN = TypeInfo(TypeKind.UNKNOWN)
STRING = TypeInfo(TypeKind.STRING)
NUMBER = TypeInfo(TypeKind.NUMBER)
BOOLEAN = TypeInfo(TypeKind.BOOLEAN)
TABLE = TypeInfo(TypeKind.TABLE)
FUNCTION = TypeInfo(TypeKind.FUNCTION)


def union(*members: TypeInfo) -> TypeInfo:
    return TypeInfo(TypeKind.UNION, subtypes=tuple(members))


def optional(inner: TypeInfo) -> TypeInfo:
    return TypeInfo(TypeKind.OPTIONAL, subtypes=(inner,))


def table_of(fields: Dict[str, TypeInfo]) -> TypeInfo:
    """Build a table type with known fields, in insertion order"""
    return TypeInfo(TypeKind.TABLE, fields=tuple(fields.items()))


def function_of(params: Dict[str, TypeInfo], returns: Tuple[TypeInfo, ...] = ()) -> TypeInfo:
    """Build a function type with a signature"""
    return TypeInfo(TypeKind.FUNCTION, params=tuple(params.items()), returns=tuple(returns))


def _render_table(type_info: TypeInfo) -> str:
    if type_info.fields is None:
        return "table"
    inner = ", ".join(f"{name}: {field.lua_type()}" for name, field in type_info.fields)
    return f"table<{inner}>"


def _render_function(type_info: TypeInfo) -> str:
    if type_info.params is None:
        return "function"
    params = ", ".join(f"{name}: {param.lua_type()}" for name, param in type_info.params)
    rendered = f"fun({params})"
    if type_info.returns:
        rendered += " -> " + ", ".join(ret.lua_type() for ret in type_info.returns)
    return rendered


def _render_optional(type_info: TypeInfo) -> str:
    if not type_info.subtypes:
        return "any?"
    return f"{type_info.subtypes[0].lua_type()}?"


_RENDERERS: Dict[TypeKind, Callable[[TypeInfo], str]] = {
    TypeKind.UNKNOWN: lambda t: "any",
    TypeKind.STRING: lambda t: "string",
    TypeKind.NUMBER: lambda t: "number",
    TypeKind.BOOLEAN: lambda t: "boolean",
    TypeKind.TABLE: _render_table,
    TypeKind.FUNCTION: _render_function,
    TypeKind.UNION: lambda t: "|".join(member.lua_type() for member in t.subtypes),
    TypeKind.OPTIONAL: _render_optional,
}

_missing_renderers = set(TypeKind) - set(_RENDERERS)
if _missing_renderers:
    raise RuntimeError(f"No renderer for type kinds: {sorted(k.name for k in _missing_renderers)}")


@dataclass
class ExportItem:
    """One publicly exposed field of a module table"""
    name: str
    type_info: TypeInfo = UNKNOWN
