"""Annotation syntax tree for lua_commenter

One node class per EmmyLua/LuaDoc annotation keyword. Type
expressions are kept as their exact source text.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class AnnotationKeyword(enum.Enum):
    """Closed set of recognized annotation keywords"""
    ALIAS = "alias"
    AS = "as"
    ASYNC = "async"
    CAST = "cast"
    CLASS = "class"
    DEPRECATED = "deprecated"
    DIAGNOSTIC = "diagnostic"
    ENUM = "enum"
    FIELD = "field"
    GENERIC = "generic"
    META = "meta"
    MODULE = "module"
    NODISCARD = "nodiscard"
    OPERATOR = "operator"
    OVERLOAD = "overload"
    PACKAGE = "package"
    PARAM = "param"
    PRIVATE = "private"
    PROTECTED = "protected"
    RETURN = "return"
    SEE = "see"
    SOURCE = "source"
    TYPE = "type"
    VARARG = "vararg"
    VERSION = "version"

    @classmethod
    def lookup(cls, word: str) -> Optional['AnnotationKeyword']:
        try:
            return cls(word.lower())
        except ValueError:
            return None


class AnnotationNode:
    """Base class of annotation tree nodes"""

    keyword: AnnotationKeyword


@dataclass
class Alias(AnnotationNode):
    name: str
    variants: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    keyword = AnnotationKeyword.ALIAS


@dataclass
class As(AnnotationNode):
    target: str
    keyword = AnnotationKeyword.AS


@dataclass
class Async(AnnotationNode):
    keyword = AnnotationKeyword.ASYNC


@dataclass
class Cast(AnnotationNode):
    """``---@cast var +type -type``; each cast is (type, is_addition)"""
    variable: str
    casts: List[Tuple[str, bool]] = field(default_factory=list)
    keyword = AnnotationKeyword.CAST


@dataclass
class Class(AnnotationNode):
    name: str
    parents: List[str] = field(default_factory=list)
    exact: bool = False
    fields: List[Tuple[str, str]] = field(default_factory=list)
    keyword = AnnotationKeyword.CLASS


@dataclass
class Deprecated(AnnotationNode):
    keyword = AnnotationKeyword.DEPRECATED


@dataclass
class Diagnostic(AnnotationNode):
    action: str
    diagnostic: Optional[str] = None
    keyword = AnnotationKeyword.DIAGNOSTIC


@dataclass
class Enum(AnnotationNode):
    name: str
    key: bool = False
    members: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    keyword = AnnotationKeyword.ENUM


@dataclass
class Field(AnnotationNode):
    name: str
    type_field: str = "any"
    scope: Optional[str] = None
    description: Optional[str] = None
    keyword = AnnotationKeyword.FIELD


@dataclass
class Generic(AnnotationNode):
    """Fallback node; ``name`` holds the keyword as written"""
    name: str
    content: str = ""
    keyword = AnnotationKeyword.GENERIC


@dataclass
class Meta(AnnotationNode):
    name: Optional[str] = None
    keyword = AnnotationKeyword.META


@dataclass
class Module(AnnotationNode):
    module_name: str
    keyword = AnnotationKeyword.MODULE


@dataclass
class Nodiscard(AnnotationNode):
    keyword = AnnotationKeyword.NODISCARD


@dataclass
class Operator(AnnotationNode):
    operator: str
    signature: Optional[str] = None
    keyword = AnnotationKeyword.OPERATOR


@dataclass
class Overload(AnnotationNode):
    signature: str
    keyword = AnnotationKeyword.OVERLOAD


@dataclass
class Package(AnnotationNode):
    keyword = AnnotationKeyword.PACKAGE


@dataclass
class Param(AnnotationNode):
    name: str
    type_field: str
    description: Optional[str] = None
    keyword = AnnotationKeyword.PARAM


@dataclass
class Private(AnnotationNode):
    keyword = AnnotationKeyword.PRIVATE


@dataclass
class Protected(AnnotationNode):
    keyword = AnnotationKeyword.PROTECTED


@dataclass
class Return(AnnotationNode):
    type_field: str
    name: Optional[str] = None
    description: Optional[str] = None
    keyword = AnnotationKeyword.RETURN


@dataclass
class See(AnnotationNode):
    reference: str
    keyword = AnnotationKeyword.SEE


@dataclass
class Source(AnnotationNode):
    path: str
    keyword = AnnotationKeyword.SOURCE


@dataclass
class Type(AnnotationNode):
    type_field: str
    keyword = AnnotationKeyword.TYPE


@dataclass
class Vararg(AnnotationNode):
    type_field: Optional[str] = None
    keyword = AnnotationKeyword.VARARG


@dataclass
class Version(AnnotationNode):
    version: str
    comparison: Optional[str] = None
    keyword = AnnotationKeyword.VERSION
