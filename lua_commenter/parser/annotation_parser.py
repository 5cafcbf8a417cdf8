"""Annotation parser for lua_commenter

Second pass over the unified token stream. Only annotation tokens are
read; each line is dispatched on its keyword to one sub-parser working
on the line's sub-tokens with a local cursor.

Type expressions and descriptions are sliced out of the raw line using
sub-token offsets, so they keep their exact source spelling.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from lua_commenter.core.annotation_nodes import (
    Alias, AnnotationKeyword, AnnotationNode, As, Async, Cast, Class,
    Deprecated, Diagnostic, Enum, Field, Generic, Meta, Module, Nodiscard,
    Operator, Overload, Package, Param, Private, Protected, Return, See,
    Source, Type, Vararg, Version,
)
from lua_commenter.core.diagnostics import DiagnosticKind, DiagnosticLogger
from lua_commenter.core.tokens import AnnotationSubToken, SubTokenKind, Token, TokenKind

VARIANT_PREFIX = "---|"
FIELD_SCOPES = frozenset(["public", "private", "protected", "package"])

TYPE_START_KINDS = (SubTokenKind.IDENTIFIER, SubTokenKind.TEXT, SubTokenKind.OPEN_PAREN)
TYPE_SUFFIX_KINDS = (SubTokenKind.TEXT, SubTokenKind.OPEN_PAREN, SubTokenKind.LESS_THAN)
NESTING_OPEN = (SubTokenKind.OPEN_PAREN, SubTokenKind.LESS_THAN)
NESTING_CLOSE = (SubTokenKind.CLOSE_PAREN, SubTokenKind.GREATER_THAN)


def _end_offset(sub: AnnotationSubToken) -> int:
    return sub.offset + len(sub.value)


class LineCursor:
    """Local cursor over the sub-tokens of one annotation line

    Attributes:
        line: Raw annotation line the sub-tokens were scanned from
        subtokens: Sub-tokens with the marker removed; index 0 is the keyword
        pos: Index of the next sub-token
    """

    def __init__(self, line: str, subtokens: Sequence[AnnotationSubToken], pos: int = 1) -> None:
        self.line = line
        self.subtokens = list(subtokens)
        self.pos = pos

    def peek(self, offset: int = 0) -> Optional[AnnotationSubToken]:
        idx = self.pos + offset
        if idx < len(self.subtokens):
            return self.subtokens[idx]
        return None

    def at_end(self) -> bool:
        return self.pos >= len(self.subtokens)

    def check(self, kind: SubTokenKind) -> bool:
        sub = self.peek()
        return sub is not None and sub.kind == kind

    def take(self, kind: SubTokenKind) -> Optional[AnnotationSubToken]:
        if self.check(kind):
            self.pos += 1
            return self.subtokens[self.pos - 1]
        return None

    def take_operator(self, symbol: str) -> bool:
        sub = self.peek()
        if sub is not None and sub.is_operator(symbol):
            self.pos += 1
            return True
        return False

    def take_identifier(self) -> Optional[str]:
        sub = self.take(SubTokenKind.IDENTIFIER)
        return sub.value if sub else None

    def take_word(self) -> Optional[str]:
        """Take a run of glued identifier/text sub-tokens (``disable-next-line``, ``name?``)"""
        first = self.peek()
        if first is None or first.kind not in (SubTokenKind.IDENTIFIER, SubTokenKind.TEXT):
            return None
        end = _end_offset(first)
        self.pos += 1
        while True:
            sub = self.peek()
            if sub is None or sub.offset != end \
                    or sub.kind not in (SubTokenKind.IDENTIFIER, SubTokenKind.TEXT):
                break
            end = _end_offset(sub)
            self.pos += 1
        return self.line[first.offset:end]

    def take_type(self, start_offset: Optional[int] = None) -> Optional[str]:
        """Take one type expression and return its exact source text

        Handles unions (``a | b``), generics (``table<K, V>``), function
        types (``fun(a: T): R``), glued suffixes (``T[]``, ``T?``) and
        literal types (``'"left"'``).

        Args:
            start_offset: Line offset to start the text at, when the first
                sub-token carries a prefix character that is not part of
                the type (``+string`` in a cast)

        Returns:
            Type text, or None if no type starts at the cursor
        """
        first = self.peek()
        if first is None or first.kind not in TYPE_START_KINDS:
            return None
        begin = first.offset if start_offset is None else start_offset
        end = begin
        depth = 0
        expect_unit = True
        while not self.at_end():
            sub = self.peek()
            if depth == 0:
                if expect_unit:
                    if sub.kind not in TYPE_START_KINDS:
                        break
                elif sub.is_operator("|"):
                    expect_unit = True
                    self.pos += 1
                    continue
                elif sub.kind == SubTokenKind.COLON and self.line[begin:end].startswith("fun"):
                    expect_unit = True
                    self.pos += 1
                    continue
                elif sub.offset != end or sub.kind not in TYPE_SUFFIX_KINDS:
                    break
            if sub.kind in NESTING_OPEN:
                depth += 1
            elif sub.kind in NESTING_CLOSE:
                if depth == 0:
                    break
                depth -= 1
            elif sub.kind == SubTokenKind.TEXT:
                depth = max(0, depth + sub.text.count("{") - sub.text.count("}"))
            self.pos += 1
            end = _end_offset(sub)
            expect_unit = False
        if end == begin:
            return None
        return self.line[begin:end]

    def take_type_list(self) -> Optional[str]:
        """Take comma-separated type expressions (``string, number``) as one text"""
        first = self.peek()
        if self.take_type() is None:
            return None
        end = _end_offset(self.subtokens[self.pos - 1])
        while self.check(SubTokenKind.COMMA):
            saved = self.pos
            self.pos += 1
            if self.take_type() is None:
                self.pos = saved
                break
            end = _end_offset(self.subtokens[self.pos - 1])
        return self.line[first.offset:end]

    def rest(self) -> Optional[str]:
        """Remaining line text as a description; a leading ``#`` is dropped"""
        sub = self.peek()
        if sub is None:
            return None
        text = self.line[sub.offset:].strip()
        if text.startswith("#"):
            text = text[1:].strip()
        self.pos = len(self.subtokens)
        return text or None

    def take_modifier(self, word: str) -> bool:
        """Take a parenthesized modifier such as ``(exact)`` or ``(key)``"""
        ident = self.peek(1)
        if self.check(SubTokenKind.OPEN_PAREN) and ident is not None \
                and ident.kind == SubTokenKind.IDENTIFIER and ident.value.lower() == word:
            closing = self.peek(2)
            self.pos += 2
            if closing is not None and closing.kind == SubTokenKind.CLOSE_PAREN:
                self.pos += 1
            return True
        return False


def split_variants(line: str, subtokens: Sequence[AnnotationSubToken]) -> List[Tuple[str, Optional[str]]]:
    """Split ``<value> [# <description>] (| <value> [# <description>])*``

    Pipes nested in parentheses or angle brackets belong to the value.

    Args:
        line: Raw annotation line
        subtokens: Sub-tokens following the ``|`` that opens the first variant

    Returns:
        (value, description) pairs, skipping pieces without a value
    """
    pieces: List[List[AnnotationSubToken]] = [[]]
    ends: List[int] = []
    depth = 0
    for sub in subtokens:
        if sub.kind in NESTING_OPEN:
            depth += 1
        elif sub.kind in NESTING_CLOSE:
            depth -= 1
        elif depth == 0 and sub.is_operator("|"):
            ends.append(sub.offset)
            pieces.append([])
            continue
        pieces[-1].append(sub)
    ends.append(len(line))

    variants = []
    for piece, end in zip(pieces, ends):
        if not piece:
            continue
        start = piece[0].offset
        hash_offset = None
        for sub in piece:
            if sub.is_operator("#"):
                hash_offset = sub.offset
                break
        if hash_offset is None:
            value = line[start:end].strip()
            description = None
        else:
            value = line[start:hash_offset].strip()
            description = line[hash_offset + 1:end].strip() or None
        if value:
            variants.append((value, description))
    return variants


# --- sub-parsers: each receives a cursor positioned after the keyword ---

def parse_alias(cursor: LineCursor) -> Optional[AnnotationNode]:
    name = cursor.take_identifier()
    if name is None:
        return None
    node = Alias(name=name)
    if cursor.check(SubTokenKind.OPERATOR) and cursor.peek().text == "|":
        node.variants.extend(split_variants(cursor.line, cursor.subtokens[cursor.pos + 1:]))
        return node
    start = cursor.pos
    if cursor.take_type() is not None:
        # Inline alias: top-level union members become the variants.
        depth = 0
        member_start = cursor.subtokens[start].offset
        for sub in cursor.subtokens[start:cursor.pos]:
            if sub.kind in NESTING_OPEN:
                depth += 1
            elif sub.kind in NESTING_CLOSE:
                depth -= 1
            elif depth == 0 and sub.is_operator("|"):
                node.variants.append((cursor.line[member_start:sub.offset].strip(), None))
                member_start = sub.offset + 1
        end = _end_offset(cursor.subtokens[cursor.pos - 1])
        node.variants.append((cursor.line[member_start:end].strip(), cursor.rest()))
    return node


def parse_as(cursor: LineCursor) -> Optional[AnnotationNode]:
    target = cursor.take_type()
    return As(target=target) if target else None


def parse_async(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Async()


def parse_cast(cursor: LineCursor) -> Optional[AnnotationNode]:
    variable = cursor.take_identifier()
    if variable is None:
        return None
    node = Cast(variable=variable)
    while not cursor.at_end():
        if cursor.take(SubTokenKind.COMMA):
            continue
        sub = cursor.peek()
        is_add = True
        start_offset = None
        if sub.kind == SubTokenKind.TEXT and sub.text[0] in "+-":
            is_add = sub.text[0] == "+"
            if len(sub.text) == 1:
                cursor.pos += 1
            else:
                start_offset = sub.offset + 1
        cast_type = cursor.take_type(start_offset)
        if cast_type is None:
            break
        node.casts.append((cast_type, is_add))
    return node


def parse_class(cursor: LineCursor) -> Optional[AnnotationNode]:
    exact = cursor.take_modifier("exact")
    name = cursor.take_identifier()
    if name is None:
        return None
    node = Class(name=name, exact=exact)
    if cursor.take(SubTokenKind.COLON):
        while True:
            parent = cursor.take_type()
            if parent is None:
                break
            node.parents.append(parent)
            if not cursor.take(SubTokenKind.COMMA):
                break
    if cursor.take_modifier("exact"):
        node.exact = True
    while cursor.check(SubTokenKind.IDENTIFIER):
        field_name = cursor.take_identifier()
        field_type = "any"
        if cursor.take(SubTokenKind.COLON):
            field_type = cursor.take_type() or "any"
        node.fields.append((field_name, field_type))
        cursor.take(SubTokenKind.COMMA)
    return node


def parse_deprecated(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Deprecated()


def parse_diagnostic(cursor: LineCursor) -> Optional[AnnotationNode]:
    action = cursor.take_word()
    if action is None:
        return None
    cursor.take(SubTokenKind.COLON)
    return Diagnostic(action=action, diagnostic=cursor.rest())


def parse_enum(cursor: LineCursor) -> Optional[AnnotationNode]:
    key = cursor.take_modifier("key")
    name = cursor.take_identifier()
    if name is None:
        return None
    if cursor.take_modifier("key"):
        key = True
    node = Enum(name=name, key=key)
    if cursor.take_operator("|"):
        node.members.extend(split_variants(cursor.line, cursor.subtokens[cursor.pos:]))
    return node


def parse_field(cursor: LineCursor) -> Optional[AnnotationNode]:
    scope = None
    ahead = cursor.peek(1)
    if cursor.check(SubTokenKind.IDENTIFIER) and cursor.peek().value in FIELD_SCOPES \
            and ahead is not None and ahead.kind in (SubTokenKind.IDENTIFIER, SubTokenKind.TEXT) \
            and cursor.peek(2) is not None:
        scope = cursor.take_identifier()
    name = cursor.take_word()
    if name is None:
        return None
    type_field = cursor.take_type() or "any"
    return Field(name=name, type_field=type_field, scope=scope, description=cursor.rest())


def parse_generic(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Generic(name=cursor.subtokens[0].value, content=cursor.rest() or "")


def parse_meta(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Meta(name=cursor.take_word())


def parse_module(cursor: LineCursor) -> Optional[AnnotationNode]:
    name = cursor.take_word()
    if name is None:
        return None
    return Module(module_name=name.strip("'\""))


def parse_nodiscard(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Nodiscard()


def parse_operator(cursor: LineCursor) -> Optional[AnnotationNode]:
    operator = cursor.take_identifier()
    if operator is None:
        return None
    return Operator(operator=operator, signature=cursor.rest())


def parse_overload(cursor: LineCursor) -> Optional[AnnotationNode]:
    signature = cursor.take_type()
    return Overload(signature=signature) if signature else None


def parse_package(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Package()


def parse_param(cursor: LineCursor) -> Optional[AnnotationNode]:
    name = cursor.take_word()
    if name is None:
        return None
    type_field = cursor.take_type()
    if type_field is None:
        return None
    return Param(name=name, type_field=type_field, description=cursor.rest())


def parse_private(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Private()


def parse_protected(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Protected()


def parse_return(cursor: LineCursor) -> Optional[AnnotationNode]:
    type_field = cursor.take_type_list()
    if type_field is None:
        return None
    name = cursor.take_identifier()
    return Return(type_field=type_field, name=name, description=cursor.rest())


def parse_see(cursor: LineCursor) -> Optional[AnnotationNode]:
    reference = cursor.rest()
    return See(reference=reference) if reference else None


def parse_source(cursor: LineCursor) -> Optional[AnnotationNode]:
    path = cursor.rest()
    return Source(path=path) if path else None


def parse_type(cursor: LineCursor) -> Optional[AnnotationNode]:
    type_field = cursor.take_type_list()
    return Type(type_field=type_field) if type_field else None


def parse_vararg(cursor: LineCursor) -> Optional[AnnotationNode]:
    return Vararg(type_field=cursor.take_type())


def parse_version(cursor: LineCursor) -> Optional[AnnotationNode]:
    comparison = None
    sub = cursor.peek()
    if sub is not None and sub.kind in (SubTokenKind.LESS_THAN, SubTokenKind.GREATER_THAN):
        comparison = sub.text
        cursor.pos += 1
    version = cursor.rest()
    if version is None:
        return None
    if comparison and version.startswith("="):
        comparison += "="
        version = version[1:].strip()
        if not version:
            return None
    return Version(version=version, comparison=comparison)


SubParser = Callable[[LineCursor], Optional[AnnotationNode]]

SUB_PARSERS: Dict[AnnotationKeyword, SubParser] = {
    AnnotationKeyword.ALIAS: parse_alias,
    AnnotationKeyword.AS: parse_as,
    AnnotationKeyword.ASYNC: parse_async,
    AnnotationKeyword.CAST: parse_cast,
    AnnotationKeyword.CLASS: parse_class,
    AnnotationKeyword.DEPRECATED: parse_deprecated,
    AnnotationKeyword.DIAGNOSTIC: parse_diagnostic,
    AnnotationKeyword.ENUM: parse_enum,
    AnnotationKeyword.FIELD: parse_field,
    AnnotationKeyword.GENERIC: parse_generic,
    AnnotationKeyword.META: parse_meta,
    AnnotationKeyword.MODULE: parse_module,
    AnnotationKeyword.NODISCARD: parse_nodiscard,
    AnnotationKeyword.OPERATOR: parse_operator,
    AnnotationKeyword.OVERLOAD: parse_overload,
    AnnotationKeyword.PACKAGE: parse_package,
    AnnotationKeyword.PARAM: parse_param,
    AnnotationKeyword.PRIVATE: parse_private,
    AnnotationKeyword.PROTECTED: parse_protected,
    AnnotationKeyword.RETURN: parse_return,
    AnnotationKeyword.SEE: parse_see,
    AnnotationKeyword.SOURCE: parse_source,
    AnnotationKeyword.TYPE: parse_type,
    AnnotationKeyword.VARARG: parse_vararg,
    AnnotationKeyword.VERSION: parse_version,
}

_missing_parsers = set(AnnotationKeyword) - set(SUB_PARSERS)
if _missing_parsers:
    raise RuntimeError(f"No sub-parser for annotation keywords: {sorted(k.name for k in _missing_parsers)}")


def parse_annotation_line(line: str, subtokens: Sequence[AnnotationSubToken]) -> Optional[AnnotationNode]:
    """Parse one ``---@`` annotation line

    Args:
        line: Raw annotation line
        subtokens: Sub-tokens of the line, marker included

    Returns:
        Annotation node, or None if the keyword's grammar is not met
    """
    subs = list(subtokens)
    if subs and subs[0].kind == SubTokenKind.PREFIX:
        subs = subs[1:]
    if not subs or subs[0].kind != SubTokenKind.IDENTIFIER:
        content = line[subs[0].offset:].strip() if subs else ""
        return Generic(name="", content=content)
    cursor = LineCursor(line, subs)
    keyword = AnnotationKeyword.lookup(subs[0].value)
    if keyword is None:
        return parse_generic(cursor)
    return SUB_PARSERS[keyword](cursor)


class AnnotationParser:
    """Builds the annotation syntax tree from a token stream

    ``---|`` lines directly following an ``---@alias`` or ``---@enum``
    line extend that node's variants or members.
    """

    def __init__(self, tokens: Sequence[Token],
                 diagnostics: Optional[DiagnosticLogger] = None) -> None:
        self.tokens = list(tokens)
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLogger()

    def parse(self) -> List[AnnotationNode]:
        """Parse all annotation tokens

        Returns:
            Annotation nodes in source order
        """
        nodes: List[AnnotationNode] = []
        open_node: Optional[AnnotationNode] = None
        for token in self.tokens:
            if token.kind != TokenKind.ANNOTATION:
                open_node = None
                continue
            if token.prefix == VARIANT_PREFIX:
                self._add_variant(open_node, token)
                continue
            node = parse_annotation_line(token.text, token.subtokens)
            if node is None:
                self.diagnostics.report(token.span, f"malformed annotation '{token.text.strip()}'",
                                        DiagnosticKind.ANNOTATION)
                open_node = None
                continue
            nodes.append(node)
            open_node = node if isinstance(node, (Alias, Enum)) else None
        return nodes

    def _add_variant(self, owner: Optional[AnnotationNode], token: Token) -> None:
        if owner is None:
            self.diagnostics.report(token.span, "variant line without a preceding alias or enum",
                                    DiagnosticKind.ANNOTATION)
            return
        variants = split_variants(token.text, token.subtokens[1:])
        if not variants:
            self.diagnostics.report(token.span, "empty variant line", DiagnosticKind.ANNOTATION)
            return
        if isinstance(owner, Alias):
            owner.variants.extend(variants)
        else:
            owner.members.extend(variants)


def parse_annotations(tokens: Sequence[Token],
                      diagnostics: Optional[DiagnosticLogger] = None) -> List[AnnotationNode]:
    """Parse the annotation tree out of a token stream"""
    return AnnotationParser(tokens, diagnostics).parse()
