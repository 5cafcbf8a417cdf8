"""Code parser for lua_commenter

Recursive-descent parser over the unified token stream. Annotation
tokens are skipped (they belong to the annotation parser); a plain
comment right before a statement becomes that statement's doc string.

Parsing is best effort: constructs that do not fit are dropped, the
cursor moves on, and the drop is recorded in ``diagnostics``.
"""

from typing import Callable, List, Optional, Sequence, Tuple

from lua_commenter.core.ast_nodes import (
    Assignment, CodeNode, Comment, DoBlock, Expression, ForNumeric,
    FunctionCall, FunctionCallStmt, FunctionDef, Identifier, IfStatement,
    Literal, ModuleDeclaration, Parameter, RepeatUntil, ReturnStatement,
    TableConstructor, TableExpression, VariableDeclaration, WhileLoop,
)
from lua_commenter.core.diagnostics import DiagnosticKind, DiagnosticLogger
from lua_commenter.core.tokens import Span, Token, TokenKind
from lua_commenter.core.type_system import ExportItem

TableEntries = List[Tuple[str, Optional[Expression]]]

OPENING_KINDS = (TokenKind.PAREN_OPEN, TokenKind.BRACE_OPEN, TokenKind.BRACKET_OPEN)
CLOSING_KINDS = (TokenKind.PAREN_CLOSE, TokenKind.BRACE_CLOSE, TokenKind.BRACKET_CLOSE)
BLOCK_OPENERS = frozenset(["function", "do", "if", "repeat"])
BLOCK_CLOSERS = frozenset(["end", "until"])


class CodeParser:
    """Builds the code syntax tree from a token stream"""

    def __init__(self, tokens: Sequence[Token],
                 diagnostics: Optional[DiagnosticLogger] = None) -> None:
        """Initialize parser

        Args:
            tokens: Unified token stream from the code tokenizer
            diagnostics: Sink for dropped constructs (a new one if omitted)
        """
        self.tokens = list(tokens)
        self.pos = 0
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLogger()

    # --- cursor helpers ---

    def _peek(self, offset: int = 0) -> Optional[Token]:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return None

    def _advance(self) -> Optional[Token]:
        token = self._peek()
        self.pos += 1
        return token

    def _check(self, kind: TokenKind, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.kind == kind

    def _check_keyword(self, word: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.is_keyword(word)

    def _check_operator(self, symbol: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.is_operator(symbol)

    def _report(self, span: Optional[Span], reason: str) -> None:
        self.diagnostics.report(span, reason, DiagnosticKind.CODE)

    # --- entry points ---

    def parse(self) -> List[CodeNode]:
        """Parse the whole token stream

        Returns:
            Top-level statement nodes
        """
        nodes: List[CodeNode] = []
        while self.pos < len(self.tokens):
            start = self.pos
            node = self.parse_node()
            if node is not None:
                nodes.append(node)
            elif self.pos == start:
                self.pos += 1
        return nodes

    def parse_node(self) -> Optional[CodeNode]:
        """Parse one statement

        Skips leading annotation tokens, takes at most one plain comment
        as the doc string, then dispatches on the next token.

        Returns:
            Parsed node, or None when nothing was recognized
        """
        self._skip_annotations()
        doc_token = None
        if self._check(TokenKind.COMMENT):
            doc_token = self._advance()
            self._skip_annotations()
        doc = _doc_text(doc_token.text) if doc_token else None

        token = self._peek()
        handler = self._dispatch(token) if token is not None else None
        if handler is None:
            if doc_token is not None:
                return Comment(doc, span=doc_token.span)
            if token is not None and token.kind == TokenKind.BLOCK_COMMENT:
                self._advance()
                return Comment(token.text, span=token.span)
            return None
        return handler(doc)

    def _dispatch(self, token: Token) -> Optional[Callable[[Optional[str]], Optional[CodeNode]]]:
        if token.kind == TokenKind.KEYWORD:
            return {
                "function": self._parse_function_statement,
                "local": self._parse_local,
                "return": self._parse_return,
                "if": self._parse_if,
                "while": self._parse_while,
                "for": self._parse_for,
                "do": self._parse_do,
                "repeat": self._parse_repeat,
            }.get(token.text)
        if token.kind == TokenKind.IDENTIFIER:
            after = self._peek(self._dotted_name_length())
            if after is not None and after.kind == TokenKind.ASSIGNMENT:
                return self._parse_assignment
            if self._is_call_ahead():
                return self._parse_call_statement
            return None
        if token.kind == TokenKind.BRACE_OPEN:
            return self._parse_table_statement
        return None

    def _skip_annotations(self) -> None:
        while self._check(TokenKind.ANNOTATION):
            self.pos += 1

    # --- blocks ---

    def _parse_block(self, opener: Optional[Span],
                     terminators: Sequence[str] = ("end",)) -> Tuple[List[CodeNode], Optional[str]]:
        """Parse statements until one of the terminator keywords

        Args:
            opener: Span of the construct owning the block
            terminators: Keywords closing the block; the one found is consumed

        Returns:
            (nodes, terminator) where terminator is None if the input
            ended first
        """
        nodes: List[CodeNode] = []
        while True:
            self._skip_annotations()
            token = self._peek()
            if token is None:
                self._report(opener, "block closed by end of input")
                return nodes, None
            if token.kind == TokenKind.KEYWORD and token.text in terminators:
                self.pos += 1
                return nodes, token.text
            start = self.pos
            node = self.parse_node()
            if node is not None:
                nodes.append(node)
            elif self.pos == start:
                self.pos += 1

    # --- statements ---

    def _parse_function_statement(self, doc: Optional[str]) -> Optional[CodeNode]:
        return self._parse_function_def(doc, is_local=False)

    def _parse_function_def(self, doc: Optional[str], is_local: bool,
                            span: Optional[Span] = None) -> Optional[CodeNode]:
        keyword = self._advance()
        span = span or keyword.span
        name = self._parse_qualified_name()
        if name is None:
            self._report(span, "function definition without a name")
            return None
        return self._parse_function_body(name, doc, is_local, span)

    def _parse_function_body(self, name: str, doc: Optional[str], is_local: bool,
                             span: Span) -> Optional[CodeNode]:
        """Parse ``(params) body end`` after the function name"""
        params = self._parse_parameters()
        if params is None:
            self._report(span, f"function '{name}' has no parameter list")
            return None
        body, _ = self._parse_block(span)
        return FunctionDef(name=name, params=params, body=body, is_local=is_local,
                           doc=doc, span=span)

    def _parse_qualified_name(self) -> Optional[str]:
        """Parse ``a.b.c`` or ``a.b:c``; keywords are accepted as segments"""
        token = self._peek()
        if token is None or token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
            return None
        name = token.name
        self.pos += 1
        while self._check_operator(".") or self._check_operator(":"):
            separator = self._peek().text
            segment = self._peek(1)
            if segment is None or segment.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
                break
            name += separator + segment.name
            self.pos += 2
            if separator == ":":
                break
        return name

    def _parse_parameters(self) -> Optional[List[Parameter]]:
        if not self._check(TokenKind.PAREN_OPEN):
            return None
        self.pos += 1
        params: List[Parameter] = []
        while True:
            token = self._advance()
            if token is None:
                return None
            if token.kind == TokenKind.PAREN_CLOSE:
                return params
            if token.kind == TokenKind.IDENTIFIER:
                params.append(Parameter(token.name))
            elif token.kind == TokenKind.VARARG:
                params.append(Parameter("..."))

    def _parse_local(self, doc: Optional[str]) -> Optional[CodeNode]:
        keyword = self._advance()
        if self._check_keyword("function"):
            return self._parse_function_def(doc, is_local=True, span=keyword.span)
        if not self._check(TokenKind.IDENTIFIER):
            self._report(keyword.span, "'local' without a variable name")
            return None
        name = self._advance().name
        self._skip_local_tail()
        if not self._check(TokenKind.ASSIGNMENT):
            return VariableDeclaration(name=name, doc=doc, span=keyword.span)
        self.pos += 1
        if self._check(TokenKind.BRACE_OPEN):
            entries = self._parse_table_entries()
            exports = [ExportItem(key) for key, _ in entries]
            return ModuleDeclaration(name=name, exports=exports, doc=doc, span=keyword.span)
        if self._check_keyword("function") and self._check(TokenKind.PAREN_OPEN, 1):
            self.pos += 1
            return self._parse_function_body(name, doc, True, keyword.span)
        value = self._parse_expression()
        return VariableDeclaration(name=name, value=value, doc=doc, span=keyword.span)

    def _skip_local_tail(self) -> None:
        """Skip attributes (``<const>``) and extra targets of a local declaration"""
        while True:
            if self._check_operator("<") and self._check(TokenKind.IDENTIFIER, 1) \
                    and self._check_operator(">", 2):
                self.pos += 3
            elif self._check_operator(",") and self._check(TokenKind.IDENTIFIER, 1):
                self.pos += 2
            else:
                return

    def _parse_assignment(self, doc: Optional[str]) -> Optional[CodeNode]:
        start = self._peek()
        target = self._parse_qualified_name()
        self.pos += 1  # '='
        if self._check_keyword("function") and self._check(TokenKind.PAREN_OPEN, 1):
            self.pos += 1
            return self._parse_function_body(target, doc, False, start.span)
        value = self._parse_expression()
        if value is None:
            self._report(start.span, f"assignment to '{target}' has an unsupported value")
            return None
        return Assignment(targets=[target], values=[value], doc=doc, span=start.span)

    def _parse_call_statement(self, doc: Optional[str]) -> Optional[CodeNode]:
        start = self._peek()
        call = self._parse_expression()
        if not isinstance(call, FunctionCall):
            self._report(start.span, "expected a function call")
            return None
        return FunctionCallStmt(call=call, doc=doc, span=start.span)

    def _parse_return(self, doc: Optional[str]) -> Optional[CodeNode]:
        keyword = self._advance()
        values: List[Expression] = []
        while True:
            if self._check_keyword("function"):
                # Closures are skipped as a whole; their returns stay inside.
                self._skip_until(lambda t: False, single=True)
            else:
                expr = self._parse_expression()
                if expr is None:
                    break
                values.append(expr)
            if not self._check_operator(","):
                break
            self.pos += 1
        return ReturnStatement(values=values, span=keyword.span)

    def _parse_table_statement(self, doc: Optional[str]) -> Optional[CodeNode]:
        start = self._peek()
        entries = self._parse_table_entries()
        fields = [(key, value) for key, value in entries if value is not None]
        return TableConstructor(fields=fields, span=start.span)

    def _parse_if(self, doc: Optional[str]) -> Optional[CodeNode]:
        keyword = self._advance()
        condition = self._parse_condition(("then",))
        if self._check_keyword("then"):
            self.pos += 1
        then_block, terminator = self._parse_block(keyword.span, ("elseif", "else", "end"))
        else_block = None
        if terminator == "elseif":
            self.pos -= 1
            nested = self._parse_if(None)
            else_block = [nested] if nested is not None else []
        elif terminator == "else":
            else_block, _ = self._parse_block(keyword.span)
        return IfStatement(condition=condition, then_block=then_block, else_block=else_block,
                           doc=doc, span=keyword.span)

    def _parse_while(self, doc: Optional[str]) -> Optional[CodeNode]:
        keyword = self._advance()
        condition = self._parse_condition(("do",))
        if self._check_keyword("do"):
            self.pos += 1
        body, _ = self._parse_block(keyword.span)
        return WhileLoop(condition=condition, body=body, doc=doc, span=keyword.span)

    def _parse_for(self, doc: Optional[str]) -> Optional[CodeNode]:
        keyword = self._advance()
        if not (self._check(TokenKind.IDENTIFIER) and self._check(TokenKind.ASSIGNMENT, 1)):
            # Generic for: keep block structure intact but drop the loop.
            self._parse_condition(("do",))
            if self._check_keyword("do"):
                self.pos += 1
            self._parse_block(keyword.span)
            self._report(keyword.span, "generic 'for ... in' loop is not modeled")
            return None
        var = self._advance().name
        self.pos += 1  # '='
        start = self._parse_condition((",", "do"))
        end = None
        step = None
        if self._check_operator(","):
            self.pos += 1
            end = self._parse_condition((",", "do"))
        if self._check_operator(","):
            self.pos += 1
            step = self._parse_condition(("do",))
        if self._check_keyword("do"):
            self.pos += 1
        body, _ = self._parse_block(keyword.span)
        if end is None:
            self._report(keyword.span, f"numeric for loop over '{var}' has no end bound")
            return None
        return ForNumeric(var=var, start=start, end=end, step=step, body=body,
                          doc=doc, span=keyword.span)

    def _parse_do(self, doc: Optional[str]) -> Optional[CodeNode]:
        keyword = self._advance()
        body, _ = self._parse_block(keyword.span)
        return DoBlock(body=body, doc=doc, span=keyword.span)

    def _parse_repeat(self, doc: Optional[str]) -> Optional[CodeNode]:
        keyword = self._advance()
        body, terminator = self._parse_block(keyword.span, ("until",))
        condition = self._parse_expression() if terminator == "until" else None
        return RepeatUntil(body=body, condition=condition, doc=doc, span=keyword.span)

    # --- expressions ---

    def _parse_expression(self) -> Optional[Expression]:
        """Parse a primary expression

        Identifiers (dotted), number and string literals, table
        constructors and function calls. Operators are not modeled.
        """
        token = self._peek()
        if token is None:
            return None
        if token.kind in (TokenKind.NUMBER, TokenKind.STRING):
            self.pos += 1
            return Literal(token.text)
        if token.kind == TokenKind.BRACE_OPEN:
            return TableExpression(fields=self._parse_table_entries())
        if token.is_keyword("require") and (self._check(TokenKind.PAREN_OPEN, 1)
                                            or self._check(TokenKind.STRING, 1)):
            self.pos += 1
            return self._parse_call("require")
        if token.kind != TokenKind.IDENTIFIER:
            return None
        name = self._parse_qualified_name()
        if self._check(TokenKind.PAREN_OPEN) or self._check(TokenKind.STRING):
            return self._parse_call(name)
        return Identifier(name)

    def _parse_call(self, callee: str) -> FunctionCall:
        """Parse call arguments after the callee name"""
        if self._check(TokenKind.STRING):
            return FunctionCall(callee=callee, args=[Literal(self._advance().text)])
        opener = self._advance()
        args: List[Expression] = []
        while True:
            token = self._peek()
            if token is None:
                self._report(opener.span, f"call to '{callee}' is not closed")
                break
            if token.kind == TokenKind.PAREN_CLOSE:
                self.pos += 1
                break
            if token.is_operator(","):
                self.pos += 1
                continue
            start = self.pos
            arg = self._parse_expression()
            if arg is not None:
                args.append(arg)
            self._skip_until(lambda t: t.is_operator(",") or t.kind == TokenKind.PAREN_CLOSE)
            if self.pos == start:
                self.pos += 1
        return FunctionCall(callee=callee, args=args)

    def _parse_condition(self, stops: Sequence[str]) -> Expression:
        """Parse a condition or loop bound

        Takes the first primary expression before a stop token and skips
        the remaining operator tokens. A condition with no primary
        expression (``true``, ``not nil``) is kept as a literal of its text.
        """
        def is_stop(token: Token) -> bool:
            return token.text in stops and token.kind in (TokenKind.KEYWORD, TokenKind.OPERATOR)

        expr: Optional[Expression] = None
        skipped: List[str] = []
        while True:
            token = self._peek()
            if token is None or is_stop(token) or (token.kind == TokenKind.KEYWORD
                                                          and token.text in BLOCK_CLOSERS):
                break
            if expr is None:
                expr = self._parse_expression()
                if expr is not None:
                    continue
            skipped.append(token.text)
            start = self.pos
            if token.kind not in OPENING_KINDS + CLOSING_KINDS:
                self._skip_until(is_stop, single=True)
            if self.pos == start:
                self.pos += 1
        if expr is None:
            expr = Literal(" ".join(text for text in skipped if text))
        return expr

    # --- tables ---

    def _parse_table_entries(self) -> TableEntries:
        """Parse ``{ ... }`` into keyed entries

        Keys come from ``name = value``, ``["name"] = value`` and
        ``"name" = value``; positional values are skipped. A value that
        is not a primary expression is kept as None.
        """
        opener = self._advance()
        entries: TableEntries = []
        while True:
            token = self._peek()
            if token is None:
                self._report(opener.span, "table constructor is not closed")
                return entries
            if token.kind == TokenKind.BRACE_CLOSE:
                self.pos += 1
                return entries
            if token.is_operator(",") or token.is_operator(";"):
                self.pos += 1
                continue
            key = self._parse_table_key()
            if key is None:
                self._skip_table_value()
                continue
            value = self._parse_expression()
            if not self._at_table_separator():
                # Operator expressions are not modeled.
                value = None
                self._skip_table_value()
            entries.append((key, value))

    def _parse_table_key(self) -> Optional[str]:
        if self._check(TokenKind.IDENTIFIER) and self._check(TokenKind.ASSIGNMENT, 1):
            key = self._peek().name
            self.pos += 2
            return key
        if self._check(TokenKind.STRING) and self._check(TokenKind.ASSIGNMENT, 1):
            key = self._peek().text
            self.pos += 2
            return key
        if (self._check(TokenKind.BRACKET_OPEN) and self._check(TokenKind.STRING, 1)
                and self._check(TokenKind.BRACKET_CLOSE, 2) and self._check(TokenKind.ASSIGNMENT, 3)):
            key = self._peek(1).text
            self.pos += 4
            return key
        return None

    def _at_table_separator(self) -> bool:
        token = self._peek()
        return token is None or token.is_operator(",") or token.is_operator(";") \
            or token.kind == TokenKind.BRACE_CLOSE

    def _skip_table_value(self) -> None:
        start = self.pos
        self._skip_until(lambda t: t.is_operator(",") or t.is_operator(";")
                         or t.kind == TokenKind.BRACE_CLOSE)
        if self.pos == start and not self._at_table_separator():
            self.pos += 1

    # --- skipping ---

    def _skip_until(self, stop: Callable[[Token], bool], single: bool = False) -> None:
        """Skip tokens until ``stop`` matches at nesting depth zero

        Brackets and keyword blocks (``function``/``do``/``if``/``repeat``
        against ``end``/``until``) are balanced. The stop token is not
        consumed. With ``single``, at most one token (plus its nested
        group) is skipped.
        """
        depth = 0
        while True:
            token = self._peek()
            if token is None:
                return
            if depth == 0 and stop(token):
                return
            if token.kind in OPENING_KINDS or (token.kind == TokenKind.KEYWORD
                                               and token.text in BLOCK_OPENERS):
                depth += 1
            elif token.kind in CLOSING_KINDS or (token.kind == TokenKind.KEYWORD
                                                 and token.text in BLOCK_CLOSERS):
                if depth == 0:
                    return
                depth -= 1
            self.pos += 1
            if single and depth == 0:
                return

    def _dotted_name_length(self) -> int:
        """Number of tokens in the dotted name at the cursor"""
        length = 1
        while self._check_operator(".", length) and self._check(TokenKind.IDENTIFIER, length + 1):
            length += 2
        return length

    def _is_call_ahead(self) -> bool:
        length = self._dotted_name_length()
        if self._check_operator(":", length) and self._check(TokenKind.IDENTIFIER, length + 1):
            length += 2
        return self._check(TokenKind.PAREN_OPEN, length) or self._check(TokenKind.STRING, length)


def _doc_text(comment: str) -> str:
    """Doc string of a plain comment: extra leading dashes and padding removed"""
    return comment.lstrip("-").strip()


def parse_code(tokens: Sequence[Token],
               diagnostics: Optional[DiagnosticLogger] = None) -> List[CodeNode]:
    """Parse a token stream into the code syntax tree"""
    return CodeParser(tokens, diagnostics).parse()
