"""Recursive descent parser for the type declarations of a Go file.

Consumes a token stream from go_tokenizer and produces Go AST nodes.
Everything other than top-level `type` declarations (functions, methods,
vars, consts) is skipped by brace/paren matching.
"""

from __future__ import annotations

import re
from typing import List, Optional

from go2proto.errors import ParseInputError
from go2proto.models import (
    MapType,
    NamedType,
    PointerType,
    QualifiedType,
    SliceType,
    TypeExpr,
    UnsupportedType,
)

from .go_ast import GoFieldDecl, GoFile, GoInterfaceType, GoStructType, GoTypeSpec
from .go_tokenizer import GoToken, GoTokenType

_OPENERS = {GoTokenType.LBRACE, GoTokenType.LPAREN, GoTokenType.LBRACKET}
_CLOSERS = {GoTokenType.RBRACE, GoTokenType.RPAREN, GoTokenType.RBRACKET}

# Token after `Name[X` that marks a type parameter list rather than an array length.
_TYPE_PARAM_FOLLOWERS = {
    GoTokenType.IDENT,
    GoTokenType.INTERFACE,
    GoTokenType.LBRACKET,
    GoTokenType.MAP,
    GoTokenType.CHAN,
    GoTokenType.FUNC,
    GoTokenType.LPAREN,
    GoTokenType.COMMA,
}

_TYPE_STARTERS = {
    GoTokenType.IDENT,
    GoTokenType.STAR,
    GoTokenType.LBRACKET,
    GoTokenType.MAP,
    GoTokenType.CHAN,
    GoTokenType.ARROW,
    GoTokenType.FUNC,
    GoTokenType.STRUCT,
    GoTokenType.INTERFACE,
    GoTokenType.LPAREN,
}

_ESCAPE_RE = re.compile(r"\\(.)")


class GoParseError(ParseInputError):
    def __init__(self, message: str, token: GoToken | None = None):
        if token:
            super().__init__(message, line=token.line, col=token.col)
        else:
            super().__init__(message)


class GoParser:
    """Recursive descent parser for Go type declarations."""

    def __init__(self, tokens: List[GoToken]):
        self._tokens = tokens
        self._pos = 0

    # -- public API --

    def parse(self) -> GoFile:
        """Parse the full token stream into a GoFile AST."""
        go_file = GoFile()
        depth = 0

        while not self._at_end():
            tt = self._peek().type

            if depth == 0 and tt == GoTokenType.PACKAGE:
                self._advance()
                self._expect(GoTokenType.IDENT)
            elif depth == 0 and tt == GoTokenType.IMPORT:
                self._advance()
                if self._peek().type == GoTokenType.LPAREN:
                    self._skip_balanced(GoTokenType.LPAREN, GoTokenType.RPAREN)
                else:
                    self._skip_to_semicolon()
            elif depth == 0 and tt == GoTokenType.TYPE:
                self._advance()
                go_file.type_specs.extend(self._parse_type_decl())
            else:
                if tt in _OPENERS:
                    depth += 1
                elif tt in _CLOSERS:
                    depth = max(0, depth - 1)
                self._advance()

        return go_file

    # -- type declarations --

    def _parse_type_decl(self) -> List[GoTypeSpec]:
        """Parse `type Spec` or a grouped `type ( Spec; Spec )`."""
        if self._consume_if(GoTokenType.LPAREN) is None:
            spec = self._parse_type_spec()
            return [spec] if spec is not None else []

        specs: List[GoTypeSpec] = []
        while not self._at_end() and self._peek().type != GoTokenType.RPAREN:
            if self._consume_if(GoTokenType.SEMICOLON) is not None:
                continue
            spec = self._parse_type_spec()
            if spec is not None:
                specs.append(spec)
        self._expect(GoTokenType.RPAREN)
        self._consume_if(GoTokenType.SEMICOLON)
        return specs

    def _parse_type_spec(self) -> GoTypeSpec | None:
        """Parse one `Name [=] Type`. Generic declarations are consumed and dropped."""
        name_tok = self._expect(GoTokenType.IDENT)

        is_generic = self._at_type_params()
        if is_generic:
            self._skip_balanced(GoTokenType.LBRACKET, GoTokenType.RBRACKET)

        # `type A = B` and `type A B` are treated alike.
        self._consume_if(GoTokenType.ASSIGN)

        tt = self._peek().type
        if tt == GoTokenType.STRUCT:
            spec_type = self._parse_struct_type()
        elif tt == GoTokenType.INTERFACE:
            self._advance()
            self._skip_balanced(GoTokenType.LBRACE, GoTokenType.RBRACE)
            spec_type = GoInterfaceType()
        else:
            spec_type = self._parse_type()

        self._end_of(GoTokenType.RPAREN, "type declaration")

        if is_generic:
            return None
        return GoTypeSpec(name=name_tok.value, type=spec_type)

    def _at_type_params(self) -> bool:
        if self._peek().type != GoTokenType.LBRACKET:
            return False
        if self._peek_at(1).type != GoTokenType.IDENT:
            return False
        follower = self._peek_at(2)
        if follower.type in _TYPE_PARAM_FOLLOWERS:
            return True
        return follower.type == GoTokenType.OTHER and follower.value == "~"

    # -- struct parsing --

    def _parse_struct_type(self) -> GoStructType:
        """Parse `struct { members }`."""
        self._expect(GoTokenType.STRUCT)
        self._expect(GoTokenType.LBRACE)

        fields: List[GoFieldDecl] = []
        while not self._at_end() and self._peek().type != GoTokenType.RBRACE:
            if self._consume_if(GoTokenType.SEMICOLON) is not None:
                continue
            fields.append(self._parse_field_decl())

        self._expect(GoTokenType.RBRACE)
        return GoStructType(fields=fields)

    def _parse_field_decl(self) -> GoFieldDecl:
        """Parse one member line.

        Handles four forms:
        1. Name Type [tag]            -> named field
        2. A, B Type [tag]            -> several names sharing one type
        3. Base / pkg.Base [tag]      -> embedded
        4. *Base / *pkg.Base [tag]    -> embedded pointer
        """
        tok = self._peek()

        if tok.type == GoTokenType.STAR:
            self._advance()
            type_expr: TypeExpr = PointerType(self._parse_type_name())
            return self._finish_field([], type_expr)

        if tok.type != GoTokenType.IDENT:
            raise GoParseError(
                f"Expected field declaration, got {tok.type.name} ({tok.value!r})",
                tok,
            )

        next_tt = self._peek_at(1).type
        if next_tt == GoTokenType.DOT:
            return self._finish_field([], self._parse_type_name())
        if next_tt in (
            GoTokenType.SEMICOLON,
            GoTokenType.RBRACE,
            GoTokenType.STRING,
            GoTokenType.RAW_STRING,
        ):
            self._advance()
            return self._finish_field([], NamedType(tok.value))

        names = [self._advance().value]
        while self._consume_if(GoTokenType.COMMA) is not None:
            names.append(self._expect(GoTokenType.IDENT).value)
        return self._finish_field(names, self._parse_type())

    def _finish_field(self, names: List[str], type_expr: TypeExpr) -> GoFieldDecl:
        tag = self._parse_tag()
        self._end_of(GoTokenType.RBRACE, "struct field")
        return GoFieldDecl(names=names, type_expr=type_expr, tag=tag)

    def _parse_tag(self) -> Optional[str]:
        tok = self._peek()
        if tok.type == GoTokenType.RAW_STRING:
            self._advance()
            return tok.value[1:-1]
        if tok.type == GoTokenType.STRING:
            self._advance()
            return _ESCAPE_RE.sub(r"\1", tok.value[1:-1])
        return None

    # -- type expressions --

    def _parse_type(self) -> TypeExpr:
        tok = self._peek()
        tt = tok.type

        if tt == GoTokenType.STAR:
            self._advance()
            return PointerType(self._parse_type())

        if tt == GoTokenType.LBRACKET:
            if self._peek_at(1).type == GoTokenType.RBRACKET:
                self._advance()  # [
                self._advance()  # ]
            else:
                # [N]T -- the length expression is irrelevant
                self._skip_balanced(GoTokenType.LBRACKET, GoTokenType.RBRACKET)
            return SliceType(self._parse_type())

        if tt == GoTokenType.MAP:
            self._advance()
            self._expect(GoTokenType.LBRACKET)
            key = self._parse_type()
            self._expect(GoTokenType.RBRACKET)
            return MapType(key=key, value=self._parse_type())

        if tt == GoTokenType.CHAN:
            self._advance()
            self._consume_if(GoTokenType.ARROW)
            self._parse_type()
            return UnsupportedType("chan")

        if tt == GoTokenType.ARROW:
            self._advance()
            self._expect(GoTokenType.CHAN)
            self._parse_type()
            return UnsupportedType("chan")

        if tt == GoTokenType.FUNC:
            self._advance()
            self._skip_balanced(GoTokenType.LPAREN, GoTokenType.RPAREN)
            if self._peek().type == GoTokenType.LPAREN:
                self._skip_balanced(GoTokenType.LPAREN, GoTokenType.RPAREN)
            elif self._peek().type in _TYPE_STARTERS:
                self._parse_type()
            return UnsupportedType("func")

        if tt in (GoTokenType.STRUCT, GoTokenType.INTERFACE):
            self._advance()
            self._skip_balanced(GoTokenType.LBRACE, GoTokenType.RBRACE)
            return UnsupportedType(tok.value)

        if tt == GoTokenType.LPAREN:
            self._advance()
            inner = self._parse_type()
            self._expect(GoTokenType.RPAREN)
            return inner

        if tt == GoTokenType.IDENT:
            type_expr = self._parse_type_name()
            if self._peek().type == GoTokenType.LBRACKET:
                # Generic instantiation: Name[Args]
                self._skip_balanced(GoTokenType.LBRACKET, GoTokenType.RBRACKET)
                return UnsupportedType("generic")
            return type_expr

        raise GoParseError(f"Expected type, got {tt.name} ({tok.value!r})", tok)

    def _parse_type_name(self) -> TypeExpr:
        """Parse a possibly package-qualified type name: [pkg.]IDENT."""
        name = self._expect(GoTokenType.IDENT).value
        if self._consume_if(GoTokenType.DOT) is not None:
            return QualifiedType(package=name, name=self._expect(GoTokenType.IDENT).value)
        return NamedType(name)

    # -- skip / recovery helpers --

    def _end_of(self, closer: GoTokenType, what: str) -> None:
        """A declaration ends at `;`, at the enclosing closer, or at EOF."""
        if self._consume_if(GoTokenType.SEMICOLON) is not None:
            return
        tok = self._peek()
        if tok.type in (closer, GoTokenType.EOF):
            return
        raise GoParseError(
            f"Expected end of {what}, got {tok.type.name} ({tok.value!r})", tok
        )

    def _skip_to_semicolon(self) -> None:
        """Skip tokens until (and including) the next semicolon."""
        while not self._at_end():
            tok = self._advance()
            if tok.type == GoTokenType.SEMICOLON:
                return

    def _skip_balanced(self, opener: GoTokenType, closer: GoTokenType) -> None:
        """Skip a matched opener ... closer block, including both ends."""
        start = self._expect(opener)
        depth = 1
        while depth > 0:
            if self._at_end():
                raise GoParseError(f"Unclosed {start.value!r}", start)
            tok = self._advance()
            if tok.type == opener:
                depth += 1
            elif tok.type == closer:
                depth -= 1

    # -- token helpers --

    def _peek(self) -> GoToken:
        return self._tokens[self._pos]

    def _peek_at(self, offset: int) -> GoToken:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]  # EOF

    def _advance(self) -> GoToken:
        tok = self._tokens[self._pos]
        if tok.type != GoTokenType.EOF:
            self._pos += 1
        return tok

    def _expect(self, expected: GoTokenType) -> GoToken:
        tok = self._peek()
        if tok.type != expected:
            raise GoParseError(
                f"Expected {expected.name}, got {tok.type.name} ({tok.value!r})",
                tok,
            )
        return self._advance()

    def _consume_if(self, expected: GoTokenType) -> GoToken | None:
        if self._peek().type == expected:
            return self._advance()
        return None

    def _at_end(self) -> bool:
        return self._tokens[self._pos].type == GoTokenType.EOF
