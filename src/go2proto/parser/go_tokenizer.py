"""Tokenizer for Go source files.

Only produces what the type-declaration parser needs. Semicolons are
inserted at line ends following the Go automatic semicolon rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import List


class GoTokenType(Enum):
    # Keywords
    PACKAGE = auto()
    IMPORT = auto()
    TYPE = auto()
    STRUCT = auto()
    INTERFACE = auto()
    MAP = auto()
    CHAN = auto()
    FUNC = auto()

    # Delimiters / operators
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    SEMICOLON = auto()
    COMMA = auto()
    DOT = auto()
    STAR = auto()
    ASSIGN = auto()
    ARROW = auto()
    OTHER = auto()

    # Literals
    IDENT = auto()
    NUMBER = auto()
    STRING = auto()
    RAW_STRING = auto()
    CHAR = auto()

    # Special
    EOF = auto()


_KEYWORDS = {
    "package": GoTokenType.PACKAGE,
    "import": GoTokenType.IMPORT,
    "type": GoTokenType.TYPE,
    "struct": GoTokenType.STRUCT,
    "interface": GoTokenType.INTERFACE,
    "map": GoTokenType.MAP,
    "chan": GoTokenType.CHAN,
    "func": GoTokenType.FUNC,
}

_SINGLE_CHAR_TOKENS = {
    "{": GoTokenType.LBRACE,
    "}": GoTokenType.RBRACE,
    "(": GoTokenType.LPAREN,
    ")": GoTokenType.RPAREN,
    "[": GoTokenType.LBRACKET,
    "]": GoTokenType.RBRACKET,
    ";": GoTokenType.SEMICOLON,
    ",": GoTokenType.COMMA,
    ".": GoTokenType.DOT,
    "*": GoTokenType.STAR,
    "=": GoTokenType.ASSIGN,
}

_ENDS_STATEMENT = {
    GoTokenType.IDENT,
    GoTokenType.NUMBER,
    GoTokenType.STRING,
    GoTokenType.RAW_STRING,
    GoTokenType.CHAR,
    GoTokenType.RPAREN,
    GoTokenType.RBRACKET,
    GoTokenType.RBRACE,
}


@dataclass
class GoToken:
    type: GoTokenType
    value: str
    line: int
    col: int


class GoTokenizeError(Exception):
    def __init__(self, message: str, line: int, col: int):
        self.line = line
        self.col = col
        super().__init__(message)


def _ends_statement(tokens: List[GoToken]) -> bool:
    if not tokens:
        return False
    last = tokens[-1]
    if last.type in _ENDS_STATEMENT:
        return True
    return last.type == GoTokenType.OTHER and last.value in ("++", "--")


def tokenize_go(text: str) -> List[GoToken]:
    """Tokenize a Go source string into a list of tokens."""
    tokens: List[GoToken] = []
    i = 0
    line = 1
    col = 1
    n = len(text)

    def newline() -> None:
        if _ends_statement(tokens):
            tokens.append(GoToken(GoTokenType.SEMICOLON, "\n", line, col))

    while i < n:
        ch = text[i]

        # Whitespace
        if ch in (" ", "\t", "\r"):
            i += 1
            col += 1
            continue

        if ch == "\n":
            newline()
            i += 1
            line += 1
            col = 1
            continue

        # Single-line comment
        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                i += 1
            continue

        # Multi-line comment; acts like a newline if it spans lines
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            start_line, start_col = line, col
            i += 2
            col += 2
            spans_lines = False
            while True:
                if i >= n:
                    raise GoTokenizeError("unterminated comment", start_line, start_col)
                if text[i] == "\n":
                    if not spans_lines:
                        newline()
                    spans_lines = True
                    line += 1
                    col = 1
                    i += 1
                elif text[i] == "*" and i + 1 < n and text[i + 1] == "/":
                    i += 2
                    col += 2
                    break
                else:
                    col += 1
                    i += 1
            continue

        # Raw string: `...`, may span lines
        if ch == "`":
            start, start_line, start_col = i, line, col
            i += 1
            col += 1
            while i < n and text[i] != "`":
                if text[i] == "\n":
                    line += 1
                    col = 1
                else:
                    col += 1
                i += 1
            if i >= n:
                raise GoTokenizeError("unterminated raw string", start_line, start_col)
            i += 1
            col += 1
            tokens.append(GoToken(GoTokenType.RAW_STRING, text[start:i], start_line, start_col))
            continue

        # Interpreted string "..." or rune '...'
        if ch in ('"', "'"):
            quote = ch
            start, start_col = i, col
            i += 1
            col += 1
            while i < n and text[i] != quote:
                if text[i] == "\n":
                    raise GoTokenizeError("newline in string literal", line, start_col)
                if text[i] == "\\":
                    i += 1
                    col += 1
                i += 1
                col += 1
            if i >= n:
                raise GoTokenizeError("unterminated string literal", line, start_col)
            i += 1
            col += 1
            tok_type = GoTokenType.STRING if quote == '"' else GoTokenType.CHAR
            tokens.append(GoToken(tok_type, text[start:i], line, start_col))
            continue

        # Channel arrow
        if ch == "<" and i + 1 < n and text[i + 1] == "-":
            tokens.append(GoToken(GoTokenType.ARROW, "<-", line, col))
            i += 2
            col += 2
            continue

        # Increment / decrement matter for semicolon insertion
        if ch in ("+", "-") and i + 1 < n and text[i + 1] == ch:
            tokens.append(GoToken(GoTokenType.OTHER, ch * 2, line, col))
            i += 2
            col += 2
            continue

        # "=" alone is ASSIGN; "==", ":=" and friends are OTHER
        if ch == "=" and i + 1 < n and text[i + 1] == "=":
            tokens.append(GoToken(GoTokenType.OTHER, "==", line, col))
            i += 2
            col += 2
            continue

        if ch in _SINGLE_CHAR_TOKENS:
            tokens.append(GoToken(_SINGLE_CHAR_TOKENS[ch], ch, line, col))
            i += 1
            col += 1
            continue

        # Number (digits, hex, floats; precision does not matter here)
        if ch.isdigit():
            start = i
            start_col = col
            while i < n and (text[i].isalnum() or text[i] in "_."):
                i += 1
                col += 1
            tokens.append(GoToken(GoTokenType.NUMBER, text[start:i], line, start_col))
            continue

        # Identifier / keyword
        if ch.isalpha() or ch == "_":
            start = i
            start_col = col
            while i < n and (text[i].isalnum() or text[i] == "_"):
                i += 1
                col += 1
            word = text[start:i]
            tok_type = _KEYWORDS.get(word, GoTokenType.IDENT)
            tokens.append(GoToken(tok_type, word, line, start_col))
            continue

        # Anything else (operators we do not care about)
        tokens.append(GoToken(GoTokenType.OTHER, ch, line, col))
        i += 1
        col += 1

    newline()
    tokens.append(GoToken(GoTokenType.EOF, "", line, col))
    return tokens
