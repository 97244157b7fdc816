"""Tokenizer for Go source text, with automatic semicolon insertion."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterator


class TokenKind(enum.Enum):
    IDENT = "ident"
    KEYWORD = "keyword"
    INT = "int"
    FLOAT = "float"
    IMAG = "imag"
    CHAR = "char"
    STRING = "string"
    OPERATOR = "operator"
    COMMENT = "comment"
    SEMICOLON = "semicolon"
    EOF = "eof"


class LexError(ValueError):
    """Raised when the source holds text that is not a Go token."""


@dataclass(frozen=True)
class Token:
    """A token with its raw text and the line it starts on."""

    kind: TokenKind
    value: str
    line: int

    @property
    def end_line(self) -> int:
        return self.line + self.value.count("\n")


KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
})

_OPERATORS = [
    "<<=", ">>=", "&^=", "...", "&&", "||", "<-", "++", "--", "==", "!=",
    "<=", ">=", ":=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<",
    ">>", "&^", "~", "+", "-", "*", "/", "%", "&", "|", "^", "<", ">", "=",
    "!", "(", ")", "[", "]", "{", "}", ",", ";", ".", ":",
]

_NUMBER = (
    r"0[xX][0-9a-fA-F_]*(?:\.[0-9a-fA-F_]*)?(?:[pP][+-]?\d+)?i?"
    r"|0[bBoO][0-9_]+i?"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?i?"
)

_TOKEN_RE = re.compile(
    "|".join([
        r"(?P<ws>[ \t\r\f]+)",
        r"(?P<newline>\n)",
        r"(?P<line_comment>//[^\n]*)",
        r"(?P<block_comment>/\*.*?\*/)",
        r"(?P<bad_comment>/\*)",
        r"(?P<raw_string>`[^`]*`)",
        r'(?P<string>"(?:[^"\\\n]|\\.)*")',
        r"(?P<char>'(?:[^'\\\n]|\\.)+')",
        r"(?P<bad_literal>[\"`'])",
        f"(?P<number>{_NUMBER})",
        r"(?P<ident>[^\W\d]\w*)",
        "(?P<op>" + "|".join(re.escape(op) for op in _OPERATORS) + ")",
    ]),
    re.DOTALL,
)

_SEMI_AFTER_KINDS = frozenset({
    TokenKind.IDENT, TokenKind.INT, TokenKind.FLOAT, TokenKind.IMAG,
    TokenKind.CHAR, TokenKind.STRING,
})
_SEMI_AFTER_VALUES = frozenset({
    "break", "continue", "fallthrough", "return", "++", "--", ")", "]", "}",
})


def _needs_semicolon(last: Token | None) -> bool:
    if last is None:
        return False
    if last.kind in _SEMI_AFTER_KINDS:
        return True
    return (last.kind in (TokenKind.KEYWORD, TokenKind.OPERATOR)
            and last.value in _SEMI_AFTER_VALUES)


def _number_kind(text: str) -> TokenKind:
    lower = text.lower()
    if lower.endswith("i"):
        return TokenKind.IMAG
    if lower.startswith("0x"):
        return TokenKind.FLOAT if "." in lower or "p" in lower else TokenKind.INT
    if "." in lower or "e" in lower:
        return TokenKind.FLOAT
    return TokenKind.INT


def _scan(source: str) -> Iterator[Token]:
    pos = 0
    line = 1
    last: Token | None = None
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise LexError(f"line {line}: unexpected character {source[pos]!r}")
        group = match.lastgroup
        text = match.group()
        pos = match.end()

        if group == "ws":
            continue
        if group == "newline":
            if _needs_semicolon(last):
                yield Token(TokenKind.SEMICOLON, "\n", line)
            last = None
            line += 1
            continue
        if group == "bad_comment":
            raise LexError(f"line {line}: unterminated comment")
        if group == "bad_literal":
            raise LexError(f"line {line}: unterminated literal")
        if group in ("line_comment", "block_comment"):
            yield Token(TokenKind.COMMENT, text, line)
            if "\n" in text:
                if _needs_semicolon(last):
                    yield Token(TokenKind.SEMICOLON, "\n", line)
                last = None
            line += text.count("\n")
            continue

        if group in ("raw_string", "string"):
            kind = TokenKind.STRING
        elif group == "char":
            kind = TokenKind.CHAR
        elif group == "number":
            kind = _number_kind(text)
        elif group == "ident":
            kind = TokenKind.KEYWORD if text in KEYWORDS else TokenKind.IDENT
        elif text == ";":
            kind = TokenKind.SEMICOLON
        else:
            kind = TokenKind.OPERATOR
        token = Token(kind, text, line)
        yield token
        last = token
        line += text.count("\n")

    if _needs_semicolon(last):
        yield Token(TokenKind.SEMICOLON, "\n", line)
    yield Token(TokenKind.EOF, "", line)


def tokenize(source: str) -> list[Token]:
    """Split Go source into tokens, ending with an EOF token."""
    return list(_scan(source))