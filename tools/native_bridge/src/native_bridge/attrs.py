"""Parser for the body of a `native(...)` attribute.

The grammar is a small nested key/value language::

    meta_list := meta ("," meta)* [","]
    meta      := IDENT | IDENT "=" value | IDENT "(" [meta_list] ")"
    value     := STRING [SUFFIX] | BYTES [SUFFIX] | INT | IDENT
               | "[" [value ("," value)* [","]] "]"

`true` and `false` identifiers become bool literals. A suffix is an
identifier glued to the closing quote of a string, e.g. `"open"debug`.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Union

from .errors import NativeBridgeError


class AttributeSyntaxError(NativeBridgeError):
    def __init__(self, message: str, offset: int) -> None:
        self.offset = offset
        super().__init__(f"{message} at offset {offset}")


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    offset: int
    value: Any = None
    suffix: str = ""


@dataclass(frozen=True)
class Literal:
    kind: str
    value: Any
    offset: int
    suffix: str = ""
    text: str = ""


@dataclass(frozen=True)
class Array:
    items: tuple[Value, ...]
    offset: int
    text: str = ""


Value = Union[Literal, Array]


@dataclass(frozen=True)
class Meta:
    name: str
    offset: int
    value: Value | None = None
    nested: tuple[Meta, ...] | None = None

    @property
    def is_path(self) -> bool:
        return self.value is None and self.nested is None

    @property
    def is_name_value(self) -> bool:
        return self.value is not None

    @property
    def is_list(self) -> bool:
        return self.nested is not None


_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_INT_RE = re.compile(r"-?[0-9]+")
_PUNCT = "()[],="
_SIMPLE_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "0": "\0",
}


def _read_quoted(text: str, start: int) -> tuple[str, int]:
    quote = text[start]
    out: list[str] = []
    idx = start + 1
    while idx < len(text):
        ch = text[idx]
        if ch == quote:
            return "".join(out), idx + 1
        if ch == "\\":
            if idx + 1 >= len(text):
                break
            esc = text[idx + 1]
            if esc in _SIMPLE_ESCAPES:
                out.append(_SIMPLE_ESCAPES[esc])
                idx += 2
                continue
            if esc == "x":
                digits = text[idx + 2 : idx + 4]
                if len(digits) != 2 or not all(c in "0123456789abcdefABCDEF" for c in digits):
                    raise AttributeSyntaxError("invalid \\x escape in string literal", idx)
                out.append(chr(int(digits, 16)))
                idx += 4
                continue
            raise AttributeSyntaxError(f"unknown escape sequence '\\{esc}'", idx)
        out.append(ch)
        idx += 1
    raise AttributeSyntaxError("unterminated string literal", start)


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    idx = 0
    while idx < len(text):
        ch = text[idx]
        if ch.isspace():
            idx += 1
            continue
        if ch in _PUNCT:
            tokens.append(Token(kind=ch, text=ch, offset=idx))
            idx += 1
            continue

        is_bytes = ch == "b" and idx + 1 < len(text) and text[idx + 1] in "\"'"
        if ch in "\"'" or is_bytes:
            start = idx
            quote_at = idx + 1 if is_bytes else idx
            value, end = _read_quoted(text, quote_at)
            suffix_match = _IDENT_RE.match(text, end)
            suffix = ""
            if suffix_match:
                suffix = suffix_match.group(0)
                end = suffix_match.end()
            if is_bytes:
                if not text[quote_at:end].isascii():
                    raise AttributeSyntaxError("bytes literal may only contain ASCII characters and \\x escapes", start)
                raw = value.encode("latin-1")
                tokens.append(Token(kind="bytes", text=text[start:end], offset=start, value=raw, suffix=suffix))
            else:
                tokens.append(Token(kind="str", text=text[start:end], offset=start, value=value, suffix=suffix))
            idx = end
            continue

        match = _INT_RE.match(text, idx)
        if match:
            tokens.append(Token(kind="int", text=match.group(0), offset=idx, value=int(match.group(0))))
            idx = match.end()
            continue

        match = _IDENT_RE.match(text, idx)
        if match:
            tokens.append(Token(kind="ident", text=match.group(0), offset=idx, value=match.group(0)))
            idx = match.end()
            continue

        raise AttributeSyntaxError(f"unexpected character {ch!r}", idx)
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def expect(self, kind: str, what: str) -> Token:
        token = self.peek()
        if token is None:
            raise AttributeSyntaxError(f"expected {what}, found end of input", len(self.text))
        if token.kind != kind:
            raise AttributeSyntaxError(f"expected {what}, found `{token.text}`", token.offset)
        return self.advance()

    def accept(self, kind: str) -> bool:
        token = self.peek()
        if token is not None and token.kind == kind:
            self.pos += 1
            return True
        return False

    def parse_meta_list(self, closing: str | None) -> tuple[Meta, ...]:
        items: list[Meta] = []
        while True:
            token = self.peek()
            if token is None or (closing is not None and token.kind == closing):
                break
            items.append(self.parse_meta())
            if not self.accept(","):
                break
        token = self.peek()
        if closing is not None:
            self.expect(closing, f"`,` or `{closing}`")
        elif token is not None:
            raise AttributeSyntaxError(f"expected `,`, found `{token.text}`", token.offset)
        return tuple(items)

    def parse_meta(self) -> Meta:
        name = self.expect("ident", "attribute name")
        if self.accept("="):
            return Meta(name=name.text, offset=name.offset, value=self.parse_value())
        if self.accept("("):
            return Meta(name=name.text, offset=name.offset, nested=self.parse_meta_list(")"))
        return Meta(name=name.text, offset=name.offset)

    def parse_value(self) -> Value:
        token = self.peek()
        if token is None:
            raise AttributeSyntaxError("expected a value, found end of input", len(self.text))
        if token.kind == "[":
            start = self.advance().offset
            items: list[Value] = []
            while True:
                nxt = self.peek()
                if nxt is None or nxt.kind == "]":
                    break
                items.append(self.parse_value())
                if not self.accept(","):
                    break
            end = self.expect("]", "`,` or `]`")
            return Array(items=tuple(items), offset=start, text=self.text[start : end.offset + 1])
        if token.kind in ("str", "bytes", "int"):
            self.advance()
            return Literal(kind=token.kind, value=token.value, offset=token.offset, suffix=token.suffix, text=token.text)
        if token.kind == "ident":
            self.advance()
            if token.text in ("true", "false"):
                return Literal(kind="bool", value=token.text == "true", offset=token.offset, text=token.text)
            return Literal(kind="ident", value=token.text, offset=token.offset, text=token.text)
        raise AttributeSyntaxError(f"expected a value, found `{token.text}`", token.offset)


def parse_attribute(text: str) -> tuple[Meta, ...]:
    """Parse one attribute body such as `implicit(rename = "PascalCase"), logger`."""
    parser = _Parser(text)
    return parser.parse_meta_list(None)


def describe(value: Value | None) -> str:
    if value is None:
        return ""
    return value.text
