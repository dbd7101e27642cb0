from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .attrs import Array, AttributeSyntaxError, Literal, Meta, Value, describe, parse_attribute
from .case import RULE_NAMES, CaseRule
from .errors import Diagnostics

DEBUG_SUFFIXES = ("d", "debug")
STRUCT_KEYS = ("implicit", "symbol", "logger")
FIELD_KEYS = ("implicit", "symbol", "logger")
IMPLICIT_KEYS = ("rename", "debug")
DECORATION_KEYS = ("prefix", "suffix")


@dataclass(frozen=True)
class ImplicitMetadata:
    rename: CaseRule = CaseRule.NONE
    debug: bool | None = None


@dataclass(frozen=True)
class SymbolDecoration:
    prefix: str | None = None
    suffix: str | None = None


@dataclass(frozen=True)
class StructMetadata:
    implicit: ImplicitMetadata = ImplicitMetadata()
    symbol: SymbolDecoration = SymbolDecoration()
    logger: bool = False


@dataclass(frozen=True)
class SymbolSpec:
    """A symbol name before decoration; `bytes` names are exact and never decorated."""

    name: str | bytes
    debug: bool = False

    @property
    def exact(self) -> bool:
        return isinstance(self.name, bytes)


@dataclass(frozen=True)
class FieldMetadata:
    implicit: ImplicitMetadata = ImplicitMetadata()
    symbols: tuple[SymbolSpec, ...] = ()
    logger: bool | None = None

    def effective_rename(self, parent: StructMetadata) -> CaseRule:
        return self.implicit.rename.or_(parent.implicit.rename)

    def effective_debug(self, parent: StructMetadata) -> bool:
        if self.implicit.debug is not None:
            return self.implicit.debug
        if parent.implicit.debug is not None:
            return parent.implicit.debug
        return False

    def effective_logger(self, parent: StructMetadata) -> bool:
        if self.logger is not None:
            return self.logger
        return parent.logger


def _unknown(cx: Diagnostics, path: str, meta: Meta, expected: tuple[str, ...]) -> None:
    cx.error(f"{path}.{meta.name}", f"unknown attribute `{meta.name}`", value=meta.name, expected=expected)


def _parse_all(cx: Diagnostics, attributes: Sequence[str], path: str) -> list[Meta]:
    metas: list[Meta] = []
    for index, text in enumerate(attributes):
        label = path if len(attributes) == 1 else f"{path}[{index}]"
        try:
            metas.extend(parse_attribute(text))
        except AttributeSyntaxError as exc:
            cx.error(label, f"malformed attribute: {exc}", value=text)
    return metas


def get_lit_str(cx: Diagnostics, meta: Meta, path: str) -> str | None:
    value = meta.value
    if isinstance(value, Literal) and value.kind == "str":
        if value.suffix:
            cx.error(path, f"unexpected suffix `{value.suffix}` on string literal", value=value.text)
        return value.value
    cx.error(
        path,
        f'expected {meta.name} attribute to be a string: `{meta.name} = "..."`',
        value=describe(value) or None,
    )
    return None


def get_lit_bool(cx: Diagnostics, meta: Meta, path: str) -> bool | None:
    if meta.is_path:
        return True
    value = meta.value
    if isinstance(value, Literal) and value.kind == "bool":
        return bool(value.value)
    cx.error(
        path,
        f"expected {meta.name} attribute to be a bool: `{meta.name} = false`",
        value=describe(value) or None,
    )
    return None


def _require_list(cx: Diagnostics, meta: Meta, path: str) -> bool:
    if meta.is_list:
        return True
    cx.error(path, f"expected `{meta.name}(...)`", value=describe(meta.value) or None)
    return False


def parse_implicit(cx: Diagnostics, meta: Meta, path: str) -> ImplicitMetadata:
    rename = CaseRule.NONE
    debug: bool | None = None
    for item in meta.nested or ():
        item_path = f"{path}.{item.name}"
        if item.name == "rename":
            text = get_lit_str(cx, item, item_path)
            if text is not None:
                try:
                    rename = CaseRule.parse(text)
                except ValueError as exc:
                    cx.error(item_path, str(exc), value=text, expected=RULE_NAMES)
        elif item.name == "debug":
            flag = get_lit_bool(cx, item, item_path)
            if flag is not None:
                debug = flag
        else:
            _unknown(cx, path, item, IMPLICIT_KEYS)
    return ImplicitMetadata(rename=rename, debug=debug)


def parse_symbol_decoration(cx: Diagnostics, meta: Meta, path: str) -> SymbolDecoration:
    values: dict[str, str | None] = {"prefix": None, "suffix": None}
    for item in meta.nested or ():
        item_path = f"{path}.{item.name}"
        if item.name in DECORATION_KEYS:
            text = get_lit_str(cx, item, item_path)
            if text:
                values[item.name] = text
        else:
            _unknown(cx, path, item, DECORATION_KEYS)
    return SymbolDecoration(prefix=values["prefix"], suffix=values["suffix"])


def _symbol_element(cx: Diagnostics, value: Value, path: str) -> SymbolSpec | None:
    if not isinstance(value, Literal) or value.kind not in ("str", "bytes"):
        cx.error(path, "expected string literal in `symbol` array, found invalid element", value=describe(value))
        return None

    debug = False
    suffix = value.suffix.strip()
    if suffix in DEBUG_SUFFIXES:
        debug = True
    elif suffix:
        cx.error(path, f"unexpected suffix `{suffix}` on string literal", value=value.text, expected=DEBUG_SUFFIXES)

    name = value.value
    if not name:
        cx.error(path, "symbol name must not be empty", value=value.text)
        return None
    nul = b"\0" if isinstance(name, bytes) else "\0"
    if nul in name:
        cx.error(path, "symbol name must not contain NUL", value=value.text)
        return None
    return SymbolSpec(name=name, debug=debug)


def get_symbol_array(cx: Diagnostics, meta: Meta, path: str) -> tuple[SymbolSpec, ...]:
    value = meta.value
    if isinstance(value, Array):
        elements: tuple[Value, ...] = value.items
        indexed = True
    elif isinstance(value, Literal) and value.kind in ("str", "bytes"):
        elements = (value,)
        indexed = False
    else:
        cx.error(
            path,
            'expected symbol attribute to be a string or array of strings: `symbol = "..."` or `symbol = ["..."]`',
            value=describe(value) or None,
        )
        return ()

    specs: list[SymbolSpec] = []
    for index, element in enumerate(elements):
        spec = _symbol_element(cx, element, f"{path}[{index}]" if indexed else path)
        if spec is not None:
            specs.append(spec)
    return tuple(specs)


def resolve_struct_metadata(cx: Diagnostics, attributes: Sequence[str], path: str) -> StructMetadata:
    implicit = ImplicitMetadata()
    symbol = SymbolDecoration()
    logger = False
    for meta in _parse_all(cx, attributes, path):
        meta_path = f"{path}.{meta.name}"
        if meta.name == "implicit":
            if _require_list(cx, meta, meta_path):
                implicit = parse_implicit(cx, meta, meta_path)
        elif meta.name == "symbol":
            if _require_list(cx, meta, meta_path):
                symbol = parse_symbol_decoration(cx, meta, meta_path)
        elif meta.name == "logger":
            flag = get_lit_bool(cx, meta, meta_path)
            if flag is not None:
                logger = flag
        else:
            _unknown(cx, path, meta, STRUCT_KEYS)
    return StructMetadata(implicit=implicit, symbol=symbol, logger=logger)


def resolve_field_metadata(cx: Diagnostics, attributes: Sequence[str], path: str) -> FieldMetadata:
    implicit = ImplicitMetadata()
    symbols: tuple[SymbolSpec, ...] = ()
    logger: bool | None = None
    for meta in _parse_all(cx, attributes, path):
        meta_path = f"{path}.{meta.name}"
        if meta.name == "implicit":
            if _require_list(cx, meta, meta_path):
                implicit = parse_implicit(cx, meta, meta_path)
        elif meta.name == "symbol":
            if meta.is_name_value:
                symbols = get_symbol_array(cx, meta, meta_path)
            else:
                cx.error(meta_path, 'expected `symbol = "..."` or `symbol = ["..."]` on a field')
        elif meta.name == "logger":
            flag = get_lit_bool(cx, meta, meta_path)
            if flag is not None:
                logger = flag
        else:
            _unknown(cx, path, meta, FIELD_KEYS)
    return FieldMetadata(implicit=implicit, symbols=symbols, logger=logger)
