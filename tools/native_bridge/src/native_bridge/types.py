from __future__ import annotations

import ctypes
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any


class UnsupportedType(ValueError):
    pass


class TypeKind(Enum):
    FUNCTION = "function"
    OPTIONAL_FUNCTION = "optional_function"
    VARIADIC_FUNCTION = "variadic_function"
    IMMUTABLE_REFERENCE = "immutable_reference"
    MUTABLE_REFERENCE = "mutable_reference"
    OPTIONAL_IMMUTABLE_REFERENCE = "optional_immutable_reference"
    OPTIONAL_MUTABLE_REFERENCE = "optional_mutable_reference"
    RAW_POINTER = "raw_pointer"
    OPTIONAL_RAW_POINTER = "optional_raw_pointer"

    @property
    def optional(self) -> bool:
        return self in _OPTIONAL_OF.values()

    @property
    def is_function(self) -> bool:
        return self in (TypeKind.FUNCTION, TypeKind.OPTIONAL_FUNCTION, TypeKind.VARIADIC_FUNCTION)

    @property
    def is_reference(self) -> bool:
        return self in (
            TypeKind.IMMUTABLE_REFERENCE,
            TypeKind.MUTABLE_REFERENCE,
            TypeKind.OPTIONAL_IMMUTABLE_REFERENCE,
            TypeKind.OPTIONAL_MUTABLE_REFERENCE,
        )


_OPTIONAL_OF = {
    TypeKind.FUNCTION: TypeKind.OPTIONAL_FUNCTION,
    TypeKind.IMMUTABLE_REFERENCE: TypeKind.OPTIONAL_IMMUTABLE_REFERENCE,
    TypeKind.MUTABLE_REFERENCE: TypeKind.OPTIONAL_MUTABLE_REFERENCE,
    TypeKind.RAW_POINTER: TypeKind.OPTIONAL_RAW_POINTER,
}

SUPPORTED_FORMS = (
    "R (*)(P...)",
    "R (*)(P..., ...)",
    "const T &",
    "T &",
    "T *",
    "optional<R (*)(P...)>",
    "optional<const T &>",
    "optional<T &>",
    "optional<T *>",
)

C_SCALAR_TYPES: dict[str, Any] = {
    "void": None,
    "bool": ctypes.c_bool,
    "char": ctypes.c_char,
    "signed char": ctypes.c_byte,
    "unsigned char": ctypes.c_ubyte,
    "wchar_t": ctypes.c_wchar,
    "short": ctypes.c_short,
    "short int": ctypes.c_short,
    "unsigned short": ctypes.c_ushort,
    "unsigned short int": ctypes.c_ushort,
    "int": ctypes.c_int,
    "signed": ctypes.c_int,
    "signed int": ctypes.c_int,
    "unsigned": ctypes.c_uint,
    "unsigned int": ctypes.c_uint,
    "long": ctypes.c_long,
    "long int": ctypes.c_long,
    "unsigned long": ctypes.c_ulong,
    "unsigned long int": ctypes.c_ulong,
    "long long": ctypes.c_longlong,
    "long long int": ctypes.c_longlong,
    "unsigned long long": ctypes.c_ulonglong,
    "unsigned long long int": ctypes.c_ulonglong,
    "float": ctypes.c_float,
    "double": ctypes.c_double,
    "long double": ctypes.c_longdouble,
    "size_t": ctypes.c_size_t,
    "ssize_t": ctypes.c_ssize_t,
    "int8_t": ctypes.c_int8,
    "uint8_t": ctypes.c_uint8,
    "int16_t": ctypes.c_int16,
    "uint16_t": ctypes.c_uint16,
    "int32_t": ctypes.c_int32,
    "uint32_t": ctypes.c_uint32,
    "int64_t": ctypes.c_int64,
    "uint64_t": ctypes.c_uint64,
    "intptr_t": ctypes.c_ssize_t,
    "uintptr_t": ctypes.c_size_t,
}

_QUALIFIERS_RE = re.compile(r"\b(?:const|volatile|restrict|__restrict|struct|enum)\b")
_FUNCTION_PTR_RE = re.compile(r"^(?P<ret>.+?)\(\s*\*\s*(?P<name>[A-Za-z_][A-Za-z0-9_]*)?\s*\)\s*\((?P<params>.*)\)$")
_OPTIONAL_RE = re.compile(r"^optional\s*<(?P<inner>.*)>$")


@dataclass(frozen=True)
class Param:
    name: str
    c_type: str
    named: bool = True


@dataclass(frozen=True)
class DeclaredType:
    kind: TypeKind
    text: str
    return_type: str | None = None
    params: tuple[Param, ...] = ()
    target: str | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind.value, "text": self.text}
        if self.kind.is_function:
            payload["return_type"] = self.return_type
            payload["params"] = [{"name": p.name, "c_type": p.c_type} for p in self.params]
        else:
            payload["target"] = self.target
        return payload


def normalize_ws(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def normalize_c_type(value: str) -> str:
    text = normalize_ws(value)
    text = re.sub(r"\s*\*\s*", "*", text)
    text = re.sub(r"\s*&\s*", "&", text)
    return text


def split_c_parameters(parameters: str) -> list[str]:
    raw = parameters.strip()
    if not raw or raw == "void":
        return []

    parts: list[str] = []
    token: list[str] = []
    depth = 0

    for ch in raw:
        if ch == "," and depth == 0:
            parts.append(normalize_ws("".join(token)))
            token = []
            continue

        token.append(ch)
        if ch in "([<":
            depth += 1
        elif ch in ")]>":
            depth = max(0, depth - 1)

    parts.append(normalize_ws("".join(token)))
    return parts


def parse_c_parameter_decl(declaration: str, index: int) -> Param:
    decl = normalize_ws(declaration)
    if not decl:
        raise UnsupportedType(f"empty parameter at position {index}")
    if decl == "...":
        return Param(name="...", c_type="...", named=False)

    function_ptr = re.search(r"\(\s*\*\s*(?P<name>[A-Za-z_][A-Za-z0-9_]*)?\s*\)\s*\(", decl)
    if function_ptr:
        name = function_ptr.group("name")
        c_type = normalize_c_type(decl.replace(name, "", 1) if name else decl)
        return Param(name=name or f"arg{index}", c_type=c_type, named=bool(name))

    array_decl = re.match(
        r"^(?P<left>.+?)\s*(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?P<array>(?:\[[^\]]*\])+)\s*$",
        decl,
    )
    if array_decl:
        left = normalize_c_type(array_decl.group("left"))
        return Param(name=array_decl.group("name"), c_type=normalize_c_type(f"{left}*"), named=True)

    regular = re.match(r"^(?P<left>.+?[\s*&])(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s*$", decl)
    if regular:
        left = normalize_c_type(regular.group("left"))
        candidate = normalize_c_type(f"{left} {regular.group('name')}")
        # "unsigned int" and friends: the trailing word belongs to the type.
        if not left.endswith(("*", "&")) and _strip_qualifiers(candidate) in C_SCALAR_TYPES:
            return Param(name=f"arg{index}", c_type=candidate, named=False)
        if _strip_qualifiers(left) not in ("", "const", "volatile"):
            return Param(name=regular.group("name"), c_type=left, named=True)

    return Param(name=f"arg{index}", c_type=normalize_c_type(decl), named=False)


def _strip_qualifiers(c_type: str) -> str:
    return normalize_c_type(_QUALIFIERS_RE.sub(" ", c_type))


def ctype_for(c_type: str) -> Any:
    """Map a C type spelling onto a ctypes type; `None` stands for `void`."""
    if "(" in c_type:
        # function pointer parameters travel as opaque addresses
        return ctypes.c_void_p
    base = _strip_qualifiers(c_type)
    depth = len(base) - len(base.rstrip("*"))
    name = base.rstrip("*").strip()
    if depth == 0:
        if name not in C_SCALAR_TYPES:
            raise UnsupportedType(f"unknown C type `{c_type}`, pass it by pointer or use a fixed-size integer type")
        return C_SCALAR_TYPES[name]
    if depth == 1:
        if name == "char":
            return ctypes.c_char_p
        if name == "wchar_t":
            return ctypes.c_wchar_p
        scalar = C_SCALAR_TYPES.get(name)
        if scalar is not None:
            return ctypes.POINTER(scalar)
    return ctypes.c_void_p


def _parse_function(text: str, match: re.Match[str]) -> DeclaredType:
    return_type = normalize_c_type(match.group("ret"))
    ctype_for(return_type)
    chunks = split_c_parameters(match.group("params"))
    params = tuple(parse_c_parameter_decl(chunk, idx) for idx, chunk in enumerate(chunks))
    variadic = False
    for idx, param in enumerate(params):
        if param.c_type == "...":
            if idx != len(params) - 1:
                raise UnsupportedType("`...` must be the last parameter")
            variadic = True
            continue
        if ctype_for(param.c_type) is None:
            raise UnsupportedType(f"parameter {idx} cannot have type `void`")
    if variadic:
        return DeclaredType(
            kind=TypeKind.VARIADIC_FUNCTION,
            text=text,
            return_type=return_type,
            params=params[:-1],
        )
    return DeclaredType(kind=TypeKind.FUNCTION, text=text, return_type=return_type, params=params)


def _parse_reference(text: str) -> DeclaredType:
    target = normalize_c_type(text[:-1])
    words = target.split()
    mutable = "const" not in words
    if not mutable:
        target = normalize_ws(" ".join(word for word in words if word != "const"))
    if not target:
        raise UnsupportedType("reference without a target type")
    if ctype_for(target) is None:
        raise UnsupportedType("a reference to `void` cannot be dereferenced, use `void *`")
    kind = TypeKind.MUTABLE_REFERENCE if mutable else TypeKind.IMMUTABLE_REFERENCE
    return DeclaredType(kind=kind, text=text, target=target)


def parse_declared_type(text: str) -> DeclaredType:
    raw = normalize_ws(text)
    optional = _OPTIONAL_RE.match(raw)
    if optional:
        inner = parse_declared_type(optional.group("inner"))
        if inner.kind is TypeKind.VARIADIC_FUNCTION:
            raise UnsupportedType(f"unsupported type: `{raw}`, variadic functions cannot be optional")
        if inner.kind.optional:
            raise UnsupportedType(f"unsupported type: `{raw}`, nested optional<...>")
        return DeclaredType(
            kind=_OPTIONAL_OF[inner.kind],
            text=raw,
            return_type=inner.return_type,
            params=inner.params,
            target=inner.target,
        )

    function = _FUNCTION_PTR_RE.match(raw)
    if function:
        return _parse_function(raw, function)
    if raw.endswith("&"):
        return _parse_reference(raw)
    if raw.endswith("*") and normalize_c_type(raw[:-1]):
        target = normalize_c_type(raw[:-1])
        return DeclaredType(kind=TypeKind.RAW_POINTER, text=raw, target=target)

    forms = ", ".join(f"`{form}`" for form in SUPPORTED_FORMS)
    raise UnsupportedType(f"unsupported type: `{raw}`, expected one of {forms}")
