from __future__ import annotations

import json
import keyword
import re
from dataclasses import dataclass
from typing import Any

from .errors import Diagnostic, Diagnostics
from .metadata import StructMetadata, resolve_field_metadata, resolve_struct_metadata
from .plan import ResolutionPlan, build_plan
from .schema import FieldDecl, Schema
from .types import DeclaredType, UnsupportedType, parse_declared_type
from .wrapper import AccessorContract, synthesize_contract

DESCRIPTOR_FORMAT_VERSION = 1
RESERVED_ACCESSOR_NAMES = frozenset({"descriptor", "field_names", "load_from", "raw", "release", "released"})
_IDENTIFIER_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class FieldBinding:
    decl: FieldDecl
    declared: DeclaredType
    plan: ResolutionPlan
    contract: AccessorContract
    logger: bool

    @property
    def name(self) -> str:
        return self.decl.name

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.decl.name,
            "type": self.declared.as_dict(),
            "plan": self.plan.as_list(),
            "contract": self.contract.as_dict(),
            "logger": self.logger,
        }


@dataclass(frozen=True)
class BindingDescriptor:
    name: str
    library: str | None
    fields: tuple[FieldBinding, ...]

    def field(self, name: str) -> FieldBinding:
        for binding in self.fields:
            if binding.name == name:
                return binding
        raise KeyError(name)

    def as_dict(self) -> dict[str, Any]:
        return {
            "format_version": DESCRIPTOR_FORMAT_VERSION,
            "name": self.name,
            "library": self.library,
            "fields": [binding.as_dict() for binding in self.fields],
        }

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), indent=2, sort_keys=True) + "\n"


def _check_identifier(cx: Diagnostics, path: str, value: str, label: str) -> bool:
    if not _IDENTIFIER_RE.match(value) or keyword.iskeyword(value):
        cx.error(
            path,
            f"{label} `{value}` must be an identifier that is not a keyword and does not start with `_`",
            value=value,
        )
        return False
    return True


def _derive_field(cx: Diagnostics, decl: FieldDecl, parent: StructMetadata, path: str) -> FieldBinding | None:
    meta = resolve_field_metadata(cx, decl.attributes, f"{path}.native")
    try:
        declared = parse_declared_type(decl.declared_type)
    except UnsupportedType as exc:
        cx.error(f"{path}.type", str(exc), value=decl.declared_type)
        return None
    plan = build_plan(decl.name, meta, parent)
    contract = synthesize_contract(decl.name, declared)
    return FieldBinding(
        decl=decl,
        declared=declared,
        plan=plan,
        contract=contract,
        logger=meta.effective_logger(parent),
    )


def _check_accessor_names(cx: Diagnostics, schema_name: str, fields: list[FieldBinding]) -> None:
    owners: dict[str, str] = {}
    for binding in fields:
        for accessor in binding.contract.accessors:
            path = f"{schema_name}.{binding.name}"
            if accessor.name in RESERVED_ACCESSOR_NAMES:
                cx.error(path, f"accessor `{accessor.name}` is reserved", value=accessor.name)
                continue
            owner = owners.get(accessor.name)
            if owner is not None and owner != binding.name:
                cx.error(
                    path,
                    f"accessor `{accessor.name}` collides with an accessor of field `{owner}`",
                    value=accessor.name,
                )
                continue
            owners[accessor.name] = binding.name


def _derive(schema: Schema) -> tuple[BindingDescriptor | None, Diagnostics]:
    cx = Diagnostics()
    root = schema.name
    _check_identifier(cx, root, schema.name, "struct name")
    if schema.library is not None and not schema.library.strip():
        cx.error(f"{root}.library", "the library name must not be empty", value=schema.library)

    parent = resolve_struct_metadata(cx, schema.attributes, f"{root}.native")

    seen: set[str] = set()
    fields: list[FieldBinding] = []
    for decl in schema.fields:
        path = f"{root}.{decl.name}"
        usable = _check_identifier(cx, path, decl.name, "field name")
        if usable and decl.name in seen:
            cx.error(path, f"duplicate field `{decl.name}`", value=decl.name)
            usable = False
        seen.add(decl.name)
        # attributes and type are still checked for unusable names
        binding = _derive_field(cx, decl, parent, path)
        if usable and binding is not None:
            fields.append(binding)

    _check_accessor_names(cx, root, fields)
    if cx:
        return None, cx
    return BindingDescriptor(name=schema.name, library=schema.library, fields=tuple(fields)), cx


def collect_diagnostics(schema: Schema) -> tuple[Diagnostic, ...]:
    _, cx = _derive(schema)
    return cx.items


def derive_descriptor(schema: Schema) -> BindingDescriptor:
    """Derive resolution plans and accessor contracts for every field of `schema`.

    Raises `SchemaError` carrying every diagnostic when anything in the schema is
    malformed; no partial descriptor is ever returned.
    """
    descriptor, cx = _derive(schema)
    cx.check()
    assert descriptor is not None
    return descriptor
