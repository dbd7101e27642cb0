"""Accessor contracts synthesized per field type kind.

Raw pointers and variadic functions get no accessor: there is no way to make
them safe, so callers go through `BoundApi.raw()` explicitly.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .types import DeclaredType, TypeKind


class AccessorRole(Enum):
    CALL = "call"
    CALL_OPTIONAL = "call_optional"
    PRESENCE = "presence"
    BORROW = "borrow"
    BORROW_MUT = "borrow_mut"
    BORROW_OPTIONAL = "borrow_optional"
    BORROW_MUT_OPTIONAL = "borrow_mut_optional"


@dataclass(frozen=True)
class Accessor:
    name: str
    role: AccessorRole

    def as_dict(self) -> dict[str, str]:
        return {"name": self.name, "role": self.role.value}


@dataclass(frozen=True)
class AccessorContract:
    kind: TypeKind
    required: bool
    accessors: tuple[Accessor, ...] = ()

    @property
    def raw_only(self) -> bool:
        return not self.accessors

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "required": self.required,
            "accessors": [accessor.as_dict() for accessor in self.accessors],
        }


_ROLES: dict[TypeKind, tuple[tuple[str, AccessorRole], ...]] = {
    TypeKind.FUNCTION: (("{name}", AccessorRole.CALL),),
    TypeKind.OPTIONAL_FUNCTION: (
        ("{name}", AccessorRole.CALL_OPTIONAL),
        ("has_{name}", AccessorRole.PRESENCE),
    ),
    TypeKind.VARIADIC_FUNCTION: (),
    TypeKind.IMMUTABLE_REFERENCE: (("{name}", AccessorRole.BORROW),),
    TypeKind.MUTABLE_REFERENCE: (
        ("{name}", AccessorRole.BORROW),
        ("mut_{name}", AccessorRole.BORROW_MUT),
    ),
    TypeKind.OPTIONAL_IMMUTABLE_REFERENCE: (("{name}", AccessorRole.BORROW_OPTIONAL),),
    TypeKind.OPTIONAL_MUTABLE_REFERENCE: (("{name}", AccessorRole.BORROW_MUT_OPTIONAL),),
    TypeKind.RAW_POINTER: (),
    TypeKind.OPTIONAL_RAW_POINTER: (),
}


def synthesize_contract(field_name: str, declared: DeclaredType) -> AccessorContract:
    accessors = tuple(
        Accessor(name=template.format(name=field_name), role=role) for template, role in _ROLES[declared.kind]
    )
    return AccessorContract(kind=declared.kind, required=not declared.kind.optional, accessors=accessors)
