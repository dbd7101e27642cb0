from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema

from .common import load_json_object
from .errors import Diagnostics

SCHEMA_DOCUMENT_PATH = Path(__file__).resolve().parent / "schemas" / "binding.schema.v1.json"


def _attribute_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class FieldDecl:
    name: str
    declared_type: str
    attributes: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "type": self.declared_type}
        if self.attributes:
            payload["native"] = list(self.attributes)
        return payload


@dataclass(frozen=True)
class Schema:
    name: str
    fields: tuple[FieldDecl, ...]
    attributes: tuple[str, ...] = ()
    library: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Schema:
        fields = tuple(
            FieldDecl(
                name=item["name"],
                declared_type=item["type"],
                attributes=_attribute_tuple(item.get("native")),
            )
            for item in payload.get("fields", [])
        )
        return cls(
            name=payload["name"],
            fields=fields,
            attributes=_attribute_tuple(payload.get("native")),
            library=payload.get("library"),
        )

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        if self.library is not None:
            payload["library"] = self.library
        if self.attributes:
            payload["native"] = list(self.attributes)
        payload["fields"] = [field.as_dict() for field in self.fields]
        return payload


def load_schema_document() -> dict[str, Any]:
    return json.loads(SCHEMA_DOCUMENT_PATH.read_text(encoding="utf-8"))


def validate_schema_payload(payload: dict[str, Any], cx: Diagnostics) -> None:
    validator = jsonschema.Draft202012Validator(load_schema_document())
    errors = sorted(validator.iter_errors(payload), key=lambda error: error.json_path)
    for error in errors:
        cx.error(error.json_path, error.message, value=json.dumps(error.instance, sort_keys=True))


def schema_from_payload(payload: dict[str, Any]) -> Schema:
    cx = Diagnostics()
    validate_schema_payload(payload, cx)
    cx.check()
    return Schema.from_dict(payload)


def load_schema(path: Path) -> Schema:
    return schema_from_payload(load_json_object(path))
