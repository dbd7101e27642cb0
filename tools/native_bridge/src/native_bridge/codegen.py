from __future__ import annotations

import keyword
import pprint
from typing import Sequence

from .binding import ROLE_METHODS
from .descriptor import FieldBinding, derive_descriptor
from .schema import Schema
from .types import Param
from .wrapper import Accessor, AccessorRole

CALL_ROLES = (AccessorRole.CALL, AccessorRole.CALL_OPTIONAL)


def python_param_names(params: Sequence[Param]) -> list[str]:
    names: list[str] = []
    for index, param in enumerate(params):
        name = param.name
        if not param.named or not name.isidentifier() or keyword.iskeyword(name) or name == "self":
            name = f"arg{index}"
        while name in names:
            name = f"{name}_"
        names.append(name)
    return names


def _render_accessor(binding: FieldBinding, accessor: Accessor) -> list[str]:
    method = ROLE_METHODS[accessor.role]
    field = repr(binding.name)
    if accessor.role in CALL_ROLES:
        params = python_param_names(binding.declared.params)
        signature = ", ".join(["self", *params])
        arguments = ", ".join([field, *params])
    else:
        signature = "self"
        arguments = field
    return [
        "",
        f"    def {accessor.name}({signature}):",
        f"        return self.{method}({arguments})",
    ]


def render_api_module(schema: Schema) -> str:
    descriptor = derive_descriptor(schema)
    literal = pprint.pformat(schema.as_dict(), indent=1, width=100, sort_dicts=True)

    lines = [
        f"# Generated by native_bridge from binding schema '{schema.name}'. Do not edit.",
        "from __future__ import annotations",
        "",
        "from native_bridge import BoundApi, Schema, derive_descriptor",
        "",
        "SCHEMA = Schema.from_dict(",
    ]
    lines.extend(f"    {line}" for line in literal.splitlines())
    lines.extend(
        [
            ")",
            "",
            "",
            f"class {descriptor.name}(BoundApi):",
            "    descriptor = derive_descriptor(SCHEMA)",
        ]
    )
    for binding in descriptor.fields:
        if binding.contract.raw_only:
            lines.append("")
            lines.append(f"    # {binding.name}: {binding.contract.kind.value}, no wrapper; use self.raw({binding.name!r})")
            continue
        for accessor in binding.contract.accessors:
            lines.extend(_render_accessor(binding, accessor))
    return "\n".join(lines) + "\n"
