from __future__ import annotations

import logging

from .descriptor import BindingDescriptor, FieldBinding
from .errors import ResolutionExhausted, SymbolNotFound
from .library import Library
from .log import TRACE

logger = logging.getLogger(__name__)


def resolve_field(library: Library, binding: FieldBinding) -> int | None:
    """Try the plan left to right and return the first address found.

    Later candidates are never looked up once one succeeds. Exhausting the plan
    raises `ResolutionExhausted` for required fields and returns `None` otherwise.
    """
    last = binding.plan.candidates[-1]
    for candidate in binding.plan:
        try:
            address = library.lookup(candidate.name, candidate.is_debug)
        except SymbolNotFound as exc:
            if binding.logger:
                logger.warning("%s", exc)
            continue
        if binding.logger:
            logger.log(TRACE, "Symbol `%s` loaded at %#x", candidate.display, address)
        return address

    if binding.contract.required:
        raise ResolutionExhausted(binding.name, last.name, len(binding.plan))
    return None


def resolve_all(library: Library, descriptor: BindingDescriptor) -> dict[str, int | None]:
    addresses: dict[str, int | None] = {}
    for binding in descriptor.fields:
        addresses[binding.name] = resolve_field(library, binding)
    return addresses
