from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from .metadata import FieldMetadata, StructMetadata, SymbolDecoration, SymbolSpec


def display_name(name: bytes) -> str:
    return name.decode("utf-8", "backslashreplace")


@dataclass(frozen=True)
class SymbolCandidate:
    name: bytes
    is_debug: bool = False
    exact: bool = False

    @property
    def display(self) -> str:
        return display_name(self.name)

    def as_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.name.decode("utf-8", "surrogateescape"),
            "debug": self.is_debug,
            "exact": self.exact,
        }


@dataclass(frozen=True)
class ResolutionPlan:
    """Candidates in fallback priority order, most preferred first."""

    candidates: tuple[SymbolCandidate, ...]

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ValueError("a resolution plan needs at least one candidate")

    def __iter__(self) -> Iterator[SymbolCandidate]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def names(self) -> list[bytes]:
        return [candidate.name for candidate in self.candidates]

    def as_list(self) -> list[dict[str, Any]]:
        return [candidate.as_dict() for candidate in self.candidates]


def implicit_symbol(field_name: str, meta: FieldMetadata, parent: StructMetadata) -> SymbolSpec:
    rule = meta.effective_rename(parent)
    return SymbolSpec(name=rule.apply(field_name), debug=meta.effective_debug(parent))


def decorate(spec: SymbolSpec, decoration: SymbolDecoration) -> SymbolCandidate:
    if isinstance(spec.name, bytes):
        return SymbolCandidate(name=spec.name, is_debug=spec.debug, exact=True)
    symbol = spec.name
    if decoration.prefix is not None:
        symbol = f"{decoration.prefix.strip()}{symbol}"
    if decoration.suffix is not None:
        symbol = f"{symbol}{decoration.suffix.strip()}"
    return SymbolCandidate(name=symbol.encode("utf-8"), is_debug=spec.debug, exact=False)


def build_plan(field_name: str, meta: FieldMetadata, parent: StructMetadata) -> ResolutionPlan:
    specs = meta.symbols or (implicit_symbol(field_name, meta, parent),)
    seen: set[tuple[bytes, bool]] = set()
    candidates: list[SymbolCandidate] = []
    for spec in specs:
        candidate = decorate(spec, parent.symbol)
        key = (candidate.name, candidate.is_debug)
        if key in seen:
            continue
        seen.add(key)
        candidates.append(candidate)
    return ResolutionPlan(candidates=tuple(candidates))
