from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class NativeBridgeError(Exception):
    pass


@dataclass(frozen=True)
class Diagnostic:
    path: str
    message: str
    value: str | None = None
    expected: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "message": self.message,
            "value": self.value,
            "expected": list(self.expected),
        }

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class Diagnostics:
    """Collects schema problems so that one pass reports all of them."""

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def error(
        self,
        path: str,
        message: str,
        value: str | None = None,
        expected: tuple[str, ...] | list[str] = (),
    ) -> None:
        self._items.append(Diagnostic(path=path, message=message, value=value, expected=tuple(expected)))

    def extend(self, items: list[Diagnostic] | tuple[Diagnostic, ...]) -> None:
        self._items.extend(items)

    @property
    def items(self) -> tuple[Diagnostic, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def check(self) -> None:
        if self._items:
            raise SchemaError(self._items)


class SchemaError(NativeBridgeError):
    def __init__(self, diagnostics: list[Diagnostic] | tuple[Diagnostic, ...]) -> None:
        self.diagnostics = tuple(diagnostics)
        lines = [f"{len(self.diagnostics)} schema error(s):"]
        lines.extend(f"  {item}" for item in self.diagnostics)
        super().__init__("\n".join(lines))


class LibraryOpenError(NativeBridgeError):
    def __init__(self, name: str, reason: str | None = None) -> None:
        self.name = name
        self.reason = reason
        if not name:
            message = "Could not open library: the library name must not be empty."
        elif reason:
            message = f"Could not open library: '{name}' ({reason})"
        else:
            message = f"Could not open library: '{name}'"
        super().__init__(message)


class SymbolNotFound(NativeBridgeError):
    def __init__(self, symbol: bytes, is_debug: bool = False, reason: str | None = None) -> None:
        self.symbol = symbol
        self.is_debug = is_debug
        kind = "Debug symbol" if is_debug else "Symbol"
        message = f"{kind} `{symbol.decode('utf-8', 'backslashreplace')}` not found"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ResolutionExhausted(NativeBridgeError):
    def __init__(self, field: str, candidate: bytes, attempts: int) -> None:
        self.field = field
        self.candidate = candidate
        self.attempts = attempts
        super().__init__(
            f"Unable to resolve field '{field}': {attempts} candidate(s) failed, "
            f"last tried `{candidate.decode('utf-8', 'backslashreplace')}`"
        )


class BorrowError(NativeBridgeError):
    pass
