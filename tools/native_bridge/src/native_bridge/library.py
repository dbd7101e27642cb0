"""Dynamic library service: open a shared object and look up symbol addresses."""
from __future__ import annotations

import ctypes
import sys
import threading

import _ctypes

from .errors import LibraryOpenError, NativeBridgeError, SymbolNotFound


class Library:
    """Base class for symbol providers.

    `symbol` searches the dynamic symbol table, `debug_symbol` the debug symbol
    table. Both return a non-zero address or raise `SymbolNotFound`.
    """

    name: str = ""

    def symbol(self, name: bytes) -> int:
        raise NotImplementedError

    def debug_symbol(self, name: bytes) -> int:
        raise NotImplementedError

    def lookup(self, name: bytes, is_debug: bool) -> int:
        if is_debug:
            return self.debug_symbol(name)
        return self.symbol(name)

    def close(self) -> None:
        pass

    @property
    def closed(self) -> bool:
        return False

    def __enter__(self) -> Library:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class CtypesLibrary(Library):
    def __init__(self, name: str, mode: int | None = None) -> None:
        if not name:
            raise LibraryOpenError(name)
        self.name = name
        self._lock = threading.Lock()
        try:
            if mode is None:
                self._dll: ctypes.CDLL | None = ctypes.CDLL(name)
            else:
                self._dll = ctypes.CDLL(name, mode=mode)
        except OSError as exc:
            raise LibraryOpenError(name, str(exc)) from exc

    @property
    def handle(self) -> int:
        if self._dll is None:
            raise NativeBridgeError(f"library '{self.name}' is closed")
        return self._dll._handle

    @property
    def closed(self) -> bool:
        return self._dll is None

    def symbol(self, name: bytes) -> int:
        with self._lock:
            if self._dll is None:
                raise NativeBridgeError(f"library '{self.name}' is closed")
            try:
                text = name.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise SymbolNotFound(name, reason="ctypes can only look up UTF-8 symbol names") from exc
            try:
                function = self._dll[text]
            except AttributeError as exc:
                raise SymbolNotFound(name) from exc
            address = ctypes.cast(function, ctypes.c_void_p).value
        if not address:
            raise SymbolNotFound(name, reason="symbol resolves to NULL")
        return address

    def debug_symbol(self, name: bytes) -> int:
        raise SymbolNotFound(name, is_debug=True, reason="the system loader does not expose debug symbol tables")

    def close(self) -> None:
        with self._lock:
            if self._dll is None:
                return
            handle = self._dll._handle
            self._dll = None
            if sys.platform == "win32":
                _ctypes.FreeLibrary(handle)
            else:
                _ctypes.dlclose(handle)


def open_library(name: str, mode: int | None = None) -> CtypesLibrary:
    return CtypesLibrary(name, mode=mode)
