"""Keeps a library handle and the API loaded from it in one lifetime.

Accessors never outlive the handle: `close()` releases the API first and then
unloads the library, after which every accessor raises.
"""
from __future__ import annotations

from typing import Any, Callable, Generic

from .binding import ApiT
from .errors import NativeBridgeError
from .library import Library, open_library


class Container(Generic[ApiT]):
    def __init__(self, library: Library, api_class: type[ApiT]) -> None:
        try:
            api = api_class.load_from(library)
        except BaseException:
            library.close()
            raise
        self._library: Library | None = library
        self._api: ApiT | None = api

    @classmethod
    def open(
        cls,
        name: str,
        api_class: type[ApiT],
        opener: Callable[[str], Library] = open_library,
    ) -> Container[ApiT]:
        return cls(opener(name), api_class)

    @property
    def api(self) -> ApiT:
        if self._api is None:
            raise NativeBridgeError("container is closed")
        return self._api

    @property
    def library(self) -> Library:
        if self._library is None:
            raise NativeBridgeError("container is closed")
        return self._library

    @property
    def closed(self) -> bool:
        return self._library is None

    def close(self) -> None:
        if self._api is not None:
            self._api.release()
            self._api = None
        if self._library is not None:
            library = self._library
            self._library = None
            library.close()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.api, name)

    def __enter__(self) -> Container[ApiT]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
