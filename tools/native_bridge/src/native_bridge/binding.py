"""Runtime accessors built from a `BindingDescriptor`.

`BoundApi` keeps resolved addresses private and exposes them only through the
accessor roles of each field's contract. Mutable borrows are exclusive: a
field can have at most one active `MutBorrow`, no shared `Ref` can be read
while it is active, and a `MutRef` stops working once its `with` block ends.
Every view stops working when the API is released.
"""
from __future__ import annotations

import ctypes
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Mapping, TypeVar

from .descriptor import BindingDescriptor, FieldBinding
from .errors import BorrowError, NativeBridgeError
from .library import Library
from .resolve import resolve_all
from .types import ctype_for
from .wrapper import AccessorRole

ROLE_METHODS: dict[AccessorRole, str] = {
    AccessorRole.CALL: "_call",
    AccessorRole.CALL_OPTIONAL: "_call_optional",
    AccessorRole.PRESENCE: "_present",
    AccessorRole.BORROW: "_borrow",
    AccessorRole.BORROW_MUT: "_borrow_mut",
    AccessorRole.BORROW_OPTIONAL: "_borrow_optional",
    AccessorRole.BORROW_MUT_OPTIONAL: "_borrow_mut_optional",
}

ApiT = TypeVar("ApiT", bound="BoundApi")


def _read_cell(cell: Any) -> Any:
    if isinstance(cell, ctypes._SimpleCData):
        return cell.value
    return cell


@dataclass
class _Slot:
    binding: FieldBinding
    address: int | None
    function: Any = None
    cell: Any = None
    returns_void: bool = False
    borrowed: bool = False
    released: bool = False

    def check_alive(self) -> None:
        if self.released:
            raise NativeBridgeError(f"'{self.binding.name}' was released together with its library")


def _make_slot(binding: FieldBinding, address: int | None) -> _Slot:
    if address is None:
        if binding.contract.required:
            raise NativeBridgeError(f"required field '{binding.name}' has no resolved address")
        return _Slot(binding=binding, address=None)

    slot = _Slot(binding=binding, address=address)
    declared = binding.declared
    if declared.kind.is_function and not binding.contract.raw_only:
        restype = ctype_for(declared.return_type or "void")
        argtypes = [ctype_for(param.c_type) for param in declared.params]
        prototype = ctypes.CFUNCTYPE(restype, *argtypes)
        slot.function = prototype(address)
        slot.returns_void = restype is None
    elif declared.kind.is_reference:
        slot.cell = ctype_for(declared.target or "").from_address(address)
    return slot


class Ref:
    """Read-only view of a native value.

    Reading raises `BorrowError` while the field is mutably borrowed and
    `NativeBridgeError` once the owning API has been released.
    """

    def __init__(self, slot: _Slot) -> None:
        self._slot = slot
        self._field = slot.binding.name

    def _check(self) -> None:
        self._slot.check_alive()
        if self._slot.borrowed:
            raise BorrowError(f"'{self._field}' is mutably borrowed")

    @property
    def field(self) -> str:
        return self._field

    @property
    def address(self) -> int:
        self._check()
        return ctypes.addressof(self._slot.cell)

    @property
    def value(self) -> Any:
        self._check()
        return _read_cell(self._slot.cell)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._field!r})"


class MutRef(Ref):
    def __init__(self, slot: _Slot, borrow: MutBorrow) -> None:
        super().__init__(slot)
        self._borrow = borrow

    def _check(self) -> None:
        self._slot.check_alive()
        if not self._borrow.active:
            raise BorrowError(f"mutable borrow of '{self._field}' has ended")

    @property
    def cell(self) -> Any:
        self._check()
        return self._slot.cell

    @property
    def value(self) -> Any:
        self._check()
        return _read_cell(self._slot.cell)

    @value.setter
    def value(self, new_value: Any) -> None:
        self._check()
        cell = self._slot.cell
        if not isinstance(cell, ctypes._SimpleCData):
            raise NativeBridgeError(f"'{self._field}' is not a scalar; write through `.cell` instead")
        cell.value = new_value


class MutBorrow:
    """Exclusive mutable access to one field, used as a context manager."""

    def __init__(self, slot: _Slot) -> None:
        self._slot = slot
        self._entered = False
        self._active = False

    @property
    def active(self) -> bool:
        return self._active and not self._slot.released

    def __enter__(self) -> MutRef:
        name = self._slot.binding.name
        self._slot.check_alive()
        if self._entered:
            raise BorrowError(f"a mutable borrow of '{name}' cannot be entered twice")
        if self._slot.borrowed:
            raise BorrowError(f"'{name}' is already mutably borrowed")
        self._entered = True
        self._slot.borrowed = True
        self._active = True
        return MutRef(self._slot, self)

    def __exit__(self, *exc_info: object) -> None:
        if self._active:
            self._active = False
            self._slot.borrowed = False


def _shared_view(slot: _Slot) -> Ref:
    if slot.borrowed:
        raise BorrowError(f"'{slot.binding.name}' is already mutably borrowed")
    return Ref(slot)


class BoundApi:
    descriptor: ClassVar[BindingDescriptor]

    def __init__(self, addresses: Mapping[str, int | None]) -> None:
        descriptor = type(self).descriptor
        self._slots = {binding.name: _make_slot(binding, addresses.get(binding.name)) for binding in descriptor.fields}
        self._released = False

    @classmethod
    def load_from(cls: type[ApiT], library: Library) -> ApiT:
        return cls(resolve_all(library, cls.descriptor))

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        for slot in self._slots.values():
            slot.released = True
            slot.borrowed = False
        self._released = True
        self._slots = {}

    def field_names(self) -> list[str]:
        return [binding.name for binding in type(self).descriptor.fields]

    def _slot(self, name: str) -> _Slot:
        if self._released:
            raise NativeBridgeError(f"'{type(self).descriptor.name}' was released together with its library")
        try:
            return self._slots[name]
        except KeyError:
            raise NativeBridgeError(f"'{type(self).descriptor.name}' has no field '{name}'") from None

    def raw(self, name: str) -> int | None:
        return self._slot(name).address

    def _call(self, name: str, *args: Any) -> Any:
        return self._slot(name).function(*args)

    def _call_optional(self, name: str, *args: Any) -> Any:
        slot = self._slot(name)
        if slot.function is None:
            return None
        result = slot.function(*args)
        if slot.returns_void:
            return ()
        return result

    def _present(self, name: str) -> bool:
        return self._slot(name).address is not None

    def _borrow(self, name: str) -> Ref:
        return _shared_view(self._slot(name))

    def _borrow_mut(self, name: str) -> MutBorrow:
        return MutBorrow(self._slot(name))

    def _borrow_optional(self, name: str) -> Ref | None:
        slot = self._slot(name)
        if slot.cell is None:
            return None
        return _shared_view(slot)

    def _borrow_mut_optional(self, name: str) -> MutBorrow | None:
        slot = self._slot(name)
        if slot.cell is None:
            return None
        return MutBorrow(slot)


def _make_accessor(field: str, accessor_name: str, role: AccessorRole) -> Callable[..., Any]:
    role_method = ROLE_METHODS[role]

    def accessor(self: BoundApi, *args: Any) -> Any:
        return getattr(self, role_method)(field, *args)

    accessor.__name__ = accessor_name
    accessor.__qualname__ = accessor_name
    accessor.__doc__ = f"{role.value} accessor for native field '{field}'."
    return accessor


def synthesize_api_class(descriptor: BindingDescriptor, base: type[BoundApi] = BoundApi) -> type[BoundApi]:
    namespace: dict[str, Any] = {"descriptor": descriptor}
    for binding in descriptor.fields:
        for accessor in binding.contract.accessors:
            namespace[accessor.name] = _make_accessor(binding.name, accessor.name, accessor.role)
    return type(descriptor.name, (base,), namespace)
