from .binding import BoundApi, MutBorrow, MutRef, Ref, synthesize_api_class
from .case import CaseRule, apply
from .codegen import render_api_module
from .container import Container
from .descriptor import BindingDescriptor, FieldBinding, collect_diagnostics, derive_descriptor
from .errors import (
    BorrowError,
    Diagnostic,
    LibraryOpenError,
    NativeBridgeError,
    ResolutionExhausted,
    SchemaError,
    SymbolNotFound,
)
from .library import CtypesLibrary, Library, open_library
from .plan import ResolutionPlan, SymbolCandidate, build_plan
from .resolve import resolve_all, resolve_field
from .schema import FieldDecl, Schema, load_schema
from .types import DeclaredType, TypeKind, parse_declared_type
from .wrapper import Accessor, AccessorContract, AccessorRole, synthesize_contract

__version__ = "0.1.0"

__all__ = [
    "Accessor",
    "AccessorContract",
    "AccessorRole",
    "BindingDescriptor",
    "BorrowError",
    "BoundApi",
    "CaseRule",
    "Container",
    "CtypesLibrary",
    "DeclaredType",
    "Diagnostic",
    "FieldBinding",
    "FieldDecl",
    "Library",
    "LibraryOpenError",
    "MutBorrow",
    "MutRef",
    "NativeBridgeError",
    "Ref",
    "ResolutionExhausted",
    "ResolutionPlan",
    "Schema",
    "SchemaError",
    "SymbolCandidate",
    "SymbolNotFound",
    "TypeKind",
    "apply",
    "build_plan",
    "collect_diagnostics",
    "derive_descriptor",
    "load_schema",
    "open_library",
    "parse_declared_type",
    "render_api_module",
    "resolve_all",
    "resolve_field",
    "synthesize_api_class",
    "synthesize_contract",
]
