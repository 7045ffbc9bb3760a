"""
Kernel: the bridging machinery.

This package contains the broker between the wire protocol and native objects:
- registry: symbolic module names to loaded modules
- objects: handle <-> instance reference table
- resolver: FQNs and member names to constructors, methods, properties
- codec: wire values <-> native values
- engine: the dispatch engine (create, invoke, get, set, ...)
- trace: one-line operation log
"""
from .codec import ValueCodec
from .context import CallContext
from .engine import KernelEngine
from .errors import (
    InvocationError,
    KernelError,
    MemberNotFoundError,
    ModuleLoadError,
    ModuleNotFoundError,
    ProtocolError,
    UnknownHandleError,
)
from .objects import ObjectReferenceTable
from .registry import ModuleRegistry
from .resolver import MemberDescriptor, MemberKind, MemberResolver, TypeDescriptor
from .trace import TraceOptions, TraceSink

__all__ = [
    # Engine
    "KernelEngine",
    "CallContext",
    # Components
    "ModuleRegistry",
    "ObjectReferenceTable",
    "MemberResolver",
    "TypeDescriptor",
    "MemberDescriptor",
    "MemberKind",
    "ValueCodec",
    "TraceSink",
    "TraceOptions",
    # Errors
    "KernelError",
    "ModuleLoadError",
    "ModuleNotFoundError",
    "MemberNotFoundError",
    "UnknownHandleError",
    "InvocationError",
    "ProtocolError",
]
