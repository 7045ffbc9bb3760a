"""
jsii-kernel: a process-boundary broker for foreign objects.

Public API re-exports from kernel/.
"""
from .kernel.engine import KernelEngine
from .kernel.context import CallContext
from .kernel.errors import (
    InvocationError,
    KernelError,
    MemberNotFoundError,
    ModuleLoadError,
    ModuleNotFoundError,
    ProtocolError,
    UnknownHandleError,
)
from .kernel.trace import TraceOptions

__all__ = [
    "KernelEngine",
    "CallContext",
    "TraceOptions",
    "KernelError",
    "ModuleLoadError",
    "ModuleNotFoundError",
    "MemberNotFoundError",
    "UnknownHandleError",
    "InvocationError",
    "ProtocolError",
]
