"""
Kernel error taxonomy.

Every failure inside a dispatch operation is one of these. The engine catches
them at the operation boundary and turns them into an error response, so the
far side always sees a name and a message (and a stack where one exists).
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class KernelError(Exception):
    """Base class for all kernel failures."""

    def __init__(self, message: str, stack: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stack = stack

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_wire(self) -> Dict[str, Any]:
        """Error descriptor carried in an error response."""
        descriptor: Dict[str, Any] = {"message": self.message, "name": self.name}
        if self.stack:
            descriptor["stack"] = self.stack
        return descriptor


class ModuleLoadError(KernelError):
    """A locator could not be resolved into a module."""

    pass


class ModuleNotFoundError(KernelError):  # noqa: A001
    """An FQN references a module that was never loaded."""

    pass


class MemberNotFoundError(KernelError):
    """A type, method, property or enum member does not exist on its target."""

    pass


class UnknownHandleError(KernelError):
    """A handle is not (or no longer) in the reference table."""

    pass


class InvocationError(KernelError):
    """Native code raised while being constructed, called or accessed."""

    pass


class ProtocolError(KernelError):
    """A request is malformed and was rejected before dispatch."""

    pass
