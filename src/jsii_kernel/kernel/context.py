from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .engine import KernelEngine


class CallContext(BaseModel):
    """Context handed to native code that declares a `_ctx` parameter.

    Lets a constructor or method call back into the kernel that is running
    it. Nested requests are plain recursive calls: they complete before the
    outer call continues.
    """

    engine: Any = Field(exclude=True)
    operation: str
    target: str

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def kernel(self) -> "KernelEngine":
        return self.engine

    def request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Dispatch a wire request and return its wire response."""
        return self.engine.dispatch(payload)

    def encode(self, value: Any) -> Any:
        return self.engine.codec.encode(value)

    def decode(self, value: Any) -> Any:
        return self.engine.codec.decode(value)
