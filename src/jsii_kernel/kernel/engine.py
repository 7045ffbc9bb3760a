"""
KernelEngine: the dispatch engine of the bridging kernel.

Every request from the far side lands in `dispatch()`, which validates it,
routes it to one of the operations below, and returns a wire response:

    {"api": "create", ...} ──> KernelEngine.dispatch() ──> create() ──> {"result": ...}
                                                       └─> KernelError ──> {"error": ...}

The engine is an ordinary object constructed by whoever serves the channel.
Its only shared state is the module registry and the object reference table;
everything else lives on the call stack, which is what makes reentrant
requests from native code safe.
"""
from __future__ import annotations

import inspect
import logging
import traceback
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .codec import ValueCodec
from .context import CallContext
from .errors import InvocationError, KernelError, MemberNotFoundError, ProtocolError
from .objects import ObjectReferenceTable
from .registry import ModuleRegistry
from .resolver import MemberKind, MemberResolver
from .schema import (
    BYREF_TAG,
    CreateRequest,
    DeleteRequest,
    ErrorInfo,
    ErrorResponse,
    GetRequest,
    InvokeRequest,
    LoadRequest,
    SetRequest,
    StaticGetRequest,
    StaticInvokeRequest,
    StaticSetRequest,
    StatsRequest,
    SuccessResponse,
    parse_request,
)
from .trace import TraceOptions, TraceSink

if TYPE_CHECKING:
    from ..config import KernelConfig

logger = logging.getLogger(__name__)

BARE_OBJECT_FQN = "Object"
CONTEXT_PARAMETER = "_ctx"


def _accepts_context(fn: Callable[..., Any]) -> bool:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return False
    return CONTEXT_PARAMETER in sig.parameters


class KernelEngine:
    """
    One bridging kernel: modules, live objects, and the operations over them.

    Example:
        engine = KernelEngine()
        engine.dispatch({"api": "load", "name": "calc", "locator": "path/to/calc.py"})
        ref = engine.dispatch({"api": "create", "fqn": "calc.Adder", "args": [10]})["result"]
        engine.dispatch({"api": "invoke", "objref": ref, "method": "add", "args": [5]})
        # -> {"result": 15}
    """

    def __init__(self, trace: Optional[TraceOptions] = None) -> None:
        self.modules = ModuleRegistry()
        self.objects = ObjectReferenceTable()
        self.resolver = MemberResolver(self.modules)
        self.codec = ValueCodec(self.objects, self.resolver)
        self.trace = TraceSink(trace)

    @classmethod
    def from_config(cls, config: "KernelConfig") -> "KernelEngine":
        """Build an engine and preload the configured modules."""
        engine = cls(trace=config.trace)
        for spec in config.preload:
            engine.load(spec.name, spec.locator)
        return engine

    def close(self) -> None:
        """Release resources held for loaded modules."""
        self.modules.close()

    # ------------------------------------------------------------------
    # Wire entry point
    # ------------------------------------------------------------------

    def dispatch(self, payload: Any) -> Dict[str, Any]:
        """Handle one wire request and return its wire response.

        Never raises: every failure becomes an error response.
        """
        try:
            request = parse_request(payload)
        except ProtocolError as exc:
            self.trace.error(exc.name, exc.message)
            return ErrorResponse(error=ErrorInfo(**exc.to_wire())).to_dict()

        try:
            result = self._route(request)
        except KernelError as exc:
            return ErrorResponse(error=ErrorInfo(**exc.to_wire())).to_dict()
        except Exception as exc:  # noqa: BLE001
            logger.exception("unexpected failure while dispatching %r", payload)
            wrapped = InvocationError(f"{type(exc).__name__}: {exc}", stack=traceback.format_exc())
            self.trace.error(wrapped.name, wrapped.message)
            return ErrorResponse(error=ErrorInfo(**wrapped.to_wire())).to_dict()
        return SuccessResponse(result=result).model_dump()

    def _route(self, request: Any) -> Any:
        if isinstance(request, LoadRequest):
            return self.load(request.name, request.locator)
        if isinstance(request, CreateRequest):
            return self.create(request.fqn, request.args)
        if isinstance(request, InvokeRequest):
            return self.invoke(request.objref, request.method, request.args)
        if isinstance(request, StaticInvokeRequest):
            return self.invoke_static(request.fqn, request.method, request.args)
        if isinstance(request, GetRequest):
            return self.get(request.objref, request.property)
        if isinstance(request, StaticGetRequest):
            return self.get_static(request.fqn, request.property)
        if isinstance(request, SetRequest):
            return self.set(request.objref, request.property, request.value)
        if isinstance(request, StaticSetRequest):
            return self.set_static(request.fqn, request.property, request.value)
        if isinstance(request, DeleteRequest):
            return self.delete(request.objref)
        if isinstance(request, StatsRequest):
            return self.stats()
        raise TypeError(f"Unroutable request: {request!r}")

    # ------------------------------------------------------------------
    # Operations (raise KernelError, return wire values)
    # ------------------------------------------------------------------

    def load(self, name: str, locator: str) -> None:
        return self._traced("load", (name, locator), lambda: self.modules.load(name, locator))

    def create(self, fqn: str, args: Optional[List[Any]] = None) -> Dict[str, str]:
        args = args or []

        def run() -> Dict[str, str]:
            if fqn == BARE_OBJECT_FQN:
                instance: Any = SimpleNamespace()
            else:
                type_descriptor = self.resolver.resolve_type(fqn)
                native_args = self.codec.decode(args)
                instance = self._call_native(
                    type_descriptor.constructor.target, native_args, "create", fqn
                )
            return {BYREF_TAG: self.objects.intern(instance)}

        return self._traced("create", (fqn, *args), run)

    def invoke(self, objref: str, method: str, args: Optional[List[Any]] = None) -> Any:
        args = args or []

        def run() -> Any:
            instance = self.objects.resolve(objref)
            bound = self._read_member(instance, method)
            if not callable(bound):
                raise MemberNotFoundError(
                    f"No method named {method} found on {self.resolver.describe(type(instance))}"
                )
            native_args = self.codec.decode(args)
            result = self._call_native(bound, native_args, "invoke", f"{objref}.{method}")
            return self.codec.encode(result)

        return self._traced("invoke", (objref, method, *args), run)

    def invoke_static(self, fqn: str, method: str, args: Optional[List[Any]] = None) -> Any:
        args = args or []

        def run() -> Any:
            type_descriptor = self.resolver.resolve_type(fqn)
            member = self.resolver.resolve_member(type_descriptor, method, static=True)
            if member.kind is not MemberKind.STATIC_METHOD:
                raise MemberNotFoundError(f"No static method named {method} found on {fqn}")
            native_args = self.codec.decode(args)
            result = self._call_native(member.target, native_args, "sinvoke", f"{fqn}.{method}")
            return self.codec.encode(result)

        return self._traced("sinvoke", (fqn, method, *args), run)

    def get(self, objref: str, property: str) -> Any:
        def run() -> Any:
            instance = self.objects.resolve(objref)
            return self.codec.encode(self._read_member(instance, property))

        return self._traced("get", (objref, property), run)

    def get_static(self, fqn: str, property: str) -> Any:
        def run() -> Any:
            type_descriptor = self.resolver.resolve_type(fqn)
            member = self.resolver.resolve_member(type_descriptor, property, static=True)
            if member.kind is not MemberKind.STATIC_PROPERTY:
                raise MemberNotFoundError(f"No static property named {property} found on {fqn}")
            value = self._native(member.call, f"{fqn}.{property}")
            return self.codec.encode(value)

        return self._traced("sget", (fqn, property), run)

    def set(self, objref: str, property: str, value: Any) -> None:
        def run() -> None:
            instance = self.objects.resolve(objref)
            self._check_public(instance, property)
            native_value = self.codec.decode(value)
            self._native(lambda: setattr(instance, property, native_value), f"{objref}.{property}")

        return self._traced("set", (objref, property, value), run)

    def set_static(self, fqn: str, property: str, value: Any) -> None:
        def run() -> None:
            type_descriptor = self.resolver.resolve_type(fqn)
            member = self.resolver.resolve_member(type_descriptor, property, static=True)
            if member.kind is not MemberKind.STATIC_PROPERTY or type_descriptor.is_enum:
                raise MemberNotFoundError(f"No writable static property named {property} found on {fqn}")
            native_value = self.codec.decode(value)
            self._native(
                lambda: setattr(type_descriptor.native, property, native_value), f"{fqn}.{property}"
            )

        return self._traced("sset", (fqn, property, value), run)

    def delete(self, objref: str) -> None:
        return self._traced("del", (objref,), lambda: self.objects.release(objref))

    def stats(self) -> Dict[str, Any]:
        return self._traced(
            "stats",
            (),
            lambda: {"objectCount": len(self.objects), "modules": self.modules.names()},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _traced(self, operation: str, trace_args: tuple, action: Callable[[], Any]) -> Any:
        self.trace.begin(operation, *trace_args)
        try:
            result = action()
        except KernelError as exc:
            self.trace.error(exc.name, exc.message)
            raise
        self.trace.result(result)
        return result

    def _check_public(self, instance: Any, name: str) -> None:
        if name.startswith("_"):
            raise MemberNotFoundError(
                f"No member named {name} found on {self.resolver.describe(type(instance))}"
            )

    def _read_member(self, instance: Any, name: str) -> Any:
        self._check_public(instance, name)
        try:
            inspect.getattr_static(instance, name)
        except AttributeError:
            if getattr(type(instance), "__getattr__", None) is None:
                raise MemberNotFoundError(
                    f"No member named {name} found on {self.resolver.describe(type(instance))}"
                ) from None
        return self._native(lambda: getattr(instance, name), name)

    def _call_native(self, fn: Callable[..., Any], args: List[Any], operation: str, target: str) -> Any:
        kwargs: Dict[str, Any] = {}
        if _accepts_context(fn):
            kwargs[CONTEXT_PARAMETER] = CallContext(engine=self, operation=operation, target=target)
        return self._native(lambda: fn(*args, **kwargs), target)

    @staticmethod
    def _native(action: Callable[[], Any], target: str) -> Any:
        """Run native code, surfacing anything it raises as InvocationError."""
        try:
            return action()
        except Exception as exc:
            raise InvocationError(
                f"{type(exc).__name__}: {exc}",
                stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            ) from exc
