"""
Member Resolver: symbolic names to native constructors, methods and properties.

A type is resolved once per FQN and cached as a TypeDescriptor whose member
table is computed from the class up front, so static dispatch never walks
strings at call time. Resolution is structural only: it answers "does this
name exist here", and leaves argument checking to the native call itself.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import MemberNotFoundError
from .registry import ModuleRegistry


class MemberKind(Enum):
    CONSTRUCTOR = "constructor"
    INSTANCE_METHOD = "instance_method"
    STATIC_METHOD = "static_method"
    INSTANCE_PROPERTY = "instance_property"
    STATIC_PROPERTY = "static_property"

    @property
    def is_static(self) -> bool:
        return self in (MemberKind.STATIC_METHOD, MemberKind.STATIC_PROPERTY)


@dataclass
class MemberDescriptor:
    """One member of a resolved type, with the thunk that reaches it."""

    name: str
    kind: MemberKind
    owner: str
    target: Callable[..., Any]

    def call(self, *args: Any, **kwargs: Any) -> Any:
        return self.target(*args, **kwargs)


@dataclass
class TypeDescriptor:
    fqn: str
    native: type
    members: Dict[str, MemberDescriptor] = field(default_factory=dict)

    @property
    def constructor(self) -> MemberDescriptor:
        return MemberDescriptor(
            name=self.native.__name__,
            kind=MemberKind.CONSTRUCTOR,
            owner=self.fqn,
            target=self.native,
        )

    @property
    def is_enum(self) -> bool:
        return issubclass(self.native, Enum)


def _static_reader(cls: type, name: str) -> Callable[[], Any]:
    # Reads live, so a later static write is observed.
    return lambda: getattr(cls, name)


def _describe_members(fqn: str, cls: type) -> Dict[str, MemberDescriptor]:
    members: Dict[str, MemberDescriptor] = {}
    for name in dir(cls):
        if name.startswith("_"):
            continue
        raw = inspect.getattr_static(cls, name)
        if isinstance(raw, (staticmethod, classmethod)):
            kind = MemberKind.STATIC_METHOD
            target = getattr(cls, name)
        elif isinstance(raw, property):
            kind = MemberKind.INSTANCE_PROPERTY
            target = raw.__get__
        elif inspect.isfunction(raw):
            kind = MemberKind.INSTANCE_METHOD
            target = raw
        elif isinstance(raw, type):
            # Nested types are reached through resolve_type, not as members.
            continue
        elif callable(raw) and not isinstance(raw, Enum):
            kind = MemberKind.INSTANCE_METHOD
            target = raw
        else:
            kind = MemberKind.STATIC_PROPERTY
            target = _static_reader(cls, name)
        members[name] = MemberDescriptor(name=name, kind=kind, owner=fqn, target=target)
    return members


class MemberResolver:
    def __init__(self, modules: ModuleRegistry) -> None:
        self._modules = modules
        self._types: Dict[str, TypeDescriptor] = {}
        self._names: Dict[type, str] = {}
        self._misses: Dict[type, int] = {}

    def resolve_type(self, fqn: str) -> TypeDescriptor:
        cached = self._types.get(fqn)
        if cached is not None:
            return cached

        module_name, path = self._split(fqn)
        current: Any = self._modules.get(module_name)
        for segment in path:
            if segment.startswith("_"):
                raise MemberNotFoundError(f"Could not find type {'.'.join(path)} in module {module_name}")
            current = getattr(current, segment, None)
            if current is None:
                raise MemberNotFoundError(
                    f"Could not find type {'.'.join(path)} in module {module_name}"
                )
        if not isinstance(current, type):
            raise MemberNotFoundError(f"{fqn} is not a constructible type")

        descriptor = TypeDescriptor(fqn=fqn, native=current, members=_describe_members(fqn, current))
        self._types[fqn] = descriptor
        self._names.setdefault(current, fqn)
        return descriptor

    def resolve_member(
        self, type_descriptor: TypeDescriptor, name: str, static: bool = False
    ) -> MemberDescriptor:
        member = type_descriptor.members.get(name)
        if member is None or member.kind.is_static != static:
            surface = "static member" if static else "member"
            raise MemberNotFoundError(f"No {surface} named {name} found on {type_descriptor.fqn}")
        return member

    def fqn_of(self, cls: type) -> Optional[str]:
        """Name a native class by its FQN, or None if no loaded module exports it."""
        known = self._names.get(cls)
        if known is not None:
            return known
        # A miss holds until another module is loaded.
        if self._misses.get(cls) == len(self._modules):
            return None

        for module_name, module in self._modules.modules().items():
            module_path = module.__name__
            if cls.__module__ != module_path and not cls.__module__.startswith(module_path + "."):
                continue
            candidate = self._walk(module, cls.__qualname__.split("."))
            if candidate is cls:
                fqn = f"{module_name}.{cls.__qualname__}"
                self._names[cls] = fqn
                return fqn

            # Re-exported from a submodule under a top-level name.
            for export_name, value in vars(module).items():
                if value is cls:
                    fqn = f"{module_name}.{export_name}"
                    self._names[cls] = fqn
                    return fqn
        self._misses[cls] = len(self._modules)
        return None

    def describe(self, cls: type) -> str:
        """FQN when known, otherwise the Python qualified name. For messages."""
        return self.fqn_of(cls) or f"{cls.__module__}.{cls.__qualname__}"

    @staticmethod
    def _split(fqn: str) -> Tuple[str, list]:
        module_name, _, rest = fqn.partition(".")
        if not rest:
            raise MemberNotFoundError(f"{fqn} does not name a type inside a module")
        return module_name, rest.split(".")

    @staticmethod
    def _walk(root: Any, path: list) -> Any:
        current = root
        for segment in path:
            if "<" in segment:
                return None
            current = getattr(current, segment, None)
            if current is None:
                return None
        return current
