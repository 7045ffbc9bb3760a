"""
Value Codec: wire values <-> native values.

Object identity crosses the boundary by reference (a handle interned in the
reference table); every other value crosses by structural copy, converted
recursively.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from .errors import MemberNotFoundError, ProtocolError
from .objects import ObjectReferenceTable
from .resolver import MemberResolver
from .schema import BYREF_TAG, DATE_TAG, ENUM_TAG

_PRIMITIVES = (str, int, float, bool, type(None))


def _parse_date(text: Any) -> datetime:
    if not isinstance(text, str):
        raise ProtocolError(f"{DATE_TAG} expects an ISO-8601 string, got {text!r}")
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ProtocolError(f"Invalid {DATE_TAG} value: {text!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ValueCodec:
    def __init__(self, objects: ObjectReferenceTable, resolver: MemberResolver) -> None:
        self._objects = objects
        self._resolver = resolver

    def decode(self, value: Any) -> Any:
        if isinstance(value, _PRIMITIVES):
            return value
        if isinstance(value, list):
            return [self.decode(item) for item in value]
        if isinstance(value, dict):
            if BYREF_TAG in value:
                handle = value[BYREF_TAG]
                if not isinstance(handle, str):
                    raise ProtocolError(f"{BYREF_TAG} expects a handle string, got {handle!r}")
                return self._objects.resolve(handle)
            if DATE_TAG in value:
                return _parse_date(value[DATE_TAG])
            if ENUM_TAG in value:
                return self._decode_enum(value[ENUM_TAG])
            return {key: self.decode(item) for key, item in value.items()}
        raise ProtocolError(f"Not a wire value: {value!r}")

    def encode(self, value: Any) -> Any:
        # Enums first: IntEnum and str-mixin members are also primitives.
        if isinstance(value, Enum):
            fqn = self._resolver.fqn_of(type(value))
            if fqn is not None:
                return {ENUM_TAG: f"{fqn}/{value.name}"}
            return {BYREF_TAG: self._objects.intern(value)}
        if isinstance(value, _PRIMITIVES):
            return value
        if isinstance(value, (list, tuple)):
            return [self.encode(item) for item in value]
        if isinstance(value, dict):
            for key in value:
                if not isinstance(key, str) or isinstance(key, Enum):
                    raise ProtocolError(f"Cannot encode mapping key {key!r}: wire object keys must be strings")
            return {key: self.encode(item) for key, item in value.items()}
        if isinstance(value, datetime):
            return {DATE_TAG: _format_date(value)}
        if isinstance(value, date):
            midnight = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
            return {DATE_TAG: _format_date(midnight)}
        return {BYREF_TAG: self._objects.intern(value)}

    def _decode_enum(self, ref: Any) -> Enum:
        if not isinstance(ref, str) or "/" not in ref:
            raise ProtocolError(f"{ENUM_TAG} expects '<Type>/<Member>', got {ref!r}")
        fqn, _, member = ref.rpartition("/")
        enum_type = self._resolver.resolve_type(fqn)
        if not enum_type.is_enum:
            raise MemberNotFoundError(f"{fqn} is not an enum type")
        try:
            return enum_type.native[member]
        except KeyError:
            raise MemberNotFoundError(f"No enum member named {member} found on {fqn}") from None
