from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from .errors import UnknownHandleError

logger = logging.getLogger(__name__)


class ObjectReferenceTable:
    """Bidirectional handle <-> native instance map.

    Interning is by identity, never by equality: two equal but distinct
    instances get two handles. The table keeps a strong reference to each
    interned instance, so an `id()` cannot be recycled while its handle lives.
    """

    def __init__(self) -> None:
        self._by_handle: Dict[str, Any] = {}
        self._by_identity: Dict[int, str] = {}

    def intern(self, instance: Any) -> str:
        identity = id(instance)
        existing = self._by_identity.get(identity)
        if existing is not None:
            return existing

        handle = f"{type(instance).__name__}@{uuid.uuid4().hex}"
        self._by_handle[handle] = instance
        self._by_identity[identity] = handle
        return handle

    def resolve(self, handle: str) -> Any:
        try:
            return self._by_handle[handle]
        except KeyError:
            raise UnknownHandleError(f"Unknown object handle: {handle}") from None

    def release(self, handle: str) -> None:
        """Forget a handle. The far side must not use it afterwards."""
        instance = self.resolve(handle)
        del self._by_handle[handle]
        self._by_identity.pop(id(instance), None)
        logger.debug("released %s", handle)

    def __contains__(self, handle: object) -> bool:
        return handle in self._by_handle

    def __len__(self) -> int:
        return len(self._by_handle)
