from __future__ import annotations

import logging
import reprlib
from typing import Any, Optional

from pydantic import BaseModel

logger = logging.getLogger("jsii_kernel.trace")

_summary = reprlib.Repr()
_summary.maxlevel = 2
_summary.maxstring = 60
_summary.maxother = 60
_summary.maxlist = 6
_summary.maxdict = 6


class TraceOptions(BaseModel):
    enabled: bool = False


def summarize(value: Any) -> str:
    """Bounded one-line rendering of a value. Not full fidelity."""
    if isinstance(value, str):
        return value if len(value) <= _summary.maxstring else _summary.repr(value)
    return _summary.repr(value)


class TraceSink:
    """Logs one line per operation start, result and error.

    Purely observational: a disabled sink (or a silenced logger) changes
    nothing else in the kernel.
    """

    PREFIX = "[jsii/kernel]"

    def __init__(self, options: Optional[TraceOptions] = None, log: Optional[logging.Logger] = None) -> None:
        self.options = options or TraceOptions()
        self._log = log or logger

    @property
    def enabled(self) -> bool:
        return self.options.enabled

    def begin(self, operation: str, *args: Any) -> None:
        if not self.enabled:
            return
        rendered = ", ".join(summarize(arg) for arg in args)
        self._log.info("%s %s(%s)", self.PREFIX, operation, rendered)

    def result(self, value: Any) -> None:
        if not self.enabled:
            return
        self._log.info("%s ==> %s", self.PREFIX, summarize(value))

    def error(self, name: str, message: str) -> None:
        if not self.enabled:
            return
        self._log.info("%s !!> %s: %s", self.PREFIX, name, message)
