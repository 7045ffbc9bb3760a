"""
Stdio channel: one JSON request per line in, one JSON response per line out.

Requests are handled strictly in arrival order. A reentrant request issued by
native code never touches the channel; it is answered on the call stack
before the outer response is written.
"""
from __future__ import annotations

import json
import logging
from typing import IO, Any, Dict

from .kernel.engine import KernelEngine
from .kernel.errors import ProtocolError
from .kernel.schema import ErrorInfo, ErrorResponse

logger = logging.getLogger(__name__)


def handle_line(engine: KernelEngine, line: str) -> Dict[str, Any]:
    """Decode one request line and dispatch it."""
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        error = ProtocolError(f"Invalid JSON request: {e}")
        engine.trace.error(error.name, error.message)
        return ErrorResponse(error=ErrorInfo(**error.to_wire())).to_dict()
    return engine.dispatch(payload)


def serve(engine: KernelEngine, instream: IO[str], outstream: IO[str]) -> int:
    """Serve requests until EOF. Returns the number of requests answered."""
    handled = 0
    for line in instream:
        if not line.strip():
            continue
        response = handle_line(engine, line)
        outstream.write(json.dumps(response, default=str) + "\n")
        outstream.flush()
        handled += 1
    logger.debug("channel closed after %d requests", handled)
    return handled
