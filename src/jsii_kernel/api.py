"""
HTTP carrier for the kernel protocol.

Each POST body is one wire request; the reply is its wire response. The
kernel is single-threaded by contract, so requests are serialized on a
reentrant lock. Native code re-enters through its CallContext on the same
thread and gets through. A callback sent back over HTTP while the outer
request is still running arrives on another worker thread and blocks until
the outer request finishes, so native code must not do that.

Run with: uvicorn jsii_kernel.api:app --port 8000
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI
from pydantic import BaseModel

from .config import load_config
from .kernel.engine import KernelEngine


class HealthResponse(BaseModel):
    status: str
    object_count: int
    modules: List[str]


def create_app(engine: Optional[KernelEngine] = None) -> FastAPI:
    """Build an app around `engine` (or one built from the environment)."""
    if engine is None:
        engine = KernelEngine.from_config(load_config())

    lock = threading.RLock()

    app = FastAPI(
        title="jsii kernel",
        description="HTTP carrier for the jsii bridging kernel protocol",
        version="0.1.0",
    )
    app.state.engine = engine

    @app.post("/requests")
    def post_request(payload: Any = Body(...)) -> Dict[str, Any]:
        with lock:
            return engine.dispatch(payload)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        with lock:
            return HealthResponse(
                status="ok",
                object_count=len(engine.objects),
                modules=engine.modules.names(),
            )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
