# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
FastAPI application for the friend graph service.

The lifespan owns the shared graph runtime; FriendshipError subclasses are
mapped to their status codes with a stable ``kind`` in the body.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..errors import FriendshipError
from ..shared_graph import close_runtime, get_graph_client, initialize_runtime
from .api import friends, notifications

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        await initialize_runtime()
    except Exception as e:
        # Serve 503s rather than refusing to start when the graph is down.
        logger.warning(f"Graph runtime initialization failed (non-fatal): {e}")
    try:
        yield
    finally:
        await close_runtime()


app = FastAPI(title="Friend Graph Service", version=__version__, lifespan=lifespan)
app.include_router(friends.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")


@app.exception_handler(FriendshipError)
async def friendship_error_handler(request: Request, exc: FriendshipError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health() -> JSONResponse:
    """Report graph connectivity and relationship counts."""
    graph = get_graph_client()
    if graph is None:
        return JSONResponse(status_code=503, content={"status": "unavailable", "graph": None})

    stats = await graph.health()
    status_code = 200 if stats.get("status") == "operational" else 503
    return JSONResponse(status_code=status_code, content={"status": stats.get("status"), "graph": stats})
