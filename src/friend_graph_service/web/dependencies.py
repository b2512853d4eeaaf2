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
FastAPI dependencies for the HTTP interface.
"""

import logging

from fastapi import HTTPException, Request

from ..config import settings
from ..notifications.store import NotificationStore
from ..services.friendship_engine import FriendshipEngine
from ..shared_graph import get_notification_queue, get_shared_engine

logger = logging.getLogger(__name__)


def get_engine() -> FriendshipEngine:
    """Get the shared FriendshipEngine instance."""
    engine = get_shared_engine()
    if engine is None:
        raise HTTPException(status_code=503, detail="Friend graph unavailable. Friend operations require FalkorDB.")
    return engine


def get_notification_store() -> NotificationStore:
    queue = get_notification_queue()
    if queue is None:
        raise HTTPException(status_code=503, detail="Notifications unavailable")
    return queue.store


def get_current_user_id(request: Request) -> str:
    """
    Read the caller identity from the configured header.

    Authentication happens upstream; this only extracts the already
    verified user id.
    """
    user_id = request.headers.get(settings.http.user_header, "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail=f"Missing {settings.http.user_header} header")
    return user_id
