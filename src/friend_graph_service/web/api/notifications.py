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
Notification inbox endpoints for the HTTP interface.
"""

import time

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ...models.notifications import Notification, NotificationList
from ...notifications.store import NotificationStore
from ..dependencies import get_current_user_id, get_notification_store

router = APIRouter(prefix="/notifications", tags=["notifications"])


class MarkReadResponse(BaseModel):
    success: bool
    marked: int


@router.get("", response_model=NotificationList)
async def list_notifications(
    limit: int = Query(50, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
) -> NotificationList:
    """List the authenticated user's notifications, newest first."""
    notifications = await store.list_for_user(user_id, limit=limit)
    return NotificationList(
        notifications=notifications,
        count=len(notifications),
        unread_count=sum(1 for n in notifications if not n.is_read),
    )


@router.post("/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    user_id: str = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
) -> MarkReadResponse:
    marked = await store.mark_all_read(user_id, now=time.time())
    return MarkReadResponse(success=True, marked=marked)


class BulkReadRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1, max_length=500)


@router.post("/bulk-read", response_model=MarkReadResponse)
async def bulk_mark_read(
    body: BulkReadRequest,
    user_id: str = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
) -> MarkReadResponse:
    """Mark the listed notifications read. Ids outside the user's inbox are ignored."""
    marked = await store.mark_read(user_id, body.ids)
    return MarkReadResponse(success=True, marked=marked)


@router.post("/{notification_id}/read", response_model=Notification)
async def mark_read(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    store: NotificationStore = Depends(get_notification_store),
) -> Notification:
    return await store.mark_one_read(user_id, notification_id)
