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
Friend relationship endpoints for the HTTP interface.

Every handler delegates to FriendshipEngine; engine errors are mapped to
status codes by the application-level exception handler.
"""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ...models.friends import (
    FriendList,
    FriendRemoved,
    FriendRequest,
    FriendRequestCancelled,
    FriendRequestCreated,
    FriendRequestResolved,
    IncomingRequestList,
    OutgoingRequestList,
)
from ...services.friendship_engine import FriendshipEngine
from ..dependencies import get_current_user_id, get_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/friends", tags=["friends"])


class SendFriendRequestBody(BaseModel):
    """Request model for sending a friend request."""

    receiver_id: str = Field(..., min_length=1, description="ID of the user receiving the friend request")


class ResolveFriendRequestBody(BaseModel):
    """Request model for accepting or rejecting a friend request."""

    status: str = Field(..., description='Either "accepted" or "rejected"')


@router.get("", response_model=FriendList)
async def list_friends(
    user_id: str = Depends(get_current_user_id),
    engine: FriendshipEngine = Depends(get_engine),
) -> FriendList:
    """List the authenticated user's friends."""
    return await engine.list_friends(user_id)


@router.post("/requests", response_model=FriendRequestCreated, status_code=201)
async def send_friend_request(
    body: SendFriendRequestBody,
    user_id: str = Depends(get_current_user_id),
    engine: FriendshipEngine = Depends(get_engine),
) -> FriendRequestCreated:
    logger.info(f"User {user_id} sending friend request to {body.receiver_id}")
    return await engine.send_friend_request(user_id, body.receiver_id)


@router.get("/requests", response_model=IncomingRequestList)
async def list_incoming_requests(
    status: str | None = Query(None, description="Filter by status (default: pending)"),
    user_id: str = Depends(get_current_user_id),
    engine: FriendshipEngine = Depends(get_engine),
) -> IncomingRequestList:
    """List friend requests received by the authenticated user."""
    return await engine.list_incoming_requests(user_id, status)


@router.get("/requests/sent", response_model=OutgoingRequestList)
async def list_outgoing_requests(
    user_id: str = Depends(get_current_user_id),
    engine: FriendshipEngine = Depends(get_engine),
) -> OutgoingRequestList:
    """List pending friend requests sent by the authenticated user."""
    return await engine.list_outgoing_requests(user_id)


@router.delete("/requests/sent/{receiver_id}", response_model=FriendRequestCancelled)
async def cancel_friend_request(
    receiver_id: str,
    user_id: str = Depends(get_current_user_id),
    engine: FriendshipEngine = Depends(get_engine),
) -> FriendRequestCancelled:
    logger.info(f"User {user_id} cancelling friend request to {receiver_id}")
    return await engine.cancel_friend_request(user_id, receiver_id)


@router.get("/requests/{request_id}", response_model=FriendRequest)
async def get_friend_request(
    request_id: str,
    user_id: str = Depends(get_current_user_id),
    engine: FriendshipEngine = Depends(get_engine),
) -> FriendRequest:
    return await engine.get_friend_request(user_id, request_id)


@router.post("/requests/{request_id}/accept", response_model=FriendRequestResolved)
async def accept_friend_request(
    request_id: str,
    body: ResolveFriendRequestBody,
    user_id: str = Depends(get_current_user_id),
    engine: FriendshipEngine = Depends(get_engine),
) -> FriendRequestResolved:
    """Accept or reject a friend request addressed to the authenticated user."""
    logger.info(f"User {user_id} resolving friend request {request_id} as {body.status}")
    return await engine.accept_friend_request(user_id, request_id, body.status)


@router.delete("/{friend_id}", response_model=FriendRemoved)
async def remove_friend(
    friend_id: str,
    user_id: str = Depends(get_current_user_id),
    engine: FriendshipEngine = Depends(get_engine),
) -> FriendRemoved:
    """Remove a friend from the authenticated user's friend list."""
    logger.info(f"User {user_id} removing friend {friend_id}")
    return await engine.remove_friend(user_id, friend_id)
