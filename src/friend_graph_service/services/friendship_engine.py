"""
Friend relationship engine - the friend request / friendship state machine.

    (none) --send--> pending --accept--> accepted  (+ FRIENDS edge pair)
                             --reject--> rejected
                             --cancel--> cancelled (edge deleted)

accepted, rejected and cancelled are terminal. Every operation runs inside
one graph session under a deadline. Each critical section is a single
conditional write, so concurrent callers racing on the same pair or the
same request are serialized by the graph store: exactly one wins and the
others observe a ConflictError.

Notifications are published after the transition has committed and never
affect its outcome.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..errors import (
    ConflictError,
    FriendshipError,
    InfrastructureError,
    NotFoundError,
    UnauthorizedError,
)
from ..graph.client import GraphClient, GraphSession
from ..models.friends import (
    FriendList,
    FriendRemoved,
    FriendRequest,
    FriendRequestCancelled,
    FriendRequestCreated,
    FriendRequestResolved,
    IncomingRequestList,
    OutgoingRequestList,
)
from ..models.notifications import Notification
from ..models.validators import (
    validate_decision,
    validate_request_id,
    validate_status,
    validate_user_id,
    validate_user_pair,
)
from ..notifications.queue import NotificationQueue
from ..repositories.friendship_repository import RelationshipRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

RepositoryFactory = Callable[[GraphSession], RelationshipRepository]

# Number of directed FRIENDS edges that make up one friendship.
FRIENDSHIP_EDGE_COUNT = 2


class FriendshipEngine:
    """
    Enforces preconditions, transitions and authorization for friend
    requests and friendships.

    Dependencies are passed in explicitly; the engine holds no shared
    relationship state of its own. The graph store is the only source of
    truth.
    """

    def __init__(
        self,
        graph: GraphClient,
        notifier: NotificationQueue | None = None,
        repository_factory: RepositoryFactory = RelationshipRepository,
        operation_timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self._graph = graph
        self._notifier = notifier
        self._repository_factory = repository_factory
        self._operation_timeout = operation_timeout
        self._clock = clock
        self._id_factory = id_factory
        self._pending_notifications: set[asyncio.Future] = set()

    # ── Execution scaffolding ───────────────────────────────────────────

    async def _execute(
        self,
        operation: str,
        work: Callable[[RelationshipRepository], Awaitable[T]],
        timeout: float | None = None,
    ) -> T:
        """
        Run ``work`` against a repository bound to a fresh graph session.

        The session is released before this returns or raises. Exceeding the
        deadline cancels the work and surfaces as InfrastructureError; caller
        cancellation propagates unchanged. Nothing here retries.
        """
        deadline = timeout if timeout is not None else self._operation_timeout

        async def _in_session() -> T:
            async with self._graph.session() as session:
                return await work(self._repository_factory(session))

        try:
            return await asyncio.wait_for(_in_session(), timeout=deadline)
        except TimeoutError as e:
            logger.error(f"{operation} exceeded its {deadline}s deadline")
            raise InfrastructureError(f"{operation} deadline exceeded") from e
        except InfrastructureError as e:
            logger.error(f"{operation} failed: {e}")
            raise
        except FriendshipError as e:
            logger.info(f"{operation} rejected ({e.kind}): {e}")
            raise

    def _notify(self, notification: Notification) -> None:
        """
        Publish a notification in the background (fire-and-forget).

        Non-blocking, non-fatal: the committed transition stands whatever
        happens here.
        """
        if self._notifier is None:
            return

        async def _publish() -> None:
            try:
                await self._notifier.publish(notification)
            except Exception as e:
                logger.warning(f"Notification enqueue failed (non-fatal): {notification.type} -> {e}")

        task = asyncio.ensure_future(_publish())
        self._pending_notifications.add(task)
        task.add_done_callback(self._pending_notifications.discard)

    async def flush_notifications(self) -> None:
        """Wait for in-flight notification publishes (used on shutdown)."""
        if self._pending_notifications:
            await asyncio.gather(*list(self._pending_notifications), return_exceptions=True)

    # ── Requests ────────────────────────────────────────────────────────

    async def send_friend_request(
        self,
        sender_id: str,
        receiver_id: str,
        timeout: float | None = None,
    ) -> FriendRequestCreated:
        """
        Create a pending request from sender to receiver.

        Raises:
            InvalidInputError: sender and receiver are the same user.
            NotFoundError: either user does not exist.
            ConflictError: the users are already friends, or a pending
                request exists between them in either direction.
        """
        sender_id, receiver_id = validate_user_pair(sender_id, receiver_id)
        logger.info(f"Sending friend request from {sender_id} to {receiver_id}")

        request_id = self._id_factory()
        created_at = self._clock()

        async def work(repo: RelationshipRepository) -> FriendRequestCreated:
            outcome = await repo.create_request(sender_id, receiver_id, request_id, created_at)
            if not outcome.users_found:
                raise NotFoundError("One or both users not found")
            if outcome.friend_edges > 0:
                raise ConflictError("Users are already friends")
            if outcome.pending_requests > 0:
                raise ConflictError("Friend request already exists")
            return FriendRequestCreated(
                request_id=request_id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                status="pending",
                created_at=created_at,
            )

        created = await self._execute("send_friend_request", work, timeout)
        logger.info(f"Friend request {request_id} created: {sender_id} -> {receiver_id}")
        self._notify(Notification.friend_request(receiver_id, sender_id, request_id))
        return created

    async def accept_friend_request(
        self,
        acting_user_id: str,
        request_id: str,
        decision: str,
        timeout: float | None = None,
    ) -> FriendRequestResolved:
        """
        Resolve a pending request as ``accepted`` or ``rejected``.

        Only the receiver may resolve. Accepting creates both FRIENDS edges
        in the same write that flips the status. Resolving an already
        resolved request is a ConflictError, even with the same decision.
        """
        decision = validate_decision(decision)
        acting_user_id = validate_user_id(acting_user_id, "acting_user_id")
        request_id = validate_request_id(request_id)
        logger.info(f"Processing friend request {request_id} for user {acting_user_id} ({decision})")

        async def work(repo: RelationshipRepository) -> FriendRequestResolved:
            request = await repo.fetch_request(request_id)
            if request is None:
                raise NotFoundError("Friend request not found")
            if request.receiver_id != acting_user_id:
                raise UnauthorizedError("You are not authorized to modify this request")
            if not request.is_pending:
                raise ConflictError("This request has already been processed")

            resolved_at = self._clock()
            if decision == "accepted":
                resolved = await repo.resolve_accepted(request_id, acting_user_id, resolved_at)
            else:
                resolved = await repo.resolve_rejected(request_id, acting_user_id, resolved_at)

            # Pending when read, but a concurrent resolver committed first.
            if resolved is None:
                raise ConflictError("This request has already been processed")

            return FriendRequestResolved(
                request_id=resolved.id,
                sender_id=request.sender_id,
                receiver_id=request.receiver_id,
                status=resolved.status,
                created_at=request.created_at,
                resolved_at=resolved.updated_at,
                message=(
                    "Friend request accepted successfully" if decision == "accepted" else "Friend request rejected"
                ),
            )

        result = await self._execute("accept_friend_request", work, timeout)
        logger.info(f"Friend request {request_id} {result.status}")
        if result.status == "accepted":
            self._notify(Notification.friend_request_accepted(result.sender_id, result.receiver_id, request_id))
        return result

    async def cancel_friend_request(
        self,
        sender_id: str,
        receiver_id: str,
        timeout: float | None = None,
    ) -> FriendRequestCancelled:
        """Withdraw the sender's pending request to receiver (the edge is deleted)."""
        sender_id, receiver_id = validate_user_pair(
            sender_id, receiver_id, self_message="Cannot cancel a friend request to yourself"
        )
        logger.info(f"Cancelling friend request from {sender_id} to {receiver_id}")

        async def work(repo: RelationshipRepository) -> FriendRequestCancelled:
            cancelled = await repo.cancel_request(sender_id, receiver_id)
            if not cancelled:
                raise ConflictError("No pending friend request to cancel")
            if len(cancelled) > 1:
                logger.warning(f"Cancelled {len(cancelled)} pending requests from {sender_id} to {receiver_id}")
            first = cancelled[0]
            return FriendRequestCancelled(
                request_id=first.id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                created_at=first.created_at,
                cancelled_at=self._clock(),
            )

        return await self._execute("cancel_friend_request", work, timeout)

    async def get_friend_request(
        self,
        acting_user_id: str,
        request_id: str,
        timeout: float | None = None,
    ) -> FriendRequest:
        """Fetch one request; only its sender or receiver may view it."""
        acting_user_id = validate_user_id(acting_user_id, "acting_user_id")
        request_id = validate_request_id(request_id)

        async def work(repo: RelationshipRepository) -> FriendRequest:
            request = await repo.fetch_request(request_id)
            if request is None:
                raise NotFoundError("Friend request not found")
            if acting_user_id not in (request.sender_id, request.receiver_id):
                raise UnauthorizedError("You are not authorized to view this request")
            return request

        return await self._execute("get_friend_request", work, timeout)

    async def list_incoming_requests(
        self,
        user_id: str,
        status: str | None = None,
        timeout: float | None = None,
    ) -> IncomingRequestList:
        """Requests addressed to ``user_id``; ``status`` defaults to pending."""
        user_id = validate_user_id(user_id)
        status = validate_status(status)
        logger.info(f"Fetching {status} friend requests for user {user_id}")

        async def work(repo: RelationshipRepository) -> IncomingRequestList:
            requests = await repo.list_incoming(user_id, status)
            return IncomingRequestList(requests=requests, count=len(requests))

        return await self._execute("list_incoming_requests", work, timeout)

    async def list_outgoing_requests(
        self,
        user_id: str,
        status: str | None = None,
        timeout: float | None = None,
    ) -> OutgoingRequestList:
        """Requests sent by ``user_id``; ``status`` defaults to pending."""
        user_id = validate_user_id(user_id)
        status = validate_status(status)
        logger.info(f"Fetching sent {status} friend requests for user {user_id}")

        async def work(repo: RelationshipRepository) -> OutgoingRequestList:
            requests = await repo.list_outgoing(user_id, status)
            return OutgoingRequestList(requests=requests, count=len(requests))

        return await self._execute("list_outgoing_requests", work, timeout)

    # ── Friendships ─────────────────────────────────────────────────────

    async def list_friends(self, user_id: str, timeout: float | None = None) -> FriendList:
        user_id = validate_user_id(user_id)
        logger.info(f"Fetching friends for user {user_id}")

        async def work(repo: RelationshipRepository) -> FriendList:
            friends = await repo.list_friends(user_id)
            return FriendList(friends=friends, count=len(friends))

        return await self._execute("list_friends", work, timeout)

    async def remove_friend(
        self,
        user_id: str,
        friend_id: str,
        timeout: float | None = None,
    ) -> FriendRemoved:
        """
        Delete both directed FRIENDS edges between the pair.

        The existence check and the delete are one conditional statement;
        zero edges deleted means the users were not friends (or another
        caller removed the friendship first) and is a ConflictError.
        """
        user_id, friend_id = validate_user_pair(
            user_id, friend_id, "friend_id", self_message="Cannot remove yourself as a friend"
        )
        logger.info(f"Removing friend {friend_id} for user {user_id}")

        async def work(repo: RelationshipRepository) -> FriendRemoved:
            deleted = await repo.remove_friendship(user_id, friend_id)
            if deleted == 0:
                raise ConflictError("Users are not friends")
            if deleted != FRIENDSHIP_EDGE_COUNT:
                logger.warning(
                    f"Removed {deleted} FRIENDS edge(s) between {user_id} and {friend_id}, "
                    f"expected {FRIENDSHIP_EDGE_COUNT}; friendship was asymmetric"
                )
            return FriendRemoved(user_id=user_id, friend_id=friend_id, deleted_relationships=deleted)

        return await self._execute("remove_friend", work, timeout)
