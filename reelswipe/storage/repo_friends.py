"""Repository for friend requests and friendships."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from reelswipe.storage.models import FriendRequest, User


class FriendRequestError(Exception):
    """Raised when a friend request cannot be created or changed."""


class FriendsRepo:
    """Repository for friend requests; an accepted request is a friendship."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _between(self, user_a: str, user_b: str):
        return or_(
            and_(FriendRequest.from_user_id == user_a, FriendRequest.to_user_id == user_b),
            and_(FriendRequest.from_user_id == user_b, FriendRequest.to_user_id == user_a),
        )

    async def send_request(self, from_user_id: str, to_user_id: str) -> FriendRequest:
        """Create a pending request.

        Raises:
            FriendRequestError: If targeting oneself, already friends, or a
                request between the two users is already pending
        """
        if from_user_id == to_user_id:
            raise FriendRequestError("Cannot send a friend request to yourself")

        stmt = select(FriendRequest).where(
            self._between(from_user_id, to_user_id),
            FriendRequest.status.in_(("pending", "accepted")),
        )
        result = await self.session.execute(stmt)
        existing = result.scalars().first()
        if existing is not None:
            if existing.status == "accepted":
                raise FriendRequestError("Already friends")
            raise FriendRequestError("Friend request already pending")

        request = FriendRequest(
            request_id=str(uuid.uuid4()),
            from_user_id=from_user_id,
            to_user_id=to_user_id,
            status="pending",
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(request)
        await self.session.commit()
        await self.session.refresh(request)
        return request

    async def _respond(
        self,
        request_id: str,
        user_column,
        user_id: str,
        status: str,
    ) -> bool:
        stmt = (
            update(FriendRequest)
            .where(
                FriendRequest.request_id == request_id,
                user_column == user_id,
                FriendRequest.status == "pending",
            )
            .values(status=status, responded_at=datetime.now(timezone.utc))
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def accept(self, request_id: str, user_id: str) -> bool:
        """Accept a pending request addressed to user_id."""
        return await self._respond(request_id, FriendRequest.to_user_id, user_id, "accepted")

    async def decline(self, request_id: str, user_id: str) -> bool:
        """Decline a pending request addressed to user_id."""
        return await self._respond(request_id, FriendRequest.to_user_id, user_id, "declined")

    async def cancel(self, request_id: str, user_id: str) -> bool:
        """Cancel a pending request sent by user_id."""
        return await self._respond(request_id, FriendRequest.from_user_id, user_id, "cancelled")

    async def remove_friend(self, user_id: str, friend_id: str) -> bool:
        """End a friendship from either side."""
        stmt = (
            update(FriendRequest)
            .where(
                self._between(user_id, friend_id),
                FriendRequest.status == "accepted",
            )
            .values(status="cancelled", responded_at=datetime.now(timezone.utc))
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    async def list_friends(self, user_id: str) -> list[User]:
        """Get the users with an accepted request to or from user_id."""
        stmt = (
            select(FriendRequest)
            .options(joinedload(FriendRequest.from_user), joinedload(FriendRequest.to_user))
            .where(
                or_(
                    FriendRequest.from_user_id == user_id,
                    FriendRequest.to_user_id == user_id,
                ),
                FriendRequest.status == "accepted",
            )
            .order_by(FriendRequest.responded_at.desc())
        )
        result = await self.session.execute(stmt)
        friends = []
        for request in result.scalars().unique().all():
            friends.append(
                request.to_user if request.from_user_id == user_id else request.from_user
            )
        return friends

    async def list_received(self, user_id: str) -> list[FriendRequest]:
        """Pending requests addressed to user_id, sender loaded."""
        stmt = (
            select(FriendRequest)
            .options(joinedload(FriendRequest.from_user))
            .where(
                FriendRequest.to_user_id == user_id,
                FriendRequest.status == "pending",
            )
            .order_by(FriendRequest.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def list_sent(self, user_id: str) -> list[FriendRequest]:
        """Pending requests sent by user_id, recipient loaded."""
        stmt = (
            select(FriendRequest)
            .options(joinedload(FriendRequest.to_user))
            .where(
                FriendRequest.from_user_id == user_id,
                FriendRequest.status == "pending",
            )
            .order_by(FriendRequest.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())
