"""Repository for user operations."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reelswipe.storage.json_utils import safe_json_dumps, safe_json_loads
from reelswipe.storage.models import User

DEV_USER_ID = "dev-user"


class UsersRepo:
    """Repository for user CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user(self, user_id: str) -> User | None:
        """Get user by ID.

        Args:
            user_id: Internal user ID

        Returns:
            User instance or None
        """
        stmt = select(User).where(User.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_google_user(
        self,
        google_id: str,
        email: str | None,
        display_name: str,
        photo: str | None,
    ) -> User:
        """Create or refresh the user behind a Google account.

        Args:
            google_id: Google account subject
            email: Account email
            display_name: Name shown in the UI
            photo: Avatar URL

        Returns:
            User instance (new or existing)
        """
        now = datetime.now(timezone.utc)
        stmt = select(User).where(User.google_id == google_id)
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()

        if user is None:
            user = User(
                user_id=str(uuid.uuid4()),
                google_id=google_id,
                email=email,
                display_name=display_name,
                photo=photo,
                preferences_json="{}",
                created_at=now,
                last_seen_at=now,
            )
            self.session.add(user)
        else:
            user.email = email
            user.display_name = display_name
            user.photo = photo
            user.last_seen_at = now

        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def get_or_create_dev_user(self) -> User:
        """Get the fixed local development user, creating it on first use."""
        user = await self.get_user(DEV_USER_ID)
        if user is not None:
            await self.update_last_seen(DEV_USER_ID)
            return user

        now = datetime.now(timezone.utc)
        user = User(
            user_id=DEV_USER_ID,
            google_id=None,
            email="dev@localhost",
            display_name="Dev User",
            photo=None,
            preferences_json="{}",
            created_at=now,
            last_seen_at=now,
        )
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def update_last_seen(self, user_id: str) -> None:
        """Update user's last seen timestamp."""
        now = datetime.now(timezone.utc)
        stmt = update(User).where(User.user_id == user_id).values(last_seen_at=now)
        await self.session.execute(stmt)
        await self.session.commit()

    async def get_preferences(self, user_id: str) -> dict[str, Any]:
        """Get the stored preference payload (empty dict when never saved)."""
        user = await self.get_user(user_id)
        if user is None:
            return {}
        data = safe_json_loads(user.preferences_json)
        return data if isinstance(data, dict) else {}

    async def update_preferences(self, user_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Merge a partial preference payload into the stored one.

        Args:
            user_id: Internal user ID
            changes: Keys to overwrite

        Returns:
            The merged preference payload
        """
        merged = await self.get_preferences(user_id)
        merged.update(changes)

        stmt = (
            update(User)
            .where(User.user_id == user_id)
            .values(preferences_json=safe_json_dumps(merged))
        )
        await self.session.execute(stmt)
        await self.session.commit()
        return merged

    async def search_users(
        self,
        query: str,
        exclude_user_id: str | None = None,
        limit: int = 20,
    ) -> list[User]:
        """Find users by display name or email substring (case-insensitive)."""
        pattern = f"%{query.lower()}%"
        stmt = select(User).where(
            or_(
                func.lower(User.display_name).like(pattern),
                func.lower(User.email).like(pattern),
            )
        )
        if exclude_user_id:
            stmt = stmt.where(User.user_id != exclude_user_id)

        stmt = stmt.order_by(User.display_name).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
