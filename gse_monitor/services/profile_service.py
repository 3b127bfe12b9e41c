from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.models.profile import REFRESH_INTERVALS, Profile
from gse_monitor.utils.logger import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = (
    "full_name", "phone", "location", "email_alerts", "sms_alerts",
    "telegram_alerts", "telegram_chat_id", "data_refresh_interval",
)


class ProfileService:
    """Per-user preferences. A profile is created on first access."""

    async def get_or_create(self, user_id: str, db: AsyncSession) -> Profile:
        result = await db.execute(select(Profile).where(Profile.user_id == user_id))
        profile = result.scalar_one_or_none()
        if profile is not None:
            return profile

        profile = Profile(user_id=user_id, full_name="User")
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
        logger.info(f"Created profile for {user_id}")
        return profile

    async def update(self, user_id: str, db: AsyncSession, **changes: Any) -> Profile:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update profile fields: {sorted(unknown)}")

        interval = changes.get("data_refresh_interval")
        if interval is not None and interval not in REFRESH_INTERVALS:
            raise ValueError(f"Refresh interval must be one of {REFRESH_INTERVALS}")

        profile = await self.get_or_create(user_id, db)
        for field, value in changes.items():
            setattr(profile, field, value)

        await db.commit()
        await db.refresh(profile)
        return profile
