from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.sql import func

from gse_monitor.database.config import Base
from gse_monitor.models.stock import new_id

REFRESH_INTERVALS = ("1m", "5m", "15m", "30m", "1h")


class Profile(Base):
    """Per-user notification and display preferences."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, unique=True)
    full_name = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    location = Column(String(200), nullable=True)

    # Notification channels
    email_alerts = Column(Boolean, default=True, nullable=False)
    sms_alerts = Column(Boolean, default=False, nullable=False)
    telegram_alerts = Column(Boolean, default=False, nullable=False)
    telegram_chat_id = Column(String(100), nullable=True)

    data_refresh_interval = Column(String(3), default="5m", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "data_refresh_interval IN ({})".format(", ".join(f"'{i}'" for i in REFRESH_INTERVALS)),
            name="ck_profiles_refresh_interval",
        ),
    )

    def __repr__(self):
        return f"<Profile user={self.user_id} {self.full_name!r}>"
