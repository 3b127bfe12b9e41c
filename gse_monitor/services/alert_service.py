from typing import List, Literal, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.config.settings import settings
from gse_monitor.models.alert import Alert
from gse_monitor.services.errors import NotFoundError
from gse_monitor.utils.logger import get_logger

logger = get_logger(__name__)

AlertStatus = Literal["all", "unread", "read", "dismissed"]


def is_unread(alert: Alert) -> bool:
    return not alert.is_read and not alert.is_dismissed


class AlertService:
    """
    Read alerts and flip their read/dismissed flags.

    Alerts are scoped to the caller: a user only sees alerts addressed to them.
    """

    async def list_alerts(
        self,
        user_id: str,
        db: AsyncSession,
        stock_id: Optional[str] = None
    ) -> List[Alert]:
        """Newest first, optionally for one stock."""
        query = select(Alert).where(Alert.user_id == user_id)
        if stock_id:
            query = query.where(Alert.stock_id == stock_id)

        result = await db.execute(query.order_by(Alert.created_at.desc()))
        return list(result.unique().scalars().all())

    @staticmethod
    def filter_alerts(
        alerts: Sequence[Alert],
        search: str = "",
        tier: Optional[str] = None,
        trigger_type: Optional[str] = None,
        status: AlertStatus = "all"
    ) -> List[Alert]:
        """
        Filter alerts for the alerts page.

        Search matches ticker, company name or trigger type. Status 'unread'
        excludes dismissed alerts; 'read' and 'dismissed' match their flag.
        """
        if status not in ("all", "unread", "read", "dismissed"):
            raise ValueError(f"Unknown alert status filter '{status}'")

        term = (search or "").strip().lower()

        def matches(alert: Alert) -> bool:
            if term:
                haystack = [alert.trigger_type.lower()]
                if alert.stock is not None:
                    haystack += [alert.stock.ticker.lower(), alert.stock.company_name.lower()]
                if not any(term in text for text in haystack):
                    return False
            if tier and tier != "all" and alert.tier != tier:
                return False
            if trigger_type and trigger_type != "all" and alert.trigger_type != trigger_type:
                return False
            if status == "unread":
                return is_unread(alert)
            if status == "read":
                return bool(alert.is_read)
            if status == "dismissed":
                return bool(alert.is_dismissed)
            return True

        return [a for a in alerts if matches(a)]

    @staticmethod
    def unread(alerts: Sequence[Alert]) -> List[Alert]:
        return [a for a in alerts if is_unread(a)]

    @staticmethod
    def recent(alerts: Sequence[Alert], limit: Optional[int] = None) -> List[Alert]:
        """Latest non-dismissed alerts (input is newest first)."""
        visible = [a for a in alerts if not a.is_dismissed]
        return visible[: limit or settings.recent_alerts_limit]

    @staticmethod
    def trigger_types(alerts: Sequence[Alert]) -> List[str]:
        return list(dict.fromkeys(a.trigger_type for a in alerts))

    async def _get_own(self, user_id: str, alert_id: str, db: AsyncSession) -> Alert:
        result = await db.execute(
            select(Alert).where(Alert.id == alert_id, Alert.user_id == user_id)
        )
        alert = result.unique().scalar_one_or_none()
        if alert is None:
            raise NotFoundError("Alert", alert_id)
        return alert

    async def mark_read(self, user_id: str, alert_id: str, db: AsyncSession) -> Alert:
        alert = await self._get_own(user_id, alert_id, db)
        alert.is_read = True
        await db.commit()
        logger.debug(f"Alert {alert_id} marked read by {user_id}")
        return alert

    async def dismiss(self, user_id: str, alert_id: str, db: AsyncSession) -> Alert:
        alert = await self._get_own(user_id, alert_id, db)
        alert.is_dismissed = True
        await db.commit()
        logger.debug(f"Alert {alert_id} dismissed by {user_id}")
        return alert
