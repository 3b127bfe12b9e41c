from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.api.deps import get_current_user_id
from gse_monitor.api.schemas.alerts import AlertListResponse, AlertResponse
from gse_monitor.database.config import get_db
from gse_monitor.models.alert import Alert
from gse_monitor.services.alert_service import AlertService

router = APIRouter(prefix="/alerts", tags=["alerts"])

alert_service = AlertService()


def to_alert_response(alert: Alert) -> AlertResponse:
    response = AlertResponse.model_validate(alert)
    if alert.stock is not None:
        response.ticker = alert.stock.ticker
        response.company_name = alert.stock.company_name
    return response


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    search: str = "",
    tier: str | None = None,
    trigger: str | None = None,
    status: Literal["all", "unread", "read", "dismissed"] = "all",
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    alerts = await alert_service.list_alerts(user_id, db)
    filtered = alert_service.filter_alerts(alerts, search, tier, trigger, status)

    return AlertListResponse(
        total=len(filtered),
        unread=len(alert_service.unread(alerts)),
        trigger_types=alert_service.trigger_types(alerts),
        alerts=[to_alert_response(a) for a in filtered],
    )


@router.get("/recent", response_model=list[AlertResponse])
async def recent_alerts(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Latest non-dismissed alerts for the notification panel."""
    alerts = await alert_service.list_alerts(user_id, db)
    return [to_alert_response(a) for a in alert_service.recent(alerts)]


@router.post("/{alert_id}/read", response_model=AlertResponse)
async def mark_read(
    alert_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    alert = await alert_service.mark_read(user_id, alert_id, db)
    return to_alert_response(alert)


@router.post("/{alert_id}/dismiss", response_model=AlertResponse)
async def dismiss(
    alert_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    alert = await alert_service.dismiss(user_id, alert_id, db)
    return to_alert_response(alert)
