from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    stock_id: str
    ticker: str | None = None
    company_name: str | None = None
    trigger_type: str
    tier: str
    price: float | None
    rationale: str | None
    is_read: bool
    is_dismissed: bool
    created_at: datetime


class AlertListResponse(BaseModel):
    total: int
    unread: int
    trigger_types: list[str]
    alerts: list[AlertResponse]
