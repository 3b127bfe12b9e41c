from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    detail: str
    error_code: Optional[str] = None


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: str | None
    phone: str | None
    location: str | None
    email_alerts: bool
    sms_alerts: bool
    telegram_alerts: bool
    telegram_chat_id: str | None
    data_refresh_interval: str


class ProfileUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    email_alerts: Optional[bool] = None
    sms_alerts: Optional[bool] = None
    telegram_alerts: Optional[bool] = None
    telegram_chat_id: Optional[str] = None
    data_refresh_interval: Optional[str] = None
