from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class BacktestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    status: str
    parameters: dict[str, Any]
    results: dict[str, Any] | None
    created_at: datetime
    completed_at: datetime | None
