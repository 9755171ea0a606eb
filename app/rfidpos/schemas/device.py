from datetime import datetime

from pydantic import BaseModel


class DeviceConnectRequest(BaseModel):
    port: str | None = None


class DeviceSessionResponse(BaseModel):
    connected: bool
    port: str | None = None
    opened_at: datetime | None = None


class ActivityLogResponse(BaseModel):
    lines: list[str]
    total: int
