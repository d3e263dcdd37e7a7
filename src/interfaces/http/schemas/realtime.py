from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ConnectedAdminSchema(BaseModel):
    user_id: str
    name: str | None = None
    connected_at: datetime


class RealtimeStatsResponse(BaseModel):
    connected_users: int
    connected_admins: list[ConnectedAdminSchema]
