from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.core.enums import SessionState


class SessionOpenResponse(BaseModel):
    class_id: int
    code: str
    already_active: bool = False
    rotation_interval_seconds: float


class SessionRestartResponse(BaseModel):
    class_id: int
    old_code: str
    new_code: str
    rotation_interval_seconds: float


class SessionDetail(BaseModel):
    """Active session metadata."""

    code: str
    class_name: str
    opened_at: datetime
    updated_at: datetime
    today_attendance_count: int


class SessionStatusResponse(BaseModel):
    class_id: int
    status: SessionState
    session: Optional[SessionDetail] = None
    rotation_interval_seconds: float


class SessionCloseResponse(BaseModel):
    class_id: int
    last_code: str
    rows_removed: int
    rotation_stopped: bool
