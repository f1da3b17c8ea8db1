"""Notification 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class NotificationOut(BaseModel):
    noti_id: int
    user_id: int
    noti_type: str
    message: str
    task_id: Optional[int] = None
    subtask_id: Optional[int] = None
    project_id: Optional[int] = None
    assignor_id: Optional[int] = None
    assignor_name: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
