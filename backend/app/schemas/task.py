"""Task 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import Any, List, Optional, Union
from datetime import date, datetime
from app.schemas.comment import CommentOut


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[date] = None
    time_taken: Optional[Union[int, str]] = None
    # list / 단일 ID / JSON 문자열 / 인덱스 객체 모두 허용
    assignee: Any = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[date] = None
    time_taken: Optional[Union[int, str]] = None
    assignee: Any = None


class TaskAssign(BaseModel):
    owner_id: int


class TaskOut(BaseModel):
    task_id: int
    project_id: int
    project_name: Optional[str] = None
    owner_id: int
    owner_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: str
    priority: int
    due_date: Optional[date] = None
    time_taken: int = 0
    assignee_ids: List[int] = Field(default_factory=list)
    archived: bool
    archived_at: Optional[datetime] = None
    comments: List[CommentOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
