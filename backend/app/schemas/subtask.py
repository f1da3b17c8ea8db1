"""Subtask 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import Any, List, Optional, Union
from datetime import date, datetime
from app.schemas.comment import CommentOut


class SubtaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    parent_task_id: int
    project_id: int
    status: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[date] = None
    time_taken: Optional[Union[int, str]] = None
    assignee: Any = None
    is_recurring: bool = False
    recurrence_interval: Optional[int] = None


class SubtaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[date] = None
    time_taken: Optional[Union[int, str]] = None
    assignee: Any = None
    is_recurring: Optional[bool] = None
    recurrence_interval: Optional[int] = None


class SubtaskOut(BaseModel):
    subtask_id: int
    parent_task_id: int
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
    is_recurring: bool
    recurrence_interval: Optional[int] = None
    archived: bool
    archived_at: Optional[datetime] = None
    comments: List[CommentOut] = Field(default_factory=list)
    next_occurrence_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
