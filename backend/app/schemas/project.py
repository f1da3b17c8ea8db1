"""Project 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime


class ProjectCreate(BaseModel):
    name: str
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[date] = None
    tags: List[str] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[int] = None
    due_date: Optional[date] = None
    tags: Optional[List[str]] = None
    archived: Optional[bool] = None


class ProjectOut(BaseModel):
    project_id: int
    name: str
    description: Optional[str] = None
    owner_id: int
    owner_name: Optional[str] = None
    status: str
    priority: int
    due_date: Optional[date] = None
    tags: List[str] = Field(default_factory=list)
    archived: bool
    archived_at: Optional[datetime] = None
    member_ids: List[int] = Field(default_factory=list)
    can_view_tasks: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
