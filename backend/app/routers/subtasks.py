"""Subtasks 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.comment import CommentCreate, CommentUpdate
from app.schemas.subtask import SubtaskCreate, SubtaskUpdate, SubtaskOut
from app.services import subtask_service
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.utils.connection_registry import ConnectionRegistry, get_connection_registry

router = APIRouter(tags=["subtasks"])


@router.post("/api/subtasks", response_model=SubtaskOut, status_code=201)
def create_subtask(
    data: SubtaskCreate,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return subtask_service.create_subtask(db, registry, data, current_user)


@router.get("/api/tasks/{task_id}/subtasks", response_model=List[SubtaskOut])
def list_task_subtasks(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return subtask_service.get_task_subtasks(db, task_id, current_user)


@router.get("/api/tasks/{task_id}/subtasks/archived", response_model=List[SubtaskOut])
def list_archived_subtasks(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return subtask_service.get_task_subtasks(db, task_id, current_user, archived=True)


@router.get("/api/projects/{project_id}/subtasks", response_model=List[SubtaskOut])
def list_project_subtasks(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return subtask_service.get_project_subtasks(db, project_id, current_user)


@router.get("/api/subtasks/{subtask_id}", response_model=SubtaskOut)
def get_subtask(subtask_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return subtask_service.get_subtask(db, subtask_id, current_user)


@router.put("/api/subtasks/{subtask_id}", response_model=SubtaskOut)
def update_subtask(
    subtask_id: int,
    data: SubtaskUpdate,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return subtask_service.update_subtask(db, registry, subtask_id, data, current_user)


@router.put("/api/subtasks/{subtask_id}/archive", response_model=SubtaskOut)
def archive_subtask(
    subtask_id: int,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return subtask_service.set_archived(db, registry, subtask_id, True, current_user)


@router.put("/api/subtasks/{subtask_id}/unarchive", response_model=SubtaskOut)
def unarchive_subtask(
    subtask_id: int,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return subtask_service.set_archived(db, registry, subtask_id, False, current_user)


@router.post("/api/subtasks/{subtask_id}/comments", response_model=SubtaskOut, status_code=201)
def add_comment(
    subtask_id: int,
    data: CommentCreate,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return subtask_service.add_comment(db, registry, subtask_id, data.text, current_user)


@router.put("/api/subtasks/{subtask_id}/comments/{comment_id}", response_model=SubtaskOut)
def edit_comment(
    subtask_id: int,
    comment_id: int,
    data: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return subtask_service.edit_comment(db, subtask_id, comment_id, data.text, current_user)


@router.delete("/api/subtasks/{subtask_id}/comments/{comment_id}", response_model=SubtaskOut)
def delete_comment(
    subtask_id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return subtask_service.delete_comment(db, subtask_id, comment_id, current_user)
