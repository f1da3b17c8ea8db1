"""Tasks 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.comment import CommentCreate, CommentUpdate
from app.schemas.task import TaskAssign, TaskCreate, TaskUpdate, TaskOut
from app.services import task_service
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.utils.connection_registry import ConnectionRegistry, get_connection_registry

router = APIRouter(tags=["tasks"])


@router.get("/api/projects/{project_id}/tasks", response_model=List[TaskOut])
def list_project_tasks(
    project_id: int,
    include_archived: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return task_service.get_project_tasks(db, project_id, current_user, include_archived)


@router.post("/api/projects/{project_id}/tasks", response_model=TaskOut, status_code=201)
def create_task(
    project_id: int,
    data: TaskCreate,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return task_service.create_task(db, registry, project_id, data, current_user)


@router.get("/api/tasks", response_model=List[TaskOut])
def search_tasks(
    owner: Optional[str] = None,
    assignee: Optional[str] = None,
    status: Optional[str] = None,
    project_id: Optional[int] = None,
    include_archived: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return task_service.search_tasks(
        db,
        current_user,
        owner_me=owner == "me",
        assignee_me=assignee == "me",
        status=status,
        project_id=project_id,
        include_archived=include_archived,
    )


@router.get("/api/tasks/{task_id}", response_model=TaskOut)
def get_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return task_service.get_task(db, task_id, current_user)


@router.put("/api/tasks/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return task_service.update_task(db, registry, task_id, data, current_user)


@router.post("/api/tasks/{task_id}/assign", response_model=TaskOut)
def assign_task(
    task_id: int,
    data: TaskAssign,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return task_service.assign_task(db, registry, task_id, data.owner_id, current_user)


@router.put("/api/tasks/{task_id}/archive", response_model=TaskOut)
def archive_task(
    task_id: int,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return task_service.set_archived(db, registry, task_id, True, current_user)


@router.put("/api/tasks/{task_id}/unarchive", response_model=TaskOut)
def unarchive_task(
    task_id: int,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return task_service.set_archived(db, registry, task_id, False, current_user)


@router.delete("/api/tasks/{task_id}")
def delete_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task_service.delete_task(db, task_id, current_user)
    return {"message": "삭제되었습니다."}


@router.post("/api/tasks/{task_id}/comments", response_model=TaskOut, status_code=201)
def add_comment(
    task_id: int,
    data: CommentCreate,
    db: Session = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
    current_user: User = Depends(get_current_user),
):
    return task_service.add_comment(db, registry, task_id, data.text, current_user)


@router.put("/api/tasks/{task_id}/comments/{comment_id}", response_model=TaskOut)
def edit_comment(
    task_id: int,
    comment_id: int,
    data: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return task_service.edit_comment(db, task_id, comment_id, data.text, current_user)


@router.delete("/api/tasks/{task_id}/comments/{comment_id}", response_model=TaskOut)
def delete_comment(
    task_id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return task_service.delete_comment(db, task_id, comment_id, current_user)
