"""Project Service 도메인 서비스 레이어입니다. 비즈니스 규칙과 데이터 접근 흐름을 캡슐화합니다."""

import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from app.errors import NotFoundError, ValidationError
from app.models.project import Project, ProjectMember
from app.models.subtask import Subtask
from app.models.task import Task
from app.models.user import User
from app.schemas.project import ProjectCreate, ProjectUpdate
from app.services import notification_service
from app.utils.permissions import annotate_can_view_tasks, ensure_allowed
from app.utils.work_items import validate_due_date, validate_priority, validate_status

logger = logging.getLogger(__name__)


def _clean_name(value) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError("프로젝트 이름은 필수입니다.")
    return name


def _clean_tags(tags) -> List[str]:
    return [str(t).strip() for t in (tags or []) if str(t).strip()]


def get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.project_id == project_id).first()
    if not project:
        raise NotFoundError("프로젝트를 찾을 수 없습니다.")
    return project


def list_projects(db: Session, current_user: User, include_archived: bool = False) -> List[Project]:
    """조건에 맞는 프로젝트를 모두 반환하고, 각 항목에 열람자 기준 can_view_tasks를 표시합니다."""
    q = db.query(Project)
    if not include_archived:
        q = q.filter(Project.archived == False)
    projects = q.order_by(Project.created_at.desc(), Project.project_id.desc()).all()
    return [annotate_can_view_tasks(db, p, current_user) for p in projects]


def get_project(db: Session, project_id: int, current_user: User) -> Project:
    project = get_project_or_404(db, project_id)
    return annotate_can_view_tasks(db, project, current_user)


def create_project(db: Session, data: ProjectCreate, current_user: User) -> Project:
    project = Project(
        name=_clean_name(data.name),
        description=(data.description or "").strip() or None,
        owner_id=current_user.user_id,
        status=validate_status(data.status),
        priority=validate_priority(data.priority),
        due_date=validate_due_date(data.due_date),
        tags=_clean_tags(data.tags),
    )
    db.add(project)
    db.flush()
    db.add(ProjectMember(project_id=project.project_id, user_id=current_user.user_id))
    db.commit()
    db.refresh(project)
    return annotate_can_view_tasks(db, project, current_user)


def _set_archived(db: Session, project: Project, archived: bool):
    archived_at = datetime.utcnow() if archived else None
    project.archived = archived
    project.archived_at = archived_at
    for model in (Task, Subtask):
        db.query(model).filter(model.project_id == project.project_id).update(
            {"archived": archived, "archived_at": archived_at},
            synchronize_session=False,
        )


def update_project(db: Session, project_id: int, data: ProjectUpdate, current_user: User) -> Project:
    project = get_project_or_404(db, project_id)
    ensure_allowed(current_user, "project.update", project)

    fields = data.model_fields_set
    if "name" in fields:
        project.name = _clean_name(data.name)
    if "description" in fields:
        project.description = (data.description or "").strip() or None
    if "status" in fields and data.status is not None:
        project.status = validate_status(data.status)
    if "priority" in fields and data.priority is not None:
        project.priority = validate_priority(data.priority)
    if "due_date" in fields and data.due_date != project.due_date:
        project.due_date = validate_due_date(data.due_date)
    if "tags" in fields:
        project.tags = _clean_tags(data.tags)
    if data.archived is not None and data.archived != bool(project.archived):
        _set_archived(db, project, data.archived)
        logger.info("[project] project=%s archived=%s by user=%s", project.project_id, data.archived, current_user.user_id)

    db.commit()
    db.refresh(project)
    return annotate_can_view_tasks(db, project, current_user)


def delete_project(db: Session, project_id: int, current_user: User):
    project = get_project_or_404(db, project_id)
    ensure_allowed(current_user, "project.delete", project)
    notification_service.detach_notifications(
        db,
        task_ids=[t.task_id for t in project.tasks],
        subtask_ids=[s.subtask_id for s in project.subtasks],
        project_id=project.project_id,
    )
    db.delete(project)
    db.commit()
