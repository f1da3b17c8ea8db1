"""Task Service 도메인 서비스 레이어입니다. 비즈니스 규칙과 데이터 접근 흐름을 캡슐화합니다."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.errors import AuthorizationError, NotFoundError, ValidationError
from app.models.subtask import Subtask
from app.models.task import Task
from app.models.user import User
from app.schemas.task import TaskCreate, TaskUpdate
from app.services import comment_service, notification_service
from app.services.project_service import get_project_or_404
from app.utils.assignees import diff_assignees, normalize_assignee_ids
from app.utils.helpers import parse_time_taken
from app.utils.permissions import can_view_item, ensure_allowed, ensure_can_view_tasks
from app.utils.work_items import (
    add_project_members,
    clean_description,
    clean_title,
    ensure_assignee_limit,
    resolve_users,
    validate_due_date,
    validate_priority,
    validate_status,
)

logger = logging.getLogger(__name__)


def get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.task_id == task_id).first()
    if not task:
        raise NotFoundError("태스크를 찾을 수 없습니다.")
    return task


def get_task(db: Session, task_id: int, current_user: User) -> Task:
    task = get_task_or_404(db, task_id)
    if not can_view_item(db, task, current_user):
        raise AuthorizationError("이 태스크를 열람할 권한이 없습니다.")
    return task


def get_project_tasks(db: Session, project_id: int, current_user: User, include_archived: bool = False) -> List[Task]:
    project = get_project_or_404(db, project_id)
    ensure_can_view_tasks(db, project, current_user)
    q = db.query(Task).filter(Task.project_id == project_id)
    if not include_archived:
        q = q.filter(Task.archived == False)
    return q.order_by(Task.created_at, Task.task_id).all()


def search_tasks(
    db: Session,
    current_user: User,
    *,
    owner_me: bool = False,
    assignee_me: bool = False,
    status: Optional[str] = None,
    project_id: Optional[int] = None,
    include_archived: bool = False,
) -> List[Task]:
    """현재 사용자가 소유하거나 담당한 태스크를 조건에 맞게 조회합니다."""
    q = db.query(Task)
    mine_owner = Task.owner_id == current_user.user_id
    mine_assignee = Task.assignees.any(User.user_id == current_user.user_id)
    if owner_me and not assignee_me:
        q = q.filter(mine_owner)
    elif assignee_me and not owner_me:
        q = q.filter(mine_assignee)
    else:
        q = q.filter(or_(mine_owner, mine_assignee))
    if status:
        q = q.filter(Task.status == validate_status(status))
    if project_id is not None:
        q = q.filter(Task.project_id == project_id)
    if not include_archived:
        q = q.filter(Task.archived == False)
    return q.order_by(Task.due_date.is_(None), Task.due_date, Task.task_id).all()


def create_task(db: Session, registry, project_id: int, data: TaskCreate, current_user: User) -> Task:
    project = get_project_or_404(db, project_id)
    if project.archived:
        raise ValidationError("보관된 프로젝트에는 태스크를 추가할 수 없습니다.")

    assignee_ids = normalize_assignee_ids(data.assignee)
    creator_id = str(current_user.user_id)
    if creator_id not in assignee_ids:
        assignee_ids.append(creator_id)
    ensure_assignee_limit(assignee_ids)
    assignees = resolve_users(db, assignee_ids)

    task = Task(
        project_id=project.project_id,
        owner_id=current_user.user_id,
        title=clean_title(data.title),
        description=clean_description(data.description),
        status=validate_status(data.status),
        priority=validate_priority(data.priority),
        due_date=validate_due_date(data.due_date),
        time_taken=parse_time_taken(data.time_taken) or 0,
    )
    task.assignees = assignees
    add_project_members(db, project, assignees)
    db.add(task)
    db.commit()
    db.refresh(task)

    notification_service.notify_assignment(db, registry, task.assignee_ids, task, current_user.user_id)
    return task


def update_task(db: Session, registry, task_id: int, data: TaskUpdate, current_user: User) -> Task:
    task = get_task_or_404(db, task_id)
    ensure_allowed(current_user, "update", task)

    fields = data.model_fields_set
    old_status = task.status
    changes = {}

    if "title" in fields and data.title is not None:
        title = clean_title(data.title)
        if title != task.title:
            task.title = title
            changes["title"] = title
    if "description" in fields:
        task.description = clean_description(data.description)
    if "status" in fields and data.status is not None:
        task.status = validate_status(data.status)
    if "priority" in fields and data.priority is not None:
        priority = validate_priority(data.priority)
        if priority != task.priority:
            task.priority = priority
            changes["priority"] = priority
    if "due_date" in fields and data.due_date != task.due_date:
        task.due_date = validate_due_date(data.due_date)
        changes["deadline"] = task.due_date
    if "time_taken" in fields and data.time_taken is not None:
        task.time_taken = parse_time_taken(data.time_taken)

    diff = None
    if "assignee" in fields:
        new_ids = normalize_assignee_ids(data.assignee)
        if not new_ids:
            raise ValidationError("최소 한 명의 담당자가 필요합니다.")
        diff = diff_assignees([str(uid) for uid in task.assignee_ids], new_ids)
        if diff.added or diff.removed:
            ensure_allowed(current_user, "assign", task)
            ensure_assignee_limit(new_ids)
            users = resolve_users(db, new_ids)
            task.assignees = users
            add_project_members(db, task.project, users)

    db.commit()
    db.refresh(task)

    actor_id = current_user.user_id
    if diff is not None:
        notification_service.notify_assignment(db, registry, diff.added, task, actor_id)
        notification_service.notify_unassignment(db, registry, diff.removed, task, actor_id)
    if task.status != old_status:
        notification_service.notify_status_change(db, registry, task, actor_id)
    if changes:
        notification_service.notify_field_change(db, registry, task, actor_id, changes)
    return task


def assign_task(db: Session, registry, task_id: int, owner_id: int, current_user: User) -> Task:
    """책임자(owner)를 교체합니다. 새 책임자가 담당자 목록에 없으면 추가합니다."""
    task = get_task_or_404(db, task_id)
    ensure_allowed(current_user, "assign", task)
    new_owner = resolve_users(db, [str(owner_id)])[0]
    if new_owner.user_id == task.owner_id:
        return task

    task.owner_id = new_owner.user_id
    if new_owner.user_id not in task.assignee_ids:
        ensure_assignee_limit(task.assignee_ids + [new_owner.user_id])
        task.assignees.append(new_owner)
        add_project_members(db, task.project, [new_owner])
    db.commit()
    db.refresh(task)

    notification_service.notify_assignment(db, registry, [new_owner.user_id], task, current_user.user_id)
    return task


def set_archived(db: Session, registry, task_id: int, archived: bool, current_user: User) -> Task:
    task = get_task_or_404(db, task_id)
    ensure_allowed(current_user, "archive", task)
    if bool(task.archived) == archived:
        return task

    archived_at = datetime.utcnow() if archived else None
    task.archived = archived
    task.archived_at = archived_at
    db.query(Subtask).filter(Subtask.parent_task_id == task.task_id).update(
        {"archived": archived, "archived_at": archived_at},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(task)
    logger.info("[task] task=%s archived=%s by user=%s", task.task_id, archived, current_user.user_id)

    notification_service.notify_archived(db, registry, task, current_user, archived=archived)
    return task


def delete_task(db: Session, task_id: int, current_user: User):
    task = get_task_or_404(db, task_id)
    ensure_allowed(current_user, "task.delete", task)
    notification_service.detach_notifications(
        db,
        task_ids=[task.task_id],
        subtask_ids=[s.subtask_id for s in task.subtasks],
    )
    db.delete(task)
    db.commit()


def add_comment(db: Session, registry, task_id: int, text: str, current_user: User) -> Task:
    task = get_task_or_404(db, task_id)
    return comment_service.add_comment(db, registry, task, text, current_user)


def edit_comment(db: Session, task_id: int, comment_id: int, text: str, current_user: User) -> Task:
    task = get_task_or_404(db, task_id)
    return comment_service.edit_comment(db, task, comment_id, text, current_user)


def delete_comment(db: Session, task_id: int, comment_id: int, current_user: User) -> Task:
    task = get_task_or_404(db, task_id)
    return comment_service.delete_comment(db, task, comment_id, current_user)
