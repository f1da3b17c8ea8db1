"""Subtask Service 도메인 서비스 레이어입니다. 하위 작업 생명주기와 반복 일정 재생성을 담당합니다."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.errors import AuthorizationError, NotFoundError, ValidationError
from app.models.subtask import Subtask
from app.models.user import User
from app.schemas.subtask import SubtaskCreate, SubtaskUpdate
from app.services import comment_service, notification_service
from app.services.project_service import get_project_or_404
from app.services.task_service import get_task_or_404
from app.utils.assignees import diff_assignees, normalize_assignee_ids
from app.utils.helpers import parse_time_taken
from app.utils.permissions import can_view_item, ensure_allowed, ensure_can_view_tasks
from app.utils.work_items import (
    COMPLETED,
    TODO,
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

DESCRIPTION_MAX_LENGTH = 1000


def validate_recurrence(is_recurring: bool, interval: Optional[int], due_date) -> Optional[int]:
    if not is_recurring:
        if interval is not None:
            raise ValidationError("반복하지 않는 하위 작업에는 반복 간격을 지정할 수 없습니다.")
        return None
    if interval is None or isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        raise ValidationError("반복 간격은 양의 정수(일)여야 합니다.")
    if due_date is None:
        raise ValidationError("반복 하위 작업에는 마감일이 필요합니다.")
    return interval


def derive_next_occurrence(completed: Subtask) -> Optional[Subtask]:
    """완료된 반복 하위 작업으로부터 다음 회차를 만듭니다. 저장은 호출자가 수행합니다."""
    if not completed.is_recurring:
        return None
    interval = validate_recurrence(True, completed.recurrence_interval, completed.due_date)
    return Subtask(
        title=completed.title,
        description=completed.description,
        owner_id=completed.owner_id,
        assignees=list(completed.assignees),
        priority=completed.priority,
        is_recurring=True,
        recurrence_interval=interval,
        project_id=completed.project_id,
        parent_task_id=completed.parent_task_id,
        status=TODO,
        due_date=completed.due_date + timedelta(days=interval),
        time_taken=0,
        archived=False,
    )


def get_subtask_or_404(db: Session, subtask_id: int) -> Subtask:
    subtask = db.query(Subtask).filter(Subtask.subtask_id == subtask_id).first()
    if not subtask:
        raise NotFoundError("하위 작업을 찾을 수 없습니다.")
    return subtask


def get_subtask(db: Session, subtask_id: int, current_user: User) -> Subtask:
    subtask = get_subtask_or_404(db, subtask_id)
    if not can_view_item(db, subtask, current_user):
        raise AuthorizationError("이 하위 작업을 열람할 권한이 없습니다.")
    return subtask


def get_task_subtasks(db: Session, task_id: int, current_user: User, archived: bool = False) -> List[Subtask]:
    task = get_task_or_404(db, task_id)
    if not can_view_item(db, task, current_user):
        raise AuthorizationError("이 태스크를 열람할 권한이 없습니다.")
    return (
        db.query(Subtask)
        .filter(Subtask.parent_task_id == task_id, Subtask.archived == archived)
        .order_by(Subtask.created_at, Subtask.subtask_id)
        .all()
    )


def get_project_subtasks(db: Session, project_id: int, current_user: User) -> List[Subtask]:
    project = get_project_or_404(db, project_id)
    ensure_can_view_tasks(db, project, current_user)
    return (
        db.query(Subtask)
        .filter(Subtask.project_id == project_id, Subtask.archived == False)
        .order_by(Subtask.created_at, Subtask.subtask_id)
        .all()
    )


def create_subtask(db: Session, registry, data: SubtaskCreate, current_user: User) -> Subtask:
    project = get_project_or_404(db, data.project_id)
    parent = get_task_or_404(db, data.parent_task_id)
    if parent.project_id != project.project_id:
        raise ValidationError("상위 태스크가 지정한 프로젝트에 속하지 않습니다.")

    recurrence_interval = validate_recurrence(data.is_recurring, data.recurrence_interval, data.due_date)
    assignee_ids = normalize_assignee_ids(data.assignee) or [str(current_user.user_id)]
    ensure_assignee_limit(assignee_ids)
    assignees = resolve_users(db, assignee_ids)

    subtask = Subtask(
        parent_task_id=parent.task_id,
        project_id=project.project_id,
        owner_id=current_user.user_id,
        title=clean_title(data.title),
        description=clean_description(data.description, DESCRIPTION_MAX_LENGTH),
        status=validate_status(data.status),
        priority=validate_priority(data.priority),
        due_date=validate_due_date(data.due_date),
        time_taken=parse_time_taken(data.time_taken) or 0,
        is_recurring=bool(data.is_recurring),
        recurrence_interval=recurrence_interval,
    )
    subtask.assignees = assignees
    add_project_members(db, project, assignees)
    db.add(subtask)
    db.commit()
    db.refresh(subtask)

    notification_service.notify_assignment(db, registry, subtask.assignee_ids, subtask, current_user.user_id)
    return subtask


def update_subtask(db: Session, registry, subtask_id: int, data: SubtaskUpdate, current_user: User) -> Subtask:
    subtask = get_subtask_or_404(db, subtask_id)
    ensure_allowed(current_user, "update", subtask)

    fields = data.model_fields_set
    old_status = subtask.status
    changes = {}

    if "title" in fields and data.title is not None:
        title = clean_title(data.title)
        if title != subtask.title:
            subtask.title = title
            changes["title"] = title
    if "description" in fields:
        subtask.description = clean_description(data.description, DESCRIPTION_MAX_LENGTH)
    if "status" in fields and data.status is not None:
        subtask.status = validate_status(data.status)
    if "priority" in fields and data.priority is not None:
        priority = validate_priority(data.priority)
        if priority != subtask.priority:
            subtask.priority = priority
            changes["priority"] = priority
    if "due_date" in fields and data.due_date != subtask.due_date:
        subtask.due_date = validate_due_date(data.due_date)
        changes["deadline"] = subtask.due_date
    if "time_taken" in fields and data.time_taken is not None:
        subtask.time_taken = parse_time_taken(data.time_taken)
    if "is_recurring" in fields and data.is_recurring is not None:
        subtask.is_recurring = data.is_recurring
    if "recurrence_interval" in fields:
        subtask.recurrence_interval = data.recurrence_interval
    if not subtask.is_recurring and "recurrence_interval" not in fields:
        subtask.recurrence_interval = None
    subtask.recurrence_interval = validate_recurrence(
        bool(subtask.is_recurring), subtask.recurrence_interval, subtask.due_date
    )

    diff = None
    if "assignee" in fields:
        new_ids = normalize_assignee_ids(data.assignee)
        if not new_ids:
            raise ValidationError("최소 한 명의 담당자가 필요합니다.")
        diff = diff_assignees([str(uid) for uid in subtask.assignee_ids], new_ids)
        if diff.added or diff.removed:
            ensure_allowed(current_user, "assign", subtask)
            ensure_assignee_limit(new_ids)
            users = resolve_users(db, new_ids)
            subtask.assignees = users
            add_project_members(db, subtask.project, users)

    next_occurrence = None
    if old_status != COMPLETED and subtask.status == COMPLETED:
        next_occurrence = derive_next_occurrence(subtask)
        if next_occurrence is not None:
            db.add(next_occurrence)

    db.commit()
    db.refresh(subtask)
    if next_occurrence is not None:
        db.refresh(next_occurrence)
        subtask.next_occurrence_id = next_occurrence.subtask_id
        logger.info(
            "[subtask] recurring subtask=%s completed, next occurrence=%s due=%s",
            subtask.subtask_id, next_occurrence.subtask_id, next_occurrence.due_date,
        )

    actor_id = current_user.user_id
    if diff is not None:
        notification_service.notify_assignment(db, registry, diff.added, subtask, actor_id)
        notification_service.notify_unassignment(db, registry, diff.removed, subtask, actor_id)
    if subtask.status != old_status:
        notification_service.notify_status_change(db, registry, subtask, actor_id)
    if changes:
        notification_service.notify_field_change(db, registry, subtask, actor_id, changes)
    return subtask


def set_archived(db: Session, registry, subtask_id: int, archived: bool, current_user: User) -> Subtask:
    subtask = get_subtask_or_404(db, subtask_id)
    ensure_allowed(current_user, "archive", subtask)
    if bool(subtask.archived) == archived:
        return subtask
    subtask.archived = archived
    subtask.archived_at = datetime.utcnow() if archived else None
    db.commit()
    db.refresh(subtask)
    notification_service.notify_archived(db, registry, subtask, current_user, archived=archived)
    return subtask


def add_comment(db: Session, registry, subtask_id: int, text: str, current_user: User) -> Subtask:
    subtask = get_subtask_or_404(db, subtask_id)
    return comment_service.add_comment(db, registry, subtask, text, current_user)


def edit_comment(db: Session, subtask_id: int, comment_id: int, text: str, current_user: User) -> Subtask:
    subtask = get_subtask_or_404(db, subtask_id)
    return comment_service.edit_comment(db, subtask, comment_id, text, current_user)


def delete_comment(db: Session, subtask_id: int, comment_id: int, current_user: User) -> Subtask:
    subtask = get_subtask_or_404(db, subtask_id)
    return comment_service.delete_comment(db, subtask, comment_id, current_user)
