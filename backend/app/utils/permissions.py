"""역할/부서 기반 권한 판단 공용 유틸리티입니다."""

from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.errors import AuthorizationError
from app.models.project import Project, ProjectMember
from app.models.subtask import Subtask
from app.models.task import Task
from app.models.user import User
from app.utils.work_items import involved_user_ids

ADMIN = "admin"
MANAGER = "manager"
STAFF = "staff"

ALL_ROLES = (STAFF, MANAGER, ADMIN)
MANAGER_ADMIN = (MANAGER, ADMIN)

DEPARTMENTS = (
    "hr", "it", "sales", "consultancy", "systems",
    "engineering", "finance", "managing director",
)


def is_admin(user: User) -> bool:
    return user.has_role(ADMIN)


def is_manager_or_admin(user: User) -> bool:
    return user.has_role(*MANAGER_ADMIN)


def _is_project_member(db: Session, project: Project, user: User) -> bool:
    if project.owner_id == user.user_id:
        return True
    return (
        db.query(ProjectMember)
        .filter(
            ProjectMember.project_id == project.project_id,
            ProjectMember.user_id == user.user_id,
        )
        .first()
        is not None
    )


def can_view_tasks(db: Session, project: Project, viewer: User) -> bool:
    if is_admin(viewer):
        return True

    items = (
        db.query(Task).filter(Task.project_id == project.project_id).all()
        + db.query(Subtask).filter(Subtask.project_id == project.project_id).all()
    )
    if not items:
        return False

    involved = set()
    for item in items:
        people = involved_user_ids(item)
        if not item.archived and viewer.user_id in people:
            return True
        involved.update(people)

    involved.discard(viewer.user_id)
    if not involved or not viewer.department:
        return False
    if not _is_project_member(db, project, viewer):
        return False
    colleague = (
        db.query(User.user_id)
        .filter(User.user_id.in_(involved), User.department == viewer.department)
        .first()
    )
    return colleague is not None


def annotate_can_view_tasks(db: Session, project: Project, viewer: User) -> Project:
    project.can_view_tasks = can_view_tasks(db, project, viewer)
    return project


def ensure_can_view_tasks(db: Session, project: Project, viewer: User) -> None:
    if not can_view_tasks(db, project, viewer):
        raise AuthorizationError("이 프로젝트의 태스크를 열람할 권한이 없습니다.")


def can_view_item(db: Session, item, viewer: User) -> bool:
    if viewer.user_id in involved_user_ids(item):
        return True
    return can_view_tasks(db, item.project, viewer)


def can_assign(user: User, item=None) -> bool:
    return is_manager_or_admin(user)


def can_update_item(user: User, item) -> bool:
    if is_manager_or_admin(user):
        return True
    return user.user_id in involved_user_ids(item)


def can_comment(user: User, item) -> bool:
    if is_manager_or_admin(user):
        return True
    assignees = list(item.assignees)
    if any(a.user_id == user.user_id for a in assignees):
        return True
    return bool(user.department) and any(a.department == user.department for a in assignees)


def can_edit_comment(user: User, comment) -> bool:
    return comment.author_id == user.user_id


def can_delete_comment(user: User, comment=None) -> bool:
    return is_admin(user)


def can_modify_project(user: User, project: Project) -> bool:
    # 관리자 예외 없이 소유자만 허용
    return project.owner_id == user.user_id


def can_delete_task(user: User, task: Task) -> bool:
    return task.owner_id == user.user_id or is_admin(user)


CAPABILITIES: Dict[str, Callable] = {
    "assign": can_assign,
    "archive": can_assign,
    "update": can_update_item,
    "comment": can_comment,
    "comment.edit": can_edit_comment,
    "comment.delete": can_delete_comment,
    "project.update": can_modify_project,
    "project.delete": can_modify_project,
    "task.delete": can_delete_task,
}

DENIED_MESSAGES = {
    "assign": "담당자 변경은 매니저/관리자만 가능합니다.",
    "archive": "보관 처리는 매니저/관리자만 가능합니다.",
    "update": "이 항목을 수정할 권한이 없습니다.",
    "comment": "이 항목에 댓글을 작성할 권한이 없습니다.",
    "comment.edit": "본인이 작성한 댓글만 수정할 수 있습니다.",
    "comment.delete": "댓글 삭제는 관리자만 가능합니다.",
    "project.update": "프로젝트 소유자만 수정할 수 있습니다.",
    "project.delete": "프로젝트 소유자만 삭제할 수 있습니다.",
    "task.delete": "태스크 소유자 또는 관리자만 삭제할 수 있습니다.",
}


def can(user: User, operation: str, resource=None) -> bool:
    check = CAPABILITIES.get(operation)
    if check is None:
        raise KeyError(f"unknown operation: {operation}")
    return bool(check(user, resource))


def ensure_allowed(user: User, operation: str, resource=None, message: Optional[str] = None) -> None:
    if not can(user, operation, resource):
        raise AuthorizationError(message or DENIED_MESSAGES.get(operation, "권한이 없습니다."))
