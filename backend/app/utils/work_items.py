"""Task/Subtask 공통 필드 검증과 담당자 해석 헬퍼입니다."""

from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.errors import NotFoundError, ValidationError
from app.models.project import Project, ProjectMember
from app.models.user import User

TODO = "To Do"
IN_PROGRESS = "In Progress"
COMPLETED = "Completed"
BLOCKED = "Blocked"
STATUSES = (TODO, IN_PROGRESS, COMPLETED, BLOCKED)

PRIORITY_MIN = 1
PRIORITY_MAX = 10
DEFAULT_PRIORITY = 5

TITLE_MAX_LENGTH = 200


def clean_title(value: Optional[str], max_length: int = TITLE_MAX_LENGTH) -> str:
    title = (value or "").strip()
    if not title:
        raise ValidationError("제목은 필수입니다.")
    if len(title) > max_length:
        raise ValidationError(f"제목은 {max_length}자 이하여야 합니다.")
    return title


def clean_description(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"설명은 {max_length}자 이하여야 합니다.")
    return text


def validate_status(value: Optional[str], default: str = TODO) -> str:
    if value is None:
        return default
    if value not in STATUSES:
        raise ValidationError(f"상태는 {', '.join(STATUSES)} 중 하나여야 합니다.")
    return value


def validate_priority(value: Optional[int], default: int = DEFAULT_PRIORITY) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("우선순위는 정수여야 합니다.")
    if not PRIORITY_MIN <= value <= PRIORITY_MAX:
        raise ValidationError(f"우선순위는 {PRIORITY_MIN}~{PRIORITY_MAX} 사이여야 합니다.")
    return value


def validate_due_date(value: Optional[date]) -> Optional[date]:
    if value is not None and value < date.today():
        raise ValidationError("마감일은 과거일 수 없습니다.")
    return value


def clean_comment_text(value: Optional[str]) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError("댓글 내용은 비어 있을 수 없습니다.")
    return text


def ensure_assignee_limit(assignee_ids: Iterable) -> None:
    if len(list(assignee_ids)) > settings.MAX_TASK_ASSIGNEES:
        raise ValidationError(f"담당자는 최대 {settings.MAX_TASK_ASSIGNEES}명까지 지정할 수 있습니다.")


def resolve_users(db: Session, user_ids: Iterable[str]) -> List[User]:
    """ID 문자열 목록을 입력 순서대로 중복 없이 User로 변환합니다. 없는 ID가 있으면 NotFoundError입니다."""
    ids: List[int] = []
    for raw in user_ids:
        try:
            uid = int(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"담당자 ID '{raw}' 형식이 올바르지 않습니다.")
        # "3"과 "03"은 같은 사용자다.
        if uid not in ids:
            ids.append(uid)
    if not ids:
        return []
    rows = {u.user_id: u for u in db.query(User).filter(User.user_id.in_(ids)).all()}
    missing = [uid for uid in ids if uid not in rows]
    if missing:
        raise NotFoundError(
            "존재하지 않는 사용자가 포함되어 있습니다.",
            details={"user_ids": missing},
        )
    return [rows[uid] for uid in ids]


def add_project_members(db: Session, project: Project, users: Iterable[User]) -> None:
    existing = {m.user_id for m in project.members}
    for user in users:
        if user.user_id in existing:
            continue
        db.add(ProjectMember(project_id=project.project_id, user_id=user.user_id))
        existing.add(user.user_id)


def involved_user_ids(item) -> set:
    ids = {item.owner_id}
    ids.update(u.user_id for u in item.assignees)
    ids.discard(None)
    return ids
