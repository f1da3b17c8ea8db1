"""Notification Service 도메인 서비스 레이어입니다. 알림 저장, 실시간 푸시 팬아웃, 수신함 관리를 담당합니다."""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import NotFoundError
from app.models.notification import Notification
from app.models.user import User
from app.utils.helpers import created_between

logger = logging.getLogger(__name__)

INBOX_LIMIT = 100


def _recipient_ids(recipients: Iterable, actor_id: Optional[int]) -> List[int]:
    result: List[int] = []
    for item in recipients or []:
        raw = item.user_id if isinstance(item, User) else item
        try:
            uid = int(raw)
        except (TypeError, ValueError):
            logger.warning("[notification] skip invalid recipient %r", raw)
            continue
        if actor_id is not None and uid == int(actor_id):
            continue
        if uid not in result:
            result.append(uid)
    return result


def _context(entity) -> dict:
    if entity.entity_label == "subtask":
        return {
            "task_id": entity.parent_task_id,
            "subtask_id": entity.subtask_id,
            "project_id": entity.project_id,
        }
    return {"task_id": entity.task_id, "subtask_id": None, "project_id": entity.project_id}


def _serialize(entity) -> dict:
    if entity.entity_label == "subtask":
        from app.schemas.subtask import SubtaskOut
        return SubtaskOut.model_validate(entity).model_dump(mode="json")
    from app.schemas.task import TaskOut
    return TaskOut.model_validate(entity).model_dump(mode="json")


def _is_duplicate(db: Session, user_id: int, noti_type: str, context: dict, message: str) -> bool:
    if not settings.NOTIFICATION_DEDUP_ENABLED:
        return False
    since = datetime.utcnow() - timedelta(seconds=settings.NOTIFICATION_DEDUP_WINDOW_SECONDS)
    return (
        db.query(Notification.noti_id)
        .filter(
            Notification.user_id == user_id,
            Notification.noti_type == noti_type,
            Notification.task_id == context["task_id"],
            Notification.subtask_id == context["subtask_id"],
            Notification.message == message,
            *created_between(db, Notification.created_at, start=since),
        )
        .first()
        is not None
    )


def _push(registry, user_id: int, event: str, payload: dict) -> bool:
    if registry is None:
        return False
    try:
        handle = registry.lookup(user_id)
        if handle is None:
            return False
        registry.push(handle, event, payload)
        return True
    except Exception as exc:
        # 실시간 전달 실패는 요청 결과에 영향을 주지 않는다.
        logger.warning("[notification] realtime push failed user=%s event=%s: %s", user_id, event, exc)
        return False


def fan_out(
    db: Session,
    registry,
    *,
    recipients: Iterable,
    entity,
    actor_id: Optional[int],
    action: str,
    message: str,
) -> List[Notification]:
    """수신자마다 알림을 저장하고, 연결된 수신자에게는 실시간 이벤트를 보냅니다.

    행위자 본인은 제외됩니다. 저장은 온라인 여부와 무관하게 항상 수행하며, 저장 실패는 기록 후 무시합니다.
    """
    label = entity.entity_label
    noti_type = f"{label}_{action}"
    event = f"{label}-{action}"
    context = _context(entity)

    created: List[Notification] = []
    for uid in _recipient_ids(recipients, actor_id):
        if _is_duplicate(db, uid, noti_type, context, message):
            logger.info("[notification] duplicate suppressed user=%s type=%s", uid, noti_type)
            continue
        noti = Notification(
            user_id=uid,
            noti_type=noti_type,
            message=message,
            assignor_id=actor_id,
            **context,
        )
        db.add(noti)
        created.append(noti)
    if not created:
        return []

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("[notification] failed to persist %s notifications: %s", noti_type, exc)
        return []

    payload = {
        "message": message,
        label: _serialize(entity),
        "timestamp": datetime.utcnow().isoformat(),
    }
    for noti in created:
        _push(registry, noti.user_id, event, payload)
    return created


def notify_assignment(db: Session, registry, recipients: Iterable, entity, actor_id: Optional[int]) -> List[Notification]:
    message = f"You have been assigned to {entity.entity_label}: '{entity.title}'"
    return fan_out(
        db, registry,
        recipients=recipients, entity=entity, actor_id=actor_id,
        action="assigned", message=message,
    )


def notify_unassignment(db: Session, registry, recipients: Iterable, entity, actor_id: Optional[int]) -> List[Notification]:
    message = f"You have been removed from {entity.entity_label}: '{entity.title}'"
    return fan_out(
        db, registry,
        recipients=recipients, entity=entity, actor_id=actor_id,
        action="unassigned", message=message,
    )


def notify_status_change(db: Session, registry, entity, actor_id: Optional[int]) -> List[Notification]:
    message = f"{entity.entity_label.capitalize()} '{entity.title}' status changed to {entity.status}"
    return fan_out(
        db, registry,
        recipients=entity.assignee_ids, entity=entity, actor_id=actor_id,
        action="updated", message=message,
    )


def notify_field_change(db: Session, registry, entity, actor_id: Optional[int], changes: Mapping[str, object]) -> List[Notification]:
    if not changes:
        return []
    summary = ", ".join(f"{field} changed to {value}" for field, value in changes.items())
    message = f"{entity.entity_label.capitalize()} '{entity.title}' updated: {summary}"
    return fan_out(
        db, registry,
        recipients=entity.assignee_ids, entity=entity, actor_id=actor_id,
        action="updated", message=message,
    )


def notify_comment(db: Session, registry, entity, author: User) -> List[Notification]:
    message = f"{author.username} commented on {entity.entity_label}: '{entity.title}'"
    return fan_out(
        db, registry,
        recipients=entity.assignee_ids, entity=entity, actor_id=author.user_id,
        action="comment", message=message,
    )


def notify_archived(db: Session, registry, entity, actor: User, archived: bool = True) -> List[Notification]:
    verb = "archived" if archived else "unarchived"
    message = (
        f"{entity.entity_label.capitalize()} '{entity.title}' from project "
        f"'{entity.project_name}' was {verb} by {actor.username}"
    )
    return fan_out(
        db, registry,
        recipients=entity.assignee_ids, entity=entity, actor_id=actor.user_id,
        action=verb, message=message,
    )


def detach_notifications(db: Session, *, task_ids: Iterable[int] = (), subtask_ids: Iterable[int] = (), project_id: Optional[int] = None):
    """삭제되는 항목을 가리키는 알림의 문맥 참조를 비웁니다. 알림 자체는 수신자 소유로 남습니다."""
    task_ids = list(task_ids)
    subtask_ids = list(subtask_ids)
    if subtask_ids:
        db.query(Notification).filter(Notification.subtask_id.in_(subtask_ids)).update(
            {"subtask_id": None}, synchronize_session=False
        )
    if task_ids:
        db.query(Notification).filter(Notification.task_id.in_(task_ids)).update(
            {"task_id": None}, synchronize_session=False
        )
    if project_id is not None:
        db.query(Notification).filter(Notification.project_id == project_id).update(
            {"project_id": None}, synchronize_session=False
        )


def get_notifications(db: Session, user_id: int, unread_only: bool = False) -> List[Notification]:
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.is_read == False)
    return q.order_by(Notification.created_at.desc(), Notification.noti_id.desc()).limit(INBOX_LIMIT).all()


def _get_own_notification(db: Session, noti_id: int, user_id: int) -> Notification:
    noti = db.query(Notification).filter(
        Notification.noti_id == noti_id,
        Notification.user_id == user_id,
    ).first()
    if not noti:
        raise NotFoundError("알림을 찾을 수 없습니다.")
    return noti


def mark_read(db: Session, noti_id: int, user_id: int) -> Notification:
    noti = _get_own_notification(db, noti_id, user_id)
    noti.is_read = True
    db.commit()
    db.refresh(noti)
    return noti


def mark_all_read(db: Session, user_id: int) -> int:
    count = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read == False,
    ).update({"is_read": True})
    db.commit()
    return count


def delete_notification(db: Session, noti_id: int, user_id: int) -> None:
    noti = _get_own_notification(db, noti_id, user_id)
    db.delete(noti)
    db.commit()
