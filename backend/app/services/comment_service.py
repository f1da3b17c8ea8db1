"""Comment Service 도메인 서비스 레이어입니다. Task/Subtask 댓글 작성, 수정, 삭제와 댓글 알림을 담당합니다."""

from sqlalchemy.orm import Session

from app.errors import NotFoundError
from app.models.subtask import SubtaskComment
from app.models.task import TaskComment
from app.models.user import User
from app.services import notification_service
from app.utils.permissions import ensure_allowed
from app.utils.work_items import clean_comment_text

COMMENT_MODELS = {"task": TaskComment, "subtask": SubtaskComment}


def _find_comment(entity, comment_id: int):
    for comment in entity.comments:
        if comment.comment_id == comment_id:
            return comment
    raise NotFoundError("댓글을 찾을 수 없습니다.")


def add_comment(db: Session, registry, entity, text: str, current_user: User):
    ensure_allowed(current_user, "comment", entity)
    comment_model = COMMENT_MODELS[entity.entity_label]
    entity.comments.append(
        comment_model(
            author_id=current_user.user_id,
            author_name=current_user.username,
            text=clean_comment_text(text),
        )
    )
    db.commit()
    db.refresh(entity)
    notification_service.notify_comment(db, registry, entity, current_user)
    return entity


def edit_comment(db: Session, entity, comment_id: int, text: str, current_user: User):
    comment = _find_comment(entity, comment_id)
    ensure_allowed(current_user, "comment.edit", comment)
    comment.text = clean_comment_text(text)
    db.commit()
    db.refresh(entity)
    return entity


def delete_comment(db: Session, entity, comment_id: int, current_user: User):
    comment = _find_comment(entity, comment_id)
    ensure_allowed(current_user, "comment.delete", comment)
    entity.comments.remove(comment)
    db.commit()
    db.refresh(entity)
    return entity
