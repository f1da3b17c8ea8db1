"""User Service 도메인 서비스 레이어입니다. 사용자 조회와 비밀번호 변경을 담당합니다."""

from typing import List, Optional

from sqlalchemy.orm import Session

from app.errors import NotFoundError, ValidationError
from app.models.user import User
from app.services.auth_service import hash_password, normalize_department, verify_password


def list_users(db: Session, department: Optional[str] = None) -> List[User]:
    q = db.query(User)
    if department:
        q = q.filter(User.department == normalize_department(department))
    return q.order_by(User.username).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError("사용자를 찾을 수 없습니다.")
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> User:
    if not verify_password(current_password, user.hashed_password):
        raise ValidationError("현재 비밀번호가 일치하지 않습니다.")
    user.hashed_password = hash_password(new_password)
    db.commit()
    db.refresh(user)
    return user
