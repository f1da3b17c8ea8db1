"""Auth Service 도메인 서비스 레이어입니다. 계정 등록, 자격 증명 검증, 토큰 발급을 캡슐화합니다."""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

import bcrypt
from jose import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import ConflictError, ValidationError
from app.models.user import User
from app.schemas.user import RegisterRequest
from app.utils.permissions import ALL_ROLES, DEPARTMENTS

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def create_access_token(user_id: int) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def hash_password(password: str) -> str:
    # bcrypt는 72바이트까지만 사용한다.
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return bcrypt.checkpw(plain_password.encode("utf-8")[:72], hashed_password.encode("utf-8"))


def normalize_roles(roles: Iterable[str]) -> List[str]:
    result = []
    for role in roles or []:
        value = str(role).strip().lower()
        if value not in ALL_ROLES:
            raise ValidationError(f"알 수 없는 역할입니다: {role}")
        if value not in result:
            result.append(value)
    if not result:
        raise ValidationError("최소 하나의 역할이 필요합니다.")
    return result


def normalize_department(department: Optional[str]) -> str:
    value = (department or "").strip().lower()
    if value not in DEPARTMENTS:
        raise ValidationError(f"부서는 {', '.join(DEPARTMENTS)} 중 하나여야 합니다.")
    return value


def register_user(db: Session, data: RegisterRequest) -> User:
    username = str(data.username).strip().lower()
    roles = normalize_roles(data.roles)
    department = normalize_department(data.department)
    if db.query(User).filter(User.username == username).first():
        raise ConflictError("이미 사용 중인 사용자 이름입니다.")
    user = User(
        username=username,
        hashed_password=hash_password(data.password),
        roles=roles,
        department=department,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("이미 사용 중인 사용자 이름입니다.")
    db.refresh(user)
    logger.info("[auth] registered user=%s roles=%s", user.user_id, roles)
    return user


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.username == (username or "").strip().lower()).first()
    if not user or not verify_password(password or "", user.hashed_password):
        return None
    return user
