"""User 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

ROLE_PRIORITY = ("admin", "manager", "staff")


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(120), unique=True, nullable=False)  # e-mail 형식
    hashed_password = Column(String(255), nullable=False)
    roles = Column(JSON, nullable=False, default=list)  # staff/manager/admin 부분집합
    department = Column(String(50), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    # Relationships
    project_memberships = relationship("ProjectMember", back_populates="user")
    projects_owned = relationship("Project", back_populates="owner")
    notifications = relationship(
        "Notification",
        foreign_keys="Notification.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def has_role(self, *roles: str) -> bool:
        owned = set(self.roles or [])
        return any(role in owned for role in roles)

    @property
    def primary_role(self) -> str:
        for role in ROLE_PRIORITY:
            if self.has_role(role):
                return role
        return "staff"
