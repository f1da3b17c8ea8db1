"""Project 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey, Index, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    owner_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    status = Column(String(20), default="To Do")  # To Do/In Progress/Completed/Blocked
    priority = Column(Integer, default=5)
    due_date = Column(Date)
    tags = Column(JSON, default=list)
    archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    owner = relationship("User", back_populates="projects_owned")
    members = relationship("ProjectMember", back_populates="project", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    subtasks = relationship("Subtask", back_populates="project", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_project_owner", "owner_id"),
    )

    # 목록 조회 시 열람자 기준으로 채워지는 비영속 값
    _can_view_tasks = False

    @property
    def can_view_tasks(self) -> bool:
        return bool(self._can_view_tasks)

    @can_view_tasks.setter
    def can_view_tasks(self, value: bool):
        self._can_view_tasks = bool(value)

    @property
    def owner_name(self):
        return self.owner.username if self.owner else None

    @property
    def member_ids(self):
        return [m.user_id for m in self.members]


class ProjectMember(Base):
    __tablename__ = "project_member"

    member_id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.project_id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    joined_at = Column(DateTime, server_default=func.now())

    project = relationship("Project", back_populates="members")
    user = relationship("User", back_populates="project_memberships")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )

    @property
    def username(self):
        return self.user.username if self.user else None
