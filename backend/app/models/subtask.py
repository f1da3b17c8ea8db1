"""Subtask 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey, Index, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

subtask_assignees = Table(
    "subtask_assignees",
    Base.metadata,
    Column("subtask_id", Integer, ForeignKey("subtasks.subtask_id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), primary_key=True),
)


class Subtask(Base):
    __tablename__ = "subtasks"

    subtask_id = Column(Integer, primary_key=True, autoincrement=True)
    parent_task_id = Column(Integer, ForeignKey("tasks.task_id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.project_id"), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(String(20), default="To Do")
    priority = Column(Integer, default=5)
    due_date = Column(Date)
    time_taken = Column(Integer, default=0)  # minutes
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurrence_interval = Column(Integer)  # days
    archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    parent_task = relationship("Task", back_populates="subtasks")
    project = relationship("Project", back_populates="subtasks")
    owner = relationship("User", foreign_keys=[owner_id])
    assignees = relationship("User", secondary=subtask_assignees, order_by="User.user_id")
    comments = relationship(
        "SubtaskComment",
        back_populates="subtask",
        cascade="all, delete-orphan",
        order_by="SubtaskComment.comment_id",
    )

    entity_label = "subtask"
    # 반복 완료 시 새로 생성된 다음 회차 ID (비영속)
    next_occurrence_id = None

    @property
    def assignee_ids(self):
        return [u.user_id for u in self.assignees]

    @property
    def owner_name(self):
        return self.owner.username if self.owner else None

    @property
    def project_name(self):
        return self.project.name if self.project else None

    __table_args__ = (
        Index("idx_subtask_parent", "parent_task_id"),
        Index("idx_subtask_project", "project_id"),
        Index("idx_subtask_created", "created_at"),
    )


class SubtaskComment(Base):
    __tablename__ = "subtask_comments"

    comment_id = Column(Integer, primary_key=True, autoincrement=True)
    subtask_id = Column(Integer, ForeignKey("subtasks.subtask_id"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    author_name = Column(String(120), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    subtask = relationship("Subtask", back_populates="comments")
