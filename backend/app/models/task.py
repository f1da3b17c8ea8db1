"""Task 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey, Index, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

task_assignees = Table(
    "task_assignees",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.task_id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), primary_key=True),
)


class Task(Base):
    __tablename__ = "tasks"

    task_id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.project_id"), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(String(20), default="To Do")  # To Do/In Progress/Completed/Blocked
    priority = Column(Integer, default=5)  # 1~10
    due_date = Column(Date)
    time_taken = Column(Integer, default=0)  # minutes
    archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    project = relationship("Project", back_populates="tasks")
    owner = relationship("User", foreign_keys=[owner_id])
    assignees = relationship("User", secondary=task_assignees, order_by="User.user_id")
    subtasks = relationship("Subtask", back_populates="parent_task", cascade="all, delete-orphan")
    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskComment.comment_id",
    )

    entity_label = "task"

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
        Index("idx_task_project", "project_id"),
        Index("idx_task_owner", "owner_id"),
        Index("idx_task_created", "created_at"),
    )


class TaskComment(Base):
    __tablename__ = "task_comments"

    comment_id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.task_id"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    author_name = Column(String(120), nullable=False)  # 작성 시점 스냅샷
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    task = relationship("Task", back_populates="comments")
