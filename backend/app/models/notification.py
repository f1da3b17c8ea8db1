"""Notification 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Notification(Base):
    __tablename__ = "notification"

    noti_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    noti_type = Column(String(30), nullable=False)
    # task_assigned/task_unassigned/task_updated/task_comment/task_archived (subtask_* 동일)
    message = Column(Text, nullable=False)
    task_id = Column(Integer, ForeignKey("tasks.task_id"), nullable=True)
    subtask_id = Column(Integer, ForeignKey("subtasks.subtask_id"), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.project_id"), nullable=True)
    assignor_id = Column(Integer, ForeignKey("users.user_id"), nullable=True)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", foreign_keys=[user_id], back_populates="notifications")
    assignor = relationship("User", foreign_keys=[assignor_id])

    @property
    def assignor_name(self):
        return self.assignor.username if self.assignor else None

    __table_args__ = (
        Index("idx_notification_user", "user_id", "is_read", "created_at"),
    )
