"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from app.models.user import User
from app.models.project import Project, ProjectMember
from app.models.task import Task, TaskComment, task_assignees
from app.models.subtask import Subtask, SubtaskComment, subtask_assignees
from app.models.notification import Notification

__all__ = [
    "User",
    "Project", "ProjectMember",
    "Task", "TaskComment", "task_assignees",
    "Subtask", "SubtaskComment", "subtask_assignees",
    "Notification",
]
