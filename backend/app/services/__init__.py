"""서비스 레이어 패키지 초기화 모듈입니다."""

from app.services import (
    auth_service,
    user_service,
    notification_service,
    comment_service,
    project_service,
    task_service,
    subtask_service,
    report_service,
)

__all__ = [
    "auth_service",
    "user_service",
    "notification_service",
    "comment_service",
    "project_service",
    "task_service",
    "subtask_service",
    "report_service",
]
