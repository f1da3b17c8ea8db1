"""환경 변수 기반 애플리케이션 설정을 중앙에서 관리합니다."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./taskflow.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480
    BCRYPT_ROUNDS: int = 12

    # Task assignment
    MAX_TASK_ASSIGNEES: int = 5

    # [notification] 동일 수신자/대상/이벤트/메시지가 창 안에서 반복되면 저장과 푸시를 생략한다.
    NOTIFICATION_DEDUP_ENABLED: bool = False
    NOTIFICATION_DEDUP_WINDOW_SECONDS: int = 60

    # Reports
    REPORT_DATE_FORMAT: str = "%d-%m-%Y"

    class Config:
        # 실행 cwd와 무관하게 backend/.env를 로드한다.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
