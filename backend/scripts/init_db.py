"""TaskFlow 데이터베이스 테이블을 생성합니다."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import settings
from app.database import engine, Base
import app.models  # noqa: F401 - registers all models


def init_db():
    print(f"Creating tables on {settings.DATABASE_URL} ...")
    Base.metadata.create_all(bind=engine)
    print("Tables: " + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    init_db()
