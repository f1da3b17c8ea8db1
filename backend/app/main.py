"""FastAPI 애플리케이션 진입점. 미들웨어, 오류 핸들러, API 라우터와 실시간 연결 레지스트리를 등록합니다."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import Base, engine
from app.errors import DomainError, domain_error_handler
from app.utils.connection_registry import ConnectionRegistry
import app.models  # noqa: F401 - 모델 import로 metadata 등록
from app.routers import (
    auth, users, projects, tasks, subtasks, notifications, reports, realtime,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(
    title="TaskFlow 업무 관리 시스템",
    description="프로젝트/태스크 배정, 알림, 접근 제어, 보고서 API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(DomainError, domain_error_handler)

# 서비스에는 get_connection_registry 의존성으로만 전달된다.
app.state.connection_registry = ConnectionRegistry()

# Register all routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(subtasks.router)
app.include_router(notifications.router)
app.include_router(reports.router)
app.include_router(realtime.router)


@app.on_event("startup")
def ensure_schema():
    Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "TaskFlow 업무 관리 시스템"}
