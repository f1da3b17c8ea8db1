"""Reports 기능 API 라우터입니다. 집계 결과를 요청 형식(pdf/excel/json)으로 내려줍니다."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from io import BytesIO
from sqlalchemy.orm import Session
from app.database import get_db
from app.errors import ValidationError
from app.services import report_service
from app.services.report_renderer import RENDERERS
from app.middleware.auth_middleware import require_roles
from app.models.user import User

router = APIRouter(prefix="/api/reports", tags=["reports"])

FORMATS = ("pdf", "excel", "json")


def _respond(report: dict, fmt: str, filename_prefix: str):
    if fmt not in FORMATS:
        raise ValidationError("format은 pdf, excel, json 중 하나여야 합니다.")
    if report_service.is_empty(report):
        return report_service.no_data_response(report)
    if fmt == "json":
        return {"success": True, "report": report}

    render, media_type, extension = RENDERERS[fmt]
    content = render(report)
    filename = f"{filename_prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.{extension}"
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/task-completion/{scope_type}/{scope_id}")
def task_completion_report(
    scope_type: str,
    scope_id: int,
    start_date: date,
    end_date: date,
    format: str = Query("pdf"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin")),
):
    report = report_service.build_report(db, scope_type, scope_id, start_date, end_date)
    return _respond(report, format, f"task_completion_{scope_type}_{scope_id}")


@router.get("/team-summary/project/{project_id}")
def team_summary_report(
    project_id: int,
    start_date: date,
    timeframe: str = Query("week"),
    format: str = Query("pdf"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin")),
):
    report = report_service.build_team_summary(db, project_id, timeframe, start_date)
    return _respond(report, format, f"team_summary_{project_id}_{timeframe}")


@router.get("/logged-time/{scope_type}/{scope_id}")
def logged_time_report(
    scope_type: str,
    scope_id: str,
    start_date: date,
    end_date: date,
    format: str = Query("pdf"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin")),
):
    report = report_service.build_logged_time_report(db, scope_type, scope_id, start_date, end_date)
    return _respond(report, format, f"logged_time_{scope_type}")
