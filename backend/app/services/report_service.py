"""Report Service 도메인 서비스 레이어입니다. Task/Subtask 그래프에서 보고서용 정규화 데이터를 집계합니다.

모든 보고서는 동일한 구조를 반환합니다::

    {
        "data": {"To Do": [...], "In Progress": [...], "Completed": [...]},
        "aggregates": {"To Do": n, "In Progress": n, "Completed": n, "total": n,
                       "time_taken": minutes, "time_taken_display": "..."},
        "metadata": {"type": ..., "scope_name": ..., "generated_at": ..., "date_range": {...}},
    }

팀 요약과 소요 시간 보고서에는 "team_members"가 추가됩니다. 렌더러는 이 구조만 입력으로 받습니다.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.errors import NotFoundError, ValidationError
from app.models.project import Project
from app.models.subtask import Subtask
from app.models.task import Task
from app.models.user import User
from app.services.auth_service import normalize_department
from app.utils.helpers import created_between, end_of_day, format_generated_at, format_minutes, format_report_date, start_of_day
from app.utils.work_items import COMPLETED, IN_PROGRESS, TODO, involved_user_ids

REPORT_BUCKETS = (TODO, IN_PROGRESS, COMPLETED)
SCOPE_TYPES = ("project", "user")
LOGGED_TIME_SCOPES = ("project", "department")
TIMEFRAMES = ("week", "month")

NO_DATA_MESSAGE = "선택한 기간에 해당하는 작업이 없습니다."


def resolve_timeframe(timeframe: str, start_date: date) -> Tuple[datetime, datetime]:
    """week는 start_date부터 7일, month는 start_date가 속한 달 전체를 의미합니다."""
    if timeframe == "week":
        return start_of_day(start_date), end_of_day(start_date + timedelta(days=6))
    if timeframe == "month":
        last_day = calendar.monthrange(start_date.year, start_date.month)[1]
        return (
            start_of_day(start_date.replace(day=1)),
            end_of_day(start_date.replace(day=last_day)),
        )
    raise ValidationError(f"timeframe은 {', '.join(TIMEFRAMES)} 중 하나여야 합니다.")


def _date_window(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    if start_date is None or end_date is None:
        raise ValidationError("시작일과 종료일은 필수입니다.")
    if start_date > end_date:
        raise ValidationError("시작일은 종료일보다 늦을 수 없습니다.")
    return start_of_day(start_date), end_of_day(end_date)


def _collect(db: Session, start: datetime, end: datetime, *, project_id: Optional[int] = None,
             user_ids: Optional[Iterable[int]] = None) -> list:
    items = []
    for model in (Task, Subtask):
        q = db.query(model).filter(
            *created_between(db, model.created_at, start, end),
            model.status.in_(REPORT_BUCKETS),
        )
        if project_id is not None:
            q = q.filter(model.project_id == project_id)
        if user_ids is not None:
            ids = list(user_ids)
            q = q.filter(or_(model.owner_id.in_(ids), model.assignees.any(User.user_id.in_(ids))))
        items.extend(q.all())
    items.sort(key=lambda i: (i.created_at or datetime.min, i.entity_label, _item_id(i)))
    return items


def _item_id(item) -> int:
    return item.subtask_id if item.entity_label == "subtask" else item.task_id


def summarize_item(item) -> dict:
    summary = {
        "id": _item_id(item),
        "kind": item.entity_label,
        "title": item.title,
        "description": item.description,
        "status": item.status,
        "priority": item.priority,
        "deadline": format_report_date(item.due_date),
        "owner": item.owner_name,
        "assignees": [u.username for u in item.assignees],
        "project": item.project_name,
        "created_at": format_report_date(item.created_at),
        "time_taken": int(item.time_taken or 0),
        "time_taken_display": format_minutes(item.time_taken),
    }
    if item.entity_label == "subtask":
        summary["parent_task"] = item.parent_task.title if item.parent_task else None
    return summary


def _normalize(items: list, *, report_type: str, scope_name: str, start: datetime, end: datetime,
               extra_metadata: Optional[dict] = None) -> dict:
    data: Dict[str, List[dict]] = {bucket: [] for bucket in REPORT_BUCKETS}
    total_minutes = 0
    for item in items:
        data[item.status].append(summarize_item(item))
        total_minutes += int(item.time_taken or 0)

    aggregates = {bucket: len(rows) for bucket, rows in data.items()}
    aggregates["total"] = len(items)
    aggregates["time_taken"] = total_minutes
    aggregates["time_taken_display"] = format_minutes(total_minutes)

    metadata = {
        "type": report_type,
        "scope_name": scope_name,
        "generated_at": format_generated_at(datetime.now()),
        "date_range": {"start": format_report_date(start), "end": format_report_date(end)},
    }
    if extra_metadata:
        metadata.update(extra_metadata)
    return {"data": data, "aggregates": aggregates, "metadata": metadata}


def _team_members(db: Session, items: list, restrict_to: Optional[set] = None) -> List[dict]:
    counts: Dict[int, int] = {}
    minutes: Dict[int, int] = {}
    for item in items:
        # 같은 항목의 owner와 assignee가 동일인이어도 한 번만 센다.
        for uid in involved_user_ids(item):
            if restrict_to is not None and uid not in restrict_to:
                continue
            counts[uid] = counts.get(uid, 0) + 1
            minutes[uid] = minutes.get(uid, 0) + int(item.time_taken or 0)
    if not counts:
        return []
    users = db.query(User).filter(User.user_id.in_(list(counts))).order_by(User.username).all()
    return [
        {
            "user_id": u.user_id,
            "username": u.username,
            "department": u.department,
            "role": u.primary_role,
            "item_count": counts[u.user_id],
            "time_taken": minutes[u.user_id],
            "time_taken_display": format_minutes(minutes[u.user_id]),
        }
        for u in users
    ]


def _get_project(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.project_id == project_id).first()
    if not project:
        raise NotFoundError("프로젝트를 찾을 수 없습니다.")
    return project


def build_report(db: Session, scope_type: str, scope_id, start_date: date, end_date: date) -> dict:
    if scope_type not in SCOPE_TYPES:
        raise ValidationError(f"보고서 범위는 {', '.join(SCOPE_TYPES)} 중 하나여야 합니다.")
    start, end = _date_window(start_date, end_date)

    if scope_type == "project":
        project = _get_project(db, int(scope_id))
        items = _collect(db, start, end, project_id=project.project_id)
        scope_name = project.name
    else:
        user = db.query(User).filter(User.user_id == int(scope_id)).first()
        if not user:
            raise NotFoundError("사용자를 찾을 수 없습니다.")
        items = _collect(db, start, end, user_ids=[user.user_id])
        scope_name = user.username

    return _normalize(items, report_type=scope_type, scope_name=scope_name, start=start, end=end)


def build_team_summary(db: Session, project_id: int, timeframe: str, start_date: date) -> dict:
    start, end = resolve_timeframe(timeframe, start_date)
    project = _get_project(db, project_id)
    items = _collect(db, start, end, project_id=project.project_id)
    report = _normalize(
        items,
        report_type="team_summary",
        scope_name=project.name,
        start=start,
        end=end,
        extra_metadata={"timeframe": timeframe},
    )
    report["team_members"] = _team_members(db, items)
    report["aggregates"]["team_member_count"] = len(report["team_members"])
    return report


def build_logged_time_report(db: Session, scope_type: str, scope_id, start_date: date, end_date: date) -> dict:
    if scope_type not in LOGGED_TIME_SCOPES:
        raise ValidationError(f"보고서 범위는 {', '.join(LOGGED_TIME_SCOPES)} 중 하나여야 합니다.")
    start, end = _date_window(start_date, end_date)

    restrict_to = None
    if scope_type == "project":
        project = _get_project(db, int(scope_id))
        items = _collect(db, start, end, project_id=project.project_id)
        scope_name = project.name
    else:
        department = normalize_department(str(scope_id))
        member_ids = [uid for (uid,) in db.query(User.user_id).filter(User.department == department).all()]
        items = _collect(db, start, end, user_ids=member_ids) if member_ids else []
        restrict_to = set(member_ids)
        scope_name = department

    report = _normalize(items, report_type=f"logged_time_{scope_type}", scope_name=scope_name, start=start, end=end)
    report["team_members"] = _team_members(db, items, restrict_to=restrict_to)
    return report


def is_empty(report: dict) -> bool:
    return report["aggregates"]["total"] == 0


def no_data_response(report: dict) -> dict:
    return {
        "success": False,
        "message": NO_DATA_MESSAGE,
        "type": "NO_DATA_FOUND",
        "metadata": report["metadata"],
    }
