"""보고서 집계(버킷, 기간, 팀 구성원)와 보고서 API 형식 처리를 검증하는 테스트입니다."""

from datetime import date, datetime

import pytest
from sqlalchemy import text

from app.errors import NotFoundError, ValidationError
from app.models.subtask import Subtask
from app.services import report_service
from app.services import report_renderer
from tests.conftest import add_task, auth_headers


@pytest.fixture
def january_items(db, seed_users, seed_project):
    manager = seed_users["manager"]
    staff = seed_users["staff"]
    colleague = seed_users["colleague"]
    add_task(db, seed_project, manager, [staff], title="Todo A", created_at=datetime(2024, 1, 2, 9, 0), time_taken=30)
    add_task(db, seed_project, manager, [staff, manager], title="Doing B", status="In Progress",
             created_at=datetime(2024, 1, 10, 9, 0), time_taken=45)
    done = add_task(db, seed_project, staff, [staff], title="Done C", status="Completed",
                    created_at=datetime(2024, 1, 20, 9, 0), time_taken=60)
    add_task(db, seed_project, manager, [colleague], title="Blocked D", status="Blocked",
             created_at=datetime(2024, 1, 5, 9, 0), time_taken=15)
    db.add(Subtask(
        title="Sub E",
        parent_task_id=done.task_id,
        project_id=seed_project.project_id,
        owner_id=colleague.user_id,
        status="Completed",
        created_at=datetime(2024, 1, 21, 9, 0),
        time_taken=15,
    ))
    add_task(db, seed_project, manager, [staff], title="February F", created_at=datetime(2024, 2, 1, 0, 0))
    return seed_project


def test_project_report_buckets_exclude_blocked(db, january_items):
    report = report_service.build_report(db, "project", january_items.project_id, date(2024, 1, 1), date(2024, 1, 31))

    data, aggregates = report["data"], report["aggregates"]
    assert set(data) == {"To Do", "In Progress", "Completed"}
    assert [i["title"] for i in data["To Do"]] == ["Todo A"]
    assert [i["title"] for i in data["In Progress"]] == ["Doing B"]
    assert [i["title"] for i in data["Completed"]] == ["Done C", "Sub E"]
    assert aggregates["To Do"] + aggregates["In Progress"] + aggregates["Completed"] == aggregates["total"] == 4
    assert aggregates["time_taken"] == 150
    assert aggregates["time_taken_display"] == "2 hours 30 minutes"
    assert report["metadata"]["type"] == "project"
    assert report["metadata"]["scope_name"] == "Website Revamp"
    assert report["metadata"]["date_range"] == {"start": "01-01-2024", "end": "31-01-2024"}
    assert " at " in report["metadata"]["generated_at"]
    sub = data["Completed"][1]
    assert sub["kind"] == "subtask"
    assert sub["parent_task"] == "Done C"


def test_end_date_is_inclusive_through_end_of_day(db, january_items):
    report = report_service.build_report(db, "project", january_items.project_id, date(2024, 1, 20), date(2024, 1, 21))
    assert report["aggregates"]["total"] == 2


def test_user_report_covers_owned_and_assigned_items(db, seed_users, january_items):
    report = report_service.build_report(db, "user", seed_users["staff"].user_id, date(2024, 1, 1), date(2024, 1, 31))
    titles = [i["title"] for bucket in report["data"].values() for i in bucket]
    assert sorted(titles) == ["Doing B", "Done C", "Todo A"]
    assert report["metadata"]["scope_name"] == "staff@example.com"


def test_report_rejects_bad_scope_and_range(db, january_items):
    with pytest.raises(ValidationError):
        report_service.build_report(db, "team", 1, date(2024, 1, 1), date(2024, 1, 31))
    with pytest.raises(ValidationError):
        report_service.build_report(db, "project", january_items.project_id, date(2024, 2, 1), date(2024, 1, 1))
    with pytest.raises(NotFoundError):
        report_service.build_report(db, "project", 9999, date(2024, 1, 1), date(2024, 1, 31))


def test_month_team_summary_uses_whole_calendar_month(db, seed_users, seed_project):
    manager = seed_users["manager"]
    staff = seed_users["staff"]
    add_task(db, seed_project, manager, [staff], title="First day", created_at=datetime(2024, 1, 1, 0, 0))
    add_task(db, seed_project, manager, [staff], title="Last day", created_at=datetime(2024, 1, 31, 23, 0))
    add_task(db, seed_project, manager, [staff], title="Next month", created_at=datetime(2024, 2, 1, 0, 0))

    report = report_service.build_team_summary(db, seed_project.project_id, "month", date(2024, 1, 15))

    titles = [i["title"] for i in report["data"]["To Do"]]
    assert titles == ["First day", "Last day"]
    assert report["metadata"]["timeframe"] == "month"
    assert report["metadata"]["date_range"] == {"start": "01-01-2024", "end": "31-01-2024"}


def test_team_members_count_each_item_once(db, seed_users, january_items):
    report = report_service.build_team_summary(db, january_items.project_id, "month", date(2024, 1, 1))
    members = {m["username"]: m for m in report["team_members"]}

    # Done C는 staff가 owner이자 assignee지만 한 번만 센다.
    assert members["staff@example.com"]["item_count"] == 3
    assert members["staff@example.com"]["time_taken"] == 135
    assert members["manager@example.com"]["item_count"] == 2
    assert members["manager@example.com"]["role"] == "manager"
    assert members["colleague@example.com"]["item_count"] == 1
    assert members["colleague@example.com"]["department"] == "engineering"
    assert report["aggregates"]["team_member_count"] == 3


def test_week_team_summary_window(db, seed_users, january_items):
    report = report_service.build_team_summary(db, january_items.project_id, "week", date(2024, 1, 8))
    titles = [i["title"] for bucket in report["data"].values() for i in bucket]
    assert titles == ["Doing B"]


def test_logged_time_report_by_department(db, seed_users, january_items):
    report = report_service.build_logged_time_report(db, "department", "engineering", date(2024, 1, 1), date(2024, 1, 31))
    assert report["metadata"]["type"] == "logged_time_department"
    assert report["aggregates"]["total"] == 4
    assert {m["username"] for m in report["team_members"]} == {
        "manager@example.com", "staff@example.com", "colleague@example.com",
    }

    empty = report_service.build_logged_time_report(db, "department", "finance", date(2024, 1, 1), date(2024, 1, 31))
    assert report_service.is_empty(empty)


def test_report_api_requires_admin(client, january_items):
    url = f"/api/reports/task-completion/project/{january_items.project_id}"
    params = {"start_date": "2024-01-01", "end_date": "2024-01-31", "format": "json"}
    assert client.get(url, params=params, headers=auth_headers(client, "manager@example.com")).status_code == 403


def test_empty_range_returns_no_data_without_rendering(client, january_items, monkeypatch):
    def fail_render(report):
        raise AssertionError("renderer must not run for empty reports")

    monkeypatch.setitem(report_renderer.RENDERERS, "pdf", (fail_render, "application/pdf", "pdf"))
    resp = client.get(
        f"/api/reports/task-completion/project/{january_items.project_id}",
        params={"start_date": "2023-01-01", "end_date": "2023-01-31", "format": "pdf"},
        headers=auth_headers(client, "admin@example.com"),
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert resp.json()["type"] == "NO_DATA_FOUND"


def test_report_formats(client, january_items):
    headers = auth_headers(client, "admin@example.com")
    url = f"/api/reports/task-completion/project/{january_items.project_id}"
    params = {"start_date": "2024-01-01", "end_date": "2024-01-31"}

    as_json = client.get(url, params={**params, "format": "json"}, headers=headers)
    assert as_json.status_code == 200
    assert as_json.json()["report"]["aggregates"]["total"] == 4

    pdf = client.get(url, params={**params, "format": "pdf"}, headers=headers)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    excel = client.get(url, params={**params, "format": "excel"}, headers=headers)
    assert excel.status_code == 200
    assert excel.headers["content-type"].startswith(report_renderer.EXCEL_MEDIA_TYPE)
    assert excel.content[:2] == b"PK"

    bad = client.get(url, params={**params, "format": "csv"}, headers=headers)
    assert bad.status_code == 400


def test_team_summary_api_excel(client, january_items):
    resp = client.get(
        f"/api/reports/team-summary/project/{january_items.project_id}",
        params={"start_date": "2024-01-01", "timeframe": "month", "format": "excel"},
        headers=auth_headers(client, "admin@example.com"),
    )
    assert resp.status_code == 200
    assert resp.content[:2] == b"PK"

    bad = client.get(
        f"/api/reports/team-summary/project/{january_items.project_id}",
        params={"start_date": "2024-01-01", "timeframe": "year", "format": "json"},
        headers=auth_headers(client, "admin@example.com"),
    )
    assert bad.status_code == 400


def test_month_window_includes_second_precision_boundaries(db, seed_users, seed_project):
    manager = seed_users["manager"]
    staff = seed_users["staff"]
    first = add_task(db, seed_project, manager, [staff], title="Midnight start")
    add_task(db, seed_project, manager, [staff], title="Last second", created_at=datetime(2024, 1, 31, 23, 59, 59))
    add_task(db, seed_project, manager, [staff], title="Just after", created_at=datetime(2024, 2, 1, 0, 0, 1))
    # CURRENT_TIMESTAMP 형식(소수점 없음)으로 저장된 행
    db.execute(
        text("UPDATE tasks SET created_at = '2024-01-01 00:00:00' WHERE task_id = :task_id"),
        {"task_id": first.task_id},
    )
    db.commit()

    report = report_service.build_team_summary(db, seed_project.project_id, "month", date(2024, 1, 15))
    assert [i["title"] for i in report["data"]["To Do"]] == ["Midnight start", "Last second"]
    assert report["aggregates"]["total"] == 2

    ranged = report_service.build_report(db, "project", seed_project.project_id, date(2024, 1, 1), date(2024, 1, 1))
    assert [i["title"] for i in ranged["data"]["To Do"]] == ["Midnight start"]
