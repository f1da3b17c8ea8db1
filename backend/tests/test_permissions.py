"""프로젝트 태스크 열람 권한(can_view_tasks)과 권한 게이트를 검증하는 테스트입니다."""

import pytest

from app.errors import AuthorizationError
from app.models.project import Project, ProjectMember
from app.models.task import TaskComment
from app.utils.permissions import can, can_view_tasks, ensure_allowed
from tests.conftest import add_task, make_user


def _add_member(db, project, user):
    db.add(ProjectMember(project_id=project.project_id, user_id=user.user_id))
    db.commit()


def test_admin_always_sees_tasks_even_without_tasks(db, seed_users, seed_project):
    assert can_view_tasks(db, seed_project, seed_users["admin"]) is True


def test_project_without_tasks_is_hidden_from_non_admins(db, seed_users, seed_project):
    # 소유자라도 태스크가 없으면 false
    assert can_view_tasks(db, seed_project, seed_users["manager"]) is False
    assert can_view_tasks(db, seed_project, seed_users["staff"]) is False


def test_direct_assignee_can_view_and_non_member_cannot(db, seed_users, seed_project):
    add_task(db, seed_project, seed_users["manager"], [seed_users["staff"]])
    assert can_view_tasks(db, seed_project, seed_users["staff"]) is True
    assert can_view_tasks(db, seed_project, seed_users["outsider"]) is False


def test_task_owner_can_view(db, seed_users, seed_project):
    add_task(db, seed_project, seed_users["manager"], [seed_users["staff"]])
    assert can_view_tasks(db, seed_project, seed_users["manager"]) is True


def test_department_colleague_member_can_view(db, seed_users, seed_project):
    admin = seed_users["admin"]
    member_b = make_user(db, "b@example.com", ["staff"], "engineering")
    member_d = make_user(db, "d@example.com", ["staff"], "finance")
    assignee_c = make_user(db, "c@example.com", ["staff"], "engineering")
    _add_member(db, seed_project, member_b)
    _add_member(db, seed_project, member_d)
    add_task(db, seed_project, admin, [assignee_c])

    assert can_view_tasks(db, seed_project, member_b) is True
    assert can_view_tasks(db, seed_project, member_d) is False


def test_department_colleague_must_be_project_member(db, seed_users, seed_project):
    add_task(db, seed_project, seed_users["admin"], [seed_users["staff"]])
    # colleague는 staff와 같은 engineering 부서지만 프로젝트 멤버가 아니다.
    assert can_view_tasks(db, seed_project, seed_users["colleague"]) is False


def test_archived_assignment_does_not_grant_direct_visibility(db, seed_users, seed_project):
    viewer = seed_users["outsider"]
    add_task(db, seed_project, seed_users["admin"], [viewer], archived=True)
    assert can_view_tasks(db, seed_project, viewer) is False


def test_assignment_gate_requires_manager_or_admin(seed_users):
    assert can(seed_users["staff"], "assign") is False
    assert can(seed_users["manager"], "assign") is True
    assert can(seed_users["admin"], "assign") is True
    with pytest.raises(AuthorizationError):
        ensure_allowed(seed_users["staff"], "assign")


def test_comment_gate_allows_assignee_and_department_colleague(db, seed_users, seed_project):
    task = add_task(db, seed_project, seed_users["manager"], [seed_users["staff"]])
    assert can(seed_users["staff"], "comment", task) is True
    assert can(seed_users["colleague"], "comment", task) is True
    assert can(seed_users["outsider"], "comment", task) is False
    assert can(seed_users["manager"], "comment", task) is True


def test_comment_edit_and_delete_gates(seed_users):
    comment = TaskComment(author_id=seed_users["staff"].user_id, author_name="staff@example.com", text="hi")
    assert can(seed_users["staff"], "comment.edit", comment) is True
    assert can(seed_users["admin"], "comment.edit", comment) is False
    assert can(seed_users["staff"], "comment.delete", comment) is False
    assert can(seed_users["admin"], "comment.delete", comment) is True


def test_project_modification_is_owner_only_without_admin_override(db, seed_users, seed_project):
    assert can(seed_users["manager"], "project.update", seed_project) is True
    assert can(seed_users["admin"], "project.update", seed_project) is False
    assert can(seed_users["admin"], "project.delete", seed_project) is False


def test_multi_role_user_gets_union_of_capabilities(db):
    user = make_user(db, "multi@example.com", ["staff", "manager"], "it")
    assert can(user, "assign") is True
    assert user.primary_role == "manager"


def test_project_listing_flag_does_not_filter(db, seed_users, seed_project):
    other = Project(name="Other", owner_id=seed_users["admin"].user_id, tags=[])
    db.add(other)
    db.commit()
    from app.services.project_service import list_projects

    projects = list_projects(db, seed_users["outsider"])
    assert {p.name for p in projects} == {"Website Revamp", "Other"}
    assert all(p.can_view_tasks is False for p in projects)
