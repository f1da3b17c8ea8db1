"""개발용 샘플 데이터(사용자, 프로젝트, 태스크, 반복 서브태스크)를 채웁니다."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date, timedelta
from app.database import SessionLocal, engine, Base
import app.models  # noqa: F401

from app.models.user import User
from app.models.project import Project, ProjectMember
from app.models.task import Task, TaskComment
from app.models.subtask import Subtask
from app.services.auth_service import hash_password

DEFAULT_PASSWORD = "changeme123"


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(User).count() > 0:
            print("Database already seeded. Skipping.")
            return

        hashed = hash_password(DEFAULT_PASSWORD)
        users = [
            User(username="admin@company.com", hashed_password=hashed, roles=["admin"], department="hr"),
            User(username="manager@company.com", hashed_password=hashed, roles=["manager"], department="engineering"),
            User(username="dev1@company.com", hashed_password=hashed, roles=["staff"], department="engineering"),
            User(username="dev2@company.com", hashed_password=hashed, roles=["staff"], department="engineering"),
            User(username="sales1@company.com", hashed_password=hashed, roles=["staff"], department="sales"),
        ]
        db.add_all(users)
        db.flush()
        admin, manager, dev1, dev2, sales1 = users

        today = date.today()
        projects = [
            Project(name="사내 포털 개편", description="포털 UI/UX 전면 개편", owner_id=manager.user_id,
                    priority=7, due_date=today + timedelta(days=60), tags=["web", "ux"]),
            Project(name="영업 리포트 자동화", description="주간 영업 리포트 자동 생성", owner_id=sales1.user_id,
                    priority=5, due_date=today + timedelta(days=30), tags=["report"]),
        ]
        db.add_all(projects)
        db.flush()

        memberships = [
            (projects[0], [manager, dev1, dev2]),
            (projects[1], [sales1, manager]),
        ]
        for project, members in memberships:
            for member in members:
                db.add(ProjectMember(project_id=project.project_id, user_id=member.user_id))

        portal_tasks = [
            Task(project_id=projects[0].project_id, owner_id=manager.user_id, title="디자인 시안 확정",
                 status="In Progress", priority=8, due_date=today + timedelta(days=7), time_taken=90),
            Task(project_id=projects[0].project_id, owner_id=dev1.user_id, title="로그인 화면 구현",
                 status="To Do", priority=6, due_date=today + timedelta(days=14)),
            Task(project_id=projects[0].project_id, owner_id=dev2.user_id, title="레거시 API 정리",
                 status="Completed", priority=4, time_taken=240),
        ]
        portal_tasks[0].assignees = [manager, dev1]
        portal_tasks[1].assignees = [dev1]
        portal_tasks[2].assignees = [dev2]
        report_task = Task(project_id=projects[1].project_id, owner_id=sales1.user_id, title="집계 쿼리 작성",
                           status="To Do", priority=5, due_date=today + timedelta(days=10))
        report_task.assignees = [sales1, manager]
        db.add_all(portal_tasks + [report_task])
        db.flush()

        standup = Subtask(
            parent_task_id=portal_tasks[0].task_id, project_id=projects[0].project_id, owner_id=manager.user_id,
            title="주간 디자인 리뷰", status="To Do", priority=5, due_date=today + timedelta(days=3),
            is_recurring=True, recurrence_interval=7,
        )
        standup.assignees = [manager, dev1]
        db.add(standup)

        db.add(TaskComment(task_id=portal_tasks[0].task_id, author_id=dev1.user_id,
                           author_name=dev1.username, text="시안 2안 검토 부탁드립니다."))

        db.commit()
        print(f"Seeded {len(users)} users, {len(projects)} projects. Password: {DEFAULT_PASSWORD}")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
