import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.config import settings
from app.database import Base, SessionLocal, get_db
from app.main import app
from app.models.project import Project, ProjectMember
from app.models.task import Task
from app.models.user import User
from app.services.auth_service import hash_password
from app.utils.connection_registry import ConnectionRegistry, get_connection_registry

TEST_DB_URL = "sqlite:///./test_taskflow.db"
TEST_PASSWORD = "password123"

settings.BCRYPT_ROUNDS = 4

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
# 의존성 밖에서 세션을 여는 코드(WebSocket)도 테스트 DB를 사용한다.
SessionLocal.configure(bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


class RecordingRegistry(ConnectionRegistry):
    """실제 소켓 대신 푸시 호출을 기록하는 레지스트리."""

    def __init__(self):
        super().__init__()
        self.pushed = []

    def connect(self, user_id):
        self.register(user_id, object())

    def push(self, handle, event, payload):
        self.pushed.append((handle, event, payload))

    def events_for(self, handle):
        return [event for h, event, _ in self.pushed if h is handle]


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def registry():
    recorder = RecordingRegistry()
    app.dependency_overrides[get_connection_registry] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_connection_registry, None)


@pytest.fixture
def client(registry):
    return TestClient(app)


def make_user(db, username: str, roles, department: str) -> User:
    user = User(
        username=username,
        hashed_password=hash_password(TEST_PASSWORD),
        roles=list(roles),
        department=department,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def seed_users(db):
    users = {
        "admin": make_user(db, "admin@example.com", ["admin"], "hr"),
        "manager": make_user(db, "manager@example.com", ["manager"], "engineering"),
        "staff": make_user(db, "staff@example.com", ["staff"], "engineering"),
        "colleague": make_user(db, "colleague@example.com", ["staff"], "engineering"),
        "outsider": make_user(db, "outsider@example.com", ["staff"], "sales"),
    }
    return users


@pytest.fixture
def seed_project(db, seed_users):
    manager = seed_users["manager"]
    project = Project(name="Website Revamp", owner_id=manager.user_id, tags=["web"])
    db.add(project)
    db.flush()
    db.add(ProjectMember(project_id=project.project_id, user_id=manager.user_id))
    db.commit()
    db.refresh(project)
    return project


def add_task(db, project, owner, assignees, title="Design homepage", **fields) -> Task:
    task = Task(project_id=project.project_id, owner_id=owner.user_id, title=title, **fields)
    task.assignees = list(assignees)
    db.add(task)
    for user in assignees:
        exists = db.query(ProjectMember).filter_by(project_id=project.project_id, user_id=user.user_id).first()
        if not exists:
            db.add(ProjectMember(project_id=project.project_id, user_id=user.user_id))
    db.commit()
    db.refresh(task)
    return task


def get_token(client, username: str) -> str:
    resp = client.post("/api/auth/login", json={"username": username, "password": TEST_PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, username: str) -> dict:
    return {"Authorization": f"Bearer {get_token(client, username)}"}
