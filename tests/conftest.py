import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from classmint.config import settings
from classmint.dependencies import get_db
from classmint.extensions import Base
from classmint.main import app
from classmint.models import Role, Student, User
from classmint.services.provisioning import provision_user
from classmint.session import SessionContext

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(name="session")
def session_fixture():
    Base.metadata.create_all(engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture(name="media_root", autouse=True)
def media_root_fixture(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "MEDIA_ROOT", str(tmp_path / "media"))
    return tmp_path / "media"


def make_user(session, email: str, role: str, password: str = "password") -> SessionContext:
    """Create and provision a user the way a first sign-in does."""
    user = User(email=email)
    user.set_password(password)
    session.add(user)
    session.commit()
    role = provision_user(session, user.id, email, role)
    return SessionContext(user_id=user.id, email=email, role=role)


@pytest.fixture(name="teacher")
def teacher_fixture(session) -> SessionContext:
    return make_user(session, "ms.frizzle@school.test", Role.TEACHER)


@pytest.fixture(name="student_context")
def student_context_fixture(session) -> SessionContext:
    return make_user(session, "arnold@school.test", Role.STUDENT)


@pytest.fixture(name="student")
def student_fixture(session, student_context) -> Student:
    return session.query(Student).filter_by(user_id=student_context.user_id).one()


@pytest.fixture(name="client")
def client_fixture(session):
    def get_db_override():
        yield session

    app.dependency_overrides[get_db] = get_db_override
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    yield client
    app.dependency_overrides.clear()
