import os
import tempfile

# Keep the app away from the working directory while tests import it.
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="linguo-uploads-"))

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from app import crud  # noqa: E402
from app.api.deps import get_db  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.initial_data import seed_course  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Course, User, UserCreate  # noqa: E402

TEST_PASSWORD = "s3cret-pass"


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine: Engine) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def course(db: Session) -> Course:
    return seed_course(db)


def create_user(db: Session, email: str, full_name: str) -> User:
    return crud.create_user(
        session=db,
        user_create=UserCreate(email=email, password=TEST_PASSWORD, full_name=full_name),
    )


def auth_headers(client: TestClient, email: str) -> dict[str, str]:
    r = client.post(
        f"{settings.API_V1_STR}/login/access-token",
        data={"username": email, "password": TEST_PASSWORD},
    )
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def user(db: Session) -> User:
    return create_user(db, "ana@example.com", "Ana Costa")


@pytest.fixture
def user_headers(client: TestClient, user: User) -> dict[str, str]:
    return auth_headers(client, user.email)


@pytest.fixture
def other_user(db: Session) -> User:
    return create_user(db, "joao@example.com", "João Santos")


@pytest.fixture
def other_headers(client: TestClient, other_user: User) -> dict[str, str]:
    return auth_headers(client, other_user.email)


@pytest.fixture
def learner_headers(
    client: TestClient, user_headers: dict[str, str], course: Course
) -> dict[str, str]:
    """Headers of a user who already picked the starter course."""
    r = client.post(f"{settings.API_V1_STR}/courses/{course.id}/select", headers=user_headers)
    assert r.status_code == 200, r.text
    return user_headers


def set_progress(db: Session, user: User, **values) -> None:
    db.expire_all()
    db_progress = crud.get_user_progress(session=db, user_id=user.id)
    assert db_progress is not None
    db_progress.sqlmodel_update(values)
    db.add(db_progress)
    db.commit()
