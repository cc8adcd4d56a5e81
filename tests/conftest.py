import os
import sys
import tempfile
from pathlib import Path

# Must be set before anything imports cvscreen.app.config (module-level constants).
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="cvscreen-tests-"))
os.environ["DISABLE_DOTENV"] = "1"
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{(_TMP_ROOT / 'test.sqlite3').as_posix()}"
os.environ["UPLOAD_DIR"] = str(_TMP_ROOT / "uploads")
# Ensure tests never call external AI providers even if developer machine has keys set.
os.environ["GEMINI_API_KEY"] = ""
os.environ["BACKGROUND_WORKERS"] = "2"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure `import cvscreen.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

DRAIN_TIMEOUT_S = 30


@pytest.fixture()
def app() -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    `cvscreen.app.main` is not imported so startup hooks stay out of the way.
    """
    from cvscreen.app import database as db
    from cvscreen.app.services.task_runner import get_runner

    # Finish units left over from a previous test before the schema is rebuilt.
    get_runner().drain(DRAIN_TIMEOUT_S)

    engine = create_engine(
        os.environ["DATABASE_URL"],
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies and background units use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from cvscreen.app import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from cvscreen.app.api import documents as documents_api
    from cvscreen.app.api import screening as screening_api
    from cvscreen.app.utils.error_handlers import register_exception_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(documents_api.router)
    fastapi_app.include_router(screening_api.router)
    register_exception_handlers(fastapi_app)

    yield fastapi_app

    get_runner().drain(DRAIN_TIMEOUT_S)
    engine.dispose()


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from cvscreen.app.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def drain():
    """Wait for queued extraction/screening units; returns True when all finished."""
    from cvscreen.app.services.task_runner import get_runner

    def _drain(timeout: float = DRAIN_TIMEOUT_S) -> bool:
        return get_runner().drain(timeout)

    return _drain


@pytest.fixture()
def seed(db_session):
    """
    Registry rows the pipeline reads from:
    two recruiters (owner, other), an admin, one job owned by `owner`, two applicants.
    """
    from cvscreen.app.models.applicant import Applicant
    from cvscreen.app.models.job import Job
    from cvscreen.app.models.user import ROLE_ADMIN, ROLE_RECRUITER, User

    owner = User(name="Owner", email="owner@example.com", role=ROLE_RECRUITER)
    other = User(name="Other", email="other@example.com", role=ROLE_RECRUITER)
    admin = User(name="Admin", email="admin@example.com", role=ROLE_ADMIN)
    db_session.add_all([owner, other, admin])
    db_session.commit()

    job = Job(
        user_id=owner.id,
        job_title="Backend Engineer",
        job_description="Senior backend developer building Python APIs and microservices. 5+ years required.",
        required_skills='["Python", "FastAPI", "SQL"]',
        preferred_skills="Docker, Kubernetes",
        responsibilities="Design and ship services",
        department="Engineering",
        location="Remote",
    )
    db_session.add(job)
    db_session.commit()

    alice = Applicant(job_id=job.id, first_name="Alice", last_name="Smith", email="alice@example.com")
    bob = Applicant(job_id=job.id, first_name="Bob", last_name="Jones", email="bob@example.com")
    db_session.add_all([alice, bob])
    db_session.commit()

    return {"owner": owner, "other": other, "admin": admin, "job": job, "alice": alice, "bob": bob}
