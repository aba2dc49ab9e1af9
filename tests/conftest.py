"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
The oracle is replaced by FakeOracle, which replays scripted replies and is
unavailable once they run out.
"""
import os
import uuid

SQLITE_URL = "sqlite:///./test_ecopledge.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)
os.environ["GEMINI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ecopledge.db.base import Base, get_db
from ecopledge.main import app
from ecopledge.models.commitment import Category, Commitment, Frequency, Visibility
from ecopledge.models.milestone import Milestone, MilestoneStatus
from ecopledge.models.user import User
from ecopledge.services.oracle import OracleUnavailableError, get_oracle

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeOracle:
    """
    Scripted oracle. Each generate() call consumes the next reply; an
    Exception instance is raised instead of returned. With no replies left
    it behaves like an unavailable oracle.
    """

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise OracleUnavailableError("no scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def oracle():
    return FakeOracle()


@pytest.fixture()
def client(db, oracle):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_oracle] = lambda: oracle
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(name="Test User", **fields):
        suffix = uuid.uuid4().hex
        user = User(
            email=f"{suffix}@example.com",
            name=name,
            api_token=f"tok-{suffix}",
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture()
def make_commitment(db):
    """Insert a commitment directly, with optional (target, current) milestones."""
    def _make(owner, text="I will compost kitchen scraps", milestones=(), **fields):
        commitment = Commitment(
            user_id=owner.id,
            text=text,
            category=fields.pop("category", Category.waste),
            frequency=fields.pop("frequency", Frequency.daily),
            visibility=fields.pop("visibility", Visibility.public),
            duration="1 month",
            estimated_per_period=fields.pop("estimated_per_period", 1.5),
            estimated_total=fields.pop("estimated_total", 45.0),
            **fields,
        )
        db.add(commitment)
        db.flush()
        for i, (target, current) in enumerate(milestones):
            db.add(Milestone(
                commitment_id=commitment.id,
                title=f"Step {i + 1}",
                description="",
                target_value=target,
                current_value=current,
                status=MilestoneStatus.in_progress if current else MilestoneStatus.pending,
                estimated_carbon_savings=0,
            ))
        db.commit()
        db.refresh(commitment)
        return commitment
    return _make


@pytest.fixture()
def auth():
    """Bearer headers for a user."""
    return lambda user: {"Authorization": f"Bearer {user.api_token}"}
