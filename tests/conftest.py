import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from guided_journal.api.routes import chat as chat_routes
from guided_journal.config import settings
from guided_journal.core.deps import get_completion_client, get_db
from guided_journal.main import app
from guided_journal.models.conversation import Conversation, Message  # noqa: F401
from guided_journal.models.user import User
from guided_journal.services.chat_service import ChatService


class FakeCompletionClient:
    """Returns scripted responses in order and records every call."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    def complete(self, input_text, instructions):
        self.calls.append((input_text, instructions))
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return "ok"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def user(session):
    user = User(auth_id="auth|alice")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def completion():
    return FakeCompletionClient()


@pytest.fixture
def make_completion():
    return FakeCompletionClient


@pytest.fixture
def token_for():
    def _token_for(sub="auth|alice"):
        return jwt.encode({"sub": sub}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return _token_for


@pytest.fixture
def auth_headers(token_for):
    return {"Authorization": f"Bearer {token_for()}"}


@pytest.fixture
def client(engine, completion, monkeypatch):
    def override_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_completion_client] = lambda: completion
    monkeypatch.setattr(chat_routes, "chat_service", ChatService(enforce_ownership=True))
    yield TestClient(app)
    app.dependency_overrides.clear()
