"""Database engine and session helpers."""
from typing import Iterator

from sqlmodel import Session, SQLModel, create_engine

from guided_journal.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync endpoints on a threadpool
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    connect_args=connect_args,
)


def init_db() -> None:
    """Create all tables registered on SQLModel metadata."""
    from guided_journal.models.user import User  # noqa: F401
    from guided_journal.models.conversation import Conversation, Message  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session
