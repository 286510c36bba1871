"""User SQLModel definition."""
from datetime import datetime, timezone
from uuid import uuid4

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """
    Identity record for an authenticated caller.

    auth_id is the subject issued by the external identity provider.
    Rows are created on first access and never mutated afterwards.
    """
    __tablename__ = "user"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    auth_id: str = Field(index=True, unique=True, nullable=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
