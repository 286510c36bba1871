"""Conversation and Message SQLModel definitions for guided journaling.

Models:
- Conversation: One guided exercise owned by a user
- Message: Individual turn in a conversation, ordered by ``order``
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


class Category(str, Enum):
    GRATITUDE = "gratitude"
    ANXIETY = "anxiety"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(str, Enum):
    TEXT = "text"
    CHOICES = "choices"
    CHOICE_SELECTION = "choice_selection"


TOTAL_STEPS: dict[Category, int] = {
    Category.GRATITUDE: 3,
    Category.ANXIETY: 4,
}


def total_steps_for(category: Category) -> int:
    return TOTAL_STEPS[Category(category)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Conversation(SQLModel, table=True):
    """
    Guided exercise instance.

    category and total_steps are fixed at creation. current_step and
    is_complete are advanced by the chat service after every turn.
    """
    __tablename__ = "conversation"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True, nullable=False)
    category: Category = Field(nullable=False)
    current_step: int = Field(default=1, ge=1)
    total_steps: int = Field(nullable=False)
    is_complete: bool = Field(default=False)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Message(SQLModel, table=True):
    """
    One turn in a conversation.

    order is contiguous from 1 within a conversation; the unique
    constraint rejects a second writer racing for the same slot.
    choices is set only for type "choices", selected_choice only for
    type "choice_selection".
    """
    __tablename__ = "message"
    __table_args__ = (
        UniqueConstraint("conversation_id", "order", name="uq_message_conversation_order"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    conversation_id: str = Field(foreign_key="conversation.id", index=True, nullable=False)
    role: MessageRole = Field(nullable=False)
    content: str = Field(default="")
    message_type: MessageType = Field(default=MessageType.TEXT)
    choices: Optional[list[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    selected_choice: Optional[int] = Field(default=None)
    step: int = Field(nullable=False)
    order: int = Field(nullable=False)
    created_at: datetime = Field(default_factory=_utcnow)
