"""Chat endpoint routes for guided journaling.

Provides:
- POST /api/chat - Start a conversation or submit a turn
- GET /api/conversations - List caller's conversations
- GET /api/conversations/{id} - Get conversation with messages
"""
from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from guided_journal.core.deps import get_current_user, get_db, get_turn_engine
from guided_journal.core.errors import RateLimitExceededError
from guided_journal.models.conversation import (
    Category,
    Conversation,
    Message,
    MessageRole,
    MessageType,
)
from guided_journal.models.user import User
from guided_journal.services.chat_service import ChatService
from guided_journal.services.turn_engine import TurnEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

# Shared across requests: holds rate-limit counters and per-conversation locks
chat_service = ChatService()


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case is accepted on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(CamelModel):
    """Request model for a chat turn."""
    category: Category
    message: Optional[str] = None
    conversation_id: Optional[str] = None
    selected_choice: Optional[int] = None


class MessageResponse(CamelModel):
    """Response model for a single message."""
    id: str
    role: MessageRole
    content: str
    message_type: MessageType
    choices: Optional[list[str]] = None
    selected_choice: Optional[int] = None
    step: int
    order: int
    created_at: datetime


class ConversationWithMessages(CamelModel):
    """Response model for conversation with its ordered messages."""
    id: str
    user_id: str
    category: Category
    current_step: int
    total_steps: int
    is_complete: bool
    created_at: datetime
    updated_at: datetime
    messages: list[MessageResponse]


class ChatResponse(CamelModel):
    """Response model for a chat turn."""
    conversation: ConversationWithMessages
    is_complete: bool


class ConversationSummary(CamelModel):
    """Response model for conversation list."""
    id: str
    category: Category
    current_step: int
    total_steps: int
    is_complete: bool
    created_at: datetime
    message_count: int


def _message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        role=message.role,
        content=message.content,
        message_type=message.message_type,
        choices=message.choices,
        selected_choice=message.selected_choice,
        step=message.step,
        order=message.order,
        created_at=message.created_at,
    )


def _conversation_detail(
    conversation: Conversation, messages: list[Message]
) -> ConversationWithMessages:
    return ConversationWithMessages(
        id=conversation.id,
        user_id=conversation.user_id,
        category=conversation.category,
        current_step=conversation.current_step,
        total_steps=conversation.total_steps,
        is_complete=conversation.is_complete,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        messages=[_message_response(m) for m in messages],
    )


@router.post("/chat", response_model=ChatResponse)
def send_chat_message(
    request: ChatRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
    engine: TurnEngine = Depends(get_turn_engine),
) -> ChatResponse:
    """
    Start a guided conversation or advance it by one turn.

    Flow:
    1. Resolve user from bearer token
    2. Check rate limit
    3. Create conversation with opening prompt, or record the user turn
       and the scripted assistant reply
    4. Return the full transcript and completion flag

    Raises:
        UnauthorizedError: 401 if no valid identity
        RateLimitExceededError: 429 if rate limit exceeded
        ConversationNotFoundError: 404 if conversation missing or not owned
        ConcurrentTurnError: 409 if another turn won the race
        UpstreamFailureError: 500 if the completion call failed
    """
    if not chat_service.check_rate_limit(current_user.id):
        logger.warning(f"Rate limit exceeded for user={current_user.id}")
        raise RateLimitExceededError()

    conversation, messages = chat_service.handle_turn(
        session,
        engine,
        current_user.id,
        request.category,
        conversation_id=request.conversation_id,
        message=request.message,
        selected_choice=request.selected_choice,
    )

    return ChatResponse(
        conversation=_conversation_detail(conversation, messages),
        is_complete=conversation.is_complete,
    )


@router.get("/conversations", response_model=list[ConversationSummary])
def list_conversations(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[ConversationSummary]:
    """List the caller's conversations, newest first."""
    return [
        ConversationSummary(
            id=conversation.id,
            category=conversation.category,
            current_step=conversation.current_step,
            total_steps=conversation.total_steps,
            is_complete=conversation.is_complete,
            created_at=conversation.created_at,
            message_count=message_count,
        )
        for conversation, message_count in chat_service.list_conversations(
            session, current_user.id
        )
    ]


@router.get("/conversations/{conversation_id}", response_model=ConversationWithMessages)
def get_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationWithMessages:
    """
    Get conversation with all messages.

    Raises:
        ConversationNotFoundError: 404 if conversation not found or not owned
    """
    conversation = chat_service.get_conversation(session, current_user.id, conversation_id)
    messages = chat_service.get_transcript(session, conversation.id)
    return _conversation_detail(conversation, messages)
