"""Chat service layer for guided journaling conversations.

Handles:
- Conversation creation and ownership-checked lookup
- Opening prompt for new conversations
- One user turn + assistant turn + progress update per transaction
- Per-conversation turn serialization
- Rate limiting (per user, per minute)
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional
import logging
import threading

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from guided_journal.config import settings
from guided_journal.core.errors import ConcurrentTurnError, ConversationNotFoundError
from guided_journal.models.conversation import (
    Category,
    Conversation,
    Message,
    MessageRole,
    MessageType,
    total_steps_for,
)
from guided_journal.services.turn_engine import TurnEngine, is_complete, resolve_selection

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Per-user rate limiting.

    Tracks requests per user per minute.
    Counter resets on the minute boundary.
    """

    def __init__(self, max_requests_per_minute: Optional[int] = None):
        """Initialize rate limiter."""
        self.max_requests = max_requests_per_minute or settings.RATE_LIMIT_PER_MINUTE
        # {user_id: (count, minute_timestamp)}
        self._counters: Dict[str, tuple[int, datetime]] = {}
        self._lock = threading.Lock()

    def check_and_increment(self, user_id: str) -> bool:
        """
        Check if user is within rate limit and increment counter.

        Returns:
            True if request allowed, False if rate limit exceeded
        """
        current_minute = datetime.now(timezone.utc).replace(second=0, microsecond=0)

        with self._lock:
            count, minute_timestamp = self._counters.get(user_id, (0, current_minute))
            if minute_timestamp < current_minute:
                count = 0
                minute_timestamp = current_minute

            if count >= self.max_requests:
                return False

            self._counters[user_id] = (count + 1, minute_timestamp)
            return True


class TurnLocks:
    """In-process lock per conversation id, dropped once no request holds it."""

    def __init__(self):
        self._guard = threading.Lock()
        # {conversation_id: [lock, holders]}
        self._locks: Dict[str, list] = {}

    @contextmanager
    def hold(self, conversation_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(conversation_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[conversation_id]


class ChatService:
    """Service layer for guided conversation turns."""

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        turn_locks: Optional[TurnLocks] = None,
        enforce_ownership: Optional[bool] = None,
    ):
        """Initialize chat service."""
        self.rate_limiter = rate_limiter or RateLimiter()
        self.turn_locks = turn_locks or TurnLocks()
        if enforce_ownership is None:
            enforce_ownership = settings.ENFORCE_CONVERSATION_OWNERSHIP
        self.enforce_ownership = enforce_ownership

    def check_rate_limit(self, user_id: str) -> bool:
        """
        Check if user is within rate limit.

        Returns:
            True if allowed, False if rate limit exceeded
        """
        return self.rate_limiter.check_and_increment(user_id)

    def get_conversation(
        self,
        session: Session,
        user_id: str,
        conversation_id: str,
    ) -> Conversation:
        """
        Load a conversation by id.

        Raises:
            ConversationNotFoundError: If missing, or owned by another
                user while ownership is enforced
        """
        conversation = session.get(Conversation, conversation_id)

        if conversation is None:
            logger.warning(f"Conversation {conversation_id} not found")
            raise ConversationNotFoundError()

        if self.enforce_ownership and conversation.user_id != user_id:
            logger.warning(
                f"Conversation {conversation_id} requested by non-owner user={user_id}"
            )
            raise ConversationNotFoundError()

        return conversation

    def get_transcript(self, session: Session, conversation_id: str) -> list[Message]:
        """All messages of a conversation in ascending order."""
        statement = select(Message).where(
            Message.conversation_id == conversation_id
        ).order_by(Message.order)
        return list(session.exec(statement).all())

    def list_conversations(
        self,
        session: Session,
        user_id: str,
    ) -> list[tuple[Conversation, int]]:
        """
        List a user's conversations, newest first.

        Returns:
            (conversation, message_count) pairs
        """
        statement = select(Conversation).where(
            Conversation.user_id == user_id
        ).order_by(Conversation.created_at.desc())
        conversations = list(session.exec(statement).all())
        if not conversations:
            return []

        count_statement = select(Message.conversation_id, func.count(Message.id)).where(
            Message.conversation_id.in_([c.id for c in conversations])
        ).group_by(Message.conversation_id)
        counts = dict(session.exec(count_statement).all())

        return [(c, counts.get(c.id, 0)) for c in conversations]

    def start_conversation(
        self,
        session: Session,
        engine: TurnEngine,
        user_id: str,
        category: Category,
    ) -> Conversation:
        """
        Create a conversation together with its opening prompt.

        Both rows are committed in one transaction.
        """
        category = Category(category)
        conversation = Conversation(
            user_id=user_id,
            category=category,
            total_steps=total_steps_for(category),
        )
        try:
            session.add(conversation)
            session.flush()
            self._append_opening(session, engine, conversation)
            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info(
            f"Conversation created: user={user_id}, conversation={conversation.id}, "
            f"category={conversation.category.value}"
        )
        return conversation

    def handle_turn(
        self,
        session: Session,
        engine: TurnEngine,
        user_id: str,
        category: Category,
        conversation_id: Optional[str] = None,
        message: Optional[str] = None,
        selected_choice: Optional[int] = None,
    ) -> tuple[Conversation, list[Message]]:
        """
        Process one chat request.

        Flow:
        1. No conversation id: create conversation + opening prompt
        2. Otherwise lock the conversation and reload it
        3. No messages yet: append the opening prompt
        4. Message or selection given: record user turn, run the turn
           engine, record assistant turn, advance progress
        5. Return the conversation and its transcript

        Args:
            session: Database session
            engine: Turn engine bound to a completion client
            user_id: Authenticated user ID
            category: Requested category, used only for new conversations
            conversation_id: Existing conversation or None for new
            message: Free-text user input
            selected_choice: Index into the previous message's choices

        Returns:
            Tuple of (conversation, ordered messages)

        Raises:
            ConversationNotFoundError: If conversation missing or not owned
            ConcurrentTurnError: If another writer took the same order slot
            UpstreamFailureError: If the completion call fails
        """
        if conversation_id is None:
            conversation = self.start_conversation(session, engine, user_id, category)
            return conversation, self.get_transcript(session, conversation.id)

        with self.turn_locks.hold(conversation_id):
            conversation = self.get_conversation(session, user_id, conversation_id)
            transcript = self.get_transcript(session, conversation.id)

            if not transcript:
                try:
                    self._append_opening(session, engine, conversation)
                    session.commit()
                except Exception:
                    session.rollback()
                    raise
            elif message or selected_choice is not None:
                self._take_turn(
                    session, engine, conversation, transcript, message, selected_choice
                )

            return conversation, self.get_transcript(session, conversation.id)

    def _append_opening(
        self,
        session: Session,
        engine: TurnEngine,
        conversation: Conversation,
    ) -> Message:
        opening = engine.respond(conversation.category, [])
        message = Message(
            conversation_id=conversation.id,
            role=MessageRole.ASSISTANT,
            content=opening.content,
            message_type=opening.message_type,
            choices=opening.choices,
            step=1,
            order=1,
        )
        session.add(message)
        return message

    def _take_turn(
        self,
        session: Session,
        engine: TurnEngine,
        conversation: Conversation,
        transcript: list[Message],
        message: Optional[str],
        selected_choice: Optional[int],
    ) -> None:
        """Record user + assistant turn and advance progress atomically."""
        if selected_choice is not None:
            content = resolve_selection(transcript[-1].choices, selected_choice, message)
            message_type = MessageType.CHOICE_SELECTION
        else:
            content = message or ""
            message_type = MessageType.TEXT

        conversation_id = conversation.id
        next_order = len(transcript) + 1
        step = conversation.current_step

        # completion calls happen before any write to keep the transaction short
        user_turns = [m.content for m in transcript if m.role == MessageRole.USER] + [content]
        result = engine.respond(conversation.category, user_turns)

        try:
            session.add(Message(
                conversation_id=conversation_id,
                role=MessageRole.USER,
                content=content,
                message_type=message_type,
                selected_choice=selected_choice,
                step=step,
                order=next_order,
            ))
            session.add(Message(
                conversation_id=conversation_id,
                role=MessageRole.ASSISTANT,
                content=result.content,
                message_type=result.message_type,
                choices=result.choices,
                step=step,
                order=next_order + 1,
            ))

            conversation.current_step = step + 1
            conversation.is_complete = is_complete(conversation.total_steps, len(user_turns))
            conversation.updated_at = datetime.now(timezone.utc)
            session.add(conversation)
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.warning(f"Concurrent turn rejected for conversation={conversation_id}")
            raise ConcurrentTurnError() from e
        except Exception:
            session.rollback()
            raise

        logger.info(
            f"Turn processed: conversation={conversation_id}, user_turns={len(user_turns)}, "
            f"step={step + 1}, complete={conversation.is_complete}"
        )
