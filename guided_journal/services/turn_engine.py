"""Scripted turn-taking for guided journaling exercises.

The engine's only state is (category, number of user turns recorded).
Each pair maps to a handler in TRANSITIONS; pairs with no handler
produce an empty text message.
"""
import logging
import re
from typing import Callable, Optional, Protocol

from pydantic import BaseModel

from guided_journal.models.conversation import Category, MessageType
from guided_journal.services import prompts

logger = logging.getLogger(__name__)

_NUMBERED_LINE = re.compile(r"^\d+\.")
_NUMBER_MARKER = re.compile(r"^\d+\.\s*")


class Completer(Protocol):
    def complete(self, input_text: str, instructions: str) -> str: ...


class TurnResult(BaseModel):
    """Assistant turn produced by the engine."""
    content: str
    message_type: MessageType = MessageType.TEXT
    choices: Optional[list[str]] = None


def parse_choices(text: str) -> list[str]:
    """
    Extract items from a numbered list.

    Only lines starting with ``<digits>.`` are kept; the marker and
    surrounding whitespace are removed.
    """
    choices = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or not _NUMBERED_LINE.match(stripped):
            continue
        choices.append(_NUMBER_MARKER.sub("", stripped).strip())
    return choices


def resolve_selection(
    previous_choices: Optional[list[str]],
    selected_choice: Optional[int],
    raw_text: Optional[str],
) -> str:
    """
    Content to record for a user turn.

    A selection is looked up in the previous message's choices; when it
    cannot be resolved the raw text is used (empty if none).
    """
    fallback = raw_text or ""
    if selected_choice is None:
        return fallback
    if not previous_choices or not 0 <= selected_choice < len(previous_choices):
        return fallback
    return previous_choices[selected_choice] or fallback


def max_user_turns(total_steps: int) -> int:
    return total_steps - 1


def is_complete(total_steps: int, user_turn_count: int) -> bool:
    """Whether a conversation is finished after answering this user turn."""
    return user_turn_count >= max_user_turns(total_steps)


class TurnEngine:
    """Chooses and produces the assistant reply for each scripted turn."""

    def __init__(self, completion_client: Completer):
        self.completion_client = completion_client

    def respond(self, category: Category, user_turns: list[str]) -> TurnResult:
        """
        Produce the assistant turn that follows ``user_turns``.

        Args:
            category: Exercise category
            user_turns: Content of every user message so far, oldest first

        Returns:
            TurnResult to store as the next assistant message
        """
        category = Category(category)
        handler = TRANSITIONS.get((category, len(user_turns)))
        if handler is None:
            logger.warning(
                f"No scripted turn for category={category.value}, user_turns={len(user_turns)}"
            )
            return TurnResult(content="")
        return handler(self, user_turns)

    def _gratitude_opening(self, user_turns: list[str]) -> TurnResult:
        return TurnResult(content=prompts.GRATITUDE_OPENING)

    def _gratitude_reflect(self, user_turns: list[str]) -> TurnResult:
        content = self.completion_client.complete(
            prompts.gratitude_reflect_input(user_turns[-1]),
            prompts.GRATITUDE_REFLECT_INSTRUCTIONS,
        )
        return TurnResult(content=content)

    def _gratitude_wrap_up(self, user_turns: list[str]) -> TurnResult:
        content = self.completion_client.complete(
            prompts.gratitude_wrap_up_input(user_turns[0], user_turns[1]),
            prompts.GRATITUDE_WRAP_UP_INSTRUCTIONS,
        )
        return TurnResult(content=content)

    def _anxiety_opening(self, user_turns: list[str]) -> TurnResult:
        return TurnResult(content=prompts.ANXIETY_OPENING)

    def _anxiety_negative_thoughts(self, user_turns: list[str]) -> TurnResult:
        raw = self.completion_client.complete(
            prompts.negative_thoughts_input(user_turns[-1]),
            prompts.NEGATIVE_THOUGHTS_INSTRUCTIONS,
        )
        return TurnResult(
            content=prompts.NEGATIVE_THOUGHTS_DISPLAY,
            message_type=MessageType.CHOICES,
            choices=parse_choices(raw),
        )

    def _anxiety_challenge(self, user_turns: list[str]) -> TurnResult:
        # the submitted content is the thought the user picked
        content = self.completion_client.complete(
            prompts.challenge_question_input(user_turns[-1]),
            prompts.CHALLENGE_QUESTION_INSTRUCTIONS,
        )
        return TurnResult(content=content)

    def _anxiety_summary(self, user_turns: list[str]) -> TurnResult:
        concern, thought, reflection = user_turns[0], user_turns[1], user_turns[2]
        balanced = self.completion_client.complete(
            prompts.balanced_thought_input(thought, reflection),
            prompts.BALANCED_THOUGHT_INSTRUCTIONS,
        )
        actions = self.completion_client.complete(
            prompts.action_steps_input(concern, balanced),
            prompts.ACTION_STEPS_INSTRUCTIONS,
        )
        return TurnResult(content=prompts.anxiety_summary(balanced, actions))


TRANSITIONS: dict[tuple[Category, int], Callable[[TurnEngine, list[str]], TurnResult]] = {
    (Category.GRATITUDE, 0): TurnEngine._gratitude_opening,
    (Category.GRATITUDE, 1): TurnEngine._gratitude_reflect,
    (Category.GRATITUDE, 2): TurnEngine._gratitude_wrap_up,
    (Category.ANXIETY, 0): TurnEngine._anxiety_opening,
    (Category.ANXIETY, 1): TurnEngine._anxiety_negative_thoughts,
    (Category.ANXIETY, 2): TurnEngine._anxiety_challenge,
    (Category.ANXIETY, 3): TurnEngine._anxiety_summary,
}
