"""OpenAI chat-completion wrapper used by the turn engine."""
import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from guided_journal.config import settings
from guided_journal.core.errors import UpstreamFailureError

logger = logging.getLogger(__name__)


class CompletionClient:
    """
    Single-shot chat completion.

    Each call sends one system message (instructions) and one user
    message (input). Failures raise UpstreamFailureError; callers do
    not retry.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        """Initialize completion client from settings unless overridden."""
        self._client = client
        self.model = model or settings.OPENAI_MODEL
        self.max_tokens = max_tokens if max_tokens is not None else settings.OPENAI_MAX_TOKENS
        self.temperature = temperature if temperature is not None else settings.OPENAI_TEMPERATURE

    @property
    def client(self) -> OpenAI:
        """OpenAI SDK client, created on the first completion call."""
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise RuntimeError("Missing OPENAI_API_KEY in environment or .env")
            self._client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT,
                max_retries=settings.OPENAI_MAX_RETRIES,
            )
        return self._client

    def complete(self, input_text: str, instructions: str) -> str:
        """
        Generate text for one user turn.

        Args:
            input_text: User-role content
            instructions: System-role instructions

        Returns:
            Generated text, or an empty string if the model returned none

        Raises:
            UpstreamFailureError: If the API call fails
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": input_text},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {str(e)}")
            raise UpstreamFailureError("Failed to get AI response") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
