"""FastAPI dependencies: database session, current user, turn engine."""
import logging
from typing import Iterator, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from guided_journal.config import settings
from guided_journal.core.errors import UnauthorizedError
from guided_journal.database import get_session
from guided_journal.models.user import User
from guided_journal.services.completion_client import CompletionClient
from guided_journal.services.turn_engine import TurnEngine
from guided_journal.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

_completion_client: Optional[CompletionClient] = None


def get_db() -> Iterator[Session]:
    yield from get_session()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_db),
) -> User:
    """
    Resolve the calling user from a bearer JWT.

    The token's ``sub`` claim is the external auth id.

    Raises:
        UnauthorizedError: If the token is missing, invalid or has no subject
    """
    if credentials is None:
        raise UnauthorizedError()

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected bearer token: {str(e)}")
        raise UnauthorizedError() from e

    auth_id = payload.get("sub")
    if not auth_id:
        raise UnauthorizedError()

    return get_or_create_user(session, str(auth_id))


def get_completion_client() -> CompletionClient:
    """Shared OpenAI-backed client, created on first use."""
    global _completion_client
    if _completion_client is None:
        _completion_client = CompletionClient()
    return _completion_client


def get_turn_engine(
    completion_client: CompletionClient = Depends(get_completion_client),
) -> TurnEngine:
    return TurnEngine(completion_client)
