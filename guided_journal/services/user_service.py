"""User lookup for authenticated callers."""
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from guided_journal.models.user import User

logger = logging.getLogger(__name__)


def get_user_by_auth_id(session: Session, auth_id: str) -> User | None:
    statement = select(User).where(User.auth_id == auth_id)
    return session.exec(statement).first()


def get_or_create_user(session: Session, auth_id: str) -> User:
    """
    Return the user for an external auth id, creating it on first access.

    Args:
        session: Database session
        auth_id: Subject claim from the identity provider

    Returns:
        User instance
    """
    user = get_user_by_auth_id(session, auth_id)
    if user:
        return user

    user = User(auth_id=auth_id)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # first requests from the same identity raced
        session.rollback()
        user = get_user_by_auth_id(session, auth_id)
        if user is None:
            raise
        return user

    session.refresh(user)
    logger.info(f"User created: user={user.id}")
    return user
