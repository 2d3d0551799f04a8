"""Account helpers shared by the login paths."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from models import storage
from models.base_model import utcnow
from models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def role_for_email(email: str, admin_email: Optional[str]) -> str:
    """The configured bootstrap address is created as an admin."""
    if admin_email and normalize_email(email) == normalize_email(admin_email):
        return "admin"
    return "user"


def find_by_email(email: str) -> Optional[User]:
    session = storage.get_session()
    return session.query(User).filter(User.email == normalize_email(email)).first()


def find_by_google_id(google_id: str) -> Optional[User]:
    session = storage.get_session()
    return session.query(User).filter(User.google_id == google_id).first()


def touch_last_seen(user: User, login_type: Optional[str] = None) -> None:
    """
    Best-effort last_seen update. A failed write is logged and dropped:
    last_seen is informational and never used for security decisions.
    """
    user_id = user.id
    user.last_seen = utcnow()
    if login_type:
        user.login_type = login_type
    try:
        storage.save()
    except SQLAlchemyError:
        logger.warning("Could not update last_seen", extra={"user_id": user_id}, exc_info=True)
