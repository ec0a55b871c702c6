# /aria-backend/app/services/user_service.py

import logging
from typing import Optional

from .database_service import DatabaseService
from ..core import security
from ..db.models.user_models import User
from ..models.user_model import UserCreate

logger = logging.getLogger(__name__)


def create_user(db: DatabaseService, user: UserCreate) -> User:
    """Registers a new account. Raises ValueError if the email is already taken."""
    email = user.email.strip().lower()
    if db.get_user_by_email(email):
        raise ValueError("A user with this email already exists.")

    new_user = db.create_user({
        "email": email,
        "password_hash": security.hash_password(user.password),
        "name": user.name,
    })
    logger.info("Registered user %s", new_user.id)
    return new_user


def authenticate_user(db: DatabaseService, email: str, password: str) -> Optional[User]:
    """Returns the user on a correct email/password pair and stamps last_login; otherwise None."""
    user = db.get_user_by_email(email.strip().lower())
    if not user or not security.verify_password(password, user.password_hash):
        return None
    return db.touch_last_login(user)
