# /aria-backend/app/services/database_service.py

from typing import List, Dict, Optional, Generator, Tuple
from datetime import datetime
from sqlalchemy.orm import Session
from fastapi import Depends

# --- Core Database Setup ---
from app.db.database import get_db
from app.db.models.chat_models import Chat, Message
from app.db.models.user_models import User

# --- Repository Imports ---
from .database_helpers.chat_repository_sql import ChatRepositorySQL
from .database_helpers.user_repository_sql import UserRepositorySQL


class DatabaseService:
    def __init__(self, db_session: Session):
        """
        Thin facade over the SQL repositories. Services talk to this class
        only, never to a Session directly.
        """
        if db_session is None:
            raise ValueError("A database session is required.")
        self.user_repo = UserRepositorySQL(db_session)
        self.chat_repo = ChatRepositorySQL(db_session)

    # --- USER METHODS (DELEGATED) ---
    def get_user_by_id(self, user_id: int) -> Optional[User]: return self.user_repo.get_user_by_id(user_id)
    def get_user_by_email(self, email: str) -> Optional[User]: return self.user_repo.get_user_by_email(email)
    def create_user(self, user_record: Dict) -> User: return self.user_repo.create_user(user_record)
    def touch_last_login(self, user: User) -> User: return self.user_repo.touch_last_login(user)

    # --- CHAT METHODS (DELEGATED) ---
    def create_chat(self, chat_record: Dict) -> Chat: return self.chat_repo.create_chat(chat_record)
    def get_chat_for_user(self, chat_id: str, user_id: int) -> Optional[Chat]: return self.chat_repo.get_chat_for_user(chat_id, user_id)
    def get_chats_with_stats(self, user_id: int) -> List[Tuple[Chat, int, Optional[datetime]]]: return self.chat_repo.get_chats_with_stats(user_id)
    def update_chat_title(self, chat_id: str, title: str): self.chat_repo.update_chat_title(chat_id, title)
    def delete_chat(self, chat: Chat): self.chat_repo.delete_chat(chat)
    def delete_chats_by_user_id(self, user_id: int) -> int: return self.chat_repo.delete_chats_by_user_id(user_id)

    # --- MESSAGE METHODS (DELEGATED) ---
    def add_chat_message(self, message_record: Dict) -> Message: return self.chat_repo.add_message(message_record)
    def get_recent_messages(self, chat_id: str, limit: int, exclude_message_id: Optional[int] = None) -> List[Message]:
        return self.chat_repo.get_recent_messages(chat_id, limit, exclude_message_id)
    def get_messages_for_chat(self, chat_id: str, user_id: int) -> List[Message]: return self.chat_repo.get_messages_for_chat(chat_id, user_id)
    def count_chat_messages(self, chat_id: str) -> int: return self.chat_repo.count_messages(chat_id)
    def get_message_for_user(self, message_id: int, user_id: int) -> Optional[Message]: return self.chat_repo.get_message_for_user(message_id, user_id)
    def set_message_download(self, message: Message, download_url: str, download_filename: str) -> Message:
        return self.chat_repo.set_message_download(message, download_url, download_filename)


def get_db_service(db: Session = Depends(get_db)) -> Generator[DatabaseService, None, None]:
    """FastAPI dependency that provides a DatabaseService bound to the request's session."""
    yield DatabaseService(db_session=db)
