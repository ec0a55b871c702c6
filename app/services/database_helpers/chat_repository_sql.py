# /aria-backend/app/services/database_helpers/chat_repository_sql.py

from typing import List, Dict, Optional, Tuple
from datetime import datetime
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from app.db.models.chat_models import Chat, Message


class ChatRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    # --- Chat Methods ---
    def create_chat(self, record: Dict) -> Chat:
        new_chat = Chat(**record)
        self.db.add(new_chat)
        self.db.commit()
        self.db.refresh(new_chat)
        return new_chat

    def get_chat_for_user(self, chat_id: str, user_id: int) -> Optional[Chat]:
        return self.db.query(Chat).filter(Chat.id == chat_id, Chat.user_id == user_id).first()

    def get_chats_with_stats(self, user_id: int) -> List[Tuple[Chat, int, Optional[datetime]]]:
        """Each row is (chat, message_count, last_message_time), most recently active first."""
        return (
            self.db.query(Chat, func.count(Message.id), func.max(Message.created_at))
            .outerjoin(Message, Message.chat_id == Chat.id)
            .filter(Chat.user_id == user_id)
            .group_by(Chat.id)
            .order_by(Chat.last_message_at.desc(), Chat.created_at.desc())
            .all()
        )

    def update_chat_title(self, chat_id: str, title: str):
        self.db.query(Chat).filter(Chat.id == chat_id).update({Chat.title: title}, synchronize_session=False)
        self.db.commit()

    def delete_chat(self, chat: Chat):
        self.db.delete(chat)
        self.db.commit()

    def delete_chats_by_user_id(self, user_id: int) -> int:
        owned_chat_ids = select(Chat.id).where(Chat.user_id == user_id)
        self.db.query(Message).filter(Message.chat_id.in_(owned_chat_ids)).delete(synchronize_session=False)
        deleted = self.db.query(Chat).filter(Chat.user_id == user_id).delete(synchronize_session=False)
        self.db.commit()
        return deleted

    # --- Message Methods ---
    def add_message(self, record: Dict) -> Message:
        new_message = Message(**record)
        self.db.add(new_message)
        self.db.query(Chat).filter(Chat.id == record["chat_id"]).update(
            {Chat.last_message_at: func.now(), Chat.updated_at: func.now()},
            synchronize_session=False,
        )
        self.db.commit()
        self.db.refresh(new_message)
        return new_message

    def get_recent_messages(self, chat_id: str, limit: int, exclude_message_id: Optional[int] = None) -> List[Message]:
        """Newest first. The caller reverses the list for chronological use."""
        query = self.db.query(Message).filter(Message.chat_id == chat_id)
        if exclude_message_id is not None:
            query = query.filter(Message.id != exclude_message_id)
        return query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()

    def get_messages_for_chat(self, chat_id: str, user_id: int) -> List[Message]:
        return (
            self.db.query(Message)
            .filter(Message.chat_id == chat_id, Message.user_id == user_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .all()
        )

    def count_messages(self, chat_id: str) -> int:
        return self.db.query(func.count(Message.id)).filter(Message.chat_id == chat_id).scalar() or 0

    def get_message_for_user(self, message_id: int, user_id: int) -> Optional[Message]:
        return (
            self.db.query(Message)
            .join(Chat, Chat.id == Message.chat_id)
            .filter(Message.id == message_id, Chat.user_id == user_id)
            .first()
        )

    def set_message_download(self, message: Message, download_url: str, download_filename: str) -> Message:
        message.download_url = download_url
        message.download_filename = download_filename
        self.db.commit()
        self.db.refresh(message)
        return message
