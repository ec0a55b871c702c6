# /aria-backend/app/services/database_helpers/user_repository_sql.py

from typing import Dict, Optional
from sqlalchemy.sql import func
from sqlalchemy.orm import Session
from app.db.models.user_models import User


class UserRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def create_user(self, record: Dict) -> User:
        new_user = User(**record)
        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)
        return new_user

    def touch_last_login(self, user: User) -> User:
        user.last_login = func.now()
        self.db.commit()
        self.db.refresh(user)
        return user
