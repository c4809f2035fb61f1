# services/user_service.py
"""
User Service - the caller's own profile and password.
"""
from typing import Optional

from sqlalchemy.orm import Session

from dependencies import hash_password, verify_password
from models import Room, User
from utils.errors import ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


class UserService:

     @staticmethod
     def get_profile(db: Session, user: User) -> dict:
          room = db.query(Room).filter(Room.id == user.room_id).first() if user.room_id else None
          return {
               "id": user.id,
               "email": user.email,
               "name": user.name,
               "phone": user.phone,
               "role": user.role,
               "room_id": user.room_id,
               "room_number": room.room_number if room else None,
               "created_at": user.created_at,
          }

     @staticmethod
     def update_profile(db: Session, user: User, name: str, phone: Optional[str] = None) -> User:
          """Name is replaced; phone is kept when not given."""
          user.name = name
          if phone:
               user.phone = phone
          db.flush()
          logger.info("profile_updated", user_id=user.id)
          return user

     @staticmethod
     def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
          """
          Raises:
               ValidationError: Current password doesn't match
          """
          if not verify_password(current_password, user.password):
               raise ValidationError("รหัสผ่านปัจจุบันไม่ถูกต้อง")
          user.password = hash_password(new_password)
          db.flush()
          logger.info("password_changed", user_id=user.id)
