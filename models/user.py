import enum
from sqlalchemy import Column, Integer, String, DateTime, JSON, Enum
from sqlalchemy.orm import validates
from .base import Base, local_now


class UserRole(str, enum.Enum):
     ADMIN = "admin"
     TENANT = "tenant"


NOTIFICATION_TYPE_KEYS = (
     "payment_reminder",
     "payment_verified",
     "payment_rejected",
     "overdue",
     "bill_generated",
)


def default_notification_preferences() -> dict:
     """Everything on, quiet hours off."""
     return {
          "email": {"enabled": True, **{key: True for key in NOTIFICATION_TYPE_KEYS}},
          "in_app": {"enabled": True, **{key: True for key in NOTIFICATION_TYPE_KEYS}},
          "quiet_hours": {"enabled": False, "start_time": "22:00", "end_time": "08:00"},
     }


class User(Base):
     """
     User model - central authentication table for admins and tenants.
     Email is stored lowercased so the unique index is case-insensitive.
     """
     __tablename__ = "users"

     id = Column(Integer, primary_key=True, autoincrement=True)
     email = Column(String(255), unique=True, nullable=False, index=True)
     password = Column(String(255), nullable=False)
     name = Column(String(200), nullable=False)
     phone = Column(String(50), nullable=True)
     role = Column(
          Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
          default=UserRole.TENANT,
          nullable=False,
          index=True
     )
     room_id = Column(Integer, nullable=True, index=True)  # mirrors Room.tenant_id
     notification_preferences = Column(JSON, nullable=True)
     created_at = Column(DateTime, default=local_now, nullable=False)
     updated_at = Column(DateTime, default=local_now, onupdate=local_now, nullable=False)

     @validates("email")
     def _normalize_email(self, key, value):
          return value.strip().lower() if value else value

     @property
     def is_admin(self) -> bool:
          return self.role == UserRole.ADMIN

     def get_notification_preferences(self) -> dict:
          prefs = default_notification_preferences()
          for section, values in (self.notification_preferences or {}).items():
               if isinstance(values, dict) and section in prefs:
                    prefs[section].update(values)
          return prefs

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
