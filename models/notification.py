import enum
from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
from .base import Base, local_now


class NotificationType(str, enum.Enum):
     PAYMENT_REMINDER = "payment_reminder"
     PAYMENT_VERIFIED = "payment_verified"
     PAYMENT_REJECTED = "payment_rejected"
     BILL_GENERATED = "bill_generated"
     OVERDUE = "overdue"


class Notification(Base):
     """
     In-app notification - append-only per-user inbox entry.
     Only the read flag changes after creation. bill_id is context only.
     """
     __tablename__ = "notifications"
     __table_args__ = (
          Index("ix_notifications_user_id_read", "user_id", "read"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     type = Column(
          Enum(NotificationType, name="notification_type", values_callable=lambda e: [m.value for m in e]),
          nullable=False,
          index=True
     )
     title = Column(String(255), nullable=False)
     message = Column(Text, nullable=False)
     bill_id = Column(Integer, ForeignKey("bills.id", ondelete="SET NULL"), nullable=True)
     read = Column(Boolean, default=False, nullable=False)
     read_at = Column(DateTime, nullable=True)
     sent_at = Column(DateTime, default=local_now, nullable=False, index=True)
     created_at = Column(DateTime, default=local_now, nullable=False, index=True)

     user = relationship("User", foreign_keys=[user_id])

     def __repr__(self):
          return f"<Notification(id={self.id}, user_id={self.user_id}, type='{self.type.value}', read={self.read})>"
