import re
from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, ForeignKey, JSON, Enum
from .base import Base, local_now
from .notification import NotificationType

PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class NotificationTemplate(Base):
     """
     Parameterized subject/body for one notification type.
     Placeholders use {{variable}}; unknown variables are left as-is.
     """
     __tablename__ = "notification_templates"

     id = Column(Integer, primary_key=True, autoincrement=True)
     type = Column(
          Enum(NotificationType, name="notification_template_type", values_callable=lambda e: [m.value for m in e]),
          unique=True,
          nullable=False
     )
     name = Column(String(200), nullable=False)
     subject = Column(String(255), nullable=False)
     email_body = Column(Text, nullable=False)
     in_app_title = Column(String(255), nullable=False)
     in_app_message = Column(Text, nullable=False)
     variables = Column(JSON, nullable=True)
     is_active = Column(Boolean, default=True, nullable=False)
     version = Column(Integer, default=1, nullable=False)
     last_modified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
     created_at = Column(DateTime, default=local_now, nullable=False)
     updated_at = Column(DateTime, default=local_now, onupdate=local_now, nullable=False)

     def __repr__(self):
          return f"<NotificationTemplate(type='{self.type.value}', version={self.version})>"

     @staticmethod
     def render_text(text: str, data: dict) -> str:
          def substitute(match):
               key = match.group(1)
               return str(data[key]) if key in data else match.group(0)
          return PLACEHOLDER.sub(substitute, text)

     def render(self, data: dict) -> dict:
          return {
               "subject": self.render_text(self.subject, data),
               "email_body": self.render_text(self.email_body, data),
               "in_app_title": self.render_text(self.in_app_title, data),
               "in_app_message": self.render_text(self.in_app_message, data),
          }
