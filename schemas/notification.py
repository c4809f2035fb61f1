"""
Pydantic schemas for the notification inbox and templates.
"""
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict

from models.notification import NotificationType


class NotificationResponse(BaseModel):
     id: int
     user_id: int
     type: NotificationType
     title: str
     message: str
     bill_id: Optional[int] = None
     read: bool
     read_at: Optional[datetime] = None
     sent_at: datetime
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
     notifications: List[NotificationResponse]
     unread_count: int


class NotificationReadUpdate(BaseModel):
     read: bool


class MarkAllReadRequest(BaseModel):
     user_id: Optional[int] = Field(None, gt=0, description="Defaults to the caller")


class NotificationSendRequest(BaseModel):
     user_ids: List[int] = Field(..., min_length=1)
     type: NotificationType
     title: str = Field(..., min_length=1, max_length=255)
     message: str = Field(..., min_length=1)
     bill_id: Optional[int] = None
     send_email: bool = False


class UserNotificationStats(BaseModel):
     user_id: int
     total: int
     unread: int
     read: int


class GlobalNotificationStats(BaseModel):
     total: int
     unread: int
     read: int
     read_rate: int
     sent_today: int
     sent_this_week: int
     by_type: Dict[str, int]
     daily: List[Dict]
     top_unread_users: List[Dict]


class NotificationTemplateUpsert(BaseModel):
     type: NotificationType
     name: str = Field(..., min_length=1, max_length=200)
     subject: str = Field(..., min_length=1, max_length=255)
     email_body: str = Field(..., min_length=1)
     in_app_title: str = Field(..., min_length=1, max_length=255)
     in_app_message: str = Field(..., min_length=1)
     variables: List[str] = []
     is_active: bool = True

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "type": "payment_verified",
                    "name": "Payment verified",
                    "subject": "ยืนยันการชำระเงิน - ห้อง {{room_number}}",
                    "email_body": "<p>เรียน คุณ{{name}} ...</p>",
                    "in_app_title": "ยืนยันการชำระเงินเรียบร้อย",
                    "in_app_message": "ห้อง {{room_number}} จำนวน {{amount}} บาท",
                    "variables": ["name", "room_number", "amount"]
               }
          }
     )


class NotificationTemplateResponse(NotificationTemplateUpsert):
     id: int
     version: int
     last_modified_by: Optional[int] = None
     updated_at: datetime

     model_config = ConfigDict(from_attributes=True)
