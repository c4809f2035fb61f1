# routers/notifications.py
"""
Notification inbox API.

Every route is self-or-admin: a user reaches their own notifications, an
admin reaches anyone's. Stats across all users, sending and templates are
admin-only.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_admin
from models import Notification, NotificationTemplate, User
from schemas.notification import (
     GlobalNotificationStats,
     MarkAllReadRequest,
     NotificationListResponse,
     NotificationReadUpdate,
     NotificationResponse,
     NotificationSendRequest,
     NotificationTemplateResponse,
     NotificationTemplateUpsert,
     UserNotificationStats,
)
from services.notification_service import NotificationService, send_to_users, upsert_template
from utils.errors import AuthorizationError, NotFoundError

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


# ---------------------------------------------------------------------------
# Access helpers
# ---------------------------------------------------------------------------

def _resolve_user_id(user: User, requested: Optional[int]) -> int:
     """The caller's id unless an admin asks for someone else."""
     if requested is None or requested == user.id:
          return user.id
     if not user.is_admin:
          raise AuthorizationError()
     return requested


def _get_owned(db: Session, notification_id: int, user: User) -> Notification:
     notification = db.query(Notification).filter(Notification.id == notification_id).first()
     if not notification:
          raise NotFoundError("ไม่พบการแจ้งเตือน")
     if not user.is_admin and notification.user_id != user.id:
          raise AuthorizationError()
     return notification


# ---------------------------------------------------------------------------
# Collection routes (registered before /{notification_id})
# ---------------------------------------------------------------------------

@router.get("", response_model=NotificationListResponse)
def list_notifications(
     user_id: Optional[int] = Query(None),
     limit: int = Query(50, ge=1, le=200),
     include_read: bool = Query(True),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     target = _resolve_user_id(user, user_id)
     notifications, unread_count = NotificationService.list_for_user(db, target, limit=limit, include_read=include_read)
     return {"notifications": notifications, "unread_count": unread_count}


@router.put("/mark-all-read")
def mark_all_read(
     body: Optional[MarkAllReadRequest] = None,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     target = _resolve_user_id(user, body.user_id if body else None)
     modified = NotificationService.mark_all_read(db, target)
     return {"success": True, "modified_count": modified}


@router.get("/stats", response_model=UserNotificationStats)
def user_stats(
     user_id: Optional[int] = Query(None),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     return NotificationService.user_stats(db, _resolve_user_id(user, user_id))


@router.get("/stats/global", response_model=GlobalNotificationStats)
def global_stats(
     days: int = Query(7, ge=1, le=90),
     top: int = Query(5, ge=1, le=50),
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     return NotificationService.global_stats(db, days=days, top=top)


@router.post("/send", response_model=List[NotificationResponse], status_code=status.HTTP_201_CREATED)
def send_notifications(
     body: NotificationSendRequest,
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     return send_to_users(
          db,
          body.user_ids,
          body.type,
          body.title,
          body.message,
          bill_id=body.bill_id,
          send_email=body.send_email,
     )


@router.post("/cleanup")
def cleanup(db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     return {"success": True, "deleted_count": NotificationService.cleanup_old_notifications(db)}


@router.get("/templates", response_model=List[NotificationTemplateResponse])
def list_templates(db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     return db.query(NotificationTemplate).order_by(NotificationTemplate.id).all()


@router.put("/templates", response_model=NotificationTemplateResponse)
def save_template(
     body: NotificationTemplateUpsert,
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     return upsert_template(db, body.model_dump(), modified_by=admin.id)


# ---------------------------------------------------------------------------
# Single notification
# ---------------------------------------------------------------------------

@router.get("/{notification_id}", response_model=NotificationResponse)
def get_notification(notification_id: int, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     return _get_owned(db, notification_id, user)


@router.patch("/{notification_id}", response_model=NotificationResponse)
def set_read_state(
     notification_id: int,
     body: NotificationReadUpdate,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     notification = _get_owned(db, notification_id, user)
     return NotificationService.set_read_state(db, notification, body.read)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(notification_id: int, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     notification = _get_owned(db, notification_id, user)
     return NotificationService.set_read_state(db, notification, True)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(notification_id: int, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     NotificationService.delete_notification(db, _get_owned(db, notification_id, user))
