# services/notification_service.py
"""
Notification Service - per-user in-app inbox plus best-effort email.

In-app notifications are rows in ``notifications``; only the read flag
changes after creation. Email goes out through utils.email after the
session commits and never raises into the caller: a failed or disabled send
is logged.
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional, List, Tuple

from sqlalchemy import event, func
from sqlalchemy.orm import Session

from models import Bill, BillStatus, Notification, NotificationTemplate, NotificationType, Room, User
from models.base import local_now
from utils import email as email_utils
from utils.cache import profile_cache, notification_preferences_key
from utils.errors import NotFoundError
from utils.logger import get_logger
from utils.thai_date import format_baht, format_date, thai_month_year, to_naive_bangkok

logger = get_logger(__name__)

CLEANUP_AFTER_DAYS = 30
OVERDUE_RENOTIFY_HOURS = 24
DEFAULT_LIST_LIMIT = 50


def _resolve_now(now: Optional[datetime]) -> datetime:
     if now is None:
          return local_now()
     return to_naive_bangkok(now) if now.tzinfo else now


class NotificationService:
     """Inbox operations: create, list, read state, delete, cleanup, stats."""

     @staticmethod
     def create_notification(
          db: Session,
          user_id: int,
          type: NotificationType,
          title: str,
          message: str,
          bill_id: Optional[int] = None,
          now: Optional[datetime] = None
     ) -> Notification:
          now = _resolve_now(now)
          notification = Notification(
               user_id=user_id,
               type=type,
               title=title,
               message=message,
               bill_id=bill_id,
               read=False,
               sent_at=now,
               created_at=now,
          )
          db.add(notification)
          db.flush()
          return notification

     @staticmethod
     def list_for_user(
          db: Session,
          user_id: int,
          limit: int = DEFAULT_LIST_LIMIT,
          include_read: bool = True
     ) -> Tuple[List[Notification], int]:
          """Newest first. Returns (notifications, unread_count)."""
          query = db.query(Notification).filter(Notification.user_id == user_id)
          if not include_read:
               query = query.filter(Notification.read.is_(False))
          notifications = (
               query.order_by(Notification.created_at.desc(), Notification.id.desc())
               .limit(limit)
               .all()
          )
          unread_count = (
               db.query(func.count(Notification.id))
               .filter(Notification.user_id == user_id, Notification.read.is_(False))
               .scalar()
          )
          return notifications, unread_count

     @staticmethod
     def set_read_state(db: Session, notification: Notification, read: bool, now: Optional[datetime] = None) -> Notification:
          notification.read = read
          if read:
               if notification.read_at is None:
                    notification.read_at = _resolve_now(now)
          else:
               notification.read_at = None
          db.flush()
          return notification

     @staticmethod
     def mark_all_read(db: Session, user_id: int, now: Optional[datetime] = None) -> int:
          """Flip exactly this user's unread notifications. Returns the modified count."""
          modified = (
               db.query(Notification)
               .filter(Notification.user_id == user_id, Notification.read.is_(False))
               .update(
                    {Notification.read: True, Notification.read_at: _resolve_now(now)},
                    synchronize_session="fetch",
               )
          )
          logger.info("notifications_marked_read", user_id=user_id, modified_count=modified)
          return modified

     @staticmethod
     def delete_notification(db: Session, notification: Notification) -> None:
          db.delete(notification)
          db.flush()

     @staticmethod
     def cleanup_old_notifications(db: Session, now: Optional[datetime] = None, days: int = CLEANUP_AFTER_DAYS) -> int:
          """Delete read notifications created more than ``days`` ago."""
          cutoff = _resolve_now(now) - timedelta(days=days)
          deleted = (
               db.query(Notification)
               .filter(Notification.read.is_(True), Notification.created_at < cutoff)
               .delete(synchronize_session=False)
          )
          logger.info("notifications_cleaned_up", deleted=deleted, cutoff=cutoff.isoformat())
          return deleted

     @staticmethod
     def user_stats(db: Session, user_id: int) -> dict:
          total = db.query(func.count(Notification.id)).filter(Notification.user_id == user_id).scalar()
          unread = (
               db.query(func.count(Notification.id))
               .filter(Notification.user_id == user_id, Notification.read.is_(False))
               .scalar()
          )
          return {"user_id": user_id, "total": total, "unread": unread, "read": total - unread}

     @staticmethod
     def global_stats(db: Session, days: int = 7, top: int = 5, now: Optional[datetime] = None) -> dict:
          """Admin aggregates: totals, per-type counts, daily counts and top unread users."""
          now = _resolve_now(now)
          today = now.replace(hour=0, minute=0, second=0, microsecond=0)
          week_ago = today - timedelta(days=7)
          window_start = today - timedelta(days=days - 1)

          total = db.query(func.count(Notification.id)).scalar()
          unread = db.query(func.count(Notification.id)).filter(Notification.read.is_(False)).scalar()
          read = total - unread
          sent_today = db.query(func.count(Notification.id)).filter(Notification.sent_at >= today).scalar()
          sent_this_week = db.query(func.count(Notification.id)).filter(Notification.sent_at >= week_ago).scalar()

          by_type = {t.value: 0 for t in NotificationType}
          for type_, count in db.query(Notification.type, func.count(Notification.id)).group_by(Notification.type):
               by_type[type_.value] = count

          # Bucketed in Python so the query stays portable across dialects
          created = [
               row[0].date()
               for row in db.query(Notification.created_at).filter(Notification.created_at >= window_start)
          ]
          per_day = Counter(created)
          daily = [
               {"date": (window_start + timedelta(days=i)).date().isoformat(),
                "count": per_day.get((window_start + timedelta(days=i)).date(), 0)}
               for i in range(days)
          ]

          unread_count = func.count(Notification.id).label("unread")
          top_rows = (
               db.query(User.id, User.name, User.email, unread_count)
               .join(Notification, Notification.user_id == User.id)
               .filter(Notification.read.is_(False))
               .group_by(User.id, User.name, User.email)
               .order_by(unread_count.desc(), User.id)
               .limit(top)
               .all()
          )

          return {
               "total": total,
               "unread": unread,
               "read": read,
               "read_rate": round(read / total * 100) if total else 0,
               "sent_today": sent_today,
               "sent_this_week": sent_this_week,
               "by_type": by_type,
               "daily": daily,
               "top_unread_users": [
                    {"user_id": row.id, "name": row.name, "email": row.email, "unread": row.unread}
                    for row in top_rows
               ],
          }


# ---------------------------------------------------------------------------
# Preferences & email
# ---------------------------------------------------------------------------

def get_notification_preferences(db: Session, user_id: int) -> Optional[dict]:
     """Cached for five minutes per process."""
     def load():
          user = db.query(User).filter(User.id == user_id).first()
          return user.get_notification_preferences() if user else None
     return profile_cache.get_or_set(notification_preferences_key(user_id), load)


def invalidate_notification_preferences(user_id: int) -> None:
     profile_cache.delete(notification_preferences_key(user_id))


PENDING_EMAILS_KEY = "pending_emails"


def _queue_after_commit(db: Session, deliver) -> None:
     # Keyed by the innermost open transaction so a rolled-back savepoint drops its own emails
     transaction = db.get_nested_transaction() or db.get_transaction()
     db.info.setdefault(PENDING_EMAILS_KEY, []).append((transaction, deliver))


@event.listens_for(Session, "after_commit")
def _deliver_pending_emails(session: Session) -> None:
     for _, deliver in session.info.pop(PENDING_EMAILS_KEY, []):
          deliver()


@event.listens_for(Session, "after_soft_rollback")
def _drop_pending_emails(session: Session, previous_transaction) -> None:
     pending = session.info.get(PENDING_EMAILS_KEY)
     if not pending:
          return
     if previous_transaction.nested:
          session.info[PENDING_EMAILS_KEY] = [item for item in pending if item[0] is not previous_transaction]
     else:
          session.info.pop(PENDING_EMAILS_KEY, None)


def _deliver_email(to_email: str, subject: str, html: str, user_id: int, type_value: str) -> None:
     try:
          email_utils.send_email(to_email, subject, html)
          logger.info("email_sent", user_id=user_id, type=type_value)
     except email_utils.EmailNotConfiguredError:
          logger.debug("email_disabled", user_id=user_id, type=type_value)
     except Exception as e:
          logger.warning("email_send_failed", user_id=user_id, type=type_value, error=str(e))


def send_notification_email(
     db: Session,
     user: User,
     type: NotificationType,
     data: dict,
     fallback_subject: str,
     fallback_html: str
) -> bool:
     """
     Queue an email for a notification event. Uses the active template for the
     type when one exists.

     Delivery happens once the session commits and is dropped if the
     transaction rolls back, so nobody is emailed about a change that was
     never saved. Returns False if skipped by preference or rendering failed;
     never raises.
     """
     try:
          prefs = get_notification_preferences(db, user.id) or {}
          email_prefs = prefs.get("email", {})
          if not email_prefs.get("enabled", True) or not email_prefs.get(type.value, True):
               logger.debug("email_skipped_by_preference", user_id=user.id, type=type.value)
               return False

          subject, html = fallback_subject, fallback_html
          template = (
               db.query(NotificationTemplate)
               .filter(NotificationTemplate.type == type, NotificationTemplate.is_active.is_(True))
               .first()
          )
          if template is not None:
               rendered = template.render(data)
               subject, html = rendered["subject"], rendered["email_body"]

          to_email, user_id, type_value = user.email, user.id, type.value
          _queue_after_commit(db, lambda: _deliver_email(to_email, subject, html, user_id, type_value))
          return True
     except Exception as e:
          logger.warning("email_prepare_failed", user_id=user.id, type=type.value, error=str(e))
          return False


# ---------------------------------------------------------------------------
# Event notifications
# ---------------------------------------------------------------------------

def notify_bill_generated(db: Session, bill: Bill, room: Room, tenant: User, now: Optional[datetime] = None) -> Notification:
     period = thai_month_year(bill.month, bill.year)
     due_date = format_date(bill.due_date)
     notification = NotificationService.create_notification(
          db,
          user_id=tenant.id,
          type=NotificationType.BILL_GENERATED,
          title=f"บิลค่าเช่าประจำเดือน {period}",
          message=(
               f"บิลค่าเช่าห้อง {room.room_number} ประจำเดือน {period} "
               f"จำนวน {format_baht(bill.total_amount)} บาท กรุณาชำระภายในวันที่ {due_date}"
          ),
          bill_id=bill.id,
          now=now,
     )
     send_notification_email(
          db,
          tenant,
          NotificationType.BILL_GENERATED,
          {
               "name": tenant.name,
               "room_number": room.room_number,
               "amount": format_baht(bill.total_amount),
               "due_date": due_date,
               "period": period,
          },
          fallback_subject=f"บิลค่าเช่าประจำเดือน {period} - ห้อง {room.room_number}",
          fallback_html=email_utils.bill_generated_email(tenant.name, room.room_number, bill.total_amount, due_date, period),
     )
     return notification


def notify_payment_verified(db: Session, bill: Bill, user: User, now: Optional[datetime] = None) -> Notification:
     room_number = bill.room.room_number
     notification = NotificationService.create_notification(
          db,
          user_id=user.id,
          type=NotificationType.PAYMENT_VERIFIED,
          title="ยืนยันการชำระเงินเรียบร้อย",
          message=(
               f"เราได้รับและยืนยันการชำระเงินของคุณสำหรับห้อง {room_number} "
               f"จำนวน {format_baht(bill.total_amount)} บาท"
          ),
          bill_id=bill.id,
          now=now,
     )
     send_notification_email(
          db,
          user,
          NotificationType.PAYMENT_VERIFIED,
          {"name": user.name, "room_number": room_number, "amount": format_baht(bill.total_amount)},
          fallback_subject=f"ยืนยันการชำระเงิน - ห้อง {room_number}",
          fallback_html=email_utils.payment_verified_email(user.name, room_number, bill.total_amount),
     )
     return notification


def notify_payment_rejected(db: Session, bill: Bill, user: User, reason: str, now: Optional[datetime] = None) -> Notification:
     room_number = bill.room.room_number
     notification = NotificationService.create_notification(
          db,
          user_id=user.id,
          type=NotificationType.PAYMENT_REJECTED,
          title="ไม่สามารถยืนยันการชำระได้",
          message=f"ไม่สามารถยืนยันการชำระเงินสำหรับห้อง {room_number} ได้ เพราะ {reason}",
          bill_id=bill.id,
          now=now,
     )
     send_notification_email(
          db,
          user,
          NotificationType.PAYMENT_REJECTED,
          {"name": user.name, "room_number": room_number, "reason": reason},
          fallback_subject=f"ไม่สามารถยืนยันการชำระ - ห้อง {room_number}",
          fallback_html=email_utils.payment_rejected_email(user.name, room_number, reason),
     )
     return notification


def send_to_users(
     db: Session,
     user_ids: List[int],
     type: NotificationType,
     title: str,
     message: str,
     bill_id: Optional[int] = None,
     send_email: bool = False
) -> List[Notification]:
     """Admin broadcast. All recipients must exist or nothing is created."""
     users = db.query(User).filter(User.id.in_(user_ids)).all()
     missing = set(user_ids) - {user.id for user in users}
     if missing:
          raise NotFoundError("ไม่พบผู้ใช้", details={"user_ids": sorted(missing)})

     notifications = []
     for user in users:
          notifications.append(
               NotificationService.create_notification(db, user.id, type, title, message, bill_id=bill_id)
          )
          if send_email:
               send_notification_email(
                    db,
                    user,
                    type,
                    {"name": user.name, "title": title, "message": message},
                    fallback_subject=title,
                    fallback_html=email_utils.announcement_email(user.name, title, message),
               )
     logger.info("notifications_sent", type=type.value, recipients=len(notifications), email=send_email)
     return notifications


def _open_bills(db: Session):
     return db.query(Bill).filter(Bill.status.in_([BillStatus.PENDING, BillStatus.PAID]))


def send_payment_reminders(db: Session, days_before: int, now: Optional[datetime] = None) -> int:
     """Remind tenants whose open bill falls due exactly ``days_before`` days from today."""
     now = _resolve_now(now)
     target = now.date() + timedelta(days=days_before)
     bills = _open_bills(db).filter(Bill.due_date == target).all()

     count = 0
     for bill in bills:
          user, room = bill.tenant, bill.room
          if not user or not room:
               continue
          try:
               with db.begin_nested():
                    due_date = format_date(bill.due_date)
                    NotificationService.create_notification(
                         db,
                         user_id=user.id,
                         type=NotificationType.PAYMENT_REMINDER,
                         title=f"แจ้งเตือนการชำระเงิน {days_before} วัน",
                         message=(
                              f"กรุณาชำระค่าเช่าห้อง {room.room_number} จำนวน {format_baht(bill.total_amount)} บาท "
                              f"ภายในวันที่ {due_date}"
                         ),
                         bill_id=bill.id,
                         now=now,
                    )
               send_notification_email(
                    db,
                    user,
                    NotificationType.PAYMENT_REMINDER,
                    {"name": user.name, "room_number": room.room_number,
                     "amount": format_baht(bill.total_amount), "due_date": due_date},
                    fallback_subject=f"แจ้งเตือนการชำระเงิน - ห้อง {room.room_number}",
                    fallback_html=email_utils.payment_reminder_email(user.name, room.room_number, bill.total_amount, due_date),
               )
               count += 1
          except Exception:
               logger.exception("payment_reminder_failed", bill_id=bill.id)

     logger.info("payment_reminders_sent", days_before=days_before, count=count)
     return count


def send_overdue_notifications(db: Session, now: Optional[datetime] = None) -> int:
     """
     Notify tenants of open bills past their due date, at most once per bill
     per 24 hours.
     """
     now = _resolve_now(now)
     bills = _open_bills(db).filter(Bill.due_date < now.date()).all()
     since = now - timedelta(hours=OVERDUE_RENOTIFY_HOURS)

     count = 0
     for bill in bills:
          user, room = bill.tenant, bill.room
          if not user or not room:
               continue
          already_sent = (
               db.query(Notification.id)
               .filter(
                    Notification.user_id == user.id,
                    Notification.bill_id == bill.id,
                    Notification.type == NotificationType.OVERDUE,
                    Notification.sent_at >= since,
               )
               .first()
          )
          if already_sent:
               continue
          try:
               with db.begin_nested():
                    due_date = format_date(bill.due_date)
                    NotificationService.create_notification(
                         db,
                         user_id=user.id,
                         type=NotificationType.OVERDUE,
                         title="เตือนการชำระเงินเกินกำหนด",
                         message=(
                              f"กรุณาชำระค่าเช่าห้อง {room.room_number} จำนวน {format_baht(bill.total_amount)} บาท "
                              f"ซึ่งเกินกำหนดวันที่ {due_date} แล้ว"
                         ),
                         bill_id=bill.id,
                         now=now,
                    )
               send_notification_email(
                    db,
                    user,
                    NotificationType.OVERDUE,
                    {"name": user.name, "room_number": room.room_number,
                     "amount": format_baht(bill.total_amount), "due_date": due_date},
                    fallback_subject=f"แจ้งเตือนค้างชำระ - ห้อง {room.room_number}",
                    fallback_html=email_utils.overdue_email(user.name, room.room_number, bill.total_amount, due_date),
               )
               count += 1
          except Exception:
               logger.exception("overdue_notification_failed", bill_id=bill.id)

     logger.info("overdue_notifications_sent", count=count)
     return count


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def upsert_template(db: Session, data: dict, modified_by: Optional[int] = None) -> NotificationTemplate:
     """Create the template for a type, or update it and bump its version."""
     template = db.query(NotificationTemplate).filter(NotificationTemplate.type == data["type"]).first()
     if template is None:
          template = NotificationTemplate(**data, version=1, last_modified_by=modified_by)
          db.add(template)
     else:
          for key, value in data.items():
               setattr(template, key, value)
          template.version += 1
          template.last_modified_by = modified_by
     db.flush()
     return template
