from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from models import Bill, BillStatus, Notification, NotificationType
from services.notification_service import (
    NotificationService,
    get_notification_preferences,
    invalidate_notification_preferences,
    send_notification_email,
    send_overdue_notifications,
    send_payment_reminders,
    send_to_users,
    upsert_template,
)
from utils.errors import NotFoundError

NOW = datetime(2024, 3, 20, 9, 0)


def _notify(db, user, now=NOW, type=NotificationType.PAYMENT_REMINDER, title="t"):
    return NotificationService.create_notification(db, user.id, type, title, "message", now=now)


def _bill(db, room, tenant, due_date, status=BillStatus.PENDING, month=3):
    bill = Bill(
        room_id=room.id,
        tenant_id=tenant.id,
        month=month,
        year=2024,
        rent_amount=Decimal("3000"),
        water_amount=Decimal("100"),
        electricity_amount=Decimal("50"),
        total_amount=Decimal("3150"),
        due_date=due_date,
        status=status,
    )
    db.add(bill)
    db.commit()
    return bill


class TestInbox:

    def test_list_is_newest_first_with_unread_count(self, db, tenant):
        first = _notify(db, tenant, now=NOW - timedelta(hours=2), title="first")
        second = _notify(db, tenant, now=NOW - timedelta(hours=1), title="second")
        third = _notify(db, tenant, now=NOW, title="third")
        NotificationService.set_read_state(db, first, True)
        db.commit()

        notifications, unread_count = NotificationService.list_for_user(db, tenant.id)

        assert [n.id for n in notifications] == [third.id, second.id, first.id]
        assert unread_count == 2

    def test_list_excluding_read(self, db, tenant):
        read = _notify(db, tenant)
        _notify(db, tenant)
        NotificationService.set_read_state(db, read, True)

        notifications, _ = NotificationService.list_for_user(db, tenant.id, include_read=False)

        assert len(notifications) == 1
        assert notifications[0].read is False

    def test_list_respects_limit(self, db, tenant):
        for _ in range(5):
            _notify(db, tenant)

        notifications, unread_count = NotificationService.list_for_user(db, tenant.id, limit=3)

        assert len(notifications) == 3
        assert unread_count == 5

    def test_marking_unread_clears_read_at(self, db, tenant):
        notification = _notify(db, tenant)
        NotificationService.set_read_state(db, notification, True, now=NOW)
        assert notification.read_at == NOW

        NotificationService.set_read_state(db, notification, False)

        assert notification.read is False
        assert notification.read_at is None

    def test_mark_all_read_only_touches_that_user(self, db, tenant, other_tenant):
        for _ in range(3):
            _notify(db, tenant)
        already_read = _notify(db, tenant)
        NotificationService.set_read_state(db, already_read, True, now=NOW - timedelta(days=1))
        for _ in range(2):
            _notify(db, other_tenant)
        db.commit()

        modified = NotificationService.mark_all_read(db, tenant.id, now=NOW)
        db.commit()

        assert modified == 3
        assert NotificationService.user_stats(db, tenant.id)["unread"] == 0
        assert NotificationService.user_stats(db, other_tenant.id)["unread"] == 2
        assert already_read.read_at == NOW - timedelta(days=1)

    def test_cleanup_deletes_only_old_read_notifications(self, db, tenant):
        old_read = _notify(db, tenant, now=NOW - timedelta(days=40))
        NotificationService.set_read_state(db, old_read, True)
        _notify(db, tenant, now=NOW - timedelta(days=40))
        recent_read = _notify(db, tenant, now=NOW - timedelta(days=5))
        NotificationService.set_read_state(db, recent_read, True)
        db.commit()

        deleted = NotificationService.cleanup_old_notifications(db, now=NOW)
        db.commit()

        assert deleted == 1
        assert db.query(Notification).count() == 2


class TestStats:

    def test_user_stats(self, db, tenant):
        read = _notify(db, tenant)
        _notify(db, tenant)
        NotificationService.set_read_state(db, read, True)

        assert NotificationService.user_stats(db, tenant.id) == {"user_id": tenant.id, "total": 2, "unread": 1, "read": 1}

    def test_global_stats(self, db, tenant, other_tenant):
        read = _notify(db, tenant, type=NotificationType.OVERDUE)
        NotificationService.set_read_state(db, read, True)
        _notify(db, tenant, now=NOW - timedelta(days=3))
        for _ in range(2):
            _notify(db, other_tenant)
        db.commit()

        stats = NotificationService.global_stats(db, days=7, now=NOW)

        assert stats["total"] == 4
        assert stats["unread"] == 3
        assert stats["read_rate"] == 25
        assert stats["sent_today"] == 3
        assert stats["sent_this_week"] == 4
        assert set(stats["by_type"]) == {t.value for t in NotificationType}
        assert stats["by_type"]["overdue"] == 1
        assert stats["by_type"]["payment_verified"] == 0
        assert len(stats["daily"]) == 7
        assert stats["daily"][-1] == {"date": "2024-03-20", "count": 3}
        assert [u["user_id"] for u in stats["top_unread_users"]] == [other_tenant.id, tenant.id]

    def test_global_stats_empty(self, db):
        stats = NotificationService.global_stats(db, now=NOW)

        assert stats["total"] == 0
        assert stats["read_rate"] == 0
        assert stats["top_unread_users"] == []


class TestReminders:

    def test_payment_reminder_targets_due_date(self, db, tenant, make_room, sent_emails):
        room = make_room("101", tenant=tenant)
        _bill(db, room, tenant, due_date=date(2024, 3, 25))

        assert send_payment_reminders(db, 5, now=NOW) == 1
        assert send_payment_reminders(db, 1, now=NOW) == 0
        db.commit()

        notification = db.query(Notification).one()
        assert notification.type == NotificationType.PAYMENT_REMINDER
        assert "25/03/2024" in notification.message
        assert len(sent_emails) == 1

    def test_reminder_skips_verified_bills(self, db, tenant, make_room):
        room = make_room("101", tenant=tenant)
        _bill(db, room, tenant, due_date=date(2024, 3, 25), status=BillStatus.VERIFIED)

        assert send_payment_reminders(db, 5, now=NOW) == 0

    def test_overdue_is_sent_once_per_24_hours(self, db, tenant, make_room):
        room = make_room("101", tenant=tenant)
        _bill(db, room, tenant, due_date=date(2024, 3, 15), status=BillStatus.PAID)

        assert send_overdue_notifications(db, now=NOW) == 1
        assert send_overdue_notifications(db, now=NOW + timedelta(hours=2)) == 0
        assert send_overdue_notifications(db, now=NOW + timedelta(hours=25)) == 1

    def test_overdue_ignores_bills_not_yet_due(self, db, tenant, make_room):
        room = make_room("101", tenant=tenant)
        _bill(db, room, tenant, due_date=date(2024, 3, 20))

        assert send_overdue_notifications(db, now=NOW) == 0


class TestEmail:

    def test_email_disabled_by_preference(self, db, tenant, sent_emails):
        tenant.notification_preferences = {"email": {"enabled": False}}
        db.commit()

        sent = send_notification_email(db, tenant, NotificationType.OVERDUE, {}, "subject", "<p>x</p>")

        assert sent is False
        assert sent_emails == []

    def test_per_type_preference(self, db, tenant, sent_emails):
        tenant.notification_preferences = {"email": {"overdue": False}}
        db.commit()

        assert send_notification_email(db, tenant, NotificationType.OVERDUE, {}, "s", "h") is False
        assert send_notification_email(db, tenant, NotificationType.PAYMENT_REMINDER, {}, "s", "h") is True

    def test_preferences_are_cached_until_invalidated(self, db, tenant):
        assert get_notification_preferences(db, tenant.id)["email"]["enabled"] is True

        tenant.notification_preferences = {"email": {"enabled": False}}
        db.commit()
        assert get_notification_preferences(db, tenant.id)["email"]["enabled"] is True

        invalidate_notification_preferences(tenant.id)
        assert get_notification_preferences(db, tenant.id)["email"]["enabled"] is False

    def test_active_template_is_used(self, db, admin, tenant, sent_emails):
        upsert_template(db, {
            "type": NotificationType.PAYMENT_REMINDER,
            "name": "Reminder",
            "subject": "ห้อง {{room_number}} ครบกำหนด {{due_date}}",
            "email_body": "<p>{{name}} {{unknown}}</p>",
            "in_app_title": "t",
            "in_app_message": "m",
            "variables": ["room_number", "due_date", "name"],
            "is_active": True,
        }, modified_by=admin.id)

        send_notification_email(
            db, tenant, NotificationType.PAYMENT_REMINDER,
            {"room_number": "101", "due_date": "25/03/2024", "name": "สมชาย"},
            "fallback", "<p>fallback</p>",
        )
        db.commit()

        assert sent_emails[0]["subject"] == "ห้อง 101 ครบกำหนด 25/03/2024"
        assert sent_emails[0]["html"] == "<p>สมชาย {{unknown}}</p>"

    def test_template_upsert_increments_version(self, db, admin):
        data = {
            "type": NotificationType.OVERDUE,
            "name": "Overdue",
            "subject": "s",
            "email_body": "b",
            "in_app_title": "t",
            "in_app_message": "m",
            "variables": [],
            "is_active": True,
        }
        template = upsert_template(db, data, modified_by=admin.id)
        assert template.version == 1

        updated = upsert_template(db, {**data, "subject": "s2"}, modified_by=admin.id)

        assert updated.id == template.id
        assert updated.version == 2
        assert updated.subject == "s2"


class TestEmailDelivery:

    def _send(self, db, user):
        return send_notification_email(db, user, NotificationType.OVERDUE, {}, "subject", "<p>x</p>")

    def test_email_waits_for_commit(self, db, tenant, sent_emails):
        assert self._send(db, tenant) is True
        assert sent_emails == []

        db.commit()

        assert [e["to"] for e in sent_emails] == [tenant.email]

    def test_rollback_drops_queued_email(self, db, tenant, sent_emails):
        self._send(db, tenant)
        db.rollback()
        db.commit()

        assert sent_emails == []

    def test_rolled_back_savepoint_drops_only_its_email(self, db, tenant, other_tenant, sent_emails):
        with pytest.raises(RuntimeError):
            with db.begin_nested():
                self._send(db, tenant)
                raise RuntimeError("row failed")
        self._send(db, other_tenant)
        db.commit()

        assert [e["to"] for e in sent_emails] == [other_tenant.email]

    def test_delivery_failure_after_commit_is_logged_not_raised(self, db, tenant, monkeypatch):
        from utils import email as email_utils

        def broken_send(*args, **kwargs):
            raise RuntimeError("smtp down")

        monkeypatch.setattr(email_utils, "send_email", broken_send)
        self._send(db, tenant)

        db.commit()


class TestSend:

    def test_send_to_users(self, db, tenant, other_tenant, sent_emails):
        notifications = send_to_users(
            db, [tenant.id, other_tenant.id], NotificationType.PAYMENT_REMINDER, "ประกาศ", "ข้อความ", send_email=True
        )
        db.commit()

        assert {n.user_id for n in notifications} == {tenant.id, other_tenant.id}
        assert len(sent_emails) == 2

    def test_unknown_recipient(self, db, tenant):
        with pytest.raises(NotFoundError):
            send_to_users(db, [tenant.id, 999], NotificationType.OVERDUE, "t", "m")
        assert db.query(Notification).count() == 0
