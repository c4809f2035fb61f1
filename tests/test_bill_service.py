from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from models import Bill, BillStatus, Notification, NotificationType
from services import bill_service
from services.bill_service import BillService, compute_due_date
from utils.errors import ConflictError, ValidationError

MARCH_10 = datetime(2024, 3, 10, 9, 0)


class TestDueDate:

    def test_before_the_25th_is_this_month(self):
        assert compute_due_date(date(2024, 3, 10)) == date(2024, 3, 25)

    def test_on_the_25th_is_this_month(self):
        assert compute_due_date(date(2024, 3, 25)) == date(2024, 3, 25)

    def test_after_the_25th_rolls_to_next_month(self):
        assert compute_due_date(date(2024, 3, 26)) == date(2024, 4, 25)

    def test_december_rolls_to_january(self):
        assert compute_due_date(date(2024, 12, 28)) == date(2025, 1, 25)


class TestGenerateMonthlyBills:

    def test_creates_bill_for_occupied_room(self, db, tenant, make_room):
        room = make_room("101", 3000, 100, 50, tenant=tenant)

        created = BillService.generate_monthly_bills(db, now=MARCH_10)
        db.commit()

        assert created == 1
        bill = db.query(Bill).one()
        assert bill.room_id == room.id
        assert bill.tenant_id == tenant.id
        assert (bill.month, bill.year) == (3, 2024)
        assert bill.rent_amount == Decimal("3000")
        assert bill.water_amount == Decimal("100")
        assert bill.electricity_amount == Decimal("50")
        assert bill.total_amount == Decimal("3150")
        assert bill.due_date == date(2024, 3, 25)
        assert bill.status == BillStatus.PENDING

    def test_emits_one_bill_generated_notification(self, db, tenant, make_room, sent_emails):
        make_room("101", tenant=tenant)

        BillService.generate_monthly_bills(db, now=MARCH_10)
        db.commit()

        notifications = db.query(Notification).all()
        assert len(notifications) == 1
        notification = notifications[0]
        assert notification.user_id == tenant.id
        assert notification.type == NotificationType.BILL_GENERATED
        assert "มีนาคม 2567" in notification.title
        assert "3,150" in notification.message
        assert "25/03/2024" in notification.message
        assert len(sent_emails) == 1
        assert sent_emails[0]["to"] == tenant.email

    def test_rerun_for_same_period_creates_nothing(self, db, tenant, make_room):
        make_room("101", tenant=tenant)

        assert BillService.generate_monthly_bills(db, now=MARCH_10) == 1
        db.commit()
        assert BillService.generate_monthly_bills(db, now=datetime(2024, 3, 20, 8, 0)) == 0
        db.commit()

        assert db.query(Bill).count() == 1
        assert db.query(Notification).count() == 1

    def test_vacant_rooms_are_ignored(self, db, tenant, make_room):
        make_room("101", tenant=tenant)
        make_room("102")

        assert BillService.generate_monthly_bills(db, now=MARCH_10) == 1

    def test_after_the_25th_bill_is_due_next_month(self, db, tenant, make_room):
        make_room("101", tenant=tenant)

        BillService.generate_monthly_bills(db, now=datetime(2024, 3, 28, 8, 0))

        bill = db.query(Bill).one()
        assert (bill.month, bill.year) == (3, 2024)
        assert bill.due_date == date(2024, 4, 25)

    def test_failure_on_one_room_does_not_stop_the_batch(self, db, tenant, other_tenant, make_room, monkeypatch):
        first = make_room("101", tenant=tenant)
        make_room("102", tenant=other_tenant)
        real_notify = bill_service.notify_bill_generated

        def flaky_notify(db_, bill, room, tenant_, now=None):
            if room.id == first.id:
                raise RuntimeError("boom")
            return real_notify(db_, bill, room, tenant_, now=now)

        monkeypatch.setattr(bill_service, "notify_bill_generated", flaky_notify)

        created = BillService.generate_monthly_bills(db, now=MARCH_10)
        db.commit()

        assert created == 1
        bills = db.query(Bill).all()
        assert [b.room.room_number for b in bills] == ["102"]

    def test_unique_constraint_skips_duplicate_missed_by_precheck(self, db, tenant, make_room, monkeypatch):
        make_room("101", tenant=tenant)
        assert BillService.generate_monthly_bills(db, now=MARCH_10) == 1
        db.commit()

        # A concurrent run that checked before the first bill was committed
        monkeypatch.setattr(bill_service, "bill_exists", lambda *args: False)

        assert BillService.generate_monthly_bills(db, now=MARCH_10) == 0
        db.commit()

        assert db.query(Bill).count() == 1
        assert db.query(Notification).count() == 1


class TestGenerationStats:

    def test_stats_for_current_period(self, db, tenant, make_room):
        make_room("101", tenant=tenant)
        make_room("102")
        BillService.generate_monthly_bills(db, now=MARCH_10)
        db.commit()

        stats = BillService.get_bill_generation_stats(db, now=MARCH_10)

        assert stats["month"] == 3
        assert stats["year"] == 2024
        assert stats["bills_generated"] == 1
        assert stats["total_rooms"] == 2
        assert stats["occupied_rooms"] == 1
        assert stats["pending_bills"] == 1
        assert stats["paid_bills"] == 0
        assert stats["completion_rate"] == 1.0

    def test_completion_rate_is_zero_without_occupied_rooms(self, db, make_room):
        make_room("101")

        stats = BillService.get_bill_generation_stats(db, now=MARCH_10)

        assert stats["completion_rate"] == 0

    def test_aware_time_uses_bangkok_period(self, db, tenant, make_room):
        make_room("101", tenant=tenant)
        # 2024-03-31 18:00 UTC is already 1 April in Bangkok
        utc_evening = datetime(2024, 3, 31, 18, 0, tzinfo=timezone.utc)
        BillService.generate_monthly_bills(db, now=utc_evening)
        db.commit()

        stats = BillService.get_bill_generation_stats(db, now=utc_evening)

        assert (stats["month"], stats["year"]) == (4, 2024)
        assert stats["bills_generated"] == 1


class TestManualBills:

    def test_create_defaults_to_room_prices(self, db, tenant, make_room):
        room = make_room("101", tenant=tenant)

        bill = BillService.create_bill(db, {"room_id": room.id, "month": 4, "year": 2024, "electricity_amount": Decimal("75")})

        assert bill.rent_amount == Decimal("3000")
        assert bill.total_amount == Decimal("3175")
        assert bill.due_date == date(2024, 4, 25)

    def test_duplicate_period_conflicts(self, db, tenant, make_room):
        room = make_room("101", tenant=tenant)
        BillService.create_bill(db, {"room_id": room.id, "month": 4, "year": 2024})

        with pytest.raises(ConflictError):
            BillService.create_bill(db, {"room_id": room.id, "month": 4, "year": 2024})

    def test_duplicate_missed_by_precheck_conflicts(self, db, tenant, make_room, monkeypatch):
        room = make_room("101", tenant=tenant)
        BillService.create_bill(db, {"room_id": room.id, "month": 4, "year": 2024})
        monkeypatch.setattr(bill_service, "bill_exists", lambda *args: False)

        with pytest.raises(ConflictError):
            BillService.create_bill(db, {"room_id": room.id, "month": 4, "year": 2024})
        assert db.query(Bill).count() == 1

    def test_vacant_room_rejected(self, db, make_room):
        room = make_room("101")

        with pytest.raises(ValidationError):
            BillService.create_bill(db, {"room_id": room.id, "month": 4, "year": 2024})

    def test_update_recomputes_total(self, db, tenant, make_room):
        room = make_room("101", tenant=tenant)
        bill = BillService.create_bill(db, {"room_id": room.id, "month": 4, "year": 2024})

        updated = BillService.update_bill(db, bill.id, {"water_amount": Decimal("250")})

        assert updated.total_amount == Decimal("3300")
