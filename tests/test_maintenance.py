from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from models import MaintenanceCategory, MaintenancePriority, MaintenanceRequest, MaintenanceStatus
from services.maintenance_service import MaintenanceService
from services.room_service import RoomService
from utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError


def _payload(room, **overrides):
    data = {
        "room_id": room.id,
        "category": MaintenanceCategory.PLUMBING,
        "title": "ก๊อกน้ำรั่ว",
        "description": "น้ำหยดตลอดคืน",
        "priority": MaintenancePriority.MEDIUM,
    }
    data.update(overrides)
    return data


def _report(db, user, room, reported_at=None, **overrides):
    request = MaintenanceService.create_request(db, user, _payload(room, **overrides))
    if reported_at is not None:
        request.reported_at = reported_at
    db.commit()
    return request


class TestCreate:

    def test_tenant_reports_for_own_room(self, db, tenant, make_room):
        room = make_room("101", tenant=tenant)

        request = _report(db, tenant, room, scheduled_date=date(2024, 4, 1), assigned_to="ช่างเอก", notes="ด่วน")

        assert request.status == MaintenanceStatus.PENDING
        assert request.tenant_id == tenant.id
        assert request.created_by == tenant.id
        assert request.scheduled_date is None
        assert request.assigned_to is None
        assert request.notes == "ด่วน"

    def test_tenant_cannot_report_for_another_room(self, db, tenant, other_tenant, make_room):
        make_room("101", tenant=tenant)
        other_room = make_room("102", tenant=other_tenant)

        with pytest.raises(AuthorizationError):
            MaintenanceService.create_request(db, tenant, _payload(other_room))

    def test_admin_report_links_current_occupant(self, db, admin, tenant, make_room):
        room = make_room("101", tenant=tenant)
        vacant = make_room("102")

        occupied_request = _report(db, admin, room, assigned_to="ช่างเอก")
        vacant_request = _report(db, admin, vacant)

        assert occupied_request.tenant_id == tenant.id
        assert occupied_request.assigned_to == "ช่างเอก"
        assert vacant_request.tenant_id is None

    def test_missing_room(self, db, admin, make_room):
        room = make_room("101")
        with pytest.raises(NotFoundError):
            MaintenanceService.create_request(db, admin, {**_payload(room), "room_id": 999})


class TestQuery:

    def test_tenant_sees_only_own_requests(self, db, admin, tenant, other_tenant, make_room):
        room = make_room("101", tenant=tenant)
        other_room = make_room("102", tenant=other_tenant)
        mine = _report(db, tenant, room)
        theirs = _report(db, other_tenant, other_room)

        requests, total = MaintenanceService.list_requests(db, tenant)
        assert [r.id for r in requests] == [mine.id]
        assert total == 1

        with pytest.raises(AuthorizationError):
            MaintenanceService.get_request(db, theirs.id, tenant)

        _, admin_total = MaintenanceService.list_requests(db, admin)
        assert admin_total == 2

    def test_filters_and_inclusive_date_range(self, db, admin, tenant, make_room):
        room = make_room("101", tenant=tenant)
        _report(db, admin, room, reported_at=datetime(2024, 3, 1, 8, 0))
        late = _report(db, admin, room, reported_at=datetime(2024, 3, 31, 23, 30), priority=MaintenancePriority.URGENT)
        _report(db, admin, room, reported_at=datetime(2024, 4, 2, 9, 0), category=MaintenanceCategory.ELECTRICAL)

        march, total = MaintenanceService.list_requests(
            db, admin, from_date=date(2024, 3, 1), to_date=date(2024, 3, 31)
        )
        assert total == 2

        urgent, _ = MaintenanceService.list_requests(db, admin, priority=MaintenancePriority.URGENT)
        assert [r.id for r in urgent] == [late.id]

        electrical, _ = MaintenanceService.list_requests(db, admin, category=MaintenanceCategory.ELECTRICAL)
        assert len(electrical) == 1

    def test_pagination(self, db, admin, make_room):
        room = make_room("101")
        for _ in range(5):
            _report(db, admin, room)

        page, total = MaintenanceService.list_requests(db, admin, page=2, page_size=2)

        assert total == 5
        assert len(page) == 2

    def test_missing_request(self, db, admin):
        with pytest.raises(NotFoundError):
            MaintenanceService.get_request(db, 999, admin)


class TestBulkChanges:

    def test_completing_stamps_completed_at(self, db, admin, make_room):
        room = make_room("101")
        first = _report(db, admin, room)
        second = _report(db, admin, room)

        count = MaintenanceService.bulk_update(
            db, [first.id, second.id, 999], {"status": MaintenanceStatus.COMPLETED, "cost": Decimal("350")}
        )
        db.commit()

        assert count == 2
        assert first.completed_at is not None
        assert second.cost == Decimal("350")

    def test_given_completed_at_is_kept(self, db, admin, make_room):
        room = make_room("101")
        request = _report(db, admin, room)
        done = datetime(2024, 3, 5, 14, 0)

        MaintenanceService.bulk_update(db, [request.id], {"status": MaintenanceStatus.COMPLETED, "completed_at": done})

        assert request.completed_at == done

    def test_empty_update_is_rejected(self, db, admin, make_room):
        room = make_room("101")
        request = _report(db, admin, room)

        with pytest.raises(ValidationError):
            MaintenanceService.bulk_update(db, [request.id], {})

    def test_bulk_delete_counts_matches(self, db, admin, make_room):
        room = make_room("101")
        ids = [_report(db, admin, room).id for _ in range(3)]

        deleted = MaintenanceService.bulk_delete(db, ids[:2] + [999])
        db.commit()

        assert deleted == 2
        assert db.query(MaintenanceRequest).count() == 1

    def test_room_with_requests_cannot_be_deleted(self, db, admin, make_room):
        room = make_room("101")
        _report(db, admin, room)

        with pytest.raises(ConflictError):
            RoomService.delete_room(db, room.id)


class TestAnalytics:

    def test_empty(self, db):
        analytics = MaintenanceService.get_analytics(db)

        assert analytics["overall"]["total"] == 0
        assert analytics["overall"]["avg_cost"] is None
        assert analytics["completion_time"] == {"avg_days": None, "min_days": None, "max_days": None}
        assert analytics["top_rooms"] == []

    def test_figures(self, db, admin, make_room):
        room_a = make_room("101")
        room_b = make_room("102")
        reported = datetime(2024, 3, 1, 9, 0)

        fast = _report(db, admin, room_a, reported_at=reported, category=MaintenanceCategory.ELECTRICAL)
        slow = _report(db, admin, room_a, reported_at=reported)
        urgent_old = _report(db, admin, room_b, reported_at=reported, priority=MaintenancePriority.URGENT)
        urgent_new = _report(
            db, admin, room_b, reported_at=reported + timedelta(days=40), priority=MaintenancePriority.URGENT
        )
        cancelled = _report(db, admin, room_a, reported_at=reported, priority=MaintenancePriority.URGENT)

        MaintenanceService.bulk_update(
            db, [fast.id], {"status": MaintenanceStatus.COMPLETED, "completed_at": reported + timedelta(days=1), "cost": Decimal("100")}
        )
        MaintenanceService.bulk_update(
            db, [slow.id], {"status": MaintenanceStatus.COMPLETED, "completed_at": reported + timedelta(days=3), "cost": Decimal("400")}
        )
        MaintenanceService.bulk_update(db, [urgent_old.id], {"status": MaintenanceStatus.IN_PROGRESS})
        MaintenanceService.bulk_update(db, [cancelled.id], {"status": MaintenanceStatus.CANCELLED})
        db.commit()

        analytics = MaintenanceService.get_analytics(db)

        assert analytics["overall"] == {
            "total": 5,
            "pending": 1,
            "in_progress": 1,
            "completed": 2,
            "cancelled": 1,
            "total_cost": Decimal("500.00"),
            "avg_cost": Decimal("250.00"),
        }
        assert analytics["completion_time"] == {"avg_days": 2.0, "min_days": 1.0, "max_days": 3.0}
        assert [(m["year"], m["month"], m["count"]) for m in analytics["monthly_trends"]] == [(2024, 4, 1), (2024, 3, 4)]
        assert analytics["by_category"][0]["key"] == "plumbing"
        assert analytics["by_category"][0]["count"] == 4
        assert [r["room_number"] for r in analytics["top_rooms"]] == ["101", "102"]
        assert analytics["top_rooms"][0]["total_cost"] == Decimal("500.00")
        assert [r.id for r in analytics["urgent_open"]] == [urgent_old.id, urgent_new.id]
