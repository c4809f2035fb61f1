import base64
from datetime import datetime
from decimal import Decimal

import pytest

from models import Bill, BillStatus, Notification, NotificationType, PaymentStatus
from services import storage_service
from services.bill_service import BillService
from services.payment_service import MAX_SLIP_BYTES, PaymentService, decode_slip_image
from services.verification_service import verify_payment
from utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError


def _data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode()}"


@pytest.fixture
def bill(db, tenant, make_room):
    make_room("101", 3000, 100, 50, tenant=tenant)
    BillService.generate_monthly_bills(db, now=datetime(2024, 3, 10, 9, 0))
    db.commit()
    return db.query(Bill).one()


@pytest.fixture
def payment(db, bill, tenant, slip_image):
    payment = PaymentService.upload_slip(db, bill.id, slip_image, tenant, ocr_data={"amount": Decimal("3150")})
    db.commit()
    return payment


class TestDecodeSlipImage:

    @pytest.mark.parametrize("mime", ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"])
    def test_accepts_supported_types(self, mime):
        data, content_type = decode_slip_image(_data_url(b"abc", mime))
        assert data == b"abc"
        assert content_type == mime

    def test_rejects_unsupported_type(self):
        with pytest.raises(ValidationError):
            decode_slip_image(_data_url(b"%PDF", "application/pdf"))

    def test_rejects_plain_base64_without_data_url(self):
        with pytest.raises(ValidationError):
            decode_slip_image(base64.b64encode(b"abc").decode())

    def test_rejects_invalid_base64(self):
        with pytest.raises(ValidationError):
            decode_slip_image("data:image/png;base64,@@@not-base64@@@")

    def test_rejects_empty_payload(self):
        with pytest.raises(ValidationError):
            decode_slip_image("data:image/png;base64,")

    def test_rejects_over_5mb(self):
        with pytest.raises(ValidationError):
            decode_slip_image(_data_url(b"\x00" * (MAX_SLIP_BYTES + 1)))

    def test_accepts_exactly_5mb(self):
        data, _ = decode_slip_image(_data_url(b"\x00" * MAX_SLIP_BYTES))
        assert len(data) == MAX_SLIP_BYTES


class TestUploadSlip:

    def test_creates_pending_payment_and_marks_bill_paid(self, db, bill, tenant, slip_image):
        payment = PaymentService.upload_slip(
            db, bill.id, slip_image, tenant,
            ocr_data={"amount": Decimal("3150"), "date": "10/03/2024"},
            qr_data={"ref1": "INV2024"},
        )

        assert payment.status == PaymentStatus.PENDING
        assert payment.is_active is True
        assert payment.user_id == tenant.id
        assert payment.slip_content_type == "image/png"
        assert payment.slip_image_url.startswith("/uploads/slips/")
        assert payment.ocr_amount == Decimal("3150")
        assert payment.ocr_date == "10/03/2024"
        assert payment.qr_ref1 == "INV2024"
        assert bill.status == BillStatus.PAID

    def test_uses_storage_collaborator(self, db, bill, tenant, slip_image, monkeypatch):
        stored = []

        def fake_store(data, content_type, user_id):
            stored.append((len(data), content_type, user_id))
            return storage_service.StoredFile(url="https://blob.example/slip.png", size=len(data), content_type=content_type)

        monkeypatch.setattr(storage_service, "store_slip", fake_store)

        payment = PaymentService.upload_slip(db, bill.id, slip_image, tenant)

        assert payment.slip_image_url == "https://blob.example/slip.png"
        assert stored == [(72, "image/png", tenant.id)]

    def test_missing_bill(self, db, tenant, slip_image):
        with pytest.raises(NotFoundError):
            PaymentService.upload_slip(db, 999, slip_image, tenant)

    def test_other_tenants_bill_is_forbidden(self, db, bill, other_tenant, slip_image):
        with pytest.raises(AuthorizationError):
            PaymentService.upload_slip(db, bill.id, slip_image, other_tenant)

    def test_invalid_image_checked_before_bill(self, db, tenant):
        with pytest.raises(ValidationError):
            PaymentService.upload_slip(db, 999, "not-an-image", tenant)

    def test_verified_bill_rejects_upload(self, db, bill, tenant, slip_image):
        bill.mark_as_verified()
        db.commit()

        with pytest.raises(ConflictError):
            PaymentService.upload_slip(db, bill.id, slip_image, tenant)

    def test_new_upload_supersedes_earlier_pending_payment(self, db, bill, tenant, payment, slip_image):
        newer = PaymentService.upload_slip(db, bill.id, slip_image, tenant)
        db.commit()

        assert payment.is_active is False
        assert newer.is_active is True
        assert payment.status == PaymentStatus.PENDING


class TestVerifyPayment:

    def test_approve(self, db, bill, admin, tenant, payment):
        result = verify_payment(db, payment.id, approved=True, verifier_id=admin.id)
        db.commit()

        assert result.status == PaymentStatus.VERIFIED
        assert result.verified_by == admin.id
        assert result.verified_at is not None
        assert bill.status == BillStatus.VERIFIED

        notification = db.query(Notification).filter(Notification.type == NotificationType.PAYMENT_VERIFIED).one()
        assert notification.user_id == tenant.id
        assert notification.bill_id == bill.id
        assert "101" in notification.message
        assert "3,150" in notification.message

    def test_reject_stores_reason_and_reverts_bill(self, db, bill, admin, tenant, payment):
        result = verify_payment(db, payment.id, approved=False, verifier_id=admin.id, rejection_reason="ยอดเงินไม่ตรง")
        db.commit()

        assert result.status == PaymentStatus.REJECTED
        assert result.rejection_reason == "ยอดเงินไม่ตรง"
        assert bill.status == BillStatus.PENDING

        notification = db.query(Notification).filter(Notification.type == NotificationType.PAYMENT_REJECTED).one()
        assert notification.user_id == tenant.id
        assert "ยอดเงินไม่ตรง" in notification.message

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_without_reason_changes_nothing(self, db, bill, admin, payment, reason):
        with pytest.raises(ValidationError):
            verify_payment(db, payment.id, approved=False, verifier_id=admin.id, rejection_reason=reason)

        assert payment.status == PaymentStatus.PENDING
        assert bill.status == BillStatus.PAID
        assert db.query(Notification).filter(Notification.type == NotificationType.PAYMENT_REJECTED).count() == 0

    def test_missing_payment(self, db, admin):
        with pytest.raises(NotFoundError):
            verify_payment(db, 999, approved=True, verifier_id=admin.id)

    def test_already_resolved_payment_conflicts(self, db, admin, payment):
        verify_payment(db, payment.id, approved=True, verifier_id=admin.id)

        with pytest.raises(ConflictError):
            verify_payment(db, payment.id, approved=False, verifier_id=admin.id, rejection_reason="ซ้ำ")

    def test_superseded_payment_conflicts(self, db, bill, admin, tenant, payment, slip_image):
        PaymentService.upload_slip(db, bill.id, slip_image, tenant)
        db.commit()

        with pytest.raises(ConflictError):
            verify_payment(db, payment.id, approved=True, verifier_id=admin.id)

    def test_email_failure_does_not_block_verification(self, db, bill, admin, payment, monkeypatch):
        from utils import email as email_utils

        def broken_send(*args, **kwargs):
            raise RuntimeError("smtp down")

        monkeypatch.setattr(email_utils, "send_email", broken_send)

        result = verify_payment(db, payment.id, approved=True, verifier_id=admin.id)
        db.commit()

        assert result.status == PaymentStatus.VERIFIED
        assert bill.status == BillStatus.VERIFIED


class TestAttachExtraction:

    def test_structured_fields_win_over_parsed_text(self, db, tenant, payment):
        result = PaymentService.attach_extraction(
            db,
            payment.id,
            tenant,
            ocr_text="จำนวนเงิน: 3,000.00\nRef: ABC123",
            ocr_data={"amount": Decimal("3150")},
        )

        assert result.ocr_amount == Decimal("3150")
        assert result.ocr_reference == "ABC123"

    def test_other_user_cannot_attach(self, db, other_tenant, payment):
        with pytest.raises(AuthorizationError):
            PaymentService.attach_extraction(db, payment.id, other_tenant, ocr_text="Ref: X1")


class TestReadSlip:

    def test_owner_and_admin_can_read(self, db, admin, tenant, payment):
        data, content_type = PaymentService.read_slip(db, payment.id, tenant)

        assert content_type == "image/png"
        assert data.startswith(b"\x89PNG")
        assert PaymentService.read_slip(db, payment.id, admin)[0] == data

    def test_other_tenant_is_forbidden(self, db, other_tenant, payment):
        with pytest.raises(AuthorizationError):
            PaymentService.read_slip(db, payment.id, other_tenant)

    def test_blob_url_without_storage_configured(self, db, tenant, payment):
        payment.slip_image_url = "https://account.blob.core.windows.net/payment-slips/1/slip.png"
        db.commit()

        with pytest.raises(NotFoundError):
            PaymentService.read_slip(db, payment.id, tenant)

    def test_path_outside_upload_folder(self):
        with pytest.raises(NotFoundError):
            storage_service.read_slip("/uploads/../../etc/passwd")


class TestAnalytics:

    def test_empty(self, db):
        analytics = PaymentService.get_analytics(db)

        assert analytics["total_revenue"] == Decimal("0")
        assert analytics["payment_stats"] == {"pending": 0, "verified": 0, "rejected": 0}
        assert analytics["monthly_revenue"] == []

    def test_revenue_counts_verified_bill_totals_by_upload_month(self, db, bill, admin, tenant, payment, slip_image):
        verify_payment(db, payment.id, approved=False, verifier_id=admin.id, rejection_reason="ยอดไม่ตรง")
        second = PaymentService.upload_slip(db, bill.id, slip_image, tenant)
        second.created_at = datetime(2024, 3, 12, 10, 0)
        verify_payment(db, second.id, approved=True, verifier_id=admin.id)
        db.commit()

        analytics = PaymentService.get_analytics(db)

        assert analytics["total_revenue"] == Decimal("3150")
        assert analytics["payment_stats"] == {"pending": 0, "verified": 1, "rejected": 1}
        assert analytics["monthly_revenue"] == [
            {"year": 2024, "month": 3, "revenue": Decimal("3150"), "count": 1}
        ]

    def test_months_limit(self, db, admin, tenant, make_room, slip_image):
        make_room("101", tenant=tenant)
        for month in (1, 2, 3):
            BillService.generate_monthly_bills(db, now=datetime(2024, month, 10, 9, 0))
        db.commit()
        for bill in db.query(Bill).order_by(Bill.month).all():
            uploaded = PaymentService.upload_slip(db, bill.id, slip_image, tenant)
            uploaded.created_at = datetime(2024, bill.month, 12, 10, 0)
            verify_payment(db, uploaded.id, approved=True, verifier_id=admin.id)
        db.commit()

        analytics = PaymentService.get_analytics(db, months=2)

        assert [(m["year"], m["month"]) for m in analytics["monthly_revenue"]] == [(2024, 3), (2024, 2)]
        assert analytics["total_revenue"] == Decimal("9450")
