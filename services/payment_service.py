# services/payment_service.py
"""
Payment Service - slip upload and payment lookups.

Each upload creates a new Payment. Only the newest one stays active: earlier
pending payments for the same bill are deactivated, so verification always
acts on the latest slip.
"""
import base64
import binascii
import re
from collections import defaultdict
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Bill, BillStatus, Payment, PaymentStatus, User
from services import storage_service
from services.slip_parser import extract_slip_fields, merge_extraction, parse_promptpay_qr
from utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

MAX_SLIP_BYTES = 5 * 1024 * 1024
ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")

_DATA_URL = re.compile(r"^data:([\w/+.-]+);base64,(.*)$", re.DOTALL)


def decode_slip_image(data_url: str) -> tuple[bytes, str]:
     """
     Decode a ``data:<mime>;base64,<payload>`` image.

     Returns:
          (bytes, content_type)

     Raises:
          ValidationError: Not a data URL, unsupported type, bad base64, or over 5 MB
     """
     match = _DATA_URL.match(data_url.strip())
     if not match:
          raise ValidationError("รูปแบบไฟล์ไม่ถูกต้อง")
     content_type = match.group(1).lower()
     if content_type not in ALLOWED_CONTENT_TYPES:
          raise ValidationError("รองรับเฉพาะไฟล์รูปภาพ JPEG, PNG, GIF และ WEBP")

     payload = re.sub(r"\s+", "", match.group(2))
     # Reject early on the encoded length before decoding
     if len(payload) * 3 // 4 > MAX_SLIP_BYTES + 3:
          raise ValidationError("ไฟล์มีขนาดใหญ่เกิน 5MB")
     try:
          data = base64.b64decode(payload, validate=True)
     except (binascii.Error, ValueError):
          raise ValidationError("ข้อมูลรูปภาพไม่ถูกต้อง")
     if not data:
          raise ValidationError("ข้อมูลรูปภาพไม่ถูกต้อง")
     if len(data) > MAX_SLIP_BYTES:
          raise ValidationError("ไฟล์มีขนาดใหญ่เกิน 5MB")
     return data, content_type


class PaymentService:

     @staticmethod
     def upload_slip(
          db: Session,
          bill_id: int,
          slip_image_base64: str,
          user: User,
          ocr_data: Optional[dict] = None,
          qr_data: Optional[dict] = None
     ) -> Payment:
          """
          Store a slip for a bill and record a pending payment against it.

          Raises:
               ValidationError: Bad image
               NotFoundError: Bill doesn't exist
               AuthorizationError: Tenant uploading for someone else's bill
               ConflictError: Bill already verified
          """
          data, content_type = decode_slip_image(slip_image_base64)

          bill = db.query(Bill).filter(Bill.id == bill_id).first()
          if not bill:
               raise NotFoundError("ไม่พบบิล")
          if not user.is_admin and bill.tenant_id != user.id:
               raise AuthorizationError("ไม่สามารถอัปโหลดสลิปสำหรับบิลนี้ได้")
          if bill.status == BillStatus.VERIFIED:
               raise ConflictError("บิลนี้ได้รับการยืนยันการชำระแล้ว")

          stored = storage_service.store_slip(data, content_type, user.id)

          superseded = (
               db.query(Payment)
               .filter(
                    Payment.bill_id == bill.id,
                    Payment.status == PaymentStatus.PENDING,
                    Payment.is_active.is_(True),
               )
               .update({Payment.is_active: False}, synchronize_session="fetch")
          )

          payment = Payment(
               bill_id=bill.id,
               user_id=user.id,
               slip_image_url=stored.url,
               slip_content_type=stored.content_type,
               slip_size=stored.size,
               status=PaymentStatus.PENDING,
               is_active=True,
          )
          payment.apply_ocr_data(ocr_data or {})
          payment.apply_qr_data(qr_data or {})
          db.add(payment)

          bill.mark_as_paid()
          db.flush()

          logger.info(
               "slip_uploaded",
               payment_id=payment.id,
               bill_id=bill.id,
               user_id=user.id,
               superseded=superseded,
          )
          return payment

     @staticmethod
     def get_payment(db: Session, payment_id: int, user: User) -> Payment:
          payment = db.query(Payment).filter(Payment.id == payment_id).first()
          if not payment:
               raise NotFoundError("ไม่พบรายการชำระเงิน")
          if not user.is_admin and payment.user_id != user.id:
               raise AuthorizationError()
          return payment

     @staticmethod
     def list_payments(
          db: Session,
          user: User,
          status: Optional[PaymentStatus] = None,
          bill_id: Optional[int] = None
     ) -> List[Payment]:
          query = db.query(Payment)
          if not user.is_admin:
               query = query.filter(Payment.user_id == user.id)
          if status:
               query = query.filter(Payment.status == status)
          if bill_id:
               query = query.filter(Payment.bill_id == bill_id)
          return query.order_by(Payment.created_at.desc(), Payment.id.desc()).all()

     @staticmethod
     def attach_extraction(
          db: Session,
          payment_id: int,
          user: User,
          ocr_text: Optional[str] = None,
          qr_payload: Optional[str] = None,
          ocr_data: Optional[dict] = None,
          qr_data: Optional[dict] = None
     ) -> Payment:
          """Structured fields take priority over values parsed from raw text."""
          payment = PaymentService.get_payment(db, payment_id, user)

          ocr = merge_extraction(ocr_data, extract_slip_fields(ocr_text) if ocr_text else None)
          qr = merge_extraction(qr_data, parse_promptpay_qr(qr_payload) if qr_payload else None)
          payment.apply_ocr_data(ocr)
          payment.apply_qr_data(qr)
          db.flush()

          logger.info("payment_extraction_attached", payment_id=payment.id, ocr_fields=sorted(ocr), qr_fields=sorted(qr))
          return payment

     @staticmethod
     def read_slip(db: Session, payment_id: int, user: User) -> tuple[bytes, str]:
          """Slip bytes and content type for the payment's owner or an admin."""
          payment = PaymentService.get_payment(db, payment_id, user)
          data = storage_service.read_slip(payment.slip_image_url)
          return data, payment.slip_content_type or "application/octet-stream"

     @staticmethod
     def get_analytics(db: Session, months: int = 12) -> dict:
          """
          Revenue and status counts across all payments.

          Revenue is the bill total of each verified payment. ``monthly_revenue``
          groups verified payments by upload month, newest first, for the last
          ``months`` months that have any.
          """
          status_counts = {s.value: 0 for s in PaymentStatus}
          for payment_status, count in (
               db.query(Payment.status, func.count(Payment.id)).group_by(Payment.status).all()
          ):
               status_counts[payment_status.value] = count

          verified = (
               db.query(Payment.created_at, Bill.total_amount)
               .join(Bill, Payment.bill_id == Bill.id)
               .filter(Payment.status == PaymentStatus.VERIFIED)
               .all()
          )

          total_revenue = Decimal("0")
          by_month = defaultdict(lambda: {"revenue": Decimal("0"), "count": 0})
          for created_at, amount in verified:
               total_revenue += amount
               bucket = by_month[(created_at.year, created_at.month)]
               bucket["revenue"] += amount
               bucket["count"] += 1

          monthly_revenue = [
               {"year": year, "month": month, **by_month[(year, month)]}
               for year, month in sorted(by_month, reverse=True)[:months]
          ]
          return {
               "total_revenue": total_revenue,
               "payment_stats": status_counts,
               "monthly_revenue": monthly_revenue,
          }
