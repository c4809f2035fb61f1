# services/verification_service.py
"""
Admin approval or rejection of an uploaded payment.

Payment and bill change together in the caller's transaction; notifications
are written in the same transaction and email is best-effort.
"""
from typing import Optional

from sqlalchemy.orm import Session

from models import Payment, PaymentStatus
from models.base import local_now
from services.notification_service import notify_payment_rejected, notify_payment_verified
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


def verify_payment(
     db: Session,
     payment_id: int,
     approved: bool,
     verifier_id: int,
     rejection_reason: Optional[str] = None
) -> Payment:
     """
     Resolve a pending payment.

     Approve: payment verified, bill verified.
     Reject: payment rejected with the reason stored verbatim, bill back to pending.

     Raises:
          ValidationError: Rejecting without a reason
          NotFoundError: Payment doesn't exist
          ConflictError: Payment already resolved or superseded by a newer upload
     """
     if not approved and (rejection_reason is None or not rejection_reason.strip()):
          raise ValidationError("กรุณาระบุเหตุผลในการปฏิเสธ")

     payment = db.query(Payment).filter(Payment.id == payment_id).first()
     if not payment:
          raise NotFoundError("ไม่พบรายการชำระเงิน")
     if payment.status != PaymentStatus.PENDING:
          raise ConflictError("รายการชำระเงินนี้ได้รับการตรวจสอบแล้ว")
     if not payment.is_active:
          raise ConflictError("มีการอัปโหลดสลิปใหม่แทนรายการนี้แล้ว")

     bill = payment.bill
     user = payment.user
     now = local_now()

     if approved:
          payment.status = PaymentStatus.VERIFIED
          payment.verified_by = verifier_id
          payment.verified_at = now
          bill.mark_as_verified()
          db.flush()
          notify_payment_verified(db, bill, user, now=now)
     else:
          payment.status = PaymentStatus.REJECTED
          payment.rejection_reason = rejection_reason
          payment.verified_by = verifier_id
          payment.verified_at = now
          bill.mark_as_pending()
          db.flush()
          notify_payment_rejected(db, bill, user, rejection_reason, now=now)

     logger.info(
          "payment_verified" if approved else "payment_rejected",
          payment_id=payment.id,
          bill_id=bill.id,
          verifier_id=verifier_id,
     )
     return payment
