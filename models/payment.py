"""
Payment model - one uploaded proof-of-payment attempt against a Bill.

Several payments may reference the same bill over time. Only the newest
upload is active: uploading again deactivates earlier pending payments, and
only an active pending payment can be verified or rejected.
"""
import enum
from sqlalchemy import Column, Integer, String, Numeric, Boolean, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from .base import Base, local_now


class PaymentStatus(str, enum.Enum):
     PENDING = "pending"
     VERIFIED = "verified"
     REJECTED = "rejected"


OCR_FIELDS = ("amount", "fee", "date", "time", "from_account", "to_account", "reference", "transaction_no")
QR_FIELDS = ("merchant_id", "amount", "ref1", "ref2")


class Payment(Base):
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     bill_id = Column(Integer, ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
     user_id = Column(Integer, ForeignKey("users.id", ondelete="NO ACTION"), nullable=False, index=True)

     # Slip image (bytes live in blob storage)
     slip_image_url = Column(String(500), nullable=False)
     slip_content_type = Column(String(50), nullable=True)
     slip_size = Column(Integer, nullable=True)

     # OCR-extracted fields
     ocr_amount = Column(Numeric(12, 2), nullable=True)
     ocr_fee = Column(Numeric(10, 2), nullable=True)
     ocr_date = Column(String(20), nullable=True)
     ocr_time = Column(String(20), nullable=True)
     ocr_from_account = Column(String(50), nullable=True)
     ocr_to_account = Column(String(50), nullable=True)
     ocr_reference = Column(String(100), nullable=True)
     ocr_transaction_no = Column(String(100), nullable=True)

     # QR-derived fields
     qr_merchant_id = Column(String(100), nullable=True)
     qr_amount = Column(Numeric(12, 2), nullable=True)
     qr_ref1 = Column(String(100), nullable=True)
     qr_ref2 = Column(String(100), nullable=True)

     status = Column(
          Enum(PaymentStatus, name="payment_status", values_callable=lambda e: [m.value for m in e]),
          default=PaymentStatus.PENDING,
          nullable=False,
          index=True
     )
     is_active = Column(Boolean, default=True, nullable=False)
     verified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
     verified_at = Column(DateTime, nullable=True)
     rejection_reason = Column(Text, nullable=True)

     # Timestamps
     created_at = Column(DateTime, default=local_now, nullable=False, index=True)
     updated_at = Column(DateTime, default=local_now, onupdate=local_now, nullable=False)

     # Relationships
     bill = relationship("Bill", back_populates="payments")
     user = relationship("User", foreign_keys=[user_id])

     def __repr__(self):
          return f"<Payment(id={self.id}, bill_id={self.bill_id}, status='{self.status.value}')>"

     @property
     def ocr_data(self) -> dict:
          return {field: getattr(self, f"ocr_{field}") for field in OCR_FIELDS}

     @property
     def qr_data(self) -> dict:
          return {field: getattr(self, f"qr_{field}") for field in QR_FIELDS}

     def apply_ocr_data(self, data: dict) -> None:
          for field in OCR_FIELDS:
               if data.get(field) is not None:
                    setattr(self, f"ocr_{field}", data[field])

     def apply_qr_data(self, data: dict) -> None:
          for field in QR_FIELDS:
               if data.get(field) is not None:
                    setattr(self, f"qr_{field}", data[field])
