import enum
from utils.thai_date import bangkok_now
from sqlalchemy import Column, Integer, Numeric, Date, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base, local_now


class BillStatus(str, enum.Enum):
     """Bill lifecycle: pending -> paid (slip uploaded) -> verified, or back to pending on reject."""
     PENDING = "pending"
     PAID = "paid"
     OVERDUE = "overdue"
     VERIFIED = "verified"


class Bill(Base):
     """
     Bill model - one room's charges for one calendar month.

     At most one bill exists per (room_id, month, year); the unique constraint
     is the idempotency guard for monthly generation.
     """
     __tablename__ = "bills"
     __table_args__ = (
          UniqueConstraint("room_id", "month", "year", name="uq_bills_room_month_year"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Foreign keys
     room_id = Column(
          Integer,
          ForeignKey("rooms.id", ondelete="NO ACTION"),
          nullable=False,
          index=True
     )
     tenant_id = Column(
          Integer,
          ForeignKey("users.id", ondelete="NO ACTION"),
          nullable=False,
          index=True
     )

     # Billing period
     month = Column(Integer, nullable=False)
     year = Column(Integer, nullable=False)

     # Amounts
     rent_amount = Column(Numeric(12, 2), nullable=False)
     water_units = Column(Numeric(10, 2), nullable=False, default=0)
     water_amount = Column(Numeric(10, 2), nullable=False, default=0)
     electricity_units = Column(Numeric(10, 2), nullable=False, default=0)
     electricity_amount = Column(Numeric(10, 2), nullable=False, default=0)
     total_amount = Column(Numeric(12, 2), nullable=False)

     due_date = Column(Date, nullable=False, index=True)
     status = Column(
          Enum(BillStatus, name="bill_status", values_callable=lambda e: [m.value for m in e]),
          default=BillStatus.PENDING,
          nullable=False,
          index=True
     )

     # Timestamps
     created_at = Column(DateTime, default=local_now, nullable=False)
     updated_at = Column(DateTime, default=local_now, onupdate=local_now, nullable=False)

     # Relationships
     room = relationship("Room", back_populates="bills")
     tenant = relationship("User", foreign_keys=[tenant_id])
     payments = relationship(
          "Payment",
          back_populates="bill",
          order_by="Payment.id",
          cascade="all, delete-orphan",
          passive_deletes=True
     )

     def __repr__(self):
          return f"<Bill(id={self.id}, room_id={self.room_id}, period={self.month}/{self.year}, status='{self.status.value}')>"

     @staticmethod
     def compute_total(rent_amount, water_amount, electricity_amount):
          return (rent_amount or 0) + (water_amount or 0) + (electricity_amount or 0)

     def recalculate_total(self) -> None:
          self.total_amount = Bill.compute_total(self.rent_amount, self.water_amount, self.electricity_amount)

     @property
     def is_overdue(self) -> bool:
          """Check if bill is past due date and not yet settled."""
          return self.status in (BillStatus.PENDING, BillStatus.PAID) and self.due_date < bangkok_now().date()

     def mark_as_paid(self) -> None:
          self.status = BillStatus.PAID

     def mark_as_verified(self) -> None:
          self.status = BillStatus.VERIFIED

     def mark_as_pending(self) -> None:
          self.status = BillStatus.PENDING
