# services/bill_service.py
"""
Bill Service - Business logic layer for monthly billing.

This service handles bill generation for occupied rooms, generation stats,
and the admin CRUD operations, separate from the API layer.
"""
from datetime import date, datetime
from typing import Optional, List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import Bill, BillStatus, Room, User
from models.base import local_now
from services.notification_service import notify_bill_generated
from utils.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from utils.logger import get_logger
from utils.thai_date import to_naive_bangkok

logger = get_logger(__name__)

BILL_DUE_DAY = 25


def compute_due_date(today: date) -> date:
     """
     The 25th of this month, or of next month once the 25th has passed.
     """
     if today.day <= BILL_DUE_DAY:
          return date(today.year, today.month, BILL_DUE_DAY)
     if today.month == 12:
          return date(today.year + 1, 1, BILL_DUE_DAY)
     return date(today.year, today.month + 1, BILL_DUE_DAY)


def bill_exists(db: Session, room_id: int, month: int, year: int) -> bool:
     return db.query(Bill.id).filter(
          Bill.room_id == room_id,
          Bill.month == month,
          Bill.year == year
     ).first() is not None


class BillService:
     """Service class for bill-related business logic."""

     @staticmethod
     def generate_monthly_bills(db: Session, now: Optional[datetime] = None) -> int:
          """
          Generate this month's bill for every occupied room.

          Rooms that already have a bill for the period are skipped; a failure
          on one room is logged and does not stop the batch.

          Args:
               db: SQLAlchemy database session
               now: Generation time (default: current Asia/Bangkok time)

          Returns:
               Number of bills created
          """
          if now is None:
               now = local_now()
          elif now.tzinfo is not None:
               now = to_naive_bangkok(now)

          month, year = now.month, now.year
          due_date = compute_due_date(now.date())

          rooms = db.query(Room).filter(Room.is_occupied.is_(True)).order_by(Room.id).all()

          created = skipped = failed = 0
          for room in rooms:
               try:
                    tenant = db.query(User).filter(User.id == room.tenant_id).first() if room.tenant_id else None
                    if tenant is None:
                         logger.warning("bill_skipped_no_tenant", room_id=room.id, room_number=room.room_number)
                         skipped += 1
                         continue

                    if bill_exists(db, room.id, month, year):
                         skipped += 1
                         continue

                    with db.begin_nested():
                         bill = Bill(
                              room_id=room.id,
                              tenant_id=tenant.id,
                              month=month,
                              year=year,
                              rent_amount=room.rent_price,
                              water_units=0,
                              water_amount=room.water_price,
                              electricity_units=0,
                              electricity_amount=room.electricity_price,
                              total_amount=Bill.compute_total(room.rent_price, room.water_price, room.electricity_price),
                              due_date=due_date,
                              status=BillStatus.PENDING,
                         )
                         db.add(bill)
                         db.flush()
                         notify_bill_generated(db, bill, room, tenant, now=now)
                    created += 1
               except IntegrityError:
                    # Lost a race with a concurrent run for the same period
                    skipped += 1
                    logger.info("bill_duplicate_skipped", room_id=room.id, room_number=room.room_number)
               except Exception:
                    failed += 1
                    logger.exception("bill_generation_failed", room_id=room.id, room_number=room.room_number)

          logger.info(
               "bills_generated",
               month=month,
               year=year,
               created=created,
               skipped=skipped,
               failed=failed,
          )
          return created

     @staticmethod
     def get_bill_generation_stats(db: Session, now: Optional[datetime] = None) -> dict:
          if now is None:
               now = local_now()
          elif now.tzinfo is not None:
               now = to_naive_bangkok(now)
          month, year = now.month, now.year

          period = db.query(Bill).filter(Bill.month == month, Bill.year == year)
          bills_generated = period.count()
          pending_bills = period.filter(Bill.status == BillStatus.PENDING).count()
          paid_bills = period.filter(Bill.status == BillStatus.PAID).count()

          total_rooms = db.query(func.count(Room.id)).scalar()
          occupied_rooms = db.query(func.count(Room.id)).filter(Room.is_occupied.is_(True)).scalar()

          return {
               "month": month,
               "year": year,
               "bills_generated": bills_generated,
               "total_rooms": total_rooms,
               "occupied_rooms": occupied_rooms,
               "pending_bills": pending_bills,
               "paid_bills": paid_bills,
               "completion_rate": bills_generated / occupied_rooms if occupied_rooms else 0,
          }

     @staticmethod
     def list_bills(
          db: Session,
          user: User,
          status: Optional[BillStatus] = None,
          month: Optional[int] = None,
          year: Optional[int] = None,
          room_id: Optional[int] = None
     ) -> List[Bill]:
          query = db.query(Bill)
          if not user.is_admin:
               query = query.filter(Bill.tenant_id == user.id)
          if status:
               query = query.filter(Bill.status == status)
          if month:
               query = query.filter(Bill.month == month)
          if year:
               query = query.filter(Bill.year == year)
          if room_id:
               query = query.filter(Bill.room_id == room_id)
          return query.order_by(Bill.year.desc(), Bill.month.desc(), Bill.id.desc()).all()

     @staticmethod
     def get_bill(db: Session, bill_id: int, user: User) -> Bill:
          bill = db.query(Bill).filter(Bill.id == bill_id).first()
          if not bill:
               raise NotFoundError("ไม่พบบิล")
          if not user.is_admin and bill.tenant_id != user.id:
               raise AuthorizationError()
          return bill

     @staticmethod
     def create_bill(db: Session, data: dict) -> Bill:
          """
          Create a bill by hand. Missing amounts fall back to the room's prices.

          Raises:
               NotFoundError: Room doesn't exist
               ValidationError: Room has no tenant
               ConflictError: A bill for this room and period already exists
          """
          room = db.query(Room).filter(Room.id == data["room_id"]).first()
          if not room:
               raise NotFoundError("ไม่พบห้อง")
          if not room.is_occupied or not room.tenant_id:
               raise ValidationError("ห้องนี้ยังไม่มีผู้เช่า")

          if bill_exists(db, room.id, data["month"], data["year"]):
               raise ConflictError("มีบิลของห้องนี้ในเดือนนี้แล้ว")

          rent_amount = data.get("rent_amount")
          water_amount = data.get("water_amount")
          electricity_amount = data.get("electricity_amount")
          bill = Bill(
               room_id=room.id,
               tenant_id=room.tenant_id,
               month=data["month"],
               year=data["year"],
               rent_amount=room.rent_price if rent_amount is None else rent_amount,
               water_units=data.get("water_units") or 0,
               water_amount=room.water_price if water_amount is None else water_amount,
               electricity_units=data.get("electricity_units") or 0,
               electricity_amount=room.electricity_price if electricity_amount is None else electricity_amount,
               due_date=data.get("due_date") or compute_due_date(date(data["year"], data["month"], 1)),
               status=BillStatus.PENDING,
          )
          bill.recalculate_total()

          try:
               with db.begin_nested():
                    db.add(bill)
                    db.flush()
          except IntegrityError:
               raise ConflictError("มีบิลของห้องนี้ในเดือนนี้แล้ว")

          logger.info("bill_created", bill_id=bill.id, room_id=room.id, month=bill.month, year=bill.year)
          return bill

     @staticmethod
     def update_bill(db: Session, bill_id: int, data: dict) -> Bill:
          bill = db.query(Bill).filter(Bill.id == bill_id).first()
          if not bill:
               raise NotFoundError("ไม่พบบิล")
          for field, value in data.items():
               setattr(bill, field, value)
          bill.recalculate_total()
          db.flush()
          return bill

     @staticmethod
     def delete_bill(db: Session, bill_id: int) -> None:
          bill = db.query(Bill).filter(Bill.id == bill_id).first()
          if not bill:
               raise NotFoundError("ไม่พบบิล")
          db.delete(bill)
          db.flush()
          logger.info("bill_deleted", bill_id=bill_id)
