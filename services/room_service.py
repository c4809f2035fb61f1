# services/room_service.py
"""
Room Service - room inventory and tenant assignment.

Assignment and checkout are the only paths that change occupancy, so
``is_occupied`` and ``tenant_id`` always move together.
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import MaintenanceRequest, Room, User, UserRole
from models.base import local_now
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


class RoomService:

     @staticmethod
     def get_room(db: Session, room_id: int) -> Room:
          room = db.query(Room).filter(Room.id == room_id).first()
          if not room:
               raise NotFoundError("ไม่พบห้อง")
          return room

     @staticmethod
     def create_room(db: Session, data: dict) -> Room:
          if db.query(Room.id).filter(Room.room_number == data["room_number"]).first():
               raise ConflictError("หมายเลขห้องนี้มีอยู่แล้ว")
          room = Room(**data, is_occupied=False)
          try:
               with db.begin_nested():
                    db.add(room)
                    db.flush()
          except IntegrityError:
               raise ConflictError("หมายเลขห้องนี้มีอยู่แล้ว")
          logger.info("room_created", room_id=room.id, room_number=room.room_number)
          return room

     @staticmethod
     def update_room(db: Session, room_id: int, data: dict) -> Room:
          room = RoomService.get_room(db, room_id)
          new_number = data.get("room_number")
          if new_number and new_number != room.room_number:
               if db.query(Room.id).filter(Room.room_number == new_number).first():
                    raise ConflictError("หมายเลขห้องนี้มีอยู่แล้ว")
          for field, value in data.items():
               setattr(room, field, value)
          db.flush()
          return room

     @staticmethod
     def delete_room(db: Session, room_id: int) -> None:
          room = RoomService.get_room(db, room_id)
          if room.is_occupied:
               raise ConflictError("ไม่สามารถลบห้องที่มีผู้เช่าอยู่")
          if room.bills:
               raise ConflictError("ไม่สามารถลบห้องที่มีบิลอยู่")
          if db.query(MaintenanceRequest.id).filter(MaintenanceRequest.room_id == room.id).first():
               raise ConflictError("ไม่สามารถลบห้องที่มีรายการแจ้งซ่อม")
          db.delete(room)
          db.flush()
          logger.info("room_deleted", room_id=room_id)

     @staticmethod
     def assign_tenant(
          db: Session,
          room_id: int,
          tenant_id: int,
          move_in_date: date,
          rent_due_day: int,
          deposit_amount: Decimal,
          notes: Optional[str] = None
     ) -> Room:
          """
          Put a tenant into a vacant room.

          Raises:
               NotFoundError: Room or tenant doesn't exist
               ValidationError: User is not a tenant
               ConflictError: Room is occupied or tenant already has a room
          """
          room = RoomService.get_room(db, room_id)
          if room.is_occupied:
               raise ConflictError("ห้องนี้มีผู้เช่าอยู่แล้ว")

          tenant = db.query(User).filter(User.id == tenant_id).first()
          if not tenant:
               raise NotFoundError("ไม่พบผู้เช่า")
          if tenant.role != UserRole.TENANT:
               raise ValidationError("ผู้ใช้นี้ไม่ใช่ผู้เช่า")
          if tenant.room_id:
               raise ConflictError("ผู้เช่านี้มีห้องพักอยู่แล้ว")

          room.is_occupied = True
          room.tenant_id = tenant.id
          room.move_in_date = move_in_date
          room.move_out_date = None
          room.rent_due_day = rent_due_day
          room.deposit_amount = deposit_amount
          room.assignment_notes = notes
          tenant.room_id = room.id
          db.flush()

          logger.info("tenant_assigned", room_id=room.id, tenant_id=tenant.id)
          return room

     @staticmethod
     def checkout_tenant(db: Session, room_id: int, move_out_date: Optional[date] = None) -> Room:
          room = RoomService.get_room(db, room_id)
          if not room.is_occupied:
               raise ConflictError("ห้องนี้ว่างอยู่แล้ว")

          tenant = db.query(User).filter(User.id == room.tenant_id).first() if room.tenant_id else None
          if tenant is not None:
               tenant.room_id = None

          logger.info("tenant_checked_out", room_id=room.id, tenant_id=room.tenant_id)
          room.is_occupied = False
          room.tenant_id = None
          room.move_out_date = move_out_date or local_now().date()
          db.flush()
          return room

     @staticmethod
     def get_stats(db: Session) -> dict:
          total_rooms = db.query(func.count(Room.id)).scalar()
          occupied_rooms = db.query(func.count(Room.id)).filter(Room.is_occupied.is_(True)).scalar()
          rent_potential = db.query(func.coalesce(func.sum(Room.rent_price), 0)).scalar()
          rent_occupied = (
               db.query(func.coalesce(func.sum(Room.rent_price), 0))
               .filter(Room.is_occupied.is_(True))
               .scalar()
          )
          return {
               "total_rooms": total_rooms,
               "occupied_rooms": occupied_rooms,
               "vacant_rooms": total_rooms - occupied_rooms,
               "occupancy_rate": round(occupied_rooms / total_rooms * 100, 2) if total_rooms else 0,
               "monthly_rent_potential": Decimal(str(rent_potential)),
               "monthly_rent_occupied": Decimal(str(rent_occupied)),
          }
