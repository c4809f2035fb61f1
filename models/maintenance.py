import enum
from sqlalchemy import Column, Integer, String, Numeric, Text, Date, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from .base import Base, local_now


class MaintenanceStatus(str, enum.Enum):
     PENDING = "pending"
     IN_PROGRESS = "in-progress"
     COMPLETED = "completed"
     CANCELLED = "cancelled"


class MaintenancePriority(str, enum.Enum):
     LOW = "low"
     MEDIUM = "medium"
     HIGH = "high"
     URGENT = "urgent"


class MaintenanceCategory(str, enum.Enum):
     ELECTRICAL = "electrical"
     PLUMBING = "plumbing"
     AIR_CONDITIONING = "air-conditioning"
     FURNITURE = "furniture"
     CLEANING = "cleaning"
     SECURITY = "security"
     OTHER = "other"


OPEN_STATUSES = (MaintenanceStatus.PENDING, MaintenanceStatus.IN_PROGRESS)


def _enum(enum_cls, name):
     return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e])


class MaintenanceRequest(Base):
     """
     Maintenance request - a repair job reported against a room.

     tenant_id is the occupant the request concerns (may be empty when an
     admin files it for a vacant room); created_by is whoever filed it.
     """
     __tablename__ = "maintenance_requests"

     id = Column(Integer, primary_key=True, autoincrement=True)
     room_id = Column(Integer, ForeignKey("rooms.id", ondelete="NO ACTION"), nullable=False, index=True)
     tenant_id = Column(Integer, ForeignKey("users.id", ondelete="NO ACTION"), nullable=True, index=True)
     created_by = Column(Integer, ForeignKey("users.id", ondelete="NO ACTION"), nullable=False)

     category = Column(_enum(MaintenanceCategory, "maintenance_category"), nullable=False)
     title = Column(String(200), nullable=False)
     description = Column(Text, nullable=False)
     priority = Column(_enum(MaintenancePriority, "maintenance_priority"), nullable=False, index=True)
     status = Column(
          _enum(MaintenanceStatus, "maintenance_status"),
          default=MaintenanceStatus.PENDING,
          nullable=False,
          index=True
     )

     reported_at = Column(DateTime, default=local_now, nullable=False, index=True)
     scheduled_date = Column(Date, nullable=True)
     completed_at = Column(DateTime, nullable=True)
     cost = Column(Numeric(12, 2), nullable=True)
     assigned_to = Column(String(200), nullable=True)
     notes = Column(Text, nullable=True)
     images = Column(JSON, nullable=True)  # list of image URLs

     created_at = Column(DateTime, default=local_now, nullable=False)
     updated_at = Column(DateTime, default=local_now, onupdate=local_now, nullable=False)

     room = relationship("Room")
     tenant = relationship("User", foreign_keys=[tenant_id])
     creator = relationship("User", foreign_keys=[created_by])

     def __repr__(self):
          return f"<MaintenanceRequest(id={self.id}, room_id={self.room_id}, status='{self.status.value}')>"

     @property
     def is_open(self) -> bool:
          return self.status in OPEN_STATUSES
