from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, local_now


class Room(Base):
     """
     Room model - one rentable room in the dormitory.

     Invariant: is_occupied implies tenant_id is set. Assignment and checkout
     in RoomService keep the two in step.
     """
     __tablename__ = "rooms"

     id = Column(Integer, primary_key=True, autoincrement=True)
     room_number = Column(String(50), unique=True, nullable=False, index=True)
     floor = Column(Integer, nullable=True)

     # Pricing
     rent_price = Column(Numeric(12, 2), nullable=False)
     water_price = Column(Numeric(10, 2), nullable=False, default=0)
     electricity_price = Column(Numeric(10, 2), nullable=False, default=0)

     # Occupancy
     is_occupied = Column(Boolean, default=False, nullable=False, index=True)
     tenant_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
     move_in_date = Column(Date, nullable=True)
     move_out_date = Column(Date, nullable=True)
     rent_due_day = Column(Integer, nullable=True)  # 1-31
     deposit_amount = Column(Numeric(12, 2), nullable=True)
     assignment_notes = Column(Text, nullable=True)

     # Timestamps
     created_at = Column(DateTime, default=local_now, nullable=False)
     updated_at = Column(DateTime, default=local_now, onupdate=local_now, nullable=False)

     # Relationships
     tenant = relationship("User", foreign_keys=[tenant_id])
     bills = relationship("Bill", back_populates="room")

     def __repr__(self):
          return f"<Room(id={self.id}, room_number='{self.room_number}', occupied={self.is_occupied})>"
