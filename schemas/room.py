"""
Pydantic schemas for Room API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator


class RoomCreate(BaseModel):
     """Schema for creating a new room (admin)."""
     room_number: str = Field(..., min_length=1, max_length=50, description="Unique room number")
     floor: Optional[int] = Field(None, ge=0)
     rent_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
     water_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
     electricity_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "room_number": "101",
                    "floor": 1,
                    "rent_price": 3000.00,
                    "water_price": 100.00,
                    "electricity_price": 50.00
               }
          }
     )


class RoomUpdate(BaseModel):
     """
     Whitelisted fields an admin may patch. Occupancy and tenant linkage
     only change through assign/checkout.
     """
     room_number: Optional[str] = Field(None, min_length=1, max_length=50)
     floor: Optional[int] = Field(None, ge=0)
     rent_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     water_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
     electricity_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
     rent_due_day: Optional[int] = Field(None, ge=1, le=31)
     deposit_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)

     @field_validator("room_number", "rent_price", "water_price", "electricity_price")
     @classmethod
     def _not_null(cls, value):
          if value is None:
               raise ValueError("may be omitted but not null")
          return value


class RoomAssignRequest(BaseModel):
     tenant_id: int = Field(..., gt=0)
     move_in_date: date
     rent_due_day: int = Field(..., ge=1, le=31, description="Day of month rent is due")
     deposit_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = None


class RoomCheckoutRequest(BaseModel):
     move_out_date: Optional[date] = None


class RoomResponse(BaseModel):
     id: int
     room_number: str
     floor: Optional[int] = None
     rent_price: Decimal
     water_price: Decimal
     electricity_price: Decimal
     is_occupied: bool
     tenant_id: Optional[int] = None
     move_in_date: Optional[date] = None
     move_out_date: Optional[date] = None
     rent_due_day: Optional[int] = None
     deposit_amount: Optional[Decimal] = None
     created_at: datetime

     # Optional related data
     tenant_name: Optional[str] = None
     tenant_email: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class RoomStatsResponse(BaseModel):
     total_rooms: int
     occupied_rooms: int
     vacant_rooms: int
     occupancy_rate: float
     monthly_rent_potential: Decimal
     monthly_rent_occupied: Decimal
