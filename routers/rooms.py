# routers/rooms.py
"""
Room API routes.

Anyone logged in can read rooms; creating, editing, deleting, assigning
and checking out are admin-only.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_admin
from models import Room, User
from schemas.room import (
     RoomAssignRequest,
     RoomCheckoutRequest,
     RoomCreate,
     RoomResponse,
     RoomStatsResponse,
     RoomUpdate,
)
from services.room_service import RoomService

router = APIRouter(prefix="/api/rooms", tags=["rooms"])


def _to_response(room: Room) -> RoomResponse:
     response = RoomResponse.model_validate(room)
     if room.tenant:
          response.tenant_name = room.tenant.name
          response.tenant_email = room.tenant.email
     return response


@router.get("/stats", response_model=RoomStatsResponse, summary="Occupancy statistics")
def room_stats(db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     return RoomService.get_stats(db)


@router.get("", response_model=List[RoomResponse], summary="List rooms")
def list_rooms(
     is_occupied: Optional[bool] = Query(None, description="Filter by occupancy"),
     floor: Optional[int] = Query(None),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     query = db.query(Room)
     if is_occupied is not None:
          query = query.filter(Room.is_occupied.is_(is_occupied))
     if floor is not None:
          query = query.filter(Room.floor == floor)
     return [_to_response(room) for room in query.order_by(Room.room_number).all()]


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     return _to_response(RoomService.get_room(db, room_id))


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED, summary="Create a room")
def create_room(body: RoomCreate, db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     return _to_response(RoomService.create_room(db, body.model_dump()))


@router.put("/{room_id}", response_model=RoomResponse, summary="Update a room")
def update_room(
     room_id: int,
     body: RoomUpdate,
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     """Only the fields in RoomUpdate can change; occupancy goes through assign/checkout."""
     return _to_response(RoomService.update_room(db, room_id, body.model_dump(exclude_unset=True)))


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a vacant room")
def delete_room(room_id: int, db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     RoomService.delete_room(db, room_id)


@router.post("/{room_id}/assign", response_model=RoomResponse, summary="Assign a tenant")
def assign_tenant(
     room_id: int,
     body: RoomAssignRequest,
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     room = RoomService.assign_tenant(
          db,
          room_id,
          tenant_id=body.tenant_id,
          move_in_date=body.move_in_date,
          rent_due_day=body.rent_due_day,
          deposit_amount=body.deposit_amount,
          notes=body.notes,
     )
     return _to_response(room)


@router.post("/{room_id}/checkout", response_model=RoomResponse, summary="Check the tenant out")
def checkout_tenant(
     room_id: int,
     body: Optional[RoomCheckoutRequest] = None,
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     move_out_date = body.move_out_date if body else None
     return _to_response(RoomService.checkout_tenant(db, room_id, move_out_date))
