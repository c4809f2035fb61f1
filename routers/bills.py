# routers/bills.py
"""
Bill API routes.

Role-based access:
- Tenant: can only read own bills
- Admin: everything, including manual monthly generation
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_admin
from models import Bill, BillStatus, User
from models.base import local_now
from schemas.bill import (
     BillCreate,
     BillGenerationResponse,
     BillGenerationStats,
     BillListResponse,
     BillResponse,
     BillUpdate,
)
from services.bill_service import BillService

router = APIRouter(prefix="/api/bills", tags=["bills"])


def _to_response(bill: Bill) -> BillResponse:
     response = BillResponse.model_validate(bill)
     response.room_number = bill.room.room_number if bill.room else None
     response.tenant_name = bill.tenant.name if bill.tenant else None
     return response


@router.post("/generate", response_model=BillGenerationResponse, summary="Generate this month's bills")
def generate_bills(db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     created = BillService.generate_monthly_bills(db)
     return {"bills_created": created, "triggered_by": admin.email, "timestamp": local_now()}


@router.get("/generate", response_model=BillGenerationStats, summary="Generation stats for this month")
def generation_stats(db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     return BillService.get_bill_generation_stats(db)


@router.get("", response_model=BillListResponse, summary="List bills")
def list_bills(
     status_filter: Optional[BillStatus] = Query(None, alias="status"),
     month: Optional[int] = Query(None, ge=1, le=12),
     year: Optional[int] = Query(None),
     room_id: Optional[int] = Query(None),
     page: int = Query(1, ge=1),
     page_size: int = Query(50, ge=1, le=200),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """Tenants only ever see their own bills."""
     bills = BillService.list_bills(db, user, status=status_filter, month=month, year=year, room_id=room_id)
     start = (page - 1) * page_size
     return {
          "bills": [_to_response(bill) for bill in bills[start:start + page_size]],
          "total": len(bills),
          "page": page,
          "page_size": page_size,
     }


@router.get("/{bill_id}", response_model=BillResponse)
def get_bill(bill_id: int, db: Session = Depends(get_session), user: User = Depends(get_current_user)):
     return _to_response(BillService.get_bill(db, bill_id, user))


@router.post("", response_model=BillResponse, status_code=status.HTTP_201_CREATED, summary="Create a bill by hand")
def create_bill(body: BillCreate, db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     return _to_response(BillService.create_bill(db, body.model_dump()))


@router.put("/{bill_id}", response_model=BillResponse)
def update_bill(
     bill_id: int,
     body: BillUpdate,
     db: Session = Depends(get_session),
     admin: User = Depends(require_admin)
):
     return _to_response(BillService.update_bill(db, bill_id, body.model_dump(exclude_unset=True)))


@router.delete("/{bill_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bill(bill_id: int, db: Session = Depends(get_session), admin: User = Depends(require_admin)):
     BillService.delete_bill(db, bill_id)
