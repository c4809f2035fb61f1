# services/__init__.py
from .bill_service import BillService, compute_due_date
from .room_service import RoomService
from .payment_service import PaymentService, decode_slip_image
from .verification_service import verify_payment
from .notification_service import (
     NotificationService,
     send_payment_reminders,
     send_overdue_notifications,
     send_notification_email,
     upsert_template,
)
from .maintenance_service import MaintenanceService
from .user_service import UserService
from .slip_parser import extract_slip_fields, parse_promptpay_qr, merge_extraction

__all__ = [
     "BillService",
     "compute_due_date",
     "RoomService",
     "PaymentService",
     "decode_slip_image",
     "verify_payment",
     "NotificationService",
     "send_payment_reminders",
     "send_overdue_notifications",
     "send_notification_email",
     "upsert_template",
     "MaintenanceService",
     "UserService",
     "extract_slip_fields",
     "parse_promptpay_qr",
     "merge_extraction",
]
