from .base import Base
from .user import User, UserRole
from .room import Room
from .bill import Bill, BillStatus
from .payment import Payment, PaymentStatus
from .notification import Notification, NotificationType
from .notification_template import NotificationTemplate
from .maintenance import MaintenanceRequest, MaintenanceStatus, MaintenancePriority, MaintenanceCategory

__all__ = [
     "Base",
     "User",
     "UserRole",
     "Room",
     "Bill",
     "BillStatus",
     "Payment",
     "PaymentStatus",
     "Notification",
     "NotificationType",
     "NotificationTemplate",
     "MaintenanceRequest",
     "MaintenanceStatus",
     "MaintenancePriority",
     "MaintenanceCategory",
]
