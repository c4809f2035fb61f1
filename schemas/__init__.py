from .room import (
     RoomCreate,
     RoomUpdate,
     RoomAssignRequest,
     RoomCheckoutRequest,
     RoomResponse,
     RoomStatsResponse,
)
from .bill import (
     BillCreate,
     BillUpdate,
     BillResponse,
     BillListResponse,
     BillGenerationResponse,
     BillGenerationStats,
)
from .payment import (
     OcrData,
     QrData,
     PaymentUploadRequest,
     PaymentVerifyRequest,
     PaymentOcrRequest,
     PaymentResponse,
     PaymentListResponse,
)

__all__ = [
     "RoomCreate",
     "RoomUpdate",
     "RoomAssignRequest",
     "RoomCheckoutRequest",
     "RoomResponse",
     "RoomStatsResponse",
     "BillCreate",
     "BillUpdate",
     "BillResponse",
     "BillListResponse",
     "BillGenerationResponse",
     "BillGenerationStats",
     "OcrData",
     "QrData",
     "PaymentUploadRequest",
     "PaymentVerifyRequest",
     "PaymentOcrRequest",
     "PaymentResponse",
     "PaymentListResponse",
]
