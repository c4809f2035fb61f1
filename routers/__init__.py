# routers/__init__.py
from .auth import router as auth_router
from .users import router as users_router
from .rooms import router as rooms_router
from .bills import router as bills_router
from .payments import router as payments_router
from .notifications import router as notifications_router
from .maintenance import router as maintenance_router
from .cron import router as cron_router

all_routers = [
     auth_router,
     users_router,
     rooms_router,
     bills_router,
     payments_router,
     notifications_router,
     maintenance_router,
     cron_router,
]

__all__ = [
     "auth_router",
     "users_router",
     "rooms_router",
     "bills_router",
     "payments_router",
     "notifications_router",
     "maintenance_router",
     "cron_router",
     "all_routers",
]
