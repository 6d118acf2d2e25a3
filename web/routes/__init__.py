from .admin_routes import router as admin_router
from .auth_routes import router as auth_router
from .booking_routes import router as booking_router
from .contact_routes import router as contact_router
from .pages import router as pages_router

__all__ = ["admin_router", "auth_router", "booking_router", "contact_router", "pages_router"]
