from fastapi import APIRouter

# Auth
from servicedesk.api.v1.auth import router as auth_router

# Front desk
from servicedesk.api.v1.slots import router as slots_router
from servicedesk.api.v1.bookings import router as bookings_router
from servicedesk.api.v1.history import router as history_router

# Admin
from servicedesk.api.v1.admin.blocked_slots import router as blocked_slots_router
from servicedesk.api.v1.admin.settings import router as settings_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Front desk: availability, bookings, history & undo ---
api_router.include_router(slots_router)
api_router.include_router(bookings_router)
api_router.include_router(history_router)

# --- Admin ---
api_router.include_router(blocked_slots_router)
api_router.include_router(settings_router)
