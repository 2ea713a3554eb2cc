from clipbridge.web.routers.realtime import router as realtime_router
from clipbridge.web.routers.sessions import router as sessions_router

__all__ = [
    "realtime_router",
    "sessions_router",
]
