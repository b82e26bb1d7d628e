"""API Routers Package.

Routers:
- calendar.py: view-models, range/shift navigation, reschedule, export

Usage in main.py:
    from api.routers import calendar_router

    app.include_router(calendar_router, prefix="/calendar", tags=["calendar"])
"""

from .calendar import router as calendar_router

__all__ = [
    "calendar_router",
]
