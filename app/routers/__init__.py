"""API routers."""

from app.routers.submissions import router as submissions_router

__all__ = ["submissions_router"]
