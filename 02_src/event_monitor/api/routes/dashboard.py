"""Dashboard API routes."""

from dataclasses import asdict

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application


class TabRequest(BaseModel):
    """Request model for selecting the active tab."""

    channel: str


class FilterRequest(BaseModel):
    """Request model for the channel table filters."""

    search: str = ""
    category: str | None = None


def create_dashboard_router(app: Application) -> APIRouter:
    """Create dashboard router."""
    router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

    @router.get("")
    async def get_dashboard() -> dict:
        """Get the full dashboard view."""
        return app.dashboard.view().to_dict()

    @router.post("/tab")
    async def select_tab(request: TabRequest) -> dict:
        """Switch the active tab to a subscribed channel."""
        try:
            app.dashboard.select_tab(request.channel)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Not subscribed: {request.channel}")
        return app.dashboard.view().to_dict()

    @router.post("/filters")
    async def set_filters(request: FilterRequest) -> dict:
        """Set the channel table search term and category."""
        try:
            app.dashboard.set_search(request.search)
            app.dashboard.set_category(request.category)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return app.dashboard.view().to_dict()

    @router.get("/toasts")
    async def get_toasts() -> list[dict]:
        """Return and clear pending operator notices."""
        return [asdict(toast) for toast in app.dashboard.drain_toasts()]

    return router
