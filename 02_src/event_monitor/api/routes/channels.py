"""Channel discovery API routes."""

from dataclasses import asdict

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import Application
from ...discovery import channel_from_entry
from ...models import ChannelCategory


class ChannelRequest(BaseModel):
    """Request model for registering a channel."""

    channel: str
    label: str | None = None
    api_name: str | None = None
    category: str | None = None


class ChannelResponse(BaseModel):
    """Response model for a channel row."""

    id: str
    name: str
    api_name: str
    category: str
    category_label: str
    state: str
    is_subscribed: bool
    event_count: int


def create_channels_router(app: Application) -> APIRouter:
    """Create channels router."""
    router = APIRouter(prefix="/api/channels", tags=["channels"])

    @router.get("", response_model=list[ChannelResponse])
    async def list_channels(
        search: str = Query("", description="Match on API name or label"),
        category: str | None = Query(None, description="Channel category or 'All'"),
    ) -> list[dict]:
        """List discovered channels with optional filters."""
        try:
            parsed = None
            if category and category != "All":
                try:
                    parsed = ChannelCategory.parse(category)
                except ValueError as e:
                    raise HTTPException(status_code=400, detail=str(e))

            rows = app.dashboard.channel_rows(search, parsed)
            return [asdict(row) for row in rows]

        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("", response_model=ChannelResponse, status_code=201)
    async def register_channel(request: ChannelRequest) -> dict:
        """Add a channel to the catalog and refresh discovery."""
        try:
            channel = channel_from_entry(
                {
                    "channel": request.channel,
                    "label": request.label,
                    "apiName": request.api_name,
                    "category": request.category,
                }
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            await app.discovery.register_channel(channel)
            await app.dashboard.refresh()
            rows = [
                row for row in app.dashboard.channel_rows() if row.id == channel.id
            ]
            return asdict(rows[0])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/refresh", response_model=list[ChannelResponse])
    async def refresh_channels() -> list[dict]:
        """Reload channels from discovery."""
        await app.dashboard.refresh()
        error = app.dashboard.view().error
        if error:
            raise HTTPException(status_code=500, detail=error)
        return [asdict(row) for row in app.dashboard.channel_rows()]

    return router
