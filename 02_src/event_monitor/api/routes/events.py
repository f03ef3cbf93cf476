"""Live event API routes."""

from dataclasses import asdict
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import Application
from ...dashboard import PAYLOAD


class LiveEventResponse(BaseModel):
    """Response model for a buffered event."""

    id: str
    channel: str
    received_at: datetime
    replay_cursor: str
    published_by_id: str | None
    published_date: str | None
    persisted_record_id: str | None
    payload: Any
    raw_envelope: Any


class EventLogResponse(BaseModel):
    """Response model for a persisted event log."""

    id: str
    created_at: datetime
    event_api_name: str
    event_type: str
    channel: str
    payload: str
    header_data: str
    replay_id: str | None
    published_by_id: str | None
    published_date: str | None
    schema_id: str | None
    entity_name: str | None
    change_type: str | None
    changed_fields: str | None
    commit_timestamp: str | None


class ClearRequest(BaseModel):
    """Request model for clearing a channel's logs; defaults to the active tab."""

    channel: str | None = None


class ClearResponse(BaseModel):
    """Response model for a clear action."""

    channel: str | None
    deleted: int


class ToggleRequest(BaseModel):
    """Request model for toggling an event section."""

    section: str = PAYLOAD


class TreeToggleRequest(BaseModel):
    """Request model for toggling one node of an event tree."""

    section: str = PAYLOAD
    path: list[str | int] = []


class ToggleResponse(BaseModel):
    """Response model for a toggle."""

    expanded: bool


def create_events_router(app: Application) -> APIRouter:
    """Create events router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.get("/events", response_model=list[LiveEventResponse])
    async def get_events(
        channel: str = Query(..., description="Channel path, e.g. /event/Foo__e"),
    ) -> list[dict]:
        """Get a channel's buffered events, newest first."""
        return [
            {
                "id": event.id,
                "channel": event.channel.id,
                "received_at": event.received_at,
                "replay_cursor": event.replay_cursor,
                "published_by_id": event.published_by_id,
                "published_date": event.published_date,
                "persisted_record_id": event.persisted_record_id,
                "payload": event.payload,
                "raw_envelope": event.raw_envelope,
            }
            for event in app.buffer.get(channel)
        ]

    @router.post("/events/clear", response_model=ClearResponse)
    async def clear_events(request: ClearRequest) -> dict:
        """Delete persisted logs and live events for a channel."""
        channel = request.channel or app.dashboard.active_tab
        if not channel:
            raise HTTPException(status_code=400, detail="No channel selected")

        deleted = await app.dashboard.clear_logs(channel)
        if deleted is None:
            raise HTTPException(status_code=500, detail="Clear failed")
        return {"channel": channel, "deleted": deleted}

    @router.post("/events/{event_id}/toggle", response_model=ToggleResponse)
    async def toggle_section(event_id: str, request: ToggleRequest) -> dict:
        """Open or close an event's payload or envelope section."""
        try:
            if request.section == PAYLOAD:
                expanded = app.dashboard.toggle_payload(event_id)
            elif request.section == "envelope":
                expanded = app.dashboard.toggle_envelope(event_id)
            else:
                raise HTTPException(status_code=400, detail=f"Unknown section: {request.section}")
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown event: {event_id}")
        return {"expanded": expanded}

    @router.get("/events/{event_id}/tree")
    async def get_tree(event_id: str, section: str = Query(PAYLOAD)) -> dict:
        """Render one section of an event as a tree."""
        try:
            return app.dashboard.event_tree(event_id, section).to_dict()
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown event: {event_id}")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.post("/events/{event_id}/tree/toggle")
    async def toggle_tree_node(event_id: str, request: TreeToggleRequest) -> dict:
        """Toggle one node and return the re-rendered tree."""
        try:
            app.dashboard.toggle_tree_node(event_id, request.section, request.path)
            return app.dashboard.event_tree(event_id, request.section).to_dict()
        except KeyError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.get("/logs", response_model=list[EventLogResponse])
    async def get_logs(
        channel: str | None = Query(None, description="Filter by channel"),
        limit: int = Query(100, ge=1, le=1000),
    ) -> list[dict]:
        """Get persisted event logs, newest first."""
        try:
            records = await app.storage.get_logs(channel=channel, limit=limit)
            return [
                {"id": record.id, "created_at": record.created_at, **asdict(record.entry)}
                for record in records
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
