"""Control API routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class PublishRequest(BaseModel):
    """Request model for publishing a message on the in-memory transport."""

    channel: str
    payload: dict[str, Any]
    schema_id: str | None = None
    published_by: str | None = None


class PublishResponse(BaseModel):
    """Response model for a published message."""

    replay_id: int
    message: dict[str, Any]


class TransportErrorRequest(BaseModel):
    """Request model for injecting a connection-level transport error."""

    detail: str
    channel: str | None = None


# Global SIM instance (will be set by main app)
_sim_instance: Any = None


def set_sim_instance(sim: Any) -> None:
    """Set the global SIM instance."""
    global _sim_instance
    _sim_instance = sim


def get_sim_instance() -> Any:
    """Get the global SIM instance."""
    return _sim_instance


def create_control_router(app: Application) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/publish", response_model=PublishResponse)
    async def publish(request: PublishRequest) -> dict:
        """Publish a payload on the transport (in-memory broker only)."""
        client = app.client
        if not hasattr(client, "publish"):
            raise HTTPException(status_code=404, detail="Transport does not support publishing")

        kwargs = {"schema": request.schema_id}
        if request.published_by:
            kwargs["published_by"] = request.published_by
        try:
            message = await client.publish(request.channel, request.payload, **kwargs)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return {"replay_id": message["data"]["event"]["replayId"], "message": message}

    @router.post("/transport-error", response_model=StatusResponse)
    async def transport_error(request: TransportErrorRequest) -> dict:
        """Simulate a connection-level transport error."""
        client = app.client
        if not hasattr(client, "report_error"):
            raise HTTPException(status_code=404, detail="Transport does not support error injection")

        await client.report_error(request.detail, request.channel)
        return {"status": "ok"}

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Drop subscriptions, live events and persisted logs."""
        try:
            await app.reset()
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/sim/start", response_model=StatusResponse)
    async def start_sim() -> dict:
        """Start SIM simulation."""
        try:
            if _sim_instance:
                await _sim_instance.start()
                return {"status": "ok"}
            else:
                raise HTTPException(status_code=404, detail="SIM not configured")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/sim/stop", response_model=StatusResponse)
    async def stop_sim() -> dict:
        """Stop SIM simulation."""
        try:
            if _sim_instance:
                await _sim_instance.stop()
                return {"status": "ok"}
            else:
                raise HTTPException(status_code=404, detail="SIM not configured")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
