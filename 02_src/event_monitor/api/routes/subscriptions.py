"""Subscription API routes."""

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...models import REPLAY_TIP


class SubscribeRequest(BaseModel):
    """Request model for subscribing to a channel."""

    channel: str
    replay_cursor: int = Field(REPLAY_TIP, ge=-2)


class UnsubscribeRequest(BaseModel):
    """Request model for unsubscribing from a channel."""

    channel: str


class SubscriptionResponse(BaseModel):
    """Response model for a subscription."""

    channel: str
    replay_cursor: int
    state: str


class RequestResult(BaseModel):
    """Whether a subscribe/unsubscribe request was acted on, and the resulting state."""

    accepted: bool
    state: str


def create_subscriptions_router(app: Application) -> APIRouter:
    """Create subscriptions router."""
    router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])

    @router.get("", response_model=list[SubscriptionResponse])
    async def list_subscriptions() -> list[dict]:
        """List every channel that is not unsubscribed."""
        return [
            {
                "channel": subscription.channel.id,
                "replay_cursor": subscription.replay_cursor,
                "state": subscription.state.value,
            }
            for subscription in app.registry.subscriptions()
        ]

    @router.post("", response_model=RequestResult)
    async def subscribe(request: SubscribeRequest) -> dict:
        """Subscribe to a discovered channel."""
        try:
            accepted = await app.dashboard.subscribe(request.channel, request.replay_cursor)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown channel: {request.channel}")
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return {"accepted": accepted, "state": app.registry.state(request.channel).value}

    @router.post("/unsubscribe", response_model=RequestResult)
    async def unsubscribe(request: UnsubscribeRequest) -> dict:
        """Unsubscribe from a channel; buffered events are kept."""
        try:
            accepted = await app.dashboard.unsubscribe(request.channel)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return {"accepted": accepted, "state": app.registry.state(request.channel).value}

    return router
