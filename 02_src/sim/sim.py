"""SIM implementation - hardcoded event traffic for trying the monitor out."""

import asyncio
import json
import random
import uuid
from datetime import datetime, timezone
from typing import Protocol

import httpx

from event_monitor.logging_config import get_logger

logger = get_logger(__name__)


SCENARIO_CHANNELS = [
    {"channel": "/event/Order_Placed__e", "label": "Order Placed"},
    {"channel": "/data/AccountChangeEvent", "label": "Account Change Event"},
    {"channel": "/event/BatchApexErrorEvent", "label": "Batch Apex Error Event"},
]


class ISim(Protocol):
    """Generate test traffic. Hardcoded scenario."""

    async def start(self) -> None:
        """Start hardcoded scenario."""
        ...

    async def stop(self) -> None:
        """Stop scenario."""
        ...


class Sim:
    """SIM publishing a hardcoded mix of platform events through the control API."""

    def __init__(self, api_url: str = "http://localhost:8000", rounds: int = 5):
        self._api_url = api_url
        self._rounds = rounds
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        """Start hardcoded scenario."""
        if self._running:
            return

        self._running = True
        self._client = httpx.AsyncClient()

        # Start background task
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    async def _run_scenario(self) -> None:
        """Run hardcoded scenario."""
        try:
            for entry in SCENARIO_CHANNELS:
                await self._post("/api/channels", entry)

            for i in range(self._rounds):
                if not self._running:
                    break

                await self._publish("/event/Order_Placed__e", order_payload(i))
                await asyncio.sleep(random.uniform(0.5, 2))
                await self._publish("/data/AccountChangeEvent", account_change_payload(i))
                await asyncio.sleep(random.uniform(0.5, 2))
                if i % 2 == 1:
                    await self._publish("/event/BatchApexErrorEvent", batch_error_payload(i))

                # Small delay between rounds
                await asyncio.sleep(2)

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            self._running = False

    async def _publish(self, channel: str, payload: dict) -> None:
        await self._post("/api/control/publish", {"channel": channel, "payload": payload})

    async def _post(self, path: str, body: dict) -> None:
        """POST to the monitor API."""
        if not self._client:
            return

        try:
            response = await self._client.post(
                f"{self._api_url}{path}",
                json=body,
                timeout=10.0,
            )

            if response.status_code in (200, 201):
                logger.info("SIM: %s %s", path, body.get("channel"))
            else:
                logger.error(
                    "SIM: Error calling %s: %s",
                    path,
                    response.status_code,
                )

        except Exception as e:
            logger.error("SIM: Failed to call %s: %s", path, e)


def order_payload(i: int) -> dict:
    items = [
        {"sku": f"SKU-{100 + n}", "qty": random.randint(1, 5)}
        for n in range(random.randint(1, 3))
    ]
    return {
        "Order_Number__c": f"ORD-{1000 + i}",
        "Amount__c": round(random.uniform(10, 500), 2),
        "Priority__c": random.choice([True, False]),
        # Stored as text by the publisher; the tree view unwraps it
        "Items__c": json.dumps(items),
    }


def account_change_payload(i: int) -> dict:
    change_type = random.choice(["CREATE", "UPDATE", "DELETE", "UNDELETE"])
    return {
        "ChangeEventHeader": {
            "entityName": "Account",
            "changeType": change_type,
            "changedFields": ["Name", "LastModifiedDate"] if change_type == "UPDATE" else [],
            "commitTimestamp": int(datetime.now(timezone.utc).timestamp() * 1000),
            "recordIds": [f"001{uuid.uuid4().hex[:15].upper()}"],
        },
        "Name": f"Acme {i}",
        "LastModifiedDate": datetime.now(timezone.utc).isoformat(),
    }


def batch_error_payload(i: int) -> dict:
    return {
        "ExceptionType": "System.LimitException",
        "Message": "Too many SOQL queries: 101",
        "JobScope": json.dumps([f"001{n:015d}" for n in range(i + 1)]),
        "Phase": "EXECUTE",
    }
