"""Run the Platform Event Monitor API server."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from event_monitor.api import create_fastapi_app
from event_monitor.api.routes import control
from event_monitor.logging_config import get_logger, setup_logging
from sim import Sim

logger = get_logger(__name__)


def load_settings() -> dict:
    """Server settings from .env / environment."""
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")
    host = os.getenv("API_HOST", "localhost")
    port = int(os.getenv("API_PORT", "8000"))
    return {
        "host": host,
        "port": port,
        "api_url": f"http://{host}:{port}",
        "sim_rounds": int(os.getenv("SIM_ROUNDS", "5")),
    }


def build_app(settings: dict) -> FastAPI:
    """FastAPI app with the SIM wired to the control routes."""
    # The SIM talks to this same server over HTTP
    control.set_sim_instance(Sim(api_url=settings["api_url"], rounds=settings["sim_rounds"]))
    return create_fastapi_app()


def main():
    settings = load_settings()
    setup_logging()
    logger.info("Serving on %s", settings["api_url"])

    uvicorn.run(
        build_app(settings),
        host=settings["host"],
        port=settings["port"],
        log_level="info",
        log_config=None,  # keep our handlers
    )


if __name__ == "__main__":
    main()
