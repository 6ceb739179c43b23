"""
HTTP surface for the event publisher: health, metrics and a publish endpoint.

Run with:
    uvicorn project_events.http:app --port 8683
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from project_events.config import settings
from project_events.errors import EventPublishError
from project_events.events.types import is_valid_event_type
from project_events.publisher import EventPublisher

logger = logging.getLogger(__name__)


def create_app(publisher: Optional[EventPublisher] = None) -> FastAPI:
    """Build the FastAPI app; the publisher is started and closed with the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.publisher = publisher or EventPublisher.from_settings(settings)
        await app.state.publisher.start()
        try:
            yield
        finally:
            await app.state.publisher.close()

    app = FastAPI(title="project-events", version="1.0.0", lifespan=lifespan)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True, "service": settings.service_name}

    @app.get("/events/health")
    async def events_health(request: Request):
        status = await request.app.state.publisher.health_check()
        code = 200 if status["status"] == "healthy" else 503
        return JSONResponse(status, status_code=code)

    @app.get("/events/metrics")
    async def events_metrics(request: Request):
        return request.app.state.publisher.get_metrics()

    @app.post("/events/metrics/reset")
    async def reset_events_metrics(request: Request):
        request.app.state.publisher.reset_metrics()
        return {"ok": True}

    @app.post("/events/{event_type}")
    async def publish_event(
        event_type: str,
        payload: Dict[str, Any],
        request: Request,
        x_correlation_id: Optional[str] = Header(default=None),
    ):
        if not is_valid_event_type(event_type):
            raise HTTPException(status_code=404, detail=f"Unknown event type: {event_type}")

        publisher: EventPublisher = request.app.state.publisher
        try:
            await publisher.publish(event_type, payload, correlation_id=x_correlation_id)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
        except EventPublishError as e:
            logger.error(f"Publishing {event_type} failed: {e}")
            raise HTTPException(status_code=502, detail=str(e))

        return {"accepted": True, "event_type": event_type, "correlation_id": x_correlation_id}

    return app


app = create_app()


def main() -> None:
    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
