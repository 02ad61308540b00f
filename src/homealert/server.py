"""
HTTP ingress - FastAPI application.

    GET  /        liveness text
    POST /        submit one alert, stored and sent synchronously
    POST /batch   run one batch of pending alerts
"""

import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from homealert.config import Settings
from homealert.errors import ConfigurationError, InvalidPayloadError
from homealert.models import MISSING_FIELDS_MESSAGE, parse_payload
from homealert.responses import error_envelope, json_envelope
from homealert.services import Services, build_services

logger = logging.getLogger(__name__)

HEALTH_TEXT = "Notification Worker Running"


def _get_services(request: Request) -> Services:
    """
    Return the process-wide services.

    Raises:
        ConfigurationError: If startup could not build them
    """
    services = request.app.state.services
    if services is None:
        raise ConfigurationError(request.app.state.config_error or "Services not initialized.")
    return services


def _is_json(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";")[0].strip().lower() == "application/json"


def create_app(settings: Settings, services: Services | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings
        services: Prebuilt services. When omitted they are built once at startup;
            if a credential is missing, requests get a 500 naming it.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = False
        if app.state.services is None:
            try:
                app.state.services = build_services(settings)
                owned = True
            except ConfigurationError as e:
                app.state.config_error = str(e)
                logger.error(f"Configuration error, alert endpoints disabled: {e}")
        yield
        if owned:
            app.state.services.close()

    app = FastAPI(lifespan=lifespan, title="homealert", docs_url=None, redoc_url=None)
    app.state.settings = settings
    app.state.services = services
    app.state.config_error = None

    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return PlainTextResponse("Method Not Allowed", status_code=405)
        return await http_exception_handler(request, exc)

    @app.get("/")
    async def health():
        """Liveness check."""
        return PlainTextResponse(HEALTH_TEXT)

    @app.post("/")
    async def submit_alert(request: Request):
        """Store one alert and send it immediately."""
        if not _is_json(request):
            return PlainTextResponse("Content-Type must be application/json", status_code=415)

        try:
            services = _get_services(request)
        except ConfigurationError as e:
            return error_envelope(500, str(e))

        try:
            data = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return error_envelope(400, MISSING_FIELDS_MESSAGE)

        try:
            payload = parse_payload(data)
        except InvalidPayloadError as e:
            logger.warning(f"Rejected alert submission: {e}")
            return error_envelope(400, str(e))

        try:
            alert = await run_in_threadpool(services.pipeline.store_alert, payload)
        except Exception as e:
            logger.error(f"Failed to store submitted alert: {e}")
            return error_envelope(500, str(e))

        try:
            await run_in_threadpool(services.pipeline.process_alert, alert)
        except Exception as e:
            # Stored but unsent; the next batch retries it.
            logger.error(f"Failed to send alert {alert.id}: {e}")
            return error_envelope(500, str(e), alert_id=alert.id)

        return json_envelope(200, True, alert_id=alert.id)

    @app.post("/batch")
    async def trigger_batch(request: Request):
        """Process one batch of pending alerts."""
        try:
            services = _get_services(request)
        except ConfigurationError as e:
            return error_envelope(500, str(e))

        result = await run_in_threadpool(services.pipeline.run_batch)
        return json_envelope(200, True, **result.to_dict())

    return app
