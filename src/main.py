from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from src.appointments.api.routes import router as appointments_router
from src.clinical.api.routes import router as clinical_router
from src.clinical.infrastructure.storage.local_storage import LocalFileStorage
from src.integrations.infrastructure.auth_client import AuthServiceClient
from src.integrations.infrastructure.patients_client import PatientsServiceClient
from src.pharmacy.api.routes import router as pharmacy_router
from src.shared.config import Settings, get_settings
from src.shared.database import configure_database, dispose_engine, init_models
from src.shared.exceptions import register_exception_handlers  # central mapping
from src.shared.health import router as health_router
from src.shared.infrastructure.messaging.event_bus import create_event_bus
from src.shared.logging import get_logger, setup_logging
from src.shared.middleware import RequestContextMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging(settings)
    configure_database(settings=settings)
    if settings.auto_create_schema:
        await init_models()

    app.state.auth_client = AuthServiceClient(settings.auth_service_url, timeout=settings.remote_timeout_seconds)
    app.state.patients_client = PatientsServiceClient(
        settings.patients_service_url, timeout=settings.remote_timeout_seconds
    )
    app.state.event_bus = await create_event_bus(settings)
    app.state.file_storage = LocalFileStorage(settings.upload_dir)
    logger.info("app.started", **settings.safe_dict())

    try:
        yield
    finally:
        await app.state.auth_client.aclose()
        await app.state.patients_client.aclose()
        await app.state.event_bus.close()
        await dispose_engine()
        logger.info("app.stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Veterinary Appointments Service API",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
        swagger_ui_parameters={"persistAuthorization": True},
    )
    app.state.settings = settings

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    # correlation id + request log line
    app.add_middleware(RequestContextMiddleware)

    # Routers: literal paths before the /{appointment_id} catch-alls
    app.include_router(health_router)
    app.include_router(pharmacy_router)
    app.include_router(clinical_router)
    app.include_router(appointments_router)

    # Centralized error handling → {success: false, message, code, data?, error?}
    register_exception_handlers(app)

    # ---- Custom OpenAPI to add Bearer auth ----
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            routes=app.routes,
        )
        schema.setdefault("components", {}).setdefault("securitySchemes", {})["bearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
        schema["security"] = [{"bearerAuth": []}]
        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi

    return app


app = create_app()
