"""threadkit

FastAPI application serving provider-agnostic conversation threads: create a
thread on any configured backend, talk to it, let the model call tools, and
switch backends mid-conversation without losing history.

Run with:
    uvicorn threadkit.main:app --host 0.0.0.0 --port 8000
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import logfire
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from .api.routers import health_router, threads_router
from .config import Settings, settings


def configure_logging(config: Settings) -> None:
    """Console output at LOG_LEVEL unless disabled; traces ship only when LOGFIRE_TOKEN is set."""
    logfire.configure(
        service_name=config.app_name,
        service_version=config.app_version,
        environment=config.environment,
        send_to_logfire="if-token-present",
        console=logfire.ConsoleOptions(min_log_level=config.log_level) if config.logfire_console else False,
    )


def create_app(config: Settings) -> FastAPI:
    """Build the API: lifespan logging, optional CORS, thread and health routes."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        logfire.info("Starting {app_name} v{app_version}", app_name=config.app_name, app_version=config.app_version)
        yield
        logfire.info("Shutting down {app_name}", app_name=config.app_name)

    application = FastAPI(
        title=config.app_name,
        description=config.app_description,
        version=config.app_version,
        debug=config.environment == "development",
        lifespan=lifespan,
    )

    if config.cors_origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=[origin.strip() for origin in config.cors_origins.split(",")],
            allow_credentials=config.cors_credentials,
            allow_methods=config.cors_methods.split(","),
            allow_headers=config.cors_headers.split(","),
        )

    application.include_router(health_router)
    application.include_router(threads_router)

    @application.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return application


configure_logging(settings)
app = create_app(settings)
