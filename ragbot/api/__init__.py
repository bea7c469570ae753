"""FastAPI application setup."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ragbot.api.controller import (
    chat_router,
    document_router,
    health_router,
    telegram_webhook,
)
from ragbot.config.configuration import get_config
from ragbot.container import ServiceContainer


def create_app(container: Optional[ServiceContainer] = None, warm_up: bool = True) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Prebuilt services; built from ``get_config()`` if omitted.
        warm_up: Whether startup probes the upstream services.
    """
    if container is None:
        container = ServiceContainer(get_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await container.start(warm_up=warm_up)
        yield
        await container.shutdown()

    app = FastAPI(
        title="Telegram RAG Bot API",
        description="Dashboard and webhook API for the Telegram RAG bot",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    # CORS for the dashboard frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production: specify the dashboard origin
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(chat_router)
    app.include_router(document_router)
    app.add_api_route(
        container.config.telegram.webhook_path,
        telegram_webhook,
        methods=["POST"],
        tags=["telegram"],
    )

    return app
