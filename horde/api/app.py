"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from horde.api.dependencies import set_engine_manager
from horde.api.engine_manager import EngineManager
from horde.api.routes import api_router
from horde.config import StrategyConfig
from horde.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: StrategyConfig | None = None, autostart: bool = True) -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    if config is None:
        config = StrategyConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(_config.log_level)
        manager = EngineManager(_config)
        set_engine_manager(manager)
        if autostart:
            manager.start()
        logger.info("API server started.")
        yield
        manager.stop()
        set_engine_manager(None)
        logger.info("API server shutting down.")

    app = FastAPI(
        title="Horde Strategy Engine",
        description=(
            "Monster group decision engine: per-tick strategy for monster groups "
            "in a chunked tile world.\n\n"
            "## API Groups\n\n"
            "- **State**: groups, structures, battles and the event feed\n"
            "- **Control**: engine lifecycle: start, pause, resume, step, reset\n"
            "- **Config**: read-only strategy configuration\n"
            "- **Metadata**: personality, structure and building definitions\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "State", "description": "Live world state polled by clients."},
            {"name": "Control", "description": "Engine lifecycle controls."},
            {"name": "Config", "description": "Read-only strategy configuration."},
            {"name": "Metadata", "description": "Static definition tables serialized from horde.core."},
        ],
    )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
