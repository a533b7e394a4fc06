from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from duochat.api.deps import close_http_client, get_config
from duochat.api.error_handlers import install_error_handlers
from duochat.api.routes_chat import router as chat_router
from duochat.api.routes_documents import router as documents_router
from duochat.utils.log import configure_logging


class _SolaraContextResetApp:
    def __init__(self, app) -> None:
        self._app = app

    async def __call__(self, scope, receive, send) -> None:
        from solara.server import kernel_context

        with kernel_context.without_context():
            await self._app(scope, receive, send)


@asynccontextmanager
async def _lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_http_client()


def create_app(mount_ui: bool = True) -> FastAPI:
    configure_logging(get_config().logging.level)
    app = FastAPI(
        title="duochat",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=_lifespan,
    )
    install_error_handlers(app)
    app.include_router(chat_router)
    app.include_router(documents_router)
    if mount_ui:
        os.environ["SOLARA_APP"] = "duochat.cli.app:Page"
        from solara.server.starlette import app as solara_app

        app.mount("/", _SolaraContextResetApp(solara_app))
    return app


app = create_app()
