"""Entry point for the MediaMirror FastAPI application."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from mediamirror import __version__
from mediamirror.config import AppConfig, load_config
from mediamirror.integrations.content_store import ContentStore, IpfsHttpClient
from mediamirror.integrations.metadata import MetadataExtractor, MutagenMetadataExtractor
from mediamirror.logging import configure_logging, get_logger
from mediamirror.logging_events import log_event
from mediamirror.middleware import install_middleware
from mediamirror.routers import register_routers
from mediamirror.services.catalog_store import CatalogStore
from mediamirror.services.health import HealthService
from mediamirror.services.stream_proxy import StreamProxy
from mediamirror.services.sync_pipeline import SyncPipeline

logger = get_logger(__name__)
_APP_LISTEN_HOST = "0.0.0.0"


def build_content_store(config: AppConfig) -> IpfsHttpClient:
    return IpfsHttpClient(
        base_url=config.store.api_url,
        timeout_ms=config.store.timeout_ms,
        pin=config.store.pin,
        cid_version=config.store.cid_version,
        resolve_timeout_ms=config.store.resolve_timeout_ms,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    config: AppConfig = app.state.config
    log_event(
        logger,
        "startup.config",
        media_dir=str(config.media_dir),
        catalog_file=str(config.catalog_file),
        store_url=config.store.api_url,
        sync_concurrency=config.sync.concurrency,
        api_base_path=config.api_base_path,
    )
    logger.info("MediaMirror application started")
    try:
        yield
    finally:
        logger.info("MediaMirror application stopped")


def create_app(
    config: AppConfig | None = None,
    *,
    store: ContentStore | None = None,
    extractor: MetadataExtractor | None = None,
) -> FastAPI:
    """Assemble the application and its collaborators.

    ``store`` and ``extractor`` default to the IPFS client and the mutagen
    reader; tests pass doubles instead.
    """

    resolved = config or load_config()
    content_store = store if store is not None else build_content_store(resolved)
    catalog_store = CatalogStore(resolved.catalog_file)

    app = FastAPI(title="MediaMirror", version=__version__, lifespan=lifespan)
    app.state.config = resolved
    app.state.catalog_store = catalog_store
    app.state.sync_pipeline = SyncPipeline(
        store=content_store,
        catalog=catalog_store,
        extractor=extractor or MutagenMetadataExtractor(),
        media_dir=resolved.media_dir,
        concurrency=resolved.sync.concurrency,
    )
    app.state.sync_guard = asyncio.Lock()
    app.state.stream_proxy = StreamProxy(store=content_store, catalog=catalog_store)
    app.state.health_service = HealthService(store=content_store)

    install_middleware(app)
    register_routers(app, base_path=resolved.api_base_path)
    return app


app = create_app()


def run() -> None:
    """Configure logging and serve ``app`` with uvicorn."""

    config: AppConfig = app.state.config
    configure_logging(config.logging.level, config.logging.log_file)
    logger.info(
        "listening on %s:%s",
        _APP_LISTEN_HOST,
        config.port,
        extra={"event": "startup.listening", "host": _APP_LISTEN_HOST, "port": config.port},
    )
    uvicorn.run(app, host=_APP_LISTEN_HOST, port=config.port, log_config=None)


__all__ = ["app", "build_content_store", "create_app", "run"]
