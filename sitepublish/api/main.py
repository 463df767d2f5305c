import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from sitepublish.api.deps import get_context, get_settings
from sitepublish.app_shell.config import validate_ops_rules
from sitepublish.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Validate rules before serving; run the dev job poller when enabled."""
    settings = get_settings()

    # A bad rules file stops the process
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        logger.info("Rules loaded from %s", settings.rules_path)
    except Exception:
        logger.critical("Rules load failed", exc_info=True)
        sys.exit(1)

    scheduler = None
    if rules.dev_jobs.autostart:
        scheduler = get_context().scheduler
        scheduler.start()

    yield

    if scheduler is not None:
        scheduler.stop()


app = FastAPI(
    title="Site Publish API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from sitepublish.api.routes import publish  # noqa: E402

app.include_router(publish.router, prefix="/api/publish", tags=["Publish"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Liveness check. Touches neither rules nor the database."""
    return {"status": "ok", "service": "api"}
