import logging
import logging.handlers
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from texfeedback.api.router import api_router
from texfeedback.config import Settings, settings
from texfeedback.core.synctex.cache import SyncCache
from texfeedback.core.synctex.navigator import SyncNavigator


LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s:%(lineno)d | %(message)s"


def build_log_handlers(cfg: Settings) -> list[logging.Handler]:
    """Console handler, plus a rotating file handler unless LOG_FILE is empty."""
    level = getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO)
    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if cfg.LOG_FILE:
        log_path = Path(cfg.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=cfg.LOG_MAX_BYTES,
            backupCount=cfg.LOG_BACKUP_COUNT,
            encoding="utf-8",
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(fmt)
    return handlers


def _setup_logging() -> None:
    root = logging.getLogger()

    # uvicorn --reload re-imports this module
    if getattr(root, "_texfeedback_configured", False):
        return
    root._texfeedback_configured = True  # type: ignore[attr-defined]

    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    for handler in build_log_handlers(settings):
        root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


_setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One cache slot for the whole process, shared by every request
    app.state.navigator = SyncNavigator(SyncCache())
    logger.info("SyncTeX navigator ready (suffixes=%s)", ", ".join(app.state.navigator.suffixes))
    yield
    app.state.navigator.clear_cache()


app = FastAPI(
    title="TeX Feedback API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
