"""
Habit accountability auth API.

Phone-number login with SMS one-time codes. Issuance and validation are
rate limited per user; see services/challenge_service.py.
"""
import logging
import logging.config
import logging.handlers
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habit_auth.api.routers import auth
from habit_auth.core.config import get_settings
from habit_auth.db.base import Base
from habit_auth.db.session import engine

settings = get_settings()


def _configure_logging() -> None:
    """Configure console logging, plus a rotating file when log_dir is set."""
    log_level = "DEBUG" if settings.debug else "INFO"
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": log_level,
        },
    }
    if settings.log_dir:
        log_dir = Path(settings.log_dir).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "standard",
            "level": log_level,
            "filename": str(log_dir / "habit_auth.log"),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            }
        },
        "handlers": handlers,
        "root": {
            "handlers": list(handlers),
            "level": log_level,
        },
        "loggers": {
            "uvicorn.access": {
                "handlers": list(handlers),
                "level": log_level,
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": list(handlers),
                "level": log_level,
                "propagate": False,
            },
        },
    })


_configure_logging()

logger = logging.getLogger(__name__)

docs_url = "/docs" if settings.enable_docs else None
redoc_url = "/redoc" if settings.enable_docs else None
openapi_url = "/openapi.json" if settings.enable_docs else None

app = FastAPI(title=settings.app_name, version="0.1.0", docs_url=docs_url, redoc_url=redoc_url, openapi_url=openapi_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)

app.include_router(auth.router)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    logger.info(f"{settings.app_name} started")


@app.get("/health")
def health():
    """Health check for load balancers."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "habit_auth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=None,
    )
