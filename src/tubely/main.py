"""FastAPI application entry point."""

import os

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="Tubely")
    include_routers(app, cfg)
    return app


def run() -> None:
    uvicorn.run(
        "src.tubely.main:create_app",
        factory=True,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8091")),
    )


if __name__ == "__main__":
    run()
