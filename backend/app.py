import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from backend import state
from backend.routes import router
from staya import config

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


def create_app(data_dir: Path | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    config.init_config(resolved)
    settings = config.get_config()
    state.init_session(settings)
    logger.info(
        "session host ready: format=%s models=%s",
        settings["provider_format"], ",".join(settings["models"]),
    )

    app = FastAPI(title="Volchya Staya")
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
