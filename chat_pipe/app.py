import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from chat_pipe.config import load_config
from chat_pipe.engine import PipeEngine
from chat_pipe.routes import router

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "data" / "config.json"
HOUSEKEEPING_INTERVAL = float(os.getenv("CHAT_PIPE_HOUSEKEEPING_INTERVAL", "60"))


async def housekeeping(app: FastAPI, interval: float) -> None:
    """Purge expired pending entries every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            app.state.engine.purge_expired()
        except Exception:
            logger.exception("housekeeping pass failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(housekeeping(app, HOUSEKEEPING_INTERVAL))
    try:
        yield
    finally:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


def create_app(config_path: Path | None = None) -> FastAPI:
    resolved = config_path or Path(os.getenv("CHAT_PIPE_CONFIG", str(DEFAULT_CONFIG_PATH)))

    app = FastAPI(title="Chat Pipe", lifespan=lifespan)
    app.state.config_path = resolved
    app.state.engine = PipeEngine(load_config(resolved))
    app.include_router(router, prefix="/api")
    return app
