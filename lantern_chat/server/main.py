"""FastAPI application entrypoint for the Lantern chat relay."""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from . import images, messages, users
from .config import HOST, IMAGE_SWEEP_INTERVAL_SECONDS, PORT
from .logging_config import configure_logging
from .relay import Relay
from .schemas import HealthOut

logger = configure_logging()


def create_app(relay: Optional[Relay] = None, sweep_interval: float = IMAGE_SWEEP_INTERVAL_SECONDS) -> FastAPI:
    relay = relay or Relay()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(relay.blobs.run_sweeper(sweep_interval))
        logger.info("RELAY_STARTED sweep_interval=%s", sweep_interval)
        try:
            yield
        finally:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
            relay.shutdown()
            logger.info("RELAY_STOPPED")

    app = FastAPI(title="Lantern Chat Relay", version="1.0.0", lifespan=lifespan)
    app.state.relay = relay
    app.include_router(messages.router)
    app.include_router(users.router)
    app.include_router(images.router)

    @app.get("/", response_model=HealthOut)
    def root():
        return HealthOut(status="ok")

    return app


app = create_app()


def main() -> None:
    logger.info("Server starting on http://%s:%s", HOST, PORT)
    uvicorn.run("lantern_chat.server.main:app", host=HOST, port=PORT, reload=False)


if __name__ == "__main__":
    main()
