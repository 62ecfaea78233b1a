"""
Tennis Clicker Relay - Main FastAPI Application
Streams live tennis match data from SportScore (RapidAPI) to WebSocket clients
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from app.live_match import MatchDataProvider, SessionManager
from app.schemas import HealthResponse, RelayStats
from config.settings import Settings, settings

# Version tracking
APP_VERSION = "v1.0.0"
APP_NAME = "Tennis Clicker Relay"
APP_STAGE = "Beta"

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("main")


def log_startup_banner(config: Settings) -> None:
    """Log connection details once at startup."""
    logger.info("=" * 60)
    logger.info(f"🎾 {APP_NAME} {APP_VERSION}")
    logger.info("=" * 60)
    logger.info(f"Server started on port {config.port}")
    logger.info(f"WebSocket URL: {config.websocket_url}")
    logger.info("API: SportScore (RapidAPI)")
    logger.info(f"Auth user: {config.auth_username}")
    logger.info(f"Poll interval: {config.poll_interval_seconds}s")
    logger.info("=" * 60)

    if not config.rapidapi_key:
        logger.warning("RAPIDAPI_KEY not set! Set it in the environment or the .env file")


async def _receive_frame(websocket: WebSocket) -> Optional[str]:
    """
    Wait for the next client frame.

    Returns None once the client disconnects. Binary frames are decoded as
    UTF-8 so they go through the same parsing as text frames.
    """
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        return None
    if message.get("text") is not None:
        return message["text"]
    return (message.get("bytes") or b"").decode("utf-8", errors="replace")


def create_app(
    provider: Optional[MatchDataProvider] = None,
    config: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        provider: Match data provider (defaults to SportScore)
        config: Settings to use (defaults to the environment)
    """
    config = config or settings
    manager = SessionManager(provider=provider, config=config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_startup_banner(config)
        yield
        logger.info("Shutting down server...")
        await manager.shutdown()
        logger.info("Server closed")

    app = FastAPI(
        title=f"{APP_NAME} ({APP_STAGE})",
        description="Live tennis match updates over WebSocket, sourced from SportScore",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.state.session_manager = manager

    @app.get("/")
    def index():
        """Service info with the WebSocket address clients should use."""
        return {
            "name": APP_NAME,
            "websocket": config.websocket_url,
            "message_types": ["authenticate", "get_matches", "subscribe", "unsubscribe", "refresh"],
        }

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint."""
        return {"status": "ok", "source": "sportscore", "mode": "live"}

    @app.get("/version")
    def version_info():
        """Version information endpoint."""
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "stage": APP_STAGE,
            "full": f"{APP_NAME} {APP_VERSION} ({APP_STAGE})"
        }

    @app.get("/stats", response_model=RelayStats)
    def relay_stats():
        """Active sessions and monitored matches."""
        return manager.get_stats()

    @app.websocket("/")
    async def relay(websocket: WebSocket):
        """One client connection: greet, then handle frames until it closes."""
        await websocket.accept()
        try:
            session = await manager.connect(websocket)
        except WebSocketDisconnect:
            return

        try:
            while True:
                raw = await _receive_frame(websocket)
                if raw is None:
                    break
                await manager.handle_message(session, raw)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error(f"WebSocket error ({session.session_id}): {e}", exc_info=True)
        finally:
            manager.disconnect(session)

    return app


app = create_app()


def run() -> None:
    """Run the relay with uvicorn. Ctrl+C shuts down cleanly via the lifespan."""
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
