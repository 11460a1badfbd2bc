"""FastAPI application setup and the ``rotalock-web`` entry point"""

import asyncio

import uvicorn

from rotalock import config
from rotalock.runtime import RuntimeComponents, bootstrap
from rotalock.telemetry import get_logger, setup_logging
from rotalock.web.server import WebServer

logger = get_logger(__name__)


def create_app(components: RuntimeComponents) -> WebServer:
    """Create the web application"""
    return WebServer(components)


async def start_server(host: str | None = None, port: int | None = None) -> None:
    """Bootstrap the runtime and serve it until interrupted"""
    components = bootstrap(persist_path=config.PERSIST_FILE)
    server = create_app(components)
    components.start()

    uvicorn_config = uvicorn.Config(
        server.app,
        host=host or config.WEB_HOST,
        port=port or config.WEB_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )
    uvicorn_server = uvicorn.Server(uvicorn_config)

    logger.info(f"[Web] rotalock control surface at http://{uvicorn_config.host}:{uvicorn_config.port}")

    try:
        await uvicorn_server.serve()
    finally:
        components.dispose()


def main():
    """Entry point"""
    setup_logging()
    try:
        asyncio.run(start_server())
    except KeyboardInterrupt:
        print("\nServer stopped")
