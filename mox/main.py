import os
from pprint import pprint
from typing import Optional

import uvicorn
from fastapi import FastAPI

from mox.config import ConfigurationService
from mox.config.log import configure_structlog, get_logger
from mox.config.models import ConfigModel
from mox.server import Initializer, MoxServer
from mox.services.initializer_loader import load_initializer


def create_app(config: Optional[ConfigModel] = None, initialize: Optional[Initializer] = None) -> FastAPI:
    """Application factory for creating mox FastAPI instances.

    Args:
        config: Optional configuration. If None, loads it from MOX_CONFIG or the default locations.
        initialize: Optional route initializer. If None, the configured ``routes`` entry is loaded.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = ConfigurationService(os.environ.get('MOX_CONFIG')).get_config()

    configure_structlog(config.logging)
    logger = get_logger(__name__)

    if initialize is None and config.routes:
        initialize = load_initializer(config.routes, search_paths=[os.getcwd()])

    server = MoxServer(config)
    app = server.setup(initialize)

    app.state.config = config
    app.state.mox_server = server

    logger.info('mox configured', target_url=config.target_url, proxy_unmatched_routes=config.proxy_unmatched_routes)

    # Print config in dev mode
    if config.dev:
        pprint(config.model_dump())

    return app


def run() -> None:
    """Console entry point."""
    config = ConfigurationService(os.environ.get('MOX_CONFIG')).get_config()
    app = create_app(config)

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        ssl_certfile=config.ssl_certfile,
        ssl_keyfile=config.ssl_keyfile,
        log_config=None,
    )


if __name__ == '__main__':
    run()
