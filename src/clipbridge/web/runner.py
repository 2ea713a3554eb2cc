"""Uvicorn server runner with custom configuration."""

import copy
from typing import Any

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from clipbridge.app import App
from clipbridge.config import Config
from clipbridge.web.server import create_fastapi_app


def build_log_config() -> dict[str, Any]:
    """Uvicorn logging with short access lines; structlog owns application logs."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = '%(asctime)s - "%(request_line)s" %(status_code)s'
    log_config["formatters"]["default"]["fmt"] = "%(asctime)s - %(levelname)s - %(message)s"
    return log_config


def run_server(app: App, config: Config) -> None:
    """Serve HTTP and the realtime channel.

    Keepalive pings detect dead realtime clients so their group membership
    is released.
    """
    uvicorn.run(
        create_fastapi_app(app, config),
        host=config.host,
        port=config.port,
        log_config=build_log_config(),
        access_log=config.debug,
        ws_ping_interval=config.ws_ping_interval,
        ws_ping_timeout=config.ws_ping_timeout,
        ws_max_size=config.ws_max_size,
    )
