"""
Entry point of the IRMA authentication bridge.
"""

from __future__ import annotations

import logging
import sys

import uvicorn

from .api import create_app
from .config import ServiceConfig
from .exceptions import ConfigurationError
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging("auth-irma")

    try:
        service_config = ServiceConfig.from_env()
        app = create_app(service_config=service_config)
    except ConfigurationError as e:
        logger.critical("Could not start: %s", e.message)
        sys.exit(1)

    uvicorn.run(
        app,
        host=service_config.host,
        port=service_config.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
