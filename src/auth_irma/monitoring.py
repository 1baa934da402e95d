"""
Sentry error reporting for the bridge.

Reporting is enabled only when the configuration carries a ``sentry_dsn``.
"""

from __future__ import annotations

import logging
import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from . import __version__

logger = logging.getLogger(__name__)


def init_sentry(dsn: str | None, environment: str | None = None) -> bool:
    """
    Initialize the Sentry SDK.

    Args:
        dsn: Sentry DSN; reporting stays disabled when empty
        environment: Environment name, defaults to ``SENTRY_ENVIRONMENT``

    Returns:
        True if Sentry was initialized
    """
    if not dsn:
        logger.debug("Sentry DSN not configured. Error reporting disabled.")
        return False

    if environment is None:
        environment = os.getenv("SENTRY_ENVIRONMENT", os.getenv("ENVIRONMENT", "production"))

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=f"auth-irma@{__version__}",
        integrations=[
            FastApiIntegration(transaction_style="url"),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        # Attribute values travel in URLs and bodies
        send_default_pii=False,
    )
    sentry_sdk.set_tag("service", "auth-irma")
    logger.info("Sentry initialized for environment %s", environment)
    return True
