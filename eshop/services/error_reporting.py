"""
Sentry error reporting.
"""

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from ..config import settings
from ..logger import get_logger

logger = get_logger(__name__)


def init_sentry() -> bool:
    """Initializes the SDK when SENTRY_DSN is set. Returns whether reporting is enabled."""
    if not settings.SENTRY_DSN:
        logger.info("[SENTRY] SENTRY_DSN not set, error reporting disabled")
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        release=f"eshop@{settings.APP_VERSION}",
        integrations=[StarletteIntegration(), FastApiIntegration()],
    )
    logger.info("[SENTRY] Error reporting enabled (%s)", settings.SENTRY_ENVIRONMENT)
    return True


def capture_exception(error: BaseException) -> None:
    """Reports a handled exception. No-op when Sentry is not initialized."""
    sentry_sdk.capture_exception(error)
