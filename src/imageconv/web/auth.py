"""API key authentication for image routes."""

import logging
import secrets
from collections.abc import Callable, Iterable

from litestar.connection import ASGIConnection
from litestar.exceptions import NotAuthorizedException
from litestar.handlers.base import BaseRouteHandler

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


def create_api_key_guard(api_keys: Iterable[str]) -> Callable[[ASGIConnection, BaseRouteHandler], None]:
    """
    Create a guard that requires a known X-API-Key header.

    Args:
        api_keys: Accepted keys. With none configured every request is rejected.

    Returns:
        Litestar guard function
    """
    allowed = tuple(api_keys)
    if not allowed:
        logger.warning("No API keys configured; all image requests will be rejected")

    def api_key_guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
        api_key = connection.headers.get(API_KEY_HEADER)
        if not api_key:
            raise NotAuthorizedException(detail="Missing X-API-Key header")
        if not any(secrets.compare_digest(api_key.encode(), key.encode()) for key in allowed):
            logger.info("Rejected request to %s with invalid API key", connection.url.path)
            raise NotAuthorizedException(detail="Invalid API key")

    return api_key_guard
