import hmac
import logging
import os

from fastapi import Header, HTTPException, status


logger = logging.getLogger("tourdesk.security")

_DEV_ENVS = {"dev", "development", "local"}


def _is_dev_env() -> bool:
    return os.getenv("ENV", "dev").lower() in _DEV_ENVS


def _unauthorized(error_code: str, human_message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error_code": error_code, "human_message": human_message},
    )


def require_admin_api_key(
    x_admin_key: str | None = Header(default=None, alias="X-Admin-Key"),
) -> None:
    """Guard for the tour admin routes; an unset key is tolerated only in dev."""
    configured_key = os.getenv("ADMIN_API_KEY", "")

    if configured_key:
        if not hmac.compare_digest((x_admin_key or "").encode(), configured_key.encode()):
            raise _unauthorized("INVALID_ADMIN_API_KEY", "Invalid admin API key.")
        return

    if not _is_dev_env():
        raise _unauthorized("ADMIN_AUTH_NOT_CONFIGURED", "Admin API key is not configured.")
    logger.warning("ADMIN_API_KEY unset; admin request allowed because ENV is dev.")
