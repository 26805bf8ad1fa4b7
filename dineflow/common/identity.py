import functools
from typing import Optional

from quart import current_app, request

from .config import Settings
from .errors import ForbiddenError


def current_settings() -> Settings:
    return current_app.extensions["settings"]


def current_email() -> Optional[str]:
    """Email forwarded by the identity provider in front of the API, if any."""
    value = request.headers.get(current_settings().IDENTITY_HEADER, "").strip()
    return value or None


def is_admin(email: Optional[str], cfg: Settings) -> bool:
    return bool(email and cfg.ADMIN_EMAIL) and email.lower() == cfg.ADMIN_EMAIL.lower()


def admin_required(fn):
    """Reject non-admin callers, but only when ENFORCE_ADMIN is switched on."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        cfg = current_settings()
        if cfg.ENFORCE_ADMIN and not is_admin(current_email(), cfg):
            raise ForbiddenError("Admin access required")
        return await fn(*args, **kwargs)

    return wrapper
