import hashlib
import logging
import secrets
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from pixel_tracker.config import TrackerConfig


logger = logging.getLogger(__name__)


def generate_user_token() -> str:
    """Return a 32-char lowercase hex token hashed from random bytes.

    Uniqueness is probabilistic; tokens are never checked against the ones
    already issued.
    """

    return hashlib.md5(secrets.token_bytes(16)).hexdigest()


def assign_identity(request: Request, response: Response, config: TrackerConfig) -> Optional[str]:
    """Issue the tracking cookie when the client does not present one.

    Returns the cookie value the client sent, if any. Presented values are
    accepted as-is.
    """

    current = request.cookies.get(config.cookie_name)
    if config.disable_cookies or current is not None:
        return current

    token = generate_user_token()
    response.set_cookie(
        key=config.cookie_name,
        value=token,
        max_age=config.max_age,
        path="/",
        httponly=True,
    )
    logger.debug("Issued tracking cookie %s", config.cookie_name)
    return current
