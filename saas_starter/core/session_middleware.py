"""
Sliding-window session middleware
"""

from fastapi import Request, status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable, Optional
import uuid
import structlog

from saas_starter.core.auth import clear_session_cookie, set_session_cookie, verify_session_token
from saas_starter.core.config import get_settings
from saas_starter.core.database import session_scope
from saas_starter.core.errors import InvalidToken
from saas_starter.services import team_service

logger = structlog.get_logger(__name__)
settings = get_settings()

PROTECTED_PREFIX = "/dashboard"
SIGN_IN_PATH = "/sign-in"


def _active_user_id(request: Request, token: Optional[str]) -> Optional[uuid.UUID]:
    """Id of the live user behind the cookie, or None for invalid tokens and deleted accounts"""
    if not token:
        return None
    try:
        payload = verify_session_token(token)
    except InvalidToken as e:
        logger.debug(f"Invalid session cookie: {e.message}")
        return None

    with session_scope(request.app) as session:
        user = team_service.get_active_user(session, payload.user_id)
    if user is None:
        logger.debug(f"Session cookie for missing or deleted user {payload.user_id}")
        return None
    return payload.user_id


class SessionRefreshMiddleware(BaseHTTPMiddleware):
    """Refresh the session cookie on authenticated reads and gate the dashboard"""

    async def dispatch(self, request: Request, call_next: Callable):
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
        is_protected = request.url.path.startswith(PROTECTED_PREFIX)

        user_id = _active_user_id(request, token)

        if is_protected and user_id is None:
            response = RedirectResponse(SIGN_IN_PATH, status_code=status.HTTP_303_SEE_OTHER)
            if token:
                clear_session_cookie(response)
            return response

        response = await call_next(request)

        if request.method == "GET" and token:
            if user_id is not None:
                # Handlers that already replaced or cleared the cookie win
                cookie_prefix = settings.SESSION_COOKIE_NAME + "="
                if not any(c.startswith(cookie_prefix) for c in response.headers.getlist("set-cookie")):
                    set_session_cookie(response, user_id)
            else:
                clear_session_cookie(response)

        return response
