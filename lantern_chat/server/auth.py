"""Session token resolution for incoming requests.

The only identity is an opaque session token carried in a cookie. An absent or
unrecognised token mints a fresh session and the cookie is set on the
response.
"""
from fastapi import Request, Response

from .config import SESSION_COOKIE
from .relay import Relay


def get_relay(request: Request) -> Relay:
    """FastAPI dependency returning the application's relay core."""
    return request.app.state.relay


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(SESSION_COOKIE, session_id, path="/", httponly=True, samesite="lax")


def get_current_session_id(request: Request, response: Response) -> str:
    """FastAPI dependency returning the caller's session id."""
    relay = get_relay(request)
    session_id, minted = relay.resolve_session(request.cookies.get(SESSION_COOKIE))
    if minted:
        set_session_cookie(response, session_id)
    return session_id
