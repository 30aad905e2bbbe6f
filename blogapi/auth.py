"""
Request authentication gate.

Every guarded route resolves the caller's user id from the ``authorization``
header before anything else about the request is looked at, the JSON body
included.  The gate therefore lives in the route class: ``token_gate``
builds an ``APIRoute`` subclass whose handler authenticates first and only
then hands the request to FastAPI's own handler, which parses the body and
resolves dependencies.  Handlers read the verified id through the
``current_user_id`` dependency.

The post routes and the profile routes deny with different statuses; the two
route classes below are the only ones the routers use.
"""
import logging
from typing import Callable

from fastapi import HTTPException, Request, Response
from fastapi.routing import APIRoute

from blogapi.errors import ErrorKind, Failure
from blogapi.tokens import InvalidToken, decode_token

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


def extract_credential(header_value: str | None) -> str:
    """
    Return the token carried by an ``authorization`` header value.

    The bare token is the documented form; a ``Bearer`` scheme word is
    accepted and stripped.  Absent and blank headers yield ``""``.
    """
    if not header_value:
        return ""
    value = header_value.strip()
    if value.lower().startswith(_BEARER_PREFIX):
        value = value[len(_BEARER_PREFIX):].strip()
    return value


def authenticate(request: Request, denial: Failure) -> int:
    """
    Verify the request's token and bind the user id to ``request.state``.

    Raises ``HTTPException`` carrying *denial*'s status and message when the
    token is absent or does not verify.
    """
    settings = request.app.state.settings
    token = extract_credential(request.headers.get("authorization"))
    try:
        user_id = decode_token(token, settings.JWT_SECRET, settings.JWT_ALGORITHM)
    except InvalidToken as exc:
        logger.warning("Rejected request to %s: %s", request.url.path, exc)
        raise HTTPException(status_code=denial.status_code, detail=denial.message)

    request.state.user_id = user_id
    return user_id


def token_gate(denial: Failure) -> type[APIRoute]:
    """Build a route class that authenticates before the body is read, denying with *denial*."""

    class TokenGatedRoute(APIRoute):
        def get_route_handler(self) -> Callable:
            handler = super().get_route_handler()

            async def gated_handler(request: Request) -> Response:
                authenticate(request, denial)
                return await handler(request)

            return gated_handler

    return TokenGatedRoute


def current_user_id(request: Request) -> int:
    """The id the route's gate verified for this request."""
    return request.state.user_id


# Post routes deny with 403, profile routes with 401.
BlogUserRoute = token_gate(Failure(ErrorKind.FORBIDDEN, "Please log in to continue"))
ProfileUserRoute = token_gate(Failure(ErrorKind.UNAUTHORIZED, "Unauthorized"))
