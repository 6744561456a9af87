"""
Context Extraction Utilities

FastAPI dependencies that resolve the signed-in user of a request from the
session token in the Authorization header (or, for WebSockets, the ``token``
query parameter).
"""

import uuid
import logging
from typing import Optional

from fastapi import Request, WebSocket

from config import Settings
from middleware.jwt_auth import JWTVerificationError, extract_bearer_token, verify_session_token
from models.request_context import RequestContext
from utils.errors import AuthenticationRequired

logger = logging.getLogger(__name__)


def _context_from_token(token: Optional[str], settings: Settings) -> RequestContext:
    request_id = str(uuid.uuid4())

    if not token:
        logger.info(f"Request without session token: request_id={request_id}")
        raise AuthenticationRequired("Please sign in to continue.")

    try:
        claims = verify_session_token(token, settings)
    except JWTVerificationError as e:
        logger.warning(f"Session token rejected: request_id={request_id}, code={e.code}")
        raise AuthenticationRequired(e.message, code=e.code)

    logger.info(f"Context extracted: request_id={request_id}, user_id={claims.uid}")

    return RequestContext(
        user_id=claims.uid,
        email=claims.email,
        request_id=request_id,
        display_name=claims.display_name,
    )


def get_services(request: Request):
    """The ServiceContainer built at application startup."""
    return request.app.state.services


def get_current_user(request: Request) -> RequestContext:
    """
    Resolve the signed-in user from the Authorization header.

    Raises:
        AuthenticationRequired: If the header is missing or the token is invalid
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    return _context_from_token(token, request.app.state.settings)


def get_websocket_user(websocket: WebSocket) -> RequestContext:
    """Same as get_current_user, for WebSocket connections."""
    token = extract_bearer_token(websocket.headers.get("Authorization"))
    if token is None:
        token = websocket.query_params.get("token")
    return _context_from_token(token, websocket.app.state.settings)
