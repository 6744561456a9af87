"""
Authentication router: Google sign-in and session management.
"""
import logging
import uuid

from fastapi import APIRouter, Depends

from models.request_context import RequestContext
from models.user import GoogleSignInRequest, SignInResponse, UserProfile
from utils.context_utils import get_current_user, get_services
from utils.errors import AuthenticationRequired

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/google/url")
async def google_authorization_url(services=Depends(get_services)):
    """Consent-screen URL the client opens to start Google sign-in."""
    state = str(uuid.uuid4())
    return {"url": services.auth_service.authorization_url(state), "state": state}


@router.post("/google", response_model=SignInResponse)
async def sign_in_with_google(body: GoogleSignInRequest, services=Depends(get_services)):
    """
    Exchange a Google authorization code for a session token.

    Raises:
        AuthenticationRequired: 401 when Google rejects the code
    """
    response = await services.auth_service.sign_in_with_google(body.code, body.redirect_uri)
    logger.info(f"Sign-in complete: user_id={response.user.uid}")
    return response


@router.post("/logout")
async def sign_out(
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    await services.auth_service.sign_out(context.user_id)
    return {"status": "signed_out"}


@router.get("/me", response_model=UserProfile)
async def current_user(
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    profile = await services.auth_service.get_user(context.user_id)
    if profile is None:
        raise AuthenticationRequired("User profile not found. Please sign in again.")
    return profile
