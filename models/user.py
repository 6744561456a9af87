"""User profile and sign-in models."""
from typing import Optional

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """Stored profile of a signed-in user, keyed by the identity provider's uid."""
    uid: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: str
    last_login_at: str


class GoogleSignInRequest(BaseModel):
    """Authorization code returned to the client by Google's consent screen."""
    code: str = Field(..., description="OAuth 2.0 authorization code")
    redirect_uri: Optional[str] = Field(
        default=None,
        description="Redirect URI used for the consent screen, if not the configured one"
    )


class SignInResponse(BaseModel):
    access_token: str = Field(description="Session JWT for this API")
    token_type: str = "bearer"
    expires_in: int
    user: UserProfile
