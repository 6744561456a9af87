"""AuthService: Google sign-in, user profiles and session tokens.

Sign-in follows the OAuth 2.0 authorization-code flow: the client obtains a
code from Google's consent screen, the service exchanges it for an access
token, reads the user's profile, stores it, caches the access token for
calendar calls and returns a session JWT for this API.
"""
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from config import Settings
from middleware.jwt_auth import JWTVerificationError, create_session_token
from models.user import SignInResponse, UserProfile
from services.document_store import DocumentStore
from services.token_cache import TokenCache
from utils.errors import AuthenticationRequired
from utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

USERS = "users"

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/calendar.readonly",
]


class AuthService:

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        store: DocumentStore,
        token_cache: TokenCache,
    ):
        self.settings = settings
        self.http_client = http_client
        self.store = store
        self.token_cache = token_cache

    def _require_google_config(self) -> None:
        if not self.settings.google_client_id or not self.settings.google_client_secret:
            logger.error("Google OAuth client not configured")
            raise AuthenticationRequired(
                "Google sign-in is not configured.",
                code="AUTH_NOT_CONFIGURED",
                status_code=503
            )

    def authorization_url(self, state: str, redirect_uri: Optional[str] = None) -> str:
        """Consent-screen URL requesting profile and read-only calendar access."""
        self._require_google_config()
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": redirect_uri or self.settings.google_redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def _exchange_code(self, code: str, redirect_uri: Optional[str]) -> str:
        try:
            response = await self.http_client.post(GOOGLE_TOKEN_URL, data={
                "code": code,
                "client_id": self.settings.google_client_id,
                "client_secret": self.settings.google_client_secret,
                "redirect_uri": redirect_uri or self.settings.google_redirect_uri,
                "grant_type": "authorization_code",
            })
        except httpx.HTTPError as e:
            logger.error(f"Google token exchange failed: error={e}")
            raise AuthenticationRequired("Sign-in failed. Please try again.") from e

        if response.status_code >= 400:
            logger.warning(f"Google token exchange rejected: status={response.status_code}")
            raise AuthenticationRequired("Sign-in failed. Please try again.")

        access_token = response.json().get("access_token")
        if not access_token:
            raise AuthenticationRequired("No access token received from Google.")
        return access_token

    async def _fetch_profile(self, access_token: str) -> dict:
        try:
            response = await self.http_client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as e:
            logger.error(f"Google userinfo request failed: error={e}")
            raise AuthenticationRequired("Sign-in failed. Please try again.") from e

        if response.status_code >= 400:
            logger.warning(f"Google userinfo rejected: status={response.status_code}")
            raise AuthenticationRequired("Sign-in failed. Please try again.")
        return response.json()

    async def save_user(self, uid: str, email: str, display_name: Optional[str], photo_url: Optional[str] = None) -> UserProfile:
        """Upsert a user; created_at is kept, last_login_at refreshed."""
        now = utc_now_iso()
        existing = await self.store.get(USERS, uid)
        profile = UserProfile(
            uid=uid,
            email=email,
            display_name=display_name or "",
            photo_url=photo_url,
            created_at=existing["created_at"] if existing else now,
            last_login_at=now,
        )
        await self.store.set(USERS, uid, profile.model_dump(mode="json"), merge=True)
        logger.info(f"User saved: uid={uid}, new={existing is None}")
        return profile

    async def sign_in_with_google(self, code: str, redirect_uri: Optional[str] = None) -> SignInResponse:
        """
        Complete Google sign-in.

        Raises:
            AuthenticationRequired: If the code exchange or profile lookup
                fails, or session tokens are not configured
        """
        self._require_google_config()

        access_token = await self._exchange_code(code, redirect_uri)
        info = await self._fetch_profile(access_token)

        uid = info.get("sub")
        email = info.get("email")
        if not uid or not email:
            raise AuthenticationRequired("Google account has no email address.")

        profile = await self.save_user(uid, email, info.get("name"), info.get("picture"))
        await self.token_cache.store_access_token(uid, access_token)

        try:
            session_token = create_session_token(self.settings, uid, email, profile.display_name)
        except JWTVerificationError as e:
            raise AuthenticationRequired(e.message, code=e.code, status_code=503)

        return SignInResponse(
            access_token=session_token,
            expires_in=self.settings.session_jwt_ttl_seconds,
            user=profile,
        )

    async def get_user(self, uid: str) -> Optional[UserProfile]:
        data = await self.store.get(USERS, uid)
        if data is None:
            return None
        return UserProfile.model_validate(data)

    async def get_access_token(self, uid: str) -> Optional[str]:
        return await self.token_cache.get_access_token(uid)

    async def sign_out(self, uid: str) -> None:
        await self.token_cache.clear(uid)
        logger.info(f"User signed out: uid={uid}")
