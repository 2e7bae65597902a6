"""
Google sign-in: authorization redirect, code exchange and account linking.
"""

import asyncio
import re
import secrets
from datetime import timedelta
from typing import Any
from urllib.parse import urlencode

import aiohttp
from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from models.database.user import FEDERATED_PASSWORD, User as DBUser
from models.enums import LoginMethod
from services.library.manager import build_imported_library
from shared.exceptions import FederatedLoginError
from shared.http_client import AsyncHTTPClient
from shared.utils import config, setup_logging, utcnow
from shared.validators import normalize_email

logger = setup_logging("federated-login")

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

STATE_LIFETIME = timedelta(minutes=10)
USERNAME_MAX = 15
USERNAME_MIN = 3


class GoogleIdentityProvider:
    """OAuth2 authorization-code flow against Google."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
    ) -> None:
        self.client_id = client_id or config.get("google_client_id", "")
        self.client_secret = client_secret or config.get("google_client_secret", "")
        self.redirect_uri = redirect_uri or f"{config.get('server_address')}/auth/google/callback"

    def issue_state(self) -> str:
        """Signed, short-lived state value; the callback checks the signature."""
        payload = {"nonce": secrets.token_urlsafe(16), "exp": utcnow() + STATE_LIFETIME}
        return jwt.encode(payload, config.get("jwt_secret_key"), algorithm="HS256")

    def verify_state(self, state: str | None) -> bool:
        if not state:
            return False
        try:
            jwt.decode(state, config.get("jwt_secret_key"), algorithms=["HS256"])
        except JWTError:
            return False
        return True

    def authorization_url(self) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "state": self.issue_state(),
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> dict[str, Any]:
        """Exchange an authorization code for the user's e-mail, name and picture."""
        try:
            async with AsyncHTTPClient(timeout=20) as client:
                tokens = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                    form=True,
                )
                access_token = tokens.get("access_token")
                if not access_token:
                    raise FederatedLoginError("No access token in Google response")
                profile = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FederatedLoginError(f"Google exchange failed: {e}") from e

        if not profile.get("email"):
            raise FederatedLoginError("Google profile has no e-mail")
        return profile


def derive_username(db: Session, display_name: str | None, email: str) -> str:
    """Username built from the display name (or e-mail local part) that nobody else holds."""
    base = re.sub(r"[^a-zA-Z0-9._]", "", display_name or "") or re.sub(r"[^a-zA-Z0-9._]", "", email.split("@")[0])
    base = base[:USERNAME_MAX]
    if len(base) < USERNAME_MIN:
        base = f"user{base}"

    candidate = base
    while db.query(DBUser).filter(func.lower(DBUser.username) == candidate.lower()).first():
        suffix = str(secrets.randbelow(10000))
        candidate = f"{base[:USERNAME_MAX - len(suffix)]}{suffix}"
    return candidate


def find_or_create_federated_user(db: Session, profile: dict[str, Any]) -> DBUser:
    """Existing account for the profile's e-mail, or a new verified one."""
    email = normalize_email(profile["email"])
    user = db.query(DBUser).filter(DBUser.email == email).first()
    if user:
        if not user.is_verified:
            # Google has proven ownership of the address
            user.is_verified = True
            user.created_at = None
            db.commit()
        return user

    folders, history = build_imported_library(None, utcnow())
    user = DBUser(
        username=derive_username(db, profile.get("name"), email),
        email=email,
        password=FEDERATED_PASSWORD,
        is_verified=True,
        login_method=LoginMethod.GOOGLE.value,
        profile=profile.get("picture") or "",
        folders=folders,
        history=history,
        created_at=None,
    )
    db.add(user)
    db.commit()
    logger.info(f"Created account {user.id} from Google sign-in")
    return user


identity_provider: GoogleIdentityProvider | None = None


def get_identity_provider() -> GoogleIdentityProvider:
    global identity_provider
    if identity_provider is None:
        identity_provider = GoogleIdentityProvider()
    return identity_provider
