"""
Account lifecycle: registration, e-mail verification, login, password reset,
federated sign-in and self-service deletion.

Business failures come back as ``condition: false`` responses; only
unexpected errors escape to the 500 handler.
"""

from datetime import timedelta
from typing import Any, Callable

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.api import (
    AuthStatusResponse,
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    TokenRequest,
    TokenResponse,
    VerifyEmailRequest,
    VerifyResetRequest,
)
from models.database.otp import OTP
from models.database.user import User as DBUser
from services.auth import (
    LOGIN_TOKEN_DAYS,
    REMEMBER_TOKEN_DAYS,
    VERIFIED_TOKEN_DAYS,
    TokenExpired,
    TokenInvalid,
    create_access_token,
    decode_access_token,
    get_current_user,
    hash_password,
    verify_password,
)
from services.avatar_storage import AvatarService, get_avatar_service
from services.federated import GoogleIdentityProvider, find_or_create_federated_user, get_identity_provider
from services.library.manager import build_imported_library
from services.notifications import Mailer, get_mailer
from shared.exceptions import FederatedLoginError
from shared.response_models import APIResponse
from shared.utils import config, generate_otp, setup_logging, utcnow
from shared.validators import is_valid_email, is_valid_password, is_valid_username, normalize_email

logger = setup_logging("auth-service")

OTP_LIFETIME = timedelta(minutes=10)
DEFAULT_AVATAR = "https://cdn.pixabay.com/photo/2015/10/05/22/37/blank-profile-picture-973460_960_720.png"


def find_user_by_email(db: Session, email: str) -> DBUser | None:
    return db.query(DBUser).filter(DBUser.email == normalize_email(email)).first()


def username_taken(db: Session, username: str, exclude_id: int | None = None) -> bool:
    """Case-insensitive username lookup, optionally ignoring one account."""
    query = db.query(DBUser).filter(func.lower(DBUser.username) == username.lower())
    if exclude_id is not None:
        query = query.filter(DBUser.id != exclude_id)
    return query.first() is not None


class AuthService:
    """Registration, verification and credential flows for one request."""

    def __init__(self, db: Session, mailer: Mailer, background: BackgroundTasks | None = None) -> None:
        self.db = db
        self.mailer = mailer
        self.background = background

    def _queue(self, send: Callable[..., Any], *args: Any) -> None:
        """Run a mail send after the response; delivery failures never surface."""
        if self.background is not None:
            self.background.add_task(send, *args)
        else:
            send(*args)

    # ---------- OTPs ----------

    def _active_otp(self, user: DBUser) -> OTP | None:
        return (
            self.db.query(OTP)
            .filter(OTP.user_id == user.id, OTP.expires_at > utcnow())
            .order_by(OTP.id.desc())
            .first()
        )

    def _issue_otp(self, user: DBUser) -> OTP:
        otp = OTP(user_id=user.id, otp=generate_otp(), expires_at=utcnow() + OTP_LIFETIME)
        self.db.add(otp)
        self.db.commit()
        return otp

    def _match_otp(self, user: DBUser, code: str | None) -> OTP | None:
        if not code:
            return None
        return (
            self.db.query(OTP)
            .filter(OTP.user_id == user.id, OTP.otp == str(code), OTP.expires_at > utcnow())
            .first()
        )

    # ---------- Flows ----------

    def register(self, request: RegisterRequest) -> APIResponse:
        if not request.username or not request.email or not request.password:
            return APIResponse(condition=False, message="All fields are required")
        if not is_valid_username(request.username):
            return APIResponse(condition=False, message="Invalid username")
        if not is_valid_email(request.email):
            return APIResponse(condition=False, message="Invalid email")
        if not is_valid_password(request.password):
            return APIResponse(condition=False, message="Password too short")

        email = normalize_email(request.email)
        existing = find_user_by_email(self.db, email)
        if existing and existing.is_verified:
            return APIResponse(condition=False, message="Email already registered")
        if username_taken(self.db, request.username, exclude_id=existing.id if existing else None):
            return APIResponse(condition=False, message="Username already taken")

        if existing:
            # Unverified account: re-send the code instead of creating a second row
            otp = self._active_otp(existing) or self._issue_otp(existing)
            self._queue(self.mailer.send_verification, existing.email, otp.otp)
            logger.info(f"Re-issued verification code for unverified user {existing.id}")
            return APIResponse(message="Verification email re-sent")

        imported = [folder.model_dump() for folder in request.savedMovie] if request.savedMovie else None
        folders, history = build_imported_library(imported, utcnow())

        user = DBUser(
            username=request.username,
            email=email,
            password=hash_password(request.password),
            folders=folders,
            history=history,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration
            self.db.rollback()
            if find_user_by_email(self.db, email):
                return APIResponse(condition=False, message="Email already registered")
            return APIResponse(condition=False, message="Username already taken")

        otp = self._issue_otp(user)
        self._queue(self.mailer.send_verification, user.email, otp.otp)
        logger.info(f"Registered new user: {user.username}")
        return APIResponse(message="User registered. Please check your email.")

    def login(self, request: LoginRequest) -> TokenResponse:
        if not request.email or not request.password:
            return TokenResponse(condition=False, message="All fields are required")

        user = find_user_by_email(self.db, request.email)
        if not user:
            return TokenResponse(condition=False, message="No account found")
        if not user.is_verified:
            return TokenResponse(condition=False, message="Account not verified")
        if user.is_blocked:
            return TokenResponse(condition=False, message="Account blocked")
        if not verify_password(request.password, user.password):
            return TokenResponse(condition=False, message="Invalid credentials")

        days = REMEMBER_TOKEN_DAYS if request.remember else LOGIN_TOKEN_DAYS
        return TokenResponse(message="Login successful", token=create_access_token(user.id, days))

    def send_verification(self, email: str | None) -> APIResponse:
        user = find_user_by_email(self.db, email) if email else None
        if not user:
            return APIResponse(condition=False, message="Email not registered")
        if user.is_verified:
            return APIResponse(message="Already verified")

        otp = self._active_otp(user) or self._issue_otp(user)
        self._queue(self.mailer.send_verification, user.email, otp.otp)
        return APIResponse(message="Verification email sent")

    def verify_email(self, email: str | None, code: str | None) -> TokenResponse:
        user = find_user_by_email(self.db, email) if email else None
        if not user:
            return TokenResponse(condition=False, message="Email not registered")

        otp = self._match_otp(user, code)
        if not otp:
            return TokenResponse(condition=False, message="Invalid or expired OTP")

        user.is_verified = True
        user.created_at = None
        self.db.delete(otp)
        self.db.commit()

        token = create_access_token(user.id, VERIFIED_TOKEN_DAYS)
        return TokenResponse(message="Account verified", token=token)

    def request_password_reset(self, email: str | None) -> APIResponse:
        user = find_user_by_email(self.db, email) if email else None
        if not user:
            return APIResponse(condition=False, message="Email not registered")

        otp = self._issue_otp(user)
        self._queue(self.mailer.send_password_reset, user.email, otp.otp)
        return APIResponse(message="Password reset link sent if email is registered")

    def confirm_password_reset(self, email: str | None, code: str | None, new_password: str | None) -> APIResponse:
        user = find_user_by_email(self.db, email) if email else None
        if not user:
            return APIResponse(condition=False, message="Email not registered")

        otp = self._match_otp(user, code)
        if not otp:
            return APIResponse(condition=False, message="Invalid or expired OTP")
        if not is_valid_password(new_password):
            return APIResponse(condition=False, message="Password too short")

        user.password = hash_password(new_password)
        self.db.delete(otp)
        self.db.commit()
        logger.info(f"Password reset for user {user.id}")
        return APIResponse(message="Password reset successful")


def get_auth_service(
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> AuthService:
    return AuthService(db, mailer, background)


# Create API router
router = APIRouter()


@router.post("/register", response_model=APIResponse, tags=["Authentication"])
async def register(request: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Create an unverified account and mail its activation link"""
    return service.register(request)


@router.post("/login", response_model=TokenResponse, tags=["Authentication"])
async def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Exchange e-mail and password for a signed token"""
    return service.login(request)


@router.post("/check-auth", response_model=AuthStatusResponse, tags=["Authentication"])
async def check_auth(request: TokenRequest, response: Response, db: Session = Depends(get_db)):
    """Validate a token and return the caller's display details"""
    if not request.token:
        return AuthStatusResponse(condition=False, message="No token provided")

    try:
        user_id = decode_access_token(request.token)
    except TokenExpired:
        response.status_code = 401
        return AuthStatusResponse(condition=False, message="Token expired")
    except TokenInvalid:
        response.status_code = 401
        return AuthStatusResponse(condition=False, message="Invalid token")

    user = db.get(DBUser, user_id)
    if user is None:
        return AuthStatusResponse(condition=False, message="Invalid token or user not found")

    return AuthStatusResponse(
        message="User authenticated",
        username=user.username,
        profile=user.profile or DEFAULT_AVATAR,
    )


@router.post("/send-verify", response_model=APIResponse, tags=["Authentication"])
async def send_verify(request: EmailRequest, service: AuthService = Depends(get_auth_service)):
    return service.send_verification(request.email)


@router.post("/verify-email", response_model=TokenResponse, tags=["Authentication"])
async def verify_email(request: VerifyEmailRequest, service: AuthService = Depends(get_auth_service)):
    return service.verify_email(request.email, request.otp)


@router.post("/resetpass", response_model=APIResponse, tags=["Authentication"])
async def reset_password(request: EmailRequest, service: AuthService = Depends(get_auth_service)):
    return service.request_password_reset(request.email)


@router.post("/verify-reset", response_model=APIResponse, tags=["Authentication"])
async def verify_reset(request: VerifyResetRequest, service: AuthService = Depends(get_auth_service)):
    return service.confirm_password_reset(request.email, request.otp, request.newPassword)


@router.delete("/delete-account", response_model=APIResponse, tags=["Authentication"])
async def delete_account(
    user: DBUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    avatars: AvatarService = Depends(get_avatar_service),
):
    """Delete the caller's account and stored avatar"""
    await avatars.discard(user.profile_id)
    db.delete(user)
    db.commit()
    logger.info(f"Deleted account {user.id}")
    return APIResponse(message="Account deleted successfully")


@router.get("/google", tags=["Authentication"])
async def google_login(provider: GoogleIdentityProvider = Depends(get_identity_provider)):
    """Redirect to the Google consent screen"""
    return RedirectResponse(provider.authorization_url())


@router.get("/google/callback", tags=["Authentication"])
async def google_callback(
    request: Request,
    db: Session = Depends(get_db),
    provider: GoogleIdentityProvider = Depends(get_identity_provider),
):
    """Finish Google sign-in and hand a token to the web client"""
    client_address = config.get("client_address")
    code = request.query_params.get("code")
    state = request.query_params.get("state")
    if not code or not provider.verify_state(state):
        return RedirectResponse(f"{client_address}/login?error=google")

    try:
        profile = await provider.fetch_profile(code)
    except FederatedLoginError as e:
        logger.error(f"Google sign-in failed: {e.message}")
        return RedirectResponse(f"{client_address}/login?error=google")

    user = find_or_create_federated_user(db, profile)
    if user.is_blocked:
        return RedirectResponse(f"{client_address}/login?error=blocked")

    token = create_access_token(user.id, REMEMBER_TOKEN_DAYS)
    return RedirectResponse(f"{client_address}/auth/callback?token={token}")
