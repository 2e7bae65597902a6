from datetime import timedelta

import bcrypt
from fastapi import Depends, HTTPException, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from database import get_db
from models.database.user import User as DBUser
from models.enums import Role
from shared.utils import config, setup_logging, utcnow

logger = setup_logging("auth")

ALGORITHM = "HS256"

LOGIN_TOKEN_DAYS = 1
REMEMBER_TOKEN_DAYS = 30
VERIFIED_TOKEN_DAYS = 7


class TokenExpired(Exception):
    """Raised when a signed token is past its expiry."""


class TokenInvalid(Exception):
    """Raised when a token cannot be decoded or verified."""


def hash_password(plain_password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Sentinel or otherwise malformed hash
        return False


def create_access_token(user_id: int, expires_days: int) -> str:
    """Create a JWT carrying the user id."""
    payload = {
        "sub": str(user_id),
        "exp": utcnow() + timedelta(days=expires_days),
    }
    return jwt.encode(payload, config.get("jwt_secret_key"), algorithm=ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id from a token, raising TokenExpired or TokenInvalid."""
    try:
        payload = jwt.decode(token, config.get("jwt_secret_key"), algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpired("Token expired") from e
    except JWTError as e:
        raise TokenInvalid("Invalid token") from e

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise TokenInvalid("Invalid token") from e


def extract_token(request: Request) -> str | None:
    """Read the token from the Authorization header, with or without the Bearer prefix."""
    header = request.headers.get("Authorization")
    if not header:
        return None
    header = header.strip()
    if header.lower().startswith("bearer "):
        return header.split(" ", 1)[1].strip() or None
    return header


def resolve_user(db: Session, token: str | None) -> DBUser:
    """Resolve the caller of a request, raising 401 for any token problem."""
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")
    try:
        user_id = decode_access_token(token)
    except TokenExpired as e:
        raise HTTPException(status_code=401, detail="Token expired") from e
    except TokenInvalid as e:
        raise HTTPException(status_code=401, detail="Invalid token") from e

    user = db.get(DBUser, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def get_current_user(request: Request, db: Session = Depends(get_db)) -> DBUser:
    """Dependency: the authenticated, non-blocked user."""
    user = resolve_user(db, extract_token(request))
    if user.is_blocked:
        raise HTTPException(status_code=403, detail="Account blocked")
    return user


async def require_admin(request: Request, db: Session = Depends(get_db)) -> DBUser:
    """Dependency: the authenticated caller, who must hold the Admin role."""
    user = resolve_user(db, extract_token(request))
    if user.role != Role.ADMIN.value or user.is_blocked:
        logger.warning(f"Admin access denied for user {user.id}")
        raise HTTPException(status_code=403, detail="Access denied")
    return user
