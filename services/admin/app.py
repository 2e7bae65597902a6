"""Administrative user management. Every route requires the Admin role."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.api import (
    AdminResetPasswordRequest,
    AdminUsernameRequest,
    BlockUserRequest,
    HistoryResponse,
    PromoteUserRequest,
    UserListResponse,
    UserSummary,
)
from models.database.user import User as DBUser
from models.enums import Role
from services.auth import hash_password, require_admin
from services.auth_service import username_taken
from services.library.manager import LibraryManager
from shared.response_models import APIResponse
from shared.utils import setup_logging
from shared.validators import is_valid_password, is_valid_username

logger = setup_logging("admin-service")

router = APIRouter(dependencies=[Depends(require_admin)])


def load_user(db: Session, user_id: int) -> DBUser:
    user = db.get(DBUser, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/users", response_model=UserListResponse, tags=["Admin"])
async def list_users(db: Session = Depends(get_db)):
    """All accounts, newest first"""
    users = db.query(DBUser).order_by(DBUser.joined.desc()).all()
    return UserListResponse(
        message="User list fetched",
        users=[
            UserSummary(
                id=user.id,
                username=user.username,
                email=user.email,
                isBlocked=user.is_blocked,
                role=user.role,
                joined=user.joined,
            )
            for user in users
        ],
    )


@router.put("/block-user", response_model=APIResponse, tags=["Admin"])
async def block_user(request: BlockUserRequest, db: Session = Depends(get_db)):
    if not isinstance(request.block, bool):
        raise HTTPException(status_code=400, detail="Invalid block value (must be true or false)")

    user = load_user(db, request.userId)
    user.is_blocked = request.block
    db.commit()
    logger.info(f"User {user.id} {'blocked' if request.block else 'unblocked'}")
    return APIResponse(message=f"User {'blocked' if request.block else 'unblocked'} successfully")


@router.put("/promote-user", response_model=APIResponse, tags=["Admin"])
async def promote_user(request: PromoteUserRequest, db: Session = Depends(get_db)):
    user = load_user(db, request.userId)
    if user.role == Role.ADMIN.value:
        return APIResponse(message="User is already an admin")

    user.role = Role.ADMIN.value
    db.commit()
    logger.info(f"User {user.id} promoted to Admin")
    return APIResponse(message="User promoted to Admin successfully")


@router.post("/reset-password", response_model=APIResponse, tags=["Admin"])
async def reset_password(request: AdminResetPasswordRequest, db: Session = Depends(get_db)):
    if not is_valid_password(request.newPassword):
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters")

    user = load_user(db, request.userId)
    user.password = hash_password(request.newPassword)
    db.commit()
    return APIResponse(message="Password reset successfully")


@router.post("/user/{user_id}/change-username", response_model=APIResponse, tags=["Admin"])
async def change_username(user_id: int, request: AdminUsernameRequest, db: Session = Depends(get_db)):
    user = load_user(db, user_id)
    if not is_valid_username(request.newUsername):
        return APIResponse(condition=False, message="Invalid username")
    if username_taken(db, request.newUsername, exclude_id=user.id):
        return APIResponse(condition=False, message="Username taken")

    user.username = request.newUsername
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return APIResponse(condition=False, message="Username taken")
    return APIResponse(message="Username updated")


@router.get("/user/{user_id}/history", response_model=HistoryResponse, tags=["Admin"])
async def user_history(user_id: int, db: Session = Depends(get_db)):
    user = load_user(db, user_id)
    return HistoryResponse(message="User history", history=user.history or [])


@router.post("/user/{user_id}/clear-history", response_model=APIResponse, tags=["Admin"])
async def clear_user_history(user_id: int, db: Session = Depends(get_db)):
    user = load_user(db, user_id)
    LibraryManager(db, user).clear_history()
    return APIResponse(message="History cleared")
