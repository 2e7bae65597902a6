"""Routes for the signed-in user's profile, folders and watch history."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.api import (
    AddHistoryRequest,
    DeleteHistoryRequest,
    FolderIdRequest,
    FolderRequest,
    FolderResponse,
    FoldersResponse,
    ProfileResponse,
    ResultResponse,
    SaveMovieRequest,
    UnsaveMovieRequest,
    UsernameRequest,
    UsernameResponse,
)
from models.database.user import User as DBUser
from services.auth import get_current_user
from services.auth_service import username_taken
from services.avatar_storage import AvatarService, get_avatar_service
from services.library.manager import LibraryError, LibraryManager
from shared.exceptions import StorageError
from shared.response_models import APIResponse
from shared.utils import setup_logging
from shared.validators import is_valid_username

logger = setup_logging("library-service")

router = APIRouter()


def get_library(
    user: DBUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> LibraryManager:
    return LibraryManager(db, user)


# ---------- Profile ----------

@router.get("/check-username/{username}", response_model=APIResponse, tags=["User"])
async def check_username(username: str, db: Session = Depends(get_db)):
    """Report whether a username is free to take"""
    if not is_valid_username(username):
        return APIResponse(condition=False, message="Invalid username")
    if username_taken(db, username):
        return APIResponse(condition=False, message="Username already taken")
    return APIResponse(message="Username available")


@router.post("/change-username", response_model=UsernameResponse, tags=["User"])
async def change_username(
    request: UsernameRequest,
    user: DBUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not is_valid_username(request.username):
        return UsernameResponse(condition=False, message="Invalid username")
    if username_taken(db, request.username, exclude_id=user.id):
        return UsernameResponse(condition=False, message="Username already taken")

    user.username = request.username
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return UsernameResponse(condition=False, message="Username already taken")
    return UsernameResponse(message="Username updated", username=user.username)


@router.post("/upload-avatar", response_model=ProfileResponse, tags=["User"])
async def upload_avatar(
    avatar: UploadFile | None = File(None),
    user: DBUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    avatars: AvatarService = Depends(get_avatar_service),
):
    """Store a JPG or PNG avatar, replacing the previous one"""
    if avatar is None:
        return ProfileResponse(condition=False, message="No file uploaded")
    if not avatars.is_allowed(avatar.content_type):
        return ProfileResponse(condition=False, message="Only JPG and PNG are allowed")

    data = await avatar.read()
    try:
        url = await avatars.replace(db, user, data, avatar.content_type)
    except StorageError as e:
        logger.error(f"Avatar upload failed for user {user.id}: {e.message}")
        return ProfileResponse(condition=False, message="Upload failed")

    return ProfileResponse(message="Avatar updated", profile=url)


@router.delete("/delete-avatar", response_model=APIResponse, tags=["User"])
async def delete_avatar(
    user: DBUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    avatars: AvatarService = Depends(get_avatar_service),
):
    if not user.profile_id and not user.profile:
        return APIResponse(condition=False, message="No avatar to delete")
    await avatars.remove(db, user)
    return APIResponse(message="Avatar deleted")


# ---------- Folders ----------

@router.get("/getsavedmovie", response_model=FoldersResponse, tags=["Library"])
async def get_saved_movies(library: LibraryManager = Depends(get_library)):
    """Every folder with its saved items and absolute poster URLs"""
    return FoldersResponse(message="Saved movies", folders=library.saved_folders())


@router.get("/userfolder", response_model=FoldersResponse, tags=["Library"])
async def user_folders(library: LibraryManager = Depends(get_library)):
    """Folder ids and names with saved item ids only"""
    return FoldersResponse(message="User folders", folders=library.folder_index())


@router.post("/addfolder", response_model=FolderResponse, tags=["Library"])
async def add_folder(request: FolderRequest, library: LibraryManager = Depends(get_library)):
    try:
        folder = library.add_folder(request.folder_name)
    except LibraryError as e:
        return FolderResponse(condition=False, message=e.message)
    return FolderResponse(message="Folder created", updatedFolder=folder)


@router.post("/deletefolder", response_model=APIResponse, tags=["Library"])
async def delete_folder(request: FolderIdRequest, library: LibraryManager = Depends(get_library)):
    library.delete_folder(request.folderId)
    return APIResponse(message="Folder deleted")


@router.post("/savemovie", response_model=APIResponse, tags=["Library"])
async def save_movie(request: SaveMovieRequest, library: LibraryManager = Depends(get_library)):
    try:
        library.save_item(request.folderId, request.movie.model_dump())
    except LibraryError as e:
        return APIResponse(condition=False, message=e.message)
    return APIResponse(message="Movie saved")


@router.post("/unsavemovie", response_model=FolderResponse, tags=["Library"])
async def unsave_movie(request: UnsaveMovieRequest, library: LibraryManager = Depends(get_library)):
    try:
        folder = library.unsave_item(request.folderId, request.movieId)
    except LibraryError as e:
        return FolderResponse(condition=False, message=e.message)
    return FolderResponse(message="Movie removed", updatedFolder=folder)


# ---------- History ----------

@router.post("/addhistory", response_model=APIResponse, tags=["History"])
async def add_history(request: AddHistoryRequest, library: LibraryManager = Depends(get_library)):
    """Record a watch; re-watching moves the entry to the front"""
    movie = request.movie
    if movie is None or movie.id is None or not movie.media_type or not movie.title or movie.poster_path is None:
        raise HTTPException(status_code=400, detail="Incomplete movie data")
    try:
        int(movie.id)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail="Incomplete movie data") from e

    library.add_history(movie.model_dump())
    return APIResponse(message="History updated")


@router.get("/gethistory", response_model=ResultResponse, tags=["History"])
async def get_history(library: LibraryManager = Depends(get_library)):
    return ResultResponse(message="History", result=library.get_history())


@router.post("/deletehistory", response_model=APIResponse, tags=["History"])
async def delete_history(request: DeleteHistoryRequest, library: LibraryManager = Depends(get_library)):
    if request.movieId is None:
        raise HTTPException(status_code=400, detail="Missing movieId")
    try:
        library.delete_history_item(request.movieId)
    except LibraryError as e:
        return APIResponse(condition=False, message=e.message)
    return APIResponse(message="History entry removed")


@router.post("/clearhistory", response_model=APIResponse, tags=["History"])
async def clear_history(library: LibraryManager = Depends(get_library)):
    library.clear_history()
    return APIResponse(message="History cleared")
