"""Request and response bodies for every route group."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shared.response_models import APIResponse


# ---------- Requests: auth ----------

class ImportedItem(BaseModel):
    """One saved or watched entry from a guest-side list."""

    model_config = ConfigDict(extra="allow")

    id: int | None = None
    watchedAt: datetime | None = None


class ImportedFolder(BaseModel):
    """Guest-side list carried into a new account at registration."""

    folder_name: str
    saved: list[ImportedItem] = Field(default_factory=list)


class RegisterRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    savedMovie: list[ImportedFolder] | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    remember: bool = False


class TokenRequest(BaseModel):
    token: str | None = None


class EmailRequest(BaseModel):
    email: str | None = None


class VerifyEmailRequest(BaseModel):
    email: str | None = None
    otp: str | None = None


class VerifyResetRequest(BaseModel):
    email: str | None = None
    otp: str | None = None
    newPassword: str | None = None


# ---------- Requests: user ----------

class SavedItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    poster_path: str | None = None
    title: str | None = None
    overview: str | None = None
    vote_count: int | None = None
    vote_average: float | None = None
    media_type: str | None = None


class HistoryItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str | None = None
    title: str | None = None
    poster_path: str | None = None
    media_type: str | None = None


class UsernameRequest(BaseModel):
    username: str | None = None


class FolderRequest(BaseModel):
    folder_name: str | None = None


class FolderIdRequest(BaseModel):
    folderId: str


class SaveMovieRequest(BaseModel):
    folderId: str
    movie: SavedItem


class UnsaveMovieRequest(BaseModel):
    folderId: str
    movieId: int


class AddHistoryRequest(BaseModel):
    movie: HistoryItem | None = None


class DeleteHistoryRequest(BaseModel):
    movieId: int | None = None


# ---------- Requests: admin ----------

class BlockUserRequest(BaseModel):
    userId: int
    block: Any = None


class PromoteUserRequest(BaseModel):
    userId: int


class AdminResetPasswordRequest(BaseModel):
    userId: int
    newPassword: str | None = None


class AdminUsernameRequest(BaseModel):
    newUsername: str | None = None


# ---------- Requests: media ----------

class DiscoverRequest(BaseModel):
    type: str = "MV"
    genres: list[int] | None = None
    keywords: str | None = None
    language: str | None = None
    releaseYear: int | None = None
    voteAverageGte: float | None = None
    voteAverageLte: float | None = None
    runtimeGte: int | None = None
    runtimeLte: int | None = None
    includeAdult: bool = False
    sortBy: str = "popularity.desc"
    page: int = 1


# ---------- Responses ----------

class TokenResponse(APIResponse):
    token: str | None = None


class AuthStatusResponse(APIResponse):
    username: str | None = None
    profile: str | None = None


class UsernameResponse(APIResponse):
    username: str | None = None


class ProfileResponse(APIResponse):
    profile: str | None = None


class FoldersResponse(APIResponse):
    folders: list[dict[str, Any]] = Field(default_factory=list)


class FolderResponse(APIResponse):
    updatedFolder: dict[str, Any] | None = None


class ResultResponse(APIResponse):
    result: Any = None


class HistoryResponse(APIResponse):
    history: list[dict[str, Any]] = Field(default_factory=list)


class UserSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="_id")
    username: str
    email: str
    isBlocked: bool
    role: str
    joined: datetime


class UserListResponse(APIResponse):
    users: list[UserSummary] = Field(default_factory=list)


class GenreListResponse(APIResponse):
    genres: list[dict[str, Any]] = Field(default_factory=list)


class KeywordResponse(APIResponse):
    keywords: list[dict[str, Any]] = Field(default_factory=list)


class LanguagesResponse(APIResponse):
    languages: list[dict[str, Any]] = Field(default_factory=list)


class SyncResponse(APIResponse):
    count: int = 0


class SyncStatusResponse(APIResponse):
    last_genre_update: datetime | None = None
    last_trending_update: datetime | None = None
