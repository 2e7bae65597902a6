"""Folder and watch-history mutations on a user's document.

Folders and history are JSON lists on the user row. Every mutation builds
the new list, assigns it back and commits the whole row; there is no
version check, so two concurrent writers to the same user race and the
last commit wins.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from models.database.user import User
from services.catalog.formatter import format_poster
from shared.utils import setup_logging, utcnow
from shared.validators import is_valid_folder_name

logger = setup_logging("library-manager")

MAX_FOLDERS = 5
MAX_HISTORY = 50
HISTORY_RETENTION = timedelta(days=7)
IMPORT_LIMIT = 10
DEFAULT_FOLDERS = ("Liked", "Watchlater")
IMPORTABLE_FOLDERS = {"Liked", "Watchlater"}
HISTORY_FOLDER = "History"

SAVED_ITEM_FIELDS = ("id", "poster_path", "title", "overview", "vote_count", "vote_average", "media_type")


class LibraryError(Exception):
    """Business-rule rejection; the message is returned to the client."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------- Pure list helpers ----------

def parse_timestamp(value: Any) -> datetime:
    """Naive UTC datetime from a stored ISO string or datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def new_folder(name: str, saved: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {"_id": uuid4().hex, "folder_name": name, "saved": saved or []}


def clean_saved_item(item: dict[str, Any]) -> dict[str, Any]:
    cleaned = {field: item.get(field) for field in SAVED_ITEM_FIELDS}
    cleaned["id"] = int(item["id"])
    return cleaned


def history_entry(item: dict[str, Any], watched_at: datetime) -> dict[str, Any]:
    return {
        "id": int(item["id"]),
        "title": item.get("title"),
        "poster_path": item.get("poster_path"),
        "media_type": str(item.get("media_type") or "").upper(),
        "watchedAt": watched_at.isoformat(),
    }


def recent_history(history: list[dict[str, Any]], now: datetime) -> list[dict[str, Any]]:
    """Entries newer than the retention window."""
    cutoff = now - HISTORY_RETENTION
    return [entry for entry in history if parse_timestamp(entry["watchedAt"]) > cutoff]


def push_history(history: list[dict[str, Any]], item: dict[str, Any], now: datetime) -> list[dict[str, Any]]:
    """Return the history with ``item`` watched at ``now``.

    The result is newest-first, unique by (id, media_type), bounded by
    MAX_HISTORY and free of entries outside the retention window.
    """
    entry = history_entry(item, now)
    key = (entry["id"], entry["media_type"])

    kept = [e for e in history if (int(e["id"]), str(e.get("media_type") or "").upper()) != key]
    kept = recent_history(kept, now)
    kept.sort(key=lambda e: parse_timestamp(e["watchedAt"]), reverse=True)

    while len(kept) >= MAX_HISTORY:
        kept.pop()

    return [entry] + kept


def build_imported_library(
    imported: list[dict[str, Any]] | None,
    now: datetime,
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Folders and history for a new account from guest-side lists."""
    if not imported:
        return [new_folder(name) for name in DEFAULT_FOLDERS], []

    folders: list[dict[str, Any]] = []
    history: list[dict[str, Any]] = []
    for folder in imported:
        name = folder.get("folder_name")
        saved = [item for item in folder.get("saved") or [] if item.get("id") is not None][:IMPORT_LIMIT]

        if name == HISTORY_FOLDER:
            history = []
            for item in saved:
                watched_at = parse_timestamp(item["watchedAt"]) if item.get("watchedAt") else now
                history.append(history_entry(item, watched_at))
        elif name in IMPORTABLE_FOLDERS and len(folders) < MAX_FOLDERS:
            folders.append(new_folder(name, [clean_saved_item(item) for item in saved]))

    return folders, history


def with_absolute_posters(folder: dict[str, Any]) -> dict[str, Any]:
    return {
        **folder,
        "saved": [{**item, "poster_path": format_poster(item.get("poster_path"))} for item in folder.get("saved", [])],
    }


# ---------- Persistence ----------

class LibraryManager:
    """Folder and history operations for one user."""

    def __init__(self, session: Session, user: User) -> None:
        self.session = session
        self.user = user

    def _folders(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.user.folders or [])

    def _save_folders(self, folders: list[dict[str, Any]]) -> None:
        self.user.folders = folders
        flag_modified(self.user, "folders")
        self.session.commit()

    def _save_history(self, history: list[dict[str, Any]]) -> None:
        self.user.history = history
        flag_modified(self.user, "history")
        self.session.commit()

    @staticmethod
    def _find(folders: list[dict[str, Any]], folder_id: str) -> dict[str, Any]:
        for folder in folders:
            if folder.get("_id") == folder_id:
                return folder
        raise LibraryError("Folder not found")

    # Folders

    def saved_folders(self) -> list[dict[str, Any]]:
        return [with_absolute_posters(folder) for folder in self.user.folders or []]

    def folder_index(self) -> list[dict[str, Any]]:
        return [
            {
                "_id": folder.get("_id"),
                "folder_name": folder.get("folder_name"),
                "saved": [{"id": item["id"]} for item in folder.get("saved", [])],
            }
            for folder in self.user.folders or []
        ]

    def add_folder(self, name: str | None) -> dict[str, Any]:
        if not is_valid_folder_name(name):
            raise LibraryError("Invalid folder name")
        folders = self._folders()
        if len(folders) >= MAX_FOLDERS:
            raise LibraryError("Folder limit reached")

        folder = new_folder(name)
        folders.append(folder)
        self._save_folders(folders)
        logger.info(f"User {self.user.id} added folder {name}")
        return folder

    def delete_folder(self, folder_id: str) -> None:
        folders = [folder for folder in self._folders() if folder.get("_id") != folder_id]
        self._save_folders(folders)

    def save_item(self, folder_id: str, item: dict[str, Any]) -> None:
        folders = self._folders()
        folder = self._find(folders, folder_id)
        cleaned = clean_saved_item(item)
        if any(saved["id"] == cleaned["id"] for saved in folder["saved"]):
            raise LibraryError("Movie already saved")

        folder["saved"].append(cleaned)
        self._save_folders(folders)

    def unsave_item(self, folder_id: str, item_id: int) -> dict[str, Any]:
        folders = self._folders()
        folder = self._find(folders, folder_id)
        remaining = [saved for saved in folder["saved"] if saved["id"] != item_id]
        if len(remaining) == len(folder["saved"]):
            raise LibraryError("Movie not found")

        folder["saved"] = remaining
        self._save_folders(folders)
        return with_absolute_posters(folder)

    # History

    def get_history(self, now: datetime | None = None) -> list[dict[str, Any]]:
        return recent_history(self.user.history or [], now or utcnow())

    def add_history(self, item: dict[str, Any], now: datetime | None = None) -> None:
        history = push_history(copy.deepcopy(self.user.history or []), item, now or utcnow())
        self._save_history(history)

    def delete_history_item(self, item_id: int) -> None:
        history = self.user.history or []
        remaining = [entry for entry in history if entry["id"] != item_id]
        if len(remaining) == len(history):
            raise LibraryError("Movie not found in history")
        self._save_history(copy.deepcopy(remaining))

    def clear_history(self) -> None:
        self._save_history([])
