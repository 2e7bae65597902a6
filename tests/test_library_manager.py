"""Folder and history rules on the user document."""

from datetime import datetime, timedelta

import pytest

from models.database.user import User
from services.library.manager import (
    MAX_FOLDERS,
    MAX_HISTORY,
    LibraryError,
    LibraryManager,
    build_imported_library,
    parse_timestamp,
    push_history,
    recent_history,
)

NOW = datetime(2024, 5, 1, 12, 0, 0)


def entry(item_id: int, media_type: str = "MV", age: timedelta = timedelta(0)) -> dict:
    return {
        "id": item_id,
        "title": f"Title {item_id}",
        "poster_path": "/p.jpg",
        "media_type": media_type,
        "watchedAt": (NOW - age).isoformat(),
    }


def assert_history_invariant(history: list[dict], now: datetime) -> None:
    assert len(history) <= MAX_HISTORY
    assert all(parse_timestamp(e["watchedAt"]) > now - timedelta(days=7) for e in history)
    keys = [(e["id"], e["media_type"]) for e in history]
    assert len(keys) == len(set(keys))
    stamps = [parse_timestamp(e["watchedAt"]) for e in history]
    assert stamps == sorted(stamps, reverse=True)


class TestPushHistory:
    def test_new_entry_goes_first(self) -> None:
        history = [entry(1, age=timedelta(hours=2))]

        result = push_history(history, {"id": 2, "title": "Two", "poster_path": "/2.jpg", "media_type": "mv"}, NOW)

        assert [e["id"] for e in result] == [2, 1]
        assert result[0]["media_type"] == "MV"
        assert result[0]["watchedAt"] == NOW.isoformat()

    def test_rewatch_moves_entry_to_front(self) -> None:
        history = [entry(1, age=timedelta(hours=1)), entry(2, age=timedelta(hours=2))]

        result = push_history(history, {"id": "2", "title": "Two", "poster_path": "/2.jpg", "media_type": "MV"}, NOW)

        assert [e["id"] for e in result] == [2, 1]

    def test_same_id_different_type_is_distinct(self) -> None:
        history = [entry(5, "SR", age=timedelta(hours=1))]

        result = push_history(history, {"id": 5, "title": "Five", "poster_path": "", "media_type": "MV"}, NOW)

        assert [(e["id"], e["media_type"]) for e in result] == [(5, "MV"), (5, "SR")]

    def test_entries_older_than_a_week_are_dropped(self) -> None:
        history = [entry(1, age=timedelta(days=8)), entry(2, age=timedelta(days=1))]

        result = push_history(history, {"id": 3, "title": "Three", "poster_path": "", "media_type": "MV"}, NOW)

        assert [e["id"] for e in result] == [3, 2]

    def test_full_history_evicts_oldest(self) -> None:
        history = [entry(n, age=timedelta(minutes=n)) for n in range(1, MAX_HISTORY + 1)]

        result = push_history(history, {"id": 999, "title": "New", "poster_path": "", "media_type": "MV"}, NOW)

        assert len(result) == MAX_HISTORY
        assert result[0]["id"] == 999
        assert MAX_HISTORY not in [e["id"] for e in result]

    def test_invariant_holds_over_many_pushes(self) -> None:
        history: list[dict] = []
        now = NOW
        for step in range(120):
            now = now + timedelta(hours=1)
            item = {"id": step % 70, "title": "x", "poster_path": "", "media_type": "SR" if step % 3 else "MV"}
            history = push_history(history, item, now)
            assert_history_invariant(history, now)


def test_recent_history_filters_by_window() -> None:
    history = [entry(1, age=timedelta(days=1)), entry(2, age=timedelta(days=7, seconds=1))]
    assert [e["id"] for e in recent_history(history, NOW)] == [1]


def test_parse_timestamp_handles_zulu_suffix() -> None:
    assert parse_timestamp("2024-05-01T12:00:00.000Z") == NOW


class TestImportedLibrary:
    def test_defaults_without_import(self) -> None:
        folders, history = build_imported_library(None, NOW)

        assert [f["folder_name"] for f in folders] == ["Liked", "Watchlater"]
        assert all(f["saved"] == [] for f in folders)
        assert len({f["_id"] for f in folders}) == 2
        assert history == []

    def test_history_import_keeps_watched_at(self) -> None:
        _, history = build_imported_library(
            [{"folder_name": "History", "saved": [{"id": 1, "media_type": "sr", "watchedAt": "2024-04-30T10:00:00Z"}]}],
            NOW,
        )

        assert history[0]["media_type"] == "SR"
        assert parse_timestamp(history[0]["watchedAt"]) == datetime(2024, 4, 30, 10, 0, 0)


# ---------- Persistence ----------

@pytest.fixture
def library(db, make_user) -> LibraryManager:
    return LibraryManager(db, make_user())


class TestFolders:
    def test_add_folder_up_to_limit(self, library: LibraryManager) -> None:
        for name in ("One", "Two", "Three"):
            library.add_folder(name)

        with pytest.raises(LibraryError, match="Folder limit reached"):
            library.add_folder("Six")
        assert len(library.user.folders) == MAX_FOLDERS

    @pytest.mark.parametrize("name", ["", "has space", "elevenchars"])
    def test_add_folder_rejects_invalid_names(self, library: LibraryManager, name: str) -> None:
        with pytest.raises(LibraryError, match="Invalid folder name"):
            library.add_folder(name)

    def test_save_item_is_idempotent(self, library: LibraryManager, session_factory) -> None:
        folder_id = library.user.folders[0]["_id"]
        item = {"id": 10, "title": "Ten", "poster_path": "/10.jpg", "media_type": "MV", "extra": "dropped"}

        library.save_item(folder_id, item)
        with pytest.raises(LibraryError, match="Movie already saved"):
            library.save_item(folder_id, item)

        with session_factory() as session:
            saved = session.get(User, library.user.id).folders[0]["saved"]
        assert len(saved) == 1
        assert "extra" not in saved[0]

    def test_save_item_unknown_folder(self, library: LibraryManager) -> None:
        with pytest.raises(LibraryError, match="Folder not found"):
            library.save_item("missing", {"id": 1})

    def test_unsave_item_returns_formatted_folder(self, library: LibraryManager) -> None:
        folder_id = library.user.folders[0]["_id"]
        library.save_item(folder_id, {"id": 1, "poster_path": "/1.jpg"})
        library.save_item(folder_id, {"id": 2, "poster_path": None})

        folder = library.unsave_item(folder_id, 1)

        assert [item["id"] for item in folder["saved"]] == [2]
        assert folder["saved"][0]["poster_path"].startswith("https://")
        with pytest.raises(LibraryError, match="Movie not found"):
            library.unsave_item(folder_id, 1)

    def test_delete_folder(self, library: LibraryManager) -> None:
        folder_id = library.user.folders[0]["_id"]
        library.delete_folder(folder_id)
        assert [f["folder_name"] for f in library.user.folders] == ["Watchlater"]

    def test_folder_index_has_ids_only(self, library: LibraryManager) -> None:
        folder_id = library.user.folders[0]["_id"]
        library.save_item(folder_id, {"id": 3, "title": "Three"})

        index = library.folder_index()

        assert index[0]["saved"] == [{"id": 3}]


class TestHistoryPersistence:
    def test_add_and_read_history(self, library: LibraryManager, session_factory) -> None:
        library.add_history({"id": 1, "title": "One", "poster_path": "/1.jpg", "media_type": "mv"}, NOW)

        with session_factory() as session:
            stored = session.get(User, library.user.id).history
        assert stored[0]["id"] == 1
        assert library.get_history(NOW + timedelta(days=1))[0]["id"] == 1
        assert library.get_history(NOW + timedelta(days=8)) == []

    def test_delete_history_item(self, library: LibraryManager) -> None:
        library.add_history({"id": 1, "title": "One", "poster_path": "", "media_type": "MV"}, NOW)

        library.delete_history_item(1)

        assert library.user.history == []
        with pytest.raises(LibraryError, match="Movie not found in history"):
            library.delete_history_item(1)

    def test_clear_history(self, library: LibraryManager) -> None:
        library.add_history({"id": 1, "title": "One", "poster_path": "", "media_type": "MV"}, NOW)
        library.clear_history()
        assert library.user.history == []
