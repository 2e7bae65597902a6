"""
Genre and trending refresh against the upstream catalog.

Each run fetches concurrently, writes through the ORM session and records
its completion time in the ``SyncState`` row, so a restart does not
trigger a redundant refresh.
"""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from models.database.genre import Genre
from models.database.media import Media
from models.database.sync_state import SYNC_STATE_ID, SyncState
from services.catalog.client import UpstreamClient
from services.catalog.formatter import format_cache_entry
from shared.utils import config, setup_logging, utcnow

logger = setup_logging("sync-service")

GENRES = "genres"
TRENDING = "trending"


class SyncService:
    """Refresh the local genre table and trending cache."""

    def __init__(self, db: Session, client: UpstreamClient | None = None) -> None:
        self.db = db
        # Separate from the proxy client so sync runs never hit its response cache
        self.client = client or UpstreamClient()
        self.language = config.get_setting("upstream.language", "en-US")
        self.genre_language = config.get_setting("upstream.genre_language", "en")

    def _state(self) -> SyncState:
        state = self.db.get(SyncState, SYNC_STATE_ID)
        if state is None:
            state = SyncState(id=SYNC_STATE_ID)
            self.db.add(state)
        return state

    def status(self) -> SyncState:
        return self._state()

    async def sync_genres(self, now: datetime | None = None) -> int:
        """Upsert the movie and TV genre lists; genres are never deleted."""
        params = {"language": self.genre_language}
        movie_genres, tv_genres = await self.client.get_many([
            self.client.build_path("/genre/movie/list", params),
            self.client.build_path("/genre/tv/list", params),
        ])

        # Movie and TV lists share ids for common genres
        merged: dict[int, str] = {}
        for genre in (movie_genres.get("genres") or []) + (tv_genres.get("genres") or []):
            merged[int(genre["id"])] = genre["name"]

        for tmdb_id, name in merged.items():
            existing = self.db.get(Genre, tmdb_id)
            if existing:
                existing.name = name
            else:
                self.db.add(Genre(tmdb_id=tmdb_id, name=name))

        self._state().last_genre_update = now or utcnow()
        self.db.commit()
        logger.info(f"Genres updated: {len(merged)}")
        return len(merged)

    async def sync_trending(self, now: datetime | None = None) -> int:
        """Replace the trending cache with today's trending movies and shows.

        Entries no longer trending are deleted before details are fetched;
        a failed detail fetch aborts the run but keeps those deletions.
        """
        now = now or utcnow()
        params = {"language": self.language}
        movie_trending, tv_trending = await self.client.get_many([
            self.client.build_path("/trending/movie/day", params),
            self.client.build_path("/trending/tv/day", params),
        ])

        movie_ids = [item["id"] for item in movie_trending.get("results") or []]
        tv_ids = [item["id"] for item in tv_trending.get("results") or []]
        keep_ids = set(movie_ids) | set(tv_ids)

        removed = self.db.query(Media).filter(Media.id.notin_(list(keep_ids))).delete(synchronize_session=False)
        self.db.commit()
        if removed:
            logger.info(f"Removed {removed} media no longer trending")

        details = await self.client.get_many(
            [self.client.build_path(f"/movie/{media_id}", params) for media_id in movie_ids]
            + [self.client.build_path(f"/tv/{media_id}", params) for media_id in tv_ids]
        )

        # A movie and a show can share an upstream id; the later entry wins
        entries: dict[int, dict[str, Any]] = {}
        for detail in details:
            entry = format_cache_entry(detail)
            entries[entry["id"]] = entry

        for media_id, values in entries.items():
            existing = self.db.get(Media, media_id)
            if existing is None:
                existing = Media(id=media_id)
                self.db.add(existing)
            for field, value in values.items():
                setattr(existing, field, value)
            existing.updated_at = now

        self._state().last_trending_update = now
        self.db.commit()
        logger.info(f"Trending updated: {len(entries)}")
        return len(entries)

    async def sync_if_needed(self, now: datetime | None = None) -> dict[str, int | None]:
        """Run each sync type whose last run is missing or too old.

        Failures are logged per type and never propagate.
        """
        now = now or utcnow()
        min_age = timedelta(hours=float(config.get_setting("sync.min_age_hours", 24)))
        state = self._state()
        jobs = (
            (GENRES, state.last_genre_update, self.sync_genres),
            (TRENDING, state.last_trending_update, self.sync_trending),
        )

        results: dict[str, int | None] = {}
        for name, last_run, job in jobs:
            if last_run is not None and now - last_run < min_age:
                continue
            try:
                results[name] = await job(now)
            except Exception:
                # Isolated per type; the next pass retries
                self.db.rollback()
                logger.exception(f"{name.capitalize()} sync failed")
                results[name] = None
        return results
