"""
Normalisation of upstream catalog items.

Everything here is pure except ``load_genre_lookup``, which reads the
local genre table used to resolve ``genre_ids``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from models.database.genre import Genre
from models.enums import MediaType
from shared.utils import config

PLACEHOLDER_IMAGE = "https://upload.wikimedia.org/wikipedia/commons/6/65/No-Image-Placeholder.svg"
POSTER_SIZE = "w500"
BACKDROP_SIZE = "w1280"

UPSTREAM_TYPE_TAGS = {
    "movie": MediaType.MOVIE.value,
    "tv": MediaType.SERIES.value,
}


def image_url(path: str | None, size: str) -> str:
    if not path:
        return PLACEHOLDER_IMAGE
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{config.get('tmdb_image_link')}{size}{path}"


def format_poster(path: str | None) -> str:
    return image_url(path, POSTER_SIZE)


def format_backdrop(path: str | None) -> str:
    return image_url(path, BACKDROP_SIZE)


def normalize_media_type(value: Any) -> str:
    """Map upstream ``movie``/``tv`` to ``MV``/``SR``; anything else passes through."""
    resolved = "" if value is None else str(value)
    return UPSTREAM_TYPE_TAGS.get(resolved, resolved)


def load_genre_lookup(db: Session) -> dict[int, str]:
    return {genre.tmdb_id: genre.name for genre in db.query(Genre).all()}


def resolve_genres(raw: Mapping[str, Any], genre_lookup: Mapping[int, str]) -> list[dict[str, Any]]:
    if raw.get("genres") is not None:
        return list(raw["genres"])
    return [
        {"id": genre_id, "name": genre_lookup[genre_id]}
        for genre_id in raw.get("genre_ids") or []
        if genre_id in genre_lookup
    ]


def format_media(
    raw: Mapping[str, Any],
    type_hint: str | None = None,
    genre_lookup: Mapping[int, str] | None = None,
) -> dict[str, Any]:
    """Produce the normalised record for one upstream item."""
    lookup = genre_lookup or {}
    formatted = dict(raw)

    formatted["title"] = raw.get("title") or raw.get("name")
    formatted["release_date"] = raw.get("release_date") or raw.get("first_air_date")
    formatted["media_type"] = normalize_media_type(type_hint or raw.get("media_type"))
    formatted["poster_path"] = format_poster(raw.get("poster_path"))
    formatted["backdrop_path"] = format_backdrop(raw.get("backdrop_path"))
    formatted["genres"] = resolve_genres(raw, lookup)
    formatted.pop("genre_ids", None)

    if raw.get("seasons") is not None:
        formatted["seasons"] = [
            {**season, "poster_path": format_poster(season.get("poster_path"))}
            for season in raw["seasons"]
        ]

    recommendations = (raw.get("recommendations") or {}).get("results") or []
    if recommendations:
        formatted["recommendations"] = [
            format_media(rec, rec.get("media_type") or MediaType.MOVIE.value, lookup)
            for rec in recommendations
        ]
    else:
        formatted.pop("recommendations", None)

    return formatted


def format_cache_entry(detail: Mapping[str, Any]) -> dict[str, Any]:
    """Column values for the trending cache from a movie or TV detail payload."""
    is_movie = bool(detail.get("title"))
    entry: dict[str, Any] = {
        "id": detail["id"],
        "media_type": MediaType.MOVIE.value if is_movie else MediaType.SERIES.value,
        "title": detail.get("title") or detail.get("name") or "",
        "overview": detail.get("overview") or "",
        "poster_path": format_poster(detail.get("poster_path")),
        "backdrop_path": format_backdrop(detail.get("backdrop_path")),
        "vote_average": detail.get("vote_average") or 0,
        "vote_count": detail.get("vote_count") or 0,
        "genres": [{"id": g["id"], "name": g["name"]} for g in detail.get("genres") or []],
        "release_date": detail.get("release_date") or detail.get("first_air_date") or "",
        "runtime": detail.get("runtime") or None,
        "seasons": None,
    }
    if not is_movie:
        entry["seasons"] = [
            {
                "season_number": season.get("season_number"),
                "name": season.get("name"),
                "episode_count": season.get("episode_count"),
            }
            for season in detail.get("seasons") or []
        ]
    return entry
