"""Media routes: the local trending cache and reshaped upstream lookups."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from models.api import DiscoverRequest, GenreListResponse, KeywordResponse, LanguagesResponse, ResultResponse
from models.database.genre import Genre
from models.database.media import Media
from models.enums import MediaType
from services.catalog.client import UpstreamClient, get_upstream_client
from services.catalog.formatter import format_media, load_genre_lookup
from shared.exceptions import UpstreamError
from shared.utils import config, setup_logging

logger = setup_logging("media-service")

MOVIE_CATEGORIES = {
    "now-playing": "/movie/now_playing",
    "popular": "/movie/popular",
    "trending": "/movie/top_rated",
    "upcoming": "/movie/upcoming",
}

SERIES_CATEGORIES = {
    "top": "/tv/top_rated",
    "popular": "/tv/popular",
    "airing": "/tv/airing_today",
    "next-seven": "/tv/on_the_air",
}

# Response keys for the default landing lists
MOVIE_DEFAULTS = {
    "now": "/movie/now_playing",
    "popular": "/movie/popular",
    "top": "/movie/top_rated",
    "upcoming": "/movie/upcoming",
}

SERIES_DEFAULTS = {
    "popular": "/tv/popular",
    "top": "/tv/top_rated",
    "airing": "/tv/airing_today",
    "nextSeven": "/tv/on_the_air",
}

router = APIRouter()


def language() -> str:
    return config.get_setting("upstream.language", "en-US")


def upstream_failed(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"condition": False, "message": message})


@router.get("/getmovie", response_model=ResultResponse, tags=["Media"])
async def get_trending(db: Session = Depends(get_db)):
    """Cached trending movies and series"""
    movies = db.query(Media).filter(Media.media_type == MediaType.MOVIE.value).all()
    series = db.query(Media).filter(Media.media_type == MediaType.SERIES.value).all()
    return ResultResponse(
        result={
            "trendingMovies": [media.to_dict() for media in movies],
            "trendingSeries": [media.to_dict() for media in series],
        }
    )


@router.get("/get-detail/{media_id}/{media_type}", response_model=ResultResponse, tags=["Media"])
@router.get("/get-detail/{media_id}/{media_type}/{season}", response_model=ResultResponse, tags=["Media"])
async def get_detail(
    media_id: int,
    media_type: str,
    season: int = 1,
    db: Session = Depends(get_db),
    client: UpstreamClient = Depends(get_upstream_client),
):
    """Upstream detail with recommendations; series include one season's episodes"""
    params = {"append_to_response": "recommendations", "language": language()}
    try:
        if media_type == MediaType.MOVIE.value:
            detail = await client.get(f"/movie/{media_id}", params, use_cache=True)
        elif media_type == MediaType.SERIES.value:
            show, season_detail = await asyncio.gather(
                client.get(f"/tv/{media_id}", params, use_cache=True),
                client.get(f"/tv/{media_id}/season/{season}", {"language": language()}, use_cache=True),
            )
            detail = {**show, **season_detail}
        else:
            raise HTTPException(status_code=400, detail="Invalid media type")
    except UpstreamError as e:
        logger.error(f"Detail fetch failed for {media_type} {media_id}: {e.message}")
        return upstream_failed("Error fetching detail")

    formatted = format_media(detail, media_type, load_genre_lookup(db))
    return ResultResponse(result=formatted)


@router.get("/getmovies/{media_type}", response_model=ResultResponse, tags=["Media"])
async def get_default_lists(
    media_type: str,
    db: Session = Depends(get_db),
    client: UpstreamClient = Depends(get_upstream_client),
):
    """The four landing lists for movies or series, fetched in parallel"""
    if media_type == MediaType.MOVIE.value:
        lists, label = MOVIE_DEFAULTS, "Movie"
    elif media_type == MediaType.SERIES.value:
        lists, label = SERIES_DEFAULTS, "Series"
    else:
        raise HTTPException(status_code=400, detail="Invalid media type")

    params = {"language": language(), "page": 1}
    try:
        pages = await client.get_many(
            [client.build_path(path, params) for path in lists.values()],
            use_cache=True,
        )
    except UpstreamError as e:
        logger.error(f"Landing lists fetch failed: {e.message}")
        return upstream_failed("Internal server error")

    lookup = load_genre_lookup(db)
    result = {
        key: [format_media(item, media_type, lookup) for item in page.get("results") or []]
        for key, page in zip(lists.keys(), pages)
    }
    return ResultResponse(message=f"{label} Fetch Success", result=result)


@router.get("/getmovies/{media_type}/{category}/{page}", response_model=ResultResponse, tags=["Media"])
async def get_category_page(
    media_type: str,
    category: str,
    page: int,
    db: Session = Depends(get_db),
    client: UpstreamClient = Depends(get_upstream_client),
):
    if media_type == MediaType.MOVIE.value:
        endpoint, label = MOVIE_CATEGORIES.get(category), "Movie"
    elif media_type == MediaType.SERIES.value:
        endpoint, label = SERIES_CATEGORIES.get(category), "Series"
    else:
        raise HTTPException(status_code=400, detail="Invalid media type")
    if endpoint is None:
        raise HTTPException(status_code=400, detail=f"Invalid {label.lower()} category")

    try:
        data = await client.get(endpoint, {"language": language(), "page": page}, use_cache=True)
    except UpstreamError as e:
        logger.error(f"Category fetch failed for {endpoint}: {e.message}")
        return upstream_failed("Internal server error")

    lookup = load_genre_lookup(db)
    result = {**data, "results": [format_media(item, media_type, lookup) for item in data.get("results") or []]}
    return ResultResponse(message=f"{label} Fetch Success", result=result)


@router.get("/search", response_model=ResultResponse, tags=["Media"])
async def search(
    query: str | None = None,
    page: int = 1,
    db: Session = Depends(get_db),
    client: UpstreamClient = Depends(get_upstream_client),
):
    """Multi search over movies and series; people are dropped"""
    if not query:
        raise HTTPException(status_code=400, detail="No search query provided")

    params = {"query": query, "include_adult": "false", "language": language(), "page": page}
    try:
        data = await client.get("/search/multi", params)
    except UpstreamError as e:
        logger.error(f"Search failed: {e.message}")
        return upstream_failed("Search failed")

    lookup = load_genre_lookup(db)
    results = [format_media(item, None, lookup) for item in data.get("results") or [] if item.get("media_type") != "person"]
    return ResultResponse(
        message="Search success",
        result={
            "total_pages": data.get("total_pages"),
            "total_results": data.get("total_results"),
            "results": results,
        },
    )


@router.get("/keywords", response_model=KeywordResponse, tags=["Media"])
async def keywords(query: str | None = None, client: UpstreamClient = Depends(get_upstream_client)):
    if not query:
        raise HTTPException(status_code=400, detail="Missing query")
    try:
        data = await client.get("/search/keyword", {"query": query}, use_cache=True)
    except UpstreamError as e:
        logger.error(f"Keyword search failed: {e.message}")
        return upstream_failed("Failed to fetch keywords")
    return KeywordResponse(keywords=data.get("results") or [])


@router.get("/genres", response_model=GenreListResponse, tags=["Media"])
async def genres(db: Session = Depends(get_db)):
    """Local genre table, sorted by name"""
    rows = db.query(Genre).order_by(Genre.name).all()
    return GenreListResponse(genres=[{"tmdbId": genre.tmdb_id, "name": genre.name} for genre in rows])


@router.get("/languages", response_model=LanguagesResponse, tags=["Media"])
async def languages(client: UpstreamClient = Depends(get_upstream_client)):
    try:
        data = await client.get("/configuration/languages", use_cache=True)
    except UpstreamError as e:
        logger.error(f"Language list failed: {e.message}")
        return upstream_failed("Failed to fetch languages")
    return LanguagesResponse(languages=data)


@router.post("/discover", response_model=ResultResponse, tags=["Media"])
async def discover(
    request: DiscoverRequest,
    db: Session = Depends(get_db),
    client: UpstreamClient = Depends(get_upstream_client),
):
    """Filtered browse over movies or series"""
    # Unset filters stay None and are left out of the query string
    params = {
        "sort_by": request.sortBy,
        "include_adult": str(request.includeAdult).lower(),
        "include_video": "false",
        "page": request.page,
        "language": language(),
        "with_genres": ",".join(str(genre) for genre in request.genres) if request.genres else None,
        "with_keywords": request.keywords or None,
        "with_original_language": request.language or None,
        "primary_release_year": request.releaseYear,
        "vote_average.gte": request.voteAverageGte,
        "vote_average.lte": request.voteAverageLte,
        "with_runtime.gte": request.runtimeGte,
        "with_runtime.lte": request.runtimeLte,
    }
    endpoint = "/discover/tv" if request.type == MediaType.SERIES.value else "/discover/movie"

    try:
        data = await client.get(endpoint, params)
    except UpstreamError as e:
        logger.error(f"Discover failed: {e.message}")
        return upstream_failed("Failed to fetch discoveries")

    lookup = load_genre_lookup(db)
    return ResultResponse(
        result={
            "page": data.get("page"),
            "total_pages": data.get("total_pages"),
            "total_results": data.get("total_results"),
            "results": [format_media(item, request.type, lookup) for item in data.get("results") or []],
        }
    )
