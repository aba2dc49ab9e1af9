"""
Wall router.

GET /wall               — public, active commitments (paginated)
GET /wall/trending      — most engaged public commitments of the last week
GET /wall/contributors  — users ranked by carbon saved on public commitments
GET /wall/stats         — totals and per-category breakdown
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ecopledge.core.auth import get_optional_user
from ecopledge.db.base import get_db
from ecopledge.models.commitment import Category
from ecopledge.models.user import User
from ecopledge.routers.commitments import commitment_to_response
from ecopledge.routers.users import user_to_response
from ecopledge.schemas.commitment import TrendingResponse, WallFeedResponse, WallStatsResponse
from ecopledge.schemas.common import Pagination
from ecopledge.schemas.user import ContributorEntry, ContributorsResponse
from ecopledge.services.social import (
    WallSort,
    get_top_contributors,
    get_trending,
    get_wall_feed,
    get_wall_stats,
)

router = APIRouter(prefix="/wall", tags=["wall"])


@router.get("", response_model=WallFeedResponse, summary="Public wall feed")
def wall_feed(
    sort: str = Query(
        default=WallSort.RECENT,
        pattern=f"^({WallSort.RECENT}|{WallSort.IMPACT}|{WallSort.POPULAR})$",
        description="recent (newest), impact (estimated total), popular (likes).",
    ),
    category: Optional[str] = Query(
        default=None,
        pattern=f"^(all|{'|'.join(c.value for c in Category)})$",
        description='Category or "all".',
    ),
    search: Optional[str] = Query(default=None, max_length=100),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    viewer: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """`is_liked` is populated only when a valid bearer token is sent."""
    feed = get_wall_feed(
        db, viewer=viewer, sort=sort, category=category, search=search, page=page, limit=limit,
    )
    return WallFeedResponse(
        items=[
            commitment_to_response(c, is_liked=liked if viewer is not None else None)
            for c, liked in feed["items"]
        ],
        pagination=Pagination(**feed["pagination"]),
    )


@router.get("/trending", response_model=TrendingResponse, summary="Trending commitments")
def trending(
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Public, active commitments from the last 7 days ordered by likes, then comments."""
    return TrendingResponse(items=[commitment_to_response(c) for c in get_trending(db, limit=limit)])


@router.get("/contributors", response_model=ContributorsResponse, summary="Top contributors")
def contributors(
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return ContributorsResponse(
        items=[
            ContributorEntry(
                user=user_to_response(row["user"]),
                total_carbon_saved=row["total_carbon_saved"],
                commitment_count=row["commitment_count"],
            )
            for row in get_top_contributors(db, limit=limit)
        ]
    )


@router.get("/stats", response_model=WallStatsResponse, summary="Wall statistics")
def stats(db: Session = Depends(get_db)):
    return WallStatsResponse(**get_wall_stats(db))
