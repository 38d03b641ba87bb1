"""
Read API for imported shows.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..db.base import get_db
from ..db.services import ShowService
from ..schemas.show_v1 import ShowDetailResponse, ShowListResponse

router = APIRouter(prefix="/api/shows", tags=["shows"])


@router.get("", response_model=ShowListResponse)
async def list_shows(
    search: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """List shows, newest first, each with its track count."""
    rows, total = ShowService(db).list_shows(
        search=search, status=status, limit=limit, offset=offset
    )
    shows = []
    for show, track_count in rows:
        data = show.to_dict()
        data["track_count"] = track_count
        shows.append(data)
    return {"success": True, "shows": shows, "total_count": total}


@router.get("/{show_id}", response_model=ShowDetailResponse)
async def get_show(show_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Get a show by id, slug, or a slug ending in its Storyblok id."""
    service = ShowService(db)
    show = service.find_show(show_id)
    if not show:
        raise HTTPException(status_code=404, detail="Show not found")

    return {
        "success": True,
        "show": show.to_dict(),
        "tracks": [t.to_dict() for t in service.get_tracks(show.id)],
    }
