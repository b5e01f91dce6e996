"""API endpoints for recurring series management."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.dependencies import get_db, get_current_owner
from app.models.recurring import SeriesKind
from app.schemas.recurring import (
    SeriesUpsert,
    SeriesResponse,
    SnoozeRequest,
    SeriesSnoozeResponse,
    DeleteResponse,
)
from app.services import series_service

router = APIRouter(prefix="/series", tags=["series"])


@router.get("", response_model=List[SeriesResponse])
def list_series(
    kind: Optional[SeriesKind] = Query(None),
    active: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, description="Search name and merchant"),
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """List the owner's recurring series."""
    series = series_service.list_series(db, owner_id, kind=kind, active=active, q=q)
    return [SeriesResponse.model_validate(s) for s in series]


@router.post("", response_model=SeriesResponse)
def upsert_series(
    data: SeriesUpsert,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Create a series, or update it when an id is given."""
    values = data.model_dump(exclude_unset=True, exclude={"id"})
    series = series_service.upsert_series(db, owner_id, values, series_id=data.id)
    return SeriesResponse.model_validate(series)


@router.delete("/{series_id}", response_model=DeleteResponse)
def delete_series(
    series_id: str,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Delete a series. Its bills and paychecks are detached, not deleted."""
    series_service.delete_series(db, owner_id, series_id)
    return DeleteResponse(ok=True)


@router.post("/{series_id}/snooze", response_model=SeriesSnoozeResponse)
def snooze_series(
    series_id: str,
    request: SnoozeRequest,
    owner_id: str = Depends(get_current_owner),
    db: Session = Depends(get_db)
):
    """Push the series' next due date forward."""
    series = series_service.snooze_series(db, owner_id, series_id, request.days)
    return SeriesSnoozeResponse(ok=True, series=SeriesResponse.model_validate(series))
