# backend/fiableauto/apps/missions/router_reports.py

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_read_db
from . import schemas, stats

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=schemas.ApiResponse)
def get_basic_stats(db: Session = Depends(get_read_db)):
    """
    Mission counts per status.

    Always answers 200: if the database is unreachable the counts are zero
    and the message says the figures are defaults.
    """
    counts, available = stats.basic_stats(db)
    message = None if available else "Statistics temporarily unavailable, showing defaults"
    return schemas.ApiResponse(success=True, data=counts.model_dump(), message=message)


@router.get("/advanced", response_model=schemas.ApiResponse)
def get_advanced_stats(db: Session = Depends(get_read_db)):
    result = stats.advanced_stats(db)
    return schemas.ApiResponse(success=True, data=result.model_dump(mode="json", by_alias=True))
