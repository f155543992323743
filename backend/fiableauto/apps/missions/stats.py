"""
Read-only reporting over missions: status counts, the advanced dashboard
figures and the filtered search used by the back-office list.

Only the basic counters degrade gracefully when the database is down; the
advanced dashboard and search propagate errors.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import List, Optional, Tuple

from sqlalchemy import extract, func, literal_column, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import dialect_name
from . import models, schemas

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 100
TOP_VEHICLES_LIMIT = 10
MONTHLY_WINDOW = 12


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _status_counts(db: Session) -> schemas.StatusCounts:
    rows = (
        db.query(models.Mission.status, func.count(models.Mission.id))
        .group_by(models.Mission.status)
        .all()
    )
    counts = schemas.StatusCounts()
    for status, count in rows:
        counts.total += count
        if status in schemas.StatusCounts.model_fields and status != "total":
            setattr(counts, status, count)
    return counts


def basic_stats(db: Session) -> Tuple[schemas.StatusCounts, bool]:
    """
    Count missions per status.

    Returns (counts, available). When the store cannot be queried the counts
    are all zero and available is False, so callers can tell a real empty
    dataset from an outage.
    """
    try:
        return _status_counts(db), True
    except SQLAlchemyError as exc:
        if db.in_transaction():
            db.rollback()
        logger.warning("Mission stats unavailable, returning defaults", extra={"error": str(exc)})
        return schemas.StatusCounts(), False


def _window_start(now: datetime, months: int = MONTHLY_WINDOW) -> datetime:
    """First instant of the month `months - 1` months before `now`."""
    year, month = now.year, now.month - (months - 1)
    while month <= 0:
        month += 12
        year -= 1
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _month_bucket(db: Session, column):
    if dialect_name(db) == "postgresql":
        return func.to_char(column, literal_column("'YYYY-MM'"))
    return func.strftime(literal_column("'%Y-%m'"), column)


def _hours_between(db: Session, start, end):
    if dialect_name(db) == "postgresql":
        return extract("epoch", end - start) / 3600.0
    return (func.julianday(end) - func.julianday(start)) * 24.0


def _monthly_counts(db: Session, since: datetime) -> List[schemas.MonthlyCount]:
    bucket = _month_bucket(db, models.Mission.created_at)
    rows = (
        db.query(bucket, func.count(models.Mission.id))
        .filter(models.Mission.created_at >= since)
        .group_by(bucket)
        .order_by(bucket)
        .all()
    )
    return [schemas.MonthlyCount(month=month, count=count) for month, count in rows]


def _top_vehicles(db: Session) -> List[schemas.VehicleCount]:
    count = func.count(models.Mission.id)
    rows = (
        db.query(models.Mission.vehicle_brand, models.Mission.vehicle_model, count)
        .group_by(models.Mission.vehicle_brand, models.Mission.vehicle_model)
        .order_by(
            count.desc(),
            models.Mission.vehicle_brand.asc(),
            models.Mission.vehicle_model.asc(),
        )
        .limit(TOP_VEHICLES_LIMIT)
        .all()
    )
    return [
        schemas.VehicleCount(vehicle_brand=brand, vehicle_model=model, count=n)
        for brand, model, n in rows
    ]


def _avg_processing_hours(db: Session) -> float:
    hours = _hours_between(db, models.Mission.created_at, models.Mission.completed_at)
    value = (
        db.query(func.avg(hours))
        .filter(
            models.Mission.status == models.MissionStatus.COMPLETED.value,
            models.Mission.completed_at.isnot(None),
        )
        .scalar()
    )
    return round(float(value), 2) if value is not None else 0.0


def advanced_stats(db: Session, *, now: Optional[datetime] = None) -> schemas.AdvancedStats:
    """
    Dashboard figures: status counts, missions created per month over the
    last twelve months, the ten most common vehicles and the average hours
    from creation to completion. Any failing query fails the whole call.
    """
    now = now or _utcnow()
    return schemas.AdvancedStats(
        basic=_status_counts(db),
        monthly=_monthly_counts(db, _window_start(now)),
        top_vehicles=_top_vehicles(db),
        avg_processing_hours=_avg_processing_hours(db),
    )


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _day_end(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def search_missions(db: Session, filters: schemas.SearchFilters) -> List[models.Mission]:
    """
    All filters are optional and combined with AND. Text matches are
    case-insensitive substrings; date bounds are inclusive whole days.
    """
    query = db.query(models.Mission)

    term = (filters.q or "").strip().lower()
    if term:
        query = query.filter(
            or_(
                func.lower(models.Mission.mission_code).contains(term, autoescape=True),
                func.lower(models.Mission.client_name).contains(term, autoescape=True),
                func.lower(models.Mission.vehicle_brand).contains(term, autoescape=True),
                func.lower(models.Mission.vehicle_model).contains(term, autoescape=True),
            )
        )

    if filters.status:
        query = query.filter(models.Mission.status == filters.status)

    if filters.date_from:
        query = query.filter(models.Mission.created_at >= _day_start(filters.date_from))

    if filters.date_to:
        query = query.filter(models.Mission.created_at <= _day_end(filters.date_to))

    brand = (filters.vehicle_brand or "").strip().lower()
    if brand:
        query = query.filter(
            func.lower(models.Mission.vehicle_brand).contains(brand, autoescape=True)
        )

    return (
        query.order_by(models.Mission.created_at.desc(), models.Mission.id.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )
