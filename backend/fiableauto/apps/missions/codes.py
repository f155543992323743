# backend/fiableauto/apps/missions/codes.py
"""
Mission code generator.

Codes look like ``FA-20240301-007``: a fixed prefix, the UTC creation date
and a per-day sequence. The sequence is the highest code already stored for
that date plus one, read from the database at creation time.

Known weak points, kept as they are:
- "read last code, then insert" is not serialised, so two concurrent creates
  can compute the same code. The unique constraint on missions.mission_code
  turns that into an IntegrityError and services.create_mission retries.
- When the lookup fails (database unreachable) a random suffix is used so
  intake keeps working; two fallbacks on the same day may collide.
- Past 999 the sequence grows to four digits. Codes are compared as strings,
  so "-1000" sorts below "-999" and the day's sequence stops advancing.
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)

CODE_PREFIX = "FA"
SEQUENCE_WIDTH = 3


def date_stamp(creation_date: date) -> str:
    return creation_date.strftime("%Y%m%d")


def format_code(creation_date: date, sequence: int) -> str:
    return f"{CODE_PREFIX}-{date_stamp(creation_date)}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(code: str) -> Optional[int]:
    """Trailing sequence number of a mission code, or None if it is not numeric."""
    tail = (code or "").rsplit("-", 1)[-1]
    try:
        return int(tail)
    except ValueError:
        return None


def _last_code_for(db: Session, creation_date: date) -> Optional[str]:
    prefix = f"{CODE_PREFIX}-{date_stamp(creation_date)}-"
    row = (
        db.query(models.Mission.mission_code)
        .filter(models.Mission.mission_code.like(f"{prefix}%"))
        .order_by(models.Mission.mission_code.desc())
        .limit(1)
        .first()
    )
    return row[0] if row else None


def generate_mission_code(db: Session, creation_date: Optional[date] = None) -> str:
    creation_date = creation_date or datetime.now(timezone.utc).date()

    try:
        last_code = _last_code_for(db, creation_date)
    except SQLAlchemyError as exc:
        if db.in_transaction():
            db.rollback()
        logger.warning(
            "Mission code lookup failed, using random suffix",
            extra={"date": date_stamp(creation_date), "error": str(exc)},
        )
        return format_code(creation_date, random.randint(1, 999))

    sequence = 1
    if last_code:
        last_sequence = parse_sequence(last_code)
        if last_sequence is not None:
            sequence = last_sequence + 1
    return format_code(creation_date, sequence)
