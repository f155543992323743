from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import PurePath
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import String, cast, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ...database import dialect_name
from ...errors import (
    ConflictError,
    NotFoundError,
    PayloadTooLargeError,
    StoreUnavailableError,
    ValidationError,
)
from . import codes, models, schemas
from .storage import BlobStorage

logger = logging.getLogger(__name__)


FULL_STATUSES = (
    models.MissionStatus.PENDING.value,
    models.MissionStatus.ASSIGNED.value,
    models.MissionStatus.IN_PROGRESS.value,
    models.MissionStatus.PHOTOS_TAKEN.value,
    models.MissionStatus.COMPLETED.value,
    models.MissionStatus.CANCELLED.value,
)

MINIMAL_STATUSES = (
    models.MissionStatus.PENDING.value,
    models.MissionStatus.IN_PROGRESS.value,
    models.MissionStatus.COMPLETED.value,
    models.MissionStatus.CANCELLED.value,
)

REQUIRED_MISSION_FIELDS = (
    ("vehicle_brand", "vehicleBrand"),
    ("vehicle_model", "vehicleModel"),
    ("pickup_location", "pickupLocation"),
    ("delivery_location", "deliveryLocation"),
    ("client_name", "clientName"),
    ("client_email", "clientEmail"),
)

URGENCY_LEVELS = tuple(level.value for level in models.MissionUrgency)

ALLOWED_PHOTO_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}

MAX_CODE_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def recognized_statuses() -> Tuple[str, ...]:
    """
    Statuses accepted by set_status.

    MISSION_STATUS_PROFILE=minimal restricts the workflow to
    pending / in_progress / completed / cancelled.
    """
    profile = (os.getenv("MISSION_STATUS_PROFILE") or "full").strip().lower()
    if profile == "minimal":
        return MINIMAL_STATUSES
    return FULL_STATUSES


def photo_max_bytes() -> int:
    return int(os.getenv("MISSION_PHOTO_MAX_BYTES", str(10 * 1024 * 1024)) or "0")


@contextmanager
def _write_transaction(db: Session) -> Iterator[None]:
    """
    Commit on success, roll back on any failure.

    A lost database connection is reported as StoreUnavailableError so writes
    never fail silently.
    """
    try:
        yield
        db.commit()
    except OperationalError as exc:
        db.rollback()
        logger.error("Mission store unavailable during write", extra={"error": str(exc)})
        raise StoreUnavailableError() from exc
    except Exception:
        db.rollback()
        raise


def _insert_for(db: Session):
    """Dialect-specific INSERT construct that supports ON CONFLICT."""
    name = dialect_name(db)
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Upserts are not supported on the {name} dialect")


def _get_mission(db: Session, mission_id: int) -> models.Mission:
    mission = db.query(models.Mission).filter(models.Mission.id == mission_id).first()
    if not mission:
        raise NotFoundError()
    return mission


# ---------------------------------------------------------------------------
# Missions
# ---------------------------------------------------------------------------


def create_mission(
    db: Session,
    payload: schemas.MissionCreate,
    *,
    creation_date: Optional[date] = None,
) -> models.Mission:
    missing = [
        label
        for field, label in REQUIRED_MISSION_FIELDS
        if not (getattr(payload, field) or "").strip()
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if payload.urgency is not None and payload.urgency not in URGENCY_LEVELS:
        raise ValidationError(f"Invalid urgency. Expected one of: {', '.join(URGENCY_LEVELS)}")

    data = payload.model_dump(exclude_none=True)
    data.setdefault("urgency", models.MissionUrgency.NORMAL.value)
    data.setdefault("mission_type", models.DEFAULT_MISSION_TYPE)
    creation_date = creation_date or _utcnow().date()

    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        code = codes.generate_mission_code(db, creation_date)
        mission = models.Mission(
            mission_code=code,
            status=models.MissionStatus.PENDING.value,
            **data,
        )
        try:
            with _write_transaction(db):
                db.add(mission)
        except IntegrityError:
            logger.warning(
                "Mission code collision, retrying",
                extra={"mission_code": code, "attempt": attempt},
            )
            continue
        db.refresh(mission)
        logger.info("Mission created", extra={"mission_id": mission.id, "mission_code": code})
        return mission

    raise ConflictError("Could not allocate a unique mission code, please retry")


def list_missions(db: Session) -> List[models.Mission]:
    return (
        db.query(models.Mission)
        .order_by(models.Mission.created_at.desc(), models.Mission.id.desc())
        .all()
    )


def set_status(db: Session, mission_id: int, new_status: Optional[str]) -> models.Mission:
    """
    Move a mission to any recognised status.

    There is no adjacency check: every recognised status may follow any
    other. started_at is stamped on in_progress, completed_at on completed;
    neither is ever cleared.
    """
    allowed = recognized_statuses()
    if new_status not in allowed:
        raise ValidationError(f"Invalid status. Expected one of: {', '.join(allowed)}")

    with _write_transaction(db):
        mission = _get_mission(db, mission_id)
        previous = mission.status
        now = _utcnow()
        mission.status = new_status
        if new_status == models.MissionStatus.IN_PROGRESS.value:
            mission.started_at = now
        elif new_status == models.MissionStatus.COMPLETED.value:
            mission.completed_at = now
        mission.updated_at = now

    logger.info(
        "Mission status changed",
        extra={"mission_id": mission_id, "from_status": previous, "to_status": new_status},
    )
    return mission


def update_observations(db: Session, mission_id: int, observations: Optional[str]) -> models.Mission:
    with _write_transaction(db):
        mission = _get_mission(db, mission_id)
        mission.observations = observations
        mission.updated_at = _utcnow()
    return mission


def set_signature(db: Session, mission_id: int, signature: Optional[str]) -> models.Mission:
    if not signature:
        raise ValidationError("Signature is required")

    with _write_transaction(db):
        mission = _get_mission(db, mission_id)
        now = _utcnow()
        mission.client_signature = signature
        mission.signature_timestamp = now
        mission.updated_at = now
    return mission


# ---------------------------------------------------------------------------
# Read aggregation
# ---------------------------------------------------------------------------


def aggregate_mission(db: Session, mission: models.Mission) -> schemas.MissionDetail:
    """
    Mission fields + inspection figures + photo summaries.

    Every sub-fetch runs in the caller's session; a failure in any of them
    propagates and no partial view is returned.
    """
    inspection = (
        db.query(models.MissionInspection)
        .populate_existing()
        .filter(models.MissionInspection.mission_id == mission.id)
        .first()
    )
    photos = (
        db.query(models.MissionPhoto)
        .populate_existing()
        .filter(models.MissionPhoto.mission_id == mission.id)
        .order_by(models.MissionPhoto.uploaded_at.asc(), models.MissionPhoto.id.asc())
        .all()
    )

    base = schemas.MissionRead.model_validate(mission).model_dump()
    return schemas.MissionDetail(
        **base,
        checklist=inspection.checklist if inspection else None,
        keys_count=inspection.keys_count if inspection else None,
        optional_photos_count=inspection.optional_photos_count if inspection else None,
        photos=[
            schemas.PhotoSummary(
                id=photo.id,
                type=photo.photo_type,
                url=photo.storage_url,
                filename=photo.filename,
                uploaded_at=photo.uploaded_at,
            )
            for photo in photos
        ],
    )


def get_by_code_or_id(db: Session, token: str) -> schemas.MissionDetail:
    token = (token or "").strip()
    # Ids are matched on their text form: "007" is not mission 7.
    criteria = [
        models.Mission.mission_code == token,
        cast(models.Mission.id, String) == token,
    ]

    mission = (
        db.query(models.Mission)
        .filter(or_(*criteria))
        .order_by(models.Mission.id.asc())
        .first()
    )
    if not mission:
        raise NotFoundError()
    return aggregate_mission(db, mission)


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


def get_inspection(db: Session, mission_id: int) -> models.MissionInspection:
    _get_mission(db, mission_id)
    inspection = (
        db.query(models.MissionInspection)
        .filter(models.MissionInspection.mission_id == mission_id)
        .first()
    )
    if not inspection:
        raise NotFoundError("No inspection recorded for this mission")
    return inspection


def submit_inspection(
    db: Session,
    mission_id: int,
    payload: schemas.InspectionSubmit,
) -> models.MissionInspection:
    """
    Create or fully replace the mission's inspection.

    The mission's observations and client_signature are overwritten with the
    inspection values in the same transaction.
    """
    if payload.keys_count < 0 or payload.optional_photos_count < 0:
        raise ValidationError("Counts must be zero or greater")

    insert = _insert_for(db)
    with _write_transaction(db):
        mission = _get_mission(db, mission_id)
        now = _utcnow()
        stmt = insert(models.MissionInspection).values(
            mission_id=mission.id,
            observations=payload.observations,
            signature=payload.signature,
            checklist=payload.checklist,
            keys_count=payload.keys_count,
            optional_photos_count=payload.optional_photos_count,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["mission_id"],
            set_={
                "observations": stmt.excluded.observations,
                "signature": stmt.excluded.signature,
                "checklist": stmt.excluded.checklist,
                "keys_count": stmt.excluded.keys_count,
                "optional_photos_count": stmt.excluded.optional_photos_count,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        db.execute(stmt)

        mission.observations = payload.observations
        mission.client_signature = payload.signature
        mission.updated_at = now

    logger.info("Inspection submitted", extra={"mission_id": mission_id})
    return (
        db.query(models.MissionInspection)
        .populate_existing()
        .filter(models.MissionInspection.mission_id == mission_id)
        .one()
    )


# ---------------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------------


def _stored_filename(original_name: Optional[str]) -> str:
    name = PurePath(original_name or "photo").name or "photo"
    return f"{int(time.time() * 1000)}_{name}"


def upload_photo(
    db: Session,
    storage: BlobStorage,
    *,
    mission_id: int,
    photo_type: Optional[str],
    upload: Optional[schemas.PhotoUpload],
) -> Tuple[models.MissionPhoto, str]:
    """
    Store a photo and upsert its row keyed by (mission_id, photo_type).

    Uploading the same type again replaces filename, size, MIME type,
    locator, timestamp and capture details of the existing row.
    """
    if upload is None or not upload.content:
        raise ValidationError("No file uploaded")
    mime_type = (upload.content_type or "").lower()
    if mime_type not in ALLOWED_PHOTO_MIME_TYPES:
        raise ValidationError("File type not allowed. Use JPEG, PNG or WEBP")
    photo_type = (photo_type or "").strip()
    if not photo_type:
        raise ValidationError("Photo type is required")
    max_bytes = photo_max_bytes()
    if max_bytes and len(upload.content) > max_bytes:
        raise PayloadTooLargeError(f"File too large (max {max_bytes // (1024 * 1024)}MB)")

    _get_mission(db, mission_id)

    filename = _stored_filename(upload.filename)
    url = storage.store(
        upload.content,
        key=f"{mission_id}/{filename}",
        metadata={
            "mission_id": mission_id,
            "photo_type": photo_type,
            "content_type": mime_type,
            "original_name": upload.filename,
        },
    )

    insert = _insert_for(db)
    with _write_transaction(db):
        stmt = insert(models.MissionPhoto).values(
            mission_id=mission_id,
            photo_type=photo_type,
            filename=filename,
            original_name=upload.filename,
            file_size=len(upload.content),
            mime_type=mime_type,
            storage_url=url,
            uploaded_at=_utcnow(),
            gps_latitude=upload.gps_latitude,
            gps_longitude=upload.gps_longitude,
            device_info=upload.device_info,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["mission_id", "photo_type"],
            set_={
                "filename": stmt.excluded.filename,
                "original_name": stmt.excluded.original_name,
                "file_size": stmt.excluded.file_size,
                "mime_type": stmt.excluded.mime_type,
                "storage_url": stmt.excluded.storage_url,
                "uploaded_at": stmt.excluded.uploaded_at,
                "gps_latitude": stmt.excluded.gps_latitude,
                "gps_longitude": stmt.excluded.gps_longitude,
                "device_info": stmt.excluded.device_info,
            },
        )
        db.execute(stmt)

    photo = (
        db.query(models.MissionPhoto)
        .populate_existing()
        .filter(
            models.MissionPhoto.mission_id == mission_id,
            models.MissionPhoto.photo_type == photo_type,
        )
        .one()
    )
    logger.info(
        "Mission photo stored",
        extra={"mission_id": mission_id, "photo_type": photo_type, "photo_id": photo.id},
    )
    return photo, url
