# backend/fiableauto/apps/missions/router.py
"""
Missions API.

- Missions: intake, listing, search, single fetch (aggregated view).
- Workflow: status transitions, observations, client signature.
- Inspection: checklist / signature submission (upsert per mission).
- Uploads: one photo per (mission, photo type), replaced on re-upload.

Every endpoint answers with the envelope {success, data, message}; failures
are rendered by the exception handlers registered in main.py.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from ...database import get_db, get_read_db
from . import schemas, services, stats
from .storage import BlobStorage, get_blob_storage

router = APIRouter(prefix="/api/missions", tags=["missions"])
uploads_router = APIRouter(prefix="/api/uploads", tags=["uploads"])


def _ok(data=None, message: Optional[str] = None) -> schemas.ApiResponse:
    return schemas.ApiResponse(success=True, data=data, message=message)


def _mission_data(mission) -> dict:
    return schemas.MissionRead.model_validate(mission).model_dump(mode="json")


# ---------------------------------------------------------------------------
# Missions
# ---------------------------------------------------------------------------


@router.get("", response_model=schemas.ApiResponse)
def list_missions(db: Session = Depends(get_read_db)):
    """All missions, newest first. Not paginated."""
    missions = services.list_missions(db)
    return _ok([_mission_data(m) for m in missions])


@router.get("/search", response_model=schemas.ApiResponse)
def search_missions(
    q: Optional[str] = Query(None, description="Code, client, brand or model contains"),
    mission_status: Optional[str] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    vehicle_brand: Optional[str] = Query(None, alias="vehicleBrand"),
    db: Session = Depends(get_read_db),
):
    filters = schemas.SearchFilters(
        q=q,
        status=mission_status,
        date_from=date_from,
        date_to=date_to,
        vehicle_brand=vehicle_brand,
    )
    missions = stats.search_missions(db, filters)
    return _ok([_mission_data(m) for m in missions])


@router.post(
    "",
    response_model=schemas.ApiResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_mission(
    payload: schemas.MissionCreate,
    db: Session = Depends(get_db),
):
    mission = services.create_mission(db, payload)
    return _ok(_mission_data(mission), "Mission created")


@router.get("/{code_or_id}", response_model=schemas.ApiResponse)
def get_mission(code_or_id: str, db: Session = Depends(get_read_db)):
    """Fetch by mission code (FA-YYYYMMDD-NNN) or numeric id."""
    detail = services.get_by_code_or_id(db, code_or_id)
    return _ok(detail.model_dump(mode="json"))


@router.put("/{mission_id}/status", response_model=schemas.ApiResponse)
def update_status(
    mission_id: int,
    payload: schemas.StatusUpdate,
    db: Session = Depends(get_db),
):
    mission = services.set_status(db, mission_id, payload.status)
    return _ok(_mission_data(mission), "Status updated")


@router.put("/{mission_id}/observations", response_model=schemas.ApiResponse)
def update_observations(
    mission_id: int,
    payload: schemas.ObservationsUpdate,
    db: Session = Depends(get_db),
):
    mission = services.update_observations(db, mission_id, payload.observations)
    return _ok(_mission_data(mission), "Observations updated")


@router.post("/{mission_id}/signature", response_model=schemas.ApiResponse)
def add_signature(
    mission_id: int,
    payload: schemas.SignaturePayload,
    db: Session = Depends(get_db),
):
    mission = services.set_signature(db, mission_id, payload.signature)
    return _ok(_mission_data(mission), "Signature saved")


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


@router.post("/{mission_id}/inspection", response_model=schemas.ApiResponse)
def submit_inspection(
    mission_id: int,
    payload: schemas.InspectionSubmit,
    db: Session = Depends(get_db),
):
    inspection = services.submit_inspection(db, mission_id, payload)
    data = schemas.InspectionRead.model_validate(inspection).model_dump(mode="json")
    return _ok(data, "Inspection saved")


@router.get("/{mission_id}/inspection", response_model=schemas.ApiResponse)
def get_inspection(mission_id: int, db: Session = Depends(get_read_db)):
    inspection = services.get_inspection(db, mission_id)
    return _ok(schemas.InspectionRead.model_validate(inspection).model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


@uploads_router.post("/photos/{mission_id}", response_model=schemas.ApiResponse)
def upload_photo(
    mission_id: int,
    photo: Optional[UploadFile] = File(None),
    photo_type: Optional[str] = Form(None, alias="photoType"),
    gps_latitude: Optional[Decimal] = Form(None, alias="gpsLatitude"),
    gps_longitude: Optional[Decimal] = Form(None, alias="gpsLongitude"),
    device_info: Optional[str] = Form(None, alias="deviceInfo"),
    db: Session = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
):
    upload = None
    if photo is not None:
        max_bytes = services.photo_max_bytes()
        # One byte past the limit is enough to reject oversize files.
        content = photo.file.read(max_bytes + 1) if max_bytes else photo.file.read()
        upload = schemas.PhotoUpload(
            filename=photo.filename,
            content_type=photo.content_type,
            content=content,
            gps_latitude=gps_latitude,
            gps_longitude=gps_longitude,
            device_info=device_info,
        )

    stored, url = services.upload_photo(
        db,
        storage,
        mission_id=mission_id,
        photo_type=photo_type,
        upload=upload,
    )
    data = schemas.PhotoUploadResult(
        photo=schemas.PhotoRead.model_validate(stored),
        url=url,
    )
    return _ok(data.model_dump(mode="json"), "Photo uploaded")
