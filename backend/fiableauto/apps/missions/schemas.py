# backend/fiableauto/apps/missions/schemas.py
#
# Schemas for the missions module:
# - Mission*     : intake payload, flat row, aggregated read view.
# - Inspection*  : checklist / signature submission and read model.
# - Photo*       : upload input, stored row, summary inside the read view.
# - *Stats / SearchFilters : reporting.
# - ApiResponse  : the {success, data, message} envelope every endpoint returns.
#
# Request bodies accept the camelCase keys the web client sends
# (vehicleBrand, clientEmail, ...); snake_case is accepted too.

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class ApiResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Missions
# ---------------------------------------------------------------------------


class MissionCreate(_CamelModel):
    """
    Intake payload.

    Required fields (brand, model, pickup/delivery location, client name and
    email) are typed Optional on purpose: the service reports every missing
    one in a single validation message.
    """

    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[int] = None
    license_plate: Optional[str] = None
    vin: Optional[str] = None
    mileage: Optional[int] = None
    fuel_level: Optional[str] = None
    interior_condition: Optional[str] = None
    exterior_condition: Optional[str] = None

    pickup_location: Optional[str] = None
    delivery_location: Optional[str] = None
    pickup_date: Optional[date] = None
    delivery_date: Optional[date] = None
    urgency: Optional[str] = None
    mission_type: Optional[str] = None

    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_company: Optional[str] = None
    provider_name: Optional[str] = None
    provider_email: Optional[str] = None
    provider_phone: Optional[str] = None

    observations: Optional[str] = None
    internal_notes: Optional[str] = None


class MissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mission_code: str

    vehicle_brand: str
    vehicle_model: str
    vehicle_year: Optional[int] = None
    license_plate: Optional[str] = None
    vin: Optional[str] = None
    mileage: Optional[int] = None
    fuel_level: Optional[str] = None
    interior_condition: Optional[str] = None
    exterior_condition: Optional[str] = None

    pickup_location: str
    delivery_location: str
    pickup_date: Optional[date] = None
    delivery_date: Optional[date] = None
    urgency: str
    mission_type: str

    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    client_company: Optional[str] = None
    provider_name: Optional[str] = None
    provider_email: Optional[str] = None
    provider_phone: Optional[str] = None

    status: str
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    observations: Optional[str] = None
    internal_notes: Optional[str] = None
    client_signature: Optional[str] = None
    signature_timestamp: Optional[datetime] = None


class PhotoSummary(BaseModel):
    id: int
    type: str
    url: str
    filename: str
    uploaded_at: datetime


class MissionDetail(MissionRead):
    """Mission row + inspection figures + photos, as returned by a single fetch."""

    checklist: Optional[Dict[str, Any]] = None
    keys_count: Optional[int] = None
    optional_photos_count: Optional[int] = None
    photos: List[PhotoSummary] = Field(default_factory=list)


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class ObservationsUpdate(BaseModel):
    observations: Optional[str] = None


class SignaturePayload(BaseModel):
    signature: Optional[str] = None


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


class InspectionSubmit(_CamelModel):
    observations: Optional[str] = None
    signature: Optional[str] = None
    checklist: Dict[str, Any] = Field(default_factory=dict)
    keys_count: int = Field(0, ge=0)
    optional_photos_count: int = Field(0, ge=0)


class InspectionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mission_id: int
    observations: Optional[str] = None
    signature: Optional[str] = None
    checklist: Optional[Dict[str, Any]] = None
    keys_count: int
    optional_photos_count: int
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------------


class PhotoUpload(BaseModel):
    """A received file, detached from the transport (multipart) layer."""

    filename: Optional[str] = None
    content_type: Optional[str] = None
    content: bytes = b""
    gps_latitude: Optional[Decimal] = None
    gps_longitude: Optional[Decimal] = None
    device_info: Optional[str] = None


class PhotoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mission_id: int
    photo_type: str
    filename: str
    original_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    storage_url: str
    uploaded_at: datetime
    gps_latitude: Optional[Decimal] = None
    gps_longitude: Optional[Decimal] = None
    device_info: Optional[str] = None


class PhotoUploadResult(BaseModel):
    photo: PhotoRead
    url: str


# ---------------------------------------------------------------------------
# Stats / search
# ---------------------------------------------------------------------------


class StatusCounts(BaseModel):
    total: int = 0
    pending: int = 0
    assigned: int = 0
    in_progress: int = 0
    photos_taken: int = 0
    completed: int = 0
    cancelled: int = 0


class MonthlyCount(_CamelModel):
    month: str  # YYYY-MM
    count: int


class VehicleCount(_CamelModel):
    vehicle_brand: str
    vehicle_model: str
    count: int


class AdvancedStats(_CamelModel):
    basic: StatusCounts
    monthly: List[MonthlyCount] = Field(default_factory=list)
    top_vehicles: List[VehicleCount] = Field(default_factory=list)
    avg_processing_hours: float = 0.0


class SearchFilters(BaseModel):
    q: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    vehicle_brand: Optional[str] = None
