# backend/fiableauto/apps/missions/models.py

"""
Mission module ORM models.

- Mission: one vehicle-transport job tracked from intake to completion.
- MissionInspection: checklist / signature / observations record, at most one
  per mission, replaced wholesale on every submission.
- MissionPhoto: uploaded photo metadata, at most one per (mission, photo type);
  a re-upload of the same type overwrites the row.

Missions own their inspection and photos: deleting a mission cascades to both,
at the database level (ON DELETE CASCADE) and in the ORM relationships.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ...database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enumerations – kept as strings to match API and DB values
# ---------------------------------------------------------------------------


class MissionStatus(str, Enum):
    """Lifecycle state of a mission."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    PHOTOS_TAKEN = "photos_taken"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MissionUrgency(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


DEFAULT_MISSION_TYPE = "inspection"


# ---------------------------------------------------------------------------
# Mission
# ---------------------------------------------------------------------------


class Mission(Base):
    """
    A vehicle-transport mission.

    mission_code is the human readable identifier (FA-YYYYMMDD-NNN) handed
    to clients; it is unique and never reassigned.
    """

    __tablename__ = "missions"

    id: int = Column(Integer, primary_key=True, index=True)
    mission_code: str = Column(String(20), nullable=False, unique=True, index=True)

    # Vehicle
    vehicle_brand: str = Column(String(100), nullable=False)
    vehicle_model: str = Column(String(100), nullable=False)
    vehicle_year: int | None = Column(Integer, nullable=True)
    license_plate: str | None = Column(String(20), nullable=True)
    vin: str | None = Column(String(50), nullable=True)
    mileage: int | None = Column(Integer, nullable=True)
    fuel_level: str | None = Column(String(20), nullable=True)
    interior_condition: str | None = Column(String(50), nullable=True)
    exterior_condition: str | None = Column(String(50), nullable=True)

    # Logistics
    pickup_location: str = Column(Text, nullable=False)
    delivery_location: str = Column(Text, nullable=False)
    pickup_date: date | None = Column(Date, nullable=True)
    delivery_date: date | None = Column(Date, nullable=True)
    urgency: str = Column(String(20), nullable=False, default=MissionUrgency.NORMAL.value)
    mission_type: str = Column(String(50), nullable=False, default=DEFAULT_MISSION_TYPE)

    # Client / provider contacts
    client_name: str = Column(String(255), nullable=False)
    client_email: str = Column(String(255), nullable=False)
    client_phone: str | None = Column(String(20), nullable=True)
    client_company: str | None = Column(String(255), nullable=True)
    provider_name: str | None = Column(String(255), nullable=True)
    provider_email: str | None = Column(String(255), nullable=True)
    provider_phone: str | None = Column(String(20), nullable=True)

    # Workflow
    status: str = Column(
        String(50),
        nullable=False,
        default=MissionStatus.PENDING.value,
        index=True,
    )
    created_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )
    started_at: datetime | None = Column(DateTime(timezone=True), nullable=True)
    completed_at: datetime | None = Column(DateTime(timezone=True), nullable=True)

    observations: str | None = Column(Text, nullable=True)
    internal_notes: str | None = Column(Text, nullable=True)
    client_signature: str | None = Column(Text, nullable=True)
    signature_timestamp: datetime | None = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    inspection = relationship(
        "MissionInspection",
        back_populates="mission",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    photos = relationship(
        "MissionPhoto",
        back_populates="mission",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MissionPhoto.uploaded_at",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'assigned', 'in_progress', 'photos_taken', 'completed', 'cancelled')",
            name="missions_status_valid",
        ),
        Index("idx_missions_brand_model", "vehicle_brand", "vehicle_model"),
    )

    def __repr__(self) -> str:
        return f"<Mission id={self.id} code={self.mission_code} status={self.status}>"


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


class MissionInspection(Base):
    """Inspection checklist and client sign-off for a mission (1:1)."""

    __tablename__ = "mission_inspections"

    id: int = Column(Integer, primary_key=True, index=True)
    mission_id: int = Column(
        Integer,
        ForeignKey("missions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    observations: str | None = Column(Text, nullable=True)
    signature: str | None = Column(Text, nullable=True)
    # check item name -> bool / free-form result
    checklist: dict | None = Column(JSON, nullable=True)
    keys_count: int = Column(Integer, nullable=False, default=0)
    optional_photos_count: int = Column(Integer, nullable=False, default=0)

    created_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

    mission = relationship("Mission", back_populates="inspection")

    __table_args__ = (
        CheckConstraint("keys_count >= 0", name="mission_inspections_keys_non_negative"),
        CheckConstraint(
            "optional_photos_count >= 0",
            name="mission_inspections_optional_photos_non_negative",
        ),
    )


# ---------------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------------


class MissionPhoto(Base):
    """Metadata for one uploaded photo; the bytes live in blob storage."""

    __tablename__ = "mission_photos"

    id: int = Column(Integer, primary_key=True, index=True)
    mission_id: int = Column(
        Integer,
        ForeignKey("missions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    photo_type: str = Column(String(50), nullable=False)  # front, rear, interior, ...

    filename: str = Column(String(255), nullable=False)
    original_name: str | None = Column(String(255), nullable=True)
    file_size: int | None = Column(Integer, nullable=True)
    mime_type: str | None = Column(String(100), nullable=True)
    storage_url: str = Column(Text, nullable=False)
    uploaded_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    gps_latitude: Decimal | None = Column(Numeric(10, 8), nullable=True)
    gps_longitude: Decimal | None = Column(Numeric(11, 8), nullable=True)
    device_info: str | None = Column(Text, nullable=True)

    mission = relationship("Mission", back_populates="photos")

    __table_args__ = (
        UniqueConstraint("mission_id", "photo_type", name="uq_mission_photos_mission_type"),
    )
