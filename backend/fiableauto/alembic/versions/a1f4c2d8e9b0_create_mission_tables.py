"""create missions, mission_inspections and mission_photos

Revision ID: a1f4c2d8e9b0
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1f4c2d8e9b0"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "missions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("mission_code", sa.String(length=20), nullable=False),
        sa.Column("vehicle_brand", sa.String(length=100), nullable=False),
        sa.Column("vehicle_model", sa.String(length=100), nullable=False),
        sa.Column("vehicle_year", sa.Integer(), nullable=True),
        sa.Column("license_plate", sa.String(length=20), nullable=True),
        sa.Column("vin", sa.String(length=50), nullable=True),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("fuel_level", sa.String(length=20), nullable=True),
        sa.Column("interior_condition", sa.String(length=50), nullable=True),
        sa.Column("exterior_condition", sa.String(length=50), nullable=True),
        sa.Column("pickup_location", sa.Text(), nullable=False),
        sa.Column("delivery_location", sa.Text(), nullable=False),
        sa.Column("pickup_date", sa.Date(), nullable=True),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("urgency", sa.String(length=20), nullable=False, server_default="normal"),
        sa.Column("mission_type", sa.String(length=50), nullable=False, server_default="inspection"),
        sa.Column("client_name", sa.String(length=255), nullable=False),
        sa.Column("client_email", sa.String(length=255), nullable=False),
        sa.Column("client_phone", sa.String(length=20), nullable=True),
        sa.Column("client_company", sa.String(length=255), nullable=True),
        sa.Column("provider_name", sa.String(length=255), nullable=True),
        sa.Column("provider_email", sa.String(length=255), nullable=True),
        sa.Column("provider_phone", sa.String(length=20), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("observations", sa.Text(), nullable=True),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        sa.Column("client_signature", sa.Text(), nullable=True),
        sa.Column("signature_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'assigned', 'in_progress', 'photos_taken', 'completed', 'cancelled')",
            name="missions_status_valid",
        ),
    )
    op.create_index("ix_missions_id", "missions", ["id"], unique=False)
    op.create_index("ix_missions_mission_code", "missions", ["mission_code"], unique=True)
    op.create_index("ix_missions_status", "missions", ["status"], unique=False)
    op.create_index("ix_missions_created_at", "missions", ["created_at"], unique=False)
    op.create_index("idx_missions_brand_model", "missions", ["vehicle_brand", "vehicle_model"], unique=False)

    op.create_table(
        "mission_inspections",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "mission_id",
            sa.Integer(),
            sa.ForeignKey("missions.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("observations", sa.Text(), nullable=True),
        sa.Column("signature", sa.Text(), nullable=True),
        sa.Column("checklist", sa.JSON(), nullable=True),
        sa.Column("keys_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("optional_photos_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("keys_count >= 0", name="mission_inspections_keys_non_negative"),
        sa.CheckConstraint(
            "optional_photos_count >= 0",
            name="mission_inspections_optional_photos_non_negative",
        ),
    )
    op.create_index("ix_mission_inspections_id", "mission_inspections", ["id"], unique=False)

    op.create_table(
        "mission_photos",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "mission_id",
            sa.Integer(),
            sa.ForeignKey("missions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("photo_type", sa.String(length=50), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("mime_type", sa.String(length=100), nullable=True),
        sa.Column("storage_url", sa.Text(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("gps_latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("gps_longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("device_info", sa.Text(), nullable=True),
        sa.UniqueConstraint("mission_id", "photo_type", name="uq_mission_photos_mission_type"),
    )
    op.create_index("ix_mission_photos_id", "mission_photos", ["id"], unique=False)
    op.create_index("ix_mission_photos_mission_id", "mission_photos", ["mission_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_mission_photos_mission_id", table_name="mission_photos")
    op.drop_index("ix_mission_photos_id", table_name="mission_photos")
    op.drop_table("mission_photos")
    op.drop_index("ix_mission_inspections_id", table_name="mission_inspections")
    op.drop_table("mission_inspections")
    op.drop_index("idx_missions_brand_model", table_name="missions")
    op.drop_index("ix_missions_created_at", table_name="missions")
    op.drop_index("ix_missions_status", table_name="missions")
    op.drop_index("ix_missions_mission_code", table_name="missions")
    op.drop_index("ix_missions_id", table_name="missions")
    op.drop_table("missions")
