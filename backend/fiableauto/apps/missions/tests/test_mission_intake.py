from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from fiableauto.apps.missions import schemas, services
from fiableauto.errors import ValidationError


def test_create_applies_defaults(db_session):
    payload = schemas.MissionCreate(
        vehicleBrand="Citroën",
        vehicleModel="C3",
        vehicleYear=2019,
        pickupLocation="Bordeaux",
        deliveryLocation="Toulouse",
        clientName="Claire Petit",
        clientEmail="claire@example.com",
    )

    mission = services.create_mission(db_session, payload, creation_date=date(2024, 5, 2))

    assert mission.id is not None
    assert mission.mission_code == "FA-20240502-001"
    assert mission.status == "pending"
    assert mission.urgency == "normal"
    assert mission.mission_type == "inspection"
    assert mission.vehicle_year == 2019


def test_create_keeps_explicit_urgency_and_type(db_session):
    payload = schemas.MissionCreate(
        vehicle_brand="Tesla",
        vehicle_model="Model 3",
        pickup_location="Nice",
        delivery_location="Lyon",
        client_name="Ali Ben",
        client_email="ali@example.com",
        urgency="urgent",
        mission_type="delivery",
    )

    mission = services.create_mission(db_session, payload)

    assert mission.urgency == "urgent"
    assert mission.mission_type == "delivery"


def test_missing_fields_are_all_reported(db_session):
    payload = schemas.MissionCreate(vehicleBrand="Renault", clientName="  ")

    with pytest.raises(ValidationError) as excinfo:
        services.create_mission(db_session, payload)

    message = excinfo.value.message
    for label in ("vehicleModel", "pickupLocation", "deliveryLocation", "clientName", "clientEmail"):
        assert label in message
    assert "vehicleBrand" not in message
    assert services.list_missions(db_session) == []


def test_list_is_newest_first(db_session, make_mission):
    older = make_mission(created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    newer = make_mission(created_at=datetime(2024, 2, 1, tzinfo=timezone.utc))

    assert [m.id for m in services.list_missions(db_session)] == [newer.id, older.id]


def test_unknown_urgency_is_rejected(db_session):
    payload = schemas.MissionCreate(
        vehicleBrand="Renault",
        vehicleModel="Kangoo",
        pickupLocation="Caen",
        deliveryLocation="Rouen",
        clientName="Inès Roux",
        clientEmail="ines@example.com",
        urgency="asap",
    )

    with pytest.raises(ValidationError) as excinfo:
        services.create_mission(db_session, payload)

    assert "urgency" in excinfo.value.message
    assert services.list_missions(db_session) == []
