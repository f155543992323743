from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fiableauto.apps.missions import models


@pytest.fixture()
def make_mission(db_session):
    """Insert a mission row directly, bypassing code generation."""
    counter = {"n": 0}

    def _make(**overrides) -> models.Mission:
        counter["n"] += 1
        values = {
            "mission_code": f"FA-20240301-{counter['n']:03d}",
            "vehicle_brand": "Renault",
            "vehicle_model": "Clio",
            "pickup_location": "12 rue de Lyon, Paris",
            "delivery_location": "4 quai du Port, Marseille",
            "client_name": "Jeanne Martin",
            "client_email": "jeanne.martin@example.com",
            "status": models.MissionStatus.PENDING.value,
            "created_at": datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc),
        }
        values.update(overrides)
        mission = models.Mission(**values)
        db_session.add(mission)
        db_session.commit()
        return mission

    return _make
