# backend/fiableauto/__init__.py
"""
FiableAuto mission backend.

The ORM models live in fiableauto/apps/missions/models.py; importing them
here registers every table on Base.metadata for Alembic and create_all().
"""

from .apps.missions import models as mission_models  # missions / inspections / photos

__all__ = ["mission_models"]
