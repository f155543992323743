# backend/fiableauto/errors.py
"""
Error taxonomy shared by services and the HTTP layer.

Services raise these; main.py turns them into the JSON envelope
``{"success": false, "message": ...}`` with the matching status code.
Messages are safe to show to API callers.
"""

from __future__ import annotations

from typing import Optional


class MissionError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MissionError):
    status_code = 400
    default_message = "Invalid request"


class PayloadTooLargeError(ValidationError):
    status_code = 413
    default_message = "File too large"


class NotFoundError(MissionError):
    status_code = 404
    default_message = "Mission not found"


class ConflictError(MissionError):
    status_code = 409
    default_message = "Conflicting mission record"


class StoreUnavailableError(MissionError):
    status_code = 500
    default_message = "Mission store unavailable"
