"""
Domain exceptions for the scheduling core.

Services raise these; the HTTP layer maps them to status codes in main.py.
"""
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    code = "scheduling_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "detail": self.message, **({"context": self.details} if self.details else {})}


class ValidationError(SchedulingError):
    """Malformed input: missing field, end before start, negative duration."""

    code = "validation_error"


class InvalidRangeError(ValidationError):
    """A time range is empty, reversed or crosses midnight."""

    code = "invalid_range"


class InvalidTransitionError(ValidationError):
    """The requested status change is not allowed from the current status."""

    code = "invalid_transition"

    def __init__(self, current_status: str, target_status: str):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Cannot move appointment from '{current_status}' to '{target_status}'",
            {"current_status": current_status, "target_status": target_status},
        )


class NotFoundError(SchedulingError):
    """A referenced studio, service, team member, location or appointment does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found", {"entity": entity, "id": str(entity_id)})


class ConflictError(SchedulingError):
    """The requested slot overlaps an occupied interval."""

    code = "slot_unavailable"


class SlotUnavailableError(ConflictError):
    """The requested slot is outside the open availability for that day."""

    code = "slot_unavailable"


class PersistenceError(SchedulingError):
    """The store is unavailable or a write failed."""

    code = "persistence_error"
