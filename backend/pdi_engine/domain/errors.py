# backend/pdi_engine/domain/errors.py
from __future__ import annotations

from typing import Optional


class PDIError(Exception):
    """Base class for every recoverable engine error."""

    code = "pdi_error"
    http_status = 400

    def __init__(self, message: str, *, entity_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id

    def as_dict(self) -> dict:
        return {"error": self.code, "detail": self.message, "entity_id": self.entity_id}


class NotFound(PDIError):
    code = "not_found"
    http_status = 404


class TemplateNotFound(NotFound):
    code = "template_not_found"

    def __init__(self, template_id: str) -> None:
        super().__init__(f"template not found: {template_id}", entity_id=template_id)


class InspectionNotFound(NotFound):
    code = "inspection_not_found"

    def __init__(self, inspection_id: str) -> None:
        super().__init__(f"inspection not found: {inspection_id}", entity_id=inspection_id)


class ItemNotFound(NotFound):
    code = "item_not_found"

    def __init__(self, item_id: str) -> None:
        super().__init__(f"inspection item not found: {item_id}", entity_id=item_id)


class DefectNotFound(NotFound):
    code = "defect_not_found"

    def __init__(self, defect_id: str) -> None:
        super().__init__(f"defect not found: {defect_id}", entity_id=defect_id)


class InvalidTransition(PDIError):
    """A status-guarded operation was attempted out of order."""

    code = "invalid_transition"
    http_status = 409


class ValidationError(PDIError):
    code = "validation_error"
    http_status = 400
