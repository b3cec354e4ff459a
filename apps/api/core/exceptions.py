"""
Custom exception classes and error handling.

Every error the API raises on purpose is an APIException: an HTTP status,
a human-readable detail and a machine-readable error_code. main.py renders
them with to_body().
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any, Sequence


class APIException(HTTPException):
    """Base API exception with consistent structure."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or "API_ERROR"

    def to_body(self) -> Dict[str, Any]:
        return {"detail": self.detail, "error_code": self.error_code}


class NotFoundError(APIException):
    """User, plan or exercise pool not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found: {identifier}",
            error_code="NOT_FOUND"
        )


class ValidationError(APIException):
    """Request rejected by a server-side limit (422)."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )


class ConflictError(APIException):
    """Plan is not in a status that allows the requested transition."""

    def __init__(self, detail: str, plan_id: Optional[str] = None):
        self.plan_id = plan_id
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


class InsufficientEquipment(APIException):
    """Requested training style cannot be built from the user's equipment."""

    def __init__(self, training_style: str, available_equipment: Sequence[str], detail: Optional[str] = None):
        self.training_style = training_style
        self.available_equipment = list(available_equipment)
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail or f"Not enough equipment for {training_style} training",
            error_code="INSUFFICIENT_EQUIPMENT"
        )

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["training_style"] = self.training_style
        body["available_equipment"] = self.available_equipment
        return body


class PersistenceError(APIException):
    """A write unit failed and was rolled back."""

    def __init__(self, detail: str = "Failed to save workout plan"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="PERSISTENCE_FAILURE"
        )
