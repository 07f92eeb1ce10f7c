"""Response envelope models.

Success bodies are wrapped as {"data": ...}; errors as {"error": {...}}.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Standard response envelope for single resources.

    Usage:
        @router.get("/booking/{id}")
        async def get_booking(id: UUID) -> DataResponse[BookingResponse]:
            view = await service.get_by_id(id)
            return DataResponse(data=BookingDetailResponse.from_view(view.booking, ...))
    """

    data: T


class ErrorDetail(BaseModel):
    """Error detail for response body.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        details: Optional list of field-level errors (for validation).
    """

    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    """Standard error response envelope."""

    error: ErrorDetail
