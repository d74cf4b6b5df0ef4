"""
Strict Base Model for API Request/Response Validation

Base classes with strict validation settings for the API contract.

Usage:
    # For request bodies (strictest validation)
    class GradeRequest(StrictRequest):
        question: str
        user_answer: str

    # For response bodies (allows extra fields from DB rows)
    class DayBucket(StrictResponse):
        date: date
        count: int

Architecture:
    API Request → StrictRequest (extra="forbid") → Route Handler
    DB Row → StrictResponse (extra="ignore") → API Response
"""

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """
    Base model for API request bodies with strict validation.

    Rejects any fields not explicitly declared in the model.

    Features:
        - extra="forbid": Unknown fields raise 422 Unprocessable Entity
        - validate_default=True: Validates default values
        - str_strip_whitespace=True: Trims whitespace from strings
        - from_attributes=True: Allows ORM model conversion
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        from_attributes=True,
    )


class StrictResponse(BaseModel):
    """
    Base model for API response bodies and derived values.

    Still enforces type validation but ignores extra fields, so rows
    and stored metadata with additional keys load cleanly.
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )
