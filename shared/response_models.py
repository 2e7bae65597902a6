"""
Common API response models.
"""

from typing import Any

from pydantic import BaseModel, Field


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    condition: bool = Field(default=True, description="Whether the operation was successful")
    message: str = Field(default="Success", description="Human readable outcome")


class ErrorResponse(APIResponse):
    """Standard API error response."""

    condition: bool = Field(default=False, description="Always false for errors")
    message: str = Field(default="Internal Server Error", description="Error message")
    errors: list[dict[str, Any]] | None = Field(None, description="Validation details, if any")


class RateLimitResponse(BaseModel):
    """Body returned when a client exceeds the request budget."""

    message: str = "Too many requests, slow down!"
