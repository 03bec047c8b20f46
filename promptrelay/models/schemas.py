"""Pydantic schemas for response validation."""

from pydantic import BaseModel, Field


class UpdateSuccessResponse(BaseModel):
    """Manual update succeeded."""

    success: bool = True
    message: str
    model_used: str = Field(description="Key of the tier that produced the content")
    new_content: str


class UpdateFailureResponse(BaseModel):
    """Manual update failed."""

    success: bool = False
    message: str
