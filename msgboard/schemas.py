"""
Pydantic schemas for request/response validation.

This module contains:
- Message and page models handed to the rendering layer
- Write outcome models for submit and delete
- Health and error response models
"""

from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Listing Models
# =============================================================================

class MessageResponse(BaseModel):
    """A stored message as exposed to the rendering layer."""
    id: int = Field(..., description="Storage-assigned message identifier")
    content: str = Field(..., description="Raw Markdown source, unchanged")
    created_at: str = Field(..., description="Server time ISO-8601 UTC")

    model_config = {
        "from_attributes": True,  # Allow creating from ORM objects
    }


class PageResult(BaseModel):
    """
    One page of the canonically ordered message list.
    
    Contains:
    - items: messages on this page, newest first
    - current_page: the clamped, 1-based page actually served
    - total_pages: number of pages available (at least 1)
    - total_count: messages matching the search term
    - search_term: the trimmed search term, empty when not searching
    """
    items: list[MessageResponse] = Field(
        default_factory=list,
        description="Messages on this page"
    )
    current_page: int = Field(..., ge=1, description="Page served")
    total_pages: int = Field(..., ge=1, description="Pages available")
    total_count: int = Field(..., ge=0, description="Messages matching the search")
    search_term: str = Field(default="", description="Normalized search term")


# =============================================================================
# Write Outcome Models
# =============================================================================

class SubmitResult(BaseModel):
    """Outcome of a message submission."""
    created: bool = Field(..., description="Whether a row was inserted")
    id: Optional[int] = Field(None, description="Id of the new message")
    evicted: int = Field(0, ge=0, description="Oldest messages removed by retention")


class DeleteResult(BaseModel):
    """Outcome of a delete request. Unknown ids are a no-op, not an error."""
    id: Optional[int] = Field(None, description="Parsed id, null if unparseable")
    deleted: bool = Field(..., description="Whether a row was removed")


# =============================================================================
# Service Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Response model for error responses."""
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Error description")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
