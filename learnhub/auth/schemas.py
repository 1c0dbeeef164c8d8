"""Pydantic schemas for the authenticated principal."""

from uuid import UUID

from pydantic import BaseModel, Field


class StudentPrincipal(BaseModel):
    """Student taken from a verified access token."""

    id: UUID = Field(..., description="Student UUID (token sub)")
