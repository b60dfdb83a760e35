from __future__ import annotations

from pydantic import BaseModel, Field


class CatalogEntry(BaseModel):
    """One row of the gateway's raw model catalog."""

    id: str
    name: str | None = None
    category: str | None = Field(default=None, description="e.g. language/embedding/image")


class ModelDescriptor(BaseModel):
    id: str = Field(..., description="Provider-qualified model id")
    name: str
