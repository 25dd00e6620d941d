"""Pydantic models for property records moving through import and export."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

PROPERTY_STATUSES = ("For Sale", "For Rent", "Sold", "Rented")


class Agent(BaseModel):
    id: int
    name: str


class PropertyRecord(BaseModel):
    """A persisted property as handed to the exporter."""

    id: Optional[int] = None
    title: str
    description: str
    price: float
    location: str
    address: str
    bedrooms: int
    bathrooms: float
    size: int
    status: str
    featured: bool = False
    agent_id: int
    images: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None


class ImportedProperty(BaseModel):
    """A row accepted by the CSV importer, coerced to its typed form."""

    title: str
    description: str
    price: float
    location: str
    address: str
    bedrooms: int
    bathrooms: float
    size: int
    status: str
    featured: bool
    agent_id: int


class InvalidRow(BaseModel):
    row: int
    data: Dict[str, Any]
    errors: List[str]


class ImportSummary(BaseModel):
    total: int = 0
    valid: int = 0
    invalid: int = 0


class ImportResult(BaseModel):
    success: bool = False
    valid_properties: List[ImportedProperty] = Field(default_factory=list)
    invalid_rows: List[InvalidRow] = Field(default_factory=list)
    summary: ImportSummary = Field(default_factory=ImportSummary)

    model_config = {"frozen": True}
