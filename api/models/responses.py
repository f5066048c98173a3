"""Pydantic response models for the column mapping API."""

from typing import List

from pydantic import BaseModel, Field


class MappingSuggestionModel(BaseModel):
    """Suggested mapping for one source column."""

    original_column: str
    suggested_field: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str


class MapColumnsResponse(BaseModel):
    """Response model for column mapping suggestions."""

    success: bool = True
    suggestions: List[MappingSuggestionModel]


class FieldInfo(BaseModel):
    """Canonical field available as a mapping target."""

    name: str
    description: str
    keywords: List[str]
    examples: List[str]
    content_hints: List[str]
