"""Pydantic request models for the column mapping API."""

import re
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MapColumnsRequest(BaseModel):
    """Request model for column mapping suggestions."""

    model_config = ConfigDict(populate_by_name=True)

    headers: List[str] = Field(..., description="Column names in file order")
    sample_rows: List[List[Any]] = Field(
        default_factory=list,
        alias="sampleRows",
        description="First rows of the dataset, one list of cell values per row",
    )
    workspace_id: str = Field(..., alias="workspaceId", description="Workspace the dataset belongs to")

    @field_validator("workspace_id")
    @classmethod
    def validate_workspace_id(cls, v: str) -> str:
        """Validate workspace ID format."""
        if not re.match(r"^[a-zA-Z0-9_.-]+$", v):
            raise ValueError("workspace_id can only contain alphanumeric characters, underscore, hyphen, and dot")
        return v
