"""Column mapping API router."""

import logging
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_column_mapping_agent, require_caller_identity
from api.models.requests import MapColumnsRequest
from api.models.responses import FieldInfo, MapColumnsResponse, MappingSuggestionModel
from core.agents.column_mapping import ColumnMappingAgent
from core.auth import CallerIdentity
from core.utils.sanitize import sanitize_for_logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["column-mapping"])


@router.post("/ai/map-columns", response_model=MapColumnsResponse)
def map_columns(
    request: MapColumnsRequest,
    caller: CallerIdentity = Depends(require_caller_identity),
    agent: ColumnMappingAgent = Depends(get_column_mapping_agent),
):
    """
    Suggest canonical fields for the columns of an uploaded dataset.

    Args:
        request: Headers, sample rows and target workspace
        caller: Caller identity from the authentication gateway
        agent: Column mapping agent dependency

    Returns:
        One suggestion per header, in input order

    Raises:
        NotAuthenticatedError: Mapped to 401
        NotAuthorizedError: Mapped to 403
        InvalidMappingInputError: Mapped to 400
        ColumnMappingError: Mapped to 500
    """
    logger.info(
        f"Mapping {len(request.headers)} columns for workspace "
        f"{sanitize_for_logging(request.workspace_id)}"
    )
    suggestions = agent.map_columns(
        request.headers,
        request.sample_rows,
        caller,
        request.workspace_id,
    )
    return MapColumnsResponse(
        success=True,
        suggestions=[MappingSuggestionModel(**s.to_dict()) for s in suggestions],
    )


@router.get("/fields", response_model=List[FieldInfo])
def list_fields(agent: ColumnMappingAgent = Depends(get_column_mapping_agent)):
    """
    List the canonical fields columns can be mapped to.

    Returns:
        Catalog fields in declaration order
    """
    return [FieldInfo(**definition.to_dict()) for definition in agent.catalog]
