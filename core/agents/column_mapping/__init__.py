"""Column mapping agent."""

from core.agents.column_mapping.agent import ColumnMappingAgent
from core.agents.column_mapping.arbitration import arbitrate
from core.agents.column_mapping.constants import UNMAPPED
from core.agents.column_mapping.fallback import (
    DSPyCompletionClient,
    FallbackClassifier,
    TextCompletionClient,
    build_mapping_prompt,
    parse_model_response,
)
from core.agents.column_mapping.field_catalog import (
    DEFAULT_FIELD_CATALOG,
    FieldCatalog,
    FieldDefinition,
    list_fields,
)
from core.agents.column_mapping.model import Candidate, ColumnSample, MappingSuggestion

__all__ = [
    "Candidate",
    "ColumnMappingAgent",
    "ColumnSample",
    "DEFAULT_FIELD_CATALOG",
    "DSPyCompletionClient",
    "FallbackClassifier",
    "FieldCatalog",
    "FieldDefinition",
    "MappingSuggestion",
    "TextCompletionClient",
    "UNMAPPED",
    "arbitrate",
    "build_mapping_prompt",
    "list_fields",
    "parse_model_response",
]
