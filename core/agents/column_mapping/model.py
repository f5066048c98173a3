"""Data models for the column mapping agent."""

from dataclasses import dataclass, field
from typing import List

from core.agents.column_mapping.constants import UNMAPPED


@dataclass(frozen=True)
class ColumnSample:
    """One source column: its header and the first non-empty cell values."""

    header: str
    values: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Candidate:
    """A (field, confidence, reasoning) proposal from a single classifier."""

    field: str
    confidence: float
    reasoning: str
    source: str = ""


@dataclass
class MappingSuggestion:
    """Suggested mapping for one source column, handed to the reviewer."""

    original_column: str
    suggested_field: str
    confidence: float
    reasoning: str

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "original_column": self.original_column,
            "suggested_field": self.suggested_field,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }

    @classmethod
    def from_candidate(cls, header: str, candidate: Candidate) -> "MappingSuggestion":
        return cls(
            original_column=header,
            suggested_field=candidate.field,
            confidence=round(min(1.0, max(0.0, candidate.confidence)), 4),
            reasoning=candidate.reasoning,
        )

    @classmethod
    def unmapped(cls, header: str) -> "MappingSuggestion":
        return cls(
            original_column=header,
            suggested_field=UNMAPPED,
            confidence=0.0,
            reasoning=f'No clear match found for column "{header}"',
        )
