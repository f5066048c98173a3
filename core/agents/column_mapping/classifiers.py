"""Heuristic classifiers for column mapping.

Each classifier looks at one column (normalized header plus sample values)
and proposes candidates. The agent runs them in ``DEFAULT_CLASSIFIERS``
order; a classifier marked ``short_circuit`` ends the heuristic stage when it
fires, and a classifier with a ``gate`` only runs while the best candidate so
far is below that confidence.
"""

import math
import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from core.agents.column_mapping.arbitration import arbitrate
from core.agents.column_mapping.constants import (
    CANDIDATE_RETENTION_THRESHOLD,
    CONTENT_CONFIDENCE_CAP,
    DATE_CONTENT_BOOST,
    EXAMPLE_MATCH_CONFIDENCE,
    IDENTIFIER_CONFIDENCE,
    MIN_CONTAINED_HEADER_LENGTH,
    KEYWORD_MATCH_CONFIDENCE,
    NUMBER_CONTENT_BOOST,
    PATTERN_DETECTOR_GATE,
    SOURCE_CATALOG,
    SOURCE_OVERRIDE,
    SOURCE_PATTERN,
    UNMAPPED,
    WEEK_NUMBER_CONFIDENCE,
)
from core.agents.column_mapping.field_catalog import FieldCatalog, FieldDefinition
from core.agents.column_mapping.model import Candidate, ColumnSample

_SEPARATORS = re.compile(r"[\s.\-]+")

DATE_PATTERNS = (
    re.compile(r"\d{4}-\d{2}-\d{2}"),  # YYYY-MM-DD
    re.compile(r"\d{2}/\d{2}/\d{4}"),  # DD/MM/YYYY
    re.compile(r"^\d{8}$"),  # YYYYMMDD
)
WEEK_PATTERNS = (
    re.compile(r"^\d{6}$"),  # YYYYWW
    re.compile(r"^\d{4}W\d{2}$", re.IGNORECASE),
)
NUMERIC_ID_PATTERN = re.compile(r"^\d+$")


def normalize_header(header: str) -> str:
    """Lowercase, trim, and join words separated by whitespace, hyphens or dots with underscores."""
    return _SEPARATORS.sub("_", (header or "").strip().lower())


def non_empty(values: Sequence[Optional[str]]) -> List[str]:
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


# ==================== Content validators ====================
# Each validator receives the non-empty sample values and the confidence the
# name matcher produced, and returns (new confidence, note) or None.

ContentValidator = Callable[[List[str], float], Optional[Tuple[float, str]]]


def validate_email_content(values: List[str], current: float) -> Optional[Tuple[float, str]]:
    matches = sum(1 for v in values if "@" in v)
    if not matches:
        return None
    return max(current, CONTENT_CONFIDENCE_CAP), f"contains email addresses in {matches}/{len(values)} samples"


def _is_finite_number(value: str) -> bool:
    try:
        return math.isfinite(float(value))
    except ValueError:
        return False


def validate_number_content(values: List[str], current: float) -> Optional[Tuple[float, str]]:
    if not values or not all(_is_finite_number(v) for v in values):
        return None
    return min(CONTENT_CONFIDENCE_CAP, current + NUMBER_CONTENT_BOOST), "contains numeric values"


def validate_date_content(values: List[str], current: float) -> Optional[Tuple[float, str]]:
    if not any(pattern.search(v) for v in values for pattern in DATE_PATTERNS):
        return None
    return min(CONTENT_CONFIDENCE_CAP, current + DATE_CONTENT_BOOST), "contains date-like values"


CONTENT_VALIDATORS: Dict[str, ContentValidator] = {
    "email": validate_email_content,
    "number": validate_number_content,
    "date": validate_date_content,
}


# ==================== Classifiers ====================

class HeuristicClassifier(ABC):
    """Base class for rule-based column classifiers."""

    name: str = "heuristic"
    # Skip every later classifier when this one proposes something
    short_circuit: bool = False
    # Only run while the best earlier candidate is below this confidence
    gate: Optional[float] = None

    @abstractmethod
    def propose(self, column: ColumnSample, catalog: FieldCatalog) -> List[Candidate]:
        """
        Propose candidates for one column.

        Args:
            column: Column header and sample values
            catalog: Field catalog to match against

        Returns:
            Candidates in catalog declaration order (may be empty)
        """
        pass

    def classify(self, header: str, values: Sequence[str], catalog: FieldCatalog) -> Optional[Candidate]:
        """Best proposal of this classifier alone."""
        proposals = self.propose(ColumnSample(header=header, values=list(values)), catalog)
        return arbitrate(proposals, catalog, min_confidence=0.0)

    def should_run(self, best_so_far: Optional[Candidate]) -> bool:
        if self.gate is None or best_so_far is None:
            return True
        return best_so_far.confidence < self.gate


class LiteralOverrideClassifier(HeuristicClassifier):
    """Exact header matches for abbreviations that generic matching gets wrong."""

    name = SOURCE_OVERRIDE
    short_circuit = True

    DEFAULT_RULES: Dict[str, Tuple[str, float]] = {
        "cli_name": ("customer_name", 0.90),
        "client_name": ("customer_name", 0.90),
        "cust_name": ("customer_name", 0.90),
        "app_name": ("feature_usage", 0.85),
        "application_name": ("feature_usage", 0.85),
    }

    def __init__(self, rules: Optional[Dict[str, Tuple[str, float]]] = None):
        self.rules = dict(self.DEFAULT_RULES if rules is None else rules)

    def propose(self, column: ColumnSample, catalog: FieldCatalog) -> List[Candidate]:
        header = normalize_header(column.header)
        rule = self.rules.get(header)
        if rule is None:
            return []
        field_name, confidence = rule
        if field_name != UNMAPPED and field_name not in catalog:
            return []
        return [
            Candidate(
                field=field_name,
                confidence=confidence,
                reasoning=f'Column name "{column.header}" is a known alias of "{field_name}"',
                source=self.name,
            )
        ]


class CatalogFieldClassifier(HeuristicClassifier):
    """Name/keyword matching against the catalog, refined by sample content."""

    name = SOURCE_CATALOG

    def __init__(self, validators: Optional[Dict[str, ContentValidator]] = None):
        self.validators = dict(CONTENT_VALIDATORS if validators is None else validators)

    def propose(self, column: ColumnSample, catalog: FieldCatalog) -> List[Candidate]:
        header = normalize_header(column.header)
        if not header:
            return []

        values = non_empty(column.values)
        candidates = []
        for definition in catalog:
            if definition.is_excluded(header):
                continue
            candidate = self._score_field(column.header, header, values, definition)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def _score_field(
        self,
        original_header: str,
        header: str,
        values: List[str],
        definition: FieldDefinition,
    ) -> Optional[Candidate]:
        confidence, reasoning = self._match_name(original_header, header, definition)

        notes = []
        if values:
            for hint in definition.content_hints:
                validator = self.validators.get(hint)
                if validator is None:
                    continue
                result = validator(values, confidence)
                if result is not None:
                    confidence, note = result
                    notes.append(note)

        if confidence <= CANDIDATE_RETENTION_THRESHOLD:
            return None

        if not reasoning:
            reasoning = f'Sample values of column "{original_header}" fit "{definition.canonical_name}"'
        if notes:
            reasoning += f" ({'; '.join(notes)})"

        return Candidate(
            field=definition.canonical_name,
            confidence=confidence,
            reasoning=reasoning,
            source=self.name,
        )

    @staticmethod
    def _match_name(original_header: str, header: str, definition: FieldDefinition) -> Tuple[float, str]:
        for example in definition.examples:
            contained = len(header) >= MIN_CONTAINED_HEADER_LENGTH and header in example
            if header == example or example in header or contained:
                return (
                    EXAMPLE_MATCH_CONFIDENCE,
                    f'Column name "{original_header}" matches known field pattern "{example}"',
                )
        for keyword in definition.keywords:
            if keyword in header:
                return (
                    KEYWORD_MATCH_CONFIDENCE,
                    f'Column name "{original_header}" contains keyword "{keyword}" '
                    f'related to "{definition.canonical_name}"',
                )
        return 0.0, ""


class PatternDetectorClassifier(HeuristicClassifier):
    """Catalog-independent shape rules for week numbers and numeric identifiers."""

    name = SOURCE_PATTERN
    gate = PATTERN_DETECTOR_GATE

    def propose(self, column: ColumnSample, catalog: FieldCatalog) -> List[Candidate]:
        header = normalize_header(column.header)
        values = non_empty(column.values)
        candidates = []

        week = self._detect_week_numbers(header, values, catalog)
        if week is not None:
            candidates.append(week)

        identifier = self._detect_identifier(header, values)
        if identifier is not None:
            candidates.append(identifier)

        return candidates

    def _detect_week_numbers(self, header: str, values: List[str], catalog: FieldCatalog) -> Optional[Candidate]:
        if "week" not in header or "last_activity" not in catalog:
            return None
        if not any(pattern.match(v) for v in values for pattern in WEEK_PATTERNS):
            return None
        return Candidate(
            field="last_activity",
            confidence=WEEK_NUMBER_CONFIDENCE,
            reasoning="week numbers mapped to last_activity for time-based analysis",
            source=self.name,
        )

    def _detect_identifier(self, header: str, values: List[str]) -> Optional[Candidate]:
        if header != "id" and not header.endswith("_id"):
            return None
        if not values or not all(NUMERIC_ID_PATTERN.match(v) for v in values):
            return None
        return Candidate(
            field=UNMAPPED,
            confidence=IDENTIFIER_CONFIDENCE,
            reasoning="numeric ID field, typically not mapped",
            source=self.name,
        )


DEFAULT_CLASSIFIERS: Tuple[HeuristicClassifier, ...] = (
    LiteralOverrideClassifier(),
    CatalogFieldClassifier(),
    PatternDetectorClassifier(),
)


def run_heuristics(
    column: ColumnSample,
    catalog: FieldCatalog,
    classifiers: Sequence[HeuristicClassifier] = DEFAULT_CLASSIFIERS,
) -> List[Candidate]:
    """
    Run the classifiers in priority order and collect their proposals.

    Args:
        column: Column header and sample values
        catalog: Field catalog
        classifiers: Ordered classifiers

    Returns:
        All proposals, in classifier order
    """
    candidates: List[Candidate] = []
    for classifier in classifiers:
        best_so_far = arbitrate(candidates, catalog, min_confidence=0.0)
        if not classifier.should_run(best_so_far):
            continue
        proposals = classifier.propose(column, catalog)
        candidates.extend(proposals)
        if proposals and classifier.short_circuit:
            break
    return candidates
