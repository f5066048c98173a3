"""Column mapping agent."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import pandas as pd

from core.agents.column_mapping.arbitration import arbitrate
from core.agents.column_mapping.classifiers import (
    DEFAULT_CLASSIFIERS,
    HeuristicClassifier,
    LiteralOverrideClassifier,
    run_heuristics,
)
from core.agents.column_mapping.constants import (
    DEFAULT_SAMPLE_SIZE,
    FALLBACK_THRESHOLD,
    SENTINEL_CEILING,
    SOURCE_PATTERN,
)
from core.agents.column_mapping.exceptions import ColumnMappingError, InvalidMappingInputError
from core.agents.column_mapping.fallback import (
    FallbackClassifier,
    TextCompletionClient,
    build_completion_client,
)
from core.agents.column_mapping.field_catalog import DEFAULT_FIELD_CATALOG, FieldCatalog
from core.agents.column_mapping.model import Candidate, ColumnSample, MappingSuggestion
from core.auth.exceptions import AuthorizationError, NotAuthorizedError
from core.auth.identity import CallerIdentity
from core.auth.workspace_access import WorkspaceAuthorizer
from core.utils.sanitize import sanitize_for_logging, sanitize_values

logger = logging.getLogger(__name__)


class ColumnMappingAgent:
    """Suggests canonical fields for the columns of an uploaded dataset"""

    def __init__(
        self,
        catalog: Optional[FieldCatalog] = None,
        completion_client: Optional[TextCompletionClient] = None,
        authorizer: Optional[WorkspaceAuthorizer] = None,
        classifiers: Optional[Sequence[HeuristicClassifier]] = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        max_workers: int = 1,
    ):
        """
        Initialize the Column Mapping Agent

        Args:
            catalog: Canonical fields (defaults to the built-in catalog)
            completion_client: Language model client for the fallback (None disables it)
            authorizer: Workspace authorizer; map_columns refuses every caller without one
            classifiers: Heuristic classifiers in priority order
            sample_size: Number of non-empty sample values considered per column
            max_workers: Threads used to classify columns in parallel (1 = sequential)
        """
        self.catalog = catalog or DEFAULT_FIELD_CATALOG
        self.classifiers = tuple(classifiers) if classifiers is not None else DEFAULT_CLASSIFIERS
        self.authorizer = authorizer
        self.sample_size = sample_size
        self.max_workers = max(1, max_workers)

        override_rules = None
        for classifier in self.classifiers:
            if isinstance(classifier, LiteralOverrideClassifier):
                override_rules = classifier.rules
                break
        self.fallback = FallbackClassifier(
            completion_client,
            sample_size=sample_size,
            override_rules=override_rules or {},
        )

    @classmethod
    def from_config(cls, config=None, authorizer: Optional[WorkspaceAuthorizer] = None) -> "ColumnMappingAgent":
        """
        Build an agent from application configuration.

        Args:
            config: AppConfig (defaults to the global config)
            authorizer: Workspace authorizer to enforce in map_columns

        Returns:
            Configured ColumnMappingAgent
        """
        if config is None:
            from core.config import get_config
            config = get_config()

        mapping_config = config.column_mapping
        return cls(
            completion_client=build_completion_client(config),
            authorizer=authorizer,
            sample_size=mapping_config.sample_size,
            max_workers=mapping_config.max_workers,
        )

    def map_columns(
        self,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[str]],
        caller_identity: Optional[CallerIdentity],
        workspace_id: str,
    ) -> List[MappingSuggestion]:
        """
        Suggest a canonical field for every header, on behalf of a caller.

        Args:
            headers: Column names in file order
            sample_rows: First rows of the dataset (may be empty)
            caller_identity: Authenticated caller, or None
            workspace_id: Workspace the dataset belongs to

        Returns:
            One MappingSuggestion per header, in input order

        Raises:
            NotAuthenticatedError: If there is no caller identity
            NotAuthorizedError: If the caller may not access the workspace
            InvalidMappingInputError: If headers are missing or malformed
            ColumnMappingError: If classification fails unexpectedly
        """
        if self.authorizer is None:
            raise NotAuthorizedError("No workspace authorizer configured")
        self.authorizer.authorize(caller_identity, workspace_id)

        return self.suggest_mappings(headers, sample_rows)

    def suggest_mappings(
        self,
        headers: Sequence[str],
        sample_rows: Sequence[Sequence[str]],
    ) -> List[MappingSuggestion]:
        """
        Suggest a canonical field for every header, without authorization.

        Intended for trusted local tooling; HTTP callers go through map_columns.

        Args:
            headers: Column names in file order
            sample_rows: First rows of the dataset (may be empty)

        Returns:
            One MappingSuggestion per header, in input order
        """
        self._validate_input(headers, sample_rows)
        columns = self.extract_samples(headers, sample_rows, self.sample_size)
        all_headers = list(headers)

        try:
            if self.max_workers > 1 and len(columns) > 1:
                with ThreadPoolExecutor(max_workers=min(self.max_workers, len(columns))) as executor:
                    # map() yields results in submission order
                    suggestions = list(executor.map(lambda c: self.classify_column(c, all_headers), columns))
            else:
                suggestions = [self.classify_column(column, all_headers) for column in columns]
        except (ColumnMappingError, AuthorizationError):
            raise
        except Exception as e:
            logger.error(f"Column mapping failed: {e}", exc_info=True)
            raise ColumnMappingError(f"Column mapping failed: {e}") from e

        mapped = sum(1 for s in suggestions if s.confidence > SENTINEL_CEILING)
        logger.info(f"Mapped {mapped}/{len(suggestions)} columns")
        return suggestions

    def classify_column(self, column: ColumnSample, all_headers: Sequence[str]) -> MappingSuggestion:
        """
        Run the full decision procedure for one column.

        Args:
            column: Column header and sample values
            all_headers: Every header of the dataset, for the model prompt

        Returns:
            MappingSuggestion for the column
        """
        candidates = run_heuristics(column, self.catalog, self.classifiers)
        best = arbitrate(candidates, self.catalog)

        if (best is None or best.confidence < FALLBACK_THRESHOLD) and self.fallback.available:
            model_candidate = self.fallback.classify_with_model(
                column.header, all_headers, column.values, self.catalog
            )
            baseline = best.confidence if best is not None else 0.0
            if model_candidate is not None and model_candidate.confidence > baseline:
                best = model_candidate

        if best is None or best.confidence <= SENTINEL_CEILING:
            sentinel = self._pattern_sentinel(candidates)
            if sentinel is not None:
                best = sentinel

        if best is None:
            logger.debug(f"No match for column '{sanitize_for_logging(column.header)}'")
            return MappingSuggestion.unmapped(column.header)

        logger.debug(
            f"Column '{sanitize_for_logging(column.header)}' -> {best.field} "
            f"({best.confidence:.2f}, {best.source}); samples={sanitize_values(column.values)}"
        )
        return MappingSuggestion.from_candidate(column.header, best)

    def _pattern_sentinel(self, candidates: List[Candidate]) -> Optional[Candidate]:
        detected = [c for c in candidates if c.source == SOURCE_PATTERN]
        return arbitrate(detected, self.catalog, min_confidence=0.0)

    @staticmethod
    def _validate_input(headers: Sequence[str], sample_rows: Sequence[Sequence[str]]) -> None:
        if headers is None or isinstance(headers, (str, bytes)) or len(headers) == 0:
            raise InvalidMappingInputError("headers must be a non-empty list of column names")
        for position, header in enumerate(headers):
            if not isinstance(header, str):
                raise InvalidMappingInputError(
                    f"Header at position {position} must be a string, got {type(header).__name__}"
                )
        if sample_rows is None:
            return
        for position, row in enumerate(sample_rows):
            if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
                raise InvalidMappingInputError(f"Sample row {position} must be a list of cell values")

    @staticmethod
    def extract_samples(
        headers: Sequence[str],
        sample_rows: Optional[Sequence[Sequence[str]]],
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ) -> List[ColumnSample]:
        """
        Build per-column samples from row-oriented data.

        Args:
            headers: Column names in file order
            sample_rows: Rows of cell values; short rows count as empty cells
            sample_size: Maximum non-empty values kept per column

        Returns:
            One ColumnSample per header
        """
        rows = list(sample_rows or [])
        samples = []
        for index, header in enumerate(headers):
            values = []
            for row in rows:
                if index >= len(row):
                    continue
                cell = row[index]
                if cell is None:
                    continue
                text = str(cell).strip()
                if text:
                    values.append(text)
                if len(values) >= sample_size:
                    break
            samples.append(ColumnSample(header=header, values=values))
        return samples

    @staticmethod
    def extract_samples_from_dataframe(df: pd.DataFrame, sample_size: int = DEFAULT_SAMPLE_SIZE) -> List[ColumnSample]:
        """
        Build per-column samples from a dataframe

        Args:
            df: Input dataframe (read with dtype=str to keep cell text intact)
            sample_size: Maximum non-empty values kept per column

        Returns:
            One ColumnSample per column
        """
        samples = []
        for col in df.columns:
            values = [str(v).strip() for v in df[col].dropna().tolist()]
            values = [v for v in values if v][:sample_size]
            samples.append(ColumnSample(header=str(col), values=values))
        return samples

    def suggest_mappings_for_dataframe(self, df: pd.DataFrame) -> List[MappingSuggestion]:
        """Suggest mappings for the columns of a dataframe."""
        headers = [str(col) for col in df.columns]
        # Sparse columns need more rows than sample_size to collect enough values
        head = df.head(max(self.sample_size * 5, 50))
        rows = head.astype(object).where(head.notna(), None).values.tolist()
        return self.suggest_mappings(headers, rows)
