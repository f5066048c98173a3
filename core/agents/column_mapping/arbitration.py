"""Arbitration between competing column mapping candidates."""

from typing import Iterable, Optional

from core.agents.column_mapping.constants import MIN_USABLE_CONFIDENCE
from core.agents.column_mapping.field_catalog import FieldCatalog
from core.agents.column_mapping.model import Candidate


def arbitrate(
    candidates: Iterable[Optional[Candidate]],
    catalog: Optional[FieldCatalog] = None,
    min_confidence: float = MIN_USABLE_CONFIDENCE,
) -> Optional[Candidate]:
    """
    Pick the winning candidate for one header.

    The highest confidence wins. Ties go to the field declared first in the
    catalog; fields outside the catalog (such as ``unmapped``) rank after every
    catalog field, and any remaining tie keeps the input order.

    Args:
        candidates: Proposals from the classifiers (None entries are ignored)
        catalog: Catalog defining declaration order (input order if None)
        min_confidence: Winners below this are treated as no usable candidate

    Returns:
        Winning candidate, or None
    """
    best: Optional[Candidate] = None
    best_rank = 0

    for candidate in candidates:
        if candidate is None:
            continue
        rank = catalog.index_of(candidate.field) if catalog is not None else 0
        if (
            best is None
            or candidate.confidence > best.confidence
            or (candidate.confidence == best.confidence and rank < best_rank)
        ):
            best = candidate
            best_rank = rank

    if best is None or best.confidence < min_confidence:
        return None
    return best
