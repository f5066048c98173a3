"""
Field Catalog

Defines the canonical fields that imported customer data can be mapped to,
together with the metadata the heuristic classifiers match against.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

CONTENT_HINTS = frozenset({"text", "number", "date", "email"})


@dataclass(frozen=True)
class FieldDefinition:
    """Definition of a canonical field"""

    canonical_name: str
    keywords: Tuple[str, ...]
    examples: Tuple[str, ...]
    exclude_patterns: Tuple[str, ...] = ()
    content_hints: Tuple[str, ...] = ("text",)
    description: str = ""

    def __post_init__(self):
        unknown = set(self.content_hints) - CONTENT_HINTS
        if unknown:
            raise ValueError(
                f"Unknown content hints for {self.canonical_name}: {sorted(unknown)}"
            )

    def is_excluded(self, header: str) -> bool:
        """Check whether any exclude pattern vetoes this field for a normalized header."""
        return any(pattern in header for pattern in self.exclude_patterns)

    def to_dict(self) -> dict:
        """Convert to dictionary for the LLM prompt and the field listing endpoint"""
        return {
            "name": self.canonical_name,
            "description": self.description,
            "keywords": list(self.keywords),
            "examples": list(self.examples),
            "content_hints": list(self.content_hints),
        }


class FieldCatalog:
    """Immutable, ordered registry of canonical fields.

    Declaration order matters: arbitration resolves confidence ties in favour
    of the field declared first.
    """

    def __init__(self, fields: Sequence[FieldDefinition]):
        self._fields: Tuple[FieldDefinition, ...] = tuple(fields)
        self._index: Dict[str, int] = {}
        for position, definition in enumerate(self._fields):
            if definition.canonical_name in self._index:
                raise ValueError(f"Duplicate canonical field: {definition.canonical_name}")
            self._index[definition.canonical_name] = position

    def list_fields(self) -> Tuple[FieldDefinition, ...]:
        return self._fields

    @property
    def names(self) -> List[str]:
        return [definition.canonical_name for definition in self._fields]

    def get(self, canonical_name: str) -> Optional[FieldDefinition]:
        position = self._index.get(canonical_name)
        return self._fields[position] if position is not None else None

    def index_of(self, canonical_name: str) -> int:
        """Declaration rank of a field; unknown names rank after every catalog field."""
        return self._index.get(canonical_name, len(self._fields))

    def __contains__(self, canonical_name: object) -> bool:
        return canonical_name in self._index

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FieldCatalog({self.names})"


DEFAULT_FIELDS = (
    FieldDefinition(
        canonical_name="customer_name",
        description="Name of the customer account or contact person",
        keywords=("name", "customer", "client", "company", "account"),
        examples=("customer_name", "client_name", "account_name"),
        exclude_patterns=("app_", "application", "product", "feature", "usage", "email", "e_mail", "size", "_id"),
        content_hints=("text",),
    ),
    FieldDefinition(
        canonical_name="customer_email",
        description="Email address of the customer contact",
        keywords=("email", "e_mail", "mail"),
        examples=("email", "customer_email", "user_email", "email_address"),
        content_hints=("email",),
    ),
    FieldDefinition(
        canonical_name="company",
        description="Organisation the customer belongs to",
        keywords=("company", "organisation", "organization", "firm"),
        examples=("company", "company_name", "organisation", "organization"),
        exclude_patterns=("size", "email", "_id"),
        content_hints=("text",),
    ),
    FieldDefinition(
        canonical_name="mrr",
        description="Monthly recurring revenue",
        keywords=("mrr", "recurring", "monthly", "revenue"),
        examples=("mrr", "monthly_revenue", "recurring_revenue"),
        exclude_patterns=("contract", "total", "annual"),
        content_hints=("number",),
    ),
    FieldDefinition(
        canonical_name="churn_risk",
        description="Likelihood that the customer churns",
        keywords=("churn", "risk", "retention"),
        examples=("churn_risk", "retention_risk", "churn_probability"),
        content_hints=("number", "text"),
    ),
    FieldDefinition(
        canonical_name="last_activity",
        description="Most recent moment the customer was active",
        keywords=("activity", "last", "recent", "date"),
        examples=("last_activity", "last_seen", "recent_activity"),
        exclude_patterns=("renewal", "expir", "end_date", "contract", "name"),
        content_hints=("date",),
    ),
    FieldDefinition(
        canonical_name="support_tickets",
        description="Number of support tickets or cases opened",
        keywords=("ticket", "support", "issue", "case"),
        examples=("support_tickets", "tickets", "open_tickets"),
        content_hints=("number",),
    ),
    FieldDefinition(
        canonical_name="feature_usage",
        description="Product, application or feature usage",
        keywords=("usage", "feature", "use", "utilization"),
        examples=("feature_usage", "usage", "app_usage", "app_name", "application_name"),
        exclude_patterns=("email", "user", "_id"),
        content_hints=("number", "text"),
    ),
    FieldDefinition(
        canonical_name="industry",
        description="Industry or market sector of the customer",
        keywords=("industry", "sector", "vertical"),
        examples=("industry", "sector", "industry_type"),
        content_hints=("text",),
    ),
    FieldDefinition(
        canonical_name="company_size",
        description="Size of the customer organisation",
        keywords=("size", "employees", "headcount"),
        examples=("company_size", "employees", "headcount"),
        content_hints=("number", "text"),
    ),
    FieldDefinition(
        canonical_name="contract_value",
        description="Total or annual value of the customer contract",
        keywords=("contract", "value", "amount", "revenue"),
        examples=("contract_value", "total_contract_value", "annual_contract_value"),
        exclude_patterns=("monthly", "recurring", "mrr", "renewal", "end_date", "contract_end", "expir"),
        content_hints=("number",),
    ),
    FieldDefinition(
        canonical_name="renewal_date",
        description="Date the contract renews or expires",
        keywords=("renewal", "expiry", "expiration", "end_date"),
        examples=("renewal_date", "expiry_date", "contract_end"),
        content_hints=("date",),
    ),
)

DEFAULT_FIELD_CATALOG = FieldCatalog(DEFAULT_FIELDS)


def list_fields() -> Tuple[FieldDefinition, ...]:
    """Fields of the default catalog, in declaration order."""
    return DEFAULT_FIELD_CATALOG.list_fields()


def get_fields_for_prompt(catalog: Optional[FieldCatalog] = None) -> List[dict]:
    """
    Get catalog fields formatted for an LLM prompt.

    Args:
        catalog: Catalog to describe (defaults to the default catalog)

    Returns:
        List of field dictionaries
    """
    if catalog is None:
        catalog = DEFAULT_FIELD_CATALOG
    return [definition.to_dict() for definition in catalog]
