"""Language model fallback for columns the heuristics cannot place."""

import json
import logging
import re
from typing import Any, Dict, Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.agents.column_mapping.classifiers import LiteralOverrideClassifier, non_empty
from core.agents.column_mapping.constants import DEFAULT_SAMPLE_SIZE, SOURCE_MODEL, UNMAPPED
from core.agents.column_mapping.exceptions import FallbackClassificationError
from core.agents.column_mapping.field_catalog import FieldCatalog, get_fields_for_prompt
from core.agents.column_mapping.model import Candidate
from core.utils.retry import retry_with_backoff
from core.utils.sanitize import sanitize_for_logging

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a data analyst. Respond with only valid JSON, no other text."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@runtime_checkable
class TextCompletionClient(Protocol):
    """Anything that turns a prompt into completion text."""

    def complete(self, prompt: str) -> str: ...


class DSPyCompletionClient:
    """TextCompletionClient backed by a DSPy language model."""

    def __init__(
        self,
        lm: Optional[Any] = None,
        timeout: float = 5.0,
        max_retries: int = 0,
        system_prompt: str = SYSTEM_PROMPT,
        enable_tracing: bool = False,
    ):
        """
        Initialize the completion client

        Args:
            lm: DSPy language model (if None, uses config for the column_mapping agent)
            timeout: Seconds before a completion request is abandoned
            max_retries: Retries for transient transport errors
            system_prompt: System message sent with every prompt
            enable_tracing: Whether to enable MLflow tracing
        """
        if enable_tracing:
            from core.utils.infrastructure.mlflow import setup_mlflow_tracing
            setup_mlflow_tracing(experiment_name="column_mapping")

        if lm is None:
            from core.llms.llm import get_llm_for_agent
            # Cached completions would carry decisions across requests
            lm = get_llm_for_agent("column_mapping", cache=False, timeout=timeout)

        self.lm = lm
        self.timeout = timeout
        self.system_prompt = system_prompt
        self._call = retry_with_backoff(max_retries=max_retries, initial_delay=0.5)(self._request)

    def complete(self, prompt: str) -> str:
        return self._call(prompt)

    def _request(self, prompt: str) -> str:
        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]
        outputs = self.lm(messages=messages)
        if not outputs:
            raise FallbackClassificationError("Language model returned no completions")
        first = outputs[0]
        # dspy returns dicts instead of strings when extra outputs (e.g. logprobs) are requested
        if isinstance(first, dict):
            first = first.get("text", "")
        return first or ""


class ModelSuggestion(BaseModel):
    """Structured answer expected from the language model."""

    field: str = UNMAPPED
    confidence: float = Field(default=0.0)
    reasoning: str = "AI analysis"

    @field_validator("field", mode="before")
    @classmethod
    def normalize_field(cls, v: Any) -> str:
        return str(v or UNMAPPED).strip().lower()

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        value = float(v or 0.0)
        if value != value:  # NaN
            return 0.0
        return min(1.0, max(0.0, value))

    @field_validator("reasoning", mode="before")
    @classmethod
    def default_reasoning(cls, v: Any) -> str:
        return str(v).strip() if v else "AI analysis"


def parse_model_response(text: Optional[str], catalog: FieldCatalog) -> Optional[Candidate]:
    """
    Extract a candidate from free-form model output.

    Takes the first ``{...}`` blob in the text, so answers wrapped in prose or
    code fences still parse.

    Args:
        text: Raw completion text
        catalog: Catalog the field name must belong to

    Returns:
        Candidate, or None if the text holds no valid suggestion
    """
    if not text:
        return None

    match = _JSON_OBJECT.search(text)
    if not match:
        logger.warning(f"No JSON object in model response: {sanitize_for_logging(text)}")
        return None

    try:
        payload = json.loads(match.group(0))
        if not isinstance(payload, dict):
            raise ValueError("top-level JSON value is not an object")
        suggestion = ModelSuggestion(**payload)
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"Malformed model response ({e}): {sanitize_for_logging(text)}")
        return None

    if suggestion.field != UNMAPPED and suggestion.field not in catalog:
        logger.warning(f"Model suggested unknown field: {sanitize_for_logging(suggestion.field)}")
        return None

    return Candidate(
        field=suggestion.field,
        confidence=suggestion.confidence,
        reasoning=suggestion.reasoning,
        source=SOURCE_MODEL,
    )


def build_mapping_prompt(
    header: str,
    all_headers: Sequence[str],
    sample_values: Sequence[str],
    catalog: FieldCatalog,
    override_rules: Optional[Dict[str, tuple]] = None,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> str:
    """
    Build the classification prompt for one column.

    The prompt is fully determined by its inputs.

    Args:
        header: Column to classify
        all_headers: Every header of the dataset, for cross-column context
        sample_values: Sample values of the column
        catalog: Fields the column may map to
        override_rules: Alias table mirrored as disambiguation notes
        sample_size: Maximum number of sample values shown

    Returns:
        Prompt text
    """
    rules = LiteralOverrideClassifier.DEFAULT_RULES if override_rules is None else override_rules
    samples = non_empty(sample_values)[:sample_size]

    field_lines = []
    for field_info in get_fields_for_prompt(catalog):
        line = f"- {field_info['name']}"
        if field_info["description"]:
            line += f": {field_info['description']}"
        line += f" (examples: {', '.join(field_info['examples'])}; keywords: {', '.join(field_info['keywords'])})"
        field_lines.append(line)

    note_lines = [
        f'- "{alias}" means {field_name}'
        for alias, (field_name, _confidence) in sorted(rules.items())
    ]

    sections = [
        "You are a data analyst. Analyze this CSV column and suggest which field it maps to.",
        "",
        f'Column name: "{header}"',
        f"Sample values (first {sample_size}): {', '.join(samples) if samples else '(none)'}",
        f"All columns in this file: {', '.join(all_headers)}",
        "",
        "Available fields to map to:",
        *field_lines,
    ]
    if note_lines:
        sections += ["", "Disambiguation notes:", *note_lines]
    sections += [
        "",
        "Respond with ONLY a JSON object in this format:",
        '{"field": "customer_name", "confidence": 0.85, "reasoning": "Brief explanation"}',
        "",
        f'If no match is clear, set field to "{UNMAPPED}" and confidence to 0.',
    ]
    return "\n".join(sections)


class FallbackClassifier:
    """Last-resort classifier that asks a language model."""

    def __init__(
        self,
        client: Optional[TextCompletionClient],
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        override_rules: Optional[Dict[str, tuple]] = None,
    ):
        self.client = client
        self.sample_size = sample_size
        self.override_rules = override_rules

    @property
    def available(self) -> bool:
        return self.client is not None

    def classify_with_model(
        self,
        header: str,
        all_headers: Sequence[str],
        sample_values: Sequence[str],
        catalog: FieldCatalog,
    ) -> Optional[Candidate]:
        """
        Ask the language model to classify one column.

        Never raises: transport errors, timeouts and unparseable answers are
        logged and reported as None.

        Args:
            header: Column to classify
            all_headers: Every header of the dataset
            sample_values: Sample values of the column
            catalog: Field catalog

        Returns:
            Candidate, or None
        """
        if self.client is None:
            return None

        prompt = build_mapping_prompt(
            header,
            all_headers,
            sample_values,
            catalog,
            override_rules=self.override_rules,
            sample_size=self.sample_size,
        )

        try:
            text = self.client.complete(prompt)
        except Exception as e:
            logger.warning(
                f"Model fallback failed for column '{sanitize_for_logging(header)}': "
                f"{type(e).__name__}: {e}"
            )
            return None

        candidate = parse_model_response(text, catalog)
        if candidate is not None:
            logger.debug(
                f"Model suggested {candidate.field} ({candidate.confidence:.2f}) "
                f"for column '{sanitize_for_logging(header)}'"
            )
        return candidate


def build_completion_client(config=None) -> Optional[TextCompletionClient]:
    """
    Build the configured completion client, or None when the fallback is off.

    Args:
        config: AppConfig (defaults to the global config)

    Returns:
        DSPyCompletionClient, or None without credentials
    """
    if config is None:
        from core.config import get_config
        config = get_config()

    mapping_config = config.column_mapping
    if not mapping_config.fallback_enabled:
        logger.info("Model fallback disabled by configuration")
        return None
    if not config.has_llm_credentials():
        logger.info("No LLM credentials configured; model fallback unavailable")
        return None

    return DSPyCompletionClient(
        timeout=mapping_config.fallback_timeout,
        max_retries=mapping_config.fallback_max_retries,
        enable_tracing=config.mlflow.enabled,
    )
