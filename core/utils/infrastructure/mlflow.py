"""Central MLflow setup for DSPy tracing."""

import logging
from typing import Optional

import mlflow

from core.config import get_config

logger = logging.getLogger(__name__)

# Track if autolog has been initialized
_autolog_initialized = False


def setup_mlflow_tracing(experiment_name: Optional[str] = None) -> bool:
    """
    Set up MLflow tracing for DSPy.

    Once enabled, every DSPy LM call made by the fallback classifier is traced,
    which makes prompt regressions visible in the MLflow UI.

    Args:
        experiment_name: Name of the MLflow experiment. If None, uses config default.

    Returns:
        True if tracing is active after the call

    Example:
        >>> from core.utils.infrastructure.mlflow import setup_mlflow_tracing
        >>> setup_mlflow_tracing(experiment_name="column_mapping")
    """
    global _autolog_initialized

    config = get_config()

    if not config.mlflow.enabled:
        return False

    if config.mlflow.tracking_uri:
        mlflow.set_tracking_uri(config.mlflow.tracking_uri)

    mlflow.set_experiment(experiment_name or config.mlflow.experiment_name)

    # Safe to call multiple times - MLflow handles it gracefully
    if not _autolog_initialized:
        mlflow.dspy.autolog()
        _autolog_initialized = True
        logger.info("MLflow DSPy tracing enabled")

    return True
