"""Infrastructure utilities."""

from core.utils.infrastructure.mlflow import setup_mlflow_tracing

__all__ = ["setup_mlflow_tracing"]
