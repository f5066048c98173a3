"""Language model factories."""

from core.llms.llm import get_llm_for_agent

__all__ = ["get_llm_for_agent"]
