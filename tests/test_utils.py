"""Tests for retry, log sanitization and tracing helpers."""

from types import SimpleNamespace

import pytest

import core.utils.infrastructure.mlflow as mlflow_module
from core.utils import (
    is_rate_limit_error,
    is_timeout_error,
    retry_with_backoff,
    sanitize_for_logging,
    sanitize_values,
)


class Flaky:
    def __init__(self, errors):
        self.errors = list(errors)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "done"


def test_retry_recovers_from_transient_error():
    func = Flaky([ConnectionError("reset")])
    assert retry_with_backoff(max_retries=2, initial_delay=0)(func)() == "done"
    assert func.calls == 2


def test_retry_gives_up():
    func = Flaky([ConnectionError("reset")] * 3)
    with pytest.raises(ConnectionError):
        retry_with_backoff(max_retries=1, initial_delay=0)(func)()
    assert func.calls == 2


def test_zero_retries_calls_once():
    func = Flaky([ValueError("bad")])
    with pytest.raises(ValueError):
        retry_with_backoff(max_retries=0)(func)()
    assert func.calls == 1


@pytest.mark.parametrize("error", [RuntimeError("Error 429: Too Many Requests"), TimeoutError()])
def test_rate_limits_and_timeouts_not_retried(error):
    func = Flaky([error])
    with pytest.raises(type(error)):
        retry_with_backoff(max_retries=3, initial_delay=0)(func)()
    assert func.calls == 1


def test_error_classification():
    assert is_rate_limit_error(RuntimeError("You exceeded your current quota"))
    assert not is_rate_limit_error(RuntimeError("connection reset"))
    assert is_timeout_error(TimeoutError())
    assert is_timeout_error(RuntimeError("Request timed out after 5s"))
    assert not is_timeout_error(RuntimeError("bad gateway"))


def test_sanitize_for_logging():
    assert sanitize_for_logging(None) == ""
    assert sanitize_for_logging("name\nFAKE LOG LINE") == "name?FAKE LOG LINE"
    assert sanitize_for_logging("x" * 10, max_length=4) == "xxxx..."


def test_sanitize_values():
    assert sanitize_values(["a", "b\r", "c"], max_items=2) == ["a", "b?"]


def test_mlflow_tracing_disabled_by_config(monkeypatch):
    monkeypatch.setattr(
        mlflow_module, "get_config", lambda: SimpleNamespace(mlflow=SimpleNamespace(enabled=False))
    )
    assert mlflow_module.setup_mlflow_tracing("column_mapping") is False
