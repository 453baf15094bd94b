"""Tests for logging setup."""

import logging

import pytest

from ocnregistry.logs import setup_logging


def test_setup_logging_sets_level(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    setup_logging("debug")

    assert calls[0]["level"] == logging.DEBUG


def test_setup_logging_rejects_unknown_level() -> None:
    with pytest.raises(ValueError, match="log_level must be one of"):
        setup_logging("VERBOSE")
