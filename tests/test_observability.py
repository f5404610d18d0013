"""
Tests for owner context propagation and log formatting.
"""

import json
import logging

from dayshape.observability import (
    HumanFormatter,
    JSONFormatter,
    OwnerContext,
    configure_logging,
    get_owner_id,
)


def _record(msg="Override set", **extra):
    record = logging.LogRecord("dayshape.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestOwnerContext:
    """contextvar scoping."""

    def test_sets_and_resets(self):
        assert get_owner_id() is None
        with OwnerContext("alice"):
            assert get_owner_id() == "alice"
            with OwnerContext("bob"):
                assert get_owner_id() == "bob"
            assert get_owner_id() == "alice"
        assert get_owner_id() is None


class TestFormatters:
    """JSON and human output."""

    def test_json_includes_owner_and_extras(self):
        with OwnerContext("alice"):
            line = JSONFormatter().format(_record(year=2026))
        data = json.loads(line)
        assert data["message"] == "Override set"
        assert data["owner_id"] == "alice"
        assert data["year"] == 2026
        assert data["level"] == "INFO"

    def test_json_without_owner(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert "owner_id" not in data

    def test_human_includes_owner(self):
        with OwnerContext("alice"):
            line = HumanFormatter().format(_record())
        assert "[alice]" in line
        assert "Override set" in line


class TestConfigureLogging:
    """Root logger setup."""

    def test_single_handler(self):
        configure_logging("DEBUG", json_format=True)
        configure_logging("WARNING", json_format=False)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, HumanFormatter)
