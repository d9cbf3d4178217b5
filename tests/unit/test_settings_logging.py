"""Unit tests for configuration and logging plumbing.

Covers:
- :class:`~proplist.core.settings.Settings` defaults, env loading and validators.
- Resolved database / media paths.
- :class:`~proplist.core.logging_config.JsonFormatter` output shape.
- :class:`~proplist.core.logging_config.RequestContextFilter` and ``REQUEST_ID_CTX``.
- Event-name constants in :mod:`proplist.core.events`.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from proplist.core import events
from proplist.core.logging_config import REQUEST_ID_CTX, JsonFormatter, RequestContextFilter
from proplist.core.settings import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Factories / helpers
# ---------------------------------------------------------------------------


def _make_record(msg: str = "Property published", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="proplist.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ===========================================================================
# Settings
# ===========================================================================


class TestSettingsDefaults:
    def test_defaults(self, clean_env: None) -> None:
        s = Settings()
        assert s.database_path == "data/proplist.db"
        assert s.media_root == "data/media"
        assert s.home_currency == "MXN"
        assert s.min_publish_score == 80
        assert s.block_if_rpp_rejected is True
        assert (s.default_page_size, s.max_page_size) == (20, 100)
        assert s.current_user_id == ""
        assert s.profile_lookup_attempts == 3
        assert s.profile_lookup_backoff == pytest.approx(0.2)
        assert (s.log_level, s.log_format) == ("INFO", "text")

    def test_env_overrides(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MIN_PUBLISH_SCORE", "65")
        monkeypatch.setenv("BLOCK_IF_RPP_REJECTED", "false")
        monkeypatch.setenv("CURRENT_USER_ID", "someone")
        s = Settings()
        assert s.min_publish_score == 65
        assert s.block_if_rpp_rejected is False
        assert s.current_user_id == "someone"


class TestSettingsValidation:
    def test_currency_normalised(self, clean_env: None) -> None:
        assert Settings(home_currency=" usd ").home_currency == "USD"

    def test_unknown_currency_rejected(self, clean_env: None) -> None:
        with pytest.raises(ValidationError, match="home_currency"):
            Settings(home_currency="EUR")

    def test_log_level_and_format_normalised(self, clean_env: None) -> None:
        s = Settings(log_level="debug", log_format="JSON")
        assert (s.log_level, s.log_format) == ("DEBUG", "json")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"log_level": "TRACE"},
            {"log_format": "xml"},
            {"min_publish_score": 101},
            {"min_publish_score": -1},
            {"max_page_size": 500},
            {"profile_lookup_attempts": 0},
            {"profile_lookup_backoff": -0.5},
        ],
    )
    def test_out_of_range_values(self, clean_env: None, overrides: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_default_page_size_above_max(self, clean_env: None) -> None:
        with pytest.raises(ValidationError, match="default_page_size"):
            Settings(default_page_size=50, max_page_size=40)


class TestResolvedPaths:
    def test_memory_database_untouched(self, clean_env: None) -> None:
        assert Settings(database_path=":memory:").database_path_resolved == ":memory:"

    def test_file_paths_resolved(self, clean_env: None, tmp_path: Path) -> None:
        s = Settings(database_path=str(tmp_path / "db.sqlite"), media_root=str(tmp_path / "m"))
        assert s.database_path_resolved == (tmp_path / "db.sqlite").resolve()
        assert s.media_root_resolved == (tmp_path / "m").resolve()
        assert s.media_root_resolved.is_absolute()


# ===========================================================================
# Logging
# ===========================================================================


class TestJsonFormatter:
    def test_payload_shape(self) -> None:
        payload = json.loads(
            JsonFormatter().format(_make_record(event=events.PROPERTY_PUBLISHED, request_id="r-1"))
        )
        assert set(payload) == {"ts", "level", "logger", "message", "extra"}
        assert payload["level"] == "INFO"
        assert payload["logger"] == "proplist.test"
        assert payload["message"] == "Property published"
        assert payload["extra"] == {"event": "PROPERTY_PUBLISHED", "request_id": "r-1"}
        assert payload["ts"].endswith("Z")

    def test_exception_included(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _make_record()
            record.exc_info = sys.exc_info()
        payload = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in payload["exc_info"]

    def test_non_serialisable_extra_uses_str(self) -> None:
        payload = json.loads(JsonFormatter().format(_make_record(path=Path("a/b"))))
        assert payload["extra"]["path"] == str(Path("a/b"))


class TestRequestContextFilter:
    def test_default_dash(self) -> None:
        record = _make_record()
        assert RequestContextFilter().filter(record) is True
        assert record.request_id == "-"

    def test_uses_context_value(self) -> None:
        token = REQUEST_ID_CTX.set("abc123")
        try:
            record = _make_record()
            RequestContextFilter().filter(record)
            assert record.request_id == "abc123"
        finally:
            REQUEST_ID_CTX.reset(token)


class TestEvents:
    def test_every_constant_names_itself(self) -> None:
        for name in events.__all__:
            assert getattr(events, name) == name

    def test_constants_are_unique(self) -> None:
        values = [getattr(events, name) for name in events.__all__]
        assert len(values) == len(set(values))
