"""
Tests for logging setup and search timing.
"""

import json
import logging
import sys
import time

import pytest

from turnwise.core.config import Settings
from turnwise.core.errors import ConfigurationError
from turnwise.core.logging_config import JSONFormatter, resolve_log_level, setup_logging
from turnwise.core.routing import Node, Road, RoadGraph, Segment, find_route
from turnwise.utils.logging import PerformanceTimer, log_performance


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def street():
    """Three intersections along one street."""
    nodes = [Node(1, (0.0, 0.0)), Node(2, (1.0, 0.0)), Node(3, (2.0, 0.0))]
    segments = [Segment(10, 1, 1, 2, 1.0), Segment(11, 1, 2, 3, 1.0)]
    return RoadGraph.build(nodes, [Road(1, "Harbour Road")], segments)


def slow_search_record(caplog, graph, mode="distance"):
    """Run a search that always counts as slow and return its log record."""
    settings = Settings(environment="production", slow_search_threshold_ms=0.0)
    with caplog.at_level(logging.INFO, logger="turnwise.core.routing.router"):
        find_route(graph, None, 1, 3, mode, settings=settings)
    return next(r for r in caplog.records if r.getMessage().startswith("Slow route search"))


class TestResolveLogLevel:
    """Tests for level name resolution."""

    @pytest.mark.parametrize(
        "name, expected",
        [("DEBUG", logging.DEBUG), ("info", logging.INFO), ("Warning", logging.WARNING)],
    )
    def test_known_levels(self, name, expected):
        assert resolve_log_level(name) == expected

    def test_unknown_level(self):
        """A typo in TURNWISE_LOG_LEVEL is a configuration error, not silently INFO."""
        with pytest.raises(ConfigurationError, match="Unknown log level") as exc_info:
            resolve_log_level("verbose")

        assert exc_info.value.details["config_key"] == "log_level"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_level_from_settings(self, restore_root_logger):
        setup_logging(settings=Settings(environment="production", log_level="WARNING"))

        assert restore_root_logger.level == logging.WARNING
        assert len(restore_root_logger.handlers) == 1

    def test_development_defaults_to_debug(self, restore_root_logger):
        setup_logging(settings=Settings(environment="development"))

        assert restore_root_logger.level == logging.DEBUG

    def test_json_file(self, restore_root_logger, tmp_path, street):
        """Search statistics reach the JSON log as top-level keys."""
        log_file = tmp_path / "logs" / "turnwise.log"
        settings = Settings(environment="production", slow_search_threshold_ms=0.0)

        setup_logging(
            log_level="INFO", log_file=log_file, json_logs=True, enable_console=False, settings=settings
        )
        find_route(street, None, 1, 3, "time", settings=settings)
        for handler in restore_root_logger.handlers:
            handler.flush()

        records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        slow = next(r for r in records if r["message"].startswith("Slow route search"))
        assert slow["level"] == "INFO"
        assert slow["logger"] == "turnwise.core.routing.router"
        assert slow["cost_mode"] == "time"
        assert slow["nodes_expanded"] == 3
        assert slow["duration_ms"] >= 0


class TestJSONFormatter:
    """Tests for the JSON formatter."""

    def test_search_fields(self, caplog, street):
        record = slow_search_record(caplog, street)

        data = json.loads(JSONFormatter().format(record))

        assert data["cost_mode"] == "distance"
        assert data["nodes_expanded"] == 3
        assert isinstance(data["duration_ms"], float)

    def test_unrelated_extras_left_out(self):
        """Only the known search fields are promoted to keys."""
        record = logging.LogRecord("turnwise", logging.INFO, "", 0, "Route found", (), None)
        record.cost_mode = "time"
        record.password = "hunter2"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Route found"
        assert data["cost_mode"] == "time"
        assert "password" not in data

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "turnwise", logging.ERROR, "", 0, "Search failed", (), exc_info=sys.exc_info()
            )

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestSearchTiming:
    """Tests for the timing helpers around searches."""

    def test_fast_search_not_reported(self, caplog, street):
        """Searches under the threshold stay out of the INFO log."""
        settings = Settings(environment="production", slow_search_threshold_ms=60_000.0)

        with caplog.at_level(logging.INFO, logger="turnwise.core.routing.router"):
            find_route(street, None, 1, 3, settings=settings)

        assert not any("Slow route search" in r.getMessage() for r in caplog.records)

    def test_search_timer_logged_at_debug(self, caplog, street):
        with caplog.at_level(logging.DEBUG, logger="turnwise.utils.logging"):
            find_route(street, None, 1, 3, settings=Settings(environment="production"))

        record = next(r for r in caplog.records if r.getMessage().startswith("Route search 1 -> 3"))
        assert record.operation == "Route search 1 -> 3 (distance)"
        assert record.duration_ms >= 0

    def test_graph_build_timed(self, caplog):
        """RoadGraph.build is wrapped in log_performance."""
        with caplog.at_level(logging.DEBUG, logger="turnwise.utils.logging"):
            RoadGraph.build([Node(1, (0.0, 0.0))], [], [])

        assert any(
            getattr(r, "function", "").endswith("RoadGraph.build") for r in caplog.records
        )

    def test_log_performance_threshold(self, caplog):
        @log_performance(log_level=logging.INFO, threshold_ms=10_000)
        def quick():
            return "done"

        with caplog.at_level(logging.INFO):
            assert quick() == "done"

        assert "executed in" not in caplog.text

    def test_log_performance_on_error(self, caplog):
        """The timing is logged even when the wrapped call raises."""

        @log_performance(log_level=logging.INFO)
        def failing():
            raise RuntimeError("boom")

        with caplog.at_level(logging.INFO):
            with pytest.raises(RuntimeError):
                failing()

        assert "executed in" in caplog.text

    def test_timer_duration_set_on_error(self):
        with pytest.raises(ValueError):
            with PerformanceTimer("failing block") as timer:
                time.sleep(0.01)
                raise ValueError("bad")

        assert timer.duration_ms is not None
        assert timer.duration_ms >= 5
