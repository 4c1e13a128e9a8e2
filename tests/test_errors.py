"""
Tests for custom exception hierarchy.
"""

import pytest

from turnwise.core.errors import (
    ConfigurationError,
    GraphIntegrityError,
    InvalidRequestError,
    RouteReconstructionError,
    SearchCancelledError,
    TurnwiseException,
)


class TestTurnwiseException:
    """Tests for base TurnwiseException class."""

    def test_basic_exception(self):
        """Test basic exception creation."""
        exc = TurnwiseException(
            message="Test error",
            error_code="TEST_ERROR",
        )

        assert str(exc) == "TEST_ERROR: Test error"
        assert exc.message == "Test error"
        assert exc.error_code == "TEST_ERROR"
        assert exc.details == {}
        assert exc.suggestions == []

    def test_exception_with_details(self):
        """Test exception with details and suggestions."""
        exc = TurnwiseException(
            message="Test error with details",
            error_code="TEST_ERROR",
            details={"node_id": 7},
            suggestions=["Try this", "Or that"],
        )

        assert exc.details == {"node_id": 7}
        assert exc.suggestions == ["Try this", "Or that"]

    def test_to_dict(self):
        """Test conversion to dictionary."""
        exc = TurnwiseException(
            message="Test error",
            error_code="TEST_ERROR",
            details={"key": "value"},
            suggestions=["suggestion"],
        )

        assert exc.to_dict() == {
            "error_code": "TEST_ERROR",
            "message": "Test error",
            "details": {"key": "value"},
            "suggestions": ["suggestion"],
        }

    def test_repr(self):
        """Test string representation."""
        repr_str = repr(TurnwiseException(message="Test error", error_code="TEST_ERROR"))

        assert "TurnwiseException" in repr_str
        assert "TEST_ERROR" in repr_str
        assert "Test error" in repr_str

    def test_subclasses_share_base(self):
        """All routing errors can be caught through the base class."""
        for exc in [
            InvalidRequestError("bad"),
            ConfigurationError("bad"),
            GraphIntegrityError("bad"),
            RouteReconstructionError("bad"),
            SearchCancelledError(),
        ]:
            with pytest.raises(TurnwiseException):
                raise exc


class TestInvalidRequestError:
    """Tests for InvalidRequestError class."""

    def test_basic(self):
        exc = InvalidRequestError("Start intersection 9 is not in the graph", field="start")

        assert exc.error_code == "INVALID_REQUEST"
        assert exc.details["field"] == "start"
        assert exc.suggestions

    def test_custom_suggestions(self):
        exc = InvalidRequestError("Same node", suggestions=["Pick another goal"])

        assert exc.suggestions == ["Pick another goal"]
        assert "field" not in exc.details


class TestConfigurationError:
    """Tests for ConfigurationError class."""

    def test_config_key(self):
        """Test configuration error with key and extra details."""
        exc = ConfigurationError(
            "Bad weight", config_key="road_class_weight", details={"road_class": 0}
        )

        assert exc.error_code == "CONFIGURATION_ERROR"
        assert exc.details == {"road_class": 0, "config_key": "road_class_weight"}
        assert any("TURNWISE_" in s for s in exc.suggestions)


class TestGraphIntegrityError:
    """Tests for GraphIntegrityError class."""

    def test_entity_details(self):
        exc = GraphIntegrityError("Duplicate node id 0", entity="node", entity_id=0)

        assert exc.error_code == "GRAPH_INTEGRITY_ERROR"
        assert exc.details == {"entity": "node", "entity_id": 0}

    def test_without_entity(self):
        assert GraphIntegrityError("Negative cost").details == {}


class TestRouteReconstructionError:
    """Tests for RouteReconstructionError class."""

    def test_node_id(self):
        exc = RouteReconstructionError("Broken chain", node_id=3)

        assert exc.error_code == "ROUTE_RECONSTRUCTION_ERROR"
        assert exc.details["node_id"] == 3
        assert exc.suggestions == []


class TestSearchCancelledError:
    """Tests for SearchCancelledError class."""

    def test_default_message(self):
        exc = SearchCancelledError(details={"nodes_expanded": 12})

        assert str(exc) == "SEARCH_CANCELLED: Route search was cancelled"
        assert exc.details["nodes_expanded"] == 12
