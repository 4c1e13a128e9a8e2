"""
Custom exception hierarchy for turnwise.

Every error raised by the routing core derives from TurnwiseException so
callers can handle routing failures in one place. Note that an unreachable
goal is NOT an error: it is reported as a NoPathFound result.
"""

from typing import Any, Dict, List, Optional


class TurnwiseException(Exception):
    """
    Base exception for all turnwise-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize TurnwiseException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for front-end responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}')"
        )


class InvalidRequestError(TurnwiseException):
    """
    Raised when a route request is rejected before the search begins.

    Used when the start or goal intersection is not in the graph, or when
    start and goal are the same intersection.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize InvalidRequestError.

        Args:
            message: User-friendly error message
            field: Name of the request field that was rejected
            details: Technical details about the rejection
            suggestions: List of suggestions for fixing the request
        """
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            error_code="INVALID_REQUEST",
            details=error_details,
            suggestions=suggestions or ["Select two different intersections that exist in the loaded graph"],
        )


class ConfigurationError(TurnwiseException):
    """
    Raised when routing configuration is invalid.

    Used for cost model parameters that would produce a non-positive speed
    multiplier, or for any other setting outside its valid range.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: User-friendly error message
            config_key: Configuration key that is invalid
            details: Technical details about the configuration error
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        default_suggestions = [
            "Check TURNWISE_* environment variables are set correctly",
            "Verify the .env file syntax",
        ]

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class GraphIntegrityError(TurnwiseException):
    """
    Raised when the graph provider supplies inconsistent entities.

    Used for duplicate ids, segments referencing unknown roads or
    intersections, self-loop segments, and restrictions naming entities
    that are not in the graph.
    """

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize GraphIntegrityError.

        Args:
            message: User-friendly error message
            entity: Kind of entity at fault ("node", "road", "segment", "restriction")
            entity_id: Identifier of the offending entity
            details: Technical details about the inconsistency
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if entity:
            error_details["entity"] = entity
        if entity_id is not None:
            error_details["entity_id"] = entity_id

        super().__init__(
            message=message,
            error_code="GRAPH_INTEGRITY_ERROR",
            details=error_details,
            suggestions=suggestions or ["Check the dataset supplied by the graph provider"],
        )


class RouteReconstructionError(TurnwiseException):
    """
    Raised when a predecessor chain cannot be walked back to the start.

    This should never happen after a successful search; a partial route
    is never returned in its place.
    """

    def __init__(
        self,
        message: str,
        node_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if node_id is not None:
            error_details["node_id"] = node_id

        super().__init__(
            message=message,
            error_code="ROUTE_RECONSTRUCTION_ERROR",
            details=error_details,
        )


class SearchCancelledError(TurnwiseException):
    """Raised when a caller cancels an in-flight search."""

    def __init__(self, message: str = "Route search was cancelled", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="SEARCH_CANCELLED",
            details=details,
        )
