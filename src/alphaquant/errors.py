from __future__ import annotations


class ParameterError(ValueError):
    """Raised when an indicator, strategy or planner parameter is invalid."""
