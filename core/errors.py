from __future__ import annotations

import functools
from typing import Any, Callable, Dict, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


class AnalyticsError(Exception):
    """Base error for the analytics core."""

    def __init__(self, message: str, error_code: str = "ANALYTICS_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class LoadError(AnalyticsError):
    """A dataset could not be read at startup. Fatal."""

    def __init__(self, message: str, dataset: str, path: Optional[str] = None):
        super().__init__(message, "LOAD_ERROR", {"dataset": dataset, "path": path})
        self.dataset = dataset
        self.path = path


class NotFoundError(AnalyticsError):
    def __init__(self, message: str, identifier: str):
        super().__init__(message, "NOT_FOUND", {"identifier": identifier})
        self.identifier = identifier


class InvalidParameterError(AnalyticsError):
    def __init__(self, message: str, parameter: str, value: str):
        super().__init__(message, "INVALID_PARAMETER", {"parameter": parameter, "value": value})
        self.parameter = parameter
        self.value = value


class ComputationError(AnalyticsError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "COMPUTATION_ERROR", details)


def computation(func: F) -> F:
    """Re-raise unexpected failures inside a calculator as ComputationError."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except AnalyticsError:
            raise
        except (ArithmeticError, AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
            raise ComputationError(str(exc), {"calculator": func.__name__}) from exc

    return wrapper  # type: ignore[return-value]
