"""
Error handling utilities for hplan.

This module provides centralized error handling and logging for the
simulation core. It includes custom exception classes and a decorator for
consistent error reporting across the public calculation functions.
"""

import os
import traceback
import logging
from functools import wraps
import sys
from datetime import datetime

from hplan.config import get_settings

_settings = get_settings()

# Configure logging; file handler only when HPLAN_LOG_FILE is set
_handlers = [logging.StreamHandler(sys.stdout)]
if _settings.log_file:
    _handlers.append(logging.FileHandler(_settings.log_file))

logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=_handlers,
)

logger = logging.getLogger("hplan")


class FinancialPlannerError(Exception):
    """Base exception class for hplan errors"""

    def __init__(self, message, details=None):
        self.message = message
        self.details = details
        self.timestamp = datetime.now()
        super().__init__(self.message)


class ScenarioShapeError(FinancialPlannerError):
    """Raised when a caller passes a structurally invalid scenario (missing timing, bad dates)."""


def _describe_arguments(args, kwargs):
    """Argument types of a failed call."""
    described = [type(arg).__name__ for arg in args]
    described.extend(f"{name}={type(value).__name__}" for name, value in kwargs.items())
    return ", ".join(described)


def error_handler(func):
    """
    Wrap a public calculation so failures surface as FinancialPlannerError.

    Errors already of that type propagate untouched. Anything else is logged
    with the innermost frame and re-raised wrapped, keeping the original as
    ``__cause__``.
    """
    operation = func.__qualname__

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except FinancialPlannerError:
            raise
        except Exception as e:
            frame = traceback.extract_tb(e.__traceback__)[-1]
            location = f"{os.path.basename(frame.filename)}:{frame.lineno}"

            details = {
                "error_type": type(e).__name__,
                "operation": operation,
                "location": location,
                "function": frame.name,
                "arguments": _describe_arguments(args, kwargs),
                "traceback": traceback.format_exc(),
            }

            logger.error(f"{operation} failed at {location} ({frame.name}): {e}")
            logger.debug(f"Failure details: {details}")

            raise FinancialPlannerError(f"{operation} failed: {e}", details) from e

    return wrapper
