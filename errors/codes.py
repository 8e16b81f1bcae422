"""
Error code catalog for the trace correlation demo service.

This module defines all error codes returned by the API: request validation
failures, lookups of unknown resources, the deliberately induced errors of
the simulation endpoint, and unexpected internal errors.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used in the application.

    Each error code maps to a specific HTTP status code:
    - Validation errors (4xx): Client request issues
    - Simulated errors (4xx/5xx): Reproducible failures for correlation tests
    - Internal errors (5xx): Server-side issues
    """

    # Validation errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Request payload validation failed (HTTP 400)"""

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    """Requested resource does not exist (HTTP 404)"""

    # Simulated errors
    SIMULATED_ERROR = "SIMULATED_ERROR"
    """Generic induced client error (HTTP 400)"""

    SIMULATED_SERVER_ERROR = "SIMULATED_SERVER_ERROR"
    """Induced internal server error (HTTP 500)"""

    SIMULATED_DATABASE_ERROR = "SIMULATED_DATABASE_ERROR"
    """Induced database connection failure (HTTP 500)"""

    SIMULATED_TIMEOUT = "SIMULATED_TIMEOUT"
    """Induced upstream timeout (HTTP 504)"""

    # Internal errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected server error (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.SIMULATED_ERROR: 400,
    ErrorCode.SIMULATED_SERVER_ERROR: 500,
    ErrorCode.SIMULATED_DATABASE_ERROR: 500,
    ErrorCode.SIMULATED_TIMEOUT: 504,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
