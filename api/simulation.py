"""
Workload endpoints: induced errors, induced latency and nested spans.

These exist to produce reproducible spans and log lines for checking trace
correlation in the backend.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from api.deps import get_app_settings
from config.settings import Settings
from errors.codes import ErrorCode
from errors.exceptions import AppException
from telemetry.correlated_logging import get_logger
from telemetry.service import get_tracer

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["simulation"])


@dataclass(frozen=True)
class ErrorScenario:
    """One induced failure: what the client gets and what gets logged."""

    error_code: ErrorCode
    message: str
    log_level: int
    log_message: str
    delayed: bool = False
    fields: Dict[str, Any] = field(default_factory=dict)


DEFAULT_ERROR_TYPE = "generic"

# Status codes come from errors.codes.ERROR_CODE_STATUS_MAP
ERROR_SCENARIOS: Dict[str, ErrorScenario] = {
    "generic": ErrorScenario(
        error_code=ErrorCode.SIMULATED_ERROR,
        message="Bad request",
        log_level=logging.ERROR,
        log_message="Simulating generic error",
    ),
    "server": ErrorScenario(
        error_code=ErrorCode.SIMULATED_SERVER_ERROR,
        message="Internal server error",
        log_level=logging.ERROR,
        log_message="Simulating internal server error",
    ),
    "database": ErrorScenario(
        error_code=ErrorCode.SIMULATED_DATABASE_ERROR,
        message="Database connection failed",
        log_level=logging.ERROR,
        log_message="Simulating database connection error",
        fields={"failed_component": "database"},
    ),
    "timeout": ErrorScenario(
        error_code=ErrorCode.SIMULATED_TIMEOUT,
        message="Request timeout",
        log_level=logging.WARNING,
        log_message="Simulating timeout error",
        delayed=True,
    ),
}

SLOW_OPERATION_STEPS = 5
SLOW_OPERATION_STEP_SECONDS = 0.2

# (span name, table, simulated query time)
DATABASE_QUERY_STEPS = (
    ("query_users_table", "users", 0.08),
    ("query_orders_table", "orders", 0.12),
    ("join_user_orders", "users,orders", 0.15),
)


def resolve_error_scenario(error_type: str) -> tuple[str, ErrorScenario]:
    """Map a requested error type to its scenario; unknown types fall back to generic."""
    name = error_type.strip().lower() if error_type else DEFAULT_ERROR_TYPE
    if name not in ERROR_SCENARIOS:
        name = DEFAULT_ERROR_TYPE
    return name, ERROR_SCENARIOS[name]


@router.get("/simulate-error")
async def simulate_error(
    error_type: str = Query(default="", description="generic, server, database or timeout"),
    settings: Settings = Depends(get_app_settings),
):
    name, scenario = resolve_error_scenario(error_type)

    logger.error("Simulating error", error_type=name, requested_error_type=error_type)

    if scenario.delayed:
        await asyncio.sleep(settings.simulated_timeout_seconds)

    logger.emit(scenario.log_level, scenario.log_message, error_type=name, **scenario.fields)

    raise AppException(
        error_code=scenario.error_code,
        message=scenario.message,
        details={"error_type": name, **scenario.fields},
    )


@router.get("/slow-operation")
async def slow_operation():
    logger.info("Starting slow operation")
    started = time.perf_counter()

    for step in range(1, SLOW_OPERATION_STEPS + 1):
        logger.debug("Processing step", step=step)
        await asyncio.sleep(SLOW_OPERATION_STEP_SECONDS)

    duration_ms = round((time.perf_counter() - started) * 1000)
    logger.info("Slow operation completed", duration_ms=duration_ms)

    return {"message": "Slow operation completed", "duration_ms": duration_ms}


@router.get("/database-query")
async def database_query():
    logger.info("Executing database query")

    tracer = get_tracer(__name__)
    for span_name, table, delay in DATABASE_QUERY_STEPS:
        with tracer.start_as_current_span(span_name, attributes={"db.sql.table": table}):
            logger.debug("Running query step", step=span_name, table=table)
            await asyncio.sleep(delay)

    logger.info("Database query completed", results=42)

    return {"message": "Database query completed", "results": 42}
