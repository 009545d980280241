"""
Centralized logging configuration for the PeakBot trading engine.

This module provides standardized logging configuration using structlog
for all components. All logging throughout the system should use this
configuration to ensure consistent formatting and structured logging.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                       structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_signal_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for buy/sell signal decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for signal decisions
    """
    return get_logger(name).bind(
        subsystem="signals",
        audit_trail=True
    )


def get_execution_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for order execution and ledger reconciliation.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for order execution
    """
    return get_logger(name).bind(
        subsystem="execution",
        audit_trail=True
    )


def log_signal_decision(
    logger: FilteringBoundLogger,
    symbol: str,
    kind: str,
    measured_pct: float,
    threshold_pct: float,
    emitted: bool,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a threshold evaluation with standardized format.

    Args:
        logger: Structlog logger instance
        symbol: Base token being evaluated
        kind: "buy" or "sell"
        measured_pct: Rise-from-low or drop-from-peak percentage
        threshold_pct: Configured threshold it was compared against
        emitted: Whether a signal was emitted
        context: Additional context data
    """
    bound_logger = logger.bind(
        symbol=symbol,
        signal_kind=kind,
        measured_pct=round(measured_pct, 4),
        threshold_pct=threshold_pct,
        signal_emitted=emitted,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if emitted:
        bound_logger.info("Signal emitted")
    else:
        bound_logger.debug("Signal threshold not met")


def log_execution_outcome(
    logger: FilteringBoundLogger,
    symbol: str,
    kind: str,
    status: str,
    reason: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of a guarded execution with standardized format.

    Args:
        logger: Structlog logger instance
        symbol: Base token the order was for
        kind: "buy" or "sell"
        status: Execution status value
        reason: Signal reason or failure detail
        context: Additional context data
    """
    bound_logger = logger.bind(
        symbol=symbol,
        signal_kind=kind,
        execution_status=status,
        reason=reason,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if status == "filled":
        bound_logger.info("Execution completed")
    elif status in ("transport_fault", "ledger_rejected"):
        bound_logger.error("Execution outcome requires attention")
    else:
        bound_logger.warning("Execution did not complete")
