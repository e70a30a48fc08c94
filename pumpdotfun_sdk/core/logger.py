"""
Structured logging for the pump.fun SDK

Every module logs through get_logger(__name__) with an event name and
key/value context, for example:

    ledger_client_initialized   url, skip_preflight, confirmation_timeout_s
    buy_plan_built              mint, lamports_in, min_tokens_out, create_ata
    transaction_submitted       signature
    transaction_finalized       signature, slot
    trade_failed                flow, step, mint, error_type, signature

Nothing is configured on import. Applications call setup_logging() once,
or let TradeOrchestrator.from_config() apply the "logging" config section.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog
from structlog.typing import EventDict, Processor


def add_timestamp(logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp each event with UTC ISO time"""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_log_level(logger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["level"] = method_name
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    output_file: Optional[str] = None
) -> None:
    """
    Route SDK events to stdout (and optionally a file)

    JSON lines suit log shippers watching trade and submission events;
    "console" renders the same events for a terminal. Loggers obtained
    before this call pick up the new settings on their next event.

    Args:
        level: Minimum level (DEBUG shows quotes and fee samples)
        format: "json" or "console"
        output_file: Also append events to this file
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )
    logging.root.setLevel(numeric_level)

    if output_file:
        log_path = Path(output_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(output_file)
        file_handler.setLevel(numeric_level)
        logging.root.addHandler(file_handler)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        add_log_level,
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    # module-level loggers are bound at import, before any setup_logging call
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for an SDK module; pass __name__ so events carry the module path"""
    return structlog.get_logger(name)
