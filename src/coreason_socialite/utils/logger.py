# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

import logging
import os
import sys
from typing import Any

from loguru import logger
from opentelemetry import trace

__all__ = ["logger", "configure_logging"]

ENV_LOG_LEVEL = "COREASON_SOCIALITE_LOG_LEVEL"
ENV_LOG_JSON = "COREASON_SOCIALITE_LOG_JSON"
ENV_LOG_FILE = "COREASON_SOCIALITE_LOG_FILE"


class InterceptHandler(logging.Handler):
    """
    Redirects standard logging messages to Loguru.
    httpx and opentelemetry log through the standard library; this keeps one output.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename in (logging.__file__, __file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def trace_id_injector(record: dict[str, Any]) -> None:
    """
    Injects OpenTelemetry trace_id and span_id into the log record.
    Used as a patcher for Loguru.
    """
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        record["extra"]["trace_id"] = format(ctx.trace_id, "032x")
        record["extra"]["span_id"] = format(ctx.span_id, "016x")


def configure_logging() -> None:
    """
    Configures the logger based on environment variables.
    Call this to reload configuration if env vars change.

    Environment:
        COREASON_SOCIALITE_LOG_LEVEL: Minimum level, defaults to INFO.
        COREASON_SOCIALITE_LOG_JSON: "true" to emit JSON on stdout instead of text on stderr.
        COREASON_SOCIALITE_LOG_FILE: Optional path of a rotating JSON log file.
    """
    log_level = os.getenv(ENV_LOG_LEVEL, "INFO").upper()
    log_json = os.getenv(ENV_LOG_JSON, "false").lower() == "true"
    log_file = os.getenv(ENV_LOG_FILE)

    try:
        logger.level(log_level)
    except ValueError:
        log_level = "INFO"

    # logger.configure(handlers=[]) drops every sink and sets the patcher in one go.
    logger.configure(handlers=[], patcher=trace_id_injector)  # type: ignore[arg-type]

    if log_json:
        logger.add(sys.stdout, level=log_level, serialize=True)
    else:
        logger.add(
            sys.stderr,
            level=log_level,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                "<level>{message}</level>"
            ),
        )

    if log_file:
        try:
            logger.add(
                log_file,
                rotation="500 MB",
                retention="10 days",
                serialize=True,
                enqueue=True,
                level=log_level,
            )
        except (PermissionError, OSError) as e:
            # Read-only filesystems keep console logging only
            logger.warning(f"File logging disabled, cannot open {log_file}: {e}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    numeric_level = logging.getLevelName(log_level)
    logging.getLogger().setLevel(numeric_level if isinstance(numeric_level, int) else logging.INFO)


# Initialize on import
configure_logging()
