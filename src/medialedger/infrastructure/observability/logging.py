"""Structured logging configuration with JSON formatting and sweep IDs."""

import contextvars
import logging
import sys
import traceback
import uuid
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

# Hey future me, every reconciliation sweep gets its own ID and every log line written while
# that sweep runs carries it - including lines from verifier/resolver code running in worker
# threads, because asyncio.to_thread copies the context. To debug "why did my song vanish?"
# grep the sweep_id from the "Removing track" line and you see the full decision trail.
sweep_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("sweep_id", default="")


def get_sweep_id() -> str:
    """Get the current sweep ID from context ("" outside a sweep)."""
    return sweep_id_var.get()


def set_sweep_id(sweep_id: str | None = None) -> str:
    """Set the sweep ID in context, generating a short one when None.

    Returns:
        The sweep ID that was set
    """
    if sweep_id is None:
        sweep_id = uuid.uuid4().hex[:12]
    sweep_id_var.set(sweep_id)
    return sweep_id


class SweepIdFilter(logging.Filter):
    """Add sweep_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sweep_id = get_sweep_id()
        return True


class CompactExceptionFormatter(logging.Formatter):
    """Formatter that prints exception chains compactly, root cause first.

    Example output:
    ERROR │ catalog_reconciler:210 │ Cascade delete failed for track 3fa2...
    ╰─► OperationalError: disk I/O error
        File "repositories.py", line 92, in delete_by_stable_id
          result = await self.session.execute(stmt)
    ╰─► CascadeWriteFailedError: Cascade delete failed for track 3fa2...: disk I/O error
    """

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        sweep_id = getattr(record, "sweep_id", "")
        if sweep_id:
            return f"[{sweep_id}] {formatted}"
        return formatted

    def formatException(self, ei: Any) -> str:
        _exc_type, exc_value, _exc_tb = ei
        if exc_value is None:
            return ""

        chain: list[BaseException] = []
        current: BaseException | None = exc_value
        while current is not None and current not in chain:
            chain.append(current)
            current = current.__cause__ or current.__context__
        chain.reverse()

        lines: list[str] = []
        for exc in chain:
            lines.append(f"╰─► {exc.__class__.__name__}: {exc}")
            if exc.__traceback__ is None:
                continue
            for frame in traceback.extract_tb(exc.__traceback__):
                # only our own frames
                if "/site-packages/" in frame.filename or "medialedger" not in frame.filename:
                    continue
                lines.append(
                    f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}'
                )
                if frame.line:
                    lines.append(f"      {frame.line.strip()}")
        return "\n".join(lines)


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined,misc]
    """Custom JSON formatter with additional fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        sweep_id = getattr(record, "sweep_id", "")
        if sweep_id:
            log_record["sweep_id"] = sweep_id

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "medialedger",
) -> None:
    """Configure root logging. Call once at startup.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format for logs (log aggregation)
        app_name: Application name to include in the startup record
    """
    root_logger = logging.getLogger()

    # Remove existing handlers (tests and reloads call this repeatedly)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(SweepIdFilter())

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = CompactExceptionFormatter(
            fmt="%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s",
            datefmt="%H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Third-party noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"app_name": app_name, "log_level": log_level, "json_format": json_format},
    )
