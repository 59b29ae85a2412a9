"""Structured logging for folio.

Every module takes a logger once at import time:

    logger = LoggerFactory.get_logger()
    logger.warning("snapshot.exchange_rate_missing", currency="USD", on="2025-01-31")

Event names are dotted ``<component>.<what_happened>`` strings; context goes
in keyword arguments, never in the event name.

Levels used by the library:

    DEBUG    market-data facts skipped because the ledger already has them
    INFO     journal built (event, transaction and market-event counts)
    WARNING  best-effort fallbacks (missing exchange rate, oversold position)
    ERROR    journal construction failures

The application owns configuration: call LoggerFactory.configure() once at
startup. Without it, the first get_logger() installs console defaults.
"""

import inspect
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOG_FILE = Path("logs/folio.log")

_TIMESTAMP_FORMATS = {
    "compact": "%y%m%d-%H%M%S",
    "time": "%H:%M:%S",
    "short": "%m%dT%H%M%S",
}

_LEVEL_COLORS = {
    "debug": "\033[36m",
    "info": "\033[32m",
    "warning": "\033[33m",
    "error": "\033[31m",
    "critical": "\033[35m",
}
_RESET = "\033[0m"
_GRAY = "\033[90m"


class LoggingConfig(BaseModel):
    """
    Logging settings.

    Console output follows ``level``; the optional file output follows
    ``file_level`` and is always JSON lines.

    Timestamp formats:
        iso      2025-10-22T20:50:07.288824+00:00
        compact  251022-205007.28 (default)
        time     20:50:07.28
        short    1022T205007
    """

    level: LogLevel = Field(default="INFO", description="Minimum console log level")
    format: Literal["console", "json"] = Field(default="console", description="Console renderer")
    timestamp_format: Literal["iso", "compact", "time", "short"] = Field(
        default="compact",
        description="Timestamp format for console output",
    )
    enable_file: bool = Field(default=False, description="Also write JSON lines to a file")
    file_path: Path | None = Field(default=None, description="Log file (logs/folio.log if None)")
    file_level: LogLevel = Field(default="WARNING", description="Minimum file log level")
    file_rotation: bool = Field(default=True, description="Rotate the file when it grows too large")
    max_file_size_mb: int = Field(default=10, description="Rotation threshold in MB")
    backup_count: int = Field(default=3, description="Rotated files to keep")


def _timestamper(fmt: str) -> Any:
    """Processor stamping 'log_timestamp' (not 'timestamp', which domain events may carry)."""

    def add_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        if fmt == "iso":
            event_dict["log_timestamp"] = now.isoformat()
        elif fmt == "short":
            event_dict["log_timestamp"] = now.strftime(_TIMESTAMP_FORMATS["short"])
        else:
            centis = now.microsecond // 10000
            event_dict["log_timestamp"] = f"{now.strftime(_TIMESTAMP_FORMATS[fmt])}.{centis:02d}"
        return event_dict

    return add_timestamp


def _render_console(logger: Any, method_name: str, event_dict: dict[str, Any]) -> str:
    """One line: time [level] event | key=value ... (module:line)."""
    timestamp = event_dict.pop("log_timestamp", "")
    level = str(event_dict.pop("level", method_name)).lower()
    event = event_dict.pop("event", "")
    filename = event_dict.pop("filename", "")
    lineno = event_dict.pop("lineno", "")
    event_dict.pop("logger", None)
    exception = event_dict.pop("exception", None)

    parts = [timestamp, f"[{_LEVEL_COLORS.get(level, '')}{level}{_RESET}]", str(event)]
    context = " ".join(f"{key}={value}" for key, value in sorted(event_dict.items()) if not key.startswith("_"))
    if context:
        parts.append(f"{_GRAY}|{_RESET} {context}")
    if filename and lineno:
        parts.append(f"{_GRAY}({Path(filename).stem}:{lineno}){_RESET}")

    line = " ".join(part for part in parts if part)
    return f"{line}\n{exception}" if exception else line


class LoggerFactory:
    """
    Process-wide structlog configuration routed through stdlib logging.

    structlog builds the event dict; stdlib handlers (console, optional
    rotating file) render it through ProcessorFormatter, so records from
    plain ``logging`` users get the same treatment.

    Example:
        >>> LoggerFactory.configure(LoggingConfig(level="DEBUG", enable_file=True))
        >>> logger = LoggerFactory.get_logger()
        >>> logger.info("journal.built", events=120, currency="EUR")
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Install handlers and the structlog pipeline.

        Args:
            config: Logging settings (defaults when None)
        """
        config = config or LoggingConfig()
        cls._config = config

        pre_chain = cls._pre_chain(config.timestamp_format)
        console = logging.StreamHandler(stream=sys.stdout)
        console.setLevel(config.level)
        renderer = _render_console if config.format == "console" else structlog.processors.JSONRenderer()
        console.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))

        handlers: list[logging.Handler] = [console]
        root_level = logging.getLevelName(config.level)
        if config.enable_file:
            if config.file_path is None:
                config.file_path = DEFAULT_LOG_FILE
            handlers.append(cls._file_handler(config, pre_chain))
            root_level = min(root_level, logging.getLevelName(config.file_level))

        logging.basicConfig(level=root_level, handlers=handlers, force=True)

        if config.format == "console":
            exception_processors = [
                structlog.dev.set_exc_info,
                structlog.processors.ExceptionRenderer(structlog.dev.plain_traceback),  # type: ignore[arg-type]
            ]
        else:
            exception_processors = [structlog.processors.format_exc_info]

        structlog.configure(
            processors=[*pre_chain, *exception_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            # Module-level loggers must follow later reconfiguration.
            cache_logger_on_first_use=False,
        )
        cls._configured = True

    @staticmethod
    def _pre_chain(timestamp_format: str) -> list[Any]:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _timestamper(timestamp_format),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.FILENAME, structlog.processors.CallsiteParameter.LINENO]
            ),
        ]

    @staticmethod
    def _file_handler(config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        """JSON-lines file handler, rotating unless disabled."""
        path = config.file_path or DEFAULT_LOG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler
        if config.file_rotation:
            handler = RotatingFileHandler(
                filename=str(path),
                maxBytes=config.max_file_size_mb * 1024 * 1024,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(filename=str(path), encoding="utf-8")
        handler.setLevel(config.file_level)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            )
        )
        return handler

    @classmethod
    def get_logger(cls, name: str | None = None) -> Any:
        """
        Logger named after the calling module unless name is given.

        Configures defaults on first use.
        """
        if not cls._configured:
            cls.configure()
        if name is None:
            caller = inspect.currentframe()
            caller = caller.f_back if caller is not None else None
            name = caller.f_globals.get("__name__", "folio") if caller is not None else "folio"
        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        return cls._config if cls._config is not None else LoggingConfig()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Drop handlers and structlog configuration (tests)."""
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        root.setLevel(logging.NOTSET)
        cls._config = None
        cls._configured = False
        structlog.reset_defaults()
