"""Logfire-backed logger with composable output sinks."""

from __future__ import annotations

import contextlib
import os
from abc import abstractmethod
from pathlib import Path
from typing import Any

from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, model_validator

from prmerge.core.base import BaseConfig

_current_logger: Logger | None = None


class _LoggerProxy:
    """Forwards attribute access to the active Logger.

    Before setup_logger() has run, every method is a no-op so modules
    can log at import time without caring about initialization order.
    """

    def __getattr__(self, name):
        if _current_logger is None:
            def _noop(*args, **kwargs):  # noqa: ARG001
                pass
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


# Module-level logger, imported everywhere
logger = _LoggerProxy()


class LevelFilteringExporter(SpanExporter):
    """Span exporter that drops spans below a minimum level."""

    # Level names to OpenTelemetry severity numbers
    _level_thresholds = {
        'spew': logs_pb2.SEVERITY_NUMBER_TRACE,
        'trace': logs_pb2.SEVERITY_NUMBER_TRACE3,
        'debug': logs_pb2.SEVERITY_NUMBER_DEBUG,
        'info': logs_pb2.SEVERITY_NUMBER_INFO,
        'warn': logs_pb2.SEVERITY_NUMBER_WARN,
        'error': logs_pb2.SEVERITY_NUMBER_ERROR,
        'fatal': logs_pb2.SEVERITY_NUMBER_FATAL,
    }

    def __init__(self, exporter: SpanExporter, min_level: str | None):
        self._exporter = exporter
        self._min_severity = self._level_thresholds.get(
            (min_level or "info").lower(), logs_pb2.SEVERITY_NUMBER_INFO
        )

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        kept = [
            span for span in spans
            if (span.attributes or {}).get(
                'logfire.level_num', logs_pb2.SEVERITY_NUMBER_INFO
            ) >= self._min_severity
        ]
        if kept:
            return self._exporter.export(kept)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


class Sink(BaseConfig):
    """Base class for log output sinks.

    Each sink is an independent output destination. close() is reached
    through the BaseCloseable cascade when the Logger is closed.
    """

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Log level for this sink. If None, inherits from Logger.level. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    format_template: str | None = Field(
        default="{timestamp:%Y-%m-%d %H:%M:%S} {level:<5} {message}",
        description=(
            "Format template. Fields: timestamp, level, message, "
            "location. None writes raw span JSON."
        )
    )

    _processor: Any = PrivateAttr(default=None)

    @staticmethod
    def _level_name(level_num: int) -> str:
        for name in ('fatal', 'error', 'warn', 'info', 'debug', 'trace'):
            if level_num >= LevelFilteringExporter._level_thresholds[name]:
                return name
        return 'spew'

    def _format_span(self, span) -> str:
        if not self.format_template:
            return span.to_json() + os.linesep

        from datetime import UTC, datetime

        attrs = span.attributes or {}
        filepath = attrs.get("code.filepath", "")
        data = {
            'timestamp': datetime.fromtimestamp(
                span.start_time / 1e9, tz=UTC
            ),
            'level': self._level_name(attrs.get(
                "logfire.level_num", logs_pb2.SEVERITY_NUMBER_INFO
            )),
            'message': attrs.get("logfire.msg", span.name),
            'location': (
                f"{filepath}:{attrs.get('code.lineno', '')}"
                if filepath else ""
            ),
        }
        try:
            formatted = self.format_template.format(**data)
        except KeyError as e:
            return f"ERROR: Invalid template field {e}\n"

        # Append caller-supplied attributes
        skip_prefixes = (
            'otel.', 'telemetry.', 'service.', 'process.', 'code.',
            'logfire.',
        )
        extra = {
            key: value for key, value in attrs.items()
            if not key.startswith(skip_prefixes)
        }
        if extra:
            formatted += " │ " + ' '.join(
                f"{k}={v!r}" for k, v in sorted(extra.items())
            )
        return formatted + '\n'

    @abstractmethod
    def create_processor(self, log_root: Path, run_name: str):
        """Create the OpenTelemetry span processor for this sink.

        Args:
            log_root: Root directory for log files
            run_name: Name of the current run, used in file paths

        Returns:
            SpanProcessor instance or None if not applicable
        """

    def close(self):
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """Console output sink."""

    verbose: bool = Field(default=False, description="Show span details")
    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never"
    )

    def create_processor(self, log_root: Path, run_name: str):
        # Console output is configured through logfire.configure()
        return None


class FileSink(Sink):
    """File output sink."""

    enabled: bool = Field(default=False, description="Enable file logging")
    path: str = Field(
        default="{log_root}/{run_name}/prmerge.log",
        description="Log file path template"
    )

    _file: Any = PrivateAttr(default=None)

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
        )

        log_path = Path(
            self.path.format(log_root=log_root, run_name=run_name)
        )
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Line buffered; stays open for the lifetime of the sink
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115

        exporter = ConsoleSpanExporter(
            out=self._file, formatter=self._format_span
        )
        return BatchSpanProcessor(
            LevelFilteringExporter(exporter, self.level)
        )

    def close(self):
        # Processor flushes into the file, so it goes first
        super().close()
        if self._file and not self._file.closed:
            self._file.close()


class LogfireSink(Sink):
    """Logfire.dev cloud sink."""

    enabled: bool = Field(
        default=False,
        description="Send telemetry to logfire.dev cloud"
    )
    token: str | None = Field(
        default=None,
        description="API token (or use LOGFIRE_TOKEN env var)"
    )

    def create_processor(self, log_root: Path, run_name: str):
        # Configured globally through logfire.configure()
        return None


class Logger(BaseConfig):
    """Logger with composable output sinks.

    Closing the logger closes every sink through the BaseCloseable
    cascade.
    """

    level: str = Field(
        default="info",
        description=(
            "Default log level for all sinks. Individual sinks can override. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    console: ConsoleSink = Field(
        default_factory=ConsoleSink,
        description="Console output configuration"
    )
    file: FileSink = Field(
        default_factory=FileSink,
        description="File logging configuration"
    )
    logfire: LogfireSink = Field(
        default_factory=LogfireSink,
        description="Logfire.dev cloud configuration"
    )

    @model_validator(mode='after')
    def _cascade_level_to_sinks(self) -> 'Logger':
        for sink in [self.console, self.file]:
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, run_name: str):
        """Initialize all enabled sinks and configure logfire.

        Args:
            log_root: Root directory for log files
            run_name: Name of the current run
        """
        import logfire
        from logfire import ConsoleOptions

        for sink in [self.console, self.file, self.logfire]:
            if sink.enabled:
                sink._processor = sink.create_processor(log_root, run_name)

        processors = [
            self.file._processor
        ] if self.file.enabled and self.file._processor else None

        console_config = (
            ConsoleOptions(
                min_log_level=self.console.level,
                verbose=self.console.verbose,
                colors=self.console.colors,
                include_timestamps=True,
            )
            if self.console.enabled
            else False
        )

        logfire.configure(
            service_name=f"prmerge-{run_name}",
            send_to_logfire=self.logfire.enabled,
            token=self.logfire.token if self.logfire.enabled else None,
            console=console_config,
            additional_span_processors=processors,
        )

    # Logging methods, delegated to logfire

    def info(self, msg: str, **kwargs):
        import logfire
        logfire.info(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        import logfire
        logfire.debug(msg, **kwargs)

    def trace(self, msg: str, **kwargs):
        import logfire
        logfire.log(
            level=LevelFilteringExporter._level_thresholds['trace'],
            msg_template=msg,
            attributes=kwargs or None,
        )

    def spew(self, msg: str, **kwargs):
        """Log below trace, for very noisy internals."""
        import logfire
        logfire.log(
            level=LevelFilteringExporter._level_thresholds['spew'],
            msg_template=msg,
            attributes=kwargs or None,
        )

    def warn(self, msg: str, **kwargs):
        import logfire
        logfire.warn(msg, **kwargs)

    warning = warn

    def error(self, msg: str, **kwargs):
        import logfire
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Return a span context manager.

        Usage:
            with logger.span("Fetching target branches"):
                ...
        """
        import logfire
        return logfire.span(msg, **kwargs)

    def log(self, level: str, msg: str, **kwargs):
        import logfire
        logfire.log(level, msg, attributes=kwargs or None)


def setup_logger(
    log_root: Path,
    run_name: str,
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
    logfire: LogfireSink | None = None,
    level: str = "info",
) -> Logger:
    """Initialize the global logger singleton.

    Called by Config after loading; tests call it directly.

    Args:
        log_root: Root directory for log files
        run_name: Name of the current run (e.g. "angular-pr-42")
        console: Console sink config (or None for defaults)
        file: File sink config (or None for defaults)
        logfire: Logfire sink config (or None for defaults)
        level: Default level for sinks without their own

    Returns:
        Logger: The initialized global logger instance
    """
    global _current_logger

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
        logfire=logfire or LogfireSink(),
    )
    _current_logger.setup(log_root, run_name)
    return _current_logger
