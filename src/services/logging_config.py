"""
Logging Configuration for the quote pricing portal.

One root handler on stdout, JSON lines in production and a compact
readable line in development. Structured context travels on each record
as ``record.extra_data``; the request id comes from a context variable
set by the correlation middleware.

Also home to the quote calculation audit logger and the
``log_performance`` timing decorator.
"""

import inspect
import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

# Request id of the HTTP request being handled, if any
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)

NOISY_LOGGERS = ("urllib3", "httpx", "uvicorn.access")


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    context = {}
    request_id = request_id_var.get()
    if request_id:
        context["request_id"] = request_id
    context.update(getattr(record, 'extra_data', None) or {})
    return context


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for the log aggregator."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(_record_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ReadableFormatter(logging.Formatter):
    """Single-line development format, colored by level on a terminal."""

    LEVEL_COLORS = {
        'DEBUG': '36',
        'INFO': '32',
        'WARNING': '33',
        'ERROR': '31',
        'CRITICAL': '35',
    }

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def _level(self, levelname: str) -> str:
        label = f"{levelname:8s}"
        color = self.LEVEL_COLORS.get(levelname)
        if not self.use_color or color is None:
            return label
        return f"\033[{color}m{label}\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            datetime.now().strftime('%H:%M:%S.%f')[:-3],
            self._level(record.levelname),
            f"[{record.name}]",
            record.getMessage(),
        ]
        context = _record_context(record)
        if context:
            parts.append("| " + " ".join(f"{k}={v}" for k, v in context.items()))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that attaches fixed context to every record."""

    def process(self, msg: str, kwargs: Dict) -> tuple:
        # Adapter context first so per-call extra_data wins on key clashes
        extra = dict(kwargs.get('extra') or {})
        merged = {k: v for k, v in self.extra.items() if v is not None}
        merged.update(extra.get('extra_data') or {})
        extra['extra_data'] = merged
        kwargs['extra'] = extra
        return msg, kwargs


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """
    Install the root log handlers, replacing any already installed.

    Args:
        level: Root log level name
        json_output: JSON lines on stdout instead of the readable format
        log_file: Also write JSON lines to this file
    """
    console_formatter = JsonFormatter() if json_output else ReadableFormatter(
        use_color=sys.stdout.isatty()
    )
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(console_formatter)
    handlers: List[logging.Handler] = [console]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(JsonFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, **extra) -> ContextLogger:
    """Logger that adds ``extra`` (minus None values) to every record."""
    return ContextLogger(logging.getLogger(name), extra)


class QuoteCalculationLogger:
    """
    Audit logger for quote fee calculations.

    Records what was priced and what came out, so a disputed quote can be
    traced back to its inputs and table version.
    """

    def __init__(self, contact_email: Optional[str] = None, table_version: Optional[str] = None):
        self.logger = get_logger(
            "quote_calculation",
            contact_email=contact_email,
            table_version=table_version,
        )
        self._started: Optional[float] = None

    def start_calculation(self, includes_bookkeeping: bool, includes_taas: bool) -> None:
        self._started = time.perf_counter()
        self.logger.debug(
            "Quote calculation started",
            extra={'extra_data': {
                'includes_bookkeeping': includes_bookkeeping,
                'includes_taas': includes_taas,
            }}
        )

    def log_inputs(self, quote: Any) -> None:
        """Log the pricing inputs that were set on a QuoteInput."""
        inputs = quote.model_dump(exclude_none=True, exclude={'contact_email', 'company_name'})
        self.logger.debug(
            "Quote inputs",
            extra={'extra_data': {k: str(v) for k, v in inputs.items()}}
        )

    def log_result(self, fees: Any) -> None:
        """Log a CombinedFeeResult with the per-service monthly fees."""
        data = {
            'monthly_fee': str(fees.combined.monthly_fee),
            'setup_fee': str(fees.combined.setup_fee),
            'bookkeeping_monthly_fee': str(fees.bookkeeping.monthly_fee),
            'taas_monthly_fee': str(fees.taas.monthly_fee),
            'priceable': fees.is_priceable,
        }
        if self._started is not None:
            data['duration_ms'] = int((time.perf_counter() - self._started) * 1000)
        self.logger.info("Quote calculated", extra={'extra_data': data})

    def log_override(self, reason: Optional[str], setup_fee: Any) -> None:
        self.logger.info(
            "Cleanup override applied",
            extra={'extra_data': {'override_reason': reason, 'setup_fee': str(setup_fee)}}
        )

    def log_validation_error(self, field: str, error: str) -> None:
        self.logger.warning(
            f"Quote rejected: {field}",
            extra={'extra_data': {'field': field, 'error': error}}
        )


def log_performance(name: Optional[str] = None) -> Callable:
    """
    Decorator that logs how long a call took, sync or async.

    Failures are logged at ERROR with the exception text and re-raised.
    """
    def decorator(func: Callable) -> Callable:
        label = name or func.__name__
        perf_logger = get_logger("performance")

        def _report(started: float, error: Optional[Exception] = None) -> None:
            data: Dict[str, Any] = {'duration_ms': int((time.perf_counter() - started) * 1000)}
            if error is None:
                perf_logger.info(f"{label} completed", extra={'extra_data': data})
            else:
                data['error'] = str(error)
                perf_logger.error(f"{label} failed", extra={'extra_data': data})

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def timed_async(*args, **kwargs):
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _report(started, e)
                    raise
                _report(started)
                return result
            return timed_async

        @wraps(func)
        def timed(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _report(started, e)
                raise
            _report(started)
            return result
        return timed

    return decorator
