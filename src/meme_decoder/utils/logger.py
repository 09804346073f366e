"""
Unified logging for the decoder.

Console and rotating-file handlers share one text format that carries the
signature of the transaction being decoded. Decode failures additionally go
to the ``meme_decoder.failures`` logger, which can write JSON lines.
"""

import logging
import logging.handlers
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any

from meme_decoder.utils.decode_context import get_current_signature

DEFAULT_LOG_DIR = Path("logs")
TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(tx_signature)s | %(name)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FAILURE_LOGGER_NAME = "meme_decoder.failures"

ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_KEEP = 5

_STRUCTURED_FIELDS = ("event_type", "protocol", "idx", "error_code")

_logger_cache: Dict[str, logging.Logger] = {}
_installed_files: set = set()


class SignatureFilter(logging.Filter):
    """Adds the signature of the transaction being decoded to log records."""
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'tx_signature'):
            record.tx_signature = get_current_signature() or '-'
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the decode failure fields when present."""
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
            "signature": getattr(record, "tx_signature", None) or get_current_signature(),
        }
        payload.update(
            (field, getattr(record, field)) for field in _STRUCTURED_FIELDS if hasattr(record, field)
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


_signature_filter = SignatureFilter()


def _log_path(filename: str) -> Path:
    """Bare file names land in ``logs/``; the parent directory is created."""
    path = Path(filename)
    if path.parent == Path("."):
        path = DEFAULT_LOG_DIR / path.name
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _attach(target: logging.Logger, handler: logging.Handler, formatter: logging.Formatter,
            level: Optional[int] = None) -> None:
    if level is not None:
        handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(_signature_filter)
    target.addHandler(handler)


def _rotating_handler(path: Path) -> logging.Handler:
    return logging.handlers.RotatingFileHandler(
        str(path), maxBytes=ROTATE_BYTES, backupCount=ROTATE_KEEP, encoding='utf-8'
    )


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get or create a logger."""
    cached = _logger_cache.get(name)
    if cached is not None:
        return cached
    created = logging.getLogger(name)
    created.setLevel(level)
    created.addFilter(_signature_filter)
    _logger_cache[name] = created
    return created


def setup_file_logging(filename: str = "meme_decoder.log", level: int = logging.INFO) -> None:
    """Rotating text log on the root logger; a file already installed is not added twice."""
    path = _log_path(filename)
    if path in _installed_files:
        return

    root = logging.getLogger()
    root.setLevel(level)
    _attach(root, _rotating_handler(path), logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT), level)
    _installed_files.add(path)


def setup_console_logging(level: int = logging.INFO) -> None:
    """Text log to stdout on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    if any(getattr(h, "stream", None) is sys.stdout for h in root.handlers):
        return
    _attach(root, logging.StreamHandler(sys.stdout),
            logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT), level)


def setup_json_logging(filename: Optional[str] = None) -> logging.Logger:
    """Set up JSON logging for decode failures.

    Records always propagate to the root logger's text handlers; a filename
    adds a JSON-lines file next to them.
    """
    failures = logging.getLogger(FAILURE_LOGGER_NAME)
    failures.setLevel(logging.INFO)
    if filename is None:
        return failures

    if not any(isinstance(h, logging.FileHandler) for h in failures.handlers):
        _attach(failures, _rotating_handler(_log_path(filename)), JSONFormatter())
    return failures


def log_decode_failure(
    signature: str,
    protocol: Optional[str],
    idx: Optional[str],
    exception: Exception,
    extra: Optional[Dict[str, Any]] = None
) -> None:
    """Log a transaction that failed to decode, as text and as a JSON record."""
    failures = setup_json_logging()
    record = failures.makeRecord(
        FAILURE_LOGGER_NAME,
        logging.ERROR,
        "", 0,
        f"[DECODE_FAILED] {signature} protocol={protocol or '-'} idx={idx or '-'}: {exception}",
        (),
        (type(exception), exception, exception.__traceback__),
    )
    fields = {
        "event_type": "DECODE_FAILED",
        "error_code": type(exception).__name__,
        "tx_signature": signature,
        "protocol": protocol,
        "idx": idx,
        **(extra or {}),
    }
    for key, value in fields.items():
        setattr(record, key, value)
    failures.handle(record)
