import logging
import json
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Union

from .error_handler import classify_error, mask_credential
from .utils.paths import get_logs_dir


class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logs."""

    def format(self, record):
        # The message is already a dict, so we just format it as a JSON string
        return json.dumps(record.msg)


# Module-level state for lazy initialization
_failure_logger: Optional[logging.Logger] = None
_configured_logs_dir: Optional[Path] = None


def configure_failure_logger(logs_dir: Optional[Union[Path, str]] = None) -> None:
    """
    Configure the failure logger to use a specific logs directory.

    Call this before first use if you want to override the default location.
    If not called, the logger will use get_logs_dir() on first use.
    """
    global _configured_logs_dir, _failure_logger
    _configured_logs_dir = Path(logs_dir) if logs_dir else None
    # Reset logger so it gets reconfigured on next use
    _failure_logger = None


def _setup_failure_logger(logs_dir: Path) -> logging.Logger:
    """Sets up a dedicated JSON logger writing to failures.log."""
    logger = logging.getLogger("failure_logger")
    logger.setLevel(logging.INFO)
    logger.propagate = False

    # Clear existing handlers to prevent duplicates on re-setup
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    try:
        logs_dir.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            logs_dir / "failures.log",
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=2,
            encoding="utf-8",
        )
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    except (OSError, PermissionError, IOError) as e:
        logging.warning(f"Cannot create failure log file handler: {e}")
        logger.addHandler(logging.NullHandler())

    return logger


def get_failure_logger() -> logging.Logger:
    """Get the failure logger, initializing it lazily if needed."""
    global _failure_logger, _configured_logs_dir

    if _failure_logger is None:
        logs_dir = _configured_logs_dir if _configured_logs_dir else get_logs_dir()
        _failure_logger = _setup_failure_logger(logs_dir)

    return _failure_logger


# Get the main library logger for concise, propagated messages
main_lib_logger = logging.getLogger("planner_client")


def _extract_response_body(error: BaseException) -> Optional[str]:
    """Extract the response body from planner or httpx errors, if any."""
    response = getattr(error, "response", None)
    if response is None:
        return None
    try:
        return response.text or None
    except Exception:
        return None


def log_failure(
    method: str,
    path: str,
    error: BaseException,
    access_token: Optional[str] = None,
):
    """
    Logs a detailed failure record to failures.log and a concise summary to
    the main library logger.

    Args:
        method: HTTP method of the failed request
        path: API path of the failed request
        error: The exception that ended the request
        access_token: Token that was attached (masked before logging)
    """
    classified = classify_error(error)
    raw_response = _extract_response_body(error)

    # Walk the cause chain (renewal errors hang off SessionExpiredTerminal)
    error_chain = []
    visited = set()
    current_error = error
    while current_error:
        error_id = id(current_error)
        if error_id in visited:
            break
        visited.add(error_id)

        error_chain.append(
            {
                "type": type(current_error).__name__,
                "message": str(current_error)[:2000],
            }
        )
        current_error = getattr(current_error, "__cause__", None) or getattr(
            current_error, "__context__", None
        )
        if len(error_chain) > 5:
            break

    detailed_log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "method": method,
        "path": path,
        "token_ending": mask_credential(access_token),
        "error_type": classified.error_type,
        "status_code": classified.status_code,
        "error_message": str(error)[:5000],
        "raw_response": raw_response[:10000] if raw_response else None,
        "error_chain": error_chain if len(error_chain) > 1 else None,
    }

    summary_message = (
        f"{method} {path} failed ({classified.error_type}): {type(error).__name__}. "
        f"See failures.log for details."
    )

    try:
        get_failure_logger().error(detailed_log_data)
    except (OSError, IOError) as e:
        logging.warning(f"Failed to write to failures.log: {e}")

    main_lib_logger.error(summary_message)
