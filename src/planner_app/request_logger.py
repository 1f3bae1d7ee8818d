import logging
from datetime import datetime

import httpx

logger = logging.getLogger("planner_app.requests")


async def log_request_to_console(request: httpx.Request):
    """
    Logs a concise, single-line summary of an outgoing request.
    """
    time_str = datetime.now().strftime("%H:%M:%S")
    auth = "bearer" if "authorization" in request.headers else "public"
    logger.debug(f"{time_str} -> {request.method} {request.url.path} ({auth})")


async def log_response_to_console(response: httpx.Response):
    """
    Logs status and latency for a completed response. Error statuses are
    raised to INFO so they show on the console.
    """
    request = response.request
    elapsed = ""
    try:
        elapsed = f" in {response.elapsed.total_seconds():.2f}s"
    except RuntimeError:
        # elapsed is only available once the body has been read
        pass
    level = logging.INFO if response.status_code >= 400 else logging.DEBUG
    logger.log(
        level,
        f"<- {request.method} {request.url.path} {response.status_code}{elapsed}",
    )


def get_event_hooks():
    """httpx event hooks wiring both loggers into a client."""
    return {
        "request": [log_request_to_console],
        "response": [log_response_to_console],
    }
