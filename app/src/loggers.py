from logging import getLogger

from app.src import openobserve
from app.src.schemas import RequestInfo

logger = getLogger("uvicorn.error")


def logEvent(requestInfo: RequestInfo, data: dict) -> None:
    """
    Log an event to OpenObserve with request context.

    Args:
        requestInfo (RequestInfo): Metadata about the current request.
        data (dict): Additional event-specific details to include in the log.
            Must never carry a password, hashed or not.

    Notes:
        - Automatically attaches `_method` and `_path`.
    """
    logDetails = {
        "_method": requestInfo.method,
        "_path": requestInfo.path,
    }
    logDetails.update(data)
    openobserve.logEvent(logDetails)


def logWarning(message: str, *args) -> None:
    """Report a degraded but handled situation on the Uvicorn error logger."""
    logger.warning(message, *args)
