import base64, json, requests
from logging import getLogger
from typing import Optional
from requests import Response

from app.src.constants import (
    OPENOBSERVE_ENABLED,
    OPENOBSERVE_HOST,
    OPENOBSERVE_ORG,
    OPENOBSERVE_PASSWORD,
    OPENOBSERVE_PORT,
    OPENOBSERVE_PROTOCOL,
    OPENOBSERVE_STREAM,
    OPENOBSERVE_TIMEOUT,
    OPENOBSERVE_USERNAME,
)

# Prepare Basic Auth credentials
credentials = base64.b64encode(
    bytes(OPENOBSERVE_USERNAME + ":" + OPENOBSERVE_PASSWORD, "utf-8")
).decode("utf-8")

# Default headers for all requests
headers = {"Content-type": "application/json", "Authorization": "Basic " + credentials}

# Construct OpenObserve endpoint URL
openobserve_host = f"{OPENOBSERVE_PROTOCOL}://{OPENOBSERVE_HOST}:{OPENOBSERVE_PORT}"
openobserve_url = f"{openobserve_host}/api/{OPENOBSERVE_ORG}/{OPENOBSERVE_STREAM}/_json"


def logEvent(eventData: dict) -> Optional[Response]:
    """
    Send an event log to the configured OpenObserve instance.

    This function serializes the given event data as JSON and sends it
    to the OpenObserve API using HTTP POST with Basic authentication.
    A delivery failure is reported on the Uvicorn error logger and does not
    fail the request that produced the event.

    Args:
        eventData (dict): A dictionary representing the event log to be sent.
            Example:
                {
                    "_method": "POST",
                    "_path": "/location/update",
                    "bus_number": "BUS004"
                }

    Returns:
        requests.Response | None: The HTTP response returned by the OpenObserve API,
        or None when shipping is disabled or the request failed.
    """
    if not OPENOBSERVE_ENABLED:
        return None
    try:
        return requests.post(
            openobserve_url,
            headers=headers,
            data=json.dumps(eventData, default=str),
            timeout=OPENOBSERVE_TIMEOUT,
        )
    except requests.RequestException as e:
        getLogger("uvicorn.error").warning("OpenObserve event not delivered: %s", e)
        return None
