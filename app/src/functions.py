from datetime import datetime, timezone
from math import isfinite
from typing import Dict, List, Optional, Type, Union
from shapely.geometry.base import BaseGeometry

from app.src import schemas
from app.src.exceptions import APIException


def makeExceptionResponses(
    exceptions: List[Union[APIException, Type[APIException]]],
) -> Dict[int, dict]:
    """
    Generate OpenAPI response documentation from APIException classes or instances.

    Exceptions whose constructor needs arguments can be listed as classes,
    their class level status code, detail and headers are used.

    Args:
        exceptions (List[APIException | Type[APIException]]): Exceptions to document.

    Returns:
        Dict[int, dict]: A dictionary of OpenAPI response specs grouped by status code.
    """
    responses = {}

    for exception in exceptions:
        exceptionCls = exception if isinstance(exception, type) else type(exception)
        status_code = exception.status_code
        example_key = exceptionCls.__name__
        example_value = {
            "summary": str(exception.headers),
            "value": {"detail": exception.detail},
        }

        if status_code not in responses:
            responses[status_code] = {
                "model": schemas.ErrorResponse,
                "content": {
                    "application/json": {"examples": {example_key: example_value}}
                },
            }
        else:
            responses[status_code]["content"]["application/json"]["examples"][
                example_key
            ] = example_value

    return responses


def isSRID4326(wktGeom: BaseGeometry) -> bool:
    """
    Validate whether a Shapely geometry uses coordinates consistent with SRID 4326 (WGS84).

    Latitude must be within [-90, 90] and longitude within [-180, 180].
    Coordinates are read in (longitude, latitude) order.

    Example:
        >>> from shapely.geometry import Point
        >>> isSRID4326(Point(77.5946, 12.9716))
        True
        >>> isSRID4326(Point(200, 95))
        False
    """
    for longitude, latitude in wktGeom.coords:
        if not (isfinite(longitude) and isfinite(latitude)):
            return False
        if not (-90 <= latitude <= 90) or not (-180 <= longitude <= 180):
            return False
    return True


def utcNow() -> datetime:
    return datetime.now(timezone.utc)


def asUTC(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to a naive datetime read back from the database.

    Timestamps are always written in UTC, but backends without timezone
    support (SQLite) return them naive.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
