from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field

from app.src.db import sessionMaker
from app.src import exceptions, getters, location
from app.src.loggers import logEvent
from app.src.functions import makeExceptionResponses
from app.src.urls import URL_LOCATION, URL_LOCATION_STATUS, URL_LOCATION_UPDATE

route_location = APIRouter()


## Output Schema
class GeoPointSchema(BaseModel):
    type: str
    coordinates: List[float]


class BusLocationSchema(BaseModel):
    busNumber: str
    location: Optional[GeoPointSchema]
    speed: float
    timestamp: Optional[datetime]
    isActive: bool
    updatedBy: Optional[str]


class UpdateResponse(BaseModel):
    success: bool
    location: BusLocationSchema


class StatusResponse(BaseModel):
    success: bool


class LocationSchema(BaseModel):
    busNumber: str
    latitude: float
    longitude: float
    speed: float
    lastUpdated: datetime


## Input Forms
class UpdateForm(BaseModel):
    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    busNumber: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    speed: float | None = Field(default=None, ge=0)
    coordinatorPhone: str | None = None


class StatusForm(BaseModel):
    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    busNumber: str | None = None
    isActive: bool | None = None
    coordinatorPhone: str | None = None


## API endpoints
@route_location.post(
    URL_LOCATION_UPDATE,
    tags=["Location"],
    response_model=UpdateResponse,
    responses=makeExceptionResponses(
        [
            exceptions.MissingFields,
            exceptions.InvalidCoordinate(),
            exceptions.UnauthorizedCoordinator(),
            exceptions.InternalError(),
        ]
    ),
    description="""
    Publish the current position of a bus.
    Only a coordinator whose phone number is assigned to the bus may publish.
    The previous position of the bus is replaced and the bus is marked active.
    The timestamp is taken from the server clock.
    """,
)
async def update_location(
    fParam: UpdateForm,
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        record = await run_in_threadpool(
            location.updateLocation,
            session,
            fParam.busNumber,
            fParam.latitude,
            fParam.longitude,
            fParam.speed,
            fParam.coordinatorPhone,
        )

        locationData = location.recordView(record)
        await run_in_threadpool(
            logEvent,
            request_info,
            {
                "bus_number": record.bus_number,
                "speed": locationData["speed"],
                "updated_by": record.updated_by,
            },
        )
        return {"success": True, "location": locationData}
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_location.post(
    URL_LOCATION_STATUS,
    tags=["Location"],
    response_model=StatusResponse,
    responses=makeExceptionResponses(
        [
            exceptions.MissingFields,
            exceptions.UnauthorizedCoordinator(),
            exceptions.InternalError(),
        ]
    ),
    description="""
    Mark a bus as broadcasting or not broadcasting without sending a position.
    Only a coordinator whose phone number is assigned to the bus may change its status.
    An inactive bus is reported as not found to riders.
    """,
)
async def set_status(
    fParam: StatusForm,
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        record = await run_in_threadpool(
            location.setStatus,
            session,
            fParam.busNumber,
            fParam.isActive,
            fParam.coordinatorPhone,
        )

        await run_in_threadpool(
            logEvent,
            request_info,
            {
                "bus_number": record.bus_number,
                "is_active": record.is_active,
                "updated_by": fParam.coordinatorPhone,
            },
        )
        return {"success": True}
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_location.get(
    URL_LOCATION,
    tags=["Location"],
    response_model=LocationSchema,
    responses=makeExceptionResponses(
        [exceptions.LocationNotFound(), exceptions.InternalError()]
    ),
    description="""
    Fetch the latest position of a bus.
    The position is returned only while the bus is active and was updated within the freshness window.
    A bus without data, an inactive bus and a stale position all produce the same not found response.
    """,
)
async def read_location(busNumber: str):
    session = sessionMaker()
    try:
        return await run_in_threadpool(location.readLocation, session, busNumber)
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
