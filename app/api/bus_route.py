from typing import List
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.src import exceptions
from app.src.bus_routes import listRoutes, resolveStop
from app.src.functions import makeExceptionResponses
from app.src.urls import URL_ROUTE, URL_ROUTE_STOP

route_bus_route = APIRouter()


## Output Schema
class RouteSchema(BaseModel):
    name: str
    busNumber: str
    stops: List[str]


class StopAssignmentSchema(BaseModel):
    stop: str
    routeName: str
    busNumber: str


## Query Params
class StopQuery(BaseModel):
    name: str = Field(Query(min_length=1, description="Exact, case sensitive stop name"))


## API endpoints
@route_bus_route.get(
    URL_ROUTE,
    tags=["Route"],
    response_model=List[RouteSchema],
    description="""
    List every route with its bus and stops, in declaration order.
    Clients use the stop names as the choices for `pickupPoint`.
    """,
)
async def fetch_route():
    return [
        {"name": route.name, "busNumber": route.bus_number, "stops": list(route.stops)}
        for route in listRoutes()
    ]


@route_bus_route.get(
    URL_ROUTE_STOP,
    tags=["Route"],
    response_model=StopAssignmentSchema,
    responses=makeExceptionResponses([exceptions.UnknownStop()]),
    description="""
    Resolve a stop name to the route and bus serving it.
    Matching is exact, no case folding or whitespace trimming is applied.
    """,
)
async def fetch_stop_route(qParam: StopQuery = Depends()):
    assignment = resolveStop(qParam.name)
    if assignment is None:
        raise exceptions.UnknownStop()
    return {
        "stop": qParam.name,
        "routeName": assignment.route_name,
        "busNumber": assignment.bus_number,
    }
