from typing import Any
from pydantic import BaseModel


class RequestInfo(BaseModel):
    method: str
    path: str


class HealthStatus(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    detail: Any
