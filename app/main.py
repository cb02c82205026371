from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.src import schemas
from app.src.constants import API_TITLE, API_VERSION
from app.src.exceptions import ValidationFailed, formatValidationErrors
from app.api import auth, bus_location, bus_route


app = FastAPI(title=API_TITLE, version=API_VERSION)

origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.route_auth)
app.include_router(bus_location.route_location)
app.include_router(bus_route.route_bus_route)


# Malformed bodies are client errors like any other validation failure
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationFailed(formatValidationErrors(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": error.detail},
        headers=error.headers,
    )


# Health check endpoint
@app.get("/health", tags=["Health Check"], response_model=schemas.HealthStatus)
async def health_check():
    return {"status": "OK", "version": API_VERSION}
