from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict

from app.src.db import User, sessionMaker
from app.src import exceptions, getters, identity
from app.src.loggers import logEvent
from app.src.functions import asUTC, makeExceptionResponses
from app.src.urls import URL_LOGIN, URL_SIGNUP

route_auth = APIRouter()


## Output Schema
class UserSchema(BaseModel):
    usn: str
    name: str
    year: int
    branch: str
    pickupPoint: str
    phone: str
    routeName: str
    busNumber: str
    role: str
    createdOn: Optional[datetime]


class UserResponse(BaseModel):
    message: str
    user: UserSchema


## Input Forms
class SignupForm(BaseModel):
    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    name: str | None = None
    usn: str | None = None
    year: int | None = None
    branch: str | None = None
    pickupPoint: str | None = None
    phone: str | None = None
    password: str | None = None
    routeName: str | None = None
    busNumber: str | None = None


class LoginForm(BaseModel):
    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    usn: str | None = None
    password: str | None = None


def userView(user: User) -> dict:
    return {
        "usn": user.usn,
        "name": user.name,
        "year": user.year,
        "branch": user.branch,
        "pickupPoint": user.pickup_point,
        "phone": user.phone,
        "routeName": user.route_name,
        "busNumber": user.bus_number,
        "role": user.role,
        "createdOn": asUTC(user.created_on),
    }


## API endpoints
@route_auth.post(
    URL_SIGNUP,
    tags=["Auth"],
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses=makeExceptionResponses(
        [
            exceptions.MissingFields,
            exceptions.ValidationFailed,
            exceptions.DuplicateIdentity(),
            exceptions.InternalError(),
        ]
    ),
    description="""
    Register a student account.
    The USN is stored upper-cased and must be unique. The password is hashed using Argon2 before storing.
    When `routeName` or `busNumber` is not given it is derived from `pickupPoint`.
    An unknown pickup point does not fail the signup, the placeholder route `Route Unknown` / `BUS000` is assigned instead.
    """,
)
async def signup(
    fParam: SignupForm,
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        user, assignment = await run_in_threadpool(
            identity.registerUser,
            session,
            name=fParam.name,
            usn=fParam.usn,
            year=fParam.year,
            branch=fParam.branch,
            pickup_point=fParam.pickupPoint,
            phone=fParam.phone,
            password=fParam.password,
            route_name=fParam.routeName,
            bus_number=fParam.busNumber,
        )

        userData = userView(user)
        await run_in_threadpool(
            logEvent,
            request_info,
            {
                "usn": user.usn,
                "route_name": user.route_name,
                "bus_number": user.bus_number,
                "route_source": assignment.source.name,
            },
        )
        return {"message": "User created successfully", "user": userData}
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()


@route_auth.post(
    URL_LOGIN,
    tags=["Auth"],
    response_model=UserResponse,
    responses=makeExceptionResponses(
        [
            exceptions.MissingFields,
            exceptions.InvalidCredentials(),
            exceptions.InternalError(),
        ]
    ),
    description="""
    Verify a USN and password and return the account with its route details.
    An unknown USN and a wrong password produce the same error.
    Accounts stored without a route or bus are completed from their pickup point before responding.
    """,
)
async def login(
    fParam: LoginForm,
    request_info=Depends(getters.requestInfo),
):
    session = sessionMaker()
    try:
        user, backfilled = await run_in_threadpool(
            identity.login, session, fParam.usn, fParam.password
        )

        if backfilled is not None:
            await run_in_threadpool(
                logEvent,
                request_info,
                {
                    "usn": user.usn,
                    "route_name": user.route_name,
                    "bus_number": user.bus_number,
                    "route_source": backfilled.source.name,
                },
            )
        return {"message": "Login successful", "user": userView(user)}
    except Exception as e:
        exceptions.handle(e)
    finally:
        session.close()
