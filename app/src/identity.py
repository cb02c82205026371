"""
Identity and authorization store.

Users are looked up by their upper-cased USN. Coordinators are authorized to
publish a bus location purely by the (phone, bus number) pair stored on
their account, re-checked on every call.
"""

from typing import Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.session import Session

from app.src import argon2, exceptions, validators
from app.src.bus_routes import RouteAssignment, assignRoute
from app.src.db import User
from app.src.enums import UserRole
from app.src.loggers import logWarning


def normalizeUsn(usn: Optional[str]) -> Optional[str]:
    if usn is None:
        return None
    return str(usn).strip().upper()


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def findByIdentity(session: Session, usn: Optional[str]) -> Optional[User]:
    usn = normalizeUsn(usn)
    if not usn:
        return None
    return session.query(User).filter(User.usn == usn).first()


def authorizeCoordinator(
    session: Session, phone: Optional[str], busNumber: Optional[str]
) -> bool:
    """
    Check whether `phone` belongs to a coordinator assigned to `busNumber`.

    Both values are compared exactly. Several coordinators sharing a bus
    are all authorized.
    """
    if validators.isMissing(phone) or validators.isMissing(busNumber):
        return False
    coordinator = (
        session.query(User.id)
        .filter(User.phone == phone)
        .filter(User.role == UserRole.COORDINATOR.value)
        .filter(User.bus_number == busNumber)
        .first()
    )
    return coordinator is not None


def createUser(
    session: Session,
    name: str,
    usn: str,
    year: int,
    branch: str,
    pickup_point: str,
    phone: str,
    password: str,
    route_name: str,
    bus_number: str,
    role: UserRole = UserRole.STUDENT,
) -> User:
    """
    Persist a new account with a hashed password.

    Args:
        session (Session): Active SQLAlchemy session.
        name, usn, year, branch, pickup_point, phone: Profile fields.
        password (str): Plain-text password, hashed with Argon2 before storing.
        route_name (str): Route in the "Route <n>" format.
        bus_number (str): Bus in the "BUS<nnn>" format.
        role (UserRole): Account role, student by default.

    Returns:
        User: The stored account.

    Raises:
        exceptions.ValidationFailed: If a field is missing or malformed.
        exceptions.DuplicateIdentity: If the USN is already registered.
    """
    fields = {
        "name": _clean(name),
        "usn": normalizeUsn(usn),
        "year": year,
        "branch": _clean(branch),
        "pickup_point": pickup_point,
        "phone": _clean(phone),
        "password": password,
        "route_name": _clean(route_name),
        "bus_number": _clean(bus_number),
        "role": role.value if isinstance(role, UserRole) else role,
    }
    violations = [
        f"{label} is required" for label in validators.missingUserFields(fields)
    ]
    violations.extend(validators.userViolations(fields))
    if violations:
        raise exceptions.ValidationFailed(violations)

    if findByIdentity(session, fields["usn"]) is not None:
        raise exceptions.DuplicateIdentity()

    fields["password"] = argon2.makePassword(password)
    user = User(**fields)
    session.add(user)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if exceptions.isUniqueViolation(e):
            raise exceptions.DuplicateIdentity() from e
        raise exceptions.ValidationFailed([str(e.orig)]) from e
    session.refresh(user)
    return user


def registerUser(
    session: Session,
    name: Optional[str],
    usn: Optional[str],
    year: Optional[int],
    branch: Optional[str],
    pickup_point: Optional[str],
    phone: Optional[str],
    password: Optional[str],
    route_name: Optional[str] = None,
    bus_number: Optional[str] = None,
) -> Tuple[User, RouteAssignment]:
    """
    Sign up a student.

    Missing route details are derived from the pickup point. If the pickup
    point is unknown the placeholder route and bus are stored and a warning is
    logged, registration still succeeds.

    Returns:
        Tuple[User, RouteAssignment]: The stored account and how its route was chosen.

    Raises:
        exceptions.MissingFields: If any non route field is absent.
        exceptions.ValidationFailed: If a field is malformed.
        exceptions.DuplicateIdentity: If the USN is already registered.
    """
    fields = {
        "name": name,
        "usn": usn,
        "year": year,
        "branch": branch,
        "pickup_point": pickup_point,
        "phone": phone,
        "password": password,
    }
    missing = validators.missingUserFields(fields, includeRoute=False)
    if missing:
        raise exceptions.MissingFields(missing)

    # Stop names are matched exactly as typed
    assignment = assignRoute(pickup_point, route_name, bus_number)
    if assignment.defaulted:
        logWarning(
            "Route for pickup point %r could not be resolved, assigned %s / %s",
            pickup_point,
            assignment.route_name,
            assignment.bus_number,
        )
    user = createUser(
        session,
        route_name=assignment.route_name,
        bus_number=assignment.bus_number,
        **fields,
    )
    return user, assignment


def backfillRoute(session: Session, user: User) -> Optional[RouteAssignment]:
    """
    Fill in the route and bus of an account stored without them.

    Returns:
        RouteAssignment | None: The new assignment, or None if the account
        already had both values and nothing was written.
    """
    if not validators.isMissing(user.route_name) and not validators.isMissing(
        user.bus_number
    ):
        return None
    assignment = assignRoute(user.pickup_point, user.route_name, user.bus_number)
    if assignment.defaulted:
        logWarning(
            "Route for pickup point %r of %s could not be resolved, assigned %s / %s",
            user.pickup_point,
            user.usn,
            assignment.route_name,
            assignment.bus_number,
        )
    user.route_name = assignment.route_name
    user.bus_number = assignment.bus_number
    session.commit()
    session.refresh(user)
    return assignment


def login(
    session: Session, usn: Optional[str], password: Optional[str]
) -> Tuple[User, Optional[RouteAssignment]]:
    """
    Verify credentials and return the account.

    An unknown USN and a wrong password raise the same error.

    Raises:
        exceptions.MissingFields: If the USN or password is absent.
        exceptions.InvalidCredentials: If the credentials do not match an account.
    """
    missing = validators.missingFields({"usn": usn, "password": password})
    if missing:
        raise exceptions.MissingFields(missing)

    user = findByIdentity(session, usn)
    if user is None:
        raise exceptions.InvalidCredentials()
    if not argon2.checkPassword(password, user.password):
        raise exceptions.InvalidCredentials()
    return user, backfillRoute(session, user)
