import argparse
from os import environ

from app.src import identity
from app.src.bus_routes import listRoutes
from app.src.constants import BUS_NUMBER_PREFIX
from app.src.db import User, sessionMaker, engine, ORMbase
from app.src.enums import UserRole


# One coordinator per route, in route declaration order
COORDINATOR_PHONES = [
    "9876543210",
    "9876543211",
    "9876543212",
    "9876543213",
    "9876543214",
    "9876543215",
    "9876543216",
    "9876543217",
    "9876543218",
    "9876543219",
    "9876543220",
    "9876543221",
]


# ----------------------------------- Project Setup -------------------------------------------#
def removeTables():
    ORMbase.metadata.drop_all(engine)
    print("* All tables deleted")


def createTables():
    ORMbase.metadata.create_all(engine)
    print("* All tables created")


def initDB(password: str = None):
    """Create a coordinator account for every route that has a phone number assigned."""
    password = password or environ.get("COORDINATOR_PASSWORD", "password")
    session = sessionMaker()
    try:
        for route, phone in zip(listRoutes(), COORDINATOR_PHONES):
            usn = "COORD" + route.bus_number[len(BUS_NUMBER_PREFIX) :]
            if identity.findByIdentity(session, usn) is not None:
                continue
            identity.createUser(
                session,
                name=f"{route.name} coordinator",
                usn=usn,
                year=1,
                branch="Transport",
                pickup_point=route.stops[0],
                phone=phone,
                password=password,
                route_name=route.name,
                bus_number=route.bus_number,
                role=UserRole.COORDINATOR,
            )
        count = (
            session.query(User).filter(User.role == UserRole.COORDINATOR.value).count()
        )
        print(f"* Initialization completed, {count} coordinators")
    finally:
        session.close()


def addCoordinator(usn: str, name: str, phone: str, busNumber: str, password: str):
    route = next((r for r in listRoutes() if r.bus_number == busNumber), None)
    if route is None:
        raise SystemExit(f"Unknown bus number {busNumber}")
    session = sessionMaker()
    try:
        identity.createUser(
            session,
            name=name,
            usn=usn,
            year=1,
            branch="Transport",
            pickup_point=route.stops[0],
            phone=phone,
            password=password,
            route_name=route.name,
            bus_number=route.bus_number,
            role=UserRole.COORDINATOR,
        )
        print(f"* Coordinator {usn.upper()} assigned to {busNumber}")
    finally:
        session.close()


# Setup database
if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("-rm", action="store_true", help="remove tables")
    parser.add_argument("-cr", action="store_true", help="create tables")
    parser.add_argument(
        "-init", action="store_true", help="add one coordinator per route"
    )
    parser.add_argument(
        "-coordinator",
        nargs=5,
        metavar=("USN", "NAME", "PHONE", "BUS_NUMBER", "PASSWORD"),
        help="add a coordinator account",
    )
    args = parser.parse_args()

    if args.rm:
        removeTables()
    if args.cr:
        createTables()
    if args.init:
        initDB()
    if args.coordinator:
        addCoordinator(*args.coordinator)
