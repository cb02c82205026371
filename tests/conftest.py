import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Configuration is read at import time, so it has to be in place before `app` loads
_DB_DIR = tempfile.mkdtemp(prefix="campus-bus-")
os.environ["DB_URL"] = f"sqlite:///{Path(_DB_DIR) / 'tracker.db'}"
os.environ["OPENOBSERVE_ENABLED"] = "false"
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "8"
os.environ["ARGON2_PARALLELISM"] = "1"

from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.src import identity  # noqa: E402
from app.src.db import ORMbase, engine, sessionMaker  # noqa: E402
from app.src.enums import UserRole  # noqa: E402

COORDINATOR_PHONE = "9876543213"
COORDINATOR_PASSWORD = "coord-pass"


@pytest.fixture(autouse=True)
def tables():
    ORMbase.metadata.create_all(engine)
    try:
        yield
    finally:
        ORMbase.metadata.drop_all(engine)


@pytest.fixture
def session():
    session = sessionMaker()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client


def make_user(session, **overrides):
    fields = {
        "name": "Asha Rao",
        "usn": "4so21cs001",
        "year": 2,
        "branch": "CSE",
        "pickup_point": "NITK",
        "phone": "9123456780",
        "password": "secret-pass",
        "route_name": "Route 4",
        "bus_number": "BUS004",
        "role": UserRole.STUDENT,
    }
    fields.update(overrides)
    return identity.createUser(session, **fields)


@pytest.fixture
def coordinator(session):
    return make_user(
        session,
        name="Route 4 coordinator",
        usn="coord004",
        phone=COORDINATOR_PHONE,
        password=COORDINATOR_PASSWORD,
        role=UserRole.COORDINATOR,
    )
