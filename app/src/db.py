from sqlalchemy import (
    JSON,
    TEXT,
    Boolean,
    Column,
    DateTime,
    Integer,
    Float,
    String,
    create_engine,
    func,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from app.src.constants import (
    DB_URL,
    PSQL_DB_DRIVER,
    PSQL_DB_HOST,
    PSQL_DB_PASSWORD,
    PSQL_DB_NAME,
    PSQL_DB_PORT,
    PSQL_DB_USERNAME,
)
from app.src.enums import UserRole


# Global DBMS variables
dbURL = (
    DB_URL
    or f"{PSQL_DB_DRIVER}://{PSQL_DB_USERNAME}:{PSQL_DB_PASSWORD}@{PSQL_DB_HOST}:{PSQL_DB_PORT}/{PSQL_DB_NAME}"
)
engine = create_engine(url=dbURL, echo=False)
sessionMaker = sessionmaker(bind=engine, expire_on_commit=False)
ORMbase = declarative_base()


# ----------------------------------- General DB Models ---------------------------------------#
class User(ORMbase):
    """
    Represents a campus account, either a student who rides a bus or a
    coordinator who broadcasts the location of the bus assigned to them.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the user.

        usn (String(32)):
            University seat number, the login identity.
            Stored trimmed and upper-cased.
            Must not be null and unique.

        name (TEXT):
            Display name of the user.

        year (Integer):
            Academic year, between 1 and 4.

        branch (TEXT):
            Branch or department of study.

        pickup_point (TEXT):
            Stop where the user boards the bus.
            Expected to match a stop name in the route registry byte for byte.

        phone (String(10)):
            Ten digit phone number.
            For coordinators this is the key used to authorize location updates.

        password (TEXT):
            Hashed password used for authentication.
            Plaintext should never be stored here. Argon2 is used for secure hashing.

        route_name (String(32)):
            Assigned route, always in the "Route <n>" format.
            Never null, a placeholder route is stored when the pickup point is unknown.

        bus_number (String(16)):
            Assigned bus, always in the "BUS<nnn>" format.
            Never null, a placeholder bus is stored when the pickup point is unknown.

        role (String(16)):
            Either `student` or `coordinator`. Defaults to `student`.

        updated_on (DateTime):
            Timestamp automatically updated whenever the user is modified.

        created_on (DateTime):
            Timestamp of when the account was created.
    """

    __tablename__ = "campus_user"

    id = Column(Integer, primary_key=True)
    usn = Column(String(32), nullable=False, unique=True)
    name = Column(TEXT, nullable=False)
    year = Column(Integer, nullable=False)
    branch = Column(TEXT, nullable=False)
    pickup_point = Column(TEXT, nullable=False)
    phone = Column(String(10), nullable=False, index=True)
    password = Column(TEXT, nullable=False)
    # Route assignment
    route_name = Column(String(32), nullable=False)
    bus_number = Column(String(16), nullable=False)
    role = Column(String(16), nullable=False, default=UserRole.STUDENT.value)
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())


class BusLocation(ORMbase):
    """
    Holds the latest known position of a bus.

    There is at most one row per bus. Every location update overwrites the row,
    no history is kept.

    Columns:
        id (Integer):
            Primary key. Unique identifier for the record.

        bus_number (String(16)):
            The bus this position belongs to.
            Must not be null and unique.

        location (JSON):
            GeoJSON point, `{"type": "Point", "coordinates": [longitude, latitude]}`.
            Null only for a placeholder row created by a status change on a bus
            that never reported a position.

        speed (Float):
            Speed reported by the coordinator, non negative. Defaults to 0.

        timestamp (DateTime):
            Server time of the last location update.
            Strictly increasing for a given bus.

        is_active (Boolean):
            Whether the coordinator is currently broadcasting. Defaults to true.
            Forced to true on every location update.

        updated_by (String(10)):
            Phone number of the coordinator who sent the last update.

        updated_on (DateTime):
            Timestamp automatically updated whenever the record is modified.

        created_on (DateTime):
            Timestamp of when the record was created.
    """

    __tablename__ = "bus_location"

    id = Column(Integer, primary_key=True)
    bus_number = Column(String(16), nullable=False, unique=True)
    location = Column(JSON)
    speed = Column(Float, nullable=False, default=0)
    timestamp = Column(DateTime(timezone=True))
    is_active = Column(Boolean, nullable=False, default=True)
    updated_by = Column(String(10))
    # Metadata
    updated_on = Column(DateTime(timezone=True), onupdate=func.now())
    created_on = Column(DateTime(timezone=True), nullable=False, default=func.now())
