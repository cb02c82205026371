from app import setup
from app.src import identity
from app.src.db import User
from app.src.enums import UserRole


def test_init_seeds_one_coordinator_per_route(session):
    setup.initDB(password="coord-pass")
    # Running it again does not duplicate accounts
    setup.initDB(password="coord-pass")

    coordinators = (
        session.query(User).filter(User.role == UserRole.COORDINATOR.value).all()
    )
    assert len(coordinators) == 12
    assert identity.authorizeCoordinator(session, "9876543213", "BUS004")
    assert not identity.authorizeCoordinator(session, "9876543213", "BUS001")

    user, _ = identity.login(session, "coord004", "coord-pass")
    assert (user.route_name, user.bus_number) == ("Route 4", "BUS004")
    assert user.pickup_point == "NITK"


def test_add_coordinator(session):
    setup.addCoordinator("c77", "Night shift", "9000000077", "BUS007", "pass-77")
    assert identity.authorizeCoordinator(session, "9000000077", "BUS007")
    assert identity.findByIdentity(session, "C77").route_name == "Route 7"
