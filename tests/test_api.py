from datetime import datetime, timedelta, timezone

import pytest

from app.src import location
from app.src.constants import DEFAULT_BUS_NUMBER, DEFAULT_ROUTE_NAME

from conftest import COORDINATOR_PHONE

T0 = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


def _signup_body(**overrides):
    body = {
        "name": "Asha Rao",
        "usn": "4so21cs001",
        "year": 2,
        "branch": "CSE",
        "pickupPoint": "NITK",
        "phone": "9123456780",
        "password": "secret-pass",
    }
    body.update(overrides)
    return {key: value for key, value in body.items() if value is not None}


def _update_body(**overrides):
    body = {
        "busNumber": "BUS004",
        "latitude": 12.97,
        "longitude": 77.59,
        "speed": 20,
        "coordinatorPhone": COORDINATOR_PHONE,
    }
    body.update(overrides)
    return body


@pytest.fixture
def clock(monkeypatch):
    current = {"now": T0}
    monkeypatch.setattr(location, "utcNow", lambda: current["now"])
    return current


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


# ---------------------------------------------------------------------------
# Signup / login
# ---------------------------------------------------------------------------
def test_signup_resolves_route_from_pickup_point(client):
    response = client.post("/auth/signup", json=_signup_body())
    assert response.status_code == 201
    user = response.json()["user"]
    assert user["usn"] == "4SO21CS001"
    assert user["routeName"] == "Route 4"
    assert user["busNumber"] == "BUS004"
    assert user["role"] == "student"
    assert "password" not in user


def test_signup_accepts_string_year_and_numeric_phone(client):
    response = client.post(
        "/auth/signup", json=_signup_body(year="3", phone=9123456780)
    )
    assert response.status_code == 201
    assert response.json()["user"]["year"] == 3
    assert response.json()["user"]["phone"] == "9123456780"


def test_signup_unknown_pickup_point_uses_placeholder(client):
    response = client.post("/auth/signup", json=_signup_body(pickupPoint="Atlantis"))
    assert response.status_code == 201
    user = response.json()["user"]
    assert user["routeName"] == DEFAULT_ROUTE_NAME
    assert user["busNumber"] == DEFAULT_BUS_NUMBER


def test_signup_keeps_explicit_route(client):
    response = client.post(
        "/auth/signup",
        json=_signup_body(routeName="Route 9", busNumber="BUS009"),
    )
    assert response.status_code == 201
    assert response.json()["user"]["busNumber"] == "BUS009"


def test_signup_lists_missing_fields(client):
    response = client.post(
        "/auth/signup", json=_signup_body(name=None, password=None, pickupPoint="Atlantis")
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["missingFields"] == ["name", "password"]


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"year": 5}, "Year must be a number between 1 and 4"),
        ({"phone": "12345"}, "Phone number must be 10 digits"),
        ({"routeName": "Line 4", "busNumber": "BUS004"}, 'Must start with "Route "'),
        ({"routeName": "Route 4", "busNumber": "V004"}, 'Must start with "BUS"'),
    ],
)
def test_signup_validation_errors(client, overrides, message):
    response = client.post("/auth/signup", json=_signup_body(**overrides))
    assert response.status_code == 400
    assert any(message in v for v in response.json()["detail"]["validationErrors"])


def test_signup_rejects_malformed_body(client):
    response = client.post("/auth/signup", json=_signup_body(year="second"))
    assert response.status_code == 400
    response = client.post("/auth/signup", json=_signup_body(role="coordinator"))
    assert response.status_code == 400


def test_signup_duplicate_usn(client):
    assert client.post("/auth/signup", json=_signup_body()).status_code == 201
    response = client.post(
        "/auth/signup", json=_signup_body(usn="4SO21CS001", phone="9000000000")
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "USN already registered"


def test_login_returns_route_info(client):
    client.post("/auth/signup", json=_signup_body())
    response = client.post(
        "/auth/login", json={"usn": "4so21cs001", "password": "secret-pass"}
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert (user["routeName"], user["busNumber"]) == ("Route 4", "BUS004")


def test_login_failures_share_one_message(client):
    client.post("/auth/signup", json=_signup_body())
    wrong_password = client.post(
        "/auth/login", json={"usn": "4SO21CS001", "password": "nope"}
    )
    unknown_usn = client.post(
        "/auth/login", json={"usn": "UNKNOWN1", "password": "secret-pass"}
    )
    assert wrong_password.status_code == unknown_usn.status_code == 401
    assert wrong_password.json() == unknown_usn.json()


def test_login_requires_credentials(client):
    response = client.post("/auth/login", json={"usn": "4SO21CS001"})
    assert response.status_code == 400
    assert response.json()["detail"]["missingFields"] == ["password"]


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------
def test_update_then_read(client, coordinator, clock):
    response = client.post("/location/update", json=_update_body())
    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["location"]["location"]["coordinates"] == [77.59, 12.97]
    assert payload["location"]["isActive"] is True

    clock["now"] = T0 + timedelta(minutes=4)
    response = client.get("/location/BUS004")
    assert response.status_code == 200
    data = response.json()
    assert data["busNumber"] == "BUS004"
    assert (data["latitude"], data["longitude"]) == (12.97, 77.59)
    assert data["speed"] == 20
    assert datetime.fromisoformat(data["lastUpdated"].replace("Z", "+00:00")) == T0


def test_stale_location_is_not_found(client, coordinator, clock):
    client.post("/location/update", json=_update_body())
    clock["now"] = T0 + timedelta(minutes=6)
    response = client.get("/location/BUS004")
    assert response.status_code == 404


def test_unauthorized_update(client, coordinator, clock):
    response = client.post(
        "/location/update", json=_update_body(coordinatorPhone="9999999999")
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Unauthorized coordinator"
    wrong_bus = client.post("/location/update", json=_update_body(busNumber="BUS005"))
    assert wrong_bus.json() == response.json()


def test_update_missing_fields(client, coordinator):
    body = _update_body()
    del body["latitude"]
    response = client.post("/location/update", json=body)
    assert response.status_code == 400
    assert response.json()["detail"]["missingFields"] == ["latitude"]


def test_update_rejects_negative_speed(client, coordinator):
    response = client.post("/location/update", json=_update_body(speed=-5))
    assert response.status_code == 400


def test_update_rejects_invalid_coordinate(client, coordinator):
    response = client.post("/location/update", json=_update_body(longitude=200))
    assert response.status_code == 400


def test_deactivate_hides_fresh_location(client, coordinator, clock):
    client.post("/location/update", json=_update_body())
    response = client.post(
        "/location/status",
        json={
            "busNumber": "BUS004",
            "isActive": False,
            "coordinatorPhone": COORDINATOR_PHONE,
        },
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    clock["now"] = T0 + timedelta(minutes=1)
    not_found = client.get("/location/BUS004")
    never_seen = client.get("/location/BUS011")
    assert not_found.status_code == never_seen.status_code == 404
    assert not_found.json() == never_seen.json()


def test_status_unauthorized(client, coordinator):
    response = client.post(
        "/location/status",
        json={"busNumber": "BUS004", "isActive": True, "coordinatorPhone": "9999999999"},
    )
    assert response.status_code == 403


def test_unexpected_error_is_generic(client, coordinator, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("postgresql://user:secret@db/tracker is down")

    monkeypatch.setattr(location, "getLocation", explode)
    response = client.get("/location/BUS004")
    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


# ---------------------------------------------------------------------------
# Route registry
# ---------------------------------------------------------------------------
def test_list_routes(client):
    response = client.get("/route")
    assert response.status_code == 200
    routes = response.json()
    assert routes[3]["name"] == "Route 4"
    assert routes[3]["busNumber"] == "BUS004"
    assert routes[3]["stops"][0] == "NITK"


def test_resolve_stop(client):
    response = client.get("/route/stop", params={"name": "Marigudi (Surathkal)"})
    assert response.status_code == 200
    assert response.json() == {
        "stop": "Marigudi (Surathkal)",
        "routeName": "Route 4",
        "busNumber": "BUS004",
    }
    assert client.get("/route/stop", params={"name": "nitk"}).status_code == 404
