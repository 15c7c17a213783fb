"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def centro(client: TestClient) -> dict:
    """Two-slot yard with one staff member"""
    response = client.post("/v1/yards", json={"name": "Centro", "total_slots": 2, "location": "Av. Paulista 1000"})
    assert response.status_code == 201
    response = client.post("/v1/yards/Centro/staff", json={"username": "centro_staff", "name": "Ana Lima"})
    assert response.status_code == 201
    return response.json()


def vehicle_body(plate: str, **fields) -> dict:
    body = {
        "plate": plate,
        "model": "MottuSport",
        "status": "Available",
        "sector": "Good",
        "yard_name": "Centro",
        "staff_username": "centro_staff",
        "mileage": 1000,
    }
    body.update(fields)
    return body


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["risk_model"] == "rules"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "moto_fleet_vehicle_operations_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_create_vehicle_takes_slot(client: TestClient, centro: dict):
    """Test POST /v1/vehicles"""
    response = client.post("/v1/vehicles", json=vehicle_body("abc-1234"))

    assert response.status_code == 201
    data = response.json()
    assert data["plate"] == "ABC-1234"
    assert data["occupies_slot"] is True
    assert data["available_for_rent"] is True
    assert data["service_count"] == 0

    yard = client.get("/v1/yards/Centro").json()
    assert yard["occupied_slots"] == 1
    assert yard["available_slots"] == 1
    assert yard["occupancy_rate"] == 0.5


def test_full_yard_answers_conflict(client: TestClient, centro: dict):
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))
    client.post("/v1/vehicles", json=vehicle_body("ABC-0002", status="Maintenance"))

    response = client.post("/v1/vehicles", json=vehicle_body("ABC-0003"))

    assert response.status_code == 409
    assert response.json()["detail"]["reason"] == "NO_SLOT_AVAILABLE"
    assert client.get("/v1/yards/Centro").json()["occupied_slots"] == 2
    assert client.get("/v1/vehicles/ABC-0003").status_code == 404


def test_renting_frees_slot(client: TestClient, centro: dict):
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))
    client.post("/v1/vehicles", json=vehicle_body("ABC-0002"))

    body = vehicle_body("ABC-0001", status="Rented")
    del body["plate"]
    response = client.put("/v1/vehicles/ABC-0001", json=body)

    assert response.status_code == 200
    assert response.json()["occupies_slot"] is False
    assert client.get("/v1/yards/Centro").json()["occupied_slots"] == 1
    assert client.post("/v1/vehicles", json=vehicle_body("ABC-0003")).status_code == 201


def test_malformed_plate_rejected(client: TestClient, centro: dict):
    response = client.post("/v1/vehicles", json=vehicle_body("ABCD123"))

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "MALFORMED_PLATE"


def test_duplicate_plate_conflict(client: TestClient, centro: dict):
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))

    response = client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))

    assert response.status_code == 409
    assert response.json()["detail"]["reason"] == "DUPLICATE_PLATE"


def test_unknown_vehicle_not_found(client: TestClient, centro: dict):
    assert client.get("/v1/vehicles/XYZ-9999").status_code == 404
    assert client.delete("/v1/vehicles/XYZ-9999").status_code == 404
    assert client.post("/v1/vehicles/XYZ-9999/risk").status_code == 404


def test_risk_endpoint(client: TestClient, centro: dict):
    """Test POST /v1/vehicles/{plate}/risk"""
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001", mileage=20000, sector="Bad"))

    response = client.post("/v1/vehicles/ABC-0001/risk")

    assert response.status_code == 200
    data = response.json()
    assert data["needs_maintenance"] is True
    assert data["probability"] == 1.0
    assert data["urgency_tier"] == "High"
    assert data["source"] == "rules"
    assert "high mileage" in data["factors"]
    assert data["recommendation"].startswith("URGENT")

    flagged = client.get("/v1/vehicles/maintenance").json()["vehicles"]
    assert [v["plate"] for v in flagged] == ["ABC-0001"]


def test_list_vehicles_filters(client: TestClient, centro: dict):
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))
    client.post("/v1/vehicles", json=vehicle_body("ABC-0002", status="Rented"))

    response = client.get("/v1/vehicles", params={"status": "Rented"})

    assert response.status_code == 200
    assert [v["plate"] for v in response.json()["vehicles"]] == ["ABC-0002"]


def test_delete_vehicle_frees_slot(client: TestClient, centro: dict):
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))

    response = client.delete("/v1/vehicles/ABC-0001")

    assert response.status_code == 204
    assert client.get("/v1/yards/Centro").json()["occupied_slots"] == 0
    assert client.get("/v1/vehicles/ABC-0001").status_code == 404


def test_client_link_conflict(client: TestClient, centro: dict):
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))
    first = client.post("/v1/clients", json={"username": "maria", "name": "Maria Silva", "vehicle_plate": "ABC-0001"})
    client.post("/v1/clients", json={"username": "joao", "name": "Joao Souza"})

    response = client.put("/v1/clients/joao/vehicle", json={"plate": "ABC-0001"})

    assert first.status_code == 201
    assert first.json()["vehicle_plate"] == "ABC-0001"
    assert response.status_code == 409
    assert response.json()["detail"]["reason"] == "VEHICLE_ALREADY_LINKED"


def test_yard_resize_below_occupied_rejected(client: TestClient, centro: dict):
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))
    client.post("/v1/vehicles", json=vehicle_body("ABC-0002"))

    response = client.put("/v1/yards/Centro", json={"total_slots": 1})

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "SLOTS_BELOW_OCCUPIED"

    grown = client.put("/v1/yards/Centro", json={"total_slots": 5, "location": "Rua Augusta 50"})
    assert grown.status_code == 200
    assert grown.json()["available_slots"] == 3


def test_delete_non_empty_yard_rejected(client: TestClient, centro: dict):
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001"))

    response = client.delete("/v1/yards/Centro")

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "YARD_NOT_EMPTY"


def test_list_available_yards(client: TestClient, centro: dict):
    client.post("/v1/yards", json={"name": "Norte", "total_slots": 1})
    client.post("/v1/yards/Norte/staff", json={"username": "norte_staff", "name": "Rui Costa"})
    client.post("/v1/vehicles", json=vehicle_body("ABC-0001", yard_name="Norte", staff_username="norte_staff"))

    response = client.get("/v1/yards", params={"available_only": True})

    assert [y["name"] for y in response.json()["yards"]] == ["Centro"]


@pytest.mark.parametrize("plate", ["AB-1", "ABC-12345", ""])
def test_short_or_long_plate_gets_malformed_reason(client: TestClient, centro: dict, plate: str):
    """Plate length is judged by the same check as plate shape"""
    response = client.post("/v1/vehicles", json=vehicle_body(plate))

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "MALFORMED_PLATE"


def test_short_plate_on_client_link_gets_malformed_reason(client: TestClient, centro: dict):
    client.post("/v1/clients", json={"username": "joao", "name": "Joao Souza"})

    response = client.put("/v1/clients/joao/vehicle", json={"plate": "AB-1"})

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "MALFORMED_PLATE"
