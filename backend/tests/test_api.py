"""
Tests for the HTTP and WebSocket endpoints.
"""
from fastapi import status

ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Roles": "hospital_admin"}
NURSE_HEADERS = {"X-User-Id": "nurse-1", "X-User-Roles": "nurse"}


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"

    def test_liveness(self, client):
        assert client.get("/api/health/liveness").json()["status"] == "alive"


class TestBedEndpoints:
    """Tests for /api/beds."""

    def test_list_beds(self, client, icu_ward_scenario):
        response = client.get("/api/beds", params={"ward": "ICU"})
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert [bed["bed_number"] for bed in data] == ["ICU-001", "ICU-002", "ICU-003"]
        assert data[1]["equipment"] == ["Ventilator"]
        assert data[0]["ward_name"] == "ICU"

    def test_list_wards(self, client, create_ward):
        create_ward("ICU")
        create_ward("Emergency")
        names = [ward["name"] for ward in client.get("/api/beds/wards").json()]
        assert names == ["Emergency", "ICU"]

    def test_get_bed_not_found(self, client):
        response = client.get("/api/beds/missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_recommend(self, client, icu_ward_scenario):
        response = client.post(
            "/api/beds/recommend",
            json={"ward": "ICU", "equipment": ["Ventilator"], "limit": 2}
        )
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["recommended"]["bed_number"] == "ICU-002"
        assert [bed["bed_number"] for bed in data["candidates"]] == ["ICU-002", "ICU-001"]

    def test_recommend_nothing_available(self, client, create_ward):
        create_ward("ICU")
        data = client.post("/api/beds/recommend", json={"ward": "ICU"}).json()
        assert data["recommended"] is None
        assert data["candidates"] == []

    def test_status_edit(self, client, icu_ward_scenario):
        bed = icu_ward_scenario["beds"][0]
        response = client.patch(f"/api/beds/{bed.id}/status", json={"status": "maintenance"})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "maintenance"

    def test_status_edit_to_occupied_rejected(self, client, icu_ward_scenario):
        bed = icu_ward_scenario["beds"][0]
        response = client.patch(f"/api/beds/{bed.id}/status", json={"status": "occupied"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_status_edit_of_occupied_bed_conflicts(self, client, icu_ward_scenario):
        bed = icu_ward_scenario["beds"][2]
        response = client.patch(f"/api/beds/{bed.id}/status", json={"status": "available"})
        assert response.status_code == status.HTTP_409_CONFLICT
        assert "Discharge the patient first" in response.json()["detail"]

    def test_consistency(self, client, icu_ward_scenario):
        data = client.get("/api/beds/consistency").json()
        assert data == {"consistent": True, "violations": []}


class TestPatientEndpoints:
    """Tests for /api/patients."""

    def test_admit_discharge_flow(self, client, icu_ward_scenario):
        bed = icu_ward_scenario["beds"][0]

        response = client.post(
            "/api/patients",
            json={"name": "Priya Patel", "age": 28, "bed_id": bed.id, "estimated_stay_days": 3}
        )
        assert response.status_code == status.HTTP_201_CREATED
        patient = response.json()
        assert patient["status"] == "admitted"
        assert patient["assigned_bed_id"] == bed.id
        assert patient["expected_discharge_date"] is not None

        response = client.post(f"/api/patients/{patient['id']}/discharge")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "discharged"
        assert client.get(f"/api/beds/{bed.id}").json()["status"] == "cleaning"

        response = client.post(f"/api/patients/{patient['id']}/discharge")
        assert response.status_code == status.HTTP_409_CONFLICT
        assert client.get(f"/api/beds/{bed.id}").json()["status"] == "cleaning"

        response = client.post(f"/api/beds/{bed.id}/finish-cleaning")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["status"] == "available"

    def test_admit_into_unavailable_bed(self, client, icu_ward_scenario):
        bed = icu_ward_scenario["beds"][2]
        response = client.post("/api/patients", json={"name": "Late", "age": 50, "bed_id": bed.id})
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"] == "Bed ICU-003 is not available (status: occupied)"

    def test_admit_validation(self, client, icu_ward_scenario):
        bed = icu_ward_scenario["beds"][0]
        response = client.post("/api/patients", json={"age": 50, "bed_id": bed.id})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_transfer(self, client, icu_ward_scenario):
        occupant = icu_ward_scenario["occupant"]
        target = icu_ward_scenario["beds"][1]

        response = client.post(
            f"/api/patients/{occupant.id}/transfer",
            json={"new_bed_id": target.id}
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["assigned_bed_id"] == target.id
        assert response.json()["status"] == "admitted"

    def test_get_patient_not_found(self, client):
        assert client.get("/api/patients/missing").status_code == status.HTTP_404_NOT_FOUND


class TestRequestEndpoints:
    """Tests for /api/requests."""

    def test_requires_caller_identity(self, client, icu_ward_scenario):
        response = client.post("/api/requests", json={"ward": "ICU", "patient_name": "A", "age": 3})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_and_approve(self, client, icu_ward_scenario):
        response = client.post(
            "/api/requests",
            json={"ward": "ICU", "equipment": ["Ventilator"], "patient_name": "Amit", "age": 62},
            headers=NURSE_HEADERS,
        )
        assert response.status_code == status.HTTP_201_CREATED
        request = response.json()
        assert request["status"] == "pending"
        assert request["recommended_beds"][0] == icu_ward_scenario["beds"][1].id

        response = client.patch(f"/api/requests/{request['id']}/approve", headers=NURSE_HEADERS)
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = client.patch(f"/api/requests/{request['id']}/approve", headers=ADMIN_HEADERS)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "assigned"
        assert response.json()["assigned_bed_id"] == icu_ward_scenario["beds"][1].id

        response = client.patch(f"/api/requests/{request['id']}/approve", headers=ADMIN_HEADERS)
        assert response.status_code == status.HTTP_409_CONFLICT

        response = client.patch(f"/api/requests/{request['id']}/fulfill", headers=ADMIN_HEADERS)
        assert response.json()["status"] == "fulfilled"

    def test_approve_without_bed(self, client, create_ward):
        create_ward("ICU")
        request = client.post(
            "/api/requests",
            json={"ward": "ICU", "patient_name": "Rahul", "age": 45},
            headers=ADMIN_HEADERS,
        ).json()
        assert request["recommended_beds"] == []

        response = client.patch(f"/api/requests/{request['id']}/approve", headers=ADMIN_HEADERS)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_reserve_reject_cancel(self, client, icu_ward_scenario):
        def create():
            return client.post(
                "/api/requests",
                json={"ward": "ICU", "patient_name": "B", "age": 30},
                headers=NURSE_HEADERS,
            ).json()

        reserved = client.patch(
            f"/api/requests/{create()['id']}/reserve", json={}, headers=ADMIN_HEADERS
        )
        assert reserved.json()["status"] == "approved"

        rejected = client.patch(
            f"/api/requests/{create()['id']}/reject",
            json={"reason": "Duplicate"},
            headers=ADMIN_HEADERS,
        )
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["notes"] == "Rejected: Duplicate"

        cancelled = client.patch(f"/api/requests/{reserved.json()['id']}/cancel", headers=NURSE_HEADERS)
        assert cancelled.json()["status"] == "cancelled"

        listed = client.get("/api/requests", params={"status": "pending"}, headers=ADMIN_HEADERS)
        assert listed.json() == []

    def test_unknown_ward(self, client):
        response = client.post(
            "/api/requests",
            json={"ward": "Nowhere", "patient_name": "A", "age": 3},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestAlertEndpoints:

    def test_list_and_mark_read(self, client, create_ward, create_bed):
        ward = create_ward("ICU")
        bed = create_bed(ward, "ICU-001")
        client.post("/api/patients", json={"name": "A", "age": 30, "bed_id": bed.id})

        alerts = client.get("/api/alerts").json()
        assert len(alerts) == 1
        assert alerts[0]["threshold"] == 100

        response = client.patch(f"/api/alerts/{alerts[0]['id']}/read")
        assert response.json()["is_read"] is True
        assert client.get("/api/alerts", params={"unread_only": True}).json() == []

    def test_mark_unknown(self, client):
        assert client.patch("/api/alerts/missing/read").status_code == status.HTTP_404_NOT_FOUND


class TestWebSocket:

    def test_ping(self, client):
        with client.websocket_connect("/api/ws") as websocket:
            websocket.send_json({"action": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

    def test_non_object_message_keeps_connection(self, client):
        with client.websocket_connect("/api/ws") as websocket:
            websocket.send_json([1])
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"action": "ping"})
            assert websocket.receive_json() == {"type": "pong"}
