"""Tests for the intake request API."""
import pytest

from app.db.database import AsyncSessionLocal
from app.services.persistence.calls import CallPersistenceService
from app.services.persistence.intakes import IntakePersistenceService


async def seed_intakes():
    """Store one finished intake per path."""
    async with AsyncSessionLocal() as db:
        calls = CallPersistenceService(db)
        intakes = IntakePersistenceService(db)
        ids = []
        for index, path in enumerate(["new", "reschedule", "cancel"]):
            call = await calls.create_call(f"CA90{index}")
            intake = await intakes.create_intake_request(
                call_id=call.id,
                path=path,
                caller_name=f"Caller {index}",
                date_of_birth="05221990",
                preferred_when="next week",
            )
            ids.append(intake.id)
        return ids


@pytest.fixture
def seeded_client(authenticated_client):
    ids = authenticated_client.portal.call(seed_intakes)
    return authenticated_client, ids


class TestIntakesAPI:
    """Test listing and reading intake requests."""

    def test_empty_list(self, authenticated_client):
        response = authenticated_client.get("/api/intakes")

        assert response.status_code == 200
        assert response.json() == []

    def test_list_newest_first(self, seeded_client):
        client, _ = seeded_client

        response = client.get("/api/intakes")

        assert response.status_code == 200
        data = response.json()
        assert [item["call_sid"] for item in data] == ["CA902", "CA901", "CA900"]
        assert data[0]["path"] == "cancel"
        assert data[0]["status"] == "pending"

    def test_filter_by_path(self, seeded_client):
        client, _ = seeded_client

        data = client.get("/api/intakes", params={"path": "reschedule"}).json()

        assert len(data) == 1
        assert data[0]["caller_name"] == "Caller 1"

    def test_invalid_path_filter(self, seeded_client):
        client, _ = seeded_client
        assert client.get("/api/intakes", params={"path": "bogus"}).status_code == 422

    def test_limit(self, seeded_client):
        client, _ = seeded_client
        assert len(client.get("/api/intakes", params={"limit": 2}).json()) == 2

    def test_get_one(self, seeded_client):
        client, ids = seeded_client

        response = client.get(f"/api/intakes/{ids[0]}")

        assert response.status_code == 200
        data = response.json()
        assert data["call_sid"] == "CA900"
        assert data["date_of_birth"] == "05221990"
        assert data["preferred_when"] == "next week"

    def test_get_missing(self, authenticated_client):
        response = authenticated_client.get("/api/intakes/999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Intake request not found"
