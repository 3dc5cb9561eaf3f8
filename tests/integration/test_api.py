"""HTTP tests for the project and assignment routers."""

from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient

from src.staffing.models import BookingEventType
from src.staffing.services import CandidateProfile, InMemoryCandidateDirectory
from tests.helpers import RecordingNotifier

pytestmark = pytest.mark.integration

API = "/api/v1"

REQUIREMENT = {
    "seniority": "senior",
    "languages": ["fr"],
    "expertises": ["python", "postgresql"],
    "base_price": "1.00",
}


async def _create_project(client: AsyncClient) -> dict:
    response = await client.post(
        f"{API}/projects", json={"owner_id": str(uuid4()), "title": "Data platform"}
    )
    assert response.status_code == 201
    return response.json()


async def _add_requirement(client: AsyncClient, project_id: str, **overrides) -> dict:
    body = {"profile_id": str(uuid4()), **REQUIREMENT, **overrides}
    response = await client.post(f"{API}/projects/{project_id}/requirements", json=body)
    assert response.status_code == 201
    return response.json()


async def _offer(client: AsyncClient, assignment_id: str, candidate_id: str) -> dict:
    response = await client.post(
        f"{API}/assignments/{assignment_id}/offer", json={"candidate_id": candidate_id}
    )
    assert response.status_code == 200
    return response.json()


class TestProjectsApi:
    async def test_create_project(self, client: AsyncClient):
        project = await _create_project(client)

        assert project["staffing_status"] == "no_resources"
        assert project["lifecycle_status"] == "planning"

    async def test_blank_title_rejected(self, client: AsyncClient):
        response = await client.post(
            f"{API}/projects", json={"owner_id": str(uuid4()), "title": "   "}
        )

        assert response.status_code == 422

    async def test_get_missing_project(self, client: AsyncClient):
        response = await client.get(f"{API}/projects/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "project_not_found"

    async def test_list_by_owner(self, client: AsyncClient):
        owner_id = str(uuid4())
        for title in ("First", "Second"):
            await client.post(f"{API}/projects", json={"owner_id": owner_id, "title": title})

        response = await client.get(f"{API}/projects", params={"owner_id": owner_id})

        assert response.status_code == 200
        body = response.json()
        assert {p["title"] for p in body["items"]} == {"First", "Second"}
        assert body["has_more"] is False

    async def test_add_requirement_cleans_tags(self, client: AsyncClient):
        project = await _create_project(client)

        assignment = await _add_requirement(
            client, project["id"], languages=[" fr ", "fr", ""], expertises=["python"]
        )

        assert assignment["booking_status"] == "draft"
        assert assignment["languages"] == ["fr"]

    async def test_remove_requirement(self, client: AsyncClient):
        project = await _create_project(client)
        assignment = await _add_requirement(client, project["id"])

        response = await client.delete(
            f"{API}/projects/{project['id']}/requirements/{assignment['id']}"
        )

        assert response.status_code == 204
        listed = await client.get(f"{API}/projects/{project['id']}/requirements")
        assert listed.json() == []

    async def test_start_before_fully_staffed(self, client: AsyncClient):
        project = await _create_project(client)
        await _add_requirement(client, project["id"])

        response = await client.post(f"{API}/projects/{project['id']}/start")

        assert response.status_code == 409
        assert response.json()["code"] == "project_not_ready"


class TestBookingApi:
    async def test_full_booking_flow(self, client: AsyncClient, notifier: RecordingNotifier):
        project = await _create_project(client)
        assignment = await _add_requirement(client, project["id"])
        candidate_id = str(uuid4())

        offered = await _offer(client, assignment["id"], candidate_id)
        assert offered["assignment"]["booking_status"] == "searching"
        assert offered["assignment"]["offered_candidate_id"] == candidate_id
        assert offered["changed"] is True

        response = await client.post(
            f"{API}/assignments/{assignment['id']}/accept", json={"candidate_id": candidate_id}
        )
        assert response.status_code == 200
        accepted = response.json()
        assert accepted["assignment"]["booking_status"] == "accepted"
        assert Decimal(accepted["assignment"]["calculated_price"]) == Decimal("883")
        assert accepted["project_staffing_status"] == "fully_staffed"

        staffing = await client.get(f"{API}/projects/{project['id']}/staffing")
        assert staffing.json()["progress_percent"] == 100

        started = await client.post(f"{API}/projects/{project['id']}/start")
        assert started.status_code == 200
        assert started.json()["lifecycle_status"] == "active"

        assert notifier.types() == [
            BookingEventType.ASSIGNMENT_OFFERED,
            BookingEventType.ASSIGNMENT_ACCEPTED,
            BookingEventType.PROJECT_FULLY_STAFFED,
        ]

        history = await client.get(f"{API}/assignments/{assignment['id']}/history")
        assert [(t["from_status"], t["to_status"]) for t in history.json()] == [
            ("draft", "searching"),
            ("searching", "accepted"),
        ]

    async def test_repeated_accept_is_idempotent(self, client: AsyncClient):
        project = await _create_project(client)
        assignment = await _add_requirement(client, project["id"])
        candidate_id = str(uuid4())
        await _offer(client, assignment["id"], candidate_id)
        url = f"{API}/assignments/{assignment['id']}/accept"

        first = await client.post(url, json={"candidate_id": candidate_id})
        second = await client.post(url, json={"candidate_id": candidate_id})

        assert first.json()["changed"] is True
        assert second.status_code == 200
        assert second.json()["changed"] is False
        assert second.json()["event_id"] is None

    async def test_accept_after_other_candidate(self, client: AsyncClient):
        project = await _create_project(client)
        assignment = await _add_requirement(client, project["id"])
        winner = str(uuid4())
        await _offer(client, assignment["id"], winner)
        url = f"{API}/assignments/{assignment['id']}/accept"
        await client.post(url, json={"candidate_id": winner})

        response = await client.post(
            url, json={"candidate_id": str(uuid4())}, headers={"X-Request-ID": uuid4().hex}
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "already_resolved"
        assert body["current_status"] == "accepted"
        assert body["requested_status"] == "accepted"
        assert body["request_id"] == response.headers["X-Request-ID"]

    async def test_decline_by_non_holder(self, client: AsyncClient):
        project = await _create_project(client)
        assignment = await _add_requirement(client, project["id"])
        await _offer(client, assignment["id"], str(uuid4()))

        response = await client.post(
            f"{API}/assignments/{assignment['id']}/decline",
            json={"candidate_id": str(uuid4())},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "not_authorized"

    async def test_decline_returns_to_searching(self, client: AsyncClient):
        project = await _create_project(client)
        assignment = await _add_requirement(client, project["id"])
        candidate_id = str(uuid4())
        await _offer(client, assignment["id"], candidate_id)

        response = await client.post(
            f"{API}/assignments/{assignment['id']}/decline",
            json={"candidate_id": candidate_id, "reason": "  Not available  "},
        )

        assert response.status_code == 200
        assert response.json()["assignment"]["booking_status"] == "searching"
        declines = await client.get(f"{API}/assignments/{assignment['id']}/declines")
        assert declines.json()[0]["candidate_id"] == candidate_id
        assert declines.json()[0]["reason"] == "Not available"

    async def test_unknown_assignment(self, client: AsyncClient):
        response = await client.post(
            f"{API}/assignments/{uuid4()}/accept", json={"candidate_id": str(uuid4())}
        )

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "assignment_not_found"
        assert body["request_id"]

    async def test_offer_incomplete_requirement(self, client: AsyncClient):
        project = await _create_project(client)
        response = await client.post(
            f"{API}/projects/{project['id']}/requirements", json={"languages": ["fr"]}
        )
        assignment = response.json()

        response = await client.post(
            f"{API}/assignments/{assignment['id']}/offer", json={"candidate_id": str(uuid4())}
        )

        assert response.status_code == 422
        assert response.json()["code"] == "requirements_incomplete"

    async def test_expire_before_deadline(self, client: AsyncClient):
        project = await _create_project(client)
        assignment = await _add_requirement(client, project["id"])
        await _offer(client, assignment["id"], str(uuid4()))

        response = await client.post(f"{API}/assignments/{assignment['id']}/expire")

        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"
        assert response.json()["current_status"] == "searching"

    async def test_suggest_candidates(
        self, client: AsyncClient, directory: InMemoryCandidateDirectory
    ):
        project = await _create_project(client)
        profile_id = uuid4()
        assignment = await _add_requirement(client, project["id"], profile_id=str(profile_id))
        match = CandidateProfile(
            id=uuid4(),
            profile_id=profile_id,
            seniority="senior",
            languages=frozenset({"fr", "en"}),
            expertises=frozenset({"python", "postgresql"}),
        )
        directory.put(match)
        directory.put(
            CandidateProfile(id=uuid4(), profile_id=profile_id, seniority="junior")
        )

        response = await client.get(f"{API}/assignments/{assignment['id']}/candidates")

        assert response.status_code == 200
        body = response.json()
        assert [c["id"] for c in body] == [str(match.id)]
        assert body[0]["languages"] == ["en", "fr"]

    async def test_candidate_missions(self, client: AsyncClient):
        project = await _create_project(client)
        assignment = await _add_requirement(client, project["id"])
        candidate_id = str(uuid4())
        await _offer(client, assignment["id"], candidate_id)

        response = await client.get(f"{API}/candidates/{candidate_id}/missions")

        assert response.status_code == 200
        assert [m["id"] for m in response.json()["items"]] == [assignment["id"]]

    async def test_expiry_sweep_endpoint(self, client: AsyncClient):
        response = await client.post(f"{API}/sweeps/expiry")

        assert response.status_code == 200
        body = response.json()
        assert body["scanned"] == 0
        assert body["failed_ids"] == []
