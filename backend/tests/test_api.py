"""HTTP API behaviour through the FastAPI test client."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import PDF_BYTES
from talent.auth.service import create_access_token
from talent.main import app
from talent.resumes.dependencies import get_resume_service


@pytest.fixture
def client(service):
    app.dependency_overrides[get_resume_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _auth(user_id: int = 1) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def _upload(client: TestClient, user_id: int = 1, name: str = "resume.pdf", content: bytes = PDF_BYTES):
    return client.post(
        "/api/v1/resumes/upload",
        files={"file": (name, content, "application/pdf")},
        headers=_auth(user_id),
    )


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Correlation-ID" in response.headers


def test_requests_without_token_are_rejected(client) -> None:
    assert client.get("/api/v1/resumes/").status_code == 401
    response = client.get("/api/v1/resumes/", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["error"]["type"] == "AuthenticationError"


def test_upload_and_list(client, scheduler) -> None:
    response = _upload(client)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "UPLOADED"
    assert body["file_type"] == "PDF"
    assert body["file_size"] == len(PDF_BYTES)
    assert scheduler.scheduled == [body["id"]]

    listing = client.get("/api/v1/resumes/", headers=_auth())
    assert [r["id"] for r in listing.json()] == [body["id"]]
    assert client.get("/api/v1/resumes/count", headers=_auth()).json() == {"count": 1}


def test_upload_validation_error_shape(client) -> None:
    response = client.post(
        "/api/v1/resumes/upload",
        files={"file": ("notes.txt", PDF_BYTES, "text/plain")},
        headers=_auth(),
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["type"] == "ValidationError"
    assert "extension" in error["message"]


def test_detail_after_parsing(client, service) -> None:
    resume_id = _upload(client).json()["id"]
    service.parse_resume(resume_id)

    response = client.get(f"/api/v1/resumes/{resume_id}", headers=_auth())

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "PARSED"
    assert body["candidate_name"] == "Jane Doe"
    assert [s["name"] for s in body["skills"]] == ["Java", "Spring Boot"]
    assert body["contact"]["phone"] == "010-1234-5678"
    assert body["experiences"][0]["is_current"] is True
    assert body["total_experience_years"] == 5
    assert body["has_complete_profile"] is True


def test_other_users_cannot_see_resume(client) -> None:
    resume_id = _upload(client, user_id=1).json()["id"]

    response = client.get(f"/api/v1/resumes/{resume_id}", headers=_auth(2))

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "NotFoundError"


def test_skill_editing(client, service) -> None:
    resume_id = _upload(client).json()["id"]
    service.parse_resume(resume_id)

    added = client.post(
        f"/api/v1/resumes/{resume_id}/skills",
        json={"name": "Kotlin", "level": "ADVANCED", "years_of_experience": 2},
        headers=_auth(),
    )
    duplicate = client.post(f"/api/v1/resumes/{resume_id}/skills", json={"name": "java"}, headers=_auth())
    removed = client.delete(f"/api/v1/resumes/{resume_id}/skills/Java", headers=_auth())

    assert added.status_code == 201
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["type"] == "AlreadyExistsError"
    assert [s["name"] for s in removed.json()["skills"]] == ["Spring Boot", "Kotlin"]


def test_editing_while_parsing_conflicts(client, service) -> None:
    resume_id = _upload(client).json()["id"]
    resume = service.get_any_resume(resume_id)
    resume.start_parsing()
    service.repository.save(resume)
    service.db.commit()

    response = client.put(
        f"/api/v1/resumes/{resume_id}/candidate-name",
        json={"name": "Jane Doe"},
        headers=_auth(),
    )

    assert response.status_code == 409
    assert response.json()["error"]["details"]["current_status"] == "PARSING"


def test_delete_rules(client, storage) -> None:
    resume_id = _upload(client, user_id=1).json()["id"]

    forbidden = client.delete(f"/api/v1/resumes/{resume_id}", headers=_auth(2))
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["type"] == "OwnershipViolationError"

    assert client.delete(f"/api/v1/resumes/{resume_id}", headers=_auth(1)).status_code == 204
    assert client.get(f"/api/v1/resumes/{resume_id}", headers=_auth(1)).status_code == 404
    assert storage.files == {}


def test_search_and_score(client, service) -> None:
    resume_id = _upload(client).json()["id"]
    service.parse_resume(resume_id)

    search = client.post(
        "/api/v1/matching/search",
        json={"required_skills": ["Java", "Spring Boot"], "minimum_score": 20},
        headers=_auth(),
    )
    score = client.post(
        f"/api/v1/matching/resumes/{resume_id}/score",
        json={"required_skills": ["Java", "Spring Boot"]},
        headers=_auth(),
    )

    assert search.status_code == 200
    body = search.json()
    assert body["total"] == 1
    assert body["results"][0]["resume"]["id"] == resume_id
    assert body["results"][0]["score"] == 44
    assert score.json() == {"resume_id": resume_id, "score": 44}


def test_search_rejects_bad_paging(client) -> None:
    response = client.post("/api/v1/matching/search", json={"page_size": 0}, headers=_auth())
    assert response.status_code == 422


def test_duplicates_endpoint(client, service) -> None:
    first = _upload(client).json()["id"]
    second = _upload(client, name="copy.pdf").json()["id"]
    service.parse_resume(first)
    service.parse_resume(second)

    response = client.post(f"/api/v1/matching/resumes/{first}/duplicates", headers=_auth())

    body = response.json()
    assert body["is_duplicate"] is True
    assert [r["id"] for r in body["duplicates"]] == [second]
