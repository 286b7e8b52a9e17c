from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from research_service.application.errors import PersistenceError
from research_service.infrastructure.models import ApplicationORM, ResearchORM
from research_service.infrastructure.repositories import ApplicationRepository, ResearchRepository

from conftest import STUDENT, auth

POSTING = {
    "title": "Swarm robotics for search and rescue",
    "description": "Build controllers for a fleet of small drones.",
    "university": "MIT",
    "eligibility": {
        "degree": "BSc Computer Science",
        "year": ["3", "4"],
        "skills_required": ["python", "ros"],
    },
}


def test_list_research_empty(client):
    """Public listing works with no records and no token"""
    response = client.get("/api/research")
    assert response.status_code == 200
    assert response.json() == []


def test_list_research_ignores_bad_token(client):
    response = client.get("/api/research", headers=auth("forged-token"))
    assert response.status_code == 200


def test_professor_creates_research(client, db_session, registered):
    response = client.post("/api/research", json=POSTING, headers=auth("professor-token"))
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == POSTING["title"]
    assert data["professor_id"] == registered["professor"]
    assert data["status"] == "open"
    assert data["applicants"] == []
    assert data["eligibility"] == POSTING["eligibility"]
    assert db_session.query(ResearchORM).count() == 1


def test_research_owner_is_the_caller(client, registered):
    body = dict(POSTING, professor_id="someone-else")
    response = client.post("/api/research", json=body, headers=auth("professor-token"))
    assert response.status_code == 201
    assert response.json()["professor_id"] == registered["professor"]


def test_research_listing_joins_professor(client, registered):
    client.post("/api/research", json=POSTING, headers=auth("professor-token"))
    client.post(
        "/api/research",
        json={"title": "Closed study", "status": "closed"},
        headers=auth("professor-token"),
    )

    response = client.get("/api/research")
    assert response.status_code == 200
    by_title = {r["title"]: r for r in response.json()}
    assert set(by_title) == {POSTING["title"], "Closed study"}
    assert by_title[POSTING["title"]]["professor"] == {
        "id": registered["professor"],
        "full_name": "Pat Professor",
        "email": "prof@uni.edu",
    }
    assert by_title["Closed study"]["status"] == "closed"
    assert by_title["Closed study"]["eligibility"] == {"degree": None, "year": [], "skills_required": []}


@pytest.mark.parametrize("token", ["student-token", "admin-token"])
def test_non_professor_cannot_post_research(client, db_session, registered, token):
    response = client.post("/api/research", json=POSTING, headers=auth(token))
    assert response.status_code == 403
    assert response.json()["detail"] == "Only professors can post research"
    assert db_session.query(ResearchORM).count() == 0


def test_research_requires_title(client, db_session, registered):
    response = client.post("/api/research", json={"description": "no title"}, headers=auth("professor-token"))
    assert response.status_code == 422
    assert db_session.query(ResearchORM).count() == 0


def test_research_rejects_unknown_status(client, registered):
    body = dict(POSTING, status="archived")
    response = client.post("/api/research", json=body, headers=auth("professor-token"))
    assert response.status_code == 422


def test_student_applies(client, db_session, registered):
    response = client.post(
        "/api/apply",
        json={"research_id": "R1", "application_text": "I have built three drones."},
        headers=auth("student-token"),
    )
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Application submitted"
    assert data["application"]["student_id"] == STUDENT.uid
    assert data["application"]["research_id"] == "R1"
    assert data["application"]["application_text"] == "I have built three drones."

    rows = db_session.query(ApplicationORM).all()
    assert len(rows) == 1
    assert rows[0].student_id == STUDENT.uid
    assert rows[0].research_id == "R1"


@pytest.mark.parametrize("token", ["professor-token", "admin-token"])
def test_only_students_apply(client, db_session, registered, token):
    response = client.post(
        "/api/apply",
        json={"research_id": "R1", "application_text": "Let me in"},
        headers=auth(token),
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Only students can apply"
    assert db_session.query(ApplicationORM).count() == 0


def test_apply_requires_research_id(client, registered):
    response = client.post(
        "/api/apply",
        json={"application_text": "Forgot the posting"},
        headers=auth("student-token"),
    )
    assert response.status_code == 422


def test_applying_leaves_applicant_list_unchanged(client, registered):
    research_id = client.post("/api/research", json=POSTING, headers=auth("professor-token")).json()["id"]

    response = client.post(
        "/api/apply",
        json={"research_id": research_id, "application_text": "Interested"},
        headers=auth("student-token"),
    )
    assert response.status_code == 201
    assert client.get("/api/research").json()[0]["applicants"] == []


def test_create_research_persistence_error(client, registered):
    failure = PersistenceError("research.create", OperationalError("INSERT", {}, Exception("readonly database")))
    with patch.object(ResearchRepository, "create", side_effect=failure):
        response = client.post("/api/research", json=POSTING, headers=auth("professor-token"))
    assert response.status_code == 500
    assert response.json()["detail"]["message"] == "Error creating research"


def test_list_research_persistence_error(client):
    failure = PersistenceError("research.list", OperationalError("SELECT", {}, Exception("no such table")))
    with patch.object(ResearchRepository, "list_all", side_effect=failure):
        response = client.get("/api/research")
    assert response.status_code == 500
    assert response.json()["detail"] == {"message": "Error fetching research", "error": str(failure)}


def test_apply_persistence_error(client, registered):
    failure = PersistenceError("applications.create", OperationalError("INSERT", {}, Exception("disk full")))
    with patch.object(ApplicationRepository, "create", side_effect=failure):
        response = client.post(
            "/api/apply",
            json={"research_id": "R1", "application_text": "Hi"},
            headers=auth("student-token"),
        )
    assert response.status_code == 500
    assert response.json()["detail"]["message"] == "Error submitting application"
