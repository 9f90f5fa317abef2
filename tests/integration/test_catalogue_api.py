import uuid

import pytest


BASE_INTERVENTION = {
    "name": "Repeated reading",
    "description": "Student re-reads a short passage",
    "objective": "Improve reading fluency",
    "tier": "TIER_2",
    "area": "READING",
    "frequency": "WEEKLY",
}


@pytest.fixture
def base_intervention(client, specialist, auth_headers):
    r = client.post("/api/base-interventions/", json=BASE_INTERVENTION, headers=auth_headers(specialist))
    assert r.status_code == 201
    return r.json()


@pytest.fixture
def difficulty(client, specialist, auth_headers):
    r = client.post("/api/learning-difficulties/", json={
        "name": "Dyslexia",
        "description": "Difficulty decoding words",
        "category": "READING",
    }, headers=auth_headers(specialist))
    assert r.status_code == 201
    return r.json()


def test_catalogue_writes_need_team_manager(client, teacher, auth_headers):
    r = client.post("/api/base-interventions/", json=BASE_INTERVENTION, headers=auth_headers(teacher))
    assert r.status_code == 403


def test_assign_difficulty_once(client, teacher, student_factory, difficulty, auth_headers):
    student = student_factory(teacher)
    payload = {"studentId": str(student.id), "difficultyId": difficulty["id"], "severity": "SEVERE"}
    first = client.post("/api/learning-difficulties/assign-student", json=payload, headers=auth_headers(teacher))
    assert first.status_code == 201
    assert first.json()["severity"] == "SEVERE"

    again = client.post("/api/learning-difficulties/assign-student", json=payload, headers=auth_headers(teacher))
    assert again.status_code == 409

    listed = client.get(f"/api/learning-difficulties/student/{student.id}", headers=auth_headers(teacher))
    assert listed.json()[0]["difficulty"]["name"] == "Dyslexia"


def test_difficulty_delete_blocked_while_assigned(client, teacher, specialist, student_factory, difficulty, auth_headers):
    student = student_factory(teacher)
    client.post("/api/learning-difficulties/assign-student", json={
        "studentId": str(student.id), "difficultyId": difficulty["id"],
    }, headers=auth_headers(teacher))
    r = client.delete(f"/api/learning-difficulties/{difficulty['id']}", headers=auth_headers(specialist))
    assert r.status_code == 409


def test_list_difficulties_by_category(client, teacher, difficulty, auth_headers):
    assert len(client.get("/api/learning-difficulties/?category=READING", headers=auth_headers(teacher)).json()) == 1
    assert client.get("/api/learning-difficulties/?category=MATH", headers=auth_headers(teacher)).json() == []


def test_base_intervention_filters(client, teacher, base_intervention, auth_headers):
    headers = auth_headers(teacher)
    assert len(client.get("/api/base-interventions/tier/tier_2", headers=headers).json()) == 1
    assert client.get("/api/base-interventions/area/MATH", headers=headers).json() == []
    bad = client.get("/api/base-interventions/tier/TIER_9", headers=headers)
    assert bad.status_code == 400


def test_difficulty_association_upserts(client, specialist, base_intervention, difficulty, auth_headers):
    headers = auth_headers(specialist)
    payload = {"difficultyId": difficulty["id"], "interventionId": base_intervention["id"], "effectiveness": 4}
    first = client.post("/api/base-interventions/associate-difficulty", json=payload, headers=headers)
    assert first.status_code == 200
    payload["effectiveness"] = 5
    second = client.post("/api/base-interventions/associate-difficulty", json=payload, headers=headers)
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["effectiveness"] == 5

    removed = client.delete(
        f"/api/base-interventions/{base_intervention['id']}/difficulties/{difficulty['id']}", headers=headers,
    )
    assert removed.status_code == 200
    assert client.get(f"/api/base-interventions/by-difficulty/{difficulty['id']}", headers=headers).json() == []


def test_delete_referenced_base_intervention_deactivates(client, teacher, specialist, student_factory, intervention_factory, base_intervention, auth_headers):
    student = student_factory(teacher)
    intervention_factory(student, base_intervention_id=uuid.UUID(base_intervention["id"]))

    r = client.delete(f"/api/base-interventions/{base_intervention['id']}", headers=auth_headers(specialist))
    assert r.status_code == 200
    assert r.json()["active"] is False

    visible = client.get("/api/base-interventions/", headers=auth_headers(teacher)).json()
    assert visible == []
    with_inactive = client.get("/api/base-interventions/?includeInactive=true", headers=auth_headers(teacher)).json()
    assert len(with_inactive) == 1


def test_delete_unreferenced_base_intervention(client, specialist, base_intervention, auth_headers):
    r = client.delete(f"/api/base-interventions/{base_intervention['id']}", headers=auth_headers(specialist))
    assert r.json() == {"message": "Base intervention deleted"}


def test_protocol_steps_ordered_and_duplicated(client, specialist, base_intervention, auth_headers):
    headers = auth_headers(specialist)
    created = client.post("/api/intervention-protocols/", json={
        "name": "Fluency protocol",
        "description": "Four week cycle",
        "baseInterventionId": base_intervention["id"],
        "steps": [
            {"title": "Practice", "description": "Read aloud", "order": 2},
            {"title": "Warm up", "description": "Sight words", "order": 1},
        ],
    }, headers=headers)
    assert created.status_code == 201
    protocol = created.json()
    assert [s["title"] for s in protocol["steps"]] == ["Warm up", "Practice"]

    warm_up = protocol["steps"][0]
    updated = client.patch(f"/api/intervention-protocols/{protocol['id']}", json={
        "steps": [
            {"id": warm_up["id"], "title": "Warm up", "description": "Letter sounds", "order": 1},
            {"title": "Review", "description": "Graph progress", "order": 3},
        ],
    }, headers=headers)
    assert [s["title"] for s in updated.json()["steps"]] == ["Warm up", "Practice", "Review"]
    assert updated.json()["steps"][0]["description"] == "Letter sounds"

    copy = client.post(f"/api/intervention-protocols/{protocol['id']}/duplicate", headers=headers)
    assert copy.status_code == 201
    assert copy.json()["name"] == "Copy of Fluency protocol"
    assert copy.json()["id"] != protocol["id"]
    assert len(copy.json()["steps"]) == 3

    named = client.post(
        f"/api/intervention-protocols/{protocol['id']}/duplicate", json={"name": "Fluency B"}, headers=headers,
    )
    assert named.json()["name"] == "Fluency B"

    listed = client.get(f"/api/intervention-protocols/base-intervention/{base_intervention['id']}", headers=headers)
    assert len(listed.json()) == 3


def test_protocol_requires_base_intervention(client, specialist, auth_headers):
    r = client.post("/api/intervention-protocols/", json={
        "name": "Orphan",
        "description": "No base",
        "baseInterventionId": "00000000-0000-0000-0000-000000000000",
    }, headers=auth_headers(specialist))
    assert r.status_code == 404
