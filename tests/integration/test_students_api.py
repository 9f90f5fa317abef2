from datetime import datetime, timedelta, UTC


def test_create_student_defaults_owner_to_caller(client, teacher, auth_headers):
    r = client.post("/api/students/", json={
        "name": "Lucas Rocha",
        "grade": "2",
        "dateOfBirth": "2017-09-01",
    }, headers=auth_headers(teacher))
    assert r.status_code == 201
    body = r.json()
    assert body["userId"] == str(teacher.id)
    assert body["dateOfBirth"] == "2017-09-01"


def test_create_student_unknown_school(client, teacher, auth_headers):
    r = client.post("/api/students/", json={
        "name": "Lucas Rocha",
        "grade": "2",
        "dateOfBirth": "2017-09-01",
        "schoolId": "00000000-0000-0000-0000-000000000000",
    }, headers=auth_headers(teacher))
    assert r.status_code == 404


def test_student_detail_includes_history(client, teacher, student_factory, assessment_factory, intervention_factory, auth_headers):
    student = student_factory(teacher)
    assessment_factory(student, 55)
    intervention_factory(student)

    body = client.get(f"/api/students/{student.id}", headers=auth_headers(teacher)).json()
    assert len(body["assessments"]) == 1
    assert len(body["interventions"]) == 1
    assert body["user"]["id"] == str(teacher.id)


def test_list_students_filters_by_owner(client, teacher, specialist, student_factory, auth_headers):
    student_factory(teacher, name="Ana")
    student_factory(specialist, name="Bia")
    r = client.get(f"/api/students/?userId={teacher.id}", headers=auth_headers(teacher))
    assert [s["name"] for s in r.json()] == ["Ana"]


def test_delete_student_role_guard(client, teacher, specialist, student_factory, assessment_factory, auth_headers):
    student = student_factory(teacher)
    assessment_factory(student, 70)

    assert client.delete(f"/api/students/{student.id}", headers=auth_headers(specialist)).status_code == 403
    assert client.delete(f"/api/students/{student.id}", headers=auth_headers(teacher)).status_code == 200
    assert client.get(f"/api/students/{student.id}", headers=auth_headers(teacher)).status_code == 404
    assert client.get("/api/assessments/", headers=auth_headers(teacher)).json() == []


def test_assessment_crud(client, teacher, student_factory, auth_headers):
    student = student_factory(teacher)
    headers = auth_headers(teacher)
    created = client.post("/api/assessments/", json={
        "studentId": str(student.id),
        "date": "2024-03-01T10:00:00Z",
        "type": "Math fluency",
        "score": 62.5,
    }, headers=headers)
    assert created.status_code == 201
    assessment_id = created.json()["id"]
    assert created.json()["student"]["id"] == str(student.id)

    patched = client.patch(f"/api/assessments/{assessment_id}", json={"score": 71}, headers=headers)
    assert patched.json()["score"] == 71

    listed = client.get(f"/api/assessments/student/{student.id}", headers=headers)
    assert len(listed.json()) == 1

    assert client.delete(f"/api/assessments/{assessment_id}", headers=headers).status_code == 200
    assert client.get(f"/api/assessments/{assessment_id}", headers=headers).status_code == 404


def test_assessment_score_bounds(client, teacher, student_factory, auth_headers):
    student = student_factory(teacher)
    r = client.post("/api/assessments/", json={
        "studentId": str(student.id),
        "date": "2024-03-01T10:00:00Z",
        "type": "Math fluency",
        "score": 120,
    }, headers=auth_headers(teacher))
    assert r.status_code == 422


def test_assessment_for_missing_student(client, teacher, auth_headers):
    r = client.post("/api/assessments/", json={
        "studentId": "00000000-0000-0000-0000-000000000000",
        "date": "2024-03-01T10:00:00Z",
        "type": "Math fluency",
        "score": 50,
    }, headers=auth_headers(teacher))
    assert r.status_code == 404


def test_intervention_transitions(client, teacher, student_factory, auth_headers):
    student = student_factory(teacher)
    headers = auth_headers(teacher)
    start = datetime.now(UTC) - timedelta(days=14)
    created = client.post("/api/interventions/", json={
        "studentId": str(student.id),
        "startDate": start.isoformat(),
        "type": "Reading",
        "description": "Phonemic awareness drills",
    }, headers=headers)
    assert created.status_code == 201
    intervention_id = created.json()["id"]
    assert created.json()["status"] == "ACTIVE"

    completed = client.patch(f"/api/interventions/{intervention_id}/complete", headers=headers)
    assert completed.json()["status"] == "COMPLETED"

    active = client.get("/api/interventions/?status=ACTIVE", headers=headers)
    assert active.json() == []

    cancelled = client.patch(f"/api/interventions/{intervention_id}/cancel", headers=headers)
    assert cancelled.json()["status"] == "CANCELLED"


def test_intervention_rejects_unknown_base(client, teacher, student_factory, auth_headers):
    student = student_factory(teacher)
    r = client.post("/api/interventions/", json={
        "studentId": str(student.id),
        "startDate": "2024-01-10T00:00:00Z",
        "type": "Reading",
        "description": "Drills",
        "baseInterventionId": "00000000-0000-0000-0000-000000000000",
    }, headers=auth_headers(teacher))
    assert r.status_code == 404
    assert r.json()["detail"] == "Base intervention not found"


def test_intervention_status_validation(client, teacher, student_factory, auth_headers):
    student = student_factory(teacher)
    r = client.post("/api/interventions/", json={
        "studentId": str(student.id),
        "startDate": "2024-01-10T00:00:00Z",
        "type": "Reading",
        "description": "Drills",
        "status": "PAUSED",
    }, headers=auth_headers(teacher))
    assert r.status_code == 422
