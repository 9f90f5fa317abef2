def _referral(client, headers, student, **extra):
    payload = {
        "studentId": str(student.id),
        "title": "Speech evaluation",
        "description": "Persistent articulation errors",
    }
    payload.update(extra)
    r = client.post("/api/referrals/", json=payload, headers=headers)
    assert r.status_code == 201
    return r.json()


def test_referral_defaults_and_assignee_notification(client, teacher, specialist, student_factory, auth_headers):
    student = student_factory(teacher)
    body = _referral(client, auth_headers(teacher), student, assignedToId=str(specialist.id))
    assert body["priority"] == "MEDIUM"
    assert body["status"] == "PENDING"
    assert body["createdById"] == str(teacher.id)
    assert body["assignedTo"]["id"] == str(specialist.id)

    inbox = client.get("/api/notifications/", headers=auth_headers(specialist)).json()
    assert inbox["notifications"][0]["type"] == "REFERRAL"
    assert inbox["notifications"][0]["link"] == f"/referrals/{body['id']}"


def test_self_assignment_is_not_notified(client, teacher, student_factory, auth_headers):
    student = student_factory(teacher)
    _referral(client, auth_headers(teacher), student, assignedToId=str(teacher.id))
    assert client.get("/api/notifications/", headers=auth_headers(teacher)).json()["total_count"] == 0


def test_referral_visibility(client, admin, teacher, specialist, user_factory, student_factory, auth_headers):
    outsider = user_factory(role="TEACHER")
    student = student_factory(teacher)
    body = _referral(client, auth_headers(teacher), student, assignedToId=str(specialist.id))

    for user in (teacher, specialist, admin):
        assert client.get(f"/api/referrals/{body['id']}", headers=auth_headers(user)).status_code == 200
    assert client.get(f"/api/referrals/{body['id']}", headers=auth_headers(outsider)).status_code == 404
    assert client.get("/api/referrals/", headers=auth_headers(outsider)).json() == []
    assert client.delete(f"/api/referrals/{body['id']}", headers=auth_headers(outsider)).status_code == 404


def test_reassignment_notifies_new_assignee(client, teacher, specialist, student_factory, auth_headers):
    student = student_factory(teacher)
    body = _referral(client, auth_headers(teacher), student)
    r = client.patch(f"/api/referrals/{body['id']}", json={
        "assignedToId": str(specialist.id), "priority": "URGENT",
    }, headers=auth_headers(teacher))
    assert r.json()["priority"] == "URGENT"
    assert client.get("/api/notifications/", headers=auth_headers(specialist)).json()["unread_count"] == 1


def test_referral_unknown_team(client, teacher, student_factory, auth_headers):
    student = student_factory(teacher)
    r = client.post("/api/referrals/", json={
        "studentId": str(student.id),
        "title": "Speech evaluation",
        "description": "Articulation",
        "teamId": "00000000-0000-0000-0000-000000000000",
    }, headers=auth_headers(teacher))
    assert r.status_code == 404
    assert r.json()["detail"] == "Team not found"


def test_communications_owner_scope(client, admin, teacher, specialist, student_factory, auth_headers):
    student = student_factory(teacher)
    created = client.post("/api/communications/", json={
        "studentId": str(student.id),
        "subject": "Reading progress",
        "message": "Maria improved this month",
        "type": "EMAIL",
        "contactInfo": "parent@home.test",
    }, headers=auth_headers(teacher))
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "DRAFT"
    assert body["sentAt"] is None

    sent = client.patch(f"/api/communications/{body['id']}", json={"status": "SENT"}, headers=auth_headers(teacher))
    assert sent.json()["sentAt"]

    assert client.get(f"/api/communications/{body['id']}", headers=auth_headers(specialist)).status_code == 404
    assert client.get("/api/communications/", headers=auth_headers(specialist)).json() == []
    assert len(client.get(f"/api/communications/student/{student.id}", headers=auth_headers(admin)).json()) == 1

    assert client.delete(f"/api/communications/{body['id']}", headers=auth_headers(teacher)).status_code == 200


def test_communication_type_validation(client, teacher, student_factory, auth_headers):
    student = student_factory(teacher)
    r = client.post("/api/communications/", json={
        "studentId": str(student.id), "subject": "Hi", "message": "Hello", "type": "FAX",
    }, headers=auth_headers(teacher))
    assert r.status_code == 422
