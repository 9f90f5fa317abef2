from innerview.db import models


def test_create_team_dedupes_members(client, specialist, teacher, student_factory, auth_headers, db_session):
    student = student_factory(teacher)
    r = client.post("/api/teams/", json={
        "name": "Grade 2 Team",
        "members": [{"userId": str(specialist.id), "role": "COORDINATOR"}],
        "memberIds": [str(specialist.id), str(teacher.id)],
        "studentIds": [str(student.id), str(student.id)],
    }, headers=auth_headers(specialist))
    assert r.status_code == 201
    body = r.json()
    roles = {m["userId"]: m["role"] for m in body["members"]}
    assert roles == {str(specialist.id): "COORDINATOR", str(teacher.id): "TEACHER"}
    assert len(body["students"]) == 1

    audit = db_session.query(models.AuditLog).filter_by(action_type="team_create").one()
    assert audit.metadata_json["members"] == 2


def test_create_team_unknown_member(client, specialist, auth_headers):
    r = client.post("/api/teams/", json={
        "name": "Ghost Team",
        "memberIds": ["00000000-0000-0000-0000-000000000000"],
    }, headers=auth_headers(specialist))
    assert r.status_code == 404
    assert r.json()["detail"].startswith("User not found")


def test_teacher_cannot_create_team(client, teacher, auth_headers):
    assert client.post("/api/teams/", json={"name": "Nope"}, headers=auth_headers(teacher)).status_code == 403


def test_list_teams_scoped_to_membership(client, admin, teacher, team_factory, auth_headers):
    team_factory(name="Mine", members=[(teacher, "TEACHER")])
    team_factory(name="Other")

    mine = client.get("/api/teams/", headers=auth_headers(teacher)).json()
    assert [t["name"] for t in mine] == ["Mine"]
    assert mine[0]["membersCount"] == 1

    everything = client.get("/api/teams/", headers=auth_headers(admin)).json()
    assert [t["name"] for t in everything] == ["Mine", "Other"]


def test_member_soft_removal_and_readd(client, specialist, teacher, team_factory, auth_headers):
    team = team_factory(members=[(specialist, "COORDINATOR")])
    headers = auth_headers(specialist)

    added = client.post(f"/api/teams/{team.id}/members", json={"userId": str(teacher.id)}, headers=headers)
    assert added.status_code == 201

    removed = client.delete(f"/api/teams/{team.id}/members/{teacher.id}", headers=headers)
    assert removed.json()["active"] is False
    assert removed.json()["leftAt"]
    assert len(client.get(f"/api/teams/{team.id}/members", headers=headers).json()) == 1

    again = client.delete(f"/api/teams/{team.id}/members/{teacher.id}", headers=headers)
    assert again.status_code == 404

    readded = client.post(f"/api/teams/{team.id}/members", json={"userId": str(teacher.id), "role": "COUNSELOR"}, headers=headers)
    assert readded.json()["id"] == added.json()["id"]
    assert readded.json()["active"] is True
    assert readded.json()["role"] == "COUNSELOR"


def test_team_students(client, teacher, specialist, team_factory, student_factory, assessment_factory, intervention_factory, auth_headers):
    team = team_factory()
    student = student_factory(teacher)
    assessment_factory(student, 48)
    intervention_factory(student)

    added = client.post(f"/api/teams/{team.id}/students", json={"studentId": str(student.id)}, headers=auth_headers(teacher))
    assert added.status_code == 201

    rows = client.get(f"/api/teams/{team.id}/students", headers=auth_headers(teacher)).json()
    assert rows[0]["latestAssessment"]["score"] == 48
    assert rows[0]["activeInterventions"] == 1

    assert client.delete(f"/api/teams/{team.id}/students/{student.id}", headers=auth_headers(teacher)).status_code == 403
    removed = client.delete(f"/api/teams/{team.id}/students/{student.id}", headers=auth_headers(specialist))
    assert removed.json()["active"] is False
    assert client.get(f"/api/teams/{team.id}/students", headers=auth_headers(teacher)).json() == []


def test_team_dashboard(client, teacher, team_factory, student_factory, intervention_factory, assessment_factory, auth_headers):
    student = student_factory(teacher)
    team = team_factory(students=[student])
    intervention_factory(student, status="ACTIVE")
    intervention_factory(student, status="COMPLETED")
    intervention_factory(student, status="COMPLETED")
    assessment_factory(student, 60)

    body = client.get(f"/api/teams/{team.id}/dashboard", headers=auth_headers(teacher)).json()
    assert body["studentsCount"] == 1
    assert body["activeInterventionsCount"] == 1
    assert body["completedInterventionsCount"] == 2
    assert body["assessmentsCount"] == 1
    assert body["interventionSuccessRate"] == 67
    assert body["referralCompletionRate"] == 0


def test_update_and_delete_team(client, admin, specialist, team_factory, auth_headers, db_session):
    team = team_factory()
    r = client.patch(f"/api/teams/{team.id}", json={"description": "Tier 2 review"}, headers=auth_headers(specialist))
    assert r.json()["description"] == "Tier 2 review"

    assert client.delete(f"/api/teams/{team.id}", headers=auth_headers(specialist)).status_code == 403
    assert client.delete(f"/api/teams/{team.id}", headers=auth_headers(admin)).status_code == 200
    assert client.get(f"/api/teams/{team.id}", headers=auth_headers(admin)).status_code == 404
    actions = {a.action_type for a in db_session.query(models.AuditLog).all()}
    assert {"team_update", "team_delete"} <= actions
