"""
RTI team endpoints: membership, student assignment and the team dashboard.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import teams as team_repo
from innerview.db.repositories import users as user_repo
from innerview.db.repositories import students as student_repo
from innerview.db.repositories import schools as school_repo
from innerview.audit import AuditAction, log_team
from innerview.services import dashboard_service
from innerview.utils.role_permissions import ADMIN_ONLY, ALL_STAFF, TEAM_MANAGERS, TeamRole, is_admin

router = APIRouter(prefix="/teams", tags=["teams"])


def _get_team_or_404(db: Session, team_id: uuid.UUID):
    team = team_repo.get_team(db, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


def _team_detail(db: Session, team) -> schemas.TeamDetail:
    base = schemas.Team.model_validate(team).model_dump()
    return schemas.TeamDetail(
        **base,
        members=[schemas.TeamMember.model_validate(m) for m in team_repo.get_active_members(db, team.id)],
        students=[schemas.StudentTeamLink.model_validate(s) for s in team_repo.get_active_student_links(db, team.id)],
        meetings_count=team_repo.count_meetings(db, team.id),
        referrals_count=team_repo.count_referrals(db, team.id),
    )


def _resolve_members(payload: schemas.TeamCreate):
    """Explicit members win over plain member ids; duplicates keep the first role."""
    members = {}
    for member in payload.members:
        members.setdefault(member.user_id, member.role)
    for user_id in payload.member_ids:
        members.setdefault(user_id, TeamRole.TEACHER.value)
    return list(members.items())


@router.get("/", response_model=List[schemas.TeamListItem])
def list_teams(
    user_id: Optional[uuid.UUID] = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if user_id is None and not is_admin(user.role):
        user_id = user.id
    return [
        schemas.TeamListItem.model_validate(team).model_copy(update={
            "members_count": team_repo.count_active_members(db, team.id),
            "students_count": team_repo.count_active_students(db, team.id),
        })
        for team in team_repo.get_teams(db, member_user_id=user_id)
    ]


@router.post("/", response_model=schemas.TeamDetail, status_code=status.HTTP_201_CREATED)
def create_team(
    payload: schemas.TeamCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    user, _ctx = user_context
    if payload.school_id and not school_repo.get_school(db, payload.school_id):
        raise HTTPException(status_code=404, detail="School not found")

    members = _resolve_members(payload)
    member_ids = [user_id for user_id, _role in members]
    found_users = {u.id for u in user_repo.get_users_by_ids(db, member_ids)}
    missing_users = [str(i) for i in member_ids if i not in found_users]
    if missing_users:
        raise HTTPException(status_code=404, detail=f"User not found: {', '.join(missing_users)}")

    student_ids = list(dict.fromkeys(payload.student_ids))
    found_students = {s.id for s in student_repo.get_students_by_ids(db, student_ids)}
    missing_students = [str(i) for i in student_ids if i not in found_students]
    if missing_students:
        raise HTTPException(status_code=404, detail=f"Student not found: {', '.join(missing_students)}")

    team = team_repo.create_team(db, payload, members=members, student_ids=student_ids)
    log_team(db, actor_user_id=user.id, team_id=team.id, action=AuditAction.TEAM_CREATE, metadata={
        "name": team.name,
        "members": len(members),
        "students": len(student_ids),
    })
    return _team_detail(db, team)


@router.get("/{team_id}", response_model=schemas.TeamDetail)
def get_team(
    team_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return _team_detail(db, _get_team_or_404(db, team_id))


@router.patch("/{team_id}", response_model=schemas.TeamDetail)
def update_team(
    team_id: uuid.UUID,
    payload: schemas.TeamUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    user, _ctx = user_context
    team = _get_team_or_404(db, team_id)
    if payload.school_id and not school_repo.get_school(db, payload.school_id):
        raise HTTPException(status_code=404, detail="School not found")
    team = team_repo.update_team(db, team, payload)
    log_team(db, actor_user_id=user.id, team_id=team.id, action=AuditAction.TEAM_UPDATE, metadata={
        "fields": sorted(payload.model_dump(exclude_unset=True).keys()),
    })
    return _team_detail(db, team)


@router.delete("/{team_id}", response_model=schemas.MessageResponse)
def delete_team(
    team_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    user, _ctx = user_context
    team = _get_team_or_404(db, team_id)
    name = team.name
    team_repo.delete_team(db, team)
    log_team(db, actor_user_id=user.id, team_id=team_id, action=AuditAction.TEAM_DELETE, metadata={"name": name})
    return {"message": "Team deleted"}


# === Members ===

@router.get("/{team_id}/members", response_model=List[schemas.TeamMember])
def list_members(
    team_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _get_team_or_404(db, team_id)
    return team_repo.get_active_members(db, team_id)


@router.post("/{team_id}/members", response_model=schemas.TeamMember, status_code=status.HTTP_201_CREATED)
def add_member(
    team_id: uuid.UUID,
    payload: schemas.TeamMemberInput,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    user, _ctx = user_context
    _get_team_or_404(db, team_id)
    if not user_repo.get_user(db, payload.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    member = team_repo.add_member(db, team_id, payload.user_id, payload.role)
    log_team(db, actor_user_id=user.id, team_id=team_id, action=AuditAction.TEAM_MEMBER_ADD, metadata={
        "user_id": str(payload.user_id),
        "role": member.role,
    })
    return member


@router.delete("/{team_id}/members/{user_id}", response_model=schemas.TeamMember)
def remove_member(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    actor, _ctx = user_context
    _get_team_or_404(db, team_id)
    member = team_repo.get_member(db, team_id, user_id)
    if not member or not member.active:
        raise HTTPException(status_code=404, detail="Team member not found")
    member = team_repo.remove_member(db, member)
    log_team(db, actor_user_id=actor.id, team_id=team_id, action=AuditAction.TEAM_MEMBER_REMOVE, metadata={
        "user_id": str(user_id),
    })
    return member


# === Students ===

@router.get("/{team_id}/students")
def list_students(
    team_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _get_team_or_404(db, team_id)
    rows = []
    for link in team_repo.get_active_student_links(db, team_id):
        student = link.student
        latest = team_repo.latest_assessment(db, student.id)
        rows.append({
            "id": student.id,
            "name": student.name,
            "grade": student.grade,
            "dateOfBirth": student.date_of_birth,
            "assignedAt": link.assigned_at,
            "latestAssessment": schemas.Assessment.model_validate(latest) if latest else None,
            "activeInterventions": team_repo.count_active_interventions(db, student.id),
        })
    return rows


@router.post("/{team_id}/students", response_model=schemas.StudentTeamLink, status_code=status.HTTP_201_CREATED)
def add_student(
    team_id: uuid.UUID,
    payload: schemas.TeamStudentAdd,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ALL_STAFF)),
):
    _get_team_or_404(db, team_id)
    if not student_repo.get_student(db, payload.student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return team_repo.add_student(db, team_id, payload.student_id)


@router.delete("/{team_id}/students/{student_id}", response_model=schemas.StudentTeamLink)
def remove_student(
    team_id: uuid.UUID,
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    _get_team_or_404(db, team_id)
    link = team_repo.get_student_link(db, team_id, student_id)
    if not link or not link.active:
        raise HTTPException(status_code=404, detail="Student is not assigned to this team")
    return team_repo.remove_student(db, link)


@router.get("/{team_id}/dashboard")
def team_dashboard(
    team_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _get_team_or_404(db, team_id)
    return dashboard_service.get_team_dashboard(db, team_id)
