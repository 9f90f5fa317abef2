"""
RTI team repository functions.

Team membership and student assignment use soft deletes (``active=False``
plus a ``left_at``/``removed_at`` timestamp) so history is preserved; a
later re-add reactivates the existing row.
"""
from __future__ import annotations

import uuid
from typing import Optional, Iterable, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from innerview.db import schemas, models
from innerview.db.models import now_utc


def get_team(db: Session, team_id: uuid.UUID):
    return db.query(models.RtiTeam).filter(models.RtiTeam.id == team_id).first()


def get_teams(db: Session, member_user_id: Optional[uuid.UUID] = None):
    query = db.query(models.RtiTeam)
    if member_user_id:
        query = query.join(models.RtiTeamMember, models.RtiTeamMember.team_id == models.RtiTeam.id).filter(
            models.RtiTeamMember.user_id == member_user_id,
            models.RtiTeamMember.active.is_(True),
        )
    return query.order_by(models.RtiTeam.name).all()


def count_active_members(db: Session, team_id: uuid.UUID) -> int:
    return (
        db.query(func.count(models.RtiTeamMember.id))
        .filter(models.RtiTeamMember.team_id == team_id, models.RtiTeamMember.active.is_(True))
        .scalar()
        or 0
    )


def count_active_students(db: Session, team_id: uuid.UUID) -> int:
    return (
        db.query(func.count(models.StudentTeam.id))
        .filter(models.StudentTeam.team_id == team_id, models.StudentTeam.active.is_(True))
        .scalar()
        or 0
    )


def count_meetings(db: Session, team_id: uuid.UUID) -> int:
    return db.query(func.count(models.RtiMeeting.id)).filter(models.RtiMeeting.team_id == team_id).scalar() or 0


def count_referrals(db: Session, team_id: uuid.UUID) -> int:
    return db.query(func.count(models.Referral.id)).filter(models.Referral.team_id == team_id).scalar() or 0


def get_active_members(db: Session, team_id: uuid.UUID):
    return (
        db.query(models.RtiTeamMember)
        .options(joinedload(models.RtiTeamMember.user))
        .filter(models.RtiTeamMember.team_id == team_id, models.RtiTeamMember.active.is_(True))
        .order_by(models.RtiTeamMember.joined_at)
        .all()
    )


def get_active_student_links(db: Session, team_id: uuid.UUID):
    return (
        db.query(models.StudentTeam)
        .options(joinedload(models.StudentTeam.student))
        .filter(models.StudentTeam.team_id == team_id, models.StudentTeam.active.is_(True))
        .order_by(models.StudentTeam.assigned_at)
        .all()
    )


def get_active_student_ids(db: Session, team_id: uuid.UUID):
    rows = (
        db.query(models.StudentTeam.student_id)
        .filter(models.StudentTeam.team_id == team_id, models.StudentTeam.active.is_(True))
        .all()
    )
    return [row[0] for row in rows]


def get_member(db: Session, team_id: uuid.UUID, user_id: uuid.UUID):
    return (
        db.query(models.RtiTeamMember)
        .filter(models.RtiTeamMember.team_id == team_id, models.RtiTeamMember.user_id == user_id)
        .first()
    )


def get_student_link(db: Session, team_id: uuid.UUID, student_id: uuid.UUID):
    return (
        db.query(models.StudentTeam)
        .filter(models.StudentTeam.team_id == team_id, models.StudentTeam.student_id == student_id)
        .first()
    )


def _stage_member(db: Session, team_id: uuid.UUID, user_id: uuid.UUID, role: str) -> Tuple[models.RtiTeamMember, bool]:
    """Activate or create a membership; returns (member, created)."""
    member = get_member(db, team_id, user_id)
    if member:
        member.role = role
        if not member.active:
            member.active = True
            member.joined_at = now_utc()
            member.left_at = None
        return member, False
    member = models.RtiTeamMember(team_id=team_id, user_id=user_id, role=role, active=True)
    db.add(member)
    return member, True


def _stage_student(db: Session, team_id: uuid.UUID, student_id: uuid.UUID) -> models.StudentTeam:
    link = get_student_link(db, team_id, student_id)
    if link:
        if not link.active:
            link.active = True
            link.assigned_at = now_utc()
            link.removed_at = None
        return link
    link = models.StudentTeam(team_id=team_id, student_id=student_id, active=True)
    db.add(link)
    return link


def create_team(db: Session, team: schemas.TeamCreate, members: Iterable[Tuple[uuid.UUID, str]], student_ids: Iterable[uuid.UUID]):
    db_team = models.RtiTeam(**team.model_dump(exclude={"members", "member_ids", "student_ids"}))
    db.add(db_team)
    db.flush()
    for user_id, role in members:
        _stage_member(db, db_team.id, user_id, role)
    for student_id in student_ids:
        _stage_student(db, db_team.id, student_id)
    db.commit()
    db.refresh(db_team)
    return db_team


def update_team(db: Session, db_team: models.RtiTeam, team: schemas.TeamUpdate):
    for key, value in team.model_dump(exclude_unset=True).items():
        setattr(db_team, key, value)
    db.commit()
    db.refresh(db_team)
    return db_team


def delete_team(db: Session, db_team: models.RtiTeam):
    db.query(models.Referral).filter(models.Referral.team_id == db_team.id).update({"team_id": None})
    db.query(models.RtiMeeting).filter(models.RtiMeeting.team_id == db_team.id).update({"team_id": None})
    # members and student links go with the team through the relationship cascade
    db.delete(db_team)
    db.commit()


def add_member(db: Session, team_id: uuid.UUID, user_id: uuid.UUID, role: str):
    member, _created = _stage_member(db, team_id, user_id, role)
    db.commit()
    db.refresh(member)
    return member


def remove_member(db: Session, member: models.RtiTeamMember):
    member.active = False
    member.left_at = now_utc()
    db.commit()
    db.refresh(member)
    return member


def add_student(db: Session, team_id: uuid.UUID, student_id: uuid.UUID):
    link = _stage_student(db, team_id, student_id)
    db.commit()
    db.refresh(link)
    return link


def remove_student(db: Session, link: models.StudentTeam):
    link.active = False
    link.removed_at = now_utc()
    db.commit()
    db.refresh(link)
    return link


def latest_assessment(db: Session, student_id: uuid.UUID):
    return (
        db.query(models.Assessment)
        .filter(models.Assessment.student_id == student_id)
        .order_by(models.Assessment.date.desc())
        .first()
    )


def count_active_interventions(db: Session, student_id: uuid.UUID) -> int:
    return (
        db.query(func.count(models.Intervention.id))
        .filter(
            models.Intervention.student_id == student_id,
            models.Intervention.status == schemas.InterventionStatus.ACTIVE.value,
        )
        .scalar()
        or 0
    )
