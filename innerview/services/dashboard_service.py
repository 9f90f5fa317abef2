"""
Dashboard aggregations for the school-wide overview and per-team RTI boards.

All rates are whole percentages rounded half up.
"""

import logging
import uuid
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from innerview.db import models, schemas
from innerview.db.models import ensure_aware, now_utc
from innerview.db.repositories import meetings as meeting_repo

logger = logging.getLogger(__name__)

HIGH_RISK_SCORE = 60
HIGH_RISK_ACTIVE_INTERVENTIONS = 2
RECENT_ASSESSMENTS_CHECKED = 3

TIER_LABELS = (
    "Tier 1 (Universal)",
    "Tier 2 (Selective)",
    "Tier 3 (Intensive)",
)


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: int, total: int) -> int:
    """``part/total`` as a whole percentage, 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    return int((Decimal(part) * 100 / Decimal(total)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


# === School-wide dashboard ===

def get_summary(db: Session) -> Dict[str, int]:
    return {
        "totalStudents": db.query(func.count(models.Student.id)).scalar() or 0,
        "activeInterventions": db.query(func.count(models.Intervention.id))
        .filter(models.Intervention.status == schemas.InterventionStatus.ACTIVE.value)
        .scalar() or 0,
        "totalAssessments": db.query(func.count(models.Assessment.id)).scalar() or 0,
    }


def get_rti_distribution(db: Session) -> List[Dict[str, Any]]:
    """Bucket students by how many interventions they have ever had."""
    rows = (
        db.query(models.Student.id, func.count(models.Intervention.id))
        .outerjoin(models.Intervention, models.Intervention.student_id == models.Student.id)
        .group_by(models.Student.id)
        .all()
    )
    buckets = [0, 0, 0]
    for _, count in rows:
        if count == 0:
            buckets[0] += 1
        elif count <= 2:
            buckets[1] += 1
        else:
            buckets[2] += 1
    return [{"name": label, "value": value} for label, value in zip(TIER_LABELS, buckets)]


def get_recent_activities(db: Session) -> List[Dict[str, Any]]:
    assessments = (
        db.query(models.Assessment)
        .options(joinedload(models.Assessment.student))
        .order_by(models.Assessment.date.desc())
        .limit(5)
        .all()
    )
    interventions = (
        db.query(models.Intervention)
        .options(joinedload(models.Intervention.student))
        .order_by(models.Intervention.start_date.desc())
        .limit(5)
        .all()
    )
    activities = [
        {
            "id": a.id,
            "date": a.date,
            "type": "assessment",
            "title": f"Assessment: {a.type}",
            "studentName": a.student.name if a.student else "Unknown",
            "details": f"Score: {a.score}",
        }
        for a in assessments
    ] + [
        {
            "id": i.id,
            "date": i.start_date,
            "type": "intervention",
            "title": f"Intervention: {i.type}",
            "studentName": i.student.name if i.student else "Unknown",
            "details": f"Status: {i.status}",
        }
        for i in interventions
    ]
    activities.sort(key=lambda item: ensure_aware(item["date"]), reverse=True)
    return activities[:10]


def get_high_risk_students(db: Session) -> List[Dict[str, Any]]:
    students = (
        db.query(models.Student)
        .options(
            joinedload(models.Student.user),
            selectinload(models.Student.assessments),
            selectinload(models.Student.interventions),
        )
        .order_by(models.Student.name)
        .all()
    )
    result = []
    for student in students:
        active = [i for i in student.interventions if i.status == schemas.InterventionStatus.ACTIVE.value]
        # relationship is ordered by date desc
        recent = student.assessments[:RECENT_ASSESSMENTS_CHECKED]
        risk_factors = []
        if len(active) >= HIGH_RISK_ACTIVE_INTERVENTIONS:
            risk_factors.append("Multiple active interventions")
        if any(a.score < HIGH_RISK_SCORE for a in recent):
            risk_factors.append("Low assessment scores")
        if not risk_factors:
            continue
        result.append({
            "id": student.id,
            "name": student.name,
            "grade": student.grade,
            "responsibleTeacher": student.user.name if student.user else None,
            "interventionsCount": len(active),
            "latestAssessmentScore": recent[0].score if recent else None,
            "riskFactors": risk_factors,
        })
    return result


def get_intervention_efficacy(db: Session) -> List[Dict[str, Any]]:
    """Compare assessment means before and after each completed intervention."""
    interventions = (
        db.query(models.Intervention)
        .options(joinedload(models.Intervention.student).selectinload(models.Student.assessments))
        .filter(models.Intervention.status == schemas.InterventionStatus.COMPLETED.value)
        .all()
    )
    grouped: Dict[str, Dict[str, List[float]]] = defaultdict(lambda: {"count": [], "pre": [], "post": [], "delta": []})
    for intervention in interventions:
        stats = grouped[intervention.type]
        stats["count"].append(1)
        assessments = intervention.student.assessments if intervention.student else []
        start = ensure_aware(intervention.start_date)
        end = ensure_aware(intervention.end_date)
        pre = _mean([a.score for a in assessments if ensure_aware(a.date) < start])
        post = _mean([a.score for a in assessments if end and ensure_aware(a.date) >= end])
        if pre is not None:
            stats["pre"].append(pre)
        if post is not None:
            stats["post"].append(post)
        if pre is not None and post is not None:
            stats["delta"].append(post - pre)

    def _rounded(values):
        value = _mean(values)
        return round(value, 2) if value is not None else None

    return [
        {
            "type": intervention_type,
            "count": len(stats["count"]),
            "preInterventionAvg": _rounded(stats["pre"]),
            "postInterventionAvg": _rounded(stats["post"]),
            "averageImprovement": _rounded(stats["delta"]),
        }
        for intervention_type, stats in sorted(grouped.items())
    ]


def get_learning_difficulties(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(models.Assessment.type, func.count(models.Assessment.id))
        .group_by(models.Assessment.type)
        .order_by(models.Assessment.type)
        .all()
    )
    return [{"name": assessment_type, "value": count} for assessment_type, count in rows]


# === Team dashboard ===

def get_team_dashboard(db: Session, team_id: uuid.UUID) -> Dict[str, Any]:
    """Counts over the team's currently active students plus derived rates."""
    active_student_ids = select(models.StudentTeam.student_id).where(
        models.StudentTeam.team_id == team_id,
        models.StudentTeam.active.is_(True),
    )

    def _intervention_count(status: str) -> int:
        return (
            db.query(func.count(models.Intervention.id))
            .filter(models.Intervention.student_id.in_(active_student_ids), models.Intervention.status == status)
            .scalar() or 0
        )

    def _referral_count(status: str) -> int:
        return (
            db.query(func.count(models.Referral.id))
            .filter(models.Referral.team_id == team_id, models.Referral.status == status)
            .scalar() or 0
        )

    students_count = (
        db.query(func.count(models.StudentTeam.id))
        .filter(models.StudentTeam.team_id == team_id, models.StudentTeam.active.is_(True))
        .scalar() or 0
    )
    active_interventions = _intervention_count(schemas.InterventionStatus.ACTIVE.value)
    completed_interventions = _intervention_count(schemas.InterventionStatus.COMPLETED.value)
    assessments_count = (
        db.query(func.count(models.Assessment.id))
        .filter(models.Assessment.student_id.in_(active_student_ids))
        .scalar() or 0
    )
    pending_referrals = _referral_count(schemas.ReferralStatus.PENDING.value)
    completed_referrals = _referral_count(schemas.ReferralStatus.COMPLETED.value)

    upcoming = meeting_repo.get_upcoming_meetings(db, now=now_utc(), team_id=team_id, limit=3)
    recent_referrals = (
        db.query(models.Referral)
        .options(joinedload(models.Referral.student), joinedload(models.Referral.assigned_to))
        .filter(models.Referral.team_id == team_id)
        .order_by(models.Referral.created_at.desc())
        .limit(5)
        .all()
    )

    intervention_success = (
        percentage(completed_interventions, completed_interventions + active_interventions)
        if completed_interventions > 0 else 0
    )
    return {
        "studentsCount": students_count,
        "activeInterventionsCount": active_interventions,
        "completedInterventionsCount": completed_interventions,
        "assessmentsCount": assessments_count,
        "pendingReferralsCount": pending_referrals,
        "completedReferralsCount": completed_referrals,
        "interventionSuccessRate": intervention_success,
        "referralCompletionRate": percentage(completed_referrals, pending_referrals + completed_referrals),
        "upcomingMeetings": [schemas.Meeting.model_validate(m) for m in upcoming],
        "recentReferrals": [schemas.Referral.model_validate(r) for r in recent_referrals],
    }
