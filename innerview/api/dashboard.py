"""
School-wide dashboard endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context
from innerview.services import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary")
def summary(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    return dashboard_service.get_summary(db)


@router.get("/distribution")
def rti_distribution(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    return dashboard_service.get_rti_distribution(db)


@router.get("/recent-activities")
def recent_activities(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    return dashboard_service.get_recent_activities(db)


@router.get("/high-risk-students")
def high_risk_students(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    return dashboard_service.get_high_risk_students(db)


@router.get("/intervention-efficacy")
def intervention_efficacy(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    return dashboard_service.get_intervention_efficacy(db)


@router.get("/learning-difficulties")
def learning_difficulties(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    return dashboard_service.get_learning_difficulties(db)
