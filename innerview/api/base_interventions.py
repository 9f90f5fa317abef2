"""
Base intervention catalogue endpoints.

Entries referenced by student interventions are deactivated rather than
deleted.
"""
from typing import List, Type
from enum import Enum
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import catalogue as catalogue_repo
from innerview.utils.role_permissions import TEAM_MANAGERS

router = APIRouter(prefix="/base-interventions", tags=["base-interventions"])


def _parse_enum(enum_cls: Type[Enum], value: str, label: str) -> str:
    try:
        return enum_cls(value.upper()).value
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label}: {value}")


@router.post("/", response_model=schemas.BaseIntervention, status_code=status.HTTP_201_CREATED)
def create_base_intervention(
    payload: schemas.BaseInterventionCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    return catalogue_repo.create_base_intervention(db, payload)


@router.get("/", response_model=List[schemas.BaseInterventionListItem])
def list_base_interventions(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return catalogue_repo.get_base_interventions(db, include_inactive=include_inactive)


@router.get("/area/{area}", response_model=List[schemas.BaseInterventionListItem])
def list_by_area(
    area: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return catalogue_repo.get_base_interventions(db, area=_parse_enum(schemas.InterventionArea, area, "area"))


@router.get("/tier/{tier}", response_model=List[schemas.BaseInterventionListItem])
def list_by_tier(
    tier: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return catalogue_repo.get_base_interventions(db, tier=_parse_enum(schemas.InterventionTier, tier, "tier"))


@router.post("/associate-difficulty", response_model=schemas.DifficultyIntervention)
def associate_difficulty(
    payload: schemas.DifficultyAssociation,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    if not catalogue_repo.get_base_intervention(db, payload.intervention_id):
        raise HTTPException(status_code=404, detail="Base intervention not found")
    if not catalogue_repo.get_difficulty(db, payload.difficulty_id):
        raise HTTPException(status_code=404, detail="Learning difficulty not found")
    return catalogue_repo.upsert_difficulty_link(db, payload)


@router.get("/by-difficulty/{difficulty_id}", response_model=List[schemas.DifficultyIntervention])
def list_by_difficulty(
    difficulty_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not catalogue_repo.get_difficulty(db, difficulty_id):
        raise HTTPException(status_code=404, detail="Learning difficulty not found")
    return catalogue_repo.get_links_for_difficulty(db, difficulty_id)


@router.get("/{base_intervention_id}", response_model=schemas.BaseInterventionDetail)
def get_base_intervention(
    base_intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    item = catalogue_repo.get_base_intervention_detail(db, base_intervention_id)
    if not item:
        raise HTTPException(status_code=404, detail="Base intervention not found")
    return item


@router.get("/{base_intervention_id}/difficulties", response_model=List[schemas.DifficultyIntervention])
def list_linked_difficulties(
    base_intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not catalogue_repo.get_base_intervention(db, base_intervention_id):
        raise HTTPException(status_code=404, detail="Base intervention not found")
    return catalogue_repo.get_links_for_intervention(db, base_intervention_id)


@router.delete("/{base_intervention_id}/difficulties/{difficulty_id}", response_model=schemas.MessageResponse)
def remove_difficulty_link(
    base_intervention_id: uuid.UUID,
    difficulty_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    link = catalogue_repo.get_difficulty_link(db, base_intervention_id, difficulty_id)
    if not link:
        raise HTTPException(status_code=404, detail="Association not found")
    catalogue_repo.delete_difficulty_link(db, link)
    return {"message": "Association removed"}


@router.patch("/{base_intervention_id}", response_model=schemas.BaseIntervention)
def update_base_intervention(
    base_intervention_id: uuid.UUID,
    payload: schemas.BaseInterventionUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    item = catalogue_repo.update_base_intervention(db, base_intervention_id, payload)
    if not item:
        raise HTTPException(status_code=404, detail="Base intervention not found")
    return item


@router.delete("/{base_intervention_id}")
def delete_base_intervention(
    base_intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    """Deactivate when student interventions reference the entry, delete otherwise."""
    item = catalogue_repo.get_base_intervention(db, base_intervention_id)
    if not item:
        raise HTTPException(status_code=404, detail="Base intervention not found")
    if catalogue_repo.count_student_interventions_for_base(db, base_intervention_id) > 0:
        item = catalogue_repo.deactivate_base_intervention(db, item)
        return schemas.BaseIntervention.model_validate(item)
    catalogue_repo.delete_base_intervention(db, item)
    return {"message": "Base intervention deleted"}
