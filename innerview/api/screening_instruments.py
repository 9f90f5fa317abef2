"""
Screening instrument and indicator endpoints.

Instruments that have been applied are deactivated instead of deleted.
"""
from typing import List
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import screenings as screening_repo
from innerview.utils.role_permissions import TEAM_MANAGERS

router = APIRouter(prefix="/screening-instruments", tags=["screening-instruments"])


# === Indicators ===

@router.post("/indicators", response_model=schemas.ScreeningIndicator, status_code=status.HTTP_201_CREATED)
def create_indicator(
    payload: schemas.ScreeningIndicatorCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    if not screening_repo.get_instrument(db, payload.instrument_id):
        raise HTTPException(status_code=404, detail="Screening instrument not found")
    return screening_repo.create_indicator(db, payload)


@router.get("/indicators/{instrument_id}", response_model=List[schemas.ScreeningIndicator])
def list_indicators(
    instrument_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not screening_repo.get_instrument(db, instrument_id):
        raise HTTPException(status_code=404, detail="Screening instrument not found")
    return screening_repo.get_indicators(db, instrument_id)


@router.get("/indicator/{indicator_id}", response_model=schemas.ScreeningIndicator)
def get_indicator(
    indicator_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    indicator = screening_repo.get_indicator(db, indicator_id)
    if not indicator:
        raise HTTPException(status_code=404, detail="Screening indicator not found")
    return indicator


@router.delete("/indicator/{indicator_id}", response_model=schemas.MessageResponse)
def delete_indicator(
    indicator_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    indicator = screening_repo.get_indicator(db, indicator_id)
    if not indicator:
        raise HTTPException(status_code=404, detail="Screening indicator not found")
    if screening_repo.count_results_for_indicator(db, indicator_id) > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Indicator has recorded results and cannot be deleted",
        )
    screening_repo.delete_indicator(db, indicator)
    return {"message": "Screening indicator deleted"}


# === Instruments ===

@router.post("/", response_model=schemas.ScreeningInstrument, status_code=status.HTTP_201_CREATED)
def create_instrument(
    payload: schemas.ScreeningInstrumentCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    return screening_repo.create_instrument(db, payload)


@router.get("/", response_model=List[schemas.ScreeningInstrumentListItem])
def list_instruments(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return screening_repo.get_instruments(db, include_inactive=include_inactive)


@router.get("/{instrument_id}", response_model=schemas.ScreeningInstrumentDetail)
def get_instrument(
    instrument_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    instrument = screening_repo.get_instrument_detail(db, instrument_id)
    if not instrument:
        raise HTTPException(status_code=404, detail="Screening instrument not found")
    return instrument


@router.patch("/{instrument_id}", response_model=schemas.ScreeningInstrument)
def update_instrument(
    instrument_id: uuid.UUID,
    payload: schemas.ScreeningInstrumentUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    instrument = screening_repo.update_instrument(db, instrument_id, payload)
    if not instrument:
        raise HTTPException(status_code=404, detail="Screening instrument not found")
    return instrument


@router.delete("/{instrument_id}")
def delete_instrument(
    instrument_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    instrument = screening_repo.get_instrument(db, instrument_id)
    if not instrument:
        raise HTTPException(status_code=404, detail="Screening instrument not found")
    if screening_repo.count_screenings_for_instrument(db, instrument_id) > 0:
        instrument = screening_repo.deactivate_instrument(db, instrument)
        return schemas.ScreeningInstrument.model_validate(instrument)
    screening_repo.delete_instrument(db, instrument)
    return {"message": "Screening instrument deleted"}
