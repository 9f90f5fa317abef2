"""
School network and school endpoints.

Reads are open to all staff; writes are ADMIN only.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import schools as school_repo
from innerview.utils.role_permissions import ADMIN_ONLY

network_router = APIRouter(prefix="/school-networks", tags=["school-networks"])
router = APIRouter(prefix="/schools", tags=["schools"])


def _network_out(db: Session, network) -> schemas.SchoolNetwork:
    out = schemas.SchoolNetwork.model_validate(network)
    return out.model_copy(update={"schools_count": school_repo.count_schools_in_network(db, network.id)})


def _school_out(db: Session, school) -> schemas.School:
    out = schemas.School.model_validate(school)
    return out.model_copy(update=school_repo.school_counts(db, school.id))


def _ensure_network(db: Session, network_id: Optional[uuid.UUID]) -> None:
    if network_id and not school_repo.get_network(db, network_id):
        raise HTTPException(status_code=404, detail="School network not found")


# === Networks ===

@network_router.post("/", response_model=schemas.SchoolNetwork, status_code=status.HTTP_201_CREATED)
def create_network(
    payload: schemas.SchoolNetworkCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    return _network_out(db, school_repo.create_network(db, payload))


@network_router.get("/", response_model=List[schemas.SchoolNetwork])
def list_networks(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return [_network_out(db, n) for n in school_repo.get_networks(db, skip=skip, limit=limit)]


@network_router.get("/{network_id}", response_model=schemas.SchoolNetwork)
def get_network(
    network_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    network = school_repo.get_network(db, network_id)
    if not network:
        raise HTTPException(status_code=404, detail="School network not found")
    return _network_out(db, network)


@network_router.patch("/{network_id}", response_model=schemas.SchoolNetwork)
def update_network(
    network_id: uuid.UUID,
    payload: schemas.SchoolNetworkUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    network = school_repo.update_network(db, network_id, payload)
    if not network:
        raise HTTPException(status_code=404, detail="School network not found")
    return _network_out(db, network)


@network_router.delete("/{network_id}", response_model=schemas.MessageResponse)
def delete_network(
    network_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    if not school_repo.get_network(db, network_id):
        raise HTTPException(status_code=404, detail="School network not found")
    if school_repo.count_schools_in_network(db, network_id) > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete a network that still has schools",
        )
    school_repo.delete_network(db, network_id)
    return {"message": "School network deleted"}


# === Schools ===

@router.post("/", response_model=schemas.School, status_code=status.HTTP_201_CREATED)
def create_school(
    payload: schemas.SchoolCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    _ensure_network(db, payload.network_id)
    return _school_out(db, school_repo.create_school(db, payload))


@router.get("/", response_model=List[schemas.School])
def list_schools(
    network_id: Optional[uuid.UUID] = Query(default=None, alias="networkId"),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return [_school_out(db, s) for s in school_repo.get_schools(db, network_id=network_id, skip=skip, limit=limit)]


@router.get("/network/{network_id}", response_model=List[schemas.School])
def list_network_schools(
    network_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _ensure_network(db, network_id)
    return [_school_out(db, s) for s in school_repo.get_schools(db, network_id=network_id)]


@router.get("/{school_id}", response_model=schemas.School)
def get_school(
    school_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    school = school_repo.get_school(db, school_id)
    if not school:
        raise HTTPException(status_code=404, detail="School not found")
    return _school_out(db, school)


@router.patch("/{school_id}", response_model=schemas.School)
def update_school(
    school_id: uuid.UUID,
    payload: schemas.SchoolUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    _ensure_network(db, payload.network_id)
    school = school_repo.update_school(db, school_id, payload)
    if not school:
        raise HTTPException(status_code=404, detail="School not found")
    return _school_out(db, school)


@router.delete("/{school_id}", response_model=schemas.MessageResponse)
def delete_school(
    school_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    if not school_repo.delete_school(db, school_id):
        raise HTTPException(status_code=404, detail="School not found")
    return {"message": "School deleted"}
