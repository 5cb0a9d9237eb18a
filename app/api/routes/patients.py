"""Patient endpoints: register, filter/paginate, update and delete. Any signed-in user."""

import datetime as dt
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.routes.auth import get_current_user
from app.core.database import get_db
from app.models import User
from app.schemas.auth import CurrentUser, MessageResponse
from app.schemas.patient import (
    PatientCreate,
    PatientFilters,
    PatientListResponse,
    PatientOut,
    PatientResponse,
    PatientUpdate,
)
from app.services import patients as patient_service

router = APIRouter()


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def register_patient(
    body: PatientCreate,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> PatientResponse:
    """Register a patient on behalf of the signed-in staff member."""
    registered_by = db.get(User, current_user.id)
    patient = patient_service.register_patient(db, body, registered_by)
    return PatientResponse(
        message="Patient registered successfully",
        patient=PatientOut.model_validate(patient),
    )


@router.get("", response_model=PatientListResponse)
def list_patients(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    department: str | None = None,
    doctor: str | None = None,
    search: str | None = None,
    date: dt.date | None = None,
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "desc",
) -> PatientListResponse:
    """List patients, newest first by default, with filters and pagination."""
    filters = PatientFilters(
        page=page,
        limit=limit,
        department=department,
        doctor=doctor,
        search=search,
        date=date,
        sort_order=sort_order,
    )
    return patient_service.list_patients(db, filters)


@router.put("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: int,
    body: PatientUpdate,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> PatientResponse:
    patient = patient_service.update_patient(db, patient_id, body)
    return PatientResponse(
        message="Patient updated successfully",
        patient=PatientOut.model_validate(patient),
    )


@router.delete("/{patient_id}", response_model=MessageResponse)
def delete_patient(
    patient_id: int,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    patient_service.delete_patient(db, patient_id)
    return MessageResponse(message="Patient removed")
