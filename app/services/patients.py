"""Patient registration, filtered listing, update and removal."""

import logging
import math
from datetime import UTC, datetime, time

from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import NotFound
from app.models import Patient, User
from app.schemas.patient import (
    Pagination,
    PatientCreate,
    PatientFilters,
    PatientListResponse,
    PatientOut,
    PatientUpdate,
)

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column, term: str):
    """Case-insensitive substring match, with LIKE wildcards in the term escaped."""
    return column.ilike(f"%{_escape_like(term)}%", escape="\\")


def register_patient(db: Session, body: PatientCreate, registered_by: User) -> Patient:
    """Create a patient; the WhatsApp number falls back to the phone number."""
    data = body.model_dump()
    data["whatsapp_number"] = data.get("whatsapp_number") or data["phone_number"]
    patient = Patient(
        **data,
        registered_by_id=registered_by.id,
        created_by_role=registered_by.role,
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    logger.info(
        "Patient registered",
        extra={"patient_id": patient.id, "registered_by": registered_by.id},
    )
    return patient


def list_patients(db: Session, filters: PatientFilters) -> PatientListResponse:
    """
    Page through patients matching the filters.

    department matches exactly; doctor and search (on name) are case-insensitive
    substring matches; date keeps records created on that calendar day (UTC).
    Sorted by creation time, newest first unless sort_order is 'asc'.
    """
    query = db.query(Patient)
    if filters.department:
        query = query.filter(Patient.department == filters.department)
    if filters.doctor:
        query = query.filter(_contains(Patient.doctor, filters.doctor))
    if filters.search:
        query = query.filter(_contains(Patient.name, filters.search))
    if filters.date:
        query = query.filter(
            Patient.created_at >= datetime.combine(filters.date, time.min, tzinfo=UTC),
            Patient.created_at <= datetime.combine(filters.date, time.max, tzinfo=UTC),
        )

    total = query.count()
    if filters.sort_order == "asc":
        order = (Patient.created_at.asc(), Patient.id.asc())
    else:
        order = (Patient.created_at.desc(), Patient.id.desc())
    patients = (
        query.options(joinedload(Patient.registered_by))
        .order_by(*order)
        .offset((filters.page - 1) * filters.limit)
        .limit(filters.limit)
        .all()
    )

    return PatientListResponse(
        patients=[PatientOut.model_validate(p) for p in patients],
        pagination=Pagination(
            current_page=filters.page,
            total_pages=math.ceil(total / filters.limit),
            total_patients=total,
            patients_per_page=filters.limit,
        ),
    )


def _get_patient(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if patient is None:
        raise NotFound("Patient not found")
    return patient


def update_patient(db: Session, patient_id: int, body: PatientUpdate) -> Patient:
    patient = _get_patient(db, patient_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(patient, field, value)
    db.commit()
    db.refresh(patient)
    logger.info("Patient updated", extra={"patient_id": patient_id})
    return patient


def delete_patient(db: Session, patient_id: int) -> None:
    patient = _get_patient(db, patient_id)
    db.delete(patient)
    db.commit()
    logger.info("Patient deleted", extra={"patient_id": patient_id})
