"""Request/response schemas for patient registration and listing."""

import datetime as dt
from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.base import CamelModel

Sex = Literal["Male", "Female", "Other"]


class PatientCreate(CamelModel):
    """Body for POST /patients. whatsapp_number defaults to phone_number."""

    name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., ge=0, le=150)
    sex: Sex
    phone_number: str = Field(..., min_length=1, max_length=32)
    whatsapp_number: str | None = Field(default=None, max_length=32)
    place: str = Field(..., min_length=1, max_length=255)
    department: str = Field(..., min_length=1, max_length=255)
    doctor: str = Field(..., min_length=1, max_length=255)


class PatientUpdate(CamelModel):
    """Body for PUT /patients/{id}; only fields that are sent are changed."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    age: int | None = Field(default=None, ge=0, le=150)
    sex: Sex | None = None
    phone_number: str | None = Field(default=None, min_length=1, max_length=32)
    whatsapp_number: str | None = Field(default=None, max_length=32)
    place: str | None = Field(default=None, min_length=1, max_length=255)
    department: str | None = Field(default=None, min_length=1, max_length=255)
    doctor: str | None = Field(default=None, min_length=1, max_length=255)


class RegisteredBy(CamelModel):
    id: int
    name: str
    email: str
    role: str


class PatientOut(CamelModel):
    id: int
    name: str
    age: int
    sex: str
    phone_number: str
    whatsapp_number: str | None = None
    place: str
    department: str
    doctor: str
    created_at: datetime
    registered_by: RegisteredBy | None = None
    created_by_role: str


class PatientFilters(CamelModel):
    """Filters and paging for GET /patients, built from its query parameters."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    department: str | None = None
    doctor: str | None = None
    search: str | None = None
    date: dt.date | None = None
    sort_order: Literal["asc", "desc"] = "desc"


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_patients: int
    patients_per_page: int


class PatientListResponse(CamelModel):
    patients: list[PatientOut]
    pagination: Pagination


class PatientResponse(CamelModel):
    message: str
    patient: PatientOut
