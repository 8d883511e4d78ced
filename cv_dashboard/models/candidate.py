"""Pydantic models for rows of the ``dashboard_all_candidates`` view.

One row per parsed CV.  Rows are written by the parsing pipeline and only
read here, so there is no create/update payload.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cv_dashboard.models.enums import ParseStatus


class Candidate(BaseModel):
    """Full candidate record returned from the database."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str

    # File / storage
    file_name: str | None = None
    cv_url: str | None = None  # absolute URL or storage path
    file_path: str | None = None  # storage path, e.g. "LOT2/4627.pdf"
    cv_batch: str | None = None

    # Identity
    full_name: str | None = None

    # Extracted attributes
    degree_level: str | None = None
    field_of_study: str | None = None
    total_experience_years: float | None = Field(default=None, ge=0.0)
    last_job_title: str | None = None
    last_company: str | None = None
    speaks_english: bool | None = None
    english_level: str | None = None
    cv_language: str | None = None  # "en" / "fr" / ...

    # Scoring
    profile_type: str | None = None  # "A" / "B" / "C" / "A revoir" ...
    score_profil: float | None = Field(default=None, ge=0.0, le=100.0)
    notes: str | None = None
    parse_status: ParseStatus | None = None

    # Raw extraction
    education_raw: str | None = None
    experience_raw: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> Any:
        # uuid / bigint primary keys both end up as strings
        return str(value) if value is not None else value

    @field_validator("parse_status", mode="before")
    @classmethod
    def _tolerate_unknown_status(cls, value: Any) -> Any:
        if value is None:
            return None
        normalized = str(value).strip().lower()
        if normalized in ParseStatus._value2member_map_:
            return normalized
        return None
