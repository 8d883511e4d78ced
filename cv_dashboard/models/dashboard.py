"""Response models for the dashboard endpoints.

These are API-layer response schemas, not direct table mappings.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from cv_dashboard.core.constants import ALL_LOTS
from cv_dashboard.models.candidate import Candidate
from cv_dashboard.models.enums import (
    Band,
    BandFilter,
    ParseStatus,
    ProfileLabel,
    SortKey,
    ViewName,
)


# --- Classification ---

class CandidateTags(BaseModel):
    """Per-record tags derived by the classifier."""
    usable: bool
    band: Band
    target_profile: bool
    english_cv: bool
    profile_label: ProfileLabel = ProfileLabel.UNSET
    label_mismatch: bool = False


class CandidateRow(BaseModel):
    """A candidate as displayed in the table: raw record plus derived tags."""
    candidate: Candidate
    tags: CandidateTags


# --- Stats ---

class BandStats(BaseModel):
    """Aggregate counts over one subset of records."""
    total: int = 0
    unusable: int = 0
    usable: int = 0
    a: int = 0
    b: int = 0
    c: int = 0
    review: int = 0
    parsed_done: int = 0


class ViewStats(BaseModel):
    """Stats of the three views, all computed from the same snapshot."""
    all: BandStats = BandStats()
    target: BandStats = BandStats()
    english: BandStats = BandStats()


# --- Filters ---

class FilterOptions(BaseModel):
    """Filter bar state applied to the active view."""
    search: str = ""
    search_company: bool = False
    band: BandFilter = BandFilter.ALL
    hide_unusable: bool = False
    sort: SortKey = SortKey.name
    min_score: float | None = Field(default=None, ge=0.0, le=100.0)
    parse_status: ParseStatus | None = None


# --- Dashboard ---

class DashboardResponse(BaseModel):
    """Full response for GET /api/v1/lots/{lot}/dashboard."""
    lot: str
    view: ViewName
    filters: FilterOptions
    stats: BandStats
    views: ViewStats
    rows: list[CandidateRow] = []
    displayed: int = 0
    batch_total: int = 0
    loaded_at: datetime | None = None
    error: str | None = None


class RefreshResponse(BaseModel):
    """Full response for POST /api/v1/lots/{lot}/refresh."""
    lot: str
    applied: bool
    total: int = 0
    loaded_at: datetime | None = None


class LotsResponse(BaseModel):
    """Full response for GET /api/v1/lots."""
    lots: list[str] = []
    all_lots: str = ALL_LOTS
