"""Batch ("lot") dashboard endpoints.

GET  /lots                                   -- configured batch labels.
GET  /lots/{lot}/dashboard                   -- stats + filtered, sorted rows.
POST /lots/{lot}/refresh                     -- re-fetch the batch.
GET  /lots/{lot}/candidates/{id}/cv          -- open a candidate's CV.

The lot ``ALL`` stands for every configured lot at once: its records are the
concatenation of the per-lot snapshots, and the three views derive from it.

Fetch errors never replace the records already on screen: the dashboard
keeps serving the previous snapshot with the error as a banner.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from cv_dashboard.core import constants
from cv_dashboard.core.config import settings
from cv_dashboard.db.supabase import get_supabase
from cv_dashboard.models.cv import CvView
from cv_dashboard.models.dashboard import (
    DashboardResponse,
    FilterOptions,
    LotsResponse,
    RefreshResponse,
)
from cv_dashboard.models.enums import BandFilter, ParseStatus, SortKey, ViewName
from cv_dashboard.models.rules import ClassificationRules
from cv_dashboard.services.classifier import rules_from_settings
from cv_dashboard.services.cv_opener import CvOpener, CvViewer
from cv_dashboard.services.dashboard import build_dashboard
from cv_dashboard.services.fetcher import CandidateFetcher, CandidateFetchError
from cv_dashboard.services.snapshots import (
    BatchSnapshot,
    SnapshotStore,
    ensure_loaded,
    load_batch,
    merge_snapshots,
    snapshot_store,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_fetcher() -> CandidateFetcher:
    """Build the record fetcher from settings."""
    return CandidateFetcher(
        get_supabase(),
        view_name=settings.CANDIDATES_VIEW,
        page_size=settings.FETCH_PAGE_SIZE,
        columns=settings.CANDIDATE_COLUMNS,
    )


def get_cv_opener() -> CvOpener:
    """Build the CV opener from settings."""
    return CvOpener(
        get_supabase(),
        bucket=settings.CV_BUCKET,
        ttl_seconds=settings.SIGNED_URL_TTL_SECONDS,
    )


def get_rules() -> ClassificationRules:
    return rules_from_settings(settings)


def get_store() -> SnapshotStore:
    return snapshot_store


def resolve_lot(lot: str) -> str:
    """Match ``lot`` case-insensitively against the configured batches or ``ALL``."""
    wanted = lot.strip().upper()
    if wanted == constants.ALL_LOTS:
        return constants.ALL_LOTS
    for known in settings.LOTS:
        if known.upper() == wanted:
            return known
    raise HTTPException(status_code=404, detail=f"Unknown lot: {lot}")


def lot_batches(lot: str) -> list[str]:
    if lot == constants.ALL_LOTS:
        return list(settings.LOTS)
    return [lot]


def load_lot(store: SnapshotStore, fetcher: CandidateFetcher, lot: str) -> BatchSnapshot:
    """Return the snapshot of ``lot``, loading its batches on first use."""
    if lot == constants.ALL_LOTS:
        return merge_snapshots(
            lot, [ensure_loaded(store, fetcher, batch) for batch in lot_batches(lot)]
        )
    return ensure_loaded(store, fetcher, lot)


# ---------------------------------------------------------------------------
# GET /lots
# ---------------------------------------------------------------------------

@router.get("", response_model=LotsResponse)
async def list_lots() -> LotsResponse:
    """Return the batch labels the dashboard can show."""
    return LotsResponse(lots=list(settings.LOTS), all_lots=constants.ALL_LOTS)


# ---------------------------------------------------------------------------
# GET /lots/{lot}/dashboard
# ---------------------------------------------------------------------------

@router.get("/{lot}/dashboard", response_model=DashboardResponse)
def lot_dashboard(
    lot: str = Depends(resolve_lot),
    view: ViewName = Query(default=ViewName.all, description="Active subset"),
    search: str = Query(default="", description="Name / file name search"),
    search_company: bool = Query(default=False, description="Also search last company"),
    band: BandFilter = Query(default=BandFilter.ALL, description="Band filter"),
    hide_unusable: bool = Query(default=False, description="Hide unusable CVs"),
    sort: SortKey = Query(default=SortKey.name, description="Row ordering"),
    min_score: float | None = Query(default=None, ge=0, le=100, description="Minimum score"),
    parse_status: ParseStatus | None = Query(default=None, description="Parse status filter"),
    fetcher: CandidateFetcher = Depends(get_fetcher),
    rules: ClassificationRules = Depends(get_rules),
    store: SnapshotStore = Depends(get_store),
) -> DashboardResponse:
    """Return stats of the three views and the rows of the active one.

    The batch is fetched on first use.  A fetch error is reported in the
    ``error`` field instead of failing the request.
    """
    snapshot = load_lot(store, fetcher, lot)
    options = FilterOptions(
        search=search,
        search_company=search_company,
        band=band,
        hide_unusable=hide_unusable,
        sort=sort,
        min_score=min_score,
        parse_status=parse_status,
    )
    return build_dashboard(snapshot, view, options, rules)


# ---------------------------------------------------------------------------
# POST /lots/{lot}/refresh
# ---------------------------------------------------------------------------

@router.post("/{lot}/refresh", response_model=RefreshResponse)
def refresh_lot(
    lot: str = Depends(resolve_lot),
    fetcher: CandidateFetcher = Depends(get_fetcher),
    store: SnapshotStore = Depends(get_store),
) -> RefreshResponse:
    """Re-fetch every record of the batch (of every batch for ``ALL``).

    Returns ``applied=False`` when a newer refresh started meanwhile, and 502
    when a fetch fails (the previous records stay displayed).  With ``ALL``,
    every batch is attempted before reporting the failures.
    """
    batches = lot_batches(lot)
    applied = True
    failures: list[str] = []
    for batch in batches:
        try:
            applied = load_batch(store, fetcher, batch) and applied
        except CandidateFetchError as exc:
            logger.error(
                "refresh_lot_failed",
                extra={"lot": lot, "batch": batch, "error_message": exc.message},
            )
            failures.append(exc.message if len(batches) == 1 else f"{batch}: {exc.message}")

    if failures:
        message = "; ".join(failures)
        raise HTTPException(
            status_code=502,
            detail=f"Failed to load candidates: {message}",
        )

    snapshot = load_lot(store, fetcher, lot)
    return RefreshResponse(
        lot=lot,
        applied=applied,
        total=len(snapshot.records),
        loaded_at=snapshot.loaded_at,
    )


# ---------------------------------------------------------------------------
# GET /lots/{lot}/candidates/{candidate_id}/cv
# ---------------------------------------------------------------------------

@router.get("/{lot}/candidates/{candidate_id}/cv", response_model=CvView)
def open_candidate_cv(
    candidate_id: str,
    lot: str = Depends(resolve_lot),
    fetcher: CandidateFetcher = Depends(get_fetcher),
    opener: CvOpener = Depends(get_cv_opener),
    store: SnapshotStore = Depends(get_store),
) -> CvView:
    """Resolve a candidate's CV into a viewable link.

    Always 200 for a known candidate: a CV that cannot be opened comes back
    in the ``showing_error`` state.
    """
    snapshot = load_lot(store, fetcher, lot)
    candidate = next((r for r in snapshot.records if r.id == candidate_id), None)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Candidate not found in this lot")

    return CvViewer(opener).open(candidate)
