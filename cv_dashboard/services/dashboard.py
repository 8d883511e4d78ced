"""Dashboard aggregation, filtering, sorting and view selection.

Everything here works on an in-memory snapshot of one batch: records are
classified once into ``CandidateRow`` objects, then each view (all / target
profiles / English CVs) is a subset of those rows.  Stats, filters and
sorting are single linear passes (plus the sort itself).
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable

from cv_dashboard.core.constants import MISSING_SORT_VALUE
from cv_dashboard.models.candidate import Candidate
from cv_dashboard.models.dashboard import (
    BandStats,
    CandidateRow,
    DashboardResponse,
    FilterOptions,
    ViewStats,
)
from cv_dashboard.models.enums import Band, BandFilter, ParseStatus, SortKey, ViewName
from cv_dashboard.models.rules import ClassificationRules
from cv_dashboard.services.classifier import classify
from cv_dashboard.services.snapshots import BatchSnapshot


def classify_rows(
    records: Iterable[Candidate],
    rules: ClassificationRules,
) -> list[CandidateRow]:
    """Attach classifier tags to every record, keeping input order."""
    return [CandidateRow(candidate=r, tags=classify(r, rules)) for r in records]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def compute_stats(rows: Iterable[CandidateRow]) -> BandStats:
    """Count totals and bands over a subset in one pass.

    Every usable row lands in exactly one of A / B / C / REVIEW, so
    ``a + b + c + review == usable == total - unusable``.
    """
    stats = BandStats()
    for row in rows:
        stats.total += 1
        band = row.tags.band
        if band == Band.UNUSABLE:
            stats.unusable += 1
        elif band == Band.A:
            stats.a += 1
        elif band == Band.B:
            stats.b += 1
        elif band == Band.C:
            stats.c += 1
        else:
            stats.review += 1
        if row.candidate.parse_status == ParseStatus.done:
            stats.parsed_done += 1
    stats.usable = stats.total - stats.unusable
    return stats


# ---------------------------------------------------------------------------
# View selection
# ---------------------------------------------------------------------------

def select_view(rows: Iterable[CandidateRow], view: ViewName) -> list[CandidateRow]:
    """Return the subset of ``rows`` belonging to ``view``."""
    if view == ViewName.target:
        return [r for r in rows if r.tags.target_profile]
    if view == ViewName.english:
        return [r for r in rows if r.tags.english_cv]
    return list(rows)


def compute_view_stats(rows: list[CandidateRow]) -> ViewStats:
    """Stats of the three views of the same batch."""
    return ViewStats(
        all=compute_stats(rows),
        target=compute_stats(select_view(rows, ViewName.target)),
        english=compute_stats(select_view(rows, ViewName.english)),
    )


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def _matches_search(row: CandidateRow, needle: str, include_company: bool) -> bool:
    candidate = row.candidate
    haystacks = [candidate.full_name, candidate.file_name]
    if include_company:
        haystacks.append(candidate.last_company)
    return any(needle in (h or "").casefold() for h in haystacks)


def filter_rows(rows: Iterable[CandidateRow], options: FilterOptions) -> list[CandidateRow]:
    """Apply search, band, usability, score and status filters.

    The predicates are independent of each other, so their order does not
    matter and filtering twice with the same options changes nothing.
    """
    needle = options.search.strip().casefold()
    wanted_band = None if options.band == BandFilter.ALL else Band(options.band.value)

    result: list[CandidateRow] = []
    for row in rows:
        if needle and not _matches_search(row, needle, options.search_company):
            continue
        if wanted_band is not None and row.tags.band != wanted_band:
            continue
        if options.hide_unusable and not row.tags.usable:
            continue
        if options.min_score is not None:
            score = row.candidate.score_profil
            if (score if score is not None else MISSING_SORT_VALUE) < options.min_score:
                continue
        if options.parse_status is not None and row.candidate.parse_status != options.parse_status:
            continue
        result.append(row)
    return result


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

def collation_key(value: str | None) -> str:
    """Accent- and case-insensitive key for alphabetical ordering."""
    decomposed = unicodedata.normalize("NFKD", (value or "").strip())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _number(value: float | None) -> float:
    return value if value is not None else MISSING_SORT_VALUE


def sort_rows(rows: Iterable[CandidateRow], key: SortKey) -> list[CandidateRow]:
    """Sort rows by ``key``; ties keep their input order.

    Missing scores and experience count as -1: last when descending,
    first when ascending.
    """
    indexed = list(enumerate(rows))

    if key == SortKey.score_desc:
        indexed.sort(key=lambda p: (-_number(p[1].candidate.score_profil), p[0]))
    elif key == SortKey.score_asc:
        indexed.sort(key=lambda p: (_number(p[1].candidate.score_profil), p[0]))
    elif key == SortKey.exp_desc:
        indexed.sort(key=lambda p: (-_number(p[1].candidate.total_experience_years), p[0]))
    elif key == SortKey.exp_asc:
        indexed.sort(key=lambda p: (_number(p[1].candidate.total_experience_years), p[0]))
    else:
        indexed.sort(key=lambda p: (collation_key(p[1].candidate.full_name), p[0]))

    return [row for _, row in indexed]


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def build_dashboard(
    snapshot: BatchSnapshot,
    view: ViewName,
    options: FilterOptions,
    rules: ClassificationRules,
) -> DashboardResponse:
    """Build the dashboard payload of one batch for the active view."""
    rows = classify_rows(snapshot.records, rules)
    views = compute_view_stats(rows)
    stats = {
        ViewName.all: views.all,
        ViewName.target: views.target,
        ViewName.english: views.english,
    }[view]

    visible = sort_rows(filter_rows(select_view(rows, view), options), options.sort)

    return DashboardResponse(
        lot=snapshot.batch,
        view=view,
        filters=options,
        stats=stats,
        views=views,
        rows=visible,
        displayed=len(visible),
        batch_total=len(rows),
        loaded_at=snapshot.loaded_at,
        error=snapshot.error,
    )
