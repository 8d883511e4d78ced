"""Paginated retrieval of the candidate records of one batch.

Reads the dashboard view through PostgREST ``range`` pages until a short or
empty page comes back.  Any failure aborts the whole fetch: callers either
get every record of the batch or a ``CandidateFetchError``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from cv_dashboard.core import constants
from cv_dashboard.models.candidate import Candidate

logger = logging.getLogger(__name__)


class CandidateFetchError(RuntimeError):
    """Raised when a batch cannot be retrieved completely."""

    def __init__(self, batch: str, message: str) -> None:
        super().__init__(message)
        self.batch = batch
        self.message = message


class CandidateFetcher:
    """Fetch every candidate of a batch from the Supabase dashboard view.

    Parameters
    ----------
    client:
        Supabase client (or any object exposing the same fluent
        ``table().select().eq().order().range().execute()`` chain).
    view_name:
        Table or view holding one row per parsed CV.
    page_size:
        Rows requested per page.
    columns:
        Columns to select.
    """

    def __init__(
        self,
        client: Any,
        view_name: str = constants.CANDIDATES_VIEW,
        page_size: int = constants.FETCH_PAGE_SIZE,
        columns: Sequence[str] = constants.CANDIDATE_COLUMNS,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.client = client
        self.view_name = view_name
        self.page_size = page_size
        self.columns = ",".join(columns)

    def _fetch_page(self, batch: str, start: int) -> list[dict[str, Any]]:
        end = start + self.page_size - 1
        result = (
            self.client.table(self.view_name)
            .select(self.columns)
            .eq("cv_batch", batch)
            .order("id")
            .range(start, end)
            .execute()
        )
        return result.data or []

    def fetch_batch(self, batch: str) -> list[Candidate]:
        """Return all records of ``batch``, in id order, without duplicates.

        Raises
        ------
        CandidateFetchError
            On any client error or invalid row.  Nothing partial is returned.
        """
        records: list[Candidate] = []
        seen: set[str] = set()
        start = 0
        pages = 0

        while True:
            try:
                rows = self._fetch_page(batch, start)
            except Exception as exc:
                logger.error(
                    "candidates_fetch_failed",
                    extra={
                        "batch": batch,
                        "offset": start,
                        "error_message": str(exc),
                    },
                )
                raise CandidateFetchError(batch, str(exc) or type(exc).__name__) from exc
            pages += 1

            for row in rows:
                try:
                    candidate = Candidate.model_validate(row)
                except ValidationError as exc:
                    logger.error(
                        "candidate_row_invalid",
                        extra={
                            "batch": batch,
                            "candidate_id": row.get("id"),
                            "error_message": str(exc),
                        },
                    )
                    raise CandidateFetchError(
                        batch, f"Invalid candidate row {row.get('id')!r}: {exc}"
                    ) from exc

                if candidate.id in seen:
                    logger.warning(
                        "candidate_duplicate_skipped",
                        extra={"batch": batch, "candidate_id": candidate.id},
                    )
                    continue
                seen.add(candidate.id)
                records.append(candidate)

            if len(rows) < self.page_size:
                break
            start += self.page_size

        logger.info(
            "candidates_fetch_completed",
            extra={"batch": batch, "pages": pages, "records": len(records)},
        )
        return records
