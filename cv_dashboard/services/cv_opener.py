"""CV link resolution and the CV viewer.

Stored file references are either absolute URLs, used as they are, or paths
inside a private Supabase Storage bucket, for which a short-lived signed URL
is requested on every open.  Resolution failures are returned as values,
never raised, so one broken row cannot take the table down.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urlparse

from cv_dashboard.core import constants
from cv_dashboard.models.candidate import Candidate
from cv_dashboard.models.cv import CvView, ResolvedLink
from cv_dashboard.models.enums import CvViewState, PreviewKind

logger = logging.getLogger(__name__)

_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_http_url(value: str) -> bool:
    return bool(_HTTP_URL_RE.match(value))


def strip_bucket_prefix(path: str, bucket: str) -> str:
    """Drop a redundant leading ``"<bucket>/"`` from a storage path."""
    prefix = f"{bucket}/"
    if bucket and path.startswith(prefix):
        return path[len(prefix):]
    return path


def file_reference(candidate: Candidate) -> str:
    """Return the stored reference of a CV: URL, storage path, or file name."""
    for value in (candidate.cv_url, candidate.file_path, candidate.file_name):
        cleaned = (value or "").strip()
        if cleaned:
            return cleaned
    return ""


def preview_kind(url: str) -> PreviewKind:
    """PDFs can be embedded; anything else is opened externally."""
    path = urlparse(url).path.lower()
    if path.endswith(".pdf"):
        return PreviewKind.pdf
    return PreviewKind.external


class CvOpener:
    """Resolve stored CV references into viewable links."""

    def __init__(
        self,
        client: Any,
        bucket: str = constants.CV_BUCKET,
        ttl_seconds: int = constants.SIGNED_URL_TTL_SECONDS,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.ttl_seconds = ttl_seconds

    def signed_url(
        self,
        path: str,
        bucket: str | None = None,
        ttl_seconds: int | None = None,
    ) -> ResolvedLink:
        """Ask Supabase Storage for a signed URL of ``path``."""
        bucket = bucket or self.bucket
        ttl = ttl_seconds or self.ttl_seconds
        try:
            response = self.client.storage.from_(bucket).create_signed_url(path, ttl)
        except Exception as exc:
            logger.warning(
                "signed_url_failed",
                extra={"bucket": bucket, "path": path, "error_message": str(exc)},
            )
            return ResolvedLink(error=str(exc) or type(exc).__name__)

        url = None
        if isinstance(response, dict):
            # storage3 has returned both spellings across versions
            url = response.get("signedURL") or response.get("signedUrl")
        if not url:
            logger.warning(
                "signed_url_missing",
                extra={"bucket": bucket, "path": path},
            )
            return ResolvedLink(error="Storage returned no signed URL")
        return ResolvedLink(url=url)

    def resolve_link(self, path_or_url: str | None, bucket: str | None = None) -> ResolvedLink:
        """Return a viewable link for a stored reference."""
        reference = (path_or_url or "").strip()
        if not reference:
            return ResolvedLink(error="No file reference stored for this CV")
        if is_http_url(reference):
            return ResolvedLink(url=reference)
        bucket = bucket or self.bucket
        return self.signed_url(strip_bucket_prefix(reference, bucket), bucket)


class CvViewerStateError(RuntimeError):
    """Raised on a transition the CV viewer does not allow."""


class CvViewer:
    """CLOSED -> LOADING -> SHOWING_LINK | SHOWING_ERROR -> CLOSED."""

    def __init__(self, opener: CvOpener) -> None:
        self.opener = opener
        self.state = CvViewState.closed
        self.candidate_id: str | None = None
        self.title = ""
        self.url: str | None = None
        self.error: str | None = None

    def open(self, candidate: Candidate) -> CvView:
        if self.state != CvViewState.closed:
            raise CvViewerStateError(f"cannot open a CV while {self.state.value}")

        self.state = CvViewState.loading
        self.candidate_id = candidate.id
        name = (candidate.full_name or "").strip() or "Candidat"
        file_name = (candidate.file_name or "").strip() or "CV"
        self.title = f"{name} - {file_name}"

        link = self.opener.resolve_link(file_reference(candidate))
        if link.ok:
            self.url = link.url
            self.state = CvViewState.showing_link
        else:
            self.error = link.error
            self.state = CvViewState.showing_error
            logger.info(
                "cv_open_failed",
                extra={"candidate_id": candidate.id, "error_message": link.error},
            )
        return self.snapshot()

    def close(self) -> CvView:
        if self.state == CvViewState.loading:
            raise CvViewerStateError("cannot close a CV while it is loading")
        self.state = CvViewState.closed
        self.candidate_id = None
        self.title = ""
        self.url = None
        self.error = None
        return self.snapshot()

    def snapshot(self) -> CvView:
        view = CvView(
            state=self.state,
            candidate_id=self.candidate_id,
            title=self.title,
            url=self.url,
            error=self.error,
        )
        if self.state == CvViewState.showing_link and self.url:
            view.preview = preview_kind(self.url)
            if view.preview == PreviewKind.external:
                view.message = constants.CV_NO_PREVIEW_MESSAGE
        elif self.state == CvViewState.showing_error:
            view.message = constants.CV_CANNOT_OPEN_MESSAGE
        return view
