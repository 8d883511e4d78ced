"""Models for CV link resolution and the CV viewer."""

from pydantic import BaseModel

from cv_dashboard.models.enums import CvViewState, PreviewKind


class ResolvedLink(BaseModel):
    """Outcome of resolving a stored file reference: a URL or an error."""
    url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.url is not None and self.error is None


class CvView(BaseModel):
    """Snapshot of the CV viewer, ready to render."""
    state: CvViewState = CvViewState.closed
    candidate_id: str | None = None
    title: str = ""
    url: str | None = None
    preview: PreviewKind | None = None
    message: str | None = None
    error: str | None = None
