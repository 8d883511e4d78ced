"""Enum types for candidate classification and dashboard options."""

from enum import Enum


class Band(str, Enum):
    """Coarse bucket a candidate falls into, derived from score and usability."""
    A = "A"
    B = "B"
    C = "C"
    REVIEW = "REVIEW"
    UNUSABLE = "UNUSABLE"


class ProfileLabel(str, Enum):
    """Normalized form of the ``profile_type`` label stored by the pipeline."""
    A = "A"
    B = "B"
    C = "C"
    REVIEW = "REVIEW"
    UNSET = "UNSET"


class ParseStatus(str, Enum):
    """Upstream parsing status of a CV."""
    done = "done"
    failed = "failed"
    unusable = "unusable"
    processing = "processing"


class ViewName(str, Enum):
    """The three overlapping subsets of a batch."""
    all = "all"
    target = "target"
    english = "english"


class BandFilter(str, Enum):
    """Band selector of the filter bar (``ALL`` disables it)."""
    ALL = "ALL"
    A = "A"
    B = "B"
    C = "C"
    REVIEW = "REVIEW"
    UNUSABLE = "UNUSABLE"


class SortKey(str, Enum):
    """Row ordering of the candidate table."""
    name = "name"
    score_desc = "score_desc"
    score_asc = "score_asc"
    exp_desc = "exp_desc"
    exp_asc = "exp_asc"


class CvViewState(str, Enum):
    """States of the CV viewer."""
    closed = "closed"
    loading = "loading"
    showing_link = "showing_link"
    showing_error = "showing_error"


class PreviewKind(str, Enum):
    """How a resolved CV link can be displayed."""
    pdf = "pdf"
    external = "external"
