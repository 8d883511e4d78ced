"""Candidate classification via keyword and threshold rules.

Derives, per record, a usability flag, a score band, a "target profile"
flag, and an "English CV" flag.  All predicates are pure functions of the
record and a ``ClassificationRules`` instance, so the keyword lists can be
tuned through configuration.

The band is always derived from ``score_profil``.  The stored
``profile_type`` label is only normalized for display and compared against
the derived band.
"""

from __future__ import annotations

from cv_dashboard.core.config import Settings
from cv_dashboard.models.candidate import Candidate
from cv_dashboard.models.dashboard import CandidateTags
from cv_dashboard.models.enums import Band, ParseStatus, ProfileLabel
from cv_dashboard.models.rules import ClassificationRules

_LABEL_TO_BAND: dict[ProfileLabel, Band] = {
    ProfileLabel.A: Band.A,
    ProfileLabel.B: Band.B,
    ProfileLabel.C: Band.C,
    ProfileLabel.REVIEW: Band.REVIEW,
}


def rules_from_settings(settings: Settings) -> ClassificationRules:
    """Build classification rules from the environment-backed settings."""
    return ClassificationRules(
        target_degree_keywords=tuple(settings.TARGET_DEGREE_KEYWORDS),
        target_field_keywords=tuple(settings.TARGET_FIELD_KEYWORDS),
        target_min_experience_years=settings.TARGET_MIN_EXPERIENCE_YEARS,
        unreadable_markers=tuple(settings.UNREADABLE_MARKERS),
        name_placeholders=tuple(settings.NAME_PLACEHOLDERS),
        english_codes=tuple(settings.ENGLISH_LANGUAGE_CODES),
        english_prefixes=tuple(settings.ENGLISH_LANGUAGE_PREFIXES),
        english_keywords=tuple(settings.ENGLISH_LANGUAGE_KEYWORDS),
    )


def _clean(value: str | None) -> str:
    return (value or "").strip()


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(kw.lower() in lowered for kw in keywords if kw)


def _has_name(candidate: Candidate, rules: ClassificationRules) -> bool:
    name = _clean(candidate.full_name)
    if not name:
        return False
    return name.lower() not in {p.strip().lower() for p in rules.name_placeholders}


def is_usable(candidate: Candidate, rules: ClassificationRules) -> bool:
    """Return whether the CV yielded any usable signal.

    An explicit terminal ``parse_status`` (done / failed / unusable) is
    authoritative.  Without one, the record is unusable only when name,
    degree, field and last job title are all blank, experience is zero or
    unknown, and the notes carry no unreadable marker.
    """
    status = candidate.parse_status
    if status in (ParseStatus.failed, ParseStatus.unusable):
        return False
    if status == ParseStatus.done:
        return True

    if _has_name(candidate, rules):
        return True
    if any(
        _clean(value)
        for value in (
            candidate.degree_level,
            candidate.field_of_study,
            candidate.last_job_title,
        )
    ):
        return True
    if (candidate.total_experience_years or 0) > 0:
        return True
    return _contains_any(_clean(candidate.notes), rules.unreadable_markers)


def band_for_score(score: float | None, rules: ClassificationRules) -> Band:
    """Map a /100 score to A / B / C / REVIEW.  A missing score is REVIEW."""
    if score is None:
        return Band.REVIEW
    if score >= rules.band_a_min:
        return Band.A
    if score >= rules.band_b_min:
        return Band.B
    if score >= rules.band_c_min:
        return Band.C
    return Band.REVIEW


def band(candidate: Candidate, rules: ClassificationRules) -> Band:
    """Return the band of a record: UNUSABLE, or the band of its score."""
    if not is_usable(candidate, rules):
        return Band.UNUSABLE
    return band_for_score(candidate.score_profil, rules)


def normalize_profile_label(value: str | None) -> ProfileLabel:
    """Normalize a stored ``profile_type`` string.

    Accepts ``"a"``/``"b"``/``"c"`` in any case, and any spelling containing
    ``revoir`` or ``review`` ("A revoir", "À revoir", "to review").
    """
    normalized = _clean(value).lower()
    if not normalized:
        return ProfileLabel.UNSET
    if "revoir" in normalized or "review" in normalized:
        return ProfileLabel.REVIEW
    if normalized == "a":
        return ProfileLabel.A
    if normalized == "b":
        return ProfileLabel.B
    if normalized == "c":
        return ProfileLabel.C
    return ProfileLabel.UNSET


def is_target_profile(candidate: Candidate, rules: ClassificationRules) -> bool:
    """Qualifying degree, relevant field, and enough years of experience.

    English ability is not part of this predicate; it has its own view.
    """
    degree_ok = _contains_any(_clean(candidate.degree_level), rules.target_degree_keywords)
    field_ok = _contains_any(_clean(candidate.field_of_study), rules.target_field_keywords)
    experience = candidate.total_experience_years or 0
    return degree_ok and field_ok and experience >= rules.target_min_experience_years


def is_english_cv(candidate: Candidate, rules: ClassificationRules) -> bool:
    """Return whether the detected CV language is English."""
    language = _clean(candidate.cv_language).lower()
    if not language:
        return False
    if language in {code.lower() for code in rules.english_codes}:
        return True
    if any(language.startswith(p.lower()) for p in rules.english_prefixes if p):
        return True
    return _contains_any(language, rules.english_keywords)


def classify(candidate: Candidate, rules: ClassificationRules) -> CandidateTags:
    """Compute every derived tag of a record in one call."""
    derived = band(candidate, rules)
    label = normalize_profile_label(candidate.profile_type)
    mismatch = (
        derived != Band.UNUSABLE
        and label != ProfileLabel.UNSET
        and _LABEL_TO_BAND[label] != derived
    )
    return CandidateTags(
        usable=derived != Band.UNUSABLE,
        band=derived,
        target_profile=is_target_profile(candidate, rules),
        english_cv=is_english_cv(candidate, rules),
        profile_label=label,
        label_mismatch=mismatch,
    )
