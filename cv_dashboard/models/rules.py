"""Classification rules: the data behind the classifier predicates.

Defaults come from ``core.constants``; ``Settings`` lets each list be
overridden from the environment without touching code.
"""

from pydantic import BaseModel, ConfigDict, Field

from cv_dashboard.core import constants


class ClassificationRules(BaseModel):
    """Keyword lists and thresholds used by ``services.classifier``."""
    model_config = ConfigDict(frozen=True)

    band_a_min: float = constants.BAND_A_MIN_SCORE
    band_b_min: float = constants.BAND_B_MIN_SCORE
    band_c_min: float = constants.BAND_C_MIN_SCORE

    target_degree_keywords: tuple[str, ...] = tuple(constants.TARGET_DEGREE_KEYWORDS)
    target_field_keywords: tuple[str, ...] = tuple(constants.TARGET_FIELD_KEYWORDS)
    target_min_experience_years: float = Field(
        default=constants.TARGET_MIN_EXPERIENCE_YEARS, ge=0.0
    )

    unreadable_markers: tuple[str, ...] = tuple(constants.UNREADABLE_MARKERS)
    name_placeholders: tuple[str, ...] = tuple(constants.NAME_PLACEHOLDERS)

    english_codes: tuple[str, ...] = tuple(constants.ENGLISH_LANGUAGE_CODES)
    english_prefixes: tuple[str, ...] = tuple(constants.ENGLISH_LANGUAGE_PREFIXES)
    english_keywords: tuple[str, ...] = tuple(constants.ENGLISH_LANGUAGE_KEYWORDS)
