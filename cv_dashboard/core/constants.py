"""Application constants.

Contains the default classification rules (keyword lists, band thresholds,
markers), the Supabase column list, and storage defaults.  Every list here
can be overridden from the environment through ``Settings``.
"""

# ---------------------------------------------------------------------------
# Band thresholds (score_profil is /100)
# ---------------------------------------------------------------------------
BAND_A_MIN_SCORE: float = 80.0
BAND_B_MIN_SCORE: float = 60.0
BAND_C_MIN_SCORE: float = 40.0

# Missing score / experience sort below every real value
MISSING_SORT_VALUE: float = -1.0

# ---------------------------------------------------------------------------
# Target profile criteria
# Matched as lowercase substrings of degree_level / field_of_study.
# ---------------------------------------------------------------------------
TARGET_DEGREE_KEYWORDS: list[str] = [
    "bac+5", "bac +5", "licence", "master", "ing", "ingen",
]

TARGET_FIELD_KEYWORDS: list[str] = [
    # Economie quantitative
    "économie math", "economie math", "économie quant", "economie quant",
    "quant", "econom",
    # Ingenierie
    "génie", "genie",
    # Informatique / data
    "informat", "computer", "software", "data",
]

TARGET_MIN_EXPERIENCE_YEARS: float = 3.0

# ---------------------------------------------------------------------------
# Usability heuristic
# ---------------------------------------------------------------------------
UNREADABLE_MARKERS: list[str] = [
    "non lisible", "illisible", "unreadable", "illegible",
]

# Written as full_name by the parsing pipeline when a CV cannot be read
INVALID_NAME_LABEL: str = "(CV non lisible automatiquement)"
NAME_PLACEHOLDERS: list[str] = [INVALID_NAME_LABEL]

# ---------------------------------------------------------------------------
# CV language detection
# ---------------------------------------------------------------------------
ENGLISH_LANGUAGE_CODES: list[str] = ["en"]
ENGLISH_LANGUAGE_PREFIXES: list[str] = ["en-", "en_"]
ENGLISH_LANGUAGE_KEYWORDS: list[str] = ["english", "anglais"]

# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------
CANDIDATES_VIEW: str = "dashboard_all_candidates"
FETCH_PAGE_SIZE: int = 1000

CANDIDATE_COLUMNS: list[str] = [
    "id",
    "file_name",
    "cv_url",
    "file_path",
    "cv_batch",
    "full_name",
    "degree_level",
    "field_of_study",
    "total_experience_years",
    "last_job_title",
    "last_company",
    "speaks_english",
    "english_level",
    "cv_language",
    "profile_type",
    "score_profil",
    "notes",
    "parse_status",
    "education_raw",
    "experience_raw",
]

DEFAULT_LOTS: list[str] = ["LOT1", "LOT2"]
# Pseudo-lot combining every configured lot
ALL_LOTS = "ALL"

# ---------------------------------------------------------------------------
# CV storage
# ---------------------------------------------------------------------------
CV_BUCKET: str = "cvs"
SIGNED_URL_TTL_SECONDS: int = 60 * 15

CV_CANNOT_OPEN_MESSAGE: str = (
    "Impossible d'ouvrir ce CV (URL/path manquant ou problème de permissions Storage)."
)
CV_NO_PREVIEW_MESSAGE: str = (
    "Aperçu intégré indisponible pour ce format (DOCX/Word). "
    "Utilise \"Ouvrir dans un nouvel onglet\"."
)
