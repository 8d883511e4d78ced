"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for import throughout the app.
The Supabase endpoint and key are required: importing this module without
them raises a ``ValidationError`` so the process fails at startup.
"""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cv_dashboard.core import constants


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str = Field(
        validation_alias=AliasChoices("SUPABASE_KEY", "SUPABASE_SERVICE_ROLE_KEY"),
    )
    CANDIDATES_VIEW: str = constants.CANDIDATES_VIEW
    FETCH_PAGE_SIZE: int = Field(default=constants.FETCH_PAGE_SIZE, gt=0)
    CANDIDATE_COLUMNS: list[str] = Field(
        default_factory=lambda: list(constants.CANDIDATE_COLUMNS)
    )
    LOTS: list[str] = Field(default_factory=lambda: list(constants.DEFAULT_LOTS))

    # Storage
    CV_BUCKET: str = constants.CV_BUCKET
    SIGNED_URL_TTL_SECONDS: int = Field(default=constants.SIGNED_URL_TTL_SECONDS, gt=0)

    # Basic auth gate
    BASIC_AUTH_USER: str = ""
    BASIC_AUTH_PASSWORD: str = ""
    AUTH_REALM: str = "CV Dashboard"
    AUTH_EXEMPT_PATHS: list[str] = Field(
        default_factory=lambda: ["/static/", "/favicon.ico", "/robots.txt"]
    )

    # Classification rules
    TARGET_DEGREE_KEYWORDS: list[str] = Field(
        default_factory=lambda: list(constants.TARGET_DEGREE_KEYWORDS)
    )
    TARGET_FIELD_KEYWORDS: list[str] = Field(
        default_factory=lambda: list(constants.TARGET_FIELD_KEYWORDS)
    )
    TARGET_MIN_EXPERIENCE_YEARS: float = constants.TARGET_MIN_EXPERIENCE_YEARS
    UNREADABLE_MARKERS: list[str] = Field(
        default_factory=lambda: list(constants.UNREADABLE_MARKERS)
    )
    NAME_PLACEHOLDERS: list[str] = Field(
        default_factory=lambda: list(constants.NAME_PLACEHOLDERS)
    )
    ENGLISH_LANGUAGE_CODES: list[str] = Field(
        default_factory=lambda: list(constants.ENGLISH_LANGUAGE_CODES)
    )
    ENGLISH_LANGUAGE_PREFIXES: list[str] = Field(
        default_factory=lambda: list(constants.ENGLISH_LANGUAGE_PREFIXES)
    )
    ENGLISH_LANGUAGE_KEYWORDS: list[str] = Field(
        default_factory=lambda: list(constants.ENGLISH_LANGUAGE_KEYWORDS)
    )

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("SUPABASE_URL", "SUPABASE_KEY")
    @classmethod
    def _require_non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


settings = Settings()  # type: ignore[call-arg]
