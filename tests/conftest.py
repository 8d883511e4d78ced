"""Shared test fixtures.

Seeds the environment before ``cv_dashboard`` is imported (the settings
singleton fails fast without Supabase credentials), and provides a
FastAPI ``TestClient`` wired to fake Supabase collaborators.
"""

import base64
import os
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_KEY"] = "test-service-key"
os.environ["BASIC_AUTH_USER"] = "reviewer"
os.environ["BASIC_AUTH_PASSWORD"] = "s3cret:pass"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

AUTH_USER = "reviewer"
AUTH_PASSWORD = "s3cret:pass"


def basic_auth_header(user: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    """Valid Basic credentials for the test app."""
    return basic_auth_header(AUTH_USER, AUTH_PASSWORD)


@pytest.fixture()
def candidate_rows() -> list[dict[str, Any]]:
    """A small, varied LOT1 batch as PostgREST returns it."""
    return [
        {
            "id": "c-1",
            "full_name": "Élodie Martin",
            "file_name": "martin.pdf",
            "cv_url": "LOT1/martin.pdf",
            "cv_batch": "LOT1",
            "degree_level": "Master",
            "field_of_study": "Data Science",
            "total_experience_years": 4,
            "last_job_title": "Data analyst",
            "last_company": "Orange",
            "speaks_english": True,
            "english_level": "C1",
            "cv_language": "fr",
            "profile_type": "A",
            "score_profil": 86,
            "notes": "Profil solide",
            "parse_status": "done",
        },
        {
            "id": "c-2",
            "full_name": "John Smith",
            "file_name": "smith.docx",
            "cv_url": "https://files.example.com/smith.docx",
            "cv_batch": "LOT1",
            "degree_level": "Licence",
            "field_of_study": "Gestion",
            "total_experience_years": 2,
            "last_job_title": "Assistant",
            "last_company": "Acme",
            "speaks_english": True,
            "english_level": "Native",
            "cv_language": "en",
            "profile_type": "c",
            "score_profil": 65,
            "notes": None,
            "parse_status": "done",
        },
        {
            "id": "c-3",
            "full_name": None,
            "file_name": "scan_0003.pdf",
            "cv_url": None,
            "cv_batch": "LOT1",
            "degree_level": None,
            "field_of_study": None,
            "total_experience_years": 0,
            "last_job_title": None,
            "last_company": None,
            "speaks_english": None,
            "english_level": None,
            "cv_language": None,
            "profile_type": "A revoir",
            "score_profil": None,
            "notes": None,
            "parse_status": None,
        },
    ]


@pytest.fixture()
def fake_supabase() -> MagicMock:
    """A Supabase mock with chainable table queries and storage."""
    client = MagicMock()
    query = MagicMock()
    client.table.return_value = query
    for method in ("select", "eq", "order", "limit", "range"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    return client


@pytest.fixture()
def api_client(
    fake_supabase: MagicMock,
) -> Generator[TestClient, None, None]:
    """TestClient whose routers talk to ``fake_supabase`` and a fresh store."""
    from cv_dashboard.main import app
    from cv_dashboard.services.snapshots import SnapshotStore

    with patch("cv_dashboard.routers.lots.get_supabase", return_value=fake_supabase), \
            patch("cv_dashboard.routers.lots.snapshot_store", SnapshotStore()), \
            TestClient(app) as client:
        yield client
