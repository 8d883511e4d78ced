"""Integration tests for the /api/v1/lots endpoints.

Supabase is a MagicMock returning ``candidate_rows``; auth headers are
always sent unless a test is about the gate.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from cv_dashboard.core import constants


def _serve(fake_supabase: MagicMock, rows: list[dict[str, Any]]) -> None:
    fake_supabase.table.return_value.execute.return_value = MagicMock(data=rows)


def _serve_by_lot(
    fake_supabase: MagicMock, rows_by_lot: dict[str, list[dict[str, Any]] | Exception]
) -> None:
    """Answer each page with the rows of the lot last passed to ``eq``."""
    query = fake_supabase.table.return_value

    def execute() -> MagicMock:
        rows = rows_by_lot[query.eq.call_args.args[1]]
        if isinstance(rows, Exception):
            raise rows
        return MagicMock(data=rows)

    query.execute.side_effect = execute


def _ids(body: dict[str, Any]) -> list[str]:
    return [row["candidate"]["id"] for row in body["rows"]]


class TestListLots:
    def test_lists_configured_lots(
        self, api_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        response = api_client.get("/api/v1/lots", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"lots": ["LOT1", "LOT2"], "all_lots": "ALL"}


class TestDashboard:
    """GET /api/v1/lots/{lot}/dashboard"""

    def test_default_view(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)

        response = api_client.get("/api/v1/lots/LOT1/dashboard", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["lot"] == "LOT1"
        assert body["view"] == "all"
        assert body["error"] is None
        assert body["batch_total"] == 3
        assert body["displayed"] == 3
        assert body["loaded_at"] is not None
        assert body["stats"] == {
            "total": 3, "unusable": 1, "usable": 2,
            "a": 1, "b": 1, "c": 0, "review": 0, "parsed_done": 2,
        }
        assert body["views"]["target"]["total"] == 1
        assert body["views"]["english"]["total"] == 1
        # Blank name first, then accent-insensitive alphabetical order
        assert _ids(body) == ["c-3", "c-1", "c-2"]

        fake_supabase.table.assert_called_with("dashboard_all_candidates")
        fake_supabase.table.return_value.eq.assert_called_with("cv_batch", "LOT1")

    def test_row_tags(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)

        body = api_client.get("/api/v1/lots/LOT1/dashboard", headers=auth_headers).json()
        tags = {row["candidate"]["id"]: row["tags"] for row in body["rows"]}

        assert tags["c-1"]["band"] == "A"
        assert tags["c-1"]["target_profile"] is True
        assert tags["c-2"]["band"] == "B"
        assert tags["c-2"]["english_cv"] is True
        assert tags["c-2"]["profile_label"] == "C"
        assert tags["c-2"]["label_mismatch"] is True
        assert tags["c-3"]["band"] == "UNUSABLE"
        assert tags["c-3"]["usable"] is False
        assert tags["c-3"]["profile_label"] == "REVIEW"

    def test_lot_is_case_insensitive(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)
        response = api_client.get("/api/v1/lots/lot1/dashboard", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["lot"] == "LOT1"

    def test_views_and_filters(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)
        url = "/api/v1/lots/LOT1/dashboard"

        english = api_client.get(url, params={"view": "english"}, headers=auth_headers).json()
        assert _ids(english) == ["c-2"]
        assert english["stats"]["total"] == 1

        target = api_client.get(url, params={"view": "target"}, headers=auth_headers).json()
        assert _ids(target) == ["c-1"]

        hidden = api_client.get(url, params={"hide_unusable": "true"}, headers=auth_headers).json()
        assert _ids(hidden) == ["c-1", "c-2"]
        assert hidden["stats"]["total"] == 3

        band_b = api_client.get(url, params={"band": "B"}, headers=auth_headers).json()
        assert _ids(band_b) == ["c-2"]

        search = api_client.get(url, params={"search": "ÉLODIE"}, headers=auth_headers).json()
        assert _ids(search) == ["c-1"]

        company = api_client.get(
            url, params={"search": "acme", "search_company": "true"}, headers=auth_headers
        ).json()
        assert _ids(company) == ["c-2"]

        by_score = api_client.get(
            url, params={"sort": "score_desc", "min_score": 0}, headers=auth_headers
        ).json()
        assert _ids(by_score) == ["c-1", "c-2"]

        done = api_client.get(url, params={"parse_status": "done"}, headers=auth_headers).json()
        assert _ids(done) == ["c-1", "c-2"]

    def test_batch_is_fetched_once(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)
        url = "/api/v1/lots/LOT1/dashboard"

        api_client.get(url, headers=auth_headers)
        api_client.get(url, params={"view": "english"}, headers=auth_headers)

        assert fake_supabase.table.return_value.execute.call_count == 1

    def test_invalid_query_values(
        self, api_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        url = "/api/v1/lots/LOT1/dashboard"
        for params in (
            {"view": "french"},
            {"band": "D"},
            {"sort": "random"},
            {"min_score": 101},
            {"min_score": -1},
        ):
            assert api_client.get(url, params=params, headers=auth_headers).status_code == 422

    def test_unknown_lot(self, api_client: TestClient, auth_headers: dict[str, str]) -> None:
        response = api_client.get("/api/v1/lots/LOT9/dashboard", headers=auth_headers)
        assert response.status_code == 404

    def test_fetch_error_is_reported_not_raised(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
    ) -> None:
        fake_supabase.table.return_value.execute.side_effect = RuntimeError("JWT expired")

        response = api_client.get("/api/v1/lots/LOT1/dashboard", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["error"] == "JWT expired"
        assert body["rows"] == []
        assert body["stats"]["total"] == 0


class TestRefresh:
    """POST /api/v1/lots/{lot}/refresh"""

    def test_refresh_reloads(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows[:1])
        api_client.get("/api/v1/lots/LOT1/dashboard", headers=auth_headers)

        _serve(fake_supabase, candidate_rows)
        response = api_client.post("/api/v1/lots/LOT1/refresh", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["lot"] == "LOT1"
        assert body["applied"] is True
        assert body["total"] == 3

        dashboard = api_client.get("/api/v1/lots/LOT1/dashboard", headers=auth_headers).json()
        assert dashboard["batch_total"] == 3

    def test_refresh_failure_keeps_previous_rows(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)
        api_client.get("/api/v1/lots/LOT1/dashboard", headers=auth_headers)

        fake_supabase.table.return_value.execute.side_effect = RuntimeError("timeout")
        response = api_client.post("/api/v1/lots/LOT1/refresh", headers=auth_headers)

        assert response.status_code == 502
        assert "timeout" in response.json()["detail"]

        dashboard = api_client.get("/api/v1/lots/LOT1/dashboard", headers=auth_headers).json()
        assert dashboard["batch_total"] == 3
        assert dashboard["error"] == "timeout"

    def test_refresh_unknown_lot(
        self, api_client: TestClient, auth_headers: dict[str, str]
    ) -> None:
        assert api_client.post("/api/v1/lots/LOT3/refresh", headers=auth_headers).status_code == 404


class TestOpenCv:
    """GET /api/v1/lots/{lot}/candidates/{id}/cv"""

    def test_storage_path_gets_signed_url(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)
        signed = "https://test.supabase.co/storage/v1/object/sign/cvs/LOT1/martin.pdf?token=abc"
        bucket = fake_supabase.storage.from_.return_value
        bucket.create_signed_url.return_value = {"signedURL": signed}

        response = api_client.get("/api/v1/lots/LOT1/candidates/c-1/cv", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "showing_link"
        assert body["url"] == signed
        assert body["preview"] == "pdf"
        assert body["title"] == "Élodie Martin - martin.pdf"
        fake_supabase.storage.from_.assert_called_with("cvs")
        bucket.create_signed_url.assert_called_once_with("LOT1/martin.pdf", 900)

    def test_http_url_passes_through(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)

        body = api_client.get(
            "/api/v1/lots/LOT1/candidates/c-2/cv", headers=auth_headers
        ).json()

        assert body["state"] == "showing_link"
        assert body["url"] == "https://files.example.com/smith.docx"
        assert body["preview"] == "external"
        assert body["message"] == constants.CV_NO_PREVIEW_MESSAGE
        fake_supabase.storage.from_.assert_not_called()

    def test_storage_failure_shows_error(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)
        bucket = fake_supabase.storage.from_.return_value
        bucket.create_signed_url.side_effect = RuntimeError("Object not found")

        response = api_client.get("/api/v1/lots/LOT1/candidates/c-3/cv", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "showing_error"
        assert body["url"] is None
        assert body["error"] == "Object not found"
        assert body["message"] == constants.CV_CANNOT_OPEN_MESSAGE
        assert body["title"] == "Candidat - scan_0003.pdf"
        bucket.create_signed_url.assert_called_once_with("scan_0003.pdf", 900)

    def test_unknown_candidate(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve(fake_supabase, candidate_rows)
        response = api_client.get("/api/v1/lots/LOT1/candidates/zzz/cv", headers=auth_headers)
        assert response.status_code == 404


_LOT2_ROW: dict[str, Any] = {
    "id": "c-4",
    "full_name": "Amy Clarke",
    "file_name": "clarke.pdf",
    "file_path": "LOT2/clarke.pdf",
    "cv_batch": "LOT2",
    "degree_level": "Master",
    "field_of_study": "Marketing",
    "total_experience_years": 5,
    "last_job_title": "Brand manager",
    "cv_language": "en-GB",
    "score_profil": 50,
    "parse_status": "done",
}


class TestAllLots:
    """The ALL lot combines every configured lot."""

    def test_dashboard_combines_lots(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve_by_lot(fake_supabase, {"LOT1": candidate_rows, "LOT2": [_LOT2_ROW]})

        response = api_client.get("/api/v1/lots/ALL/dashboard", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["lot"] == "ALL"
        assert body["error"] is None
        assert body["batch_total"] == 4
        assert body["stats"]["total"] == 4
        assert body["stats"]["c"] == 1
        assert body["views"]["english"]["total"] == 2
        assert body["views"]["target"]["total"] == 1
        batches = [c.args[1] for c in fake_supabase.table.return_value.eq.call_args_list]
        assert batches == ["LOT1", "LOT2"]

    def test_views_derive_from_combined_set(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve_by_lot(fake_supabase, {"LOT1": candidate_rows, "LOT2": [_LOT2_ROW]})

        body = api_client.get(
            "/api/v1/lots/all/dashboard",
            params={"view": "english", "sort": "score_desc"},
            headers=auth_headers,
        ).json()

        assert body["lot"] == "ALL"
        assert _ids(body) == ["c-2", "c-4"]

    def test_one_lot_failing_keeps_the_others(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve_by_lot(
            fake_supabase, {"LOT1": candidate_rows, "LOT2": RuntimeError("JWT expired")}
        )

        body = api_client.get("/api/v1/lots/ALL/dashboard", headers=auth_headers).json()

        assert body["batch_total"] == 3
        assert body["error"] == "LOT2: JWT expired"

    def test_refresh_all(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve_by_lot(fake_supabase, {"LOT1": candidate_rows, "LOT2": [_LOT2_ROW]})

        response = api_client.post("/api/v1/lots/ALL/refresh", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["lot"] == "ALL"
        assert body["applied"] is True
        assert body["total"] == 4

    def test_refresh_all_reports_failing_lot(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve_by_lot(fake_supabase, {"LOT1": candidate_rows, "LOT2": RuntimeError("timeout")})

        response = api_client.post("/api/v1/lots/ALL/refresh", headers=auth_headers)

        assert response.status_code == 502
        assert "LOT2: timeout" in response.json()["detail"]
        lot1 = api_client.get("/api/v1/lots/LOT1/dashboard", headers=auth_headers).json()
        assert lot1["batch_total"] == 3

    def test_open_cv_from_any_lot(
        self,
        api_client: TestClient,
        fake_supabase: MagicMock,
        auth_headers: dict[str, str],
        candidate_rows: list[dict[str, Any]],
    ) -> None:
        _serve_by_lot(fake_supabase, {"LOT1": candidate_rows, "LOT2": [_LOT2_ROW]})
        bucket = fake_supabase.storage.from_.return_value
        bucket.create_signed_url.return_value = {"signedURL": "https://signed/clarke.pdf"}

        body = api_client.get(
            "/api/v1/lots/ALL/candidates/c-4/cv", headers=auth_headers
        ).json()

        assert body["state"] == "showing_link"
        assert body["url"] == "https://signed/clarke.pdf"
        bucket.create_signed_url.assert_called_once_with("LOT2/clarke.pdf", 900)
