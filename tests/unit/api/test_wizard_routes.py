"""End-to-end wizard flow through the FastAPI app with in-memory backends."""

from __future__ import annotations

import json

import jwt
import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakeCalculationService, MemoryCacheBackend, MemoryFileStore
from waypoint.api.app import create_app
from waypoint.core.config import AppSettings, AuthConfig

CENSUS = (
    b"Employee ID,First Name,Last Name,DOB,Hire Date,Plan Entry Date,Excluded from Test,"
    b"OwnershipPercentage,FamilyRelationshipToOwner,FamilyMemberOwnerID,Employment Status,"
    b"Union Employee,Part-Time / Seasonal,Compensation,Employee Deferral,Hours Worked,"
    b"Termination Date\n"
    b"E1,Ann,Lee,1980-02-01,03/15/2015,2015-04-01,false,0,,,Active,no,no,60000,3000,2080,\n"
)
SECRET = "waypoint-test-signing-secret-0123456789"


def bearer(user_id, secret=SECRET):
    return {"Authorization": f"Bearer {jwt.encode({'sub': user_id}, secret, algorithm='HS256')}"}


AUTH = bearer("alice")


@pytest.fixture
def calc():
    return FakeCalculationService(responses={"adp": {"Test Result": "Passed"}})


@pytest.fixture
def files():
    return MemoryFileStore()


@pytest.fixture
def client(calc, files):
    settings = AppSettings(auth=AuthConfig(jwt_secret=SECRET))
    app = create_app(settings, cache=MemoryCacheBackend(), file_store=files, calc_service=calc)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session_id(client):
    sid = client.post("/wizard/sessions").json()["session_id"]
    client.put(f"/wizard/sessions/{sid}/tests", json={"tests": ["adp"]})
    client.post(f"/wizard/sessions/{sid}/file", files={"file": ("census.csv", CENSUS, "text/csv")})
    client.put(f"/wizard/sessions/{sid}/derive", json={"auto_hce": True})
    client.put(f"/wizard/sessions/{sid}/plan-year", json={"plan_year": "2024"})
    return sid


class TestHealthAndCatalog:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/ready").json() == {"status": "ready"}

    def test_list_tests(self, client):
        tests = client.get("/tests").json()
        assert len(tests) == 12
        hce = next(f for f in tests[0]["required_fields"] if f["name"] == "HCE")
        assert hce["kind"] == "derivable"

    def test_requirements(self, client):
        body = client.get("/tests/requirements", params={"tests": "adp,acp"}).json()
        assert body["tests"] == ["adp", "acp"]
        assert "HCE" in body["required_fields"]
        assert "HCE" not in body["mandatory_fields"]

    def test_unknown_test_is_400(self, client):
        resp = client.get("/tests/requirements", params={"tests": "bogus"})
        assert resp.status_code == 400


class TestSessionFlow:
    def test_new_session_is_empty(self, client):
        resp = client.post("/wizard/sessions")
        assert resp.status_code == 201
        body = resp.json()
        assert body["selected_tests"] == []
        assert body["ready"] is False

    def test_unknown_session_is_404(self, client):
        assert client.get("/wizard/sessions/missing").status_code == 404

    def test_ready_session_view(self, client, session_id):
        view = client.get(f"/wizard/sessions/{session_id}").json()
        assert view["ready"] is True
        assert view["row_count"] == 1
        assert view["column_map"]["DOH"] == "Hire Date"
        assert view["missing_mandatory"] == []
        assert view["next_route"] == "/test-adp"

    def test_rows(self, client, session_id):
        rows = client.get(f"/wizard/sessions/{session_id}/rows").json()
        assert rows[0]["HCE"] == "No"
        assert rows[0]["Years of Service"] == 9

    def test_download(self, client, session_id):
        resp = client.get(f"/wizard/sessions/{session_id}/download")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="Combined_Tests_2024.csv"' in resp.headers["content-disposition"]
        assert resp.text.startswith("PlanYear,Employee ID")

    def test_template(self, client, session_id):
        resp = client.get(f"/wizard/sessions/{session_id}/template")
        assert resp.text.startswith("Employee ID,First Name,Last Name")

    def test_bad_plan_year(self, client, session_id):
        resp = client.put(f"/wizard/sessions/{session_id}/plan-year", json={"plan_year": "20x4"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Plan year must be a numeric year."

    def test_empty_file_is_400(self, client, session_id):
        resp = client.post(f"/wizard/sessions/{session_id}/file", files={"file": ("e.csv", b"", "text/csv")})
        assert resp.status_code == 400
        assert client.get(f"/wizard/sessions/{session_id}").json()["row_count"] == 1

    def test_unmapped_field_blocks_download(self, client, session_id):
        client.put(f"/wizard/sessions/{session_id}/mapping", json={"field": "Hours Worked", "column": None})
        resp = client.get(f"/wizard/sessions/{session_id}/download")
        assert resp.status_code == 400
        assert resp.json()["problems"] == ["Please map the following required headers: Hours Worked"]

    def test_delete(self, client, session_id):
        assert client.delete(f"/wizard/sessions/{session_id}").status_code == 204
        assert client.get(f"/wizard/sessions/{session_id}").status_code == 404


class TestSubmit:
    def test_submit_requires_token(self, client, session_id, calc):
        resp = client.post(f"/wizard/sessions/{session_id}/submit")
        assert resp.status_code == 401
        assert calc.calls == []

    def test_submit(self, client, session_id, calc):
        resp = client.post(f"/wizard/sessions/{session_id}/submit", headers=AUTH)
        assert resp.status_code == 200
        body = resp.json()
        assert body["mode"] == "upload"
        assert body["results"][0]["result"] == {"Test Result": "Passed"}
        assert calc.calls[0][3] == 2024
        assert calc.calls[0][4] == AUTH["Authorization"].split()[1]

    def test_preview(self, client, session_id, calc):
        resp = client.post(f"/wizard/sessions/{session_id}/preview", headers=AUTH)
        assert resp.json()["mode"] == "preview"
        assert calc.calls[0][0] == "preview"

    def test_save(self, client, session_id, files):
        resp = client.post(f"/wizard/sessions/{session_id}/save", json={"name": "Q1"}, headers=AUTH)
        assert resp.status_code == 201
        saved = resp.json()
        assert [a["filename"] for a in saved] == ["mapped.csv", "results.json"]
        assert saved[0]["path"].startswith("users/alice/csvBuilder/Q1-")
        results = json.loads(files.read(saved[1]["path"]))
        assert results["results"][0]["ok"] is True

    def test_any_bearer_token_may_submit(self, client, session_id, calc):
        resp = client.post(f"/wizard/sessions/{session_id}/submit",
                           headers={"Authorization": "Bearer opaque-token"})
        assert resp.status_code == 200
        assert calc.calls[0][4] == "opaque-token"

    def test_submit_without_plan_year_is_400(self, client, calc):
        sid = client.post("/wizard/sessions").json()["session_id"]
        client.put(f"/wizard/sessions/{sid}/tests", json={"tests": ["adp"]})
        client.post(f"/wizard/sessions/{sid}/file", files={"file": ("census.csv", CENSUS, "text/csv")})
        resp = client.post(f"/wizard/sessions/{sid}/submit", headers=AUTH)
        assert resp.status_code == 400
        assert "Please select a plan year." in resp.json()["problems"]
        assert calc.calls == []


class TestPreviewMetrics:
    def test_single_test_preview_adds_employee_metrics(self, client, session_id, calc):
        calc.responses["adp"] = {
            "employees": [{"Employee ID": "E1", "Compensation": 60000, "Employee Deferral": 3000}],
            "summary": {"total_employees": 1},
        }
        body = client.post(f"/wizard/sessions/{session_id}/preview", headers=AUTH).json()
        employee = body["results"][0]["result"]["employees"][0]
        assert employee["Years of Service"] == 9
        assert employee["Age"] == 44
        assert employee["Deferral %"] == 5.0
        assert body["combined"]["total_employees"] == 1


class TestSavedArtifacts:
    def test_each_user_saves_under_their_own_id(self, client, session_id):
        alice = client.post(f"/wizard/sessions/{session_id}/save", json={"name": "Q1"},
                            headers=bearer("alice")).json()
        bob = client.post(f"/wizard/sessions/{session_id}/save", json={"name": "Q1"},
                          headers=bearer("bob")).json()
        assert alice[0]["path"].startswith("users/alice/")
        assert bob[0]["path"].startswith("users/bob/")

    @pytest.mark.parametrize("headers", [
        {},
        {"Authorization": "Bearer alice-token"},
        bearer("alice", secret="another-signing-secret-9876543210abcdef"),
    ])
    def test_save_without_verified_identity_is_401(self, client, session_id, files, headers):
        resp = client.post(f"/wizard/sessions/{session_id}/save", json={"name": "Q1"}, headers=headers)
        assert resp.status_code == 401
        assert files.list_files("users/") == []

    def test_artifacts_lists_only_callers_runs(self, client, session_id):
        client.post(f"/wizard/sessions/{session_id}/save", json={"name": "Q1"}, headers=bearer("alice"))
        client.post(f"/wizard/sessions/{session_id}/save", json={"name": "Q2"}, headers=bearer("bob"))
        paths = client.get("/wizard/artifacts", headers=bearer("alice")).json()
        assert len(paths) == 2
        assert all(p.startswith("users/alice/csvBuilder/Q1-") for p in paths)

    def test_artifacts_requires_identity(self, client):
        assert client.get("/wizard/artifacts").status_code == 401
