# tests/test_api.py

"""
API Endpoint Tests - Tests for all FastAPI endpoints
"""

import pytest
from fastapi import status

from conftest import build_high_quality_company, build_low_quality_company, build_medium_quality_company

from bd_scoring.models.enumerations import PillarName


def _company_json(company):
    return company.model_dump(mode="json")


# ROOT & HEALTH ENDPOINT TESTS


class TestRootAndHealth:
    """Tests for GET / and GET /health."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "running"

    def test_health_reports_cache(self, client):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["status"] == "healthy"
        assert data["dependencies"]["cache"].endswith("healthy")
        assert data["cache"]["hits"] == 0


# EVALUATE ENDPOINT TESTS


class TestEvaluateEndpoint:
    """Tests for POST /api/v1/scoring/evaluate."""

    def test_evaluate_success(self, client):
        company = build_high_quality_company()
        response = client.post(
            "/api/v1/scoring/evaluate", json={"company": _company_json(company)}
        )
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["company_id"] == company.id
        assert 0.0 <= data["overall_score"] <= 5.0
        assert set(data["pillar_scores"]) == {p.value for p in PillarName}
        assert data["investment_recommendation"] in {
            "strong_buy", "buy", "hold", "sell", "strong_sell"
        }

    def test_evaluate_is_cached(self, client, scoring_service):
        body = {"company": _company_json(build_medium_quality_company())}
        first = client.post("/api/v1/scoring/evaluate", json=body).json()
        second = client.post("/api/v1/scoring/evaluate", json=body).json()

        assert first["id"] == second["id"]
        assert scoring_service.engine.computations == 1

    def test_evaluate_with_profile(self, client):
        body = {"company": _company_json(build_high_quality_company()), "profile": "Aggressive"}
        response = client.post("/api/v1/scoring/evaluate", json=body)
        assert response.status_code == status.HTTP_200_OK

    def test_unknown_profile_returns_422(self, client):
        body = {"company": _company_json(build_high_quality_company()), "profile": "Nope"}
        response = client.post("/api/v1/scoring/evaluate", json=body)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "INVALID_CONFIGURATION"

    def test_weights_not_summing_to_one_return_422(self, client):
        body = {
            "company": _company_json(build_high_quality_company()),
            "weights": {
                "asset_quality": 0.5, "market_outlook": 0.3, "capital_intensity": 0.2,
                "strategic_fit": 0.15, "financial_readiness": 0.1, "regulatory_risk": 0.05,
            },
        }
        response = client.post("/api/v1/scoring/evaluate", json=body)

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["error_code"] == "INVALID_CONFIGURATION"
        assert any("totalWeight" in e for e in data["details"]["errors"])

    def test_invalid_company_returns_every_error(self, client, invalid_company):
        response = client.post(
            "/api/v1/scoring/evaluate", json={"company": _company_json(invalid_company)}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["error_code"] == "INVALID_DATA"
        assert "Company name is required" in data["details"]["errors"]
        assert "At least one pipeline program is required" in data["details"]["errors"]

    def test_malformed_body_returns_422(self, client):
        response = client.post("/api/v1/scoring/evaluate", json={"company": {"id": "x"}})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "VALIDATION_ERROR"


# SYNCHRONOUS BATCH, STATISTICS & EXPLAIN


class TestEvaluateManyEndpoint:
    """Tests for POST /api/v1/scoring/evaluate-batch, /statistics and /explain."""

    def test_evaluate_batch_skips_invalid(self, client, invalid_company):
        body = {
            "companies": [
                _company_json(build_high_quality_company("a")),
                _company_json(invalid_company),
                _company_json(build_low_quality_company("c")),
            ]
        }
        response = client.post("/api/v1/scoring/evaluate-batch", json=body)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["requested"] == 3
        assert data["evaluated"] == 2
        assert [r["company_id"] for r in data["results"]] == ["a", "c"]

    def test_statistics_over_results(self, client):
        body = {
            "companies": [
                _company_json(build_high_quality_company("a")),
                _company_json(build_low_quality_company("b")),
            ]
        }
        results = client.post("/api/v1/scoring/evaluate-batch", json=body).json()["results"]

        response = client.post("/api/v1/scoring/statistics", json={"results": results})
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_companies"] == 2
        assert sum(data["score_distribution"].values()) == 2

    def test_explain(self, client):
        response = client.post(
            "/api/v1/scoring/explain",
            json={"company": _company_json(build_high_quality_company())},
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert set(data) == {p.value for p in PillarName}
        assert data["regulatory_risk"]["summary"].startswith("Regulatory Risk scored")


# WEIGHT ENDPOINT TESTS


class TestWeightEndpoints:
    """Tests for /api/v1/scoring/weights/*."""

    OVERWEIGHT = {
        "asset_quality": 0.5, "market_outlook": 0.3, "capital_intensity": 0.2,
        "strategic_fit": 0.15, "financial_readiness": 0.1, "regulatory_risk": 0.05,
    }

    def test_list_profiles(self, client):
        response = client.get("/api/v1/scoring/weights/profiles")
        assert response.status_code == status.HTTP_200_OK
        assert {"Default", "Conservative", "Aggressive", "Balanced", "Strategic"} <= set(response.json())

    def test_get_missing_profile_returns_404(self, client):
        response = client.get("/api/v1/scoring/weights/profiles/Missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_save_profile_normalizes(self, client):
        response = client.put("/api/v1/scoring/weights/profiles/Heavy", json=self.OVERWEIGHT)
        assert response.status_code == status.HTTP_200_OK
        assert sum(response.json().values()) == pytest.approx(1.0)

        fetched = client.get("/api/v1/scoring/weights/profiles/Heavy")
        assert fetched.json() == response.json()

    def test_validate_reports_without_raising(self, client):
        response = client.post("/api/v1/scoring/weights/validate", json=self.OVERWEIGHT)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["is_valid"] is False
        assert data["errors"][0]["field"] == "totalWeight"

    def test_normalize(self, client):
        response = client.post("/api/v1/scoring/weights/normalize", json=self.OVERWEIGHT)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["asset_quality"] == pytest.approx(0.5 / 1.3)

    def test_impact(self, client):
        scores = {p.value: 3.0 for p in PillarName}
        scores["asset_quality"] = 5.0
        default = {
            "asset_quality": 0.25, "market_outlook": 0.2, "capital_intensity": 0.15,
            "strategic_fit": 0.2, "financial_readiness": 0.1, "regulatory_risk": 0.1,
        }
        shifted = dict(default, asset_quality=0.35, market_outlook=0.1)

        response = client.post(
            "/api/v1/scoring/weights/impact",
            json={"pillar_scores": scores, "original": default, "new": shifted},
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_score_difference"] == pytest.approx(0.2)

    def test_impact_requires_every_pillar(self, client):
        default = {p.value: 1 / 6 for p in PillarName}
        response = client.post(
            "/api/v1/scoring/weights/impact",
            json={"pillar_scores": {"asset_quality": 3.0}, "original": default, "new": default},
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# BATCH JOB ENDPOINT TESTS


class TestBatchEndpoints:
    """Tests for /api/v1/batch/*."""

    def _start(self, client, companies, **options):
        body = {"companies": [_company_json(c) for c in companies]}
        if options:
            body["options"] = options
        return client.post("/api/v1/batch/jobs", json=body)

    def test_start_and_complete(self, client, scoring_service):
        response = self._start(
            client, [build_high_quality_company("a"), build_medium_quality_company("b")]
        )
        assert response.status_code == status.HTTP_202_ACCEPTED
        job_id = response.json()["id"]

        scoring_service.scheduler.wait_for_completion(job_id, timeout=10)

        job = client.get(f"/api/v1/batch/jobs/{job_id}").json()
        assert job["status"] == "completed"
        assert job["processed_companies"] == 2

        results = client.get(f"/api/v1/batch/jobs/{job_id}/results", params={"page_size": 1}).json()
        assert [r["company_id"] for r in results["items"]] == ["a"]
        assert results["pagination"]["total_pages"] == 2

        summary = client.get(f"/api/v1/batch/jobs/{job_id}/summary").json()
        assert summary["successful_evaluations"] == 2

    def test_partial_failure_errors_endpoint(self, client, scoring_service):
        invalid = build_medium_quality_company("bad").with_basic_info(name="")
        job_id = self._start(client, [build_high_quality_company("a"), invalid]).json()["id"]
        scoring_service.scheduler.wait_for_completion(job_id, timeout=10)

        job = client.get(f"/api/v1/batch/jobs/{job_id}").json()
        assert job["status"] == "partially_completed"

        errors = client.get(f"/api/v1/batch/jobs/{job_id}/errors").json()
        assert errors["items"][0]["index"] == 1

    def test_fail_fast_preflight_returns_422(self, client):
        invalid = build_medium_quality_company("bad").with_basic_info(name="")
        response = self._start(
            client, [build_high_quality_company("a"), invalid], continue_on_error=False
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error_code"] == "INVALID_DATA"

    def test_empty_batch_rejected(self, client):
        response = client.post("/api/v1/batch/jobs", json={"companies": []})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_unknown_job_returns_404(self, client):
        for path in ("", "/results", "/errors", "/summary"):
            response = client.get(f"/api/v1/batch/jobs/missing{path}")
            assert response.status_code == status.HTTP_404_NOT_FOUND
            assert response.json()["error_code"] == "BATCH_JOB_NOT_FOUND"
        assert client.delete("/api/v1/batch/jobs/missing").status_code == status.HTTP_404_NOT_FOUND

    def test_invalid_pagination_returns_400(self, client, scoring_service):
        job_id = self._start(client, [build_high_quality_company("a")]).json()["id"]
        response = client.get(f"/api/v1/batch/jobs/{job_id}/results", params={"page_size": 500})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "INVALID_PAGINATION"

    def test_cancel_finished_job_is_noop(self, client, scoring_service):
        job_id = self._start(client, [build_high_quality_company("a")]).json()["id"]
        scoring_service.scheduler.wait_for_completion(job_id, timeout=10)

        response = client.delete(f"/api/v1/batch/jobs/{job_id}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"job_id": job_id, "cancelled": False}

    def test_list_statistics_and_cleanup(self, client, scoring_service):
        job_id = self._start(client, [build_high_quality_company("a")]).json()["id"]
        scoring_service.scheduler.wait_for_completion(job_id, timeout=10)

        jobs = client.get("/api/v1/batch/jobs").json()
        assert [j["id"] for j in jobs] == [job_id]

        stats = client.get("/api/v1/batch/statistics").json()
        assert stats["total_jobs"] == 1
        assert stats["completed_jobs"] == 1

        cleanup = client.post("/api/v1/batch/cleanup", params={"older_than_hours": 0})
        assert cleanup.json()["removed"] == 1
        assert client.get("/api/v1/batch/jobs").json() == []
