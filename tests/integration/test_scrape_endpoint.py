"""Integration test: POST /api/scrape-jobs end to end with mocked upstreams."""

import asyncio
import csv
import io
import json
import re
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from src.api.app import create_app
from src.api.deps import Services
from src.core.config import ExportConfig, PipelineConfig, Settings
from src.core.schemas import CSV_HEADER, JobRecord
from src.leads.hunter import HunterClient
from src.pipeline.extraction import JobExtractor
from src.scraping.client import ScrapeClient
from tests.helpers import ScriptedProvider, StubExtractor, StubScraper

_PAYLOAD = {
    "jobTitle": "Software Engineer",
    "jobLocation": "Austin, TX",
    "employmentType": "Full-Time",
    "portal": "indeed",
}

_EXPECTED_URL = "https://www.indeed.com/jobs?q=Software%20Engineer&l=Austin%2C%20TX&jt=fulltime"

_THREE_JOBS = json.dumps({
    "jobs": [
        {
            "companyName": "Acme Robotics",
            "jobTitle": "Software Engineer",
            "jobDescription": "Build the robot control plane, in Go and Python.",
            "salary": "$120,000 - $150,000 a year",
            "jobType": "Full-time",
            "applicationLink": "https://www.indeed.com/rc/clk?jk=1",
        },
        {
            "companyName": "Lone Star Analytics",
            "jobTitle": "Backend Software Engineer",
            "jobDescription": "Design Python services.",
            "salary": None,
            "jobType": "Full-time",
            "applicationLink": "https://www.indeed.com/rc/clk?jk=2",
        },
        {
            "companyName": "Hill Country Health",
            "jobTitle": "Software Engineer II",
            "jobDescription": "Patient portal features.",
            "salary": "$105k",
            "jobType": "Full-time",
            "applicationLink": "https://www.indeed.com/rc/clk?jk=3",
        },
    ],
})


class FakeScrapeApi:
    """MockTransport handler standing in for the scraping API."""

    def __init__(self, status: int = 200, body: dict[str, object] | None = None) -> None:
        self.status = status
        self.body = body
        self.requests: list[dict[str, object]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        return httpx.Response(self.status, json=self.body)


class SlowExtractor(StubExtractor):
    """Extraction that outlives the client; notes when it gets cancelled."""

    cancelled = False

    async def extract_jobs(self, html: str) -> list[JobRecord]:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return await super().extract_jobs(html)


def _make_client(
    tmp_path: Path,
    scrape_api: FakeScrapeApi,
    llm_response: str = _THREE_JOBS,
) -> tuple[TestClient, ScriptedProvider]:
    settings = Settings(export=ExportConfig(tmp_dir=str(tmp_path)))
    provider = ScriptedProvider(llm_response)
    services = Services(
        settings=settings,
        scraper=ScrapeClient(
            settings.scrape,
            api_key="fc-test",
            client=httpx.AsyncClient(transport=httpx.MockTransport(scrape_api)),
        ),
        extractor=JobExtractor(settings.llm, provider=provider),
        leads=HunterClient(settings.leads, api_key="unused"),
    )
    return TestClient(create_app(services=services)), provider


@pytest.fixture
def scrape_api(sample_html: str) -> FakeScrapeApi:
    return FakeScrapeApi(body={"success": True, "data": {"html": sample_html}})


class TestScrapeJobsEndpoint:
    def test_end_to_end_csv(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, provider = _make_client(tmp_path, scrape_api)

        with client:
            response = client.post("/api/scrape-jobs", json=_PAYLOAD)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        disposition = response.headers["content-disposition"]
        assert re.fullmatch(r'attachment; filename="jobs_indeed_\d+\.csv"', disposition)
        assert response.headers["x-jobs-count"] == "3"
        assert "x-pipeline-message" not in response.headers

        rows = list(csv.reader(io.StringIO(response.text, newline="")))
        assert rows[0] == list(CSV_HEADER)
        assert len(rows) == 4
        assert rows[1][0] == "Acme Robotics"
        assert rows[1][2] == "Build the robot control plane, in Go and Python."
        assert rows[2][3] == ""
        assert [r[5] for r in rows[1:]] == [
            "https://www.indeed.com/rc/clk?jk=1",
            "https://www.indeed.com/rc/clk?jk=2",
            "https://www.indeed.com/rc/clk?jk=3",
        ]

        assert scrape_api.requests[0]["url"] == _EXPECTED_URL
        assert "Acme Robotics" in str(provider.calls[0]["prompt"])
        assert list(tmp_path.iterdir()) == []

    def test_sample_extraction_two_jobs(
        self, tmp_path: Path, scrape_api: FakeScrapeApi, sample_extraction: str,
    ) -> None:
        client, provider = _make_client(tmp_path, scrape_api, llm_response=sample_extraction)

        with client:
            response = client.post("/api/scrape-jobs", json=_PAYLOAD)

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert re.fullmatch(r'attachment; filename="jobs_indeed_\d+\.csv"', disposition)
        assert response.headers["x-jobs-count"] == "2"

        rows = list(csv.reader(io.StringIO(response.text, newline="")))
        assert len(rows) == 3
        assert rows[0] == list(CSV_HEADER)
        assert rows[1][:2] == ["Acme Robotics", "Software Engineer"]
        assert rows[1][3] == "$120,000 - $150,000 a year"
        assert rows[2][:2] == ["Lone Star Analytics", "Backend Software Engineer"]
        assert rows[2][3] == ""
        assert rows[2][5] == "https://www.indeed.com/rc/clk?jk=f6e5d4c3b2a1"
        assert scrape_api.requests[0]["url"] == _EXPECTED_URL
        assert len(provider.calls) == 1
        assert list(tmp_path.iterdir()) == []

    def test_client_gone_during_pipeline_499(self, tmp_path: Path) -> None:
        settings = Settings(
            export=ExportConfig(tmp_dir=str(tmp_path)),
            pipeline=PipelineConfig(disconnect_poll_s=0.01),
        )
        extractor = SlowExtractor(
            [JobRecord(company_name="Acme Robotics", job_title="Software Engineer")],
        )
        services = Services(
            settings=settings,
            scraper=StubScraper(),
            extractor=extractor,
            leads=HunterClient(settings.leads, api_key="unused"),
        )
        client = TestClient(create_app(services=services))

        with (
            patch.object(Request, "is_disconnected", AsyncMock(return_value=True)),
            client,
        ):
            response = client.post("/api/scrape-jobs", json=_PAYLOAD)

        assert response.status_code == 499
        assert response.content == b""
        assert extractor.cancelled
        assert list(tmp_path.iterdir()) == []

    def test_zero_jobs_header_only(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api, llm_response='{"jobs": []}')

        with client:
            response = client.post("/api/scrape-jobs", json=_PAYLOAD)

        assert response.status_code == 200
        assert response.headers["x-jobs-count"] == "0"
        assert response.headers["x-pipeline-message"] == (
            "No jobs found for the given criteria on indeed"
        )
        rows = list(csv.reader(io.StringIO(response.text, newline="")))
        assert rows == [list(CSV_HEADER)]
        assert list(tmp_path.iterdir()) == []

    def test_missing_fields_400(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api)

        with client:
            response = client.post("/api/scrape-jobs", json={"jobTitle": "Engineer"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields: jobLocation, employmentType"}
        assert scrape_api.requests == []

    def test_invalid_employment_type_400(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api)

        with client:
            response = client.post(
                "/api/scrape-jobs", json={**_PAYLOAD, "employmentType": "Seasonal"},
            )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid employment type for indeed"

    def test_wrong_field_type_400(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api)

        with client:
            response = client.post("/api/scrape-jobs", json={**_PAYLOAD, "jobTitle": 42})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request: jobTitle")

    def test_blocked_503(self, tmp_path: Path) -> None:
        api = FakeScrapeApi(status=403, body={"error": "Forbidden by target"})
        client, provider = _make_client(tmp_path, api)

        with client:
            response = client.post("/api/scrape-jobs", json=_PAYLOAD)

        assert response.status_code == 503
        body = response.json()
        assert "blocked" in body["error"]
        assert "Forbidden by target (Status: 403)" in body["details"]
        assert provider.calls == []

    def test_rate_limited_429(self, tmp_path: Path) -> None:
        client, _ = _make_client(tmp_path, FakeScrapeApi(status=429, body={"error": "slow down"}))

        with client:
            response = client.post("/api/scrape-jobs", json=_PAYLOAD)

        assert response.status_code == 429
        assert response.json()["error"] == "Too many requests (429)"

    def test_other_upstream_failure_500(self, tmp_path: Path) -> None:
        body = {"success": False, "error": "Timeout", "data": {"metadata": {"statusCode": 408}}}
        client, _ = _make_client(tmp_path, FakeScrapeApi(body=body))

        with client:
            response = client.post("/api/scrape-jobs", json=_PAYLOAD)

        assert response.status_code == 500
        assert response.json() == {"error": "Scraping failed", "details": "Timeout (Status: 408): No HTML returned"}

    def test_unparseable_extraction_500(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api, llm_response="I could not find any jobs.")

        with client:
            response = client.post("/api/scrape-jobs", json=_PAYLOAD)

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to parse LLM response as JSON"
        assert list(tmp_path.iterdir()) == []

    def test_unknown_portal_falls_back(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api)

        with client:
            response = client.post("/api/scrape-jobs", json={**_PAYLOAD, "portal": "monster"})

        assert response.status_code == 200
        assert scrape_api.requests[0]["url"] == _EXPECTED_URL
        assert 'filename="jobs_indeed_' in response.headers["content-disposition"]

    def test_naukri_portal(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api)

        with client:
            response = client.post(
                "/api/scrape-jobs",
                json={**_PAYLOAD, "portal": "naukri", "employmentType": "Freelance"},
            )

        assert response.status_code == 200
        assert scrape_api.requests[0]["url"] == (
            "https://www.naukri.com/jobsearch?k=Software%20Engineer&l=Austin%2C%20TX&jt=freelance"
        )
        assert 'filename="jobs_naukri_' in response.headers["content-disposition"]


class TestMetaEndpoints:
    def test_portals(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api)

        with client:
            response = client.get("/api/portals")

        assert response.status_code == 200
        body = response.json()
        assert sorted(body["portals"]) == ["glassdoor", "indeed", "naukri"]
        assert "Freelance" in body["portals"]["indeed"]
        assert body["employmentTypes"][0] == "Full-Time"

    def test_health(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api)
        with client:
            assert client.get("/health").json() == {"status": "ok"}

    def test_cors_exposes_pipeline_headers(self, tmp_path: Path, scrape_api: FakeScrapeApi) -> None:
        client, _ = _make_client(tmp_path, scrape_api)

        with client:
            response = client.post(
                "/api/scrape-jobs", json=_PAYLOAD, headers={"Origin": "http://localhost:3000"},
            )

        exposed = response.headers["access-control-expose-headers"]
        assert "X-Jobs-Count" in exposed
        assert "X-Pipeline-Message" in exposed
