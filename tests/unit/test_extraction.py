"""Tests for LLM job extraction and payload parsing."""

import json

import pytest

from src.core.config import LLMConfig
from src.core.errors import ExtractionParseError
from src.core.schemas import JobRecord
from src.pipeline.extraction import JobExtractor, _build_user_prompt, parse_jobs_payload
from tests.helpers import ScriptedProvider


class TestParseJobsPayload:
    def test_fixture(self, sample_extraction: str) -> None:
        jobs = parse_jobs_payload(sample_extraction)
        assert [j.company_name for j in jobs] == ["Acme Robotics", "Lone Star Analytics"]
        assert jobs[0].salary == "$120,000 - $150,000 a year"
        assert jobs[1].salary == ""
        assert jobs[1].application_link == "https://www.indeed.com/rc/clk?jk=f6e5d4c3b2a1"

    def test_empty_jobs_list(self) -> None:
        assert parse_jobs_payload('{"jobs": []}') == []

    def test_null_jobs(self) -> None:
        assert parse_jobs_payload('{"jobs": null}') == []

    def test_missing_jobs_key(self) -> None:
        assert parse_jobs_payload('{"listings": [{"companyName": "X"}]}') == []

    def test_top_level_list(self) -> None:
        jobs = parse_jobs_payload('[{"companyName": "Acme", "jobTitle": "SWE"}]')
        assert jobs == [JobRecord(company_name="Acme", job_title="SWE")]

    def test_fenced_output(self) -> None:
        raw = '```json\n{"jobs": [{"companyName": "Acme"}]}\n```'
        assert parse_jobs_payload(raw)[0].company_name == "Acme"

    def test_missing_fields_are_empty(self) -> None:
        job = parse_jobs_payload('{"jobs": [{"jobTitle": "SWE"}]}')[0]
        assert job.to_row() == ["", "SWE", "", "", "", ""]

    def test_non_object_entries_skipped(self) -> None:
        jobs = parse_jobs_payload('{"jobs": ["junk", 3, {"companyName": "Acme"}]}')
        assert len(jobs) == 1
        assert jobs[0].company_name == "Acme"

    def test_order_preserved(self) -> None:
        payload = {"jobs": [{"companyName": name} for name in ("C", "A", "B")]}
        jobs = parse_jobs_payload(json.dumps(payload))
        assert [j.company_name for j in jobs] == ["C", "A", "B"]

    def test_misplaced_values_kept_as_given(self) -> None:
        raw = '{"jobs": [{"companyName": "Acme", "jobType": "$90k", "salary": "Full-time"}]}'
        job = parse_jobs_payload(raw)[0]
        assert job.job_type == "$90k"
        assert job.salary == "Full-time"

    def test_unparseable_raises(self) -> None:
        with pytest.raises(ExtractionParseError, match="Failed to parse"):
            parse_jobs_payload("Sorry, I cannot help with that.")

    def test_jobs_not_a_list_raises(self) -> None:
        with pytest.raises(ExtractionParseError, match="not a list"):
            parse_jobs_payload('{"jobs": "none"}')

    def test_scalar_top_level_raises(self) -> None:
        with pytest.raises(ExtractionParseError, match="not a JSON object"):
            parse_jobs_payload("42")


class TestBuildUserPrompt:
    def test_html_embedded(self) -> None:
        prompt = _build_user_prompt("<div>job</div>", 1000)
        assert "<div>job</div>" in prompt

    def test_truncates_long_html(self, caplog: pytest.LogCaptureFixture) -> None:
        html = "x" * 2000
        prompt = _build_user_prompt(html, 1500)
        assert "x" * 1500 in prompt
        assert "x" * 1501 not in prompt
        assert "truncating" in caplog.text


class TestJobExtractor:
    async def test_extract_jobs(self, sample_html: str, sample_extraction: str) -> None:
        provider = ScriptedProvider(sample_extraction)
        extractor = JobExtractor(LLMConfig(), provider=provider)

        jobs = await extractor.extract_jobs(sample_html)

        assert len(jobs) == 2
        call = provider.calls[0]
        assert "Acme Robotics" in str(call["prompt"])
        assert "companyName" in str(call["system"])
        assert call["json_mode"] is True
        assert call["temperature"] == 0.0
        assert call["max_tokens"] == 4096
        assert call["model"] is None

    async def test_config_forwarded(self) -> None:
        provider = ScriptedProvider('{"jobs": []}')
        config = LLMConfig(model="llama-3.3-70b-versatile", json_mode=False, max_tokens=2048)
        await JobExtractor(config, provider=provider).extract_jobs("<p/>")

        call = provider.calls[0]
        assert call["model"] == "llama-3.3-70b-versatile"
        assert call["json_mode"] is False
        assert call["max_tokens"] == 2048

    async def test_parse_failure_propagates(self) -> None:
        extractor = JobExtractor(LLMConfig(), provider=ScriptedProvider("no json here"))
        with pytest.raises(ExtractionParseError):
            await extractor.extract_jobs("<p/>")

    def test_provider_resolved_lazily(self) -> None:
        extractor = JobExtractor(LLMConfig(provider="ollama"))
        assert extractor.provider.provider_id == "ollama"
        assert extractor.provider is extractor.provider
