"""LLM-based structured extraction of job postings from raw HTML.

The model is trusted to put each value in the right field: no semantic
validation is done beyond shaping the output into JobRecord objects.
"""

import logging
from typing import Any, Protocol

from src.core.config import LLMConfig
from src.core.errors import ExtractionParseError, LLMResponseError
from src.core.schemas import JobRecord
from src.llm import get_provider, parse_json_object
from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)

_EXTRACTION_SYSTEM_PROMPT = (
    "You are an expert at extracting structured data from HTML content. "
    "Extract job listings from the provided HTML of a job search page.\n\n"
    'Return ONLY a JSON object of the form {"jobs": [...]} where each element has:\n'
    "- companyName (string)\n"
    "- jobTitle (string)\n"
    "- jobDescription (string)\n"
    "- salary (string or null)\n"
    "- jobType (string)\n"
    "- applicationLink (string)\n\n"
    "If a field is missing, use an empty string (or null for salary). "
    'If the page lists no jobs, return {"jobs": []}.'
)


class JobSource(Protocol):
    """Anything that turns page HTML into job records."""

    async def extract_jobs(self, html: str) -> list[JobRecord]: ...


def _build_user_prompt(html: str, max_chars: int) -> str:
    if len(html) > max_chars:
        logger.warning("HTML is %d characters, truncating to %d", len(html), max_chars)
        html = html[:max_chars]
    return (
        f"Here is the HTML content from a job search page:\n\n{html}\n\n"
        'Extract the job listings and return them as {"jobs": [...]}.'
    )


def parse_jobs_payload(raw_text: str) -> list[JobRecord]:
    """Parse model output into JobRecords.

    ``{"jobs": []}`` is a valid empty result. Output with no recoverable JSON
    raises ExtractionParseError so callers can tell it apart from "no jobs".
    """
    try:
        data = parse_json_object(raw_text)
    except LLMResponseError as e:
        raise ExtractionParseError(e.error, e.details) from e

    items: Any
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        if "jobs" not in data:
            logger.warning("Extraction response has no 'jobs' key, treating as empty")
            return []
        items = data["jobs"]
    else:
        msg = "Extraction response is not a JSON object"
        raise ExtractionParseError(msg, f"Got {type(data).__name__}")

    if items is None:
        return []
    if not isinstance(items, list):
        msg = "Extraction response 'jobs' is not a list"
        raise ExtractionParseError(msg, f"Got {type(items).__name__}")

    records: list[JobRecord] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping job entry %d: expected object, got %s", i,
                           type(item).__name__)
            continue
        records.append(JobRecord.model_validate(item))
    return records


class JobExtractor:
    """Prompts an LLM to turn search-page HTML into job records."""

    def __init__(self, config: LLMConfig, provider: LLMProvider | None = None) -> None:
        self._config = config
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_provider(self._config.provider)
        return self._provider

    async def extract_jobs(self, html: str) -> list[JobRecord]:
        """Return the jobs found in ``html`` in the order the model lists them."""
        raw = await self.provider.complete(
            _build_user_prompt(html, self._config.max_html_chars),
            model=self._config.model,
            system=_EXTRACTION_SYSTEM_PROMPT,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
            json_mode=self._config.json_mode,
        )
        jobs = parse_jobs_payload(raw)
        logger.info("Extracted %d jobs via %s", len(jobs), self.provider.provider_id)
        return jobs
