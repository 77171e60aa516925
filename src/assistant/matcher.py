"""LLM-assisted resume-to-job match scoring."""

import logging

from pydantic import ValidationError

from src.core.config import AssistantConfig
from src.core.errors import InputValidationError, LLMResponseError
from src.core.schemas import MatchResult
from src.llm import get_provider, parse_json_object
from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)

_MATCH_PROMPT = """\
Evaluate how well the following resume matches the given job description.

### Match Score Evaluation Criteria (0-100)
Assign a match score based on the following parameters:
1. Skills Match (30%) - How many of the job description's required skills appear in the resume.
2. Experience Relevance (20%) - Whether past work experience aligns with job requirements.
3. Education & Certifications (10%) - Whether required degrees or certifications are listed.
4. Job Titles & Responsibilities (10%) - Whether titles and responsibilities align with the job.
5. Keywords & Terminology (10%) - Whether the resume contains relevant industry keywords.
6. Projects & Achievements (10%) - Quantifiable achievements related to the job.
7. Soft Skills (10%) - Whether key soft skills from the job description are present.

- A match score > 75 indicates a strong match.
- A match score between 50-75 suggests partial alignment.
- A match score < 50 means the resume is not a good fit.

### Expected JSON Output Format
Return ONLY valid JSON inside triple backticks, for example:

```json
{{
  "company": "Company name",
  "potential_domain": "company.com",
  "match_score": 85,
  "matching_skills": ["Skill 1", "Skill 2"],
  "missing_skills": ["Skill 3"],
  "feedback": "Short, actionable feedback on the resume."
}}
```

Resume:
{resume}
----
Job Description:
{job_description}
"""


def _build_prompt(resume_text: str, job_description: str) -> str:
    return _MATCH_PROMPT.format(resume=resume_text, job_description=job_description)


def _parse_match(raw_text: str) -> MatchResult:
    """Parse LLM JSON into a MatchResult. Clamps match_score to 0-100.

    Raises LLMResponseError on malformed output.
    """
    data = parse_json_object(raw_text)
    if not isinstance(data, dict):
        msg = "Match response is not a JSON object"
        raise LLMResponseError(msg, f"Got {type(data).__name__}")
    if "match_score" not in data:
        msg = "Match response missing 'match_score' field"
        raise LLMResponseError(msg)

    try:
        raw_score = float(data["match_score"])
    except (TypeError, ValueError) as e:
        msg = "Match response has a non-numeric 'match_score'"
        raise LLMResponseError(msg, repr(data["match_score"])) from e
    data = {**data, "match_score": max(0.0, min(100.0, raw_score))}

    try:
        return MatchResult.model_validate(data)
    except ValidationError as e:
        msg = "Match response does not fit the expected shape"
        raise LLMResponseError(msg, str(e)) from e


async def evaluate_match(
    resume_text: str,
    job_description: str,
    config: AssistantConfig,
    provider: LLMProvider | None = None,
) -> MatchResult:
    """Score how well a resume fits a job description.

    Raises:
        InputValidationError: If either text is blank.
        LLMResponseError: If the model output cannot be parsed.
    """
    if not resume_text.strip() or not job_description.strip():
        msg = "Missing resume text or job description"
        raise InputValidationError(msg)

    provider = provider or get_provider(config.provider)
    raw = await provider.complete(
        _build_prompt(resume_text, job_description),
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.match_max_tokens,
    )
    logger.debug("Match response from %s: %s", provider.provider_id, raw)

    result = _parse_match(raw)
    logger.info("Resume match score: %.0f (%s)", result.match_score, result.fit)
    return result
