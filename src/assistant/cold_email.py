"""Personalised cold email drafting."""

import logging

from pydantic import ValidationError

from src.core.config import AssistantConfig
from src.core.errors import InputValidationError, LLMResponseError
from src.core.schemas import ColdEmail
from src.llm import get_provider, parse_json_object
from src.llm.base import LLMProvider

logger = logging.getLogger(__name__)

_COLD_EMAIL_PROMPT = """\
Generate a concise and professional cold email for the following job application.
The email should be highly personalized, using the most relevant skills and projects
from the resume that align with the job description. Avoid generic or templated text.

### Guidelines
- Address the hiring manager or recruiter appropriately.
- Start with a compelling introduction mentioning the job title and company name.
- Highlight 2-3 key skills or projects that directly match the job description.
- If the resume does not explicitly mention a skill, do not fabricate it; generalize
  similar relevant experience instead.
- Keep a concise, engaging tone; avoid robotic or overly formal language.
- End with a strong call to action, such as requesting a conversation.
- Only name the company if it appears in the job description; otherwise keep it generic.

### Inputs
Job Description:
{job_description}

Resume:
{resume}

### Expected JSON Output Format
Return ONLY valid JSON inside triple backticks, with newlines inside strings escaped:

```json
{{"subject": "...", "body": "..."}}
```
"""


def _build_prompt(resume_text: str, job_description: str) -> str:
    return _COLD_EMAIL_PROMPT.format(resume=resume_text, job_description=job_description)


def _parse_email(raw_text: str) -> ColdEmail:
    data = parse_json_object(raw_text)
    if not isinstance(data, dict):
        msg = "Cold email response is not a JSON object"
        raise LLMResponseError(msg, f"Got {type(data).__name__}")
    try:
        return ColdEmail.model_validate(data)
    except ValidationError as e:
        msg = "Invalid JSON response"
        raise LLMResponseError(msg, str(e)) from e


async def generate_cold_email(
    resume_text: str,
    job_description: str,
    config: AssistantConfig,
    provider: LLMProvider | None = None,
) -> ColdEmail:
    """Draft a cold email for a job from the candidate's resume text."""
    if not resume_text.strip() or not job_description.strip():
        msg = "Missing resume text or job description"
        raise InputValidationError(msg)

    provider = provider or get_provider(config.provider)
    raw = await provider.complete(
        _build_prompt(resume_text, job_description),
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.email_max_tokens,
    )
    logger.debug("Cold email response from %s: %s", provider.provider_id, raw)
    return _parse_email(raw)
