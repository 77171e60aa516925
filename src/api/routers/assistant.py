"""Resume match and cold email endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.api.deps import Services, get_services
from src.assistant.cold_email import generate_cold_email
from src.assistant.matcher import evaluate_match
from src.core.schemas import ColdEmail, MatchResult

router = APIRouter(prefix="/api", tags=["assistant"])


class ResumeMatchRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    extracted_text: str = ""
    job_description: str = ""


class ColdEmailRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    resume_extracted_text: str = ""
    job_description: str = ""


@router.post("/resume-match", response_model=MatchResult)
async def resume_match(
    body: ResumeMatchRequest,
    services: Services = Depends(get_services),
) -> MatchResult:
    """Score the resume against the job description (0-100)."""
    return await evaluate_match(
        body.extracted_text,
        body.job_description,
        services.settings.assistant,
        services.assistant_provider,
    )


@router.post("/cold-email", response_model=ColdEmail)
async def cold_email(
    body: ColdEmailRequest,
    services: Services = Depends(get_services),
) -> ColdEmail:
    """Draft a personalised cold email from the resume and job description."""
    return await generate_cold_email(
        body.resume_extracted_text,
        body.job_description,
        services.settings.assistant,
        services.assistant_provider,
    )
