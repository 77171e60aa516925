"""Core data models for the job outreach assistant."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

# Column order of the CSV export. Must match JobRecord field order.
CSV_HEADER: tuple[str, ...] = (
    "Company Name",
    "Job Title",
    "Job Description",
    "Salary",
    "Job Type",
    "Application Link",
)


class SearchCriteria(BaseModel):
    """Validated scrape request. Built once per request, never mutated."""

    model_config = ConfigDict(frozen=True)

    job_title: str
    job_location: str
    employment_type: str
    portal: str


class ScrapeSuccess(BaseModel):
    """Raw HTML returned by the scraping API."""

    model_config = ConfigDict(frozen=True)

    html: str


class ScrapeFailure(BaseModel):
    """A classified scrape failure. status_code is the upstream status verbatim."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    message: str
    details: str = ""


ScrapeResult = ScrapeSuccess | ScrapeFailure


class JobRecord(BaseModel):
    """A job posting extracted by the model.

    Absent fields are stored as "" so CSV columns stay aligned. Field
    contents are not checked for correctness: a salary that landed in
    job_type stays there.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    company_name: str = ""
    job_title: str = ""
    job_description: str = ""
    salary: str = ""
    job_type: str = ""
    application_link: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def absent_to_empty(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        if isinstance(v, (list, tuple)):
            return ", ".join(str(item) for item in v if item is not None)
        return str(v)

    def to_row(self) -> list[str]:
        """Values in CSV_HEADER order."""
        return [
            self.company_name,
            self.job_title,
            self.job_description,
            self.salary,
            self.job_type,
            self.application_link,
        ]


class MatchResult(BaseModel):
    """Resume-to-job match evaluation."""

    company: str = ""
    potential_domain: str = ""
    match_score: float = Field(default=0.0, ge=0.0, le=100.0)
    matching_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    feedback: str = ""

    @field_validator("company", "potential_domain", "feedback", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("matching_skills", "missing_skills", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fit(self) -> str:
        """strong above 75, partial from 50 to 75, poor below 50."""
        if self.match_score > 75:
            return "strong"
        if self.match_score >= 50:
            return "partial"
        return "poor"


class ColdEmail(BaseModel):
    """A drafted outreach email."""

    subject: str
    body: str

    @field_validator("subject", "body")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v.strip()


class Lead(BaseModel):
    """A contact at a company domain."""

    email: str
    first_name: str = ""
    last_name: str = ""
    position: str = ""
    confidence: int | None = None


class CompanyLeads(BaseModel):
    """Domain search result from the lead enrichment API."""

    domain: str
    company_name: str = ""
    location: str = ""
    leads: list[Lead] = Field(default_factory=list)
