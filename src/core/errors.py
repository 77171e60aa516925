"""Error taxonomy shared by the pipeline, the assistant services and the API.

Each error knows the HTTP status it maps to and the ``error``/``details``
pair rendered in the response body.
"""


class JobAssistantError(Exception):
    """Base class for every error the API turns into a JSON response."""

    http_status: int = 500

    def __init__(self, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.error = error
        self.details = details

    def to_body(self) -> dict[str, str]:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class InputValidationError(JobAssistantError):
    """Missing or invalid request fields."""

    http_status = 400


class ConfigurationError(JobAssistantError):
    """A required API key or setting is missing."""

    http_status = 500


class ScrapeError(JobAssistantError):
    """The scraping API rejected or failed the request."""

    def __init__(
        self,
        error: str,
        details: str | None = None,
        *,
        upstream_status: int,
        upstream_message: str = "",
    ) -> None:
        super().__init__(error, details)
        self.upstream_status = upstream_status
        self.upstream_message = upstream_message


class UpstreamBlocked(ScrapeError):
    """Target site refused the scrape (upstream 403)."""

    http_status = 503


class UpstreamRateLimited(ScrapeError):
    """Scraping API or target site rate-limited us (upstream 429)."""

    http_status = 429


class UpstreamFailure(ScrapeError):
    """Any other scrape failure."""

    http_status = 500


class LLMResponseError(JobAssistantError):
    """The model returned text with no recoverable JSON object."""

    http_status = 500


class ExtractionParseError(LLMResponseError):
    """Job extraction output could not be parsed."""


class ExportIOError(JobAssistantError):
    """Writing or streaming the CSV export failed."""

    http_status = 500


class LeadLookupError(JobAssistantError):
    """The lead enrichment API returned an error."""

    http_status = 502


class PipelineTimeout(JobAssistantError):
    """The request deadline expired before the pipeline finished."""

    http_status = 504
