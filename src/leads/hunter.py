"""Company contact leads via the Hunter.io domain-search API."""

import logging
import os
from typing import Any
from urllib.parse import urlparse

import httpx

from src.core.config import LeadsConfig
from src.core.errors import ConfigurationError, InputValidationError, LeadLookupError
from src.core.schemas import CompanyLeads, Lead

logger = logging.getLogger(__name__)


def normalize_domain(value: str) -> str:
    """Reduce a URL or host to a bare lower-case domain.

    "https://www.Example.com/careers" → "example.com". Returns "" for blank input.
    """
    value = value.strip()
    if not value:
        return ""
    parsed = urlparse(value if "//" in value else f"//{value}")
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def parse_domain_search(domain: str, payload: dict[str, Any]) -> CompanyLeads:
    """Shape a domain-search response into CompanyLeads."""
    data = payload.get("data") or {}
    location = ", ".join(
        str(part) for part in (data.get("city"), data.get("state"), data.get("country"))
        if part
    )

    leads: list[Lead] = []
    for entry in data.get("emails") or []:
        email = entry.get("value") if isinstance(entry, dict) else None
        if not email:
            logger.debug("Skipping lead without email for %s", domain)
            continue
        leads.append(Lead(
            email=email,
            first_name=entry.get("first_name") or "",
            last_name=entry.get("last_name") or "",
            position=entry.get("position") or "",
            confidence=entry.get("confidence"),
        ))

    return CompanyLeads(
        domain=data.get("domain") or domain,
        company_name=data.get("organization") or "",
        location=location,
        leads=leads,
    )


class HunterClient:
    """Async client for Hunter.io domain search."""

    def __init__(
        self,
        config: LeadsConfig,
        *,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._api_key = api_key
        self._client = client

    def _resolve_api_key(self) -> str:
        api_key = self._api_key or os.environ.get(self._config.api_key_env)
        if not api_key:
            msg = f"{self._config.api_key_env} environment variable is required"
            raise ConfigurationError(msg)
        return api_key

    async def domain_search(self, domain: str) -> CompanyLeads:
        """Look up contacts for ``domain``.

        Raises:
            InputValidationError: If the domain is blank.
            LeadLookupError: If Hunter answers with an error or is unreachable.
        """
        normalized = normalize_domain(domain)
        if not normalized:
            msg = "Missing company domain"
            raise InputValidationError(msg)

        headers = {"X-API-KEY": self._resolve_api_key()}
        params: dict[str, Any] = {"domain": normalized}
        if self._config.limit is not None:
            params["limit"] = self._config.limit

        url = f"{self._config.api_url}/domain-search"
        logger.info("Fetching email leads for %s", normalized)
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_s) as client:
                    response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Lead lookup transport error for %s: %s", normalized, e)
            msg = "Lead lookup failed"
            raise LeadLookupError(msg, f"Transport error: {e}") from e

        if response.is_error:
            detail = _error_detail(response)
            logger.error("Lead lookup for %s failed: %d %s", normalized,
                         response.status_code, detail)
            msg = "Lead lookup failed"
            raise LeadLookupError(msg, f"{detail} (Status: {response.status_code})")

        try:
            payload = response.json()
        except ValueError as e:
            msg = "Lead lookup returned invalid JSON"
            raise LeadLookupError(msg, str(e)) from e

        leads = parse_domain_search(normalized, payload if isinstance(payload, dict) else {})
        logger.info("Found %d leads for %s", len(leads.leads), normalized)
        return leads


def _error_detail(response: httpx.Response) -> str:
    """Pull Hunter's first error message, falling back to the reason phrase."""
    try:
        errors = response.json().get("errors") or []
    except (ValueError, AttributeError):
        errors = []
    if errors and isinstance(errors[0], dict):
        return str(errors[0].get("details") or errors[0].get("id") or response.reason_phrase)
    return response.reason_phrase or "Unknown error"
