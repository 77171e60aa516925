"""Job portal registry.

Each portal is a small frozen record (base URL, query parameter names and an
employment-type table). Adding a portal means adding an entry to PORTALS;
the pipeline never branches on portal ids.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping
from urllib.parse import quote

logger = logging.getLogger(__name__)

DEFAULT_PORTAL = "indeed"
FREELANCE = "Freelance"

EMPLOYMENT_TYPES: tuple[str, ...] = (
    "Full-Time",
    "Part-Time",
    "Internship",
    "Contract",
    "Temporary",
    FREELANCE,
)


def encode_component(value: str) -> str:
    """Percent-encode a free-text value like JavaScript's encodeURIComponent."""
    return quote(value, safe="-_.!~*'()")


@dataclass(frozen=True)
class PortalConfig:
    """Static search configuration for one job portal."""

    portal_id: str
    base_url: str
    title_param: str
    location_param: str
    type_param: str
    employment_type_map: Mapping[str, str] = field(default_factory=dict)

    def employment_code(self, employment_type: str) -> str | None:
        """Return the portal's code for ``employment_type``.

        "" means the type is accepted but has no filter value on this portal.
        None means the type is not supported at all.
        """
        code = self.employment_type_map.get(employment_type)
        if code is None and employment_type == FREELANCE:
            return ""
        return code

    def supports(self, employment_type: str) -> bool:
        """True if the type maps to a filter value, or is Freelance."""
        code = self.employment_code(employment_type)
        return bool(code) or (code == "" and employment_type == FREELANCE)

    def build_url(self, job_title: str, job_location: str, employment_type: str) -> str:
        """Build the search URL. An empty type code omits the type parameter."""
        url = (
            f"{self.base_url}?{self.title_param}={encode_component(job_title)}"
            f"&{self.location_param}={encode_component(job_location)}"
        )
        code = self.employment_code(employment_type)
        if code:
            url += f"&{self.type_param}={encode_component(code)}"
        return url


PORTALS: Mapping[str, PortalConfig] = MappingProxyType({
    "indeed": PortalConfig(
        portal_id="indeed",
        base_url="https://www.indeed.com/jobs",
        title_param="q",
        location_param="l",
        type_param="jt",
        employment_type_map=MappingProxyType({
            "Full-Time": "fulltime",
            "Part-Time": "parttime",
            "Internship": "internship",
            "Contract": "contract",
            "Temporary": "temporary",
            "Freelance": "",
        }),
    ),
    "glassdoor": PortalConfig(
        portal_id="glassdoor",
        base_url="https://www.glassdoor.com/Job/jobs.htm",
        title_param="keyword",
        location_param="location",
        type_param="jobType",
        employment_type_map=MappingProxyType({
            "Full-Time": "FULL_TIME",
            "Part-Time": "PART_TIME",
            "Internship": "INTERNSHIP",
            "Contract": "CONTRACT",
            "Temporary": "TEMPORARY",
            "Freelance": "",
        }),
    ),
    "naukri": PortalConfig(
        portal_id="naukri",
        base_url="https://www.naukri.com/jobsearch",
        title_param="k",
        location_param="l",
        type_param="jt",
        employment_type_map=MappingProxyType({
            "Full-Time": "full-time",
            "Part-Time": "part-time",
            "Internship": "internship",
            "Contract": "contract",
            "Temporary": "temporary",
            "Freelance": "freelance",
        }),
    ),
})


def get_portal(portal_id: str | None, default: str = DEFAULT_PORTAL) -> PortalConfig:
    """Look up a portal by id (case-insensitive).

    Unknown ids fall back to ``default`` and are logged, never raised.
    """
    key = (portal_id or "").strip().lower()
    portal = PORTALS.get(key)
    if portal is None:
        if key:
            logger.warning("Unknown portal '%s', falling back to '%s'", portal_id, default)
        portal = PORTALS.get(default, PORTALS[DEFAULT_PORTAL])
    return portal


def available_portals() -> list[str]:
    """Return sorted list of registered portal ids."""
    return sorted(PORTALS)
