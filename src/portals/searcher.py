"""Search URL builder.

Pure functions with no network dependency.
"""

import logging

from src.portals.registry import DEFAULT_PORTAL, get_portal

logger = logging.getLogger(__name__)


def build_search_url(
    portal_id: str | None,
    job_title: str,
    job_location: str,
    employment_type: str,
    *,
    default_portal: str = DEFAULT_PORTAL,
) -> str:
    """Build a fully encoded search URL for a portal.

    Args:
        portal_id: Portal identifier. Unknown or empty ids use ``default_portal``.
        job_title: Free-text job title (percent-encoded).
        job_location: Free-text location (percent-encoded).
        employment_type: Logical employment type, e.g. "Full-Time".

    Returns:
        The search URL. The type parameter is omitted when the portal has no
        code for ``employment_type``; rejecting unsupported types is the
        caller's job (see resolve_employment_code).
    """
    portal = get_portal(portal_id, default_portal)
    url = portal.build_url(job_title, job_location, employment_type)
    logger.debug("Built %s search URL: %s", portal.portal_id, url)
    return url


def resolve_employment_code(
    portal_id: str | None,
    employment_type: str,
    *,
    default_portal: str = DEFAULT_PORTAL,
) -> str | None:
    """Return the portal code for an employment type, "" or None if unsupported."""
    return get_portal(portal_id, default_portal).employment_code(employment_type)
