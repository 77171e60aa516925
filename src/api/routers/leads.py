"""Company contact lead lookup endpoint."""

from fastapi import APIRouter, Depends

from src.api.deps import Services, get_services
from src.core.schemas import CompanyLeads

router = APIRouter(prefix="/api", tags=["leads"])


@router.get("/leads", response_model=CompanyLeads)
async def get_leads(
    domain: str = "",
    services: Services = Depends(get_services),
) -> CompanyLeads:
    """Contacts (name + email) known for a company domain."""
    return await services.leads.domain_search(domain)
