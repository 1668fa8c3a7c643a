"""
OmniCall - REST API Routes

Endpoints for the customer directory and companies.

Architecture:
    Stores live on app.state and are injected through the dependencies
    below, so tests can swap them for pre-populated instances.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from typing import Optional
import logging

from omnicall.core.exceptions import CompanyNotFoundError, ValidationError
from omnicall.directory.store import InMemoryCompanyStore, InMemoryCustomerDirectory

from .schemas import (
    CompaniesResponse,
    CompanyCreate,
    CompanyResponse,
    CompanySchema,
    CustomerCreate,
    CustomerResponse,
    CustomerSchema,
    CustomersResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])

DEFAULT_COMPANY_NAME = "Default Company"


# =============================================================================
# Dependencies
# =============================================================================

def get_customer_directory(request: Request) -> InMemoryCustomerDirectory:
    """Dependency to get the customer directory from app state."""
    return request.app.state.customers


def get_company_store(request: Request) -> InMemoryCompanyStore:
    """Dependency to get the company store from app state."""
    return request.app.state.companies


# =============================================================================
# Customers
# =============================================================================

@router.get("/customers/by-phone", response_model=CustomerResponse)
async def get_customer_by_phone(
    phone: Optional[str] = Query(default=None, description="Phone number in any format"),
    directory: InMemoryCustomerDirectory = Depends(get_customer_directory),
):
    """
    Look up a customer by phone number.
    
    Tries an exact match on the stored number first, then compares
    numbers with formatting stripped. A miss is not an error: the
    response carries ``success: false`` and a null customer.
    """
    if not phone or not phone.strip():
        raise ValidationError("Phone number is required")
    
    customer = await directory.find_by_phone(phone)
    if customer is None:
        return CustomerResponse(success=False, customer=None)
    
    return CustomerResponse(success=True, customer=CustomerSchema.from_domain(customer))


@router.get("/customers", response_model=CustomersResponse)
async def list_customers(
    directory: InMemoryCustomerDirectory = Depends(get_customer_directory),
):
    """All customers, newest first."""
    customers = await directory.list_customers()
    return CustomersResponse(customers=[CustomerSchema.from_domain(c) for c in customers])


@router.post("/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    request: CustomerCreate,
    directory: InMemoryCustomerDirectory = Depends(get_customer_directory),
    companies: InMemoryCompanyStore = Depends(get_company_store),
):
    """Add a customer. The company must exist."""
    if await companies.get_company(request.company_id) is None:
        raise CompanyNotFoundError(f"Company {request.company_id} not found")
    
    customer = await directory.add_customer(**request.model_dump())
    return CustomerResponse(success=True, customer=CustomerSchema.from_domain(customer))


# =============================================================================
# Companies
# =============================================================================

@router.get("/companies", response_model=CompaniesResponse)
async def list_companies(
    companies: InMemoryCompanyStore = Depends(get_company_store),
):
    """
    List companies, newest first.
    
    A fresh install has no companies; one named "Default Company" is
    created on first listing so agents always have something to join.
    """
    items = await companies.list_companies()
    if not items:
        logger.info("No companies yet, creating %r", DEFAULT_COMPANY_NAME)
        items = [await companies.create_company(DEFAULT_COMPANY_NAME)]
    
    return CompaniesResponse(companies=[CompanySchema.from_domain(c) for c in items])


@router.post("/companies", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    request: CompanyCreate,
    companies: InMemoryCompanyStore = Depends(get_company_store),
):
    """Create a company. Names are unique."""
    company = await companies.create_company(request.name)
    return CompanyResponse(company=CompanySchema.from_domain(company))
