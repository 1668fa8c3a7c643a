"""
OmniCall - API Schemas

Pydantic models for request/response validation.
These define the contract between the softphone frontend and the backend.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from omnicall.core.types import Company, Customer


# ===========================================
# Company Schemas
# ===========================================

class CompanySchema(BaseModel):
    """Company as returned by the API."""
    
    id: int
    name: str
    created_at: datetime
    
    @classmethod
    def from_domain(cls, company: Company) -> "CompanySchema":
        return cls(id=company.id, name=company.name, created_at=company.created_at)


class CompanyCreate(BaseModel):
    """Request to create a company."""
    
    name: str = Field(default="", description="Unique company name")


class CompaniesResponse(BaseModel):
    success: bool = True
    companies: List[CompanySchema]


class CompanyResponse(BaseModel):
    success: bool = True
    company: Optional[CompanySchema] = None


# ===========================================
# Customer Schemas
# ===========================================

class CustomerSchema(BaseModel):
    """Customer record as returned by the API."""
    
    id: int
    company_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    medical_aid_provider: Optional[str] = None
    medical_aid_number: Optional[str] = None
    medical_plan: Optional[str] = None
    created_at: datetime
    
    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerSchema":
        return cls(
            id=customer.id,
            company_id=customer.company_id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            email=customer.email,
            phone=customer.phone,
            medical_aid_provider=customer.medical_aid_provider,
            medical_aid_number=customer.medical_aid_number,
            medical_plan=customer.medical_plan,
            created_at=customer.created_at,
        )
    
    def to_domain(self) -> Customer:
        return Customer(**self.model_dump())


class CustomerCreate(BaseModel):
    """Request to add a customer to the directory."""
    
    company_id: int
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = Field(
        default=None,
        description="Stored as entered; lookups tolerate formatting differences",
    )
    medical_aid_provider: Optional[str] = None
    medical_aid_number: Optional[str] = None
    medical_plan: Optional[str] = None


class CustomerResponse(BaseModel):
    """
    Phone lookup / create result.
    
    ``success`` is False with a null customer when no record matches.
    """
    success: bool
    customer: Optional[CustomerSchema] = None


class CustomersResponse(BaseModel):
    success: bool = True
    customers: List[CustomerSchema]


# ===========================================
# Error Schema
# ===========================================

class ErrorResponse(BaseModel):
    detail: str
    code: Optional[str] = None
