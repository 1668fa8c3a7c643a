"""
OmniCall - Directory Stores

In-memory stores for companies and customers, plus the startup seed
loader.

Notes:
    - Listing order is most-recently-created first. Phone lookups scan
      in that order, so the newest record wins when several customers
      share a number.
    - All data is ephemeral unless a seed file is configured.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

from omnicall.config import Settings
from omnicall.core.exceptions import (
    CompanyNotFoundError,
    ConfigurationError,
    DuplicateCompanyError,
    ValidationError,
)
from omnicall.core.types import Company, Customer, as_utc
from omnicall.telephony.privacy import mask_phone_number
from .matcher import PhoneMatcher

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol
# =============================================================================

@runtime_checkable
class DirectoryProvider(Protocol):
    """
    Source of caller identities for the softphone.
    
    Implementations must never raise for "not found" or transport
    problems: they return None and the call proceeds with the raw number.
    """
    
    @abstractmethod
    async def lookup_by_phone(self, query: str) -> Optional[Customer]:
        """Resolve a raw phone string to a customer, or None."""
        ...


# =============================================================================
# Company Store
# =============================================================================

class InMemoryCompanyStore:
    """In-memory company store with unique names."""
    
    def __init__(self):
        self._lock = asyncio.Lock()
        self._companies: List[Company] = []
        self._next_id = 1
    
    async def create_company(self, name: str, created_at: Optional[datetime] = None) -> Company:
        """
        Create a company.
        
        Raises:
            ValidationError: If the name is blank
            DuplicateCompanyError: If the name is taken
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Company name is required")
        
        async with self._lock:
            if any(c.name == name for c in self._companies):
                raise DuplicateCompanyError("Company with this name already exists")
            
            company = Company(id=self._next_id, name=name)
            if created_at is not None:
                company = replace(company, created_at=as_utc(created_at))
            self._next_id += 1
            self._companies.append(company)
        
        logger.info("Company created: id=%d", company.id)
        return company
    
    async def get_company(self, company_id: int) -> Optional[Company]:
        async with self._lock:
            for company in self._companies:
                if company.id == company_id:
                    return company
        return None
    
    async def list_companies(self) -> List[Company]:
        """All companies, newest first."""
        async with self._lock:
            return sorted(self._companies, key=lambda c: (c.created_at, c.id), reverse=True)
    
    async def count(self) -> int:
        async with self._lock:
            return len(self._companies)


# =============================================================================
# Customer Directory
# =============================================================================

class InMemoryCustomerDirectory:
    """
    In-memory customer directory searchable by phone number.
    
    Implements DirectoryProvider so the softphone can use it in-process;
    the REST API exposes the same lookup over HTTP.
    
    Usage:
        directory = InMemoryCustomerDirectory(country_code="27")
        await directory.add_customer(company_id=1, first_name="Thandi",
                                     last_name="Mokoena", phone="067 296 6361")
        customer = await directory.find_by_phone("+27672966361")
    """
    
    def __init__(
        self,
        country_code: Optional[str] = None,
        matcher: Optional[PhoneMatcher] = None,
    ):
        """
        Args:
            country_code: Dialing convention used for cross-format matches
            matcher: Custom matcher (default: PhoneMatcher(country_code))
        """
        self._lock = asyncio.Lock()
        self._customers: List[Customer] = []
        self._next_id = 1
        self._matcher = matcher or PhoneMatcher(country_code=country_code)
    
    async def add_customer(
        self,
        company_id: int,
        first_name: str,
        last_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        medical_aid_provider: Optional[str] = None,
        medical_aid_number: Optional[str] = None,
        medical_plan: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Customer:
        """
        Add a customer. The phone is stored exactly as given.
        
        Raises:
            ValidationError: If first or last name is blank
        """
        if not (first_name or "").strip() or not (last_name or "").strip():
            raise ValidationError("First name and last name are required")
        
        async with self._lock:
            customer = Customer(
                id=self._next_id,
                company_id=company_id,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                email=email,
                phone=phone,
                medical_aid_provider=medical_aid_provider,
                medical_aid_number=medical_aid_number,
                medical_plan=medical_plan,
            )
            if created_at is not None:
                customer = replace(customer, created_at=as_utc(created_at))
            self._next_id += 1
            self._customers.append(customer)
        
        logger.info(
            "Customer added: id=%d, company=%d, phone=%s",
            customer.id, company_id, mask_phone_number(phone),
        )
        return customer
    
    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        async with self._lock:
            for customer in self._customers:
                if customer.id == customer_id:
                    return customer
        return None
    
    async def list_customers(self) -> List[Customer]:
        """All customers, most recently created first."""
        async with self._lock:
            return self._snapshot()
    
    async def find_by_phone(self, query: str) -> Optional[Customer]:
        """
        Find a customer by phone number.
        
        Exact match first, then formatting-insensitive match over a
        newest-first snapshot.
        """
        async with self._lock:
            snapshot = self._snapshot()
        
        customer = self._matcher.resolve(query, snapshot)
        
        if customer is None:
            logger.info(
                "No customer for phone=%s (checked %d)",
                mask_phone_number(query), len(snapshot),
            )
        else:
            logger.info(
                "Customer %d matched phone=%s",
                customer.id, mask_phone_number(query),
            )
        return customer
    
    async def lookup_by_phone(self, query: str) -> Optional[Customer]:
        return await self.find_by_phone(query)
    
    async def count(self) -> int:
        async with self._lock:
            return len(self._customers)
    
    def _snapshot(self) -> List[Customer]:
        return sorted(self._customers, key=lambda c: (c.created_at, c.id), reverse=True)


# =============================================================================
# Seeding
# =============================================================================

async def load_directory_seed(
    path: str,
    companies: InMemoryCompanyStore,
    customers: InMemoryCustomerDirectory,
) -> tuple[int, int]:
    """
    Load companies and customers from a JSON seed file.
    
    Format:
        {
            "companies": [{"name": "Sunrise Clinic"}],
            "customers": [{"company": "Sunrise Clinic", "first_name": "...",
                           "last_name": "...", "phone": "0672966361", ...}]
        }
    
    Customers reference companies by name ("company") or id ("company_id").
    ``created_at`` is ISO 8601; values without an offset are taken as UTC.
    
    Returns:
        Tuple of (companies_loaded, customers_loaded)
    
    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    seed_file = Path(path)
    try:
        payload = json.loads(seed_file.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigurationError(f"Directory seed file not found: {path}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Directory seed file is not valid JSON: {e}")
    
    if not isinstance(payload, dict):
        raise ConfigurationError("Directory seed must be a JSON object")
    
    company_ids: dict[str, int] = {}
    for item in payload.get("companies", []):
        try:
            name = item["name"]
        except (KeyError, TypeError):
            raise ConfigurationError(f"Seed company entry needs a 'name': {item!r}")
        company = await companies.create_company(name)
        company_ids[company.name] = company.id
    
    customer_count = 0
    for item in payload.get("customers", []):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Seed customer entry must be an object: {item!r}")
        item = dict(item)
        company_name = item.pop("company", None)
        if company_name is not None:
            if company_name not in company_ids:
                raise ConfigurationError(f"Seed customer references unknown company '{company_name}'")
            item["company_id"] = company_ids[company_name]
        elif "company_id" not in item:
            raise ConfigurationError("Seed customer needs 'company' or 'company_id'")
        elif await companies.get_company(item["company_id"]) is None:
            raise CompanyNotFoundError(f"Company {item['company_id']} not found")

        if isinstance(item.get("created_at"), str):
            item["created_at"] = _parse_timestamp(item["created_at"])

        try:
            await customers.add_customer(**item)
        except TypeError as e:
            raise ConfigurationError(f"Invalid seed customer entry: {e}")
        customer_count += 1
    
    logger.info(
        "Directory seeded from %s: %d companies, %d customers",
        seed_file.name, len(company_ids), customer_count,
    )
    return len(company_ids), customer_count


def _parse_timestamp(value: str) -> datetime:
    """ISO 8601 seed timestamp; a trailing "Z" and naive values mean UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ConfigurationError(f"Invalid created_at in directory seed: {value!r}")


def create_customer_directory(settings: Settings) -> InMemoryCustomerDirectory:
    """Factory using the configured dialing convention."""
    return InMemoryCustomerDirectory(country_code=settings.default_country_code or None)
