"""
OmniCall - Softphone Display Helpers
"""

from __future__ import annotations

from omnicall.core.types import Customer
from .types import CallerInfo


def format_duration(seconds: int) -> str:
    """
    Render a call duration as ``MM:SS``.
    
    Minutes are zero-padded to two digits and keep growing past 99
    (``6427`` seconds → ``"107:07"``); there is no hour field.
    """
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def caller_from_customer(customer: Customer, number: str) -> CallerInfo:
    """Caller identity for a matched customer; the number is kept as dialed/received."""
    plan = customer.medical_plan or ""
    return CallerInfo(
        name=customer.display_name,
        number=number,
        line1=customer.medical_aid_provider or "",
        line2=f"({plan})" if plan else "",
    )
