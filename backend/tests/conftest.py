"""
OmniCall - Test Configuration and Fixtures

Shared fixtures for all test modules.
"""

import asyncio
import os
import sys
from typing import Dict, Generator, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

# Ensure backend package is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from omnicall.config import Settings
from omnicall.core.types import Customer
from omnicall.directory.store import InMemoryCompanyStore, InMemoryCustomerDirectory
from omnicall.softphone.transport import SimulatedTransport


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that run the full app over HTTP")


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults and no webhook signature checks."""
    return Settings(
        app_env="testing",
        app_debug=True,
        app_log_level="WARNING",  # Reduce noise in tests
        twilio_phone_number="+27110000000",
        twilio_auth_token="",
        default_agent_id="agent001",
        default_country_code="27",
        directory_seed_path="",
    )


@pytest.fixture
def signed_settings(test_settings: Settings) -> Settings:
    """Settings with webhook signature validation enabled."""
    return test_settings.model_copy(update={"twilio_auth_token": "test-auth-token"})


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def company_store() -> InMemoryCompanyStore:
    return InMemoryCompanyStore()


@pytest.fixture
def customer_directory() -> InMemoryCustomerDirectory:
    """Empty directory using the South African dialing convention."""
    return InMemoryCustomerDirectory(country_code="27")


# =============================================================================
# FastAPI App Fixture
# =============================================================================

@pytest.fixture
def app(test_settings: Settings):
    """Create a FastAPI app instance with test settings."""
    # Import here to avoid building the module-level app before sys.path is set
    from main import create_app

    return create_app(test_settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as c:
        yield c


# =============================================================================
# Softphone Test Doubles
# =============================================================================

class FakeClock:
    """
    Simulated monotonic clock with a matching sleep().

    Sleepers are woken in deadline order by advance(), so timers inside
    the call session fire at exact simulated times without real waiting.
    """

    def __init__(self, start: float = 1000.0):
        self.now = start
        self._sleepers: List[Tuple[float, int, asyncio.Future]] = []
        self._seq = 0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._seq += 1
        self._sleepers.append((self.now + max(0.0, delay), self._seq, future))
        await future

    async def advance(self, seconds: float) -> None:
        """Move time forward, waking every sleeper whose deadline passes."""
        target = self.now + seconds
        while True:
            await settle()
            self._sleepers = [s for s in self._sleepers if not s[2].done()]
            due = [s for s in self._sleepers if s[0] <= target]
            if not due:
                break
            wake_at, seq, future = min(due, key=lambda s: (s[0], s[1]))
            self._sleepers.remove((wake_at, seq, future))
            self.now = max(self.now, wake_at)
            future.set_result(None)
        self.now = target
        await settle()


async def settle(rounds: int = 10) -> None:
    """Let ready tasks run to their next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class StubDirectory:
    """
    DirectoryProvider double.

    Answers from a dict keyed by the exact query. With ``gated`` set,
    every lookup blocks until release() so tests control when results
    arrive relative to state transitions.
    """

    def __init__(
        self,
        entries: Optional[Dict[str, Customer]] = None,
        gated: bool = False,
        error: Optional[Exception] = None,
    ):
        self.entries = entries or {}
        self.error = error
        self.queries: List[str] = []
        self._gate = asyncio.Event()
        if not gated:
            self._gate.set()

    def release(self) -> None:
        self._gate.set()

    async def lookup_by_phone(self, query: str) -> Optional[Customer]:
        self.queries.append(query)
        await self._gate.wait()
        if self.error is not None:
            raise self.error
        return self.entries.get(query)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> SimulatedTransport:
    return SimulatedTransport()


@pytest.fixture
def thandi() -> Customer:
    """Directory customer with full medical aid details."""
    return Customer(
        id=7,
        company_id=1,
        first_name="Thandi",
        last_name="Mokoena",
        email="thandi@example.com",
        phone="0672966361",
        medical_aid_provider="Discovery Health",
        medical_aid_number="DH-123456",
        medical_plan="Comprehensive",
    )
