"""
Shared test fixtures.

Provides a FastAPI TestClient wired to:
  • an in-memory court catalog built from tests.mocks.models
  • a temporary SQLite database (via app lifespan)
  • the sandbox payment gateway (no external HTTP)

The `client` fixture runs the full lifespan (DB init / shutdown) so that
booking endpoints backed by SQLite work correctly in tests.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from quickcourt.main import app
from quickcourt.services.catalog import CourtCatalog
from quickcourt.services.payments.sandbox import SandboxPaymentGateway
from quickcourt.services.registry import EngineRegistry
from tests.mocks.models import MOCK_COURTS


@pytest.fixture()
def _test_env(monkeypatch, tmp_path):
    """
    Internal fixture that patches the DB path and the engine registry
    so that the app lifespan runs cleanly against a temp database and
    mock collaborators.
    """
    # ── Temp database ─────────────────────────────────────────────────
    import quickcourt.db as db_mod

    monkeypatch.setattr(db_mod, "DB_PATH", str(tmp_path / "test.db"))

    # ── Mock engine registry ──────────────────────────────────────────
    test_registry = EngineRegistry(
        catalog=CourtCatalog(MOCK_COURTS),
        gateway=SandboxPaymentGateway(),
    )

    # Patch everywhere `registry` was imported
    for mod_path in (
        "quickcourt.services.registry",
        "quickcourt.main",
        "quickcourt.dependencies",
        "quickcourt.routers.courts",
        "quickcourt.routers.time_slots",
        "quickcourt.routers.bookings",
    ):
        monkeypatch.setattr(f"{mod_path}.registry", test_registry)

    # ── Disable rate limiting in tests ────────────────────────────────
    from quickcourt.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)

    return test_registry


@pytest.fixture()
def mock_registry(_test_env) -> EngineRegistry:
    """Public alias for tests that reference mock_registry directly."""
    return _test_env


@pytest.fixture()
def gateway(_test_env: EngineRegistry) -> SandboxPaymentGateway:
    """The sandbox gateway the app charges through; script declines on it."""
    return _test_env.gateway


@pytest.fixture()
def client(_test_env: EngineRegistry) -> TestClient:
    """
    FastAPI TestClient with mock catalog, temp DB and sandbox payments.

    Uses a context manager so the lifespan runs (DB init/shutdown).
    """
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc
