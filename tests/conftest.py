"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from procura.core.config import Settings
from procura.models import (
    Base,
    FuelDailyControl,
    GeneralSettings,
    PurchaseOrder,
    QuotationRequest,
    Requirement,
)
from procura.services.approval import ConfigurationRow, SignatureRole
from procura.services.approval.workflow import SignatureWorkflowService

CREATOR_ID = 10


@pytest.fixture(scope="session")
def app():
    """Create FastAPI application for testing."""
    from procura.main import create_app

    return create_app()


@pytest.fixture(scope="session")
def client(app):
    """Create test client."""
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="function")
def settings():
    """Create settings instance for testing."""
    return Settings(environment="testing", db_url_override="sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Database session for repository tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def workflow_service(session_factory, settings):
    """Signature workflow service backed by the test database."""
    return SignatureWorkflowService(session_factory=session_factory, settings=settings)


@pytest.fixture
def create_document(session_factory):
    """Factory inserting a signable document and returning its ID."""
    counter = iter(range(1, 10_000))

    async def _create(
        entity_type: str = "requirement",
        amount: Decimal | int = Decimal("5000"),
        status: str | None = None,
        created_by: int | None = CREATOR_ID,
    ) -> int:
        n = next(counter)
        if entity_type == "requirement":
            document = Requirement(
                code=f"REQ-{n:04d}",
                amount=Decimal(amount),
                created_by=created_by,
                status=status or "PENDING",
            )
        elif entity_type == "quotation":
            document = QuotationRequest(
                code=f"COT-{n:04d}",
                amount=Decimal(amount),
                created_by=created_by,
                status=status or "PENDING",
            )
        elif entity_type == "fuel_control":
            document = FuelDailyControl(
                control_date=date(2025, 10, n % 28 + 1),
                warehouse_id=1,
                total_outputs=Decimal(amount),
                created_by=created_by,
                status=status or "CLOSED",
            )
        else:
            document = PurchaseOrder(
                code=f"OC-{n:04d}",
                total=Decimal(amount),
                created_by=created_by,
                status=status or "PENDING",
            )
        async with session_factory() as session:
            session.add(document)
            await session.commit()
            return document.id

    return _create


@pytest.fixture
def set_threshold(session_factory):
    """Store a low-amount threshold in the general settings row."""

    async def _set(value: Decimal | int | None) -> None:
        async with session_factory() as session:
            session.add(
                GeneralSettings(
                    id=1,
                    low_amount_threshold=Decimal(value) if value is not None else None,
                )
            )
            await session.commit()

    return _set


@pytest.fixture
def all_required_chain():
    """Four required levels with administration before technical office."""
    return [
        ConfigurationRow(level=1, role=SignatureRole.SOLICITANTE, required=True),
        ConfigurationRow(level=2, role=SignatureRole.ADMINISTRACION, required=True),
        ConfigurationRow(level=3, role=SignatureRole.OFICINA_TECNICA, required=True),
        ConfigurationRow(level=4, role=SignatureRole.GERENCIA, required=True),
    ]
