"""
Pytest configuration and fixtures for the intervention services tests.

I service vengono testati con una AsyncSession mock: non serve un
database reale.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import UserRole
from app.schemas.actor import Actor


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    db.info = {}

    # begin_nested() è usato come async context manager (savepoint)
    nested = MagicMock()
    nested.__aenter__ = AsyncMock(return_value=nested)
    nested.__aexit__ = AsyncMock(return_value=False)
    db.begin_nested = MagicMock(return_value=nested)
    return db


def scalar_result(value):
    """Risultato di db.execute() con un singolo oggetto (o None)."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    result.scalar.return_value = value
    return result


class FakeSessionFactory:
    """Sostituisce AsyncSessionLocal restituendo sempre la stessa sessione mock."""

    def __init__(self, db):
        self.db = db

    def __call__(self):
        return self

    async def __aenter__(self):
        return self.db

    async def __aexit__(self, *exc_info):
        return False


# ============================================================
# Fixtures per Actor
# ============================================================


COMPANY_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_COMPANY_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
TECHNICIAN_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")


@pytest.fixture
def master():
    return Actor(id=uuid.uuid4(), name="Mario Rossi", role=UserRole.MASTER)


@pytest.fixture
def ditta():
    """Titolare della ditta COMPANY_ID."""
    return Actor(id=uuid.uuid4(), name="Impianti Bianchi", role=UserRole.DITTA, company_id=COMPANY_ID)


@pytest.fixture
def tecnico():
    """Tecnico TECHNICIAN_ID della ditta COMPANY_ID."""
    return Actor(id=TECHNICIAN_ID, name="Luca Verdi", role=UserRole.TECNICO, company_id=COMPANY_ID)


# ============================================================
# Fixtures per Intervention Mock
# ============================================================


class MockCompany:
    """Mock di Company."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', COMPANY_ID)
        self.name = kwargs.get('name', 'Impianti Bianchi Srl')
        self.email = kwargs.get('email', None)
        self.phone = kwargs.get('phone', None)
        self.address = kwargs.get('address', None)
        self.owner_id = kwargs.get('owner_id', uuid.uuid4())
        self.is_active = kwargs.get('is_active', True)
        self.created_at = kwargs.get('created_at', datetime.now(timezone.utc))


class MockUser:
    """Mock di User."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', TECHNICIAN_ID)
        self.full_name = kwargs.get('full_name', 'Luca Verdi')
        self.phone = kwargs.get('phone', None)
        self.role = kwargs.get('role', 'tecnico')
        self.company_id = kwargs.get('company_id', COMPANY_ID)
        self.is_active = kwargs.get('is_active', True)


class MockIntervention:
    """Mock di Intervention."""
    def __init__(self, **kwargs):
        now = datetime.now(timezone.utc)
        self.id = kwargs.get('id', uuid.uuid4())
        self.number = kwargs.get('number', 'INT-2025-0001')
        self.client_name = kwargs.get('client_name', 'Giuseppe Neri')
        self.client_address = kwargs.get('client_address', 'Via Roma')
        self.client_city = kwargs.get('client_city', 'Torino')
        self.category = kwargs.get('category', 'installation')
        self.priority = kwargs.get('priority', 'normal')
        self.description = kwargs.get('description', 'Installazione climatizzatore')
        self.status = kwargs.get('status', 'assigned')
        self.company_id = kwargs.get('company_id', None)
        self.technician_id = kwargs.get('technician_id', None)
        self.assigned_by_id = kwargs.get('assigned_by_id', None)
        self.assigned_at = kwargs.get('assigned_at', None)
        self.appointment_date = kwargs.get('appointment_date', None)
        self.appointment_notes = kwargs.get('appointment_notes', None)
        self.appointment_confirmed_at = kwargs.get('appointment_confirmed_at', None)
        self.location_latitude = kwargs.get('location_latitude', None)
        self.location_longitude = kwargs.get('location_longitude', None)
        self.location_address = kwargs.get('location_address', None)
        self.location_captured_at = kwargs.get('location_captured_at', None)
        self.documentation_notes = kwargs.get('documentation_notes', None)
        self.started_at = kwargs.get('started_at', None)
        self.completed_at = kwargs.get('completed_at', None)
        self.closed_at = kwargs.get('closed_at', None)
        self.closed_notes = kwargs.get('closed_notes', None)
        self.created_at = kwargs.get('created_at', now)
        self.updated_at = kwargs.get('updated_at', now)


@pytest.fixture
def unassigned_intervention():
    """Intervento appena creato, senza ditta."""
    return MockIntervention()


@pytest.fixture
def company_intervention():
    """Intervento della ditta COMPANY_ID senza tecnico."""
    return MockIntervention(company_id=COMPANY_ID)


@pytest.fixture
def technician_intervention():
    """Intervento della ditta COMPANY_ID assegnato a TECHNICIAN_ID."""
    return MockIntervention(company_id=COMPANY_ID, technician_id=TECHNICIAN_ID)
