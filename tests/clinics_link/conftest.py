import pytest
from httpx import ASGITransport, AsyncClient

from src.clinics_link.domain.models.clinic import Clinic
from src.clinics_link.infra.db.registry import repositories
from src.clinics_link.main import app
from tests.clinics_link.factories import make_clinic


@pytest.fixture(autouse=True)
def fresh_repositories():
    """Every test starts with empty in-memory repositories."""
    repositories.reset()
    yield
    repositories.reset()


@pytest.fixture
def clinic_a() -> Clinic:
    return make_clinic("Alpha Clinic")


@pytest.fixture
def clinic_b() -> Clinic:
    return make_clinic("Beta Clinic")


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
