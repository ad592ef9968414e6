import pytest
from fastapi.testclient import TestClient

from fakes import FakeClock, SentinelHubStub, make_service
from flood_twin.config import Settings
from flood_twin.main import create_app
from flood_twin.satellite.service import SatelliteDataService


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub() -> SentinelHubStub:
    return SentinelHubStub()


@pytest.fixture
def service(stub: SentinelHubStub, clock: FakeClock) -> SatelliteDataService:
    return make_service(stub, clock)


@pytest.fixture
def settings() -> Settings:
    return Settings(client_id="client-id", client_secret="client-secret", background_tasks_enabled=False)


@pytest.fixture
def client(settings: Settings, service: SatelliteDataService) -> TestClient:
    return TestClient(create_app(settings=settings, service=service))
