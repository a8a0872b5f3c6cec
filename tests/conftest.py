import pytest

from gate.app import AnalysisService, create_app
from gate.config import GateConfig


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return GateConfig(provider="mock", maintenance_interval=3600.0)


@pytest.fixture
def svc(config, clock):
    return AnalysisService(config, clock=clock)


@pytest.fixture
async def client(aiohttp_client, config, svc):
    return await aiohttp_client(create_app(config, svc))
