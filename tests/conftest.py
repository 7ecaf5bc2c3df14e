"""
Shared fixtures.

Every test gets a fresh SQLite file under tmp_path; upstream HTTP
services are replaced by in-memory fakes.
"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.container import build_container
from app.domain.market.entities import HistoricalRate, RateSnapshot, Recommendation
from app.domain.market.errors import UpstreamUnavailableError
from app.domain.market.ports import PredictorPort, RateSourcePort
from app.infrastructure.database import create_db_engine, init_schema
from app.main import create_app
from app.shared.security.rate_limiting import limiter

TEST_SEED = {
    "USD": Decimal("10000"),
    "EUR": Decimal("0"),
    "GBP": Decimal("0"),
    "JPY": Decimal("0"),
}


class FakeRateSource(RateSourcePort):
    """Serves queued EUR rates; raises when `fail` is set."""

    def __init__(self, eur_rates: list[float] | None = None) -> None:
        self.eur_rates = list(eur_rates or [0.91])
        self.fail = False
        self.calls = 0
        self.history: list[HistoricalRate] = []

    async def fetch_rates(self, base_currency: str) -> RateSnapshot:
        self.calls += 1
        if self.fail:
            raise UpstreamUnavailableError("rate source", "connection refused")
        rate = self.eur_rates.pop(0) if len(self.eur_rates) > 1 else self.eur_rates[0]
        return RateSnapshot(base=base_currency, rates={"EUR": rate, "GBP": 0.78, "USD": 1.0})

    async def fetch_history(
        self, base_currency: str, quote_currency: str, start: date, end: date
    ) -> list[HistoricalRate]:
        if self.fail:
            raise UpstreamUnavailableError("rate source", "connection refused")
        return [r for r in self.history if start <= r.date <= end]


class FakePredictor(PredictorPort):
    def __init__(self, recommendation: Recommendation = Recommendation.BUY) -> None:
        self.recommendation = recommendation
        self.fail = False
        self.features: list[dict[str, float]] = []

    async def predict(self, features: dict[str, float]) -> Recommendation:
        self.features.append(features)
        if self.fail:
            raise UpstreamUnavailableError("predictor", "HTTP 500")
        return self.recommendation


@pytest.fixture(autouse=True)
def _no_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'forexsim.db'}"


@pytest.fixture
def engine(db_url):
    engine = create_db_engine(db_url)
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def wallet_seed() -> dict:
    return dict(TEST_SEED)


@pytest.fixture
def settings(db_url) -> Settings:
    return Settings(
        _env_file=None,
        database_url=db_url,
        jwt_secret_key="test-secret",
        market_stream_enabled=False,
        rate_limit_enabled=False,
        wallet_seed=TEST_SEED,
        log_level="WARNING",
    )


@pytest.fixture
def rate_source() -> FakeRateSource:
    return FakeRateSource()


@pytest.fixture
def predictor() -> FakePredictor:
    return FakePredictor()


@pytest.fixture
def container(settings, rate_source, predictor):
    return build_container(settings, rate_source=rate_source, predictor=predictor)


@pytest.fixture
def client(settings, container):
    app = create_app(settings=settings, container=container)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    """Return a helper that signs up a user and returns its Authorization header."""

    def signup_and_login(username: str = "alice", password: str = "s3cret-pass") -> dict:
        credentials = {"username": username, "password": password}
        response = client.post("/api/v1/auth/signup", json=credentials)
        assert response.status_code == 201, response.text
        response = client.post("/api/v1/auth/login", json=credentials)
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return signup_and_login

