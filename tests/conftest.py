import io
import os
import shutil
import tempfile
from contextlib import contextmanager

import pytest

_STORAGE_ROOT = tempfile.mkdtemp(prefix="dispute-packets-test-")


def _set_test_env() -> None:
    defaults = {
        "APP_NAME": "Dispute Packet Assistant Test",
        "ENVIRONMENT": "test",
        "API_PREFIX": "/api",
        "DATABASE_URL": "sqlite://",
        "AUTO_CREATE_TABLES": "false",
        "STORAGE_ROOT": _STORAGE_ROOT,
        "MAX_UPLOAD_BYTES": "2097152",
        "STRIPE_SECRET_KEY": "sk_test_xxx",
        "DEMO_USER_ID": "demo-user",
        "RATE_LIMIT_ENABLED": "false",
        "LOG_LEVEL": "WARNING",
        "CORS_ORIGINS": "http://localhost:5173",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


_set_test_env()

from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app import models  # noqa: E402,F401
from app.core.database import Base, build_engine, get_db  # noqa: E402
from app.core.errors import NotFound  # noqa: E402
from app.dependencies import CurrentUser, get_current_user, get_dispute_gateway  # noqa: E402
from app.main import app  # noqa: E402
from app.services.stripe_gateway import Dispute, DisputeGateway  # noqa: E402


def make_dispute(dispute_id: str = "dp_1", **overrides) -> dict:
    payload = {
        "id": dispute_id,
        "object": "dispute",
        "charge": "ch_123",
        "payment_intent": "pi_123",
        "reason": "product_not_received",
        "amount": 2550,
        "currency": "usd",
        "status": "needs_response",
        "created": 1735689600,
        "evidence_details": {"due_by": 1736294400},
        "evidence": {
            "customer_name": "Jane Doe",
            "customer_email_address": "jane@example.com",
            "customer_billing_address": "",
            "customer_shipping_address": None,
            "product_description": "Blue widget",
            "customer_purchase_ip": "203.0.113.9",
        },
    }
    payload.update(overrides)
    return payload


class FakeDisputeGateway(DisputeGateway):
    def __init__(self, disputes=None, error: Exception | None = None):
        self.disputes = {item["id"]: item for item in (disputes or [])}
        self.error = error
        self.calls: list[tuple[str, str | int]] = []

    def list_disputes(self, limit: int = 50) -> list[Dispute]:
        self.calls.append(("list", limit))
        if self.error:
            raise self.error
        items = [Dispute.from_payload(item) for item in self.disputes.values()]
        items.sort(key=lambda d: d.created, reverse=True)
        return items[:limit]

    def retrieve_dispute(self, dispute_id: str) -> Dispute:
        self.calls.append(("retrieve", dispute_id))
        if self.error:
            raise self.error
        payload = self.disputes.get(dispute_id)
        if not payload:
            raise NotFound("Dispute not found")
        return Dispute.from_payload(payload)


def png_bytes(width: int = 40, height: int = 30, color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture(scope="session", autouse=True)
def _remove_storage_root():
    yield
    shutil.rmtree(_STORAGE_ROOT, ignore_errors=True)


@pytest.fixture
def storage_root() -> str:
    return _STORAGE_ROOT


@pytest.fixture
def db_session():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def gateway() -> FakeDisputeGateway:
    return FakeDisputeGateway([make_dispute()])


@contextmanager
def client_for(db_session, gateway, user_id: str = "demo-user", raise_server_exceptions: bool = True):
    app.dependency_overrides.clear()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_dispute_gateway] = lambda: gateway
    app.dependency_overrides[get_current_user] = lambda: CurrentUser(id=user_id)
    try:
        with TestClient(app, raise_server_exceptions=raise_server_exceptions) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(db_session, gateway):
    with client_for(db_session, gateway) as c:
        yield c
