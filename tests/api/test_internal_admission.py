from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from governor.api.routes import internal_helpers
from governor.generation.admission.types import AdmissionDecision, SlotInfo
from governor.main import app

HEADERS = {"X-Internal-Token": "internal-secret"}


@pytest.fixture
def client(monkeypatch) -> TestClient:
    monkeypatch.setattr(
        internal_helpers,
        "get_settings",
        lambda: SimpleNamespace(
            internal_api_token="internal-secret",
            internal_api_allowlist="127.0.0.1/32",
            internal_api_trusted_proxies="",
        ),
    )
    return TestClient(app, client=("127.0.0.1", 5300))


def _controller(decision: AdmissionDecision, calls: list[dict] | None = None):
    async def try_admit(origin: str, **kwargs) -> AdmissionDecision:
        if calls is not None:
            calls.append({"origin": origin, **kwargs})
        return decision

    async def release(origin: str) -> int:
        return 0

    async def get_info(origin: str) -> SlotInfo:
        return SlotInfo(origin=origin, current=0, max=decision.max)

    return SimpleNamespace(try_admit=try_admit, release=release, get_info=get_info)


def test_acquire_requires_token(monkeypatch) -> None:
    monkeypatch.setattr(
        internal_helpers,
        "get_settings",
        lambda: SimpleNamespace(
            internal_api_token="internal-secret",
            internal_api_allowlist="127.0.0.1/32",
            internal_api_trusted_proxies="",
        ),
    )

    client = TestClient(app, client=("127.0.0.1", 5301))
    response = client.post("/internal/admission/acquire", json={"origin": "203.0.113.1"})

    assert response.status_code == 403


def test_acquire_forwards_caller_identity(client: TestClient, monkeypatch) -> None:
    calls: list[dict] = []
    controller = _controller(AdmissionDecision(admitted=True, current=1, max=2), calls)
    monkeypatch.setattr(internal_helpers, "get_admission_controller", lambda: controller)

    response = client.post(
        "/internal/admission/acquire",
        json={"origin": "203.0.113.1", "caller_id": "u-1", "is_premium": True},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"admitted": True, "current": 1, "max": 2}
    assert calls == [
        {"origin": "203.0.113.1", "caller_id": "u-1", "is_admin": False, "is_premium": True}
    ]


def test_rejected_acquire_is_429_with_counters(client: TestClient, monkeypatch) -> None:
    controller = _controller(AdmissionDecision(admitted=False, current=1, max=1))
    monkeypatch.setattr(internal_helpers, "get_admission_controller", lambda: controller)

    response = client.post(
        "/internal/admission/acquire",
        json={"origin": "203.0.113.1"},
        headers=HEADERS,
    )

    assert response.status_code == 429
    assert response.json() == {"detail": {"code": "E_CONCURRENCY_LIMIT", "current": 1, "max": 1}}


def test_release_returns_slot_state(client: TestClient, monkeypatch) -> None:
    controller = _controller(AdmissionDecision(admitted=True, current=1, max=2))
    monkeypatch.setattr(internal_helpers, "get_admission_controller", lambda: controller)

    response = client.post(
        "/internal/admission/release",
        json={"origin": "203.0.113.1"},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"origin": "203.0.113.1", "current": 0, "max": 2}
