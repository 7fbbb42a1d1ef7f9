from __future__ import annotations

import pytest

from governor.generation.admission.service import AdmissionController
from governor.generation.admission.types import AdmissionConfig, AdmissionDecision


def _controller(monkeypatch, *, admitted: bool) -> tuple[AdmissionController, list[str]]:
    controller = AdmissionController(AdmissionConfig(max_concurrent_generations=2))
    released: list[str] = []

    async def fake_try_admit(origin: str, **_: object) -> AdmissionDecision:
        return AdmissionDecision(admitted=admitted, current=1, max=2)

    async def fake_release(origin: str, **_: object) -> int:
        released.append(origin)
        return 0

    monkeypatch.setattr(controller, "try_admit", fake_try_admit)
    monkeypatch.setattr(controller, "release", fake_release)
    return controller, released


@pytest.mark.asyncio
async def test_hold_releases_once_after_admitted_block(monkeypatch) -> None:
    controller, released = _controller(monkeypatch, admitted=True)

    async with controller.hold("10.0.0.1", caller_id="u-1") as decision:
        assert decision.admitted is True

    assert released == ["10.0.0.1"]


@pytest.mark.asyncio
async def test_hold_releases_when_block_raises(monkeypatch) -> None:
    controller, released = _controller(monkeypatch, admitted=True)

    with pytest.raises(RuntimeError):
        async with controller.hold("10.0.0.1"):
            raise RuntimeError("generation failed")

    assert released == ["10.0.0.1"]


@pytest.mark.asyncio
async def test_hold_does_not_release_rejected_slot(monkeypatch) -> None:
    controller, released = _controller(monkeypatch, admitted=False)

    async with controller.hold("10.0.0.1") as decision:
        assert decision.admitted is False

    assert released == []


@pytest.mark.asyncio
async def test_empty_origin_is_never_admitted() -> None:
    controller = AdmissionController(AdmissionConfig(max_concurrent_generations=2))

    decision = await controller.try_admit("", caller_id="u-1")

    assert decision == AdmissionDecision(admitted=False, current=0, max=None)
