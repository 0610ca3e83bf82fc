"""Unit tests for the suspend gate."""

from __future__ import annotations

import threading

import pytest

from idregistry.core.exceptions import AdminAuthorizationError, ServiceSuspendedError
from idregistry.core.suspend_gate import SuspendGate


def test_gate_starts_active() -> None:
    gate = SuspendGate("secret")

    assert gate.is_suspended() is False
    gate.ensure_active()


def test_suspend_and_resume_with_matching_secret() -> None:
    gate = SuspendGate("secret")

    gate.suspend("secret")
    assert gate.is_suspended() is True
    with pytest.raises(ServiceSuspendedError):
        gate.ensure_active()

    gate.resume("secret")
    assert gate.is_suspended() is False


@pytest.mark.parametrize("secret", [None, "", "wrong", "secret "])
def test_wrong_secret_leaves_state_unchanged(secret: str | None) -> None:
    gate = SuspendGate("secret")

    with pytest.raises(AdminAuthorizationError):
        gate.suspend(secret)
    assert gate.is_suspended() is False

    gate.set_suspended(True)
    with pytest.raises(AdminAuthorizationError):
        gate.resume(secret)
    assert gate.is_suspended() is True


def test_empty_admin_secret_never_authorizes() -> None:
    gate = SuspendGate("")

    with pytest.raises(AdminAuthorizationError):
        gate.suspend("")


def test_state_is_visible_across_threads() -> None:
    gate = SuspendGate("secret")
    observed: list[bool] = []

    writer = threading.Thread(target=gate.suspend, args=("secret",))
    writer.start()
    writer.join()

    reader = threading.Thread(target=lambda: observed.append(gate.is_suspended()))
    reader.start()
    reader.join()

    assert observed == [True]
