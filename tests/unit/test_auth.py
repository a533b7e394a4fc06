from __future__ import annotations

from duochat.agent.auth import DEMO_EMAIL, DEMO_PASSWORD, LocalAuth


def test_only_demo_credentials_log_in() -> None:
    auth = LocalAuth()
    assert not auth.login(DEMO_EMAIL, "wrong")
    assert auth.user is None
    assert auth.login(DEMO_EMAIL, DEMO_PASSWORD)
    assert auth.user is not None and auth.user.email == DEMO_EMAIL


def test_profile_survives_logout() -> None:
    auth = LocalAuth()
    auth.login(DEMO_EMAIL, DEMO_PASSWORD)
    auth.update_profile(name="Ala", role="admin")
    auth.logout()
    assert auth.user is None

    auth.login(DEMO_EMAIL, DEMO_PASSWORD)
    assert auth.user is not None
    assert auth.user.name == "Ala"
