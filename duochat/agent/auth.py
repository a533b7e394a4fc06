from __future__ import annotations

from typing import Any

from duochat.models.entities import User

DEMO_EMAIL = "test@example.com"
DEMO_PASSWORD = "password123"


class LocalAuth:
    """Single hardcoded login with per-email profile overrides, in memory."""

    def __init__(self) -> None:
        self.user: User | None = None
        self._profiles: dict[str, dict[str, Any]] = {}

    def login(self, email: str, password: str) -> bool:
        if email != DEMO_EMAIL or password != DEMO_PASSWORD:
            return False
        self.user = User(email=email, **self._profiles.get(email, {}))
        return True

    def logout(self) -> None:
        self.user = None

    def update_profile(self, **fields: Any) -> User:
        if self.user is None:
            raise ValueError("not logged in")
        profile = {k: v for k, v in fields.items() if k in ("name", "avatar")}
        self._profiles[self.user.email] = {**self._profiles.get(self.user.email, {}), **profile}
        self.user = self.user.model_copy(update=profile)
        return self.user
