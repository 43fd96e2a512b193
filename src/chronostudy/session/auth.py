"""Auth session — current user + bearer token, persisted to a JSON file.

The JSON file plays the role browser localStorage plays for the web client:
the token survives restarts until the user logs out.
"""

import asyncio
import inspect
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from chronostudy.api.base import ApiError
from chronostudy.api.client import ApiClient

logger = logging.getLogger(__name__)

AuthListener = Callable[[dict | None], Any]


class TokenStore:
    """Reads and writes ``{"token": ..., "user": {...}}`` to disk."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> tuple[str | None, dict | None]:
        """Return the stored (token, user), or (None, None) if absent/corrupt."""
        if not self._path.exists():
            return None, None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Session file unreadable, ignoring: %s", self._path)
            return None, None
        if not isinstance(data, dict):
            return None, None
        return data.get("token") or None, data.get("user") or None

    def save(self, token: str | None, user: dict | None) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps({"token": token, "user": user}, indent=2),
            encoding="utf-8",
        )

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


class AuthSession:
    """Holds the logged-in user and token, and notifies listeners on change."""

    def __init__(self, store: TokenStore) -> None:
        self._store = store
        self._token, self._user = store.load()
        self._listeners: list[AuthListener] = []
        self._pending: set[asyncio.Task] = set()

    @property
    def user(self) -> dict | None:
        return self._user

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._user and self._token)

    def get_token(self) -> str | None:
        """Token provider for ApiClient."""
        return self._token

    def on_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener for login/logout; returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def login(self, user: dict, token: str | None) -> None:
        self._user = user
        self._token = token or None
        self._store.save(self._token, self._user)
        logger.info("Logged in as %s", user.get("email") or user.get("name") or "user")
        self._notify()

    def logout(self) -> None:
        self._user = None
        self._token = None
        self._store.clear()
        logger.info("Logged out")
        self._notify()

    def update_user(self, patch: dict) -> None:
        """Shallow-merge ``patch`` into the current user; no-op when logged out."""
        if not self._user:
            return
        self._user = {**self._user, **patch}
        self._store.save(self._token, self._user)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(self._user if self.is_authenticated else None)
            except Exception:
                logger.exception("Auth listener failed")
                continue
            if inspect.isawaitable(result):
                try:
                    loop = asyncio.get_running_loop()
                except RuntimeError:
                    logger.debug("No running loop, async auth listener skipped")
                    if inspect.iscoroutine(result):
                        result.close()
                    continue
                task = loop.create_task(result)
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)


async def login_with_password(
    client: ApiClient,
    auth: AuthSession,
    email: str,
    password: str,
) -> dict:
    """POST /auth/login and store the returned user + token.

    Raises:
        ApiError: When the backend rejects the credentials or is unreachable.
    """
    data = await client.post("/auth/login", json={"email": email, "password": password}) or {}
    user = data.get("user")
    token = data.get("token")
    if not user or not token:
        raise ApiError("/auth/login", "Login response missing user or token")
    auth.login(user, token)
    return user
