"""
Persisted client session.

Holds the auth token and the serialised current user under the fixed keys
``token`` and ``user``. The transport reads the token before every request,
so a login or logout takes effect on the very next call.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class SessionStore:
    """
    Key-value session storage, JSON file backed when a path is given.

    Without a path the session lives only as long as the process.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path).expanduser() if path else None
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _flush(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._data), encoding="utf-8")

    def get_token(self) -> str | None:
        return self._data.get(TOKEN_KEY)

    def get_user(self) -> dict[str, Any] | None:
        return self._data.get(USER_KEY)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.get_token())

    def save(self, token: str, user: dict[str, Any] | None) -> None:
        """Persist a fresh login."""
        self._data[TOKEN_KEY] = token
        self._data[USER_KEY] = user
        self._flush()

    def update_user(self, **fields: Any) -> dict[str, Any]:
        """Merge profile changes into the stored user."""
        user = dict(self.get_user() or {})
        user.update(fields)
        self._data[USER_KEY] = user
        self._flush()
        return user

    def clear(self) -> None:
        """Forget the token and user (logout)."""
        self._data.pop(TOKEN_KEY, None)
        self._data.pop(USER_KEY, None)
        self._flush()


__all__ = ["SessionStore", "TOKEN_KEY", "USER_KEY"]
