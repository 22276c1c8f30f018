"""Locally persisted authentication state for the Python client.

The signed-in token and user are kept in a small JSON file so a later
process can pick the session up again.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from config import CLIENT_AUTH_FILE

logger = logging.getLogger(__name__)


class AuthStore:
    """Token and user of the signed-in account, mirrored to a JSON file."""

    def __init__(self, path: Path = CLIENT_AUTH_FILE):
        self.path = Path(path)
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    def load(self) -> None:
        """Read the saved session, if any.

        An unreadable file is treated as signed out.
        """
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable auth file %s: %s", self.path, e)
            return
        self.token = data.get("token")
        self.user = data.get("user")

    def save(self, token: str, user: Optional[Dict[str, Any]] = None) -> None:
        self.token = token
        self.user = user
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"token": token, "user": user}, f, ensure_ascii=False, indent=2)

    def set_user(self, user: Dict[str, Any]) -> None:
        if self.token is None:
            self.user = user
            return
        self.save(self.token, user)

    def clear(self) -> None:
        self.token = None
        self.user = None
        if self.path.exists():
            self.path.unlink()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)
