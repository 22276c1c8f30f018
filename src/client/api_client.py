"""HTTP client for the Ecoterra API.

``ApiClient`` wraps the envelope protocol: successful calls return the
``data`` member, failures raise ``ApiError`` carrying the server's message.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from client.auth_store import AuthStore
from config import API_BASE_URL, CLIENT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."


class ApiError(Exception):
    """Raised when a call fails or the server answers ``success: false``."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ApiClient:
    """Synchronous client for the REST API."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        store: Optional[AuthStore] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = CLIENT_TIMEOUT_SECONDS,
    ):
        """Initialize the client.

        Args:
            base_url: Server root, without the ``/api`` prefix.
            store: Where the session is persisted. Defaults to the
                configured auth file.
            http_client: Client to send with, e.g. a test client; it must
                already point at the server.
            timeout: Request timeout in seconds.
        """
        self.store = store or AuthStore()
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded envelope.

        Raises:
            ApiError: On transport errors, non-JSON answers, or envelopes
                with ``success`` false.
        """
        headers = {"Accept": "application/json"}
        if self.store.token:
            headers["Authorization"] = f"Bearer {self.store.token}"
        try:
            response = self._http.request(
                method, f"/api{path}", json=json, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ApiError(NETWORK_ERROR_MESSAGE) from e

        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(
                f"Unexpected response ({response.status_code})", response.status_code
            ) from e

        if response.is_error or not body.get("success"):
            logger.debug("%s %s -> %d: %s", method, path, response.status_code, body)
            raise ApiError(body.get("message") or "Request failed", response.status_code)
        return body

    def _data(self, method: str, path: str, **kwargs) -> Any:
        return self._request(method, path, **kwargs).get("data")

    # --- Session ---

    def initialize_auth(self) -> bool:
        """Restore a saved session. Call once on startup."""
        self.store.load()
        return self.store.is_authenticated

    def is_authenticated(self) -> bool:
        return self.store.is_authenticated

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Sign in and persist the session.

        Returns:
            Dict with ``user`` and ``token``.
        """
        data = self._data("POST", "/auth/login", json={"email": email, "password": password})
        self.store.save(data["token"], data["user"])
        return data

    def register(
        self, full_name: str, email: str, password: str, role: str
    ) -> Dict[str, Any]:
        """Create an account, sign in as it and persist the session."""
        data = self._data(
            "POST",
            "/auth/register",
            json={
                "full_name": full_name,
                "email": email,
                "password": password,
                "role": role,
            },
        )
        self.store.save(data["token"], data["user"])
        return data

    def logout(self) -> None:
        """Sign out. The local session is cleared even if the server call fails."""
        try:
            if self.store.token:
                self._request("POST", "/auth/logout")
        except ApiError as e:
            logger.warning("Logout request failed: %s", e)
        finally:
            self.store.clear()

    def get_current_user(self) -> Dict[str, Any]:
        user = self._data("GET", "/auth/me")
        self.store.set_user(user)
        return user

    def change_password(self, current_password: str, new_password: str) -> None:
        self._request(
            "PUT",
            "/auth/change-password",
            json={"current_password": current_password, "new_password": new_password},
        )

    def health_check(self) -> bool:
        try:
            self._request("GET", "/health")
        except ApiError:
            return False
        return True

    # --- Quizzes ---

    def list_quizzes(self, page: int = 1, limit: int = 10, **filters) -> Dict[str, Any]:
        """List quizzes. Returns the envelope so the pagination is kept."""
        params = {"page": page, "limit": limit}
        params.update({k: v for k, v in filters.items() if v is not None})
        return self._request("GET", "/quizzes", params=params)

    def get_quiz(self, quiz_id: str) -> Dict[str, Any]:
        return self._data("GET", f"/quizzes/{quiz_id}")

    def submit_quiz(
        self, quiz_id: str, answers: List[Dict[str, int]], time_spent: int = 0
    ) -> Dict[str, Any]:
        return self._data(
            "POST",
            f"/quizzes/{quiz_id}/submit",
            json={"answers": answers, "time_spent": time_spent},
        )

    # --- Community ---

    def list_posts(self, page: int = 1, limit: int = 10, **filters) -> Dict[str, Any]:
        params = {"page": page, "limit": limit}
        params.update({k: v for k, v in filters.items() if v is not None})
        return self._request("GET", "/community/posts", params=params)

    def create_post(
        self,
        title: str,
        content: str,
        category: str,
        tags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        return self._data(
            "POST",
            "/community/posts",
            json={
                "title": title,
                "content": content,
                "category": category,
                "tags": tags or [],
            },
        )
