"""Push notification relay over Firebase Cloud Messaging.

Messages go out through the FCM HTTP v1 API, authorised with an OAuth2 token
minted from a service-account file by ``google-auth``. Topic membership is
managed through the Instance ID API.

Delivery is best effort. When Firebase is not configured every send is
skipped and logged, and transport failures are logged and reported as a
falsy result; nothing here raises into the request that triggered it.
"""

import asyncio
import logging
import os
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

import httpx

from config import (
    FIREBASE_CREDENTIALS_PATH,
    FIREBASE_PROJECT_ID,
    NOTIFICATION_CHANNEL_ID,
    NOTIFICATION_TIMEOUT_SECONDS,
)
from schemas.notification import NotificationMessage

logger = logging.getLogger(__name__)

FCM_API_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
IID_BATCH_ADD_URL = "https://iid.googleapis.com/iid/v1:batchAdd"
IID_BATCH_REMOVE_URL = "https://iid.googleapis.com/iid/v1:batchRemove"
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"

TokenProvider = Callable[[], Awaitable[Optional[str]]]


def build_fcm_message(
    notification: NotificationMessage,
    token: Optional[str] = None,
    topic: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the ``message`` object of an FCM v1 send request.

    Exactly one of ``token`` or ``topic`` addresses the message.
    """
    message: Dict[str, Any] = {
        "notification": {"title": notification.title, "body": notification.body},
        "data": dict(notification.data),
        "android": {
            "priority": "high",
            "notification": {
                "channel_id": NOTIFICATION_CHANNEL_ID,
                "sound": "default",
            },
        },
        "apns": {
            "payload": {"aps": {"sound": "default", "badge": 1}},
        },
    }
    if token is not None:
        message["token"] = token
    else:
        message["topic"] = topic
    return message


class NotificationService:
    """Sends push notifications to devices and topics."""

    def __init__(
        self,
        project_id: Optional[str] = FIREBASE_PROJECT_ID,
        credentials_path: Optional[str] = FIREBASE_CREDENTIALS_PATH,
        http_client: Optional[httpx.AsyncClient] = None,
        token_provider: Optional[TokenProvider] = None,
    ):
        """Initialize the service.

        Args:
            project_id: Firebase project ID.
            credentials_path: Path to the service-account JSON file.
            http_client: Client to send with; a short-lived client per call
                is used when omitted.
            token_provider: Coroutine function returning an access token,
                replacing the service-account flow.
        """
        self.project_id = project_id
        self.credentials_path = credentials_path
        self._http_client = http_client
        self._token_provider = token_provider
        self._credentials = None
        self._init_error: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.project_id) and bool(
            self._token_provider or self.credentials_path
        )

    def _ensure_initialized(self) -> bool:
        """Load service-account credentials once.

        Returns:
            True if a token source is available.
        """
        if self._token_provider or self._credentials is not None:
            return True
        if self._init_error:
            return False

        if not self.is_configured:
            self._init_error = "Firebase credentials not configured"
            logger.warning(
                "Push notifications disabled: FIREBASE_CREDENTIALS_PATH or "
                "FIREBASE_PROJECT_ID not set"
            )
            return False
        if not os.path.exists(self.credentials_path):
            self._init_error = f"Credentials file not found: {self.credentials_path}"
            logger.error(self._init_error)
            return False

        from google.oauth2 import service_account

        try:
            self._credentials = service_account.Credentials.from_service_account_file(
                self.credentials_path, scopes=[FCM_SCOPE]
            )
        except (ValueError, OSError) as e:
            self._init_error = f"Failed to load credentials: {e}"
            logger.error(self._init_error, exc_info=True)
            return False

        logger.info("FCM relay initialized for project %s", self.project_id)
        return True

    async def _get_access_token(self) -> Optional[str]:
        if self._token_provider:
            return await self._token_provider()

        from google.auth.exceptions import GoogleAuthError
        from google.auth.transport.requests import Request

        try:
            # Credential refresh is blocking
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._credentials.refresh, Request())
        except GoogleAuthError as e:
            logger.error("Failed to get FCM access token: %s", e)
            return None
        return self._credentials.token

    async def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Optional[httpx.Response]:
        """POST an authorised JSON request. Returns None if it could not be sent."""
        if not self._ensure_initialized():
            logger.debug("Skipping push request to %s: %s", url, self._init_error)
            return None

        access_token = await self._get_access_token()
        if not access_token:
            return None

        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)

        try:
            if self._http_client is not None:
                return await self._http_client.post(url, headers=headers, json=payload)
            async with httpx.AsyncClient(timeout=NOTIFICATION_TIMEOUT_SECONDS) as client:
                return await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error("Push request to %s failed: %s", url, e)
            return None

    async def _send(self, message: Dict[str, Any], target: str) -> bool:
        url = FCM_API_URL.format(project_id=self.project_id)
        response = await self._post(url, {"message": message})
        if response is None:
            return False
        if response.status_code != 200:
            logger.warning(
                "FCM request for %s failed (%d): %s",
                target, response.status_code, response.text,
            )
            return False
        logger.debug("Push sent to %s: %s", target, response.json().get("name", ""))
        return True

    async def send_to_device(self, token: str, notification: NotificationMessage) -> bool:
        """Send a notification to one device token."""
        return await self._send(build_fcm_message(notification, token=token), token[:20] + "...")

    async def send_to_devices(
        self, tokens: Iterable[str], notification: NotificationMessage
    ) -> int:
        """Send a notification to several device tokens.

        Returns:
            Number of tokens the message was accepted for.
        """
        tokens = [t for t in tokens if t]
        if not tokens:
            return 0
        sent = 0
        for token in tokens:
            if await self.send_to_device(token, notification):
                sent += 1
        logger.info("Push delivered to %d/%d devices: %s", sent, len(tokens), notification.title)
        return sent

    async def send_to_topic(self, topic: str, notification: NotificationMessage) -> bool:
        """Send a notification to every device subscribed to a topic."""
        ok = await self._send(build_fcm_message(notification, topic=topic), f"topic {topic}")
        if ok:
            logger.info("Push sent to topic %s: %s", topic, notification.title)
        return ok

    async def _batch_topic(self, url: str, tokens: List[str], topic: str) -> bool:
        if not tokens:
            return False
        response = await self._post(
            url,
            {"to": f"/topics/{topic}", "registration_tokens": tokens},
            extra_headers={"access_token_auth": "true"},
        )
        if response is None:
            return False
        if response.status_code != 200:
            logger.warning(
                "Topic request for %s failed (%d): %s",
                topic, response.status_code, response.text,
            )
            return False
        return True

    async def subscribe_to_topic(self, tokens: List[str], topic: str) -> bool:
        """Subscribe device tokens to a topic."""
        ok = await self._batch_topic(IID_BATCH_ADD_URL, tokens, topic)
        if ok:
            logger.info("Subscribed %d devices to topic %s", len(tokens), topic)
        return ok

    async def unsubscribe_from_topic(self, tokens: List[str], topic: str) -> bool:
        """Unsubscribe device tokens from a topic."""
        ok = await self._batch_topic(IID_BATCH_REMOVE_URL, tokens, topic)
        if ok:
            logger.info("Unsubscribed %d devices from topic %s", len(tokens), topic)
        return ok
