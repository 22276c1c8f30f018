from typing import Dict, Literal

from pydantic import BaseModel, Field


class NotificationMessage(BaseModel):
    """A rendered push notification, ready for the relay."""

    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)


class RegisterDeviceRequest(BaseModel):
    token: str = Field(min_length=1)
    platform: Literal["android", "ios", "web"] = "android"


class UnregisterDeviceRequest(BaseModel):
    token: str = Field(min_length=1)
