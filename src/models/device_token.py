"""Device token database model.

Stores the Firebase Cloud Messaging registration tokens of a user's devices.
"""

from sqlalchemy import Column, ForeignKey, String

from .base import Base


class DeviceTokenModel(Base):
    """FCM registration token bound to a user."""

    __tablename__ = "device_tokens"

    token = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String, nullable=False, default="android")  # android, ios, web
    created_at = Column(String, nullable=False)
