"""Device token registry for push notifications."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

import pytz
from sqlalchemy.orm import Session

from models.device_token import DeviceTokenModel

logger = logging.getLogger(__name__)


class DeviceManager:
    """Stores the FCM registration tokens of each user's devices."""

    def __init__(self, db: Session):
        self.db = db

    def register(
        self, user_id: str, token: str, platform: str = "android"
    ) -> Tuple[DeviceTokenModel, Optional[str]]:
        """Bind a token to a user.

        A token already bound to another account (shared device, re-login)
        moves to the new user.

        Returns:
            Tuple of the token row and the ID of the account it was taken
            from, or None if it was new or already this user's.
        """
        model = (
            self.db.query(DeviceTokenModel)
            .filter(DeviceTokenModel.token == token)
            .first()
        )
        previous_owner = None
        if model is None:
            model = DeviceTokenModel(token=token)
            self.db.add(model)
        elif model.user_id != user_id:
            previous_owner = model.user_id
        model.user_id = user_id
        model.platform = platform
        model.created_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Registered %s device for user %s", platform, user_id)
        if previous_owner:
            logger.info("Moved device token from user %s to %s", previous_owner, user_id)
        return model, previous_owner

    def unregister(self, user_id: str, token: str) -> bool:
        """Remove one of the user's tokens. Returns False if it was not theirs."""
        deleted = (
            self.db.query(DeviceTokenModel)
            .filter(DeviceTokenModel.token == token, DeviceTokenModel.user_id == user_id)
            .delete()
        )
        self.db.commit()
        return deleted > 0

    def tokens_for_user(self, user_id: str) -> List[str]:
        rows = (
            self.db.query(DeviceTokenModel.token)
            .filter(DeviceTokenModel.user_id == user_id)
            .all()
        )
        return [row[0] for row in rows]
