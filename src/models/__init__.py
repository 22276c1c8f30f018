from .base import Base
from .user import UserModel
from .school import SchoolModel
from .quiz import QuizModel
from .attempt import AttemptModel
from .post import PostModel, PostTagModel
from .comment import CommentModel
from .like import PostLikeModel, CommentLikeModel
from .schedule import ScheduleModel
from .device_token import DeviceTokenModel

__all__ = [
    "Base",
    "UserModel",
    "SchoolModel",
    "QuizModel",
    "AttemptModel",
    "PostModel",
    "PostTagModel",
    "CommentModel",
    "PostLikeModel",
    "CommentLikeModel",
    "ScheduleModel",
    "DeviceTokenModel",
]
