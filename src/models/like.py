"""Like database models.

A like is a (user, post) or (user, comment) pair; toggling inserts or deletes
the row.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from .base import Base


class PostLikeModel(Base):
    __tablename__ = "post_likes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(
        String, ForeignKey("posts.post_id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    created_at = Column(String, nullable=False)


class CommentLikeModel(Base):
    __tablename__ = "comment_likes"
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_likes_comment_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    comment_id = Column(
        String, ForeignKey("comments.comment_id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    created_at = Column(String, nullable=False)
