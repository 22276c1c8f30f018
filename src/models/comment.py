from sqlalchemy import Boolean, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from .base import Base


class CommentModel(Base):
    __tablename__ = "comments"

    comment_id = Column(String, primary_key=True, index=True)
    text = Column(String, nullable=False)
    author_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    post_id = Column(
        String, ForeignKey("posts.post_id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_comment_id = Column(
        String, ForeignKey("comments.comment_id", ondelete="CASCADE"), nullable=True, index=True
    )
    is_approved = Column(Boolean, nullable=False, default=True, index=True)
    moderated_by = Column(String, ForeignKey("users.user_id"), nullable=True)
    moderation_note = Column(String, nullable=True)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)

    author = relationship("UserModel", foreign_keys=[author_id])
    post = relationship("PostModel", back_populates="comments")
    likes = relationship(
        "CommentLikeModel",
        cascade="all, delete",
    )
    replies = relationship(
        "CommentModel",
        cascade="all, delete",
    )
