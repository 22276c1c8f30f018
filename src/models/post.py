from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base


class PostModel(Base):
    __tablename__ = "posts"

    post_id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    media_url = Column(String, nullable=True)
    media_type = Column(String, nullable=True)  # image, video, audio, document
    category = Column(String, nullable=False, index=True)
    author_id = Column(String, ForeignKey("users.user_id"), nullable=False, index=True)
    views = Column(Integer, nullable=False, default=0)
    is_approved = Column(Boolean, nullable=False, default=True, index=True)
    is_pinned = Column(Boolean, nullable=False, default=False, index=True)
    moderated_by = Column(String, ForeignKey("users.user_id"), nullable=True)
    moderation_note = Column(String, nullable=True)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)

    author = relationship("UserModel", foreign_keys=[author_id])
    tag_rows = relationship(
        "PostTagModel",
        order_by="PostTagModel.position",
        cascade="all, delete-orphan",
    )
    likes = relationship(
        "PostLikeModel",
        cascade="all, delete",
    )
    comments = relationship(
        "CommentModel",
        back_populates="post",
        cascade="all, delete",
    )

    @property
    def tags(self):
        return [row.tag for row in self.tag_rows]


class PostTagModel(Base):
    """One tag of a post; kept in its own table so posts can be filtered by tag."""

    __tablename__ = "post_tags"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(
        String, ForeignKey("posts.post_id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag = Column(String, nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
