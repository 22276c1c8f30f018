"""Community management module.

Posts and comments written by privileged roles (guru, superadmin) are
published immediately; everything else waits in the moderation queue until a
privileged user approves it.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pytz
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from config import PRIVILEGED_ROLES, ROLE_COMMUNITY
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from models.comment import CommentModel
from models.like import CommentLikeModel, PostLikeModel
from models.post import PostModel, PostTagModel
from schemas.common import PageParams
from schemas.community import CreatePostRequest
from schemas.user import User

logger = logging.getLogger(__name__)

# Fields an author may change on an existing post
UPDATABLE_POST_FIELDS = ("title", "content", "category", "media_url", "media_type")


def is_privileged(user: Optional[User]) -> bool:
    return user is not None and user.role in PRIVILEGED_ROLES


def can_manage(author_id: str, user: User) -> bool:
    """Authors manage their own content; privileged roles manage anyone's."""
    return is_privileged(user) or author_id == user.user_id


class CommunityManager:
    """Manages posts, comments, likes and moderation using SQLAlchemy."""

    def __init__(self, db: Session):
        self.db = db

    # --- Posts ---

    def _post_query(self):
        return self.db.query(PostModel).options(
            joinedload(PostModel.author),
            selectinload(PostModel.tag_rows),
            selectinload(PostModel.likes),
        )

    def comment_counts(self, post_ids: List[str]) -> Dict[str, int]:
        """Count approved comments for each of the given posts."""
        if not post_ids:
            return {}
        rows = (
            self.db.query(CommentModel.post_id, func.count(CommentModel.comment_id))
            .filter(
                CommentModel.post_id.in_(post_ids),
                CommentModel.is_approved.is_(True),
            )
            .group_by(CommentModel.post_id)
            .all()
        )
        return {post_id: count for post_id, count in rows}

    def list_posts(
        self,
        page: PageParams,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[PostModel], int]:
        """List approved posts, pinned first and then newest first.

        Args:
            page: Page and limit.
            category: Exact category.
            tag: Posts carrying this tag.
            search: Case-insensitive substring of title or content.

        Returns:
            Tuple of the page of posts and the total number of matches.
        """
        query = self.db.query(PostModel).filter(PostModel.is_approved.is_(True))
        if category:
            query = query.filter(PostModel.category == category)
        if tag:
            query = query.filter(
                PostModel.tag_rows.any(PostTagModel.tag == tag.strip())
            )
        if search:
            query = query.filter(
                or_(
                    PostModel.title.icontains(search, autoescape=True),
                    PostModel.content.icontains(search, autoescape=True),
                )
            )
        total = query.count()
        models = (
            query.options(
                joinedload(PostModel.author),
                selectinload(PostModel.tag_rows),
                selectinload(PostModel.likes),
            )
            .order_by(PostModel.is_pinned.desc(), PostModel.created_at.desc())
            .offset(page.offset)
            .limit(page.limit)
            .all()
        )
        return models, total

    def list_user_posts(
        self, author_id: str, page: PageParams
    ) -> Tuple[List[PostModel], int]:
        """List every post by an author, whatever its moderation state."""
        query = self.db.query(PostModel).filter(PostModel.author_id == author_id)
        total = query.count()
        models = (
            query.options(
                joinedload(PostModel.author),
                selectinload(PostModel.tag_rows),
                selectinload(PostModel.likes),
            )
            .order_by(PostModel.created_at.desc())
            .offset(page.offset)
            .limit(page.limit)
            .all()
        )
        return models, total

    def list_pending_posts(self, page: PageParams) -> Tuple[List[PostModel], int]:
        """List posts waiting for moderation, oldest first."""
        query = self.db.query(PostModel).filter(PostModel.is_approved.is_(False))
        total = query.count()
        models = (
            query.options(
                joinedload(PostModel.author),
                selectinload(PostModel.tag_rows),
                selectinload(PostModel.likes),
            )
            .order_by(PostModel.created_at.asc())
            .offset(page.offset)
            .limit(page.limit)
            .all()
        )
        return models, total

    def get_post(self, post_id: str, approved_only: bool = True) -> PostModel:
        """Get a post by ID.

        Raises:
            NotFoundError: If the post does not exist, or is pending and
                ``approved_only`` is set.
        """
        query = self._post_query().filter(PostModel.post_id == post_id)
        if approved_only:
            query = query.filter(PostModel.is_approved.is_(True))
        model = query.first()
        if not model:
            raise NotFoundError("Post", post_id)
        return model

    def view_post(self, post_id: str) -> Tuple[PostModel, List[CommentModel]]:
        """Load an approved post for reading, counting the view.

        Returns:
            The post and its approved comments, newest first.
        """
        model = self.get_post(post_id)
        model.views = (model.views or 0) + 1
        self.db.commit()
        self.db.refresh(model)
        comments = (
            self.db.query(CommentModel)
            .options(joinedload(CommentModel.author), selectinload(CommentModel.likes))
            .filter(
                CommentModel.post_id == post_id,
                CommentModel.is_approved.is_(True),
            )
            .order_by(CommentModel.created_at.desc())
            .all()
        )
        return model, comments

    def _set_tags(self, model: PostModel, tags: List[str]) -> None:
        model.tag_rows = [
            PostTagModel(tag=tag, position=position)
            for position, tag in enumerate(tags)
        ]

    def create_post(self, req: CreatePostRequest, author: User) -> PostModel:
        """Create a post, auto-approved only for privileged authors."""
        now = datetime.now(pytz.utc).isoformat()
        model = PostModel(
            post_id=str(uuid.uuid4()),
            title=req.title,
            content=req.content,
            category=req.category,
            media_url=req.media_url,
            media_type=req.media_type,
            author_id=author.user_id,
            views=0,
            is_approved=is_privileged(author),
            is_pinned=False,
            created_at=now,
            updated_at=now,
        )
        self._set_tags(model, req.tags)
        self.db.add(model)
        self.db.commit()
        logger.info(
            "Created post: %s by %s (approved=%s)",
            model.post_id, author.user_id, model.is_approved,
        )
        return self.get_post(model.post_id, approved_only=False)

    def update_post(
        self, post_id: str, updates: Dict[str, Any], user: User
    ) -> PostModel:
        """Update a post.

        A masyarakat author who edits the content sends the post back to the
        moderation queue.

        Raises:
            NotFoundError: If the post does not exist.
            PermissionDeniedError: If the user may not manage the post.
        """
        model = self.get_post(post_id, approved_only=False)
        if not can_manage(model.author_id, user):
            raise PermissionDeniedError("You can only update your own posts")

        for key in UPDATABLE_POST_FIELDS:
            if updates.get(key) is not None:
                setattr(model, key, updates[key])
        if updates.get("tags") is not None:
            self._set_tags(model, updates["tags"])
        if updates.get("content") and user.role == ROLE_COMMUNITY:
            model.is_approved = False
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        logger.info("Updated post: %s", post_id)
        return self.get_post(post_id, approved_only=False)

    def delete_post(self, post_id: str, user: User) -> None:
        """Delete a post with its comments, tags and likes.

        Raises:
            NotFoundError: If the post does not exist.
            PermissionDeniedError: If the user may not manage the post.
        """
        model = self.get_post(post_id, approved_only=False)
        if not can_manage(model.author_id, user):
            raise PermissionDeniedError("You can only delete your own posts")
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted post: %s", post_id)

    def toggle_post_like(self, post_id: str, user_id: str) -> Tuple[bool, int]:
        """Like an approved post, or remove the like if already present.

        Returns:
            Tuple of (is_liked, like_count) after the toggle.
        """
        self.get_post(post_id)
        existing = (
            self.db.query(PostLikeModel)
            .filter(PostLikeModel.post_id == post_id, PostLikeModel.user_id == user_id)
            .first()
        )
        if existing:
            self.db.delete(existing)
            is_liked = False
        else:
            self.db.add(
                PostLikeModel(
                    post_id=post_id,
                    user_id=user_id,
                    created_at=datetime.now(pytz.utc).isoformat(),
                )
            )
            is_liked = True
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent like landed first; the post is liked either way
            self.db.rollback()
            is_liked = True
        count = (
            self.db.query(PostLikeModel).filter(PostLikeModel.post_id == post_id).count()
        )
        return is_liked, count

    def moderate_post(
        self,
        post_id: str,
        moderator: User,
        is_approved: bool,
        moderation_note: Optional[str] = None,
        is_pinned: Optional[bool] = None,
    ) -> PostModel:
        """Approve or reject a post, optionally pinning it.

        Raises:
            PermissionDeniedError: If the moderator is not privileged.
        """
        if not is_privileged(moderator):
            raise PermissionDeniedError("Only teachers and administrators can moderate")
        model = self.get_post(post_id, approved_only=False)
        model.is_approved = is_approved
        model.moderated_by = moderator.user_id
        if moderation_note is not None:
            model.moderation_note = moderation_note
        if is_pinned is not None:
            model.is_pinned = is_pinned
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        logger.info(
            "Moderated post %s by %s: approved=%s", post_id, moderator.user_id, is_approved
        )
        return self.get_post(post_id, approved_only=False)

    # --- Comments ---

    def get_comment(self, comment_id: str, approved_only: bool = False) -> CommentModel:
        query = (
            self.db.query(CommentModel)
            .options(joinedload(CommentModel.author), selectinload(CommentModel.likes))
            .filter(CommentModel.comment_id == comment_id)
        )
        if approved_only:
            query = query.filter(CommentModel.is_approved.is_(True))
        model = query.first()
        if not model:
            raise NotFoundError("Comment", comment_id)
        return model

    def add_comment(
        self,
        post_id: str,
        author: User,
        text: str,
        parent_comment_id: Optional[str] = None,
    ) -> CommentModel:
        """Add a comment to an approved post.

        Replies are one level deep: the parent must be an approved top-level
        comment on the same post.

        Raises:
            NotFoundError: If the post or parent comment is missing.
            ValidationError: If the parent is itself a reply.
        """
        self.get_post(post_id)
        if parent_comment_id:
            parent = (
                self.db.query(CommentModel)
                .filter(
                    CommentModel.comment_id == parent_comment_id,
                    CommentModel.post_id == post_id,
                    CommentModel.is_approved.is_(True),
                )
                .first()
            )
            if parent is None:
                raise NotFoundError("Parent comment", parent_comment_id)
            if parent.parent_comment_id is not None:
                raise ValidationError("Replies cannot be nested more than one level")

        now = datetime.now(pytz.utc).isoformat()
        model = CommentModel(
            comment_id=str(uuid.uuid4()),
            text=text,
            author_id=author.user_id,
            post_id=post_id,
            parent_comment_id=parent_comment_id,
            is_approved=is_privileged(author),
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        self.db.commit()
        logger.info(
            "Created comment: %s on post %s (approved=%s)",
            model.comment_id, post_id, model.is_approved,
        )
        return self.get_comment(model.comment_id)

    def delete_comment(self, comment_id: str, user: User) -> None:
        """Delete a comment and its replies.

        Raises:
            NotFoundError: If the comment does not exist.
            PermissionDeniedError: If the user may not manage the comment.
        """
        model = self.get_comment(comment_id)
        if not can_manage(model.author_id, user):
            raise PermissionDeniedError("You can only delete your own comments")
        reply_count = len(model.replies)
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted comment: %s (%d replies)", comment_id, reply_count)

    def toggle_comment_like(self, comment_id: str, user_id: str) -> Tuple[bool, int]:
        """Like an approved comment, or remove the like if already present."""
        self.get_comment(comment_id, approved_only=True)
        existing = (
            self.db.query(CommentLikeModel)
            .filter(
                CommentLikeModel.comment_id == comment_id,
                CommentLikeModel.user_id == user_id,
            )
            .first()
        )
        if existing:
            self.db.delete(existing)
            is_liked = False
        else:
            self.db.add(
                CommentLikeModel(
                    comment_id=comment_id,
                    user_id=user_id,
                    created_at=datetime.now(pytz.utc).isoformat(),
                )
            )
            is_liked = True
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            is_liked = True
        count = (
            self.db.query(CommentLikeModel)
            .filter(CommentLikeModel.comment_id == comment_id)
            .count()
        )
        return is_liked, count

    def moderate_comment(
        self,
        comment_id: str,
        moderator: User,
        is_approved: bool,
        moderation_note: Optional[str] = None,
    ) -> CommentModel:
        if not is_privileged(moderator):
            raise PermissionDeniedError("Only teachers and administrators can moderate")
        model = self.get_comment(comment_id)
        model.is_approved = is_approved
        model.moderated_by = moderator.user_id
        if moderation_note is not None:
            model.moderation_note = moderation_note
        model.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        logger.info(
            "Moderated comment %s by %s: approved=%s",
            comment_id, moderator.user_id, is_approved,
        )
        return self.get_comment(comment_id)
