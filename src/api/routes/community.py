"""Community routes.

This module handles HTTP endpoints for community posts, comments, likes and
moderation.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from api.routes.auth import get_current_user, get_optional_user, require_roles
from config import COMMUNITY_TOPIC, ROLE_SUPERADMIN, ROLE_TEACHER
from core.dependencies import (
    CommunityManagerDep,
    DeviceManagerDep,
    NotificationServiceDep,
    PageParamsDep,
    RealtimeHubDep,
)
from core.error_handlers import to_http_exception
from core.exceptions import EcoterraError
from schemas.common import envelope
from schemas.community import (
    Category,
    CreateCommentRequest,
    CreatePostRequest,
    LikeResult,
    ModerateRequest,
    UpdatePostRequest,
)
from schemas.user import User
from utils import notification_templates
from utils.converters import (
    model_to_comment_info,
    model_to_post_detail,
    model_to_post_info,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/community", tags=["Community"])

require_moderator = require_roles(ROLE_TEACHER, ROLE_SUPERADMIN)


def _post_list(community_manager, models, viewer_id: Optional[str]) -> list:
    counts = community_manager.comment_counts([m.post_id for m in models])
    return [
        model_to_post_info(m, viewer_id, counts.get(m.post_id, 0)).model_dump()
        for m in models
    ]


@router.get("/posts", summary="List posts")
def list_posts(
    page: PageParamsDep,
    category: Optional[Category] = Query(default=None),
    tag: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    current_user: Optional[User] = Depends(get_optional_user),
    community_manager: CommunityManagerDep = None,
) -> dict:
    """List approved posts, pinned first and then newest first."""
    models, total = community_manager.list_posts(
        page, category=category, tag=tag, search=search
    )
    viewer_id = current_user.user_id if current_user else None
    return envelope(
        "Posts retrieved successfully",
        data=_post_list(community_manager, models, viewer_id),
        pagination=page.build(total),
    )


@router.get("/posts/{post_id}", summary="Get post")
def get_post(
    post_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    community_manager: CommunityManagerDep = None,
) -> dict:
    """Get an approved post with its approved comments. Counts as a view."""
    try:
        model, comments = community_manager.view_post(post_id)
    except EcoterraError as e:
        raise to_http_exception(e) from e
    viewer_id = current_user.user_id if current_user else None
    detail = model_to_post_detail(model, comments, viewer_id)
    return envelope("Post retrieved successfully", data=detail.model_dump())


@router.post("/posts", status_code=status.HTTP_201_CREATED, summary="Create post")
def create_post(
    req: CreatePostRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    community_manager: CommunityManagerDep = None,
    notifier: NotificationServiceDep = None,
    hub: RealtimeHubDep = None,
) -> dict:
    """Create a post.

    Posts by teachers and administrators are published at once and
    announced to the community. Other posts wait for moderation.
    """
    model = community_manager.create_post(req, current_user)
    info = model_to_post_info(model, current_user.user_id).model_dump()

    if model.is_approved:
        background_tasks.add_task(
            notifier.send_to_topic,
            COMMUNITY_TOPIC,
            notification_templates.new_post(current_user.full_name, model.title),
        )
        background_tasks.add_task(hub.emit_to_community, "new_post", info)
        message = "Post created successfully"
    else:
        message = "Post created successfully and is waiting for moderation"
    return envelope(message, data=info)


@router.put("/posts/{post_id}", summary="Update post")
def update_post(
    post_id: str,
    req: UpdatePostRequest,
    current_user: User = Depends(get_current_user),
    community_manager: CommunityManagerDep = None,
) -> dict:
    try:
        model = community_manager.update_post(
            post_id, req.model_dump(exclude_unset=True), current_user
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    counts = community_manager.comment_counts([post_id])
    info = model_to_post_info(model, current_user.user_id, counts.get(post_id, 0))
    return envelope("Post updated successfully", data=info.model_dump())


@router.delete("/posts/{post_id}", summary="Delete post")
def delete_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    community_manager: CommunityManagerDep = None,
) -> dict:
    """Delete a post together with its comments and likes."""
    try:
        community_manager.delete_post(post_id, current_user)
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("Post deleted successfully")


@router.post("/posts/{post_id}/like", summary="Toggle post like")
def like_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    community_manager: CommunityManagerDep = None,
) -> dict:
    try:
        is_liked, count = community_manager.toggle_post_like(post_id, current_user.user_id)
    except EcoterraError as e:
        raise to_http_exception(e) from e
    message = "Post liked" if is_liked else "Post unliked"
    return envelope(message, data=LikeResult(is_liked=is_liked, like_count=count).model_dump())


@router.post(
    "/posts/{post_id}/comments",
    status_code=status.HTTP_201_CREATED,
    summary="Add comment",
)
def add_comment(
    post_id: str,
    req: CreateCommentRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    community_manager: CommunityManagerDep = None,
    device_manager: DeviceManagerDep = None,
    notifier: NotificationServiceDep = None,
    hub: RealtimeHubDep = None,
) -> dict:
    """Comment on an approved post, optionally replying to a comment.

    The post author is notified unless they wrote the comment.
    """
    try:
        model = community_manager.add_comment(
            post_id, current_user, req.text, parent_comment_id=req.parent_comment
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    info = model_to_comment_info(model).model_dump()

    post = model.post
    if post.author_id != current_user.user_id:
        tokens = device_manager.tokens_for_user(post.author_id)
        if tokens:
            background_tasks.add_task(
                notifier.send_to_devices,
                tokens,
                notification_templates.new_comment(current_user.full_name, post.title),
            )
        background_tasks.add_task(hub.emit_to_user, post.author_id, "new_comment", info)

    return envelope("Comment added successfully", data=info)


@router.post("/comments/{comment_id}/like", summary="Toggle comment like")
def like_comment(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    community_manager: CommunityManagerDep = None,
) -> dict:
    try:
        is_liked, count = community_manager.toggle_comment_like(
            comment_id, current_user.user_id
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    message = "Comment liked" if is_liked else "Comment unliked"
    return envelope(message, data=LikeResult(is_liked=is_liked, like_count=count).model_dump())


@router.delete("/comments/{comment_id}", summary="Delete comment")
def delete_comment(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    community_manager: CommunityManagerDep = None,
) -> dict:
    try:
        community_manager.delete_comment(comment_id, current_user)
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope("Comment deleted successfully")


@router.get("/my-posts", summary="List my posts")
def list_my_posts(
    page: PageParamsDep,
    current_user: User = Depends(get_current_user),
    community_manager: CommunityManagerDep = None,
) -> dict:
    """List the caller's posts in every moderation state."""
    models, total = community_manager.list_user_posts(current_user.user_id, page)
    return envelope(
        "Posts retrieved successfully",
        data=_post_list(community_manager, models, current_user.user_id),
        pagination=page.build(total),
    )


@router.get("/moderation/pending", summary="List posts awaiting moderation")
def list_pending_posts(
    page: PageParamsDep,
    current_user: User = Depends(require_moderator),
    community_manager: CommunityManagerDep = None,
) -> dict:
    models, total = community_manager.list_pending_posts(page)
    return envelope(
        "Pending posts retrieved successfully",
        data=_post_list(community_manager, models, current_user.user_id),
        pagination=page.build(total),
    )


@router.put("/posts/{post_id}/moderate", summary="Moderate post")
def moderate_post(
    post_id: str,
    req: ModerateRequest,
    current_user: User = Depends(require_moderator),
    community_manager: CommunityManagerDep = None,
) -> dict:
    """Approve or reject a post and optionally pin it."""
    try:
        model = community_manager.moderate_post(
            post_id,
            current_user,
            is_approved=req.is_approved,
            moderation_note=req.moderation_note,
            is_pinned=req.is_pinned,
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    info = model_to_post_info(model, current_user.user_id)
    return envelope("Post moderated successfully", data=info.model_dump())


@router.put("/comments/{comment_id}/moderate", summary="Moderate comment")
def moderate_comment(
    comment_id: str,
    req: ModerateRequest,
    current_user: User = Depends(require_moderator),
    community_manager: CommunityManagerDep = None,
) -> dict:
    try:
        model = community_manager.moderate_comment(
            comment_id,
            current_user,
            is_approved=req.is_approved,
            moderation_note=req.moderation_note,
        )
    except EcoterraError as e:
        raise to_http_exception(e) from e
    return envelope(
        "Comment moderated successfully", data=model_to_comment_info(model).model_dump()
    )
