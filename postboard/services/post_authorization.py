import logging

from postboard.exceptions import PostPermissionDenied
from postboard.models import Post, User

logger = logging.getLogger(__name__)


def can_user_modify_post(post: Post, user: User | None) -> bool:
    # Identity, not equality: the actor and post.owner come from the same
    # session identity map when they are the same row.
    if user is None:
        return False
    return post.owner is user


def ensure_user_can_modify_post(post: Post, user: User | None) -> None:
    """Raise PostPermissionDenied unless *user* owns *post*."""
    if not can_user_modify_post(post, user):
        logger.warning(
            "Denied modification of post %s by user %s",
            post.id,
            user.id if user is not None else "anonymous",
        )
        raise PostPermissionDenied("You do not have permission to modify this post")
