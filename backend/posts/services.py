"""
Post aggregate service.

Every state change of a Post (create, delete, like, unlike, add/remove
comment) goes through this module. Each mutation runs in a single
transaction with the target Post row locked, and reports failure by raising
one of the PostError subclasses from .exceptions.
"""

import logging
from contextlib import contextmanager

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from users.models import Profile
from .exceptions import (
    AlreadyLiked,
    CommentNotFound,
    NotAuthorized,
    NotFound,
    NotLiked,
    StoreError,
    ValidationFailed,
)
from .models import Post, Like, Comment
from .permissions import check_capability
from .serializers import PostInputSerializer, field_errors

logger = logging.getLogger(__name__)


@contextmanager
def store_errors():
    """Turn database failures into StoreError, chaining the database error."""
    try:
        yield
    except DatabaseError as exc:
        logger.exception("Post store failure")
        raise StoreError() from exc


def _validated(payload):
    serializer = PostInputSerializer(data=payload)
    if not serializer.is_valid():
        raise ValidationFailed(field_errors(serializer.errors))
    return serializer.validated_data


def _display_fields(principal, data):
    # Missing name/avatar fall back to the author's own
    return {
        "text": data["text"],
        "name": data.get("name") or principal.name,
        "avatar": data.get("avatar") or principal.avatar,
    }


def _posts():
    return Post.objects.prefetch_related("likes", "comments")


# Ids the database cannot hold (e.g. beyond 64 bits) simply match nothing
MISSING = (Post.DoesNotExist, ValueError, OverflowError)


def _lock_post(post_id):
    """Fetch a post for update inside the current transaction."""
    try:
        return Post.objects.select_for_update().get(pk=post_id)
    except MISSING:
        raise NotFound("post")


# --- Reads ---


def list_posts():
    """All posts, newest first."""
    with store_errors():
        return list(_posts().order_by("-date", "-id"))


def get_post(post_id):
    with store_errors():
        try:
            return _posts().get(pk=post_id)
        except MISSING:
            raise NotFound("post")


# --- Mutations ---


def create_post(principal, payload):
    data = _validated(payload)

    with store_errors():
        post = Post.objects.create(user=principal, **_display_fields(principal, data))

    logger.info("Post %s created by user %s", post.pk, principal.pk)
    return post


def delete_post(principal, post_id):
    with store_errors(), transaction.atomic():
        if getattr(settings, "POSTS_REQUIRE_PROFILE_FOR_DELETE", False):
            if not Profile.objects.filter(user=principal).exists():
                raise NotFound("profile")

        post = _lock_post(post_id)

        try:
            check_capability("delete_post", principal, post)
        except NotAuthorized:
            logger.warning(
                "User %s tried to delete post %s owned by user %s",
                principal.pk,
                post.pk,
                post.user_id,
            )
            raise

        # Likes and comments go with it (on_delete=CASCADE)
        post.delete()

    logger.info("Post %s deleted by user %s", post_id, principal.pk)
    return {"success": True}


def like_post(principal, post_id):
    with store_errors(), transaction.atomic():
        post = _lock_post(post_id)

        if post.likes.filter(user=principal).exists():
            raise AlreadyLiked()

        try:
            with transaction.atomic():
                Like.objects.create(post=post, user=principal)
        except IntegrityError:
            # A concurrent like from the same user won the race
            raise AlreadyLiked()

        post = _posts().get(pk=post.pk)

    logger.info("Post %s liked by user %s", post_id, principal.pk)
    return post


def unlike_post(principal, post_id):
    with store_errors(), transaction.atomic():
        post = _lock_post(post_id)

        like = post.likes.filter(user=principal).first()
        if like is None:
            raise NotLiked()

        like.delete()
        post = _posts().get(pk=post.pk)

    logger.info("Post %s unliked by user %s", post_id, principal.pk)
    return post


def add_comment(principal, post_id, payload):
    data = _validated(payload)

    with store_errors(), transaction.atomic():
        post = _lock_post(post_id)
        comment = Comment.objects.create(
            post=post, user=principal, **_display_fields(principal, data)
        )
        post = _posts().get(pk=post.pk)

    logger.info(
        "Comment %s added to post %s by user %s", comment.pk, post_id, principal.pk
    )
    return post


def remove_comment(principal, post_id, comment_id):
    with store_errors(), transaction.atomic():
        post = _lock_post(post_id)

        try:
            comment = post.comments.filter(pk=comment_id).first()
        except (ValueError, OverflowError):
            comment = None
        if comment is None:
            raise CommentNotFound()

        check_capability("remove_comment", principal, comment)
        comment.delete()
        post = _posts().get(pk=post.pk)

    logger.info(
        "Comment %s removed from post %s by user %s",
        comment_id,
        post_id,
        principal.pk,
    )
    return post
