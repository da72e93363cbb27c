from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError, OperationalError
from django.test import TestCase, override_settings

from users.models import Profile
from . import services
from .exceptions import (
    AlreadyLiked,
    CommentNotFound,
    NotAuthorized,
    NotFound,
    NotLiked,
    StoreError,
    ValidationFailed,
)
from .models import Post, Comment
from .permissions import check_capability, get_capability, is_author

User = get_user_model()


def create_user(email, **params):
    return User.objects.create_user(email=email, password="password123", **params)


def liked_by(post):
    return [like.user_id for like in post.likes.all()]


class CreateAndReadTests(TestCase):
    def setUp(self):
        self.alice = create_user("alice@test.com", name="Alice")

    def test_create_returns_empty_aggregate(self):
        post = services.create_post(self.alice, {"text": "a brand new post"})

        self.assertEqual(post.user, self.alice)
        self.assertEqual(post.name, "Alice")
        self.assertEqual(list(post.likes.all()), [])
        self.assertEqual(list(post.comments.all()), [])
        self.assertIsNotNone(post.date)

    def test_create_invalid_payload(self):
        with self.assertRaises(ValidationFailed) as ctx:
            services.create_post(self.alice, {"text": "tiny"})

        self.assertEqual(
            ctx.exception.field_errors,
            {"text": "Post must be between 10 and 300 characters"},
        )
        self.assertFalse(Post.objects.exists())

    def test_get_missing_post(self):
        with self.assertRaises(NotFound) as ctx:
            services.get_post(424242)

        self.assertEqual(ctx.exception.entity, "post")

    def test_list_is_idempotent(self):
        for i in range(3):
            services.create_post(self.alice, {"text": f"post number {i} here"})

        first = [post.pk for post in services.list_posts()]
        second = [post.pk for post in services.list_posts()]

        self.assertEqual(first, second)
        self.assertEqual(len(first), 3)
        # Newest first
        self.assertEqual(first, sorted(first, reverse=True))


class LikeTests(TestCase):
    def setUp(self):
        self.author = create_user("author@test.com")
        self.p1 = create_user("p1@test.com")
        self.p2 = create_user("p2@test.com")
        self.post = services.create_post(self.author, {"text": "something to like"})

    def test_like_twice_keeps_single_entry(self):
        services.like_post(self.p1, self.post.pk)

        with self.assertRaises(AlreadyLiked):
            services.like_post(self.p1, self.post.pk)

        self.assertEqual(liked_by(self.post), [self.p1.pk])

    def test_like_then_unlike_restores_previous_likes(self):
        services.like_post(self.author, self.post.pk)
        services.like_post(self.p2, self.post.pk)
        before = liked_by(self.post)

        services.like_post(self.p1, self.post.pk)
        after = services.unlike_post(self.p1, self.post.pk)

        self.assertEqual(liked_by(after), before)
        self.assertEqual(before, [self.p2.pk, self.author.pk])

    def test_mutation_result_is_read_with_the_write(self):
        post = services.like_post(self.p1, self.post.pk)

        # Sub-collections were loaded before the transaction closed
        with self.assertNumQueries(0):
            self.assertEqual(liked_by(post), [self.p1.pk])
            self.assertEqual(list(post.comments.all()), [])

    def test_unlike_only_matches_own_like(self):
        services.like_post(self.p2, self.post.pk)

        with self.assertRaises(NotLiked):
            services.unlike_post(self.p1, self.post.pk)

        self.assertEqual(liked_by(self.post), [self.p2.pk])

    def test_like_missing_post(self):
        with self.assertRaises(NotFound):
            services.like_post(self.p1, 424242)

    def test_concurrent_duplicate_like_reported_as_already_liked(self):
        # The unique constraint catches a like that raced past the membership check
        with mock.patch(
            "posts.services.Like.objects.create",
            side_effect=IntegrityError("UNIQUE constraint failed"),
        ):
            with self.assertRaises(AlreadyLiked):
                services.like_post(self.p1, self.post.pk)

    def test_store_failure_leaves_post_untouched(self):
        with mock.patch(
            "posts.services.Like.objects.create",
            side_effect=OperationalError("database is locked"),
        ):
            with self.assertRaises(StoreError) as ctx:
                services.like_post(self.p1, self.post.pk)

        self.assertIsInstance(ctx.exception.__cause__, OperationalError)
        self.assertEqual(liked_by(self.post), [])


class CommentTests(TestCase):
    def setUp(self):
        self.author = create_user("author@test.com")
        self.commenter = create_user("commenter@test.com", name="Commenter")
        self.post = services.create_post(self.author, {"text": "comment on this"})

    def test_comments_are_prepended(self):
        texts = [f"comment number {i}" for i in range(1, 5)]
        for text in texts:
            post = services.add_comment(self.commenter, self.post.pk, {"text": text})

        self.assertEqual(
            [comment.text for comment in post.comments.all()], list(reversed(texts))
        )

    def test_comment_gets_its_own_id(self):
        post = services.add_comment(self.commenter, self.post.pk, {"text": "hello comment"})
        comment = post.comments.get()

        self.assertEqual(comment.user, self.commenter)
        self.assertEqual(comment.name, "Commenter")
        self.assertEqual(comment.post_id, self.post.pk)

    def test_add_comment_validates_before_lookup(self):
        with self.assertRaises(ValidationFailed):
            services.add_comment(self.commenter, 424242, {"text": ""})

    def test_remove_comment(self):
        post = services.add_comment(self.commenter, self.post.pk, {"text": "to be removed"})
        services.add_comment(self.author, self.post.pk, {"text": "this one stays"})
        removed_id = post.comments.get(text="to be removed").pk

        post = services.remove_comment(self.author, self.post.pk, removed_id)

        self.assertEqual([c.text for c in post.comments.all()], ["this one stays"])
        self.assertFalse(Comment.objects.filter(pk=removed_id).exists())

    def test_remove_unknown_comment(self):
        with self.assertRaises(CommentNotFound):
            services.remove_comment(self.commenter, self.post.pk, 424242)

    @override_settings(
        POST_CAPABILITIES={"remove_comment": "posts.permissions.is_author"}
    )
    def test_remove_comment_policy_can_require_authorship(self):
        services.add_comment(self.commenter, self.post.pk, {"text": "mine, not yours"})
        comment = Comment.objects.get()

        with self.assertRaises(NotAuthorized):
            services.remove_comment(self.author, self.post.pk, comment.pk)

        self.assertTrue(Comment.objects.filter(pk=comment.pk).exists())


class DeleteTests(TestCase):
    def setUp(self):
        self.author = create_user("author@test.com")
        self.other = create_user("other@test.com")
        self.post = services.create_post(self.author, {"text": "delete me later"})

    def test_non_author_cannot_delete(self):
        services.like_post(self.other, self.post.pk)

        with self.assertRaises(NotAuthorized):
            services.delete_post(self.other, self.post.pk)

        post = services.get_post(self.post.pk)
        self.assertEqual(post.text, "delete me later")
        self.assertEqual(liked_by(post), [self.other.pk])

    def test_author_deletes_without_profile(self):
        result = services.delete_post(self.author, self.post.pk)

        self.assertEqual(result, {"success": True})
        self.assertFalse(Post.objects.filter(pk=self.post.pk).exists())

    def test_delete_missing_post(self):
        with self.assertRaises(NotFound):
            services.delete_post(self.author, 424242)

    @override_settings(POSTS_REQUIRE_PROFILE_FOR_DELETE=True)
    def test_profile_required_when_enabled(self):
        with self.assertRaises(NotFound) as ctx:
            services.delete_post(self.author, self.post.pk)

        self.assertEqual(ctx.exception.entity, "profile")
        self.assertEqual(ctx.exception.as_dict(), {"profilenotfound": "No profile found"})

        Profile.objects.create(user=self.author, handle="author")
        services.delete_post(self.author, self.post.pk)
        self.assertFalse(Post.objects.filter(pk=self.post.pk).exists())

    @override_settings(
        POST_CAPABILITIES={"delete_post": "posts.permissions.is_author_or_admin"}
    )
    def test_admin_can_delete_with_admin_policy(self):
        admin = User.objects.create_superuser(email="admin@test.com", password="pw")

        services.delete_post(admin, self.post.pk)

        self.assertFalse(Post.objects.filter(pk=self.post.pk).exists())


class CapabilityTests(TestCase):
    def setUp(self):
        self.author = create_user("author@test.com")
        self.other = create_user("other@test.com")
        self.post = Post.objects.create(user=self.author, text="capability target")

    def test_default_capabilities(self):
        self.assertIs(get_capability("delete_post"), is_author)
        check_capability("delete_post", self.author, self.post)
        check_capability("remove_comment", self.other, self.post)

        with self.assertRaises(NotAuthorized):
            check_capability("delete_post", self.other, self.post)


class ScenarioTests(TestCase):
    """Create, like, comment and delete a single post end to end."""

    def test_full_lifecycle(self):
        u1 = create_user("u1@test.com", name="Alice")
        u2 = create_user("u2@test.com")
        u3 = create_user("u3@test.com")

        created = services.create_post(
            u1, {"text": "hello world!", "name": "Alice", "avatar": "a.png"}
        )
        post = services.get_post(created.pk)
        self.assertEqual(
            (post.text, post.name, post.avatar, post.user), ("hello world!", "Alice", "a.png", u1)
        )
        self.assertEqual(list(post.likes.all()), [])
        self.assertEqual(list(post.comments.all()), [])

        post = services.like_post(u2, post.pk)
        self.assertEqual(liked_by(post), [u2.pk])

        with self.assertRaises(AlreadyLiked):
            services.like_post(u2, post.pk)

        post = services.add_comment(u3, post.pk, {"text": "nice post!"})
        self.assertEqual(
            [(c.text, c.user_id) for c in post.comments.all()], [("nice post!", u3.pk)]
        )

        with self.assertRaises(NotAuthorized):
            services.delete_post(u2, post.pk)

        services.delete_post(u1, post.pk)
        with self.assertRaises(NotFound):
            services.get_post(post.pk)
