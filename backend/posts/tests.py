from unittest import mock

from django.urls import reverse
from django.contrib.auth import get_user_model
from django.db import OperationalError
from django.test import TestCase

# We use the APIClient for making requests to DRF views
from rest_framework.test import APIClient
from rest_framework import status

from .models import Post, Like, Comment

# Get the custom user model dynamically
User = get_user_model()

# Larger than any 64-bit database integer
OUT_OF_RANGE_ID = 99999999999999999999

# --- URL Name Definitions ---
POSTS_TEST_URL = reverse("posts-test")
POST_LIST_CREATE_URL = reverse("post-list-create")
LOGIN_URL = reverse("login")


def post_detail_url(post_id):
    return reverse("post-detail", kwargs={"pk": post_id})


def post_like_url(post_id):
    return reverse("post-like", kwargs={"pk": post_id})


def post_unlike_url(post_id):
    return reverse("post-unlike", kwargs={"pk": post_id})


def comment_add_url(post_id):
    return reverse("comment-add", kwargs={"pk": post_id})


def comment_remove_url(post_id, comment_id):
    return reverse("comment-remove", kwargs={"pk": post_id, "comment_id": comment_id})


# --- Helper Functions for Test Setup ---


def create_user(**params):
    """Create and return a new regular user."""
    defaults = {"password": "password123", "name": "Test User"}
    defaults.update(params)
    return User.objects.create_user(**defaults)


def create_post(user, **params):
    """Create and return a new post, setting required fields if missing."""
    defaults = {
        "text": "Default test post text.",
        "name": user.name,
        "avatar": "",
    }
    defaults.update(params)
    return Post.objects.create(user=user, **defaults)


def create_comment(user, post, **params):
    """Create and return a new comment."""
    defaults = {"text": "Default test comment text.", "name": user.name}
    defaults.update(params)
    return Comment.objects.create(user=user, post=post, **defaults)


# ----------------------------------------------------------------------
# A. Public Post API Tests (Read Access)
# ----------------------------------------------------------------------


class PublicPostAPITests(TestCase):
    """Test public access (unauthenticated) to post endpoints."""

    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="public@test.com")
        self.older_post = create_post(self.user, text="The older of the two posts")
        self.newer_post = create_post(self.user, text="The newer of the two posts")

    def test_posts_test_route(self):
        res = self.client.get(POSTS_TEST_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data, {"msg": "Posts Works"})

    def test_list_posts_newest_first(self):
        """Test GET /api/posts/ returns every post ordered by date descending."""
        res = self.client.get(POST_LIST_CREATE_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [post["id"] for post in res.data],
            [self.newer_post.id, self.older_post.id],
        )

    def test_list_posts_is_repeatable(self):
        first = self.client.get(POST_LIST_CREATE_URL)
        second = self.client.get(POST_LIST_CREATE_URL)

        self.assertEqual(first.data, second.data)

    def test_retrieve_post_detail(self):
        res = self.client.get(post_detail_url(self.older_post.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["text"], "The older of the two posts")
        self.assertEqual(res.data["user"], self.user.id)
        self.assertEqual(res.data["likes"], [])
        self.assertEqual(res.data["comments"], [])

    def test_retrieve_missing_post_404(self):
        res = self.client.get(post_detail_url(999999))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data, {"postnotfound": "No post found"})

    def test_retrieve_out_of_range_id_404(self):
        res = self.client.get(post_detail_url(OUT_OF_RANGE_ID))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data, {"postnotfound": "No post found"})

    def test_create_post_requires_authentication(self):
        res = self.client.post(POST_LIST_CREATE_URL, {"text": "Anonymous attempt here"})

        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(Post.objects.count(), 2)

    def test_mutations_require_authentication(self):
        """Like, unlike, comment and delete are all rejected without a token."""
        post_id = self.older_post.id
        responses = [
            self.client.post(post_like_url(post_id)),
            self.client.post(post_unlike_url(post_id)),
            self.client.post(comment_add_url(post_id), {"text": "Anonymous comment"}),
            self.client.delete(post_detail_url(post_id)),
        ]

        for res in responses:
            self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)


# ----------------------------------------------------------------------
# B. Authenticated Post API Tests (Create / Delete)
# ----------------------------------------------------------------------


class PostWriteAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.author = create_user(
            email="alice@test.com", name="Alice", avatar="alice.png"
        )
        self.other_user = create_user(email="bob@test.com", name="Bob")
        self.client.force_authenticate(user=self.author)
        self.payload = {"text": "hello there, world", "name": "Alice", "avatar": "a.png"}

    def test_create_post_success(self):
        res = self.client.post(POST_LIST_CREATE_URL, self.payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        post = Post.objects.get(pk=res.data["id"])
        self.assertEqual(post.user, self.author)
        self.assertEqual(post.text, self.payload["text"])
        self.assertEqual(post.avatar, "a.png")
        self.assertEqual(res.data["likes"], [])
        self.assertEqual(res.data["comments"], [])

    def test_create_post_defaults_name_and_avatar_to_author(self):
        res = self.client.post(POST_LIST_CREATE_URL, {"text": "no display fields given"})

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["name"], "Alice")
        self.assertEqual(res.data["avatar"], "alice.png")

    def test_create_post_missing_text(self):
        res = self.client.post(POST_LIST_CREATE_URL, {"name": "Alice"})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data, {"text": "Text field is required"})
        self.assertFalse(Post.objects.exists())

    def test_create_post_text_too_short(self):
        res = self.client.post(POST_LIST_CREATE_URL, {"text": "short"})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            res.data, {"text": "Post must be between 10 and 300 characters"}
        )

    def test_create_post_whitespace_text(self):
        res = self.client.post(POST_LIST_CREATE_URL, {"text": "   "})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data, {"text": "Text field is required"})
        self.assertFalse(Post.objects.exists())

    def test_create_post_text_too_long(self):
        res = self.client.post(POST_LIST_CREATE_URL, {"text": "x" * 301})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("text", res.data)

    def test_delete_post_by_author(self):
        post = create_post(self.author)
        create_comment(self.other_user, post)
        Like.objects.create(post=post, user=self.other_user)

        res = self.client.delete(post_detail_url(post.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data, {"success": True})
        self.assertFalse(Post.objects.filter(pk=post.id).exists())
        # Owned sub-collections are removed with the post
        self.assertFalse(Comment.objects.exists())
        self.assertFalse(Like.objects.exists())

    def test_delete_post_by_non_author_not_authorized(self):
        post = create_post(self.author)
        self.client.force_authenticate(user=self.other_user)

        res = self.client.delete(post_detail_url(post.id))

        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(res.data, {"notauthorized": "User not authorized"})
        self.assertTrue(Post.objects.filter(pk=post.id).exists())

    def test_delete_missing_post_404(self):
        res = self.client.delete(post_detail_url(999999))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)


# ----------------------------------------------------------------------
# C. Like API Tests
# ----------------------------------------------------------------------


class LikeAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.author = create_user(email="author@test.com")
        self.liker = create_user(email="liker@test.com")
        self.post = create_post(self.author)
        self.client.force_authenticate(user=self.liker)

    def test_like_post(self):
        res = self.client.post(post_like_url(self.post.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["likes"], [{"user": self.liker.id}])

    def test_like_twice_already_liked(self):
        self.client.post(post_like_url(self.post.id))
        res = self.client.post(post_like_url(self.post.id))

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data, {"alreadyliked": "User already liked this post"})
        self.assertEqual(self.post.likes.filter(user=self.liker).count(), 1)

    def test_new_likes_are_prepended(self):
        self.client.force_authenticate(user=self.author)
        self.client.post(post_like_url(self.post.id))
        self.client.force_authenticate(user=self.liker)
        res = self.client.post(post_like_url(self.post.id))

        self.assertEqual(
            res.data["likes"], [{"user": self.liker.id}, {"user": self.author.id}]
        )

    def test_unlike_post(self):
        self.client.post(post_like_url(self.post.id))
        res = self.client.post(post_unlike_url(self.post.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["likes"], [])

    def test_unlike_without_like(self):
        res = self.client.post(post_unlike_url(self.post.id))

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data, {"notliked": "You have not yet liked this post"})

    def test_like_out_of_range_id_404(self):
        res = self.client.post(post_like_url(OUT_OF_RANGE_ID))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data, {"postnotfound": "No post found"})

    def test_like_store_failure_503(self):
        with mock.patch(
            "posts.services.Like.objects.create",
            side_effect=OperationalError("database is locked"),
        ):
            res = self.client.post(post_like_url(self.post.id))

        self.assertEqual(res.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertIn("storeerror", res.data)
        self.assertFalse(Like.objects.exists())

    def test_like_missing_post_404(self):
        res = self.client.post(post_like_url(999999))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data, {"postnotfound": "No post found"})


# ----------------------------------------------------------------------
# D. Comment API Tests
# ----------------------------------------------------------------------


class CommentAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.author = create_user(email="author@test.com", name="Author")
        self.commenter = create_user(email="commenter@test.com", name="Commenter")
        self.post = create_post(self.author)
        self.client.force_authenticate(user=self.commenter)

    def test_add_comment(self):
        res = self.client.post(comment_add_url(self.post.id), {"text": "nice post, really"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data["comments"]), 1)
        comment = res.data["comments"][0]
        self.assertEqual(comment["text"], "nice post, really")
        self.assertEqual(comment["user"], self.commenter.id)
        self.assertEqual(comment["name"], "Commenter")
        self.assertIn("id", comment)
        self.assertIn("date", comment)

    def test_add_comment_invalid_payload(self):
        res = self.client.post(comment_add_url(self.post.id), {"text": ""})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data, {"text": "Text field is required"})
        self.assertFalse(self.post.comments.exists())

    def test_add_comment_missing_post_404(self):
        res = self.client.post(comment_add_url(999999), {"text": "nobody will read this"})

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_comments_are_newest_first(self):
        for text in ("first comment here", "second comment here", "third comment here"):
            res = self.client.post(comment_add_url(self.post.id), {"text": text})

        self.assertEqual(
            [comment["text"] for comment in res.data["comments"]],
            ["third comment here", "second comment here", "first comment here"],
        )

    def test_remove_comment(self):
        comment = create_comment(self.commenter, self.post)

        res = self.client.delete(comment_remove_url(self.post.id, comment.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["comments"], [])

    def test_remove_comment_by_other_user_allowed(self):
        """Any authenticated user may remove a comment under the default policy."""
        comment = create_comment(self.author, self.post)

        res = self.client.delete(comment_remove_url(self.post.id, comment.id))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(Comment.objects.filter(pk=comment.id).exists())

    def test_remove_out_of_range_comment_404(self):
        res = self.client.delete(comment_remove_url(self.post.id, OUT_OF_RANGE_ID))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data, {"commentnotexists": "Comment does not exist"})

    def test_remove_missing_comment_404(self):
        res = self.client.delete(comment_remove_url(self.post.id, 999999))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data, {"commentnotexists": "Comment does not exist"})

    def test_remove_comment_of_another_post_404(self):
        other_post = create_post(self.author, text="A different post entirely")
        comment = create_comment(self.commenter, other_post)

        res = self.client.delete(comment_remove_url(self.post.id, comment.id))

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Comment.objects.filter(pk=comment.id).exists())


# ----------------------------------------------------------------------
# E. Bearer token flow (no force_authenticate)
# ----------------------------------------------------------------------


class TokenAuthFlowTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="token@test.com", password="s3cret-pass")

    def test_create_post_with_bearer_token(self):
        login = self.client.post(
            LOGIN_URL, {"email": "token@test.com", "password": "s3cret-pass"}
        )
        self.assertEqual(login.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['access']}")
        res = self.client.post(POST_LIST_CREATE_URL, {"text": "posted with a real token"})

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["user"], self.user.id)

    def test_invalid_token_rejected(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-real-token")
        res = self.client.post(POST_LIST_CREATE_URL, {"text": "should never be stored"})

        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(Post.objects.exists())
