from django.db import models
from django.conf import (
    settings,
)  # Reference the custom User model through settings.AUTH_USER_MODEL
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Post(models.Model):
    # The authoring principal; used for ownership checks and never changed
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="posts",
    )

    # Display fields, fixed at creation (posts have no edit operation)
    text = models.TextField()
    name = models.CharField(max_length=100, blank=True)
    avatar = models.CharField(max_length=255, blank=True)

    date = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        # Newest first; id breaks ties between posts created in the same instant
        ordering = ["-date", "-id"]
        verbose_name = "Post"
        verbose_name_plural = "Posts"

    def __str__(self):
        text_snippet = self.text[:50].replace("\n", " ")
        return f"Post {self.pk}: '{text_snippet}' by user {self.user_id}"


class Like(models.Model):
    # Likes have no life outside their post: deleting the post deletes them.
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="likes")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="likes")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            # One like per user per post, even under concurrent requests
            models.UniqueConstraint(
                fields=["post", "user"], name="unique_like_per_user_per_post"
            )
        ]

    def __str__(self):
        return f"Like by user {self.user_id} on post {self.post_id}"


class Comment(models.Model):
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="comments")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="comments")

    text = models.TextField()
    name = models.CharField(max_length=100, blank=True)
    avatar = models.CharField(max_length=255, blank=True)

    date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-date", "-id"]
        verbose_name = "Comment"
        verbose_name_plural = "Comments"

    def __str__(self):
        body_snippet = self.text[:50].replace("\n", " ")
        return f"Comment: '{body_snippet}...' by user {self.user_id} on post {self.post_id}"
