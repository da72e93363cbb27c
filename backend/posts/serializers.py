from rest_framework import serializers
from .models import Post, Like, Comment


TEXT_ERROR_MESSAGES = {
    "required": "Text field is required",
    "blank": "Text field is required",
    "null": "Text field is required",
    "min_length": "Post must be between 10 and 300 characters",
    "max_length": "Post must be between 10 and 300 characters",
}


# ------------------------------------
# --- Input (validation only) ---
# ------------------------------------


class PostInputSerializer(serializers.Serializer):
    """
    Validates the payload of a new post or comment.

    name and avatar are optional; the service falls back to the author's own
    values when they are missing.
    """

    text = serializers.CharField(
        min_length=10, max_length=300, error_messages=TEXT_ERROR_MESSAGES
    )
    name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    avatar = serializers.CharField(max_length=255, required=False, allow_blank=True)


def field_errors(errors):
    """Flatten DRF's {field: [messages]} into {field: first message}."""
    flat = {}
    for field, messages in errors.items():
        if isinstance(messages, (list, tuple)) and messages:
            flat[field] = str(messages[0])
        else:
            flat[field] = str(messages)
    return flat


# ------------------------------------
# --- Output ---
# ------------------------------------


class LikeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Like
        fields = ("user",)
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Comment
        fields = ("id", "user", "text", "name", "avatar", "date")
        read_only_fields = fields


class PostSerializer(serializers.ModelSerializer):
    # Sub-collections come back newest first (model Meta ordering)
    likes = LikeSerializer(many=True, read_only=True)
    comments = CommentSerializer(many=True, read_only=True)

    class Meta:
        model = Post
        fields = (
            "id",
            "user",
            "text",
            "name",
            "avatar",
            "date",
            "likes",
            "comments",
        )
        read_only_fields = fields
