from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import (
    AllowAny,
    IsAuthenticated,
    IsAuthenticatedOrReadOnly,
)
from rest_framework.response import Response
from rest_framework import status

from . import services
from .serializers import PostSerializer

# PostError raised by the service is rendered by posts.exceptions.post_exception_handler,
# so the views below only deal with the success path.

# ---  Post Views ---


@api_view(["GET"])
@permission_classes([AllowAny])
def posts_test(request):
    """GET: Health check for the posts routes."""
    return Response({"msg": "Posts Works"})


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticatedOrReadOnly])
def post_list_create(request):
    """
    GET: List every post, newest first (public).
    POST: Create a post authored by the requesting user.
    """
    if request.method == "GET":
        posts = services.list_posts()
        serializer = PostSerializer(posts, many=True)
        return Response(serializer.data)

    elif request.method == "POST":
        post = services.create_post(request.user, request.data)
        return Response(PostSerializer(post).data, status=status.HTTP_201_CREATED)


@api_view(["GET", "DELETE"])
@permission_classes([IsAuthenticatedOrReadOnly])
def post_detail(request, pk):
    """
    GET: Retrieve a post with its likes and comments (public).
    DELETE: Delete a post (its author only).
    """
    if request.method == "GET":
        post = services.get_post(pk)
        return Response(PostSerializer(post).data)

    elif request.method == "DELETE":
        result = services.delete_post(request.user, pk)
        return Response(result)


# --- Likes ---


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def post_like(request, pk):
    post = services.like_post(request.user, pk)
    return Response(PostSerializer(post).data)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def post_unlike(request, pk):
    post = services.unlike_post(request.user, pk)
    return Response(PostSerializer(post).data)


# --- Comments ---


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def comment_add(request, pk):
    """POST: Add a comment to a post; returns the updated post."""
    post = services.add_comment(request.user, pk, request.data)
    return Response(PostSerializer(post).data)


@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def comment_remove(request, pk, comment_id):
    """DELETE: Remove a comment from a post; returns the updated post."""
    post = services.remove_comment(request.user, pk, comment_id)
    return Response(PostSerializer(post).data)
