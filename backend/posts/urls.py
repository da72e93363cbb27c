from django.urls import path
from .views import (
    posts_test,
    post_list_create,
    post_detail,
    post_like,
    post_unlike,
    comment_add,
    comment_remove,
)

urlpatterns = [
    # ----------------------------------------------------------------------
    # Endpoint: /api/posts/test/
    # Methods: GET (Public)
    path("test/", posts_test, name="posts-test"),
    # ----------------------------------------------------------------------
    # 1. POST Endpoints
    # ----------------------------------------------------------------------
    # Endpoint: /api/posts/
    # Methods: GET (List - Public), POST (Create - Authenticated)
    path("", post_list_create, name="post-list-create"),
    # Endpoint: /api/posts/<int:pk>/
    # Methods: GET (Retrieve - Public), DELETE (Author only)
    path("<int:pk>/", post_detail, name="post-detail"),
    # ----------------------------------------------------------------------
    # 2. LIKE Endpoints (Authenticated)
    # ----------------------------------------------------------------------
    path("like/<int:pk>/", post_like, name="post-like"),
    path("unlike/<int:pk>/", post_unlike, name="post-unlike"),
    # ----------------------------------------------------------------------
    # 3. COMMENT Endpoints (Authenticated)
    # ----------------------------------------------------------------------
    # Endpoint: /api/posts/comment/<int:pk>/
    # Methods: POST (Add a comment to post pk)
    path("comment/<int:pk>/", comment_add, name="comment-add"),
    # Endpoint: /api/posts/comment/<int:pk>/<int:comment_id>/
    # Methods: DELETE (Remove comment comment_id from post pk)
    path(
        "comment/<int:pk>/<int:comment_id>/",
        comment_remove,
        name="comment-remove",
    ),
    # ----------------------------------------------------------------------
]
