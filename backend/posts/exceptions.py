from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class PostError(Exception):
    """
    Base class for every failure the post service can report.

    Each subclass carries the HTTP status it maps to and a one-key error body,
    so the API layer can turn it into a response without knowing which
    operation raised it.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    key = "error"
    message = "Post operation failed"

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def as_dict(self):
        return {self.key: self.message}


class NotFound(PostError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity="post"):
        self.entity = entity
        self.key = f"{entity}notfound"
        super().__init__(f"No {entity} found")


class NotAuthorized(PostError):
    status_code = status.HTTP_401_UNAUTHORIZED
    key = "notauthorized"
    message = "User not authorized"


class AlreadyLiked(PostError):
    key = "alreadyliked"
    message = "User already liked this post"


class NotLiked(PostError):
    key = "notliked"
    message = "You have not yet liked this post"


class CommentNotFound(PostError):
    status_code = status.HTTP_404_NOT_FOUND
    key = "commentnotexists"
    message = "Comment does not exist"


class ValidationFailed(PostError):
    key = "validation"
    message = "Invalid post input"

    def __init__(self, field_errors):
        self.field_errors = dict(field_errors)
        super().__init__()

    def as_dict(self):
        return self.field_errors


class StoreError(PostError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    key = "storeerror"
    message = "The post store is unavailable, try again later"


def post_exception_handler(exc, context):
    """DRF exception handler: render PostError, defer everything else."""
    if isinstance(exc, PostError):
        return Response(exc.as_dict(), status=exc.status_code)

    return exception_handler(exc, context)
