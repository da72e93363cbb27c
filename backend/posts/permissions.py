from django.conf import settings
from django.utils.module_loading import import_string

from .exceptions import NotAuthorized


# * A capability is a plain function (principal, target) -> bool, where target is
# * the Post or Comment the operation acts on. Each mutating operation names the
# * capability it needs, so the policy lives in one table instead of being
# * scattered through the service's control flow.


def is_author(principal, target):
    """Only the user who wrote the post/comment."""
    return target.user_id == principal.pk


def is_author_or_admin(principal, target):
    """The author, or any staff user."""
    return principal.is_staff or is_author(principal, target)


def any_principal(principal, target):
    """Any authenticated user."""
    return True


DEFAULT_CAPABILITIES = {
    "delete_post": "posts.permissions.is_author",
    "remove_comment": "posts.permissions.any_principal",
}


def get_capability(operation):
    # settings.POST_CAPABILITIES overrides the defaults one operation at a time
    overrides = getattr(settings, "POST_CAPABILITIES", {}) or {}
    path = overrides.get(operation, DEFAULT_CAPABILITIES[operation])
    return import_string(path)


def check_capability(operation, principal, target):
    """Raise NotAuthorized unless principal holds the capability for operation."""
    if not get_capability(operation)(principal, target):
        raise NotAuthorized()
