from django.urls import path
from .views import (
    LoginView,
    registerUser,
    userProfile,
    profileDetail,
)

urlpatterns = [
    path("register/", registerUser, name="register"),
    # Issues the access/refresh pair (Simple JWT)
    path("login/", LoginView.as_view(), name="login"),
    path("me/", userProfile, name="me"),
    path("profile/", profileDetail, name="profile"),
]
