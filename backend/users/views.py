import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework import status
from rest_framework_simplejwt.views import TokenObtainPairView

from .models import Profile
from .serializers import (
    UserSerializer,
    ProfileSerializer,
    SocialTokenObtainPairSerializer,
)

logger = logging.getLogger(__name__)


class LoginView(TokenObtainPairView):
    serializer_class = SocialTokenObtainPairSerializer


@api_view(["POST"])
@permission_classes([AllowAny])  # Allows unauthenticated access for registration
def registerUser(request):
    serializer = UserSerializer(data=request.data)

    if serializer.is_valid():
        # save() runs UserSerializer.create(), which hashes the password
        user = serializer.save()
        logger.info("Registered user %s", user.pk)

        response_data = {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "message": "User registered successfully.",
        }
        return Response(response_data, status=status.HTTP_201_CREATED)

    # Missing fields, invalid emails and duplicate emails all land here
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def userProfile(request):
    # request.user is set from the bearer token by JWTAuthentication
    serializer = UserSerializer(request.user, many=False)
    return Response(serializer.data)


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def profileDetail(request):
    """
    GET: The requesting user's profile.
    POST: Create the profile, or update it if it already exists.
    """
    profile = Profile.objects.filter(user=request.user).first()

    if request.method == "GET":
        if profile is None:
            return Response(
                {"noprofile": "There is no profile for this user"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ProfileSerializer(profile).data)

    elif request.method == "POST":
        serializer = ProfileSerializer(profile, data=request.data)

        if serializer.is_valid():
            created = profile is None
            profile = serializer.save(user=request.user)
            return Response(
                ProfileSerializer(profile).data,
                status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
            )
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
