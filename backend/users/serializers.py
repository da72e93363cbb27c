from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from .models import User, Profile


class UserSerializer(serializers.ModelSerializer):
    # Define password explicitly as write-only for security and input control
    password = serializers.CharField(
        write_only=True,
        required=True,
        min_length=6,
        style={"input_type": "password"},
    )

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "name",
            "avatar",
            "created_at",
            "password",
        )
        read_only_fields = ["id", "created_at"]

    def create(self, validated_data):
        # create_user hashes the password
        return User.objects.create_user(**validated_data)


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = Profile
        fields = ("id", "user", "handle", "bio", "created_at")
        read_only_fields = ["id", "user", "created_at"]


class SocialTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Login serializer that also puts the display name and avatar into the token.

    Clients decode the access token to show who is logged in without an
    extra round trip.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["name"] = user.name
        token["avatar"] = user.avatar
        return token
