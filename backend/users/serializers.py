from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from core_backend.base import BaseModelSerializer
from .models import User


class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Adds the user's role to the JWT claims."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        return token


class CurrentUserSerializer(BaseModelSerializer):
    is_admin_role = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "username", "first_name", "last_name", "phone_number", "role", "is_admin_role"]
        read_only_fields = fields
